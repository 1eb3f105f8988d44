"""Workflow Core - request processing and backend wiring for the workflow server."""

# Import interfaces
from workflow_core.interfaces import (
    WorkflowRuntime,
    WorkflowBuilder,
    IPersistenceProvider,
    ISchemePersistenceProvider,
    IWorkflowActionProvider,
    IWorkflowRuleProvider,
    IWorkflowGenerator,
    IWorkflowBus,
)

# Import data types
from workflow_core.types import (
    CommandParameter,
    CreateInstanceParams,
    ParameterDefinition,
    ProcessInstanceInfo,
    ProcessScheme,
    WorkflowCommand,
    WorkflowState,
)

from workflow_core.constants import BackendType, Operation

# Import concrete implementations
from workflow_core.actions import ActionRegistry
from workflow_core.backends import BackendBundle, BackendFactory
from workflow_core.bus import NullBus
from workflow_core.callbacks import CallbackApiClient, WorkflowCallbackProvider
from workflow_core.coercion import coerce, serialize
from workflow_core.command_parameters import (
    fill_command_parameters,
    get_initial_process_parameters,
)
from workflow_core.timers import TimerManager

__all__ = [
    "WorkflowRuntime",
    "WorkflowBuilder",
    "IPersistenceProvider",
    "ISchemePersistenceProvider",
    "IWorkflowActionProvider",
    "IWorkflowRuleProvider",
    "IWorkflowGenerator",
    "IWorkflowBus",
    "CommandParameter",
    "CreateInstanceParams",
    "ParameterDefinition",
    "ProcessInstanceInfo",
    "ProcessScheme",
    "WorkflowCommand",
    "WorkflowState",
    "BackendType",
    "Operation",
    "ActionRegistry",
    "BackendBundle",
    "BackendFactory",
    "NullBus",
    "CallbackApiClient",
    "WorkflowCallbackProvider",
    "coerce",
    "serialize",
    "fill_command_parameters",
    "get_initial_process_parameters",
    "TimerManager",
]
