"""Interfaces between the server and the workflow engine.

The engine itself is an external package. It plugs into the server by
subclassing ``WorkflowRuntime`` and implementing the abstract operations;
the server builds one runtime at startup and configures it through the
fluent ``with_*`` methods before calling ``start``.

A runtime instance is shared by all concurrent requests. Implementations
must be safe for concurrent use; the server adds no locking around it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import (
    Any,
    Awaitable,
    BinaryIO,
    Callable,
    Dict,
    List,
    Mapping,
    Optional,
    Union,
)
from uuid import UUID

from workflow_core.constants import BackendType
from workflow_core.types import (
    CreateInstanceParams,
    ProcessInstanceInfo,
    ProcessScheme,
    WorkflowCommand,
    WorkflowState,
)


class IPersistenceProvider(ABC):
    """Storage backend for instance data.

    The server only owns the connection handle; the engine decides what to
    store through it.
    """

    @property
    @abstractmethod
    def backend(self) -> BackendType:
        """Get the backend this provider talks to."""
        pass

    @property
    @abstractmethod
    def handle(self) -> Any:
        """Get the live driver handle (database, document store or engine)."""
        pass

    @abstractmethod
    def check_connection(self) -> None:
        """Verify the store is reachable.

        Raises:
            BackendUnavailableError: If the store cannot be reached
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the driver handle."""
        pass


class ISchemePersistenceProvider(IPersistenceProvider):
    """Storage backend for workflow schemes."""


class IWorkflowGenerator(ABC):
    """Source of scheme definitions for the engine's builder."""

    @abstractmethod
    async def generate(
        self, scheme_code: str, scheme_id: UUID, parameters: Mapping[str, Any]
    ) -> Optional[str]:
        """Generate the scheme XML for a scheme code.

        Returns:
            Scheme XML, or None to let the engine load the scheme from its
            scheme persistence provider
        """
        pass


class IWorkflowActionProvider(ABC):
    """Resolves actions and conditions referenced by a scheme."""

    @abstractmethod
    async def get_actions(self) -> List[str]:
        pass

    @abstractmethod
    async def execute_action(
        self, name: str, process_instance: ProcessInstanceInfo, parameter: Optional[str]
    ) -> None:
        pass

    @abstractmethod
    async def execute_condition(
        self, name: str, process_instance: ProcessInstanceInfo, parameter: Optional[str]
    ) -> bool:
        pass


class IWorkflowRuleProvider(ABC):
    """Resolves authorization rules referenced by a scheme."""

    @abstractmethod
    async def get_rules(self) -> List[str]:
        pass

    @abstractmethod
    async def check(
        self,
        process_instance: ProcessInstanceInfo,
        identity_id: str,
        rule_name: str,
        parameter: Optional[str],
    ) -> bool:
        pass

    @abstractmethod
    async def get_identities(
        self, process_instance: ProcessInstanceInfo, rule_name: str, parameter: Optional[str]
    ) -> List[str]:
        pass


ExecutionRequest = Any
Executor = Callable[[ExecutionRequest], Awaitable[Any]]


class IWorkflowBus(ABC):
    """Carries execution requests from the engine to its executor."""

    @abstractmethod
    def initialize(self, executor: Executor) -> None:
        pass

    @abstractmethod
    async def queue_execution(self, request: ExecutionRequest) -> Any:
        pass

    @abstractmethod
    def start(self) -> None:
        pass


@dataclass
class WorkflowBuilder:
    """Builder configuration handed to the runtime.

    Attributes:
        generator: Scheme generator consulted first for scheme XML
        scheme_provider: Scheme storage used when the generator yields nothing
        parser: Scheme format understood by the engine's parser
        use_default_cache: Whether parsed schemes are cached by the engine
    """

    generator: IWorkflowGenerator
    scheme_provider: ISchemePersistenceProvider
    parser: str = "xml"
    use_default_cache: bool = True


DesignerResult = Union[str, bytes]


class WorkflowRuntime(ABC):
    """Base class of workflow engine runtimes.

    Engines implement the abstract operations. The ``with_*`` methods and
    ``register_code_actions`` store the wiring chosen by the server and
    return the runtime so calls can be chained.
    """

    license_key: Optional[str] = None

    def __init__(self, runtime_id: UUID):
        self.runtime_id = runtime_id
        self.builder: Optional[WorkflowBuilder] = None
        self.persistence_provider: Optional[IPersistenceProvider] = None
        self.bus: Optional[IWorkflowBus] = None
        self.timer_manager: Any = None
        self.action_provider: Optional[IWorkflowActionProvider] = None
        self.rule_provider: Optional[IWorkflowRuleProvider] = None
        self.auto_update_scheme_before_get_available_commands = False
        self.code_actions: Any = None

    @classmethod
    def register_license(cls, key: str) -> None:
        """Register the engine license key. Called once before serving traffic."""
        cls.license_key = key

    def with_builder(self, builder: WorkflowBuilder) -> "WorkflowRuntime":
        self.builder = builder
        return self

    def with_persistence_provider(self, provider: IPersistenceProvider) -> "WorkflowRuntime":
        self.persistence_provider = provider
        return self

    def with_bus(self, bus: IWorkflowBus) -> "WorkflowRuntime":
        self.bus = bus
        return self

    def with_timer_manager(self, timer_manager: Any) -> "WorkflowRuntime":
        self.timer_manager = timer_manager
        return self

    def with_action_provider(self, provider: IWorkflowActionProvider) -> "WorkflowRuntime":
        self.action_provider = provider
        return self

    def with_rule_provider(self, provider: IWorkflowRuleProvider) -> "WorkflowRuntime":
        self.rule_provider = provider
        return self

    def switch_auto_update_scheme_before_get_available_commands_on(self) -> "WorkflowRuntime":
        self.auto_update_scheme_before_get_available_commands = True
        return self

    def register_code_actions(self, registry: Any) -> "WorkflowRuntime":
        self.code_actions = registry
        return self

    @abstractmethod
    async def start(self) -> None:
        """Start background processing (bus, timers)."""
        pass

    async def stop(self) -> None:
        """Stop background processing."""
        pass

    async def on_timer(self, process_id: UUID, timer_name: str) -> None:
        """Handle a due timer scheduled through the timer manager."""
        pass

    @abstractmethod
    async def create_instance(self, params: CreateInstanceParams) -> None:
        pass

    @abstractmethod
    async def get_available_commands(
        self,
        process_id: UUID,
        identity_ids: List[str],
        command_name_filter: Optional[str] = None,
        impersonated_identity_id: Optional[str] = None,
    ) -> List[WorkflowCommand]:
        pass

    @abstractmethod
    async def execute_command(
        self,
        command: WorkflowCommand,
        identity_id: Optional[str],
        impersonated_identity_id: Optional[str],
    ) -> None:
        pass

    @abstractmethod
    async def get_available_states_to_set(
        self, process_id: UUID, culture: str
    ) -> List[WorkflowState]:
        pass

    @abstractmethod
    async def set_state(
        self,
        process_id: UUID,
        identity_id: Optional[str],
        impersonated_identity_id: Optional[str],
        state_name: str,
        parameters: Dict[str, Any],
    ) -> None:
        pass

    @abstractmethod
    async def is_process_exists(self, process_id: UUID) -> bool:
        pass

    @abstractmethod
    def get_process_scheme(self, scheme_code: str) -> ProcessScheme:
        """Load a scheme definition. Blocking; the server calls it from a worker thread."""
        pass

    @abstractmethod
    def designer_api(
        self, parameters: Dict[str, str], file_stream: Optional[BinaryIO] = None
    ) -> DesignerResult:
        """Handle a scheme designer request. Blocking; called from a worker thread."""
        pass
