"""Code actions and conditions shipped with the server.

Schemes reference these by name. They are registered explicitly in
``build_action_registry``.
"""

import logging
from typing import Optional

from workflow_core.actions import ActionRegistry
from workflow_core.types import ProcessInstanceInfo

logger = logging.getLogger(__name__)


def write_log(process_instance: ProcessInstanceInfo, parameter: Optional[str]) -> None:
    """Write the action parameter to the server log."""
    logger.info(
        f"[process {process_instance.process_id}] "
        f"state={process_instance.current_state}: {parameter or ''}"
    )


def parameter_is_set(process_instance: ProcessInstanceInfo, parameter: Optional[str]) -> bool:
    """True when the process parameter named by ``parameter`` has a non-empty value."""
    if not parameter:
        return False
    value = process_instance.parameters.get(parameter.strip())
    return value not in (None, "")


def build_action_registry() -> ActionRegistry:
    return ActionRegistry(
        actions={"WriteLog": write_log},
        conditions={"ParameterIsSet": parameter_is_set},
    )
