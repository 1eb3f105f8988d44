"""Registry of code actions and conditions available to workflow schemes.

The registry is filled from an explicit list at startup; nothing is
discovered by scanning modules.
"""

import inspect
import logging
from typing import Awaitable, Callable, Dict, List, Mapping, Optional, Union

from workflow_core.types import ProcessInstanceInfo

logger = logging.getLogger(__name__)

ActionFunc = Callable[[ProcessInstanceInfo, Optional[str]], Union[None, Awaitable[None]]]
ConditionFunc = Callable[[ProcessInstanceInfo, Optional[str]], Union[bool, Awaitable[bool]]]


class ActionRegistry:
    """Named actions and conditions.

    Example:
        registry = ActionRegistry(
            actions={"WriteLog": write_log},
            conditions={"ParameterIsSet": parameter_is_set},
        )
        await registry.execute_action("WriteLog", instance, "hello")
    """

    def __init__(
        self,
        actions: Optional[Mapping[str, ActionFunc]] = None,
        conditions: Optional[Mapping[str, ConditionFunc]] = None,
    ):
        self.actions: Dict[str, ActionFunc] = {}
        self.conditions: Dict[str, ConditionFunc] = {}
        for name, func in (actions or {}).items():
            self.register_action(name, func)
        for name, func in (conditions or {}).items():
            self.register_condition(name, func)

    def register_action(self, name: str, func: ActionFunc) -> None:
        """Register an action.

        Raises:
            ValueError: If an action or condition with this name exists
            TypeError: If func is not callable
        """
        self._check_new(name, func)
        logger.info(f"Registering code action: {name}")
        self.actions[name] = func

    def register_condition(self, name: str, func: ConditionFunc) -> None:
        """Register a condition. Same rules as ``register_action``."""
        self._check_new(name, func)
        logger.info(f"Registering code condition: {name}")
        self.conditions[name] = func

    def _check_new(self, name: str, func: Callable) -> None:
        if not callable(func):
            raise TypeError(f"Expected a callable for '{name}', got {type(func)}")
        if name in self.actions or name in self.conditions:
            raise ValueError(f"Code action '{name}' is already registered")

    def get_action_names(self) -> List[str]:
        return list(self.actions) + list(self.conditions)

    def has_action(self, name: str) -> bool:
        return name in self.actions

    def has_condition(self, name: str) -> bool:
        return name in self.conditions

    async def execute_action(
        self, name: str, process_instance: ProcessInstanceInfo, parameter: Optional[str]
    ) -> None:
        result = self.actions[name](process_instance, parameter)
        if inspect.isawaitable(result):
            await result

    async def execute_condition(
        self, name: str, process_instance: ProcessInstanceInfo, parameter: Optional[str]
    ) -> bool:
        result = self.conditions[name](process_instance, parameter)
        if inspect.isawaitable(result):
            result = await result
        return bool(result)
