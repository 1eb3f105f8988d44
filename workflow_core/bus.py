"""In-process workflow bus."""

import logging
from typing import Any, Optional

from workflow_core.interfaces import ExecutionRequest, Executor, IWorkflowBus

logger = logging.getLogger(__name__)


class NullBus(IWorkflowBus):
    """Bus without a queue: every request runs inline on the caller's task."""

    def __init__(self):
        self._executor: Optional[Executor] = None

    def initialize(self, executor: Executor) -> None:
        self._executor = executor

    def start(self) -> None:
        logger.debug("NullBus has nothing to start")

    async def queue_execution(self, request: ExecutionRequest) -> Any:
        if self._executor is None:
            raise RuntimeError("NullBus is not initialized with an executor")
        return await self._executor(request)
