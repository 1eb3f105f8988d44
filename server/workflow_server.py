"""Workflow server host.

Builds the workflow runtime once per process: selects the persistence
backend, creates the callback provider, wires everything into the
runtime and exposes the request dispatcher. ``start`` and ``stop`` are
driven by the application lifespan.
"""

import importlib
import logging
from typing import BinaryIO, Dict, Optional, Type

from starlette.concurrency import run_in_threadpool

from config.types import ServerSettings
from server.actions import build_action_registry
from server.dispatcher import WorkflowApiDispatcher
from server.startup_tracer import time_operation, trace_startup_time
from workflow_core.actions import ActionRegistry
from workflow_core.backends import BackendBundle, BackendFactory
from workflow_core.bus import NullBus
from workflow_core.callbacks import WorkflowCallbackProvider
from workflow_core.errors import ConfigurationError
from workflow_core.interfaces import DesignerResult, WorkflowBuilder, WorkflowRuntime
from workflow_core.timers import TimerManager

logger = logging.getLogger(__name__)

RuntimeFactory = Type[WorkflowRuntime]


def load_runtime_factory(path: str) -> RuntimeFactory:
    """Import the runtime class named by a ``module:attribute`` path.

    Raises:
        ConfigurationError: If the path is malformed, cannot be imported, or
            does not name a WorkflowRuntime subclass
    """
    module_name, _, attribute = (path or "").partition(":")
    if not module_name or not attribute:
        raise ConfigurationError(
            f"Runtime factory '{path}' must have the form 'module:attribute'"
        )
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import runtime module '{module_name}'") from e

    factory = getattr(module, attribute, None)
    if not (isinstance(factory, type) and issubclass(factory, WorkflowRuntime)):
        raise ConfigurationError(f"'{path}' is not a WorkflowRuntime subclass")
    return factory


def register_license_key(runtime_factory: RuntimeFactory, license_key: Optional[str]) -> bool:
    """Register the engine license once, before any request is served."""
    if not license_key:
        logger.info("No license key configured, runtime runs unlicensed")
        return False
    runtime_factory.register_license(license_key)
    logger.info("Runtime license key registered")
    return True


class WorkflowServer:
    """Owns the runtime and everything wired into it.

    Args:
        settings: Resolved server settings
        runtime_factory: WorkflowRuntime subclass to instantiate
        action_registry: Local code actions, defaults to the built-in set
    """

    def __init__(
        self,
        settings: ServerSettings,
        runtime_factory: RuntimeFactory,
        action_registry: Optional[ActionRegistry] = None,
    ):
        self.settings = settings
        self.action_registry = action_registry or build_action_registry()
        self.started = False

        with time_operation("Backend Selection"):
            self.backend: BackendBundle = BackendFactory.create(settings.backend)

        try:
            self.callback_provider = WorkflowCallbackProvider(
                settings.callback, self.action_registry
            )
            self.bus = NullBus()
            self.timer_manager = TimerManager()
            with time_operation("Runtime Wiring"):
                self.runtime = self._build_runtime(runtime_factory)
        except Exception:
            self.backend.close()
            raise

        self.dispatcher = WorkflowApiDispatcher(self.runtime)
        logger.info(
            f"Workflow runtime {settings.runtime_id} wired to backend {self.backend.backend}"
        )

    @classmethod
    def from_settings(cls, settings: ServerSettings) -> "WorkflowServer":
        """Load the configured runtime class, register its license and build the server.

        Raises:
            ConfigurationError: If no runtime factory is configured or it cannot be loaded
        """
        if not settings.runtime_factory:
            raise ConfigurationError("Parameter 'runtime_factory' is required")
        runtime_factory = load_runtime_factory(settings.runtime_factory)
        register_license_key(runtime_factory, settings.license_key)
        return cls(settings, runtime_factory)

    def _build_runtime(self, runtime_factory: RuntimeFactory) -> WorkflowRuntime:
        builder = WorkflowBuilder(
            generator=self.callback_provider,
            scheme_provider=self.backend.scheme_provider,
        )
        return (
            runtime_factory(self.settings.runtime_id)
            .with_builder(builder)
            .with_persistence_provider(self.backend.persistence_provider)
            .with_bus(self.bus)
            .with_timer_manager(self.timer_manager)
            .with_action_provider(self.callback_provider)
            .with_rule_provider(self.callback_provider)
            .switch_auto_update_scheme_before_get_available_commands_on()
            .register_code_actions(self.action_registry)
        )

    @trace_startup_time("Server Start")
    async def start(self) -> None:
        """Check the backend, then start the runtime unless disabled.

        Raises:
            BackendUnavailableError: If the backend cannot be reached
        """
        with time_operation("Backend Connection Check"):
            await run_in_threadpool(self.backend.check_connection)

        if self.settings.no_start_workflow:
            logger.info("Runtime start skipped, no_start_workflow is set")
            return

        with time_operation("Runtime Start"):
            self.timer_manager.start(self.runtime.on_timer)
            await self.runtime.start()
        self.started = True
        logger.info("Workflow runtime started")

    async def stop(self) -> None:
        """Stop the runtime and release timers, the callback session and the backend.

        Every step runs even when an earlier one fails; the first error is
        re-raised once all of them have run.
        """
        try:
            if self.started:
                self.started = False
                await self.runtime.stop()
        finally:
            try:
                await self.timer_manager.stop()
            finally:
                try:
                    await self.callback_provider.close()
                finally:
                    self.backend.close()
        logger.info("Workflow server stopped")

    async def designer_api(
        self, parameters: Dict[str, str], file_stream: Optional[BinaryIO] = None
    ) -> DesignerResult:
        return await run_in_threadpool(self.runtime.designer_api, parameters, file_stream)
