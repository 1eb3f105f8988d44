"""Typed workflow API request pipeline.

Every request goes through the same linear pipeline::

    parse -> validate -> route -> execute -> result

``WorkflowApiDispatcher.dispatch`` never raises: every failure becomes an
``OperationResult`` carrying an ``OperationError`` (message plus optional
cause), which the HTTP endpoint renders as a ``ResponseEnvelope``.
The dispatcher keeps no state between requests.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional
from uuid import UUID

from pydantic import BaseModel, model_validator
from starlette.concurrency import run_in_threadpool

from workflow_core.command_parameters import (
    FormParameters,
    fill_command_parameters,
    get_initial_process_parameters,
)
from workflow_core.constants import INNER_EXCEPTION_DELIMITER, Operation
from workflow_core.culture import resolve_culture
from workflow_core.errors import (
    CommandNotFoundError,
    RequestValidationError,
    UnsupportedOperationError,
    WorkflowServerError,
)
from workflow_core.interfaces import WorkflowRuntime
from workflow_core.types import CreateInstanceParams, ProcessScheme

logger = logging.getLogger(__name__)


def _value(values: Mapping[str, str], key: str) -> Optional[str]:
    value = values.get(key)
    if value is None or not value.strip():
        return None
    return value


def _require(value: Optional[str], name: str) -> str:
    if value is None:
        raise RequestValidationError(f"Parameter '{name}' is required!")
    return value


def _parse_operation(name: str) -> Operation:
    try:
        return Operation(name.strip().lower())
    except ValueError:
        raise UnsupportedOperationError(name) from None


def _parse_process_id(value: Optional[str]) -> UUID:
    try:
        return UUID(value.strip())
    except (AttributeError, ValueError):
        raise RequestValidationError(
            "Parameter 'processid' is required and must be a GUID!"
        ) from None


def _parse_parameters(value: Optional[str]) -> Optional[Dict[str, Any]]:
    if value is None:
        return None
    try:
        parameters = json.loads(value)
    except json.JSONDecodeError as e:
        raise RequestValidationError("Parameter 'parameters' must be a JSON object") from e
    if not isinstance(parameters, dict):
        raise RequestValidationError("Parameter 'parameters' must be a JSON object")
    return parameters


@dataclass(frozen=True)
class OperationRequest:
    """Validated query of a typed API request."""

    operation: Operation
    process_id: UUID
    culture: str
    identity_id: Optional[str] = None
    impersonated_identity_id: Optional[str] = None
    parameters: Optional[Dict[str, Any]] = None
    scheme_code: Optional[str] = None
    command: Optional[str] = None
    state: Optional[str] = None

    @classmethod
    def parse(cls, query: Mapping[str, str]) -> "OperationRequest":
        """Parse and validate query parameters. Keys are case-insensitive.

        Raises:
            RequestValidationError: If a required field is missing or malformed
        """
        values = {key.lower(): value for key, value in query.items()}

        operation_name = _require(_value(values, "operation"), "operation")
        process_id = _parse_process_id(values.get("processid"))
        parameters = _parse_parameters(_value(values, "parameters"))
        culture = resolve_culture(values.get("culture"))

        return cls(
            operation=_parse_operation(operation_name),
            process_id=process_id,
            culture=culture,
            identity_id=_value(values, "identityid"),
            impersonated_identity_id=_value(values, "impersonatedidentityid"),
            parameters=parameters,
            scheme_code=_value(values, "schemacode"),
            command=_value(values, "command"),
            state=_value(values, "state"),
        )

    @property
    def identity_ids(self) -> List[str]:
        return [self.identity_id] if self.identity_id else []


@dataclass(frozen=True)
class OperationError:
    """Failure of an operation: the error message and, if any, its cause."""

    message: str
    cause: Optional[str] = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> "OperationError":
        inner = exc.__cause__
        return cls(
            message=str(exc) or type(exc).__name__,
            cause=(str(inner) or type(inner).__name__) if inner is not None else None,
        )

    def __str__(self) -> str:
        if self.cause is None:
            return self.message
        return f"{self.message}{INNER_EXCEPTION_DELIMITER}{self.cause}"


class ResponseEnvelope(BaseModel):
    """Wire format of every typed API response."""

    data: Any = ""
    success: bool
    error: str = ""

    @model_validator(mode="after")
    def check_success_matches_error(self) -> "ResponseEnvelope":
        if self.success != (self.error == ""):
            raise ValueError("success must be true exactly when error is empty")
        return self


@dataclass(frozen=True)
class OperationResult:
    data: Any = ""
    error: Optional[OperationError] = None

    @property
    def success(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, exc: BaseException) -> "OperationResult":
        return cls(error=OperationError.from_exception(exc))

    def to_envelope(self) -> ResponseEnvelope:
        if self.error is not None:
            return ResponseEnvelope(data="", success=False, error=str(self.error))
        return ResponseEnvelope(data=self.data, success=True)


Handler = Callable[[OperationRequest, FormParameters], Awaitable[Any]]


class WorkflowApiDispatcher:
    """Routes typed API requests to the workflow runtime.

    Args:
        runtime: The process-wide runtime; shared by all requests
    """

    def __init__(self, runtime: WorkflowRuntime):
        self.runtime = runtime
        self._handlers: Dict[Operation, Handler] = {
            Operation.CREATE_INSTANCE: self._create_instance,
            Operation.GET_AVAILABLE_COMMANDS: self._get_available_commands,
            Operation.EXECUTE_COMMAND: self._execute_command,
            Operation.GET_AVAILABLE_STATE_TO_SET: self._get_available_state_to_set,
            Operation.SET_STATE: self._set_state,
            Operation.IS_EXIST_PROCESS: self._is_exist_process,
        }

    async def dispatch(
        self, query: Mapping[str, str], form: FormParameters = None
    ) -> OperationResult:
        """Run one request through the pipeline.

        Args:
            query: Query string parameters
            form: Form parameters of a POST request, None without a body

        Returns:
            Result with the operation's data, or the error that stopped it
        """
        try:
            request = OperationRequest.parse(query)
            logger.debug(f"Workflow API operation {request.operation} for process {request.process_id}")
            data = await self._handlers[request.operation](request, form)
        except Exception as e:
            logger.warning(
                f"Workflow API request failed: {e}",
                exc_info=not isinstance(e, WorkflowServerError),
            )
            return OperationResult.failure(e)
        return OperationResult(data=data)

    async def _load_scheme(self, scheme_code: str) -> ProcessScheme:
        return await run_in_threadpool(self.runtime.get_process_scheme, scheme_code)

    async def _create_instance(self, request: OperationRequest, form: FormParameters) -> Any:
        scheme_code = _require(request.scheme_code, "schemacode")
        initial_parameters = await get_initial_process_parameters(
            self._load_scheme, scheme_code, form
        )
        params = CreateInstanceParams(
            scheme_code=scheme_code,
            process_id=request.process_id,
            identity_id=request.identity_id,
            impersonated_identity_id=request.impersonated_identity_id,
            initial_process_parameters=initial_parameters,
            scheme_creation_parameters=request.parameters or {},
        )
        await self.runtime.create_instance(params)
        return ""

    async def _get_available_commands(
        self, request: OperationRequest, form: FormParameters
    ) -> Any:
        commands = await self.runtime.get_available_commands(
            request.process_id,
            request.identity_ids,
            None,
            request.impersonated_identity_id,
        )
        return [command.model_dump(mode="json") for command in commands]

    async def _execute_command(self, request: OperationRequest, form: FormParameters) -> Any:
        command_name = _require(request.command, "command")
        commands = await self.runtime.get_available_commands(
            request.process_id,
            request.identity_ids,
            command_name,
            request.impersonated_identity_id,
        )
        command = next((c for c in commands if c.command_name == command_name), None)
        if command is None:
            raise CommandNotFoundError(command_name)

        fill_command_parameters(command, form)
        await self.runtime.execute_command(
            command, request.identity_id, request.impersonated_identity_id
        )
        return ""

    async def _get_available_state_to_set(
        self, request: OperationRequest, form: FormParameters
    ) -> Any:
        states = await self.runtime.get_available_states_to_set(
            request.process_id, request.culture
        )
        return [state.model_dump(mode="json") for state in states]

    async def _set_state(self, request: OperationRequest, form: FormParameters) -> Any:
        state = _require(request.state, "state")
        await self.runtime.set_state(
            request.process_id,
            request.identity_id,
            request.impersonated_identity_id,
            state,
            request.parameters or {},
        )
        return ""

    async def _is_exist_process(self, request: OperationRequest, form: FormParameters) -> Any:
        return bool(await self.runtime.is_process_exists(request.process_id))
