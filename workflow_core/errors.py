"""Exception types raised by the workflow server core.

Every error raised while handling a typed API request ends up in the
response envelope, so messages are written for API clients.
"""


class WorkflowServerError(Exception):
    """Base class for all workflow server errors."""


class RequestValidationError(WorkflowServerError):
    """A required request field is missing or malformed."""


class UnsupportedOperationError(RequestValidationError):
    """The requested operation is not one of the known operations."""

    def __init__(self, operation: str):
        super().__init__(f"operation={operation} is not supported!")
        self.operation = operation


class CommandNotFoundError(RequestValidationError):
    """The named command is not available for the process instance."""

    def __init__(self, command_name: str):
        super().__init__(f"Command {command_name} is not found")
        self.command_name = command_name


class InvalidCultureError(RequestValidationError):
    """The culture parameter is not a valid locale tag."""


class ParameterCoercionError(WorkflowServerError):
    """A raw parameter value could not be converted to its declared type."""


class UnknownParameterTypeError(WorkflowServerError):
    """A parameter declares a type tag that cannot be resolved."""


class ConfigurationError(WorkflowServerError):
    """The server configuration is invalid. Fatal at startup."""


class UnknownBackendError(ConfigurationError):
    """The configured backend tag does not match any known backend."""

    def __init__(self, tag: str):
        super().__init__(f"Provider = '{tag}' is not supported")
        self.tag = tag


class BackendUnavailableError(WorkflowServerError):
    """The configured store could not be reached at startup."""


class CallbackError(WorkflowServerError):
    """The remote callback API returned an error or could not be reached."""
