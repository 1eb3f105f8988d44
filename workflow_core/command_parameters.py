"""Filling typed command and process parameters from request form data.

Form keys are matched against declared parameter names exactly; keys
that match nothing are ignored, since multi-purpose client UIs post
fields of their own.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from workflow_core.coercion import coerce, default_value
from workflow_core.types import ProcessScheme, WorkflowCommand

logger = logging.getLogger(__name__)

FormParameters = Optional[Mapping[str, str]]
SchemeLoader = Callable[[str], Awaitable[ProcessScheme]]


def reset_command_parameters(command: WorkflowCommand) -> None:
    """Reset every declared parameter of a command to its default value."""
    for parameter in command.parameters:
        parameter.value = default_value(parameter.type, parameter.default)


def fill_command_parameters(command: WorkflowCommand, form: FormParameters) -> WorkflowCommand:
    """Reset a command's parameters, then overlay matching form values.

    Args:
        command: Command snapshot fetched from the runtime for this request
        form: Form parameters of a POST request, or None when there is no body

    Returns:
        The same command, with parameter values set

    Raises:
        ParameterCoercionError: If a non-string parameter value does not parse
    """
    reset_command_parameters(command)
    if not form:
        return command

    for key, raw_value in form.items():
        parameter = command.get_parameter(key)
        if parameter is None:
            continue
        parameter.value = coerce(raw_value, parameter.type)
        logger.debug(f"Command '{command.command_name}' parameter '{key}' set from form")
    return command


async def get_initial_process_parameters(
    load_scheme: SchemeLoader, scheme_code: str, form: FormParameters
) -> Dict[str, Any]:
    """Build typed initial process parameters from form data.

    The scheme is only loaded when the form carries parameters.
    """
    if not form:
        return {}

    scheme = await load_scheme(scheme_code)
    result: Dict[str, Any] = {}
    for key, raw_value in form.items():
        definition = scheme.get_parameter(key)
        if definition is None:
            continue
        result[definition.name] = coerce(raw_value, definition.type)
    return result
