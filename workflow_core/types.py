"""Data types exchanged between the server and the workflow runtime."""

from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_serializer

from workflow_core.coercion import type_name


class ParameterDefinition(BaseModel):
    """A parameter declared by a workflow scheme."""

    name: str
    type: Any = str
    default: Any = None

    @field_serializer("type")
    def serialize_type(self, value: Any) -> str:
        return type_name(value)


class ProcessScheme(BaseModel):
    """Scheme definition as far as the server needs it: code and declared parameters."""

    code: str
    name: Optional[str] = None
    parameters: List[ParameterDefinition] = Field(default_factory=list)

    def get_parameter(self, name: str) -> Optional[ParameterDefinition]:
        """Get a declared parameter by exact name."""
        return next((p for p in self.parameters if p.name == name), None)


class CommandParameter(BaseModel):
    """A typed parameter of an available command."""

    parameter_name: str
    type: Any = str
    value: Any = None
    default: Any = None
    localized_name: Optional[str] = None
    is_required: bool = False

    @field_serializer("type")
    def serialize_type(self, value: Any) -> str:
        return type_name(value)


class WorkflowCommand(BaseModel):
    """A transition currently available on a process instance."""

    process_id: UUID
    command_name: str
    localized_name: Optional[str] = None
    valid_for_activity_name: Optional[str] = None
    valid_for_state_name: Optional[str] = None
    classifier: Optional[str] = None
    identities: List[str] = Field(default_factory=list)
    parameters: List[CommandParameter] = Field(default_factory=list)

    def get_parameter(self, name: str) -> Optional[CommandParameter]:
        """Get a declared parameter by exact name."""
        return next((p for p in self.parameters if p.parameter_name == name), None)


class WorkflowState(BaseModel):
    """A state an instance can be set to."""

    name: str
    localized_name: Optional[str] = None
    scheme_code: Optional[str] = None


class CreateInstanceParams(BaseModel):
    """Arguments of a create-instance call."""

    scheme_code: str
    process_id: UUID
    identity_id: Optional[str] = None
    impersonated_identity_id: Optional[str] = None
    initial_process_parameters: Dict[str, Any] = Field(default_factory=dict)
    scheme_creation_parameters: Dict[str, Any] = Field(default_factory=dict)


class ProcessInstanceInfo(BaseModel):
    """View of a process instance passed to action and rule callbacks."""

    process_id: UUID
    scheme_code: Optional[str] = None
    current_state: Optional[str] = None
    current_activity: Optional[str] = None
    identity_id: Optional[str] = None
    impersonated_identity_id: Optional[str] = None
    parameters: Dict[str, Any] = Field(default_factory=dict)
