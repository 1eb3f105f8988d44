from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class BackendConfig(BaseModel):
    """Model representing the persistence backend selection"""

    tag: str
    connection_string: Optional[str] = None  # relational backends
    database_url: Optional[str] = None  # document stores
    database_name: Optional[str] = None  # document stores

    model_config = ConfigDict(frozen=True)


class CallbackSettings(BaseModel):
    """Model representing the remote callback API settings"""

    api_url: Optional[str] = None
    generate_scheme: bool = False
    request_timeout: int = 30

    model_config = ConfigDict(frozen=True)


class ServerSettings(BaseModel):
    """Model representing the resolved workflow server settings"""

    runtime_id: UUID = Field(default_factory=uuid4)
    backend: BackendConfig
    callback: CallbackSettings = Field(default_factory=CallbackSettings)
    runtime_factory: Optional[str] = None
    license_key: Optional[str] = None
    no_start_workflow: bool = False
    host: str = "0.0.0.0"
    port: int = 8077

    model_config = ConfigDict(frozen=True)
