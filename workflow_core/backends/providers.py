"""Persistence providers for the supported backends.

Each provider wraps the one live driver handle created for its backend:
a MongoDB database, a RavenDB document store, or an SQLAlchemy engine for
the relational backends. What the engine stores through the handle is
not this module's concern.
"""

import logging
from typing import Any

from workflow_core.constants import BackendType
from workflow_core.errors import BackendUnavailableError
from workflow_core.interfaces import ISchemePersistenceProvider

logger = logging.getLogger(__name__)


class PersistenceProvider(ISchemePersistenceProvider):
    """Provider holding a driver handle for one backend."""

    def __init__(self, backend: BackendType, handle: Any):
        self._backend = backend
        self._handle = handle

    @property
    def backend(self) -> BackendType:
        return self._backend

    @property
    def handle(self) -> Any:
        return self._handle

    def __repr__(self) -> str:
        return f"{type(self).__name__}(backend={self._backend})"


class MongoDBProvider(PersistenceProvider):
    def __init__(self, client: Any, database_name: str):
        super().__init__(BackendType.MONGODB, client[database_name])
        self.client = client
        self.database_name = database_name

    def check_connection(self) -> None:
        try:
            self.client.admin.command("ping")
        except Exception as e:
            raise BackendUnavailableError(
                f"MongoDB database '{self.database_name}' is not reachable"
            ) from e

    def close(self) -> None:
        self.client.close()


class RavenDBProvider(PersistenceProvider):
    def __init__(self, store: Any):
        super().__init__(BackendType.RAVENDB, store)

    def check_connection(self) -> None:
        try:
            with self.handle.open_session() as session:
                session.load("workflowserver/ping")
        except Exception as e:
            raise BackendUnavailableError(
                f"RavenDB database '{self.handle.database}' is not reachable"
            ) from e

    def close(self) -> None:
        self.handle.close()


class SqlPersistenceProvider(PersistenceProvider):
    """Relational instance-data provider over an SQLAlchemy engine."""

    def check_connection(self) -> None:
        try:
            with self.handle.connect():
                pass
        except Exception as e:
            raise BackendUnavailableError(
                f"{self.backend} database at {self.handle.url!r} is not reachable"
            ) from e

    def close(self) -> None:
        self.handle.dispose()


class SqlSchemeProvider(SqlPersistenceProvider):
    """Relational scheme-storage provider, for backends that keep schemes apart
    from instance data. Shares the engine of its instance-data provider."""
