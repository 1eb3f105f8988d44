"""Persistence backends.

This module selects and builds the storage backend the workflow runtime
persists to.
"""

from workflow_core.backends.factory import BackendBundle, BackendFactory
from workflow_core.backends.providers import (
    MongoDBProvider,
    PersistenceProvider,
    RavenDBProvider,
    SqlPersistenceProvider,
    SqlSchemeProvider,
)

__all__ = [
    "BackendBundle",
    "BackendFactory",
    "MongoDBProvider",
    "PersistenceProvider",
    "RavenDBProvider",
    "SqlPersistenceProvider",
    "SqlSchemeProvider",
]
