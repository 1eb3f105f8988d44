"""Backend factory.

This module selects and constructs the persistence backend named by the
configuration. Exactly one driver handle is created per call; the server
calls ``BackendFactory.create`` once at startup.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import ArgumentError

from config.types import BackendConfig
from workflow_core.backends.providers import (
    MongoDBProvider,
    PersistenceProvider,
    RavenDBProvider,
    SqlPersistenceProvider,
    SqlSchemeProvider,
)
from workflow_core.constants import BackendType
from workflow_core.errors import ConfigurationError, UnknownBackendError

logger = logging.getLogger(__name__)

# SQLAlchemy dialect names accepted for each relational backend
SQL_DIALECTS: Dict[BackendType, FrozenSet[str]] = {
    BackendType.POSTGRESQL: frozenset({"postgresql"}),
    BackendType.MYSQL: frozenset({"mysql", "mariadb"}),
    BackendType.ORACLE: frozenset({"oracle"}),
    BackendType.MSSQL: frozenset({"mssql"}),
}


@dataclass
class BackendBundle:
    """Providers built for one backend.

    ``scheme_provider`` is the same object as ``persistence_provider``
    except for backends that store schemes separately.
    """

    backend: BackendType
    persistence_provider: PersistenceProvider
    scheme_provider: PersistenceProvider

    @property
    def has_separate_scheme_provider(self) -> bool:
        return self.scheme_provider is not self.persistence_provider

    def check_connection(self) -> None:
        self.persistence_provider.check_connection()

    def close(self) -> None:
        """Release the driver handle once, even when two providers share it."""
        self.persistence_provider.close()
        if self.scheme_provider.handle is not self.persistence_provider.handle:
            self.scheme_provider.close()


def _require(config: BackendConfig, *fields: str) -> None:
    for field in fields:
        if not getattr(config, field):
            raise ConfigurationError(
                f"Parameter '{field}' is required for provider '{config.tag}'"
            )


def _create_mongodb(config: BackendConfig) -> BackendBundle:
    _require(config, "database_url", "database_name")
    import pymongo

    client = pymongo.MongoClient(config.database_url)
    provider = MongoDBProvider(client, config.database_name)
    return BackendBundle(BackendType.MONGODB, provider, provider)


def _create_ravendb(config: BackendConfig) -> BackendBundle:
    _require(config, "database_url", "database_name")
    from ravendb import DocumentStore

    store = DocumentStore(urls=[config.database_url], database=config.database_name)
    store.initialize()
    provider = RavenDBProvider(store)
    return BackendBundle(BackendType.RAVENDB, provider, provider)


def create_sql_engine(backend: BackendType, connection_string: str) -> Engine:
    """Create the SQLAlchemy engine for a relational backend.

    Raises:
        ConfigurationError: If the URL is malformed or its dialect does not
            match the backend
    """
    try:
        url = make_url(connection_string)
    except ArgumentError as e:
        raise ConfigurationError(f"Invalid connection string for provider '{backend}'") from e

    dialect = url.get_backend_name()
    if dialect not in SQL_DIALECTS[backend]:
        raise ConfigurationError(
            f"Connection string dialect '{dialect}' does not match provider '{backend}'"
        )
    return create_engine(url, pool_pre_ping=True)


def _sql_builder(backend: BackendType) -> Callable[[BackendConfig], BackendBundle]:
    def build(config: BackendConfig) -> BackendBundle:
        _require(config, "connection_string")
        engine = create_sql_engine(backend, config.connection_string)
        provider = SqlPersistenceProvider(backend, engine)
        return BackendBundle(backend, provider, provider)

    return build


def _create_mssql(config: BackendConfig) -> BackendBundle:
    _require(config, "connection_string")
    engine = create_sql_engine(BackendType.MSSQL, config.connection_string)
    return BackendBundle(
        BackendType.MSSQL,
        SqlPersistenceProvider(BackendType.MSSQL, engine),
        SqlSchemeProvider(BackendType.MSSQL, engine),
    )


_BUILDERS: Dict[BackendType, Callable[[BackendConfig], BackendBundle]] = {
    BackendType.MONGODB: _create_mongodb,
    BackendType.RAVENDB: _create_ravendb,
    BackendType.POSTGRESQL: _sql_builder(BackendType.POSTGRESQL),
    BackendType.MYSQL: _sql_builder(BackendType.MYSQL),
    BackendType.ORACLE: _sql_builder(BackendType.ORACLE),
    BackendType.MSSQL: _create_mssql,
}


class BackendFactory:
    """Factory for creating persistence backends."""

    @staticmethod
    def parse_tag(tag: str) -> BackendType:
        """Map a configuration tag to a backend type.

        Raises:
            UnknownBackendError: If the tag names no known backend
        """
        try:
            return BackendType((tag or "").strip().lower())
        except ValueError:
            raise UnknownBackendError(tag) from None

    @staticmethod
    def create(config: BackendConfig) -> BackendBundle:
        """Create the providers for the configured backend.

        Args:
            config: Backend selection and connection parameters

        Returns:
            Bundle with the instance-data and scheme providers

        Raises:
            UnknownBackendError: If the tag names no known backend
            ConfigurationError: If connection parameters are missing or invalid
        """
        backend = BackendFactory.parse_tag(config.tag)
        logger.info(f"Creating persistence backend: {backend}")
        return _BUILDERS[backend](config)
