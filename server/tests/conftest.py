"""
Pytest fixtures for workflow server testing.

The persistence backend is replaced by a mock bundle and the engine by
``FakeRuntime``, so no database is needed. Use the ``client`` fixture for
HTTP-level tests; it runs the application lifespan, so the runtime is
started for the test.
"""

from unittest.mock import MagicMock, patch

import pytest
from starlette.testclient import TestClient

from config.types import BackendConfig, ServerSettings
from server.app import create_app
from server.tests.fakes import FakeRuntime
from server.workflow_server import WorkflowServer
from workflow_core.constants import BackendType


@pytest.fixture
def backend_bundle():
    bundle = MagicMock()
    bundle.backend = BackendType.POSTGRESQL
    return bundle


@pytest.fixture
def settings():
    return ServerSettings(
        backend=BackendConfig(tag="postgresql", connection_string="postgresql://db/workflow")
    )


@pytest.fixture
def workflow_server(settings, backend_bundle):
    with patch("server.workflow_server.BackendFactory.create", return_value=backend_bundle):
        yield WorkflowServer(settings, FakeRuntime)


@pytest.fixture
def runtime(workflow_server):
    return workflow_server.runtime


@pytest.fixture
def client(workflow_server):
    with TestClient(create_app(workflow_server)) as test_client:
        yield test_client
