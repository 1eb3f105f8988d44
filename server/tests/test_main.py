import logging
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from config.types import BackendConfig, ServerSettings
from server.main import main, setup_logging
from workflow_core.errors import UnknownBackendError


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def test_setup_logging(tmp_path, restore_root_logging):
    log_file = setup_logging(str(tmp_path / "logs"), "warning")

    root = logging.getLogger()
    assert log_file == tmp_path / "logs" / "server.log"
    assert log_file.exists()
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 2
    levels = sorted(handler.level for handler in root.handlers)
    assert levels == [logging.DEBUG, logging.WARNING]


def test_cli_overrides_and_runs_uvicorn():
    server = MagicMock()
    server.settings = ServerSettings(backend=BackendConfig(tag="mssql"), host="127.0.0.1", port=9000)

    with patch("server.main.setup", return_value=server) as setup, patch(
        "server.main.uvicorn.run"
    ) as run, patch("server.main.create_app") as create_app:
        result = CliRunner().invoke(
            main, ["--provider", "mssql", "--port", "9000", "--no-start-workflow"]
        )

    assert result.exit_code == 0, result.output
    overrides = setup.call_args.args[0]
    assert overrides["provider"] == "mssql"
    assert overrides["server_port"] == 9000
    assert overrides["no_start_workflow"] is True
    assert overrides["callback_gen_scheme"] is None
    assert overrides["connection_string"] is None
    create_app.assert_called_once_with(server)
    run.assert_called_once_with(create_app.return_value, host="127.0.0.1", port=9000)


def test_startup_error_exits_non_zero():
    with patch("server.main.setup", side_effect=UnknownBackendError("sqlite")), patch(
        "server.main.uvicorn.run"
    ) as run:
        result = CliRunner().invoke(main, ["--provider", "sqlite"])

    assert result.exit_code != 0
    assert "Provider = 'sqlite' is not supported" in result.output
    run.assert_not_called()
