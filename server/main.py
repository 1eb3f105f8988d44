import logging
from pathlib import Path
from typing import Optional

import click
import uvicorn
from pydantic import ValidationError

from config import env
from server.app import create_app
from server.startup_tracer import time_operation, trace_startup_time
from server.workflow_server import WorkflowServer
from workflow_core.errors import WorkflowServerError


def setup_logging(log_dir: str, console_level: str = "INFO") -> Path:
    """Configure root logging: DEBUG to ``<log_dir>/server.log``, console at ``console_level``."""
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    log_file = log_path / "server.log"

    # Reset the logging configuration
    # basicConfig won't do anything if the root logger already has handlers
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)
        handler.close()

    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)

    file_handler = logging.FileHandler(str(log_file.absolute()))
    file_handler.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(getattr(logging, console_level.upper(), logging.INFO))

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    file_handler.setFormatter(formatter)
    console_handler.setFormatter(formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)
    return log_file


@trace_startup_time("Server Setup")
def setup(overrides: dict) -> WorkflowServer:
    with time_operation("Configuration"):
        env.load()
        env.update_settings(overrides)

    setup_logging(env.get_log_dir(), env.get_setting("log_level", "INFO"))
    logging.info(f"Initialized environment: env file={env.env_file}")

    settings = env.get_server_settings()
    return WorkflowServer.from_settings(settings)


@click.command()
@click.option("--provider", default=None, help="Persistence backend (mongodb, ravendb, postgresql, mysql, oracle, mssql)")
@click.option("--connection-string", default=None, help="Connection string of a relational backend")
@click.option("--db-url", default=None, help="URL of a document store backend")
@click.option("--database", default=None, help="Database name of a document store backend")
@click.option("--runtime-id", default=None, help="Runtime id (UUID), generated when omitted")
@click.option("--runtime-factory", default=None, help="Workflow runtime class as 'module:attribute'")
@click.option("--license-key", default=None, help="Workflow engine license key")
@click.option("--callback-url", default=None, help="URL of the remote callback API")
@click.option("--callback-gen-scheme", is_flag=True, default=None, help="Generate schemes through the callback API")
@click.option("--no-start-workflow", is_flag=True, default=None, help="Do not start the workflow runtime")
@click.option("--host", default=None, help="Host to bind the server to")
@click.option("--port", default=None, type=int, help="Port to run the server on")
def main(
    provider: Optional[str] = None,
    connection_string: Optional[str] = None,
    db_url: Optional[str] = None,
    database: Optional[str] = None,
    runtime_id: Optional[str] = None,
    runtime_factory: Optional[str] = None,
    license_key: Optional[str] = None,
    callback_url: Optional[str] = None,
    callback_gen_scheme: Optional[bool] = None,
    no_start_workflow: Optional[bool] = None,
    host: Optional[str] = None,
    port: Optional[int] = None,
) -> None:
    overrides = {
        "provider": provider,
        "connection_string": connection_string,
        "db_url": db_url,
        "database": database,
        "runtime_id": runtime_id,
        "runtime_factory": runtime_factory,
        "license_key": license_key,
        "callback_api_url": callback_url,
        "callback_gen_scheme": callback_gen_scheme or None,
        "no_start_workflow": no_start_workflow or None,
        "server_host": host,
        "server_port": port,
    }

    try:
        server = setup(overrides)
    except (WorkflowServerError, ValidationError) as e:
        logging.error(f"Workflow server failed to start: {e}")
        raise click.ClickException(str(e)) from e

    settings = server.settings
    logging.info(f"Starting workflow server on {settings.host}:{settings.port}")
    uvicorn.run(create_app(server), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
