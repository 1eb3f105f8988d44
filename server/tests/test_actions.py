import logging
import uuid

import pytest

from server.actions import build_action_registry, parameter_is_set, write_log
from workflow_core.types import ProcessInstanceInfo


@pytest.fixture
def instance():
    return ProcessInstanceInfo(
        process_id=uuid.uuid4(),
        current_state="Draft",
        parameters={"Comment": "urgent", "Empty": "", "Amount": 0},
    )


def test_write_log(instance, caplog):
    with caplog.at_level(logging.INFO, logger="server.actions"):
        write_log(instance, "invoice received")

    assert "invoice received" in caplog.text
    assert "state=Draft" in caplog.text


@pytest.mark.parametrize(
    "parameter, expected",
    [("Comment", True), (" Comment ", True), ("Amount", True), ("Empty", False), ("Missing", False), (None, False)],
)
def test_parameter_is_set(instance, parameter, expected):
    assert parameter_is_set(instance, parameter) is expected


@pytest.mark.asyncio
async def test_registry_contains_builtins(instance):
    registry = build_action_registry()

    assert registry.get_action_names() == ["WriteLog", "ParameterIsSet"]
    assert await registry.execute_condition("ParameterIsSet", instance, "Comment") is True
