import asyncio
import json
import uuid
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from config.types import CallbackSettings
from workflow_core.actions import ActionRegistry
from workflow_core.callbacks import CallbackApiClient, WorkflowCallbackProvider
from workflow_core.errors import CallbackError
from workflow_core.types import ProcessInstanceInfo

API_URL = "http://callbacks.local/api"


def make_session(status=200, payload=None, error=None, json_error=None):
    """Build a fake aiohttp session whose post() yields one response."""
    response = MagicMock()
    response.status = status
    response.json = AsyncMock(return_value=payload, side_effect=json_error)

    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)

    session = MagicMock()
    session.closed = False
    session.close = AsyncMock()
    if error is not None:
        session.post.side_effect = error
    else:
        session.post.return_value = context
    return session


def make_client(session) -> CallbackApiClient:
    client = CallbackApiClient(API_URL)
    client._session = session
    return client


@pytest.fixture
def instance():
    return ProcessInstanceInfo(process_id=uuid.uuid4(), scheme_code="Invoice")


class TestCallbackApiClient:
    @pytest.mark.asyncio
    async def test_returns_envelope_data(self):
        session = make_session(payload={"data": ["A", "B"], "success": True, "error": ""})
        client = make_client(session)

        assert await client.call("getactions") == ["A", "B"]
        session.post.assert_called_once_with(API_URL, json={"operation": "getactions"})

    @pytest.mark.asyncio
    async def test_error_envelope(self):
        session = make_session(payload={"data": "", "success": False, "error": "Rule missing"})

        with pytest.raises(CallbackError, match="Rule missing"):
            await make_client(session).call("checkrule", name="IsManager")

    @pytest.mark.asyncio
    async def test_http_error(self):
        session = make_session(status=500)

        with pytest.raises(CallbackError, match="HTTP 500"):
            await make_client(session).call("getrules")

    @pytest.mark.asyncio
    async def test_transport_error(self):
        session = make_session(error=aiohttp.ClientConnectionError("refused"))

        with pytest.raises(CallbackError) as exc_info:
            await make_client(session).call("getrules")
        assert isinstance(exc_info.value.__cause__, aiohttp.ClientError)

    @pytest.mark.asyncio
    async def test_timeout(self):
        session = make_session(error=asyncio.TimeoutError())

        with pytest.raises(CallbackError, match="request 'getrules' failed") as exc_info:
            await make_client(session).call("getrules")
        assert isinstance(exc_info.value.__cause__, asyncio.TimeoutError)

    @pytest.mark.asyncio
    async def test_body_is_not_json(self):
        session = make_session(
            json_error=json.JSONDecodeError("Expecting value", "<html>gateway error</html>", 0)
        )

        with pytest.raises(CallbackError, match="invalid response") as exc_info:
            await make_client(session).call("getrules")
        assert isinstance(exc_info.value.__cause__, ValueError)

    @pytest.mark.asyncio
    async def test_invalid_response(self):
        session = make_session(payload=["not", "an", "envelope"])

        with pytest.raises(CallbackError, match="invalid response"):
            await make_client(session).call("getrules")

    @pytest.mark.asyncio
    async def test_close_releases_session(self):
        session = make_session()
        client = make_client(session)

        await client.close()

        session.close.assert_awaited_once()
        assert client._session is None


class TestWorkflowCallbackProvider:
    def make_provider(self, registry=None, generate_scheme=False):
        client = MagicMock(spec=CallbackApiClient)
        client.call = AsyncMock()
        client.close = AsyncMock()
        settings = CallbackSettings(api_url=API_URL, generate_scheme=generate_scheme)
        provider = WorkflowCallbackProvider(settings, registry or ActionRegistry(), client=client)
        return provider, client

    def test_builds_client_from_settings(self):
        provider = WorkflowCallbackProvider(
            CallbackSettings(api_url=API_URL, request_timeout=5), ActionRegistry()
        )
        assert provider.client.api_url == API_URL
        assert provider.client.request_timeout == 5

    def test_no_client_without_url(self):
        provider = WorkflowCallbackProvider(CallbackSettings(), ActionRegistry())
        assert provider.client is None

    @pytest.mark.asyncio
    async def test_local_action_runs_without_remote_call(self, instance):
        action = MagicMock()
        provider, client = self.make_provider(ActionRegistry(actions={"Notify": action}))

        await provider.execute_action("Notify", instance, "hi")

        action.assert_called_once_with(instance, "hi")
        client.call.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_action_goes_remote(self, instance):
        provider, client = self.make_provider()

        await provider.execute_action("SendMail", instance, "to=ops")

        client.call.assert_awaited_once_with(
            "executeaction",
            name="SendMail",
            parameter="to=ops",
            processinstance=instance.model_dump(mode="json"),
        )

    @pytest.mark.asyncio
    async def test_remote_condition(self, instance):
        provider, client = self.make_provider()
        client.call.return_value = True

        assert await provider.execute_condition("IsUrgent", instance, None) is True

    @pytest.mark.asyncio
    async def test_unknown_action_without_client(self, instance):
        provider = WorkflowCallbackProvider(CallbackSettings(), ActionRegistry())

        with pytest.raises(CallbackError, match="callback API is not configured"):
            await provider.execute_action("SendMail", instance, None)

    @pytest.mark.asyncio
    async def test_get_actions_merges_local_and_remote(self):
        registry = ActionRegistry(actions={"Notify": MagicMock()})
        provider, client = self.make_provider(registry)
        client.call.return_value = ["Notify", "SendMail"]

        assert await provider.get_actions() == ["Notify", "SendMail"]

    @pytest.mark.asyncio
    async def test_rules(self, instance):
        provider, client = self.make_provider()

        client.call.return_value = ["IsManager"]
        assert await provider.get_rules() == ["IsManager"]

        client.call.return_value = True
        assert await provider.check(instance, "user-1", "IsManager", None) is True

        client.call.return_value = ["user-1", 2]
        assert await provider.get_identities(instance, "IsManager", None) == ["user-1", "2"]

    @pytest.mark.asyncio
    async def test_rules_without_client(self):
        provider = WorkflowCallbackProvider(CallbackSettings(), ActionRegistry())
        assert await provider.get_rules() == []

    @pytest.mark.asyncio
    async def test_generate_disabled_returns_none(self):
        provider, client = self.make_provider(generate_scheme=False)

        assert await provider.generate("Invoice", uuid.uuid4(), {}) is None
        client.call.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_generate_enabled(self):
        provider, client = self.make_provider(generate_scheme=True)
        client.call.return_value = "<Process/>"
        scheme_id = uuid.uuid4()

        assert await provider.generate("Invoice", scheme_id, {"Region": "EU"}) == "<Process/>"
        client.call.assert_awaited_once_with(
            "generate",
            schemecode="Invoice",
            schemeid=str(scheme_id),
            parameters={"Region": "EU"},
        )

    @pytest.mark.asyncio
    async def test_close(self):
        provider, client = self.make_provider()
        await provider.close()
        client.close.assert_awaited_once()
