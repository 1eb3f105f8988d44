"""Callback provider wired into the runtime as action provider, rule provider
and scheme generator.

Actions and conditions registered locally are resolved first. When a
callback API URL is configured, everything else (remote actions, all
rules, and scheme generation if enabled) is resolved by POSTing a JSON
request to that URL. The callback API answers with the same envelope the
server uses::

    {"data": ..., "success": true, "error": ""}
"""

import asyncio
import logging
from typing import Any, List, Mapping, Optional
from uuid import UUID

import aiohttp

from config.types import CallbackSettings
from workflow_core.actions import ActionRegistry
from workflow_core.errors import CallbackError
from workflow_core.interfaces import (
    IWorkflowActionProvider,
    IWorkflowGenerator,
    IWorkflowRuleProvider,
)
from workflow_core.types import ProcessInstanceInfo

logger = logging.getLogger(__name__)


class CallbackApiClient:
    """HTTP client for the remote callback API.

    The underlying session is created on first use and released by ``close``.
    """

    def __init__(self, api_url: str, request_timeout: int = 30):
        self.api_url = api_url
        self.request_timeout = request_timeout
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=float(self.request_timeout))
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def call(self, operation: str, **payload: Any) -> Any:
        """Invoke a callback operation and return its ``data``.

        Raises:
            CallbackError: On transport errors and timeouts, HTTP errors,
                unreadable bodies or an error envelope
        """
        session = await self._get_session()
        body = {"operation": operation, **payload}
        logger.debug(f"Calling callback API operation '{operation}' at {self.api_url}")
        try:
            async with session.post(self.api_url, json=body) as response:
                if response.status >= 400:
                    raise CallbackError(
                        f"Callback API returned HTTP {response.status} for operation '{operation}'"
                    )
                result = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise CallbackError(f"Callback API request '{operation}' failed") from e
        except ValueError as e:
            raise CallbackError(
                f"Callback API returned an invalid response for '{operation}'"
            ) from e

        if not isinstance(result, dict):
            raise CallbackError(f"Callback API returned an invalid response for '{operation}'")
        if not result.get("success", False):
            raise CallbackError(
                result.get("error") or f"Callback API operation '{operation}' failed"
            )
        return result.get("data")

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None


class WorkflowCallbackProvider(
    IWorkflowActionProvider, IWorkflowRuleProvider, IWorkflowGenerator
):
    def __init__(
        self,
        settings: CallbackSettings,
        registry: ActionRegistry,
        client: Optional[CallbackApiClient] = None,
    ):
        self.settings = settings
        self.registry = registry
        if client is None and settings.api_url:
            client = CallbackApiClient(settings.api_url, settings.request_timeout)
        self.client = client

    def _require_client(self, what: str) -> CallbackApiClient:
        if self.client is None:
            raise CallbackError(f"{what} cannot be resolved: callback API is not configured")
        return self.client

    async def get_actions(self) -> List[str]:
        names = self.registry.get_action_names()
        if self.client is not None:
            remote = await self.client.call("getactions") or []
            names.extend(name for name in remote if name not in names)
        return names

    async def execute_action(
        self, name: str, process_instance: ProcessInstanceInfo, parameter: Optional[str]
    ) -> None:
        if self.registry.has_action(name):
            await self.registry.execute_action(name, process_instance, parameter)
            return
        client = self._require_client(f"Action '{name}'")
        await client.call(
            "executeaction",
            name=name,
            parameter=parameter,
            processinstance=process_instance.model_dump(mode="json"),
        )

    async def execute_condition(
        self, name: str, process_instance: ProcessInstanceInfo, parameter: Optional[str]
    ) -> bool:
        if self.registry.has_condition(name):
            return await self.registry.execute_condition(name, process_instance, parameter)
        client = self._require_client(f"Condition '{name}'")
        data = await client.call(
            "executecondition",
            name=name,
            parameter=parameter,
            processinstance=process_instance.model_dump(mode="json"),
        )
        return bool(data)

    async def get_rules(self) -> List[str]:
        if self.client is None:
            return []
        return list(await self.client.call("getrules") or [])

    async def check(
        self,
        process_instance: ProcessInstanceInfo,
        identity_id: str,
        rule_name: str,
        parameter: Optional[str],
    ) -> bool:
        client = self._require_client(f"Rule '{rule_name}'")
        data = await client.call(
            "checkrule",
            name=rule_name,
            identityid=identity_id,
            parameter=parameter,
            processinstance=process_instance.model_dump(mode="json"),
        )
        return bool(data)

    async def get_identities(
        self, process_instance: ProcessInstanceInfo, rule_name: str, parameter: Optional[str]
    ) -> List[str]:
        client = self._require_client(f"Rule '{rule_name}'")
        data = await client.call(
            "getidentities",
            name=rule_name,
            parameter=parameter,
            processinstance=process_instance.model_dump(mode="json"),
        )
        return [str(identity) for identity in data or []]

    async def generate(
        self, scheme_code: str, scheme_id: UUID, parameters: Mapping[str, Any]
    ) -> Optional[str]:
        if not self.settings.generate_scheme or self.client is None:
            return None
        logger.info(f"Requesting scheme '{scheme_code}' from callback API")
        return await self.client.call(
            "generate",
            schemecode=scheme_code,
            schemeid=str(scheme_id),
            parameters=dict(parameters),
        )

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()
