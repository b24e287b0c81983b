"""httpx-backed caller for ``api_call`` workflow steps."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from ..errors import ActionExecutionError

logger = logging.getLogger(__name__)


class HttpApiCaller:
    """Call the endpoint named by an ``api_call`` step.

    Step properties:
        endpoint: URL, absolute or relative to ``base_url``.
        method: HTTP method, ``POST`` by default.
        payload_keys: context keys sent as the JSON body; the whole context
            is sent when omitted.
        headers: extra request headers.
    """

    def __init__(
        self,
        base_url: str = "",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def call(
        self, properties: Dict[str, Any], context: Dict[str, Any]
    ) -> Dict[str, Any]:
        endpoint = properties.get("endpoint")
        if not endpoint:
            raise ActionExecutionError("api_call", "endpoint property is required")
        method = str(properties.get("method", "POST")).upper()

        keys = properties.get("payload_keys")
        payload = {k: context.get(k) for k in keys} if keys else context
        kwargs: Dict[str, Any] = {"headers": properties.get("headers") or {}}
        if method in ("GET", "DELETE"):
            kwargs["params"] = {
                k: v for k, v in payload.items() if isinstance(v, (str, int, float, bool))
            }
        else:
            kwargs["json"] = payload

        logger.debug(f"{method} {endpoint}")
        response = await self._client.request(method, endpoint, **kwargs)
        response.raise_for_status()

        try:
            body: Any = response.json()
        except ValueError:
            body = response.text
        return {
            "api_endpoint": endpoint,
            "status_code": response.status_code,
            "response": body,
        }

    async def aclose(self) -> None:
        await self._client.aclose()
