"""Response sinks — where completed responses go.

Two implementations of :class:`formflow.interfaces.ResponseSink`:

  - ``InMemoryResponseSink``: keeps responses in a dict (the default; handy
    for local development and tests)
  - ``WebhookResponseSink``: POSTs the camelCase response JSON to a URL

The server picks one at startup from ``RESPONSE_WEBHOOK_URL``.
"""

from __future__ import annotations

import logging

import httpx

from formflow.interfaces import ResponseSink
from formflow.models.response import Response

logger = logging.getLogger(__name__)


class InMemoryResponseSink(ResponseSink):
    """Stores responses in process memory, keyed by response id."""

    def __init__(self) -> None:
        self.responses: dict[str, Response] = {}

    async def submit(self, response: Response) -> str:
        self.responses[response.id] = response
        return response.id


class WebhookResponseSink(ResponseSink):
    """POSTs each response to a webhook.

    The stored id is taken from an ``id`` field in the JSON reply when
    present, otherwise the response's own id is used.  Non-2xx replies and
    transport errors propagate as ``httpx`` exceptions, which the engine
    records as a failed submission.

    Args:
        url: webhook endpoint
        timeout: request timeout in seconds
        client: optional pre-built ``httpx.AsyncClient`` (not closed by
            :meth:`aclose`)
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def submit(self, response: Response) -> str:
        payload = response.model_dump(mode="json", by_alias=True)
        reply = await self._client.post(self._url, json=payload)
        reply.raise_for_status()

        try:
            body = reply.json()
        except ValueError:
            body = None

        if isinstance(body, dict) and body.get("id"):
            return str(body["id"])
        logger.debug("Webhook reply for %s carried no id, using the response id", response.id)
        return response.id

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
