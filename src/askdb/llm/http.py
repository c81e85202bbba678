"""Shared plumbing for providers called over plain HTTP."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from askdb.exceptions import ProviderError
from askdb.llm.provider import LanguageModel

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 60.0


class HttpLanguageModel(LanguageModel):
    """Base for providers reached with a JSON POST through httpx.

    Pass ``client`` to reuse a connection pool (or a mock transport in tests);
    otherwise a short-lived client is opened per request.
    """

    display_name = "HTTP"

    def __init__(
        self,
        model: str,
        api_key: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self._model = model
        self._api_key = api_key
        self._client = client
        self._timeout = timeout

    @property
    def model_name(self) -> str:
        return self._model

    async def _post_json(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        request_headers = {"Content-Type": "application/json", **(headers or {})}
        try:
            if self._client is not None:
                response = await self._client.post(
                    url, json=payload, headers=request_headers, params=params
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(
                        url, json=payload, headers=request_headers, params=params
                    )
        except httpx.HTTPError as e:
            logger.error(f"{self.display_name} request failed: {e}")
            raise ProviderError(self.provider, f"{self.display_name} API error: {e}") from e

        if response.is_error:
            raise ProviderError(self.provider, f"{self.display_name} API error: {response.text}")

        data: dict[str, Any] = response.json()
        return data
