# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

import time
from typing import Any

import httpx

from langbase.core.config import LangbaseClientConfig
from langbase.log import get_logger
from langbase_api.common.errors import APIConnectionError, APIConnectionTimeoutError, APIError

logger = get_logger(name=__name__, category="core")

MEMORY_RETRIEVE_ENDPOINT = "/v1/memory/retrieve"


class HttpRetrievalTransport:
    """Sends retrieval requests to the Langbase API over HTTP.

    Pass an `httpx.AsyncClient` to reuse a connection pool (or to mock the
    network in tests); otherwise a client is opened per request.
    """

    def __init__(self, config: LangbaseClientConfig, client: httpx.AsyncClient | None = None) -> None:
        self.config = config
        self.client = client

    async def retrieve(self, payload: dict[str, Any]) -> list[dict[str, Any]]:
        results = await self.post(MEMORY_RETRIEVE_ENDPOINT, payload)
        if not isinstance(results, list):
            raise APIError(None, results, "Expected a list of records from memory retrieval", None)
        return results

    async def post(self, endpoint: str, body: dict[str, Any]) -> Any:
        url = self._build_url(endpoint)
        headers = self._build_headers()

        start_time = time.monotonic()
        try:
            if self.client is not None:
                response = await self.client.post(url, json=body, headers=headers, timeout=self.config.timeout_seconds)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.post(url, json=body, headers=headers, timeout=self.config.timeout_seconds)
        except httpx.TimeoutException as e:
            logger.warning(f"POST {endpoint} timed out after {self.config.timeout_seconds}s")
            raise APIConnectionTimeoutError(cause=e) from e
        except httpx.RequestError as e:
            logger.warning(f"POST {endpoint} failed: {e}")
            raise APIConnectionError(cause=e) from e

        elapsed = time.monotonic() - start_time
        logger.debug(f"POST {endpoint} -> {response.status_code} in {elapsed:.3f}s")

        if response.is_error:
            raise self._error_from_response(response)
        return response.json()

    def _build_url(self, endpoint: str) -> str:
        return f"{self.config.base_url.rstrip('/')}{endpoint}"

    def _build_headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.require_api_key()}",
        }
        if self.config.external_user_id:
            headers["lb-meta-external-user-id"] = self.config.external_user_id
        return headers

    def _error_from_response(self, response: httpx.Response) -> APIError:
        try:
            error_body = response.json()
        except ValueError:
            error_body = response.text or None

        error = APIError.generate(response.status_code, error_body, response.reason_phrase, response.headers)
        logger.warning(f"Langbase API error: {error}")
        return error
