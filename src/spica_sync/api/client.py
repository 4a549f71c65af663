"""Spica instance REST API client.

Remote resource transport used by every synchronizer.

Architecture Overview:
---------------------
- Async HTTP communication via httpx with a pooled, lazily created client
- API key authentication (`Authorization: APIKEY <key>`)
- tenacity retry with exponential backoff for network errors and timeouts
- Status codes mapped onto the exception hierarchy so callers can tell an
  expected absence (404) from a genuine failure

The client owns no synchronization logic; it never retries HTTP error
responses and never interprets resource contents.
"""

import time
from typing import Any

import httpx
import structlog
from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..config import InstanceConfig
from ..constants import (
    TRANSPORT_RETRY_ATTEMPTS,
    TRANSPORT_RETRY_MAX_WAIT,
    TRANSPORT_RETRY_MIN_WAIT,
)
from ..observability.metrics import get_global_collector
from ..utils.exceptions import (
    InstanceAPIError,
    InstanceAuthenticationError,
    ResourceNotFoundError,
)
from .response_models import ErrorResponse

logger = structlog.get_logger(__name__)


class InstanceClient:
    """
    Spica instance REST API client.

    Features:
    - get/post/put/delete helpers returning parsed JSON
    - Distinguishable "not found" condition (ResourceNotFoundError)
    - Automatic retries for transient network failures
    - Connection pooling via httpx.AsyncClient
    """

    def __init__(self, config: InstanceConfig, name: str = "instance") -> None:
        """
        Initialize the client.

        Args:
            config: Connection settings of the instance
            name: Role of the instance in logs and metrics ("source"/"target")
        """
        self.config = config
        self.name = name
        self.base_url = config.url.rstrip("/")
        self._client: httpx.AsyncClient | None = None
        self.collector = get_global_collector()

    async def __aenter__(self) -> "InstanceClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        """HTTP client, created on first use."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                verify=self.config.verify_ssl,
                timeout=self.config.timeout,
                headers={"Authorization": f"APIKEY {self.config.apikey}"},
                limits=httpx.Limits(
                    max_connections=self.config.max_connections,
                    max_keepalive_connections=self.config.max_keepalive,
                ),
            )
        return self._client

    async def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """
        Make an authenticated request to the instance API.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            path: API path relative to the instance URL
            params: Query parameters
            json: JSON body

        Returns:
            Parsed JSON response, or None for empty responses

        Raises:
            ResourceNotFoundError: For 404 Not Found
            InstanceAuthenticationError: For 401/403
            InstanceAPIError: For any other error status or transport failure
        """
        try:
            response = await self._send(method, path, params=params, json=json)
        except httpx.HTTPError as e:
            self.collector.count_request(self.name, method, "error")
            logger.warning(
                "Instance request failed",
                instance=self.name,
                method=method,
                path=path,
                error=str(e),
            )
            raise InstanceAPIError(f"{method} {path} failed: {e}") from e

        self.collector.count_request(self.name, method, response.status_code)

        if response.is_error:
            message = self._extract_error_message(response)
            if response.status_code == 404:
                raise ResourceNotFoundError(path, message)
            if response.status_code in (401, 403):
                raise InstanceAuthenticationError(
                    f"{self.name} instance rejected the API key: {message}",
                    status_code=response.status_code,
                )
            raise InstanceAPIError(
                f"API Error {response.status_code}: {message}",
                status_code=response.status_code,
            )

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    @retry(
        retry=retry_if_exception_type((httpx.NetworkError, httpx.TimeoutException)),
        stop=stop_after_attempt(TRANSPORT_RETRY_ATTEMPTS),
        wait=wait_exponential(
            multiplier=1, min=TRANSPORT_RETRY_MIN_WAIT, max=TRANSPORT_RETRY_MAX_WAIT
        ),
        reraise=True,
    )
    async def _send(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        """Send one request, retried on network errors and timeouts."""
        logger.debug("Instance request", instance=self.name, method=method, path=path)
        start = time.perf_counter()
        response = await self.client.request(
            method, f"/{path.lstrip('/')}", params=params, json=json
        )
        self.collector.record_request_latency(
            self.name, method, (time.perf_counter() - start) * 1000
        )
        return response

    def _extract_error_message(self, response: httpx.Response) -> str:
        """Best-effort readable message from an error response."""
        if response.headers.get("content-type", "").startswith("application/json"):
            try:
                data = response.json()
            except ValueError:
                return response.text
            if isinstance(data, dict):
                try:
                    return ErrorResponse.model_validate(data).get_full_message()
                except ValidationError:
                    return response.text
        return response.text or response.reason_phrase

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Helper for GET requests."""
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any) -> Any:
        """Helper for POST requests."""
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Any) -> Any:
        """Helper for PUT requests."""
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> None:
        """Helper for DELETE requests."""
        await self.request("DELETE", path)
