"""
HTTP transport client for the upstream employee directory.
"""

from typing import Any, Dict, Optional

import httpx

from shared.logging import get_logger
from shared.retry import RetryConfig, retry_on_exception


APPLICATION_JSON = "application/json"


class DirectoryClient:
    """Issues GET/POST/DELETE calls against the upstream directory.

    Responses are returned raw; interpreting status codes and bodies is the
    gateway's job. Only connection failures are retried, other transport
    errors propagate on the first occurrence.
    """

    def __init__(
        self,
        base_url: str,
        *,
        connect_timeout: float = 10.0,
        read_timeout: float = 10.0,
        write_timeout: float = 10.0,
        connect_retries: int = 1,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.logger = get_logger("directory.client")
        self.timeout = httpx.Timeout(
            connect=connect_timeout,
            read=read_timeout,
            write=write_timeout,
            pool=connect_timeout,
        )
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            headers={"Accept": APPLICATION_JSON},
            transport=transport,
        )
        self.retry_config = RetryConfig(max_attempts=connect_retries + 1, base_delay=0.1)
        self._send = retry_on_exception((httpx.ConnectError,), config=self.retry_config)(self._send_once)

    async def fetch(self, path: str) -> httpx.Response:
        """GET ``path`` relative to the base URL."""
        return await self._send("GET", path)

    async def create(self, path: str, body: Dict[str, Any]) -> httpx.Response:
        """POST a JSON ``body`` to ``path``."""
        return await self._send("POST", path, body)

    async def remove(self, path: str, body: Dict[str, Any]) -> httpx.Response:
        """DELETE ``path`` with a JSON ``body``."""
        return await self._send("DELETE", path, body)

    async def _send_once(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.request(method, url, json=body)
        except httpx.HTTPError as exc:
            self.logger.warning(
                "Upstream transport error",
                method=method,
                url=url,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise

        self.logger.debug("Upstream response", method=method, url=url, status_code=response.status_code)
        return response

    async def aclose(self) -> None:
        """Release pooled connections."""
        await self._client.aclose()
