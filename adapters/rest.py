"""
Bitbucket REST transport.

Thin async HTTP client used by the comment publisher and the subject
provider. It does not interpret status codes; callers classify them.
"""

from dataclasses import dataclass
from typing import Any, Optional

import httpx
from loguru import logger


class RestTransportError(Exception):
    """Raised when a request could not complete (connect, read or timeout failure)."""


@dataclass(frozen=True)
class RestResponse:
    """Status and body of a completed HTTP exchange."""

    status_code: int
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class RestClient:
    """
    Async REST client with bearer authentication and a fixed timeout.

    One instance is shared by all requests; httpx.AsyncClient is safe for
    concurrent use. Awaiting callers can be cancelled, which aborts the
    in-flight request.
    """

    def __init__(self, timeout: float, client: Optional[httpx.AsyncClient] = None):
        """
        Initialize REST client.

        Args:
            timeout: Total per-request timeout in seconds
            client: Optional preconfigured httpx.AsyncClient (tests inject a MockTransport)
        """
        self.timeout = timeout
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def post_json(self, url: str, token: str, body: dict[str, Any]) -> RestResponse:
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        return await self._send("POST", url, headers=headers, json=body)

    async def get_text(self, url: str, token: str) -> RestResponse:
        headers = {"Authorization": f"Bearer {token}", "Accept": "text/plain"}
        return await self._send("GET", url, headers=headers)

    async def _send(self, method: str, url: str, **kwargs: Any) -> RestResponse:
        try:
            response = await self.client.request(method, url, timeout=self.timeout, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning(f"{method} {url} timed out after {self.timeout:g} seconds")
            raise RestTransportError(f"Request timed out after {self.timeout:g} seconds: {e}")
        except httpx.TransportError as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise RestTransportError(f"Request failed: {e}")

        return RestResponse(status_code=response.status_code, text=response.text)

    async def aclose(self) -> None:
        await self.client.aclose()
