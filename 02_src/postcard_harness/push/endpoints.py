"""Push endpoint registration over the HTTP API."""

import asyncio
from typing import Protocol

import httpx

from ..logging_config import get_logger
from ..models import Endpoint

logger = get_logger(__name__)


def session_authorization(token: str) -> str:
    """Authorization header value for a session token."""
    return f'POSTCARD-TOKEN token="{token}"'


class IEndpointClient(Protocol):
    """Registers push endpoints for sessions."""

    async def create_endpoint(self, session_token: str) -> Endpoint:
        """Register one endpoint for a session."""
        ...

    async def create_endpoints(self, session_tokens: list[str]) -> list[Endpoint]:
        """Register one endpoint per session, concurrently."""
        ...


class EndpointClient:
    """Registers push endpoints via POST /me/endpoint."""

    def __init__(self, api_address: str, client: httpx.AsyncClient | None = None):
        self._api_address = api_address.rstrip("/")
        self._client = client or httpx.AsyncClient()
        self._owns_client = client is None

    async def create_endpoint(self, session_token: str) -> Endpoint:
        """
        Register one endpoint for a session.

        Raises:
            httpx.HTTPStatusError: If the API does not answer 201
            ValueError: If the response has no endpoint id
        """
        response = await self._client.post(
            f"{self._api_address}/me/endpoint",
            headers={
                "Authorization": session_authorization(session_token),
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            timeout=10.0,
        )

        if response.status_code != 201:
            logger.error(
                "Endpoint registration failed: HTTP %s %s",
                response.status_code,
                response.text[:200],
            )
            response.raise_for_status()
            raise httpx.HTTPStatusError(
                f"Expected 201, got {response.status_code}",
                request=response.request,
                response=response,
            )

        data = response.json()
        if not data.get("id"):
            raise ValueError(f"Endpoint response without id: {data}")

        logger.debug("Registered endpoint %s", data["id"])
        return Endpoint(id=data["id"], expires=data.get("expires"))

    async def create_endpoints(self, session_tokens: list[str]) -> list[Endpoint]:
        """Register one endpoint per session, concurrently."""
        return list(
            await asyncio.gather(*[self.create_endpoint(t) for t in session_tokens])
        )

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()
