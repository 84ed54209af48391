"""
Auth gateway - Client transport to the authentication service.

The gateway is the only client component that talks to the network. It only
ever receives derived keys; there is no method that accepts a password.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Protocol

import httpx

from src.domain.exceptions import ServiceError

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Something went wrong."


@dataclass(frozen=True)
class SignUpPayload:
    """Registration request body: the derived key stands in for the password."""

    email: str
    name: str
    derived_key: str
    salt: str

    def to_json(self) -> dict[str, str]:
        return asdict(self)


class AuthGateway(Protocol):
    """Port interface for client -> AuthService calls."""

    async def sign_up(self, payload: SignUpPayload) -> None:
        """
        Submit a registration.

        Raises:
            ServiceError: If the service rejects the request or is unreachable
        """
        ...

    async def fetch_salt(self, email: str) -> str:
        """Fetch the salt to re-derive a key for sign-in."""
        ...

    async def sign_in(self, email: str, derived_key: str) -> None:
        """Sign in with a re-derived key."""
        ...


class HttpAuthGateway:
    """
    Implements AuthGateway over HTTP with httpx.

    An ``httpx.AsyncClient`` may be injected (e.g. with an ASGI transport);
    otherwise one is created for ``base_url`` and closed by aclose().
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def sign_up(self, payload: SignUpPayload) -> None:
        await self._request("POST", "/v1/sign-up", json=payload.to_json())

    async def fetch_salt(self, email: str) -> str:
        response = await self._request("GET", "/v1/salt", params={"email": email})
        try:
            salt = response.json()["salt"]
        except (ValueError, TypeError, KeyError):
            logger.warning("Auth service returned a malformed salt response")
            raise ServiceError(GENERIC_ERROR, response.status_code) from None
        if not isinstance(salt, str):
            raise ServiceError(GENERIC_ERROR, response.status_code)
        return salt

    async def sign_in(self, email: str, derived_key: str) -> None:
        await self._request(
            "POST", "/v1/sign-in", json={"email": email, "derived_key": derived_key}
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpAuthGateway":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("Auth service request %s %s failed: %s", method, path, e)
            raise ServiceError("Authentication service is unavailable") from e

        if response.is_error:
            message = self._error_message(response)
            logger.info("Auth service rejected %s %s: %s", method, path, response.status_code)
            raise ServiceError(message, response.status_code)
        return response

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """Extract FastAPI's ``detail`` (string or validation error list)."""
        try:
            body = response.json()
        except ValueError:
            return GENERIC_ERROR

        detail = body.get("detail") if isinstance(body, dict) else None
        if isinstance(detail, str) and detail:
            return detail
        if isinstance(detail, list) and detail and isinstance(detail[0], dict):
            return str(detail[0].get("msg") or GENERIC_ERROR)
        return GENERIC_ERROR
