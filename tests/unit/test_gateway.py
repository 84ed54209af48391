"""
Unit tests for HttpAuthGateway.

Uses httpx.MockTransport to check request shape and error translation.
"""

import asyncio
import json
from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from src.client.gateway import GENERIC_ERROR, HttpAuthGateway, SignUpPayload
from src.client.submitter import OutcomeStatus, SignInSubmitter
from src.domain.exceptions import ServiceError
from src.domain.key_derivation import KeyDeriver

PAYLOAD = SignUpPayload(
    email="a@b.com",
    name="Alice",
    derived_key="a2V5a2V5a2V5a2V5a2V5a2V5a2V5a2V5a2V5a2V5a2U=",
    salt="c2FsdHNhbHRzYWx0c2FsdA==",
)


def gateway_for(handler) -> HttpAuthGateway:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://auth")
    return HttpAuthGateway(client=client)


class TestSignUp:
    """Tests for sign_up()."""

    def test_posts_payload(self) -> None:
        """sign_up POSTs the four payload fields to /v1/sign-up."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={"message": "ok", "email": "a@b.com"})

        asyncio.run(gateway_for(handler).sign_up(PAYLOAD))

        assert seen[0].method == "POST"
        assert seen[0].url.path == "/v1/sign-up"
        assert json.loads(seen[0].content) == {
            "email": "a@b.com",
            "name": "Alice",
            "derived_key": PAYLOAD.derived_key,
            "salt": PAYLOAD.salt,
        }

    def test_service_detail_becomes_message(self) -> None:
        """A string detail is surfaced as the ServiceError message."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(409, json={"detail": "Registration failed"})

        with pytest.raises(ServiceError) as exc_info:
            asyncio.run(gateway_for(handler).sign_up(PAYLOAD))

        assert exc_info.value.message == "Registration failed"
        assert exc_info.value.status_code == 409

    def test_validation_detail_list(self) -> None:
        """FastAPI validation error lists surface their first message."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(422, json={"detail": [{"loc": ["body", "salt"], "msg": "Field required"}]})

        with pytest.raises(ServiceError) as exc_info:
            asyncio.run(gateway_for(handler).sign_up(PAYLOAD))

        assert exc_info.value.message == "Field required"

    def test_non_json_error(self) -> None:
        """Non-JSON error bodies produce the generic message."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="Internal Server Error")

        with pytest.raises(ServiceError) as exc_info:
            asyncio.run(gateway_for(handler).sign_up(PAYLOAD))

        assert exc_info.value.message == GENERIC_ERROR

    def test_transport_failure(self) -> None:
        """Connection failures become ServiceError without a status code."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ServiceError) as exc_info:
            asyncio.run(gateway_for(handler).sign_up(PAYLOAD))

        assert exc_info.value.status_code is None


class TestSignIn:
    """Tests for fetch_salt() and sign_in()."""

    def test_fetch_salt(self) -> None:
        """fetch_salt passes the email as a query parameter."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v1/salt"
            assert request.url.params["email"] == "a@b.com"
            return httpx.Response(200, json={"salt": PAYLOAD.salt})

        assert asyncio.run(gateway_for(handler).fetch_salt("a@b.com")) == PAYLOAD.salt

    def test_sign_in_body(self) -> None:
        """sign_in sends only email and derived_key."""
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"message": "Signed in", "email": "a@b.com"})

        asyncio.run(gateway_for(handler).sign_in("a@b.com", PAYLOAD.derived_key))

        assert bodies == [{"email": "a@b.com", "derived_key": PAYLOAD.derived_key}]


class TestLifecycle:
    """Tests for client ownership."""

    def test_injected_client_not_closed(self) -> None:
        """aclose() leaves an injected client open."""
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda r: httpx.Response(200)), base_url="http://auth"
        )

        async def run() -> None:
            async with HttpAuthGateway(client=client):
                pass

        asyncio.run(run())
        assert not client.is_closed

    def test_owned_client_closed(self) -> None:
        """aclose() closes a client the gateway created."""

        async def run() -> HttpAuthGateway:
            async with HttpAuthGateway(base_url="http://auth") as gateway:
                return gateway

        gateway = asyncio.run(run())
        assert gateway._client.is_closed


class TestMalformedResponses:
    """Tests for responses and failures outside the HTTP error path."""

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, text="<html>maintenance</html>"),
            httpx.Response(200, json={"salts": PAYLOAD.salt}),
            httpx.Response(200, json=["not", "an", "object"]),
            httpx.Response(200, json={"salt": None}),
        ],
    )
    def test_bad_salt_body_becomes_service_error(self, response: httpx.Response) -> None:
        """A 2xx salt response without a usable salt raises ServiceError."""
        with pytest.raises(ServiceError) as exc_info:
            asyncio.run(gateway_for(lambda request: response).fetch_salt("a@b.com"))

        assert exc_info.value.message == GENERIC_ERROR

    def test_invalid_url_becomes_service_error(self) -> None:
        """URL construction errors are reported as an unavailable service."""
        client = Mock(spec=httpx.AsyncClient)
        client.request = AsyncMock(side_effect=httpx.InvalidURL("Invalid URL"))

        with pytest.raises(ServiceError) as exc_info:
            asyncio.run(HttpAuthGateway(client=client).sign_up(PAYLOAD))

        assert exc_info.value.status_code is None

    def test_sign_in_submitter_reports_malformed_salt(self) -> None:
        """A broken salt response ends the sign-in with one SERVICE_ERROR callback."""
        gateway = gateway_for(lambda request: httpx.Response(200, text="oops"))
        on_error = Mock()
        submitter = SignInSubmitter(
            gateway=gateway, deriver=KeyDeriver(iterations=1000), on_error=on_error
        )

        outcome = asyncio.run(submitter.submit({"email": "a@b.com", "password": "Secret123!"}))

        assert outcome.status == OutcomeStatus.SERVICE_ERROR
        on_error.assert_called_once_with(outcome)
