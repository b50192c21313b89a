import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from livestream_booking.utils.request_id import (
    REQUEST_ID_HEADER,
    generate_request_id,
    get_request_id,
    request_id_middleware,
    set_request_id,
)


@pytest.fixture
def echo_app() -> FastAPI:
    app = FastAPI()

    @app.get("/whoami")
    async def whoami() -> dict[str, str | None]:
        return {"request_id": get_request_id()}

    app.middleware("http")(request_id_middleware)
    return app


async def _get(app: FastAPI, headers: dict[str, str] | None = None) -> tuple[str, str | None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        resp = await client.get("/whoami", headers=headers)
    assert resp.status_code == 200
    return resp.headers[REQUEST_ID_HEADER], resp.json()["request_id"]


def test_context_round_trip() -> None:
    set_request_id("req-abc")
    assert get_request_id() == "req-abc"
    set_request_id(None)
    assert get_request_id() is None


def test_generated_ids_are_unique_hex() -> None:
    first, second = generate_request_id(), generate_request_id()
    assert first != second
    int(first, 16)


@pytest.mark.asyncio
async def test_mints_id_when_caller_sends_none(echo_app: FastAPI) -> None:
    header, seen = await _get(echo_app)
    assert header
    assert seen == header


@pytest.mark.asyncio
async def test_adopts_caller_id(echo_app: FastAPI) -> None:
    header, seen = await _get(echo_app, {REQUEST_ID_HEADER: "req-custom-123"})
    assert header == seen == "req-custom-123"


@pytest.mark.asyncio
async def test_id_does_not_leak_past_the_request(echo_app: FastAPI) -> None:
    set_request_id(None)
    await _get(echo_app, {REQUEST_ID_HEADER: "req-scoped"})
    assert get_request_id() is None
