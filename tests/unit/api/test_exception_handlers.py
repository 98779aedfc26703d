"""Error envelope produced by the global exception handlers."""

import pytest
from fastapi import status
from httpx import ASGITransport, AsyncClient

from src.api.core.messages import MessageCode
from tests.utils.assertions import assert_error_response


@pytest.mark.asyncio
async def test_unknown_route_returns_not_found(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/v1/unknown")

    assert_error_response(response, MessageCode.NOT_FOUND, status.HTTP_404_NOT_FOUND)


@pytest.mark.asyncio
async def test_wrong_method_maps_to_bad_request_code(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/v1/plants/identify")

    assert_error_response(
        response, MessageCode.BAD_REQUEST, status.HTTP_405_METHOD_NOT_ALLOWED
    )


@pytest.mark.asyncio
async def test_malformed_body_is_invalid_input(api_client: AsyncClient):
    response = await api_client.post("/v1/plants/identify", json={"images": "leaf"})

    body = assert_error_response(
        response, MessageCode.INVALID_INPUT, status.HTTP_400_BAD_REQUEST
    )
    assert body["details"]["validation_errors"]
