"""Tests for opsdesk/core/http.py - shared HTTP clients."""

import pytest

from opsdesk.core import http
from opsdesk.core.http import (
    close_http_clients,
    get_http_client,
    get_identity_toolkit_client,
)


@pytest.fixture(autouse=True)
def reset_clients():
    http._clients.clear()
    yield
    http._clients.clear()


def test_identity_toolkit_client_is_shared():
    first = get_identity_toolkit_client()

    assert get_identity_toolkit_client() is first
    assert first.timeout.connect == 5.0


def test_clients_are_keyed_by_name():
    assert get_http_client("a") is not get_http_client("b")


@pytest.mark.asyncio
async def test_close_releases_every_client():
    clients = [get_identity_toolkit_client(), get_http_client("other")]

    await close_http_clients()

    assert all(client.is_closed for client in clients)
    assert http._clients == {}


@pytest.mark.asyncio
async def test_closed_client_is_replaced():
    first = get_identity_toolkit_client()
    await first.aclose()

    assert get_identity_toolkit_client() is not first
