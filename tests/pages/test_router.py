"""Tests for opsdesk/pages/router.py."""

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from opsdesk.auth.exceptions import SessionCookieError


@pytest.fixture(name="edge_auth")
def edge_auth_fixture(mock_firebase_auth: MagicMock):
    with patch(
        "opsdesk.access.edge.get_firebase_auth_service",
        return_value=mock_firebase_auth,
    ):
        yield mock_firebase_auth


def test_landing_is_public(anonymous_client: TestClient):
    response = anonymous_client.get("/")

    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]


def test_section_without_session_redirects(
    anonymous_client: TestClient, edge_auth: MagicMock
):
    response = anonymous_client.get("/ruijie/devices", follow_redirects=False)

    assert response.status_code == 307
    assert response.headers["location"] == "/"
    edge_auth.verify_session_cookie.assert_not_called()


def test_section_with_invalid_session_redirects(
    client: TestClient, edge_auth: MagicMock
):
    edge_auth.verify_session_cookie.side_effect = SessionCookieError()

    response = client.get("/tuya", follow_redirects=False)

    assert response.status_code == 307


def test_section_shell_hosts_guard(client: TestClient, edge_auth: MagicMock):
    response = client.get("/multifactors/projects")

    assert response.status_code == 200
    assert "/access/ws" in response.text
    edge_auth.verify_session_cookie.assert_called_once_with(
        "valid-session-cookie", False
    )


def test_admin_section_shell_requires_admin_role(
    client: TestClient, edge_auth: MagicMock
):
    response = client.get("/multifactors/account-approval")

    assert response.status_code == 200
    assert '"admin"' in response.text
