"""Tests for opsdesk/core/email.py - email functionality."""

from unittest.mock import MagicMock, patch

import pytest

from opsdesk.core.email import (
    _extract_oob_code,
    init_resend,
    send_account_status_email,
    send_email_verification_email,
)


@pytest.fixture(name="email_settings")
def email_settings_fixture():
    settings = MagicMock(
        resend_api_key="re_test",
        app_domain="opsdesk.example.com",
        client_url="https://opsdesk.example.com",
    )
    with patch("opsdesk.core.email.get_settings", return_value=settings):
        yield settings


def test_init_resend(email_settings):
    with patch("opsdesk.core.email.resend") as mock_resend:
        init_resend()

    assert mock_resend.api_key == "re_test"


def test_extract_oob_code_from_firebase_link():
    firebase_link = (
        "https://app.firebaseapp.com/__/auth/action?"
        "mode=verifyEmail&oobCode=ABC123&apiKey=xyz"
    )

    assert _extract_oob_code(firebase_link) == "ABC123"


def test_extract_oob_code_missing():
    assert _extract_oob_code("https://app.firebaseapp.com/__/auth/action") is None
    assert _extract_oob_code("") is None


def test_send_email_verification_email(email_settings):
    with patch("opsdesk.core.email.resend.Emails.send") as mock_send:
        send_email_verification_email(
            "user@example.com", "https://x/__/auth/action?oobCode=CODE1"
        )

    message = mock_send.call_args[0][0]
    assert message["from"] == "noreply@opsdesk.example.com"
    assert message["to"] == "user@example.com"
    assert (
        "https://opsdesk.example.com/auth/verify-email?oobCode=CODE1"
        in message["html"]
    )


def test_send_skipped_without_api_key(email_settings):
    email_settings.resend_api_key = None

    with patch("opsdesk.core.email.resend.Emails.send") as mock_send:
        send_email_verification_email("user@example.com", "https://x/?oobCode=1")

    mock_send.assert_not_called()


def test_account_approved_email(email_settings):
    with patch("opsdesk.core.email.resend.Emails.send") as mock_send:
        send_account_status_email("user@example.com", "Ada", "approved")

    message = mock_send.call_args[0][0]
    assert message["subject"] == "OpsDesk - Your account has been approved"
    assert "Hello Ada," in message["html"]
    assert "https://opsdesk.example.com/auth/login" in message["html"]


def test_account_rejected_email(email_settings):
    with patch("opsdesk.core.email.resend.Emails.send") as mock_send:
        send_account_status_email("user@example.com", "", "rejected")

    message = mock_send.call_args[0][0]
    assert "was not approved" in message["html"]
    assert "Sign in" not in message["html"]


def test_account_status_email_requires_final_status(email_settings):
    with pytest.raises(ValueError):
        send_account_status_email("user@example.com", "Ada", "pending")
