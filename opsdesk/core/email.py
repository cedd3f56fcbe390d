"""Transactional email via Resend.

Templates live in ``opsdesk/templates/emails`` and are rendered with Jinja2.
Callers treat sending as best-effort; errors propagate so they can log them.
"""

import logging
from urllib.parse import parse_qs, urlparse

import resend

from opsdesk.core.constants import JinjaEmailTemplatesEnv
from opsdesk.core.settings import get_settings

logger = logging.getLogger(__name__)

_STATUS_SUBJECTS = {
    "approved": "OpsDesk - Your account has been approved",
    "rejected": "OpsDesk - Your account request was declined",
}


def _render_template(template_name: str, **context: str) -> str:
    template = JinjaEmailTemplatesEnv.get_template(template_name)
    return template.render(**context)


def init_resend() -> None:
    """Initialize Resend with API key if available."""
    settings = get_settings()
    if not settings.resend_api_key:
        return
    resend.api_key = settings.resend_api_key


def _extract_oob_code(firebase_link: str) -> str | None:
    """Extract oobCode from a Firebase action link.

    https://app.firebaseapp.com/__/auth/action?mode=verifyEmail&oobCode=ABC123
    """
    params = parse_qs(urlparse(firebase_link).query)
    oob_codes = params.get("oobCode", [])
    return oob_codes[0] if oob_codes else None


def _send(to_email: str, subject: str, html: str) -> None:
    settings = get_settings()
    if not settings.resend_api_key:
        logger.info("Resend not configured, skipping email %r", subject)
        return
    resend.Emails.send(
        {
            "from": f"noreply@{settings.app_domain}",
            "to": to_email,
            "subject": subject,
            "html": html,
        }
    )


def send_email_verification_email(
    to_email: str, firebase_verification_link: str
) -> None:
    """Send the sign-up confirmation email.

    Args:
        to_email: Recipient email address
        firebase_verification_link: Firebase link; only its oobCode is reused
    """
    settings = get_settings()
    oob_code = _extract_oob_code(firebase_verification_link)
    verification_url = f"{settings.client_url}/auth/verify-email?oobCode={oob_code}"

    html_content = _render_template(
        "email-verification.html", verification_url=verification_url
    )
    _send(to_email, "OpsDesk - Confirm your email", html_content)


def send_account_status_email(to_email: str, first_name: str, status: str) -> None:
    """Notify a user that an administrator approved or rejected their account.

    Args:
        to_email: Recipient email address
        first_name: Greeting name (may be empty)
        status: "approved" or "rejected"
    """
    subject = _STATUS_SUBJECTS.get(status)
    if subject is None:
        raise ValueError(f"No status email for {status!r}")

    settings = get_settings()
    html_content = _render_template(
        "account-status.html",
        first_name=first_name,
        status=status,
        login_url=f"{settings.client_url}/auth/login",
    )
    _send(to_email, subject, html_content)
