"""Auth domain router.

Sign-up, email/password and OAuth sign-in, sign-out. Sign-in only sets the
session cookie once the access decision allows the user in; pending,
rejected and unconfirmed accounts get the verdict's error instead.
"""

import logging

from fastapi import APIRouter, Request, Response, status
from sqlalchemy.exc import SQLAlchemyError

from opsdesk.access.decision import decide_access
from opsdesk.access.dependencies import (
    CurrentProfileDep,
    ProfileGateDep,
    security,
    session_source_for_request,
)
from opsdesk.access.events import AuthEvent, auth_events
from opsdesk.access.exceptions import AccessDeniedError
from opsdesk.access.models import AccessError, AccessVerdict
from opsdesk.access.service import policy_from_settings
from opsdesk.access.session import SessionResolver
from opsdesk.activity.service import try_record_activity
from opsdesk.auth.exceptions import InvalidCredentialsError, SessionCookieError
from opsdesk.auth.identity import Identity
from opsdesk.auth.schemas import (
    AuthMessage,
    AuthRegister,
    EmailPasswordLoginRequest,
    OAuthSessionRequest,
)
from opsdesk.auth.service import FirebaseAuthService
from opsdesk.core.constants import SESSION_COOKIE_NAME, CommonResponses, Routes
from opsdesk.core.deps import FirebaseAuthDep, SessionDep, SettingsDep
from opsdesk.core.email import send_email_verification_email
from opsdesk.core.exceptions import AppException, InternalError
from opsdesk.core.settings import Settings
from opsdesk.profile.exceptions import EmailNotConfirmedError, ProfileLookupError
from opsdesk.profile.gate import ProfileGate
from opsdesk.profile.schemas import ProfileRead
from opsdesk.profile.tracker import activity_tracker

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix=Routes.AUTH.prefix,
    tags=[Routes.AUTH.tag],
    responses={**CommonResponses.BAD_REQUEST},
)


async def _send_verification(firebase_auth: FirebaseAuthService, email: str) -> None:
    """Best-effort: failures are logged, never raised."""
    try:
        verification_link = await firebase_auth.generate_email_verification_link(
            email
        )
        send_email_verification_email(email, verification_link)
    except Exception as e:
        logger.warning("Verification email to %s failed: %s", email, str(e))


def _admit(
    identity: Identity, profiles: ProfileGate, settings: Settings
) -> AccessVerdict:
    """Create or load the profile and decide; raise unless allowed."""
    try:
        profile = profiles.ensure_profile(identity)
    except EmailNotConfirmedError:
        profile = None
    except ProfileLookupError as e:
        raise AccessDeniedError(
            AccessVerdict.deny(AccessError.profile_error, identity=identity)
        ) from e

    verdict = decide_access(identity, profile, policy=policy_from_settings(settings))
    if not verdict.allowed:
        logger.info(
            "Sign-in refused for %s: %s",
            identity.id,
            verdict.error.value,
            extra={"user_id": identity.id, "access_error": verdict.error.value},
        )
        raise AccessDeniedError(verdict)
    return verdict


def _set_session_cookie(
    response: Response,
    firebase_auth: FirebaseAuthService,
    id_token: str,
    settings: Settings,
) -> None:
    session_cookie = firebase_auth.create_session_cookie(
        id_token, expires_in=settings.session_expires_in
    )
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=session_cookie,
        max_age=int(settings.session_expires_in.total_seconds()),
        httponly=True,
        secure=settings.is_secure_cookie,
        samesite="lax",
    )


def _signed_in(session, verdict: AccessVerdict, action: str, **meta) -> None:
    profile = verdict.profile
    auth_events.publish(profile.id, AuthEvent.signed_in)
    try_record_activity(session, profile.id, action, meta=meta or None)
    activity_tracker.touch(profile.id)


@router.post(
    "/register",
    response_model=AuthMessage,
    status_code=status.HTTP_201_CREATED,
    responses={**CommonResponses.CONFLICT},
)
async def register(
    register_data: AuthRegister,
    session: SessionDep,
    profiles: ProfileGateDep,
    firebase_auth: FirebaseAuthDep,
):
    """Register a new user.

    Creates the Firebase user and a pending profile. The account can sign in
    once the email is confirmed and an administrator approves it.
    """
    firebase_user = firebase_auth.create_user(
        email=register_data.email,
        password=register_data.password,
        display_name=f"{register_data.first_name} {register_data.last_name}",
    )

    identity = Identity(
        id=firebase_user.uid, email=register_data.email, provider="password"
    )
    try:
        profile = profiles.register_profile(
            identity, register_data.first_name, register_data.last_name
        )
    except (ProfileLookupError, SQLAlchemyError) as e:
        # Rollback: delete Firebase user if the profile could not be stored
        firebase_auth.delete_user(firebase_user.uid)
        raise InternalError("Failed to create user") from e

    try_record_activity(session, profile.id, "Registered")
    await _send_verification(firebase_auth, register_data.email)

    return AuthMessage(
        message="Registration successful. Please confirm your email address."
    )


@router.post(
    "/login",
    response_model=ProfileRead,
    responses={**CommonResponses.UNAUTHORIZED, **CommonResponses.FORBIDDEN},
)
async def login(
    payload: EmailPasswordLoginRequest,
    response: Response,
    session: SessionDep,
    profiles: ProfileGateDep,
    firebase_auth: FirebaseAuthDep,
    settings: SettingsDep,
):
    """Login with email/password and set the session cookie.

    Raises:
        AccessDeniedError: Email unconfirmed, profile pending or rejected
    """
    firebase_user = await firebase_auth.sign_in_with_email_password(
        email=payload.email,
        password=payload.password,
    )
    # The account record lists every linked provider; the provider of this
    # sign-in comes from the token it just issued.
    claims = firebase_auth.verify_id_token(firebase_user.id_token)
    identity = claims.to_identity() or firebase_auth.get_user(claims.uid).to_identity(
        provider=claims.provider
    )
    verdict = _admit(identity, profiles, settings)

    _set_session_cookie(response, firebase_auth, firebase_user.id_token, settings)
    _signed_in(session, verdict, "Login")
    return verdict.profile


@router.post(
    "/session",
    response_model=ProfileRead,
    responses={**CommonResponses.UNAUTHORIZED, **CommonResponses.FORBIDDEN},
)
async def create_session(
    payload: OAuthSessionRequest,
    response: Response,
    session: SessionDep,
    profiles: ProfileGateDep,
    firebase_auth: FirebaseAuthDep,
    settings: SettingsDep,
):
    """Exchange an OAuth ID token for the session cookie.

    The profile is created on first sign-in.
    """
    claims = firebase_auth.verify_id_token(payload.id_token)
    identity = claims.to_identity() or firebase_auth.get_user(claims.uid).to_identity(
        provider=claims.provider
    )
    verdict = _admit(identity, profiles, settings)

    _set_session_cookie(response, firebase_auth, payload.id_token, settings)
    _signed_in(session, verdict, "Login", provider=identity.provider)
    return verdict.profile


@router.post(
    "/logout",
    response_model=AuthMessage,
    responses={**CommonResponses.UNAUTHORIZED},
)
async def logout(
    request: Request,
    response: Response,
    firebase_auth: FirebaseAuthDep,
):
    """Clear the session cookie, revoke refresh tokens and close live guards."""
    session_cookie = request.cookies.get(SESSION_COOKIE_NAME)
    if not session_cookie:
        raise InvalidCredentialsError("Not authenticated")

    # Always clear cookie on logout
    response.delete_cookie(key=SESSION_COOKIE_NAME)

    # Best-effort: verify and revoke tokens
    try:
        claims = firebase_auth.verify_session_cookie(
            session_cookie, check_revoked=False
        )
    except SessionCookieError:
        return AuthMessage(message="Logout successful")

    try:
        firebase_auth.revoke_refresh_tokens(claims.uid)
    except AppException as e:
        logger.warning("Token revocation failed for %s: %s", claims.uid, e.message)

    auth_events.publish(claims.uid, AuthEvent.signed_out)
    activity_tracker.forget(claims.uid)
    return AuthMessage(message="Logout successful")


@router.get(
    "/me",
    response_model=ProfileRead,
    responses={**CommonResponses.UNAUTHORIZED, **CommonResponses.FORBIDDEN},
)
async def get_me(profile: CurrentProfileDep):
    """Get the current user's profile."""
    return profile


@router.post(
    "/request-verification-email",
    response_model=AuthMessage,
    responses={**CommonResponses.UNAUTHORIZED},
)
async def request_verification_email(
    request: Request,
    firebase_auth: FirebaseAuthDep,
    settings: SettingsDep,
):
    """Resend the email confirmation link.

    Only a session is required: unconfirmed users cannot pass the full
    access check.
    """
    credentials = await security(request)
    source = session_source_for_request(request, firebase_auth, credentials)
    resolved = await SessionResolver(
        source, settle_delay=settings.session_settle_delay_seconds
    ).resolve(settle=False)

    identity = resolved.identity
    if identity.email_confirmed:
        return AuthMessage(message="Email is already verified")
    if identity.email:
        await _send_verification(firebase_auth, identity.email)

    return AuthMessage(message="Verification email sent")
