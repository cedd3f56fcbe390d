"""Access dependencies for FastAPI routes.

Routes declare what they need (any approved user, an admin, the current
profile) and these dependencies run the access check to provide it.
"""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from opsdesk.access.decision import decide_access
from opsdesk.access.exceptions import AccessDeniedError
from opsdesk.access.models import AccessVerdict
from opsdesk.access.service import AccessChecker, policy_from_settings
from opsdesk.access.session import FirebaseSessionSource, SessionResolver
from opsdesk.auth.service import FirebaseAuthServiceProtocol
from opsdesk.core.constants import SESSION_COOKIE_NAME
from opsdesk.core.deps import FirebaseAuthDep, SessionDep, SettingsDep
from opsdesk.core.settings import Settings
from opsdesk.profile.gate import ProfileGate
from opsdesk.profile.models import Profile, ProfileRole
from opsdesk.profile.tracker import activity_tracker

security = HTTPBearer(auto_error=False)


def build_profile_gate(session: Session, settings: Settings) -> ProfileGate:
    return ProfileGate(
        session,
        oauth_providers=settings.oauth_providers_set,
        oauth_auto_approve=settings.oauth_auto_approve,
    )


def build_access_checker(
    session: Session,
    settings: Settings,
    source: FirebaseSessionSource,
) -> AccessChecker:
    return AccessChecker(
        SessionResolver(source, settle_delay=settings.session_settle_delay_seconds),
        build_profile_gate(session, settings),
        policy_from_settings(settings),
    )


def session_source_for_request(
    request: Request,
    firebase_auth: FirebaseAuthServiceProtocol,
    credentials: HTTPAuthorizationCredentials | None,
) -> FirebaseSessionSource:
    return FirebaseSessionSource(
        firebase_auth,
        session_cookie=request.cookies.get(SESSION_COOKIE_NAME),
        id_token=credentials.credentials if credentials else None,
    )


def get_profile_gate(session: SessionDep, settings: SettingsDep) -> ProfileGate:
    return build_profile_gate(session, settings)


ProfileGateDep = Annotated[ProfileGate, Depends(get_profile_gate)]


async def get_current_access(
    request: Request,
    session: SessionDep,
    firebase_auth: FirebaseAuthDep,
    settings: SettingsDep,
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(security)
    ] = None,
) -> AccessVerdict:
    """Run the access check for this request and require it to allow.

    Supports the ``session`` cookie (web) and a Bearer ID token (API
    clients). An HTTP request cannot receive new credentials while it is
    being handled, so the resolver's settle retry is skipped.

    Raises:
        AccessDeniedError: With the verdict's status, type and message
    """
    source = session_source_for_request(request, firebase_auth, credentials)
    checker = build_access_checker(session, settings, source)
    verdict = await checker.check(settle=False)
    if not verdict.allowed:
        raise AccessDeniedError(verdict)

    request.state.user_id = verdict.profile.id
    activity_tracker.touch(verdict.profile.id)
    return verdict


CurrentAccessDep = Annotated[AccessVerdict, Depends(get_current_access)]


def get_admin_access(access: CurrentAccessDep, settings: SettingsDep) -> AccessVerdict:
    """Re-run the decision with the admin role required."""
    verdict = decide_access(
        access.identity,
        access.profile,
        ProfileRole.admin,
        policy=policy_from_settings(settings),
    )
    if not verdict.allowed:
        raise AccessDeniedError(verdict)
    return verdict


AdminAccessDep = Annotated[AccessVerdict, Depends(get_admin_access)]


def get_current_profile(access: CurrentAccessDep) -> Profile:
    return access.profile


CurrentProfileDep = Annotated[Profile, Depends(get_current_profile)]


def require_access(_access: CurrentAccessDep) -> None:
    """Router-level dependency: any approved user."""


def require_admin(_access: AdminAccessDep) -> None:
    """Router- or endpoint-level dependency: admins only."""
