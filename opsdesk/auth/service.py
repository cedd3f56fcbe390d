"""Firebase Authentication Service.

A thin abstraction over the Firebase Admin SDK and the Identity Toolkit
REST API. Provider errors are mapped onto the auth exception hierarchy so
that routes and the access gate never see FirebaseError directly.
"""

import contextlib
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import timedelta
from functools import lru_cache
from typing import Any, Protocol

import firebase_admin
import httpx
from firebase_admin import auth as firebase_admin_auth
from firebase_admin.auth import UserNotFoundError as FirebaseUserNotFoundError
from firebase_admin.exceptions import FirebaseError

from opsdesk.auth.exceptions import (
    EmailExistsError,
    EmailVerificationError,
    IdentityNotFoundError,
    InvalidCredentialsError,
    InvalidTokenError,
    PasswordPolicyError,
    SessionCookieError,
    UserDisabledError,
    WeakPasswordError,
)
from opsdesk.auth.identity import Identity, normalize_provider
from opsdesk.auth.identity_toolkit import (
    IDENTITY_TOOLKIT_ENDPOINTS,
    SendOobCodeResponse,
    SignInWithPasswordResponse,
)
from opsdesk.core.exceptions import AppException, ProviderError, RateLimitError
from opsdesk.core.http import get_identity_toolkit_client
from opsdesk.core.retry import with_retry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FirebaseUser:
    """Result of a sign-in or sign-up call."""

    uid: str
    email: str | None = None
    id_token: str | None = None


@dataclass(frozen=True)
class FirebaseUserRecord:
    """Full Firebase user record."""

    uid: str
    email: str | None = None
    email_verified: bool = False
    display_name: str | None = None
    photo_url: str | None = None
    provider: str | None = None

    def to_identity(self, provider: str | None = None) -> Identity:
        """Build the identity; ``provider`` overrides the recorded one."""
        metadata: dict[str, Any] = {}
        if self.display_name:
            metadata["name"] = self.display_name
        if self.photo_url:
            metadata["picture"] = self.photo_url
        return Identity(
            id=self.uid,
            email=self.email,
            email_confirmed=self.email_verified,
            provider=normalize_provider(provider or self.provider),
            metadata=metadata,
        )


@dataclass(frozen=True)
class TokenClaims:
    """Decoded ID token or session cookie claims."""

    uid: str
    email: str | None = None
    email_verified: bool = False
    provider: str | None = None
    name: str | None = None
    picture: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_identity(self) -> Identity | None:
        """Build the embedded identity, or None when the claims carry no email."""
        if not self.email:
            return None
        metadata: dict[str, Any] = dict(self.extra)
        if self.name:
            metadata["name"] = self.name
        if self.picture:
            metadata["picture"] = self.picture
        return Identity(
            id=self.uid,
            email=self.email,
            email_confirmed=self.email_verified,
            provider=normalize_provider(self.provider),
            metadata=metadata,
        )


class FirebaseAuthServiceProtocol(Protocol):
    """Operations the rest of the app needs from the auth provider."""

    async def sign_in_with_email_password(
        self, email: str, password: str
    ) -> FirebaseUser: ...

    def create_session_cookie(self, id_token: str, expires_in: timedelta) -> str: ...

    def verify_session_cookie(
        self, session_cookie: str, check_revoked: bool = True
    ) -> TokenClaims: ...

    def verify_id_token(self, id_token: str) -> TokenClaims: ...

    def revoke_refresh_tokens(self, uid: str) -> None: ...

    def create_user(
        self, email: str, password: str, display_name: str | None = None
    ) -> FirebaseUser: ...

    def delete_user(self, uid: str) -> None: ...

    async def generate_email_verification_link(self, email: str) -> str: ...

    def get_user(self, uid: str) -> FirebaseUserRecord: ...


# Identity Toolkit error messages, matched exactly and then as substrings.
_TOOLKIT_EXACT: dict[str, Callable[[], AppException]] = {
    "EMAIL_NOT_FOUND": lambda: InvalidCredentialsError("Invalid email or password"),
    "INVALID_PASSWORD": lambda: InvalidCredentialsError("Invalid email or password"),
    "INVALID_LOGIN_CREDENTIALS": lambda: InvalidCredentialsError(
        "Invalid email or password"
    ),
    "USER_DISABLED": lambda: UserDisabledError("User account is disabled"),
}
_TOOLKIT_CONTAINS: dict[str, Callable[[], AppException]] = {
    "WEAK_PASSWORD": lambda: WeakPasswordError("Password is too weak"),
    "EMAIL_EXISTS": lambda: EmailExistsError("Email already in use"),
    "USER_NOT_FOUND": lambda: IdentityNotFoundError("User not found"),
}

# Admin SDK error codes (or message fragments) per operation.
_CREATE_USER_ERRORS: dict[str, Callable[[], AppException]] = {
    "EMAIL_EXISTS": lambda: EmailExistsError("Email already registered"),
    "EMAIL_ALREADY_EXISTS": lambda: EmailExistsError("Email already registered"),
    "WEAK_PASSWORD": lambda: WeakPasswordError("Password is too weak"),
    "INVALID_PASSWORD": lambda: WeakPasswordError("Password is too weak"),
}
_GET_USER_ERRORS: dict[str, Callable[[], AppException]] = {
    "USER_NOT_FOUND": lambda: IdentityNotFoundError("User not found"),
}


def _retry_after(value: str | None) -> int | None:
    if value and value.isdigit():
        return int(value)
    return None


def _password_policy_error(message: str) -> PasswordPolicyError:
    match = re.search(r"Missing password requirements: \[([^\]]+)\]", message)
    requirements = [r.strip() for r in match.group(1).split(",")] if match else []
    return PasswordPolicyError(
        "Password does not meet requirements", requirements=requirements
    )


def _toolkit_error(response: httpx.Response) -> AppException:
    """Map an Identity Toolkit error response onto an app exception."""
    try:
        message = response.json().get("error", {}).get("message", "Unknown error")
    except ValueError:
        message = None

    # Only the leading code is logged; messages may echo user input.
    code = re.match(r"[A-Z0-9_]+", message or "")
    logger.info(
        "Identity Toolkit error: status=%s, code=%s",
        response.status_code,
        code.group(0) if code else "UNKNOWN",
    )

    if response.status_code == 429 or message == "TOO_MANY_ATTEMPTS_TRY_LATER":
        return RateLimitError(
            "Too many attempts, try again later",
            retry_after=_retry_after(response.headers.get("Retry-After")),
        )
    if message is None:
        return ProviderError("Authentication provider returned an invalid response")
    if message in _TOOLKIT_EXACT:
        return _TOOLKIT_EXACT[message]()
    if "PASSWORD_DOES_NOT_MEET_REQUIREMENTS" in message:
        return _password_policy_error(message)
    for fragment, build in _TOOLKIT_CONTAINS.items():
        if fragment in message:
            return build()
    if response.status_code in {400, 401, 403}:
        return InvalidCredentialsError("Authentication failed")
    return ProviderError(f"Authentication failed: {message}")


def _admin_error(
    error: Exception,
    mapping: dict[str, Callable[[], AppException]],
    default_message: str,
) -> AppException:
    """Map an Admin SDK error by its code, then by message fragment."""
    code = getattr(error, "code", None)
    if code in mapping:
        return mapping[code]()
    text = str(error)
    for fragment, build in mapping.items():
        if fragment in text:
            return build()
    return AppException(default_message)


def _claims_from(decoded: dict[str, Any], *, allow_sub: bool) -> TokenClaims:
    """Pick the claims OpsDesk uses out of a decoded token or cookie.

    Raises:
        InvalidTokenError: If there is no uid
    """
    uid = decoded.get("uid") or (decoded.get("sub") if allow_sub else None)
    if not uid:
        raise InvalidTokenError("Invalid token: missing uid")
    return TokenClaims(
        uid=uid,
        email=decoded.get("email"),
        email_verified=bool(decoded.get("email_verified", False)),
        provider=(decoded.get("firebase") or {}).get("sign_in_provider"),
        name=decoded.get("name"),
        picture=decoded.get("picture"),
        extra={
            key: decoded[key]
            for key in ("given_name", "family_name")
            if decoded.get(key)
        },
    )


class FirebaseAuthService:
    """Firebase Authentication for OpsDesk.

    Password sign-in and verification links go through the Identity Toolkit
    REST API; everything else uses the Admin SDK.
    """

    def __init__(
        self,
        api_key: str | None,
        identity_toolkit_base_url: str = "https://identitytoolkit.googleapis.com",
    ):
        self._api_key = api_key
        self._identity_toolkit_base_url = identity_toolkit_base_url

    # Identity Toolkit REST

    def _toolkit_url(self, endpoint: str, *, admin: bool) -> str:
        url = f"{self._identity_toolkit_base_url}/{endpoint}"
        if admin:
            return url
        if not self._api_key:
            raise AppException("Firebase API key not configured")
        return f"{url}?key={self._api_key}"

    @staticmethod
    def _admin_headers() -> dict[str, str]:
        # returnOobLink requires service-account credentials, not the API key.
        try:
            credential = firebase_admin.get_app().credential
        except ValueError as e:
            raise AppException("Firebase Admin SDK not initialized") from e
        token = credential.get_access_token().access_token
        return {"Authorization": f"Bearer {token}"}

    async def _post(
        self,
        endpoint: str,
        payload: dict[str, Any],
        *,
        admin: bool = False,
        retry: bool = False,
    ) -> dict[str, Any]:
        """POST to Identity Toolkit and return the JSON body.

        Network errors are retried once when ``retry`` is set. Error
        responses are mapped by ``_toolkit_error``.
        """
        url = self._toolkit_url(endpoint, admin=admin)
        headers = self._admin_headers() if admin else None
        client = get_identity_toolkit_client()

        async def send() -> httpx.Response:
            return await client.post(url, json=payload, headers=headers)

        try:
            response = await with_retry(
                send,
                attempts=2 if retry else 1,
                exceptions=(httpx.RequestError,),
                label=endpoint,
            )
        except httpx.RequestError as e:
            raise ProviderError("Authentication provider unavailable") from e

        if response.status_code != 200:
            raise _toolkit_error(response)
        return response.json()

    async def sign_in_with_email_password(
        self, email: str, password: str
    ) -> FirebaseUser:
        """Check email/password and return the user with a fresh ID token.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password
            UserDisabledError: Account disabled in Firebase
            RateLimitError: Too many attempts
            ProviderError: Firebase unreachable or answered garbage
        """
        data: SignInWithPasswordResponse = await self._post(
            IDENTITY_TOOLKIT_ENDPOINTS["signInWithPassword"],
            {"email": email, "password": password, "returnSecureToken": True},
            retry=True,
        )
        id_token = data.get("idToken")
        uid = data.get("localId")
        if not id_token or not uid:
            raise InvalidCredentialsError("Authentication failed")
        return FirebaseUser(uid=uid, email=data.get("email"), id_token=id_token)

    async def generate_email_verification_link(self, email: str) -> str:
        """Ask Firebase for a VERIFY_EMAIL action link without sending it.

        Raises:
            IdentityNotFoundError: No user with this email
            EmailVerificationError: Any other failure
        """
        try:
            data: SendOobCodeResponse = await self._post(
                IDENTITY_TOOLKIT_ENDPOINTS["sendOobCode"],
                {"requestType": "VERIFY_EMAIL", "email": email, "returnOobLink": True},
                admin=True,
            )
        except ProviderError as e:
            raise EmailVerificationError(
                "Failed to generate email verification link"
            ) from e

        oob_link = data.get("oobLink")
        if not oob_link:
            raise EmailVerificationError("Failed to generate email verification link")
        return oob_link

    # Admin SDK

    def create_session_cookie(self, id_token: str, expires_in: timedelta) -> str:
        try:
            return firebase_admin_auth.create_session_cookie(
                id_token, expires_in=expires_in
            )
        except (ValueError, FirebaseError) as e:
            raise SessionCookieError("Failed to create session cookie") from e

    def verify_session_cookie(
        self, session_cookie: str, check_revoked: bool = True
    ) -> TokenClaims:
        """Raises SessionCookieError for any invalid, expired or revoked cookie."""
        try:
            decoded = firebase_admin_auth.verify_session_cookie(
                session_cookie, check_revoked=check_revoked
            )
        except (ValueError, FirebaseError) as e:
            raise SessionCookieError("Invalid session cookie") from e
        try:
            return _claims_from(decoded, allow_sub=True)
        except InvalidTokenError as e:
            raise SessionCookieError(e.message) from e

    def verify_id_token(self, id_token: str) -> TokenClaims:
        """Raises InvalidTokenError when the token does not verify."""
        try:
            decoded = firebase_admin_auth.verify_id_token(id_token)
        except (ValueError, FirebaseError) as e:
            raise InvalidTokenError("Invalid ID token") from e
        return _claims_from(decoded, allow_sub=False)

    def revoke_refresh_tokens(self, uid: str) -> None:
        with contextlib.suppress(FirebaseError):
            firebase_admin_auth.revoke_refresh_tokens(uid)

    def delete_user(self, uid: str) -> None:
        """Best-effort delete, used to undo a sign-up whose profile failed."""
        with contextlib.suppress(FirebaseError):
            firebase_admin_auth.delete_user(uid)

    def create_user(
        self, email: str, password: str, display_name: str | None = None
    ) -> FirebaseUser:
        """Create an email/password user.

        Raises:
            EmailExistsError: Email already registered
            WeakPasswordError: Password rejected as too weak
            PasswordPolicyError: Password violates the project's policy
            AppException: Any other Firebase failure
        """
        try:
            record = firebase_admin_auth.create_user(
                email=email, password=password, display_name=display_name
            )
        except (ValueError, FirebaseError) as e:
            message = str(e)
            if "PASSWORD_DOES_NOT_MEET_REQUIREMENTS" in message:
                raise _password_policy_error(message) from e
            if isinstance(e, ValueError):
                raise WeakPasswordError(message) from e
            raise _admin_error(e, _CREATE_USER_ERRORS, "Failed to create user") from e
        return FirebaseUser(uid=record.uid, email=email)

    def get_user(self, uid: str) -> FirebaseUserRecord:
        """Load the provider's user record.

        The sign-in provider is the first federated provider linked to the
        account, or ``password`` when there is none.

        Raises:
            IdentityNotFoundError: No such user
            AppException: Any other Firebase failure
        """
        try:
            user = firebase_admin_auth.get_user(uid)
        except FirebaseUserNotFoundError as e:
            raise IdentityNotFoundError("User not found") from e
        except (ValueError, FirebaseError) as e:
            raise _admin_error(e, _GET_USER_ERRORS, "Failed to get user") from e

        provider = next(
            (
                info.provider_id
                for info in user.provider_data or []
                if info.provider_id and info.provider_id != "password"
            ),
            "password",
        )
        return FirebaseUserRecord(
            uid=user.uid,
            email=user.email,
            email_verified=bool(user.email_verified),
            display_name=user.display_name,
            photo_url=user.photo_url,
            provider=provider,
        )


@lru_cache
def get_firebase_auth_service() -> FirebaseAuthService:
    """Get cached Firebase Auth Service instance."""
    from opsdesk.core.settings import get_settings

    settings = get_settings()
    return FirebaseAuthService(
        api_key=settings.firebase_api_key,
        identity_toolkit_base_url=settings.identity_toolkit_base_url,
    )
