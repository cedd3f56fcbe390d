"""Typed payloads for the Identity Toolkit REST endpoints we call.

https://cloud.google.com/identity-platform/docs/reference/rest/v1/accounts
"""

from typing import NotRequired, TypedDict

IDENTITY_TOOLKIT_ENDPOINTS: dict[str, str] = {
    "signInWithPassword": "v1/accounts:signInWithPassword",
    "sendOobCode": "v1/accounts:sendOobCode",
}


class SignInWithPasswordResponse(TypedDict, total=False):
    """Response of accounts:signInWithPassword."""

    kind: str
    localId: str
    email: str
    displayName: str
    idToken: str
    registered: bool
    refreshToken: str
    expiresIn: str


class SendOobCodeResponse(TypedDict, total=False):
    """Response of accounts:sendOobCode with returnOobLink=true."""

    kind: str
    email: str
    oobLink: NotRequired[str]
