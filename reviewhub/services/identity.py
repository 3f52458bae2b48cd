# reviewhub/services/identity.py
"""
Who is making this request.

Two independent sources can answer that: the primary session (signed
`session_token` cookie issued by the GitHub sign-in flow) and the three
cookies written by the direct OAuth exchange. `reconcile` decides between
them; `resolve_identity` wires it to a live request.
"""
from dataclasses import dataclass, asdict
from typing import Callable, Literal, Mapping, Optional

from fastapi import Request

from reviewhub.core.config import Settings
from reviewhub.core.security import decode_session_token

SESSION_COOKIE = "session_token"

FALLBACK_USER_ID_COOKIE = "github_user_id"
FALLBACK_USER_LOGIN_COOKIE = "github_user_login"
FALLBACK_ACCESS_TOKEN_COOKIE = "github_access_token"
FALLBACK_COOKIES = (FALLBACK_USER_ID_COOKIE, FALLBACK_USER_LOGIN_COOKIE, FALLBACK_ACCESS_TOKEN_COOKIE)

PRIMARY = "primary"
FALLBACK = "fallback"


@dataclass(frozen=True)
class SessionUser:
    id: Optional[str]
    name: Optional[str] = None
    email: Optional[str] = None
    image: Optional[str] = None


@dataclass(frozen=True)
class PrimarySession:
    user: SessionUser
    access_token: Optional[str] = None


@dataclass(frozen=True)
class Identity:
    user_id: str
    user_name: Optional[str]
    access_token: Optional[str]
    method: Literal["primary", "fallback"]
    email: Optional[str] = None
    image: Optional[str] = None

    def to_public_dict(self) -> dict:
        data = asdict(self)
        data["has_access_token"] = bool(data.pop("access_token"))
        return data


PrimarySessionResolver = Callable[[Request], Optional[PrimarySession]]


def read_fallback_identity(cookies: Mapping[str, str]) -> Optional[Identity]:
    """Identity from the direct-exchange cookies, or None when id or token is missing."""
    user_id = cookies.get(FALLBACK_USER_ID_COOKIE)
    access_token = cookies.get(FALLBACK_ACCESS_TOKEN_COOKIE)
    if not user_id or not access_token:
        return None

    return Identity(
        user_id=user_id,
        user_name=cookies.get(FALLBACK_USER_LOGIN_COOKIE) or None,
        access_token=access_token,
        method=FALLBACK,
    )


def reconcile(primary: Optional[PrimarySession], fallback: Optional[Identity]) -> Optional[Identity]:
    # Primary always wins; the two sources are never merged.
    if primary is not None and primary.user is not None and primary.user.id:
        user = primary.user
        return Identity(
            user_id=str(user.id),
            user_name=user.name,
            access_token=primary.access_token,
            method=PRIMARY,
            email=user.email,
            image=user.image,
        )

    if fallback is not None:
        return Identity(
            user_id=fallback.user_id,
            user_name=fallback.user_name,
            access_token=fallback.access_token,
            method=FALLBACK,
        )

    return None


def session_cookie_resolver(settings: Settings) -> PrimarySessionResolver:
    """Primary resolver backed by the signed `session_token` cookie."""

    def resolve(request: Request) -> Optional[PrimarySession]:
        token = request.cookies.get(SESSION_COOKIE)
        if not token:
            return None

        payload = decode_session_token(settings, token)
        if not payload or not payload.get("sub"):
            return None

        return PrimarySession(
            user=SessionUser(
                id=payload["sub"],
                name=payload.get("name"),
                email=payload.get("email"),
                image=payload.get("image"),
            ),
            access_token=payload.get("access_token"),
        )

    return resolve


def resolve_identity(request: Request, primary_resolver: PrimarySessionResolver) -> Optional[Identity]:
    primary = primary_resolver(request)
    if primary is not None and primary.user is not None and primary.user.id:
        return reconcile(primary, None)

    # Cookies are only read once the primary path has come up empty.
    return reconcile(None, read_fallback_identity(request.cookies))
