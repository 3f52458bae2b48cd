# reviewhub/api/auth_github.py
import secrets
import urllib.parse
import uuid
from datetime import datetime

import httpx
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from reviewhub.api.deps import get_identity, get_settings
from reviewhub.core.config import Settings
from reviewhub.core.db import get_db
from reviewhub.core.logger import get_logger
from reviewhub.core.security import create_session_token
from reviewhub.github_client import (
    GITHUB_AUTHORIZE_URL,
    GitHubClient,
    GitHubOAuthError,
    exchange_code_for_token,
)
from reviewhub.models import Account, User, GITHUB_PROVIDER
from reviewhub.services.identity import (
    FALLBACK_ACCESS_TOKEN_COOKIE,
    FALLBACK_COOKIES,
    FALLBACK_USER_ID_COOKIE,
    FALLBACK_USER_LOGIN_COOKIE,
    SESSION_COOKIE,
    Identity,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

# OAuth state is kept in memory; a multi-process deployment needs a shared store.
STATE_TOKENS = set()


def get_or_create_user_from_github(db: Session, github_user_data: dict) -> User:
    github_id = github_user_data.get("id")
    github_login = github_user_data.get("login")

    user = db.query(User).filter(User.github_id == github_id).first()
    now = datetime.utcnow()
    if user:
        user.github_login = github_login
        user.name = github_user_data.get("name") or github_login
        user.email = github_user_data.get("email") or user.email
        user.image = github_user_data.get("avatar_url") or user.image
        user.updated_at = now
    else:
        user = User(
            id=uuid.uuid4().hex,
            github_id=github_id,
            github_login=github_login,
            name=github_user_data.get("name") or github_login,
            email=github_user_data.get("email"),
            image=github_user_data.get("avatar_url"),
            created_at=now,
            updated_at=now,
        )
        db.add(user)

    db.commit()
    db.refresh(user)
    return user


def store_github_token(db: Session, user: User, provider_account_id: str, access_token: str,
                       token_type: str | None, scope: str | None):
    existing = (
        db.query(Account)
        .filter(Account.user_id == user.id, Account.provider == GITHUB_PROVIDER)
        .order_by(Account.id)
        .first()
    )
    now = datetime.utcnow()
    if existing:
        existing.provider_account_id = provider_account_id
        existing.access_token = access_token
        existing.token_type = token_type
        existing.scope = scope
        existing.updated_at = now
    else:
        db.add(Account(
            user_id=user.id,
            type="oauth",
            provider=GITHUB_PROVIDER,
            provider_account_id=provider_account_id,
            access_token=access_token,
            token_type=token_type,
            scope=scope,
            created_at=now,
            updated_at=now,
        ))

    db.commit()


async def fetch_github_user(code: str, settings: Settings, redirect_uri: str, state: str | None = None):
    """Exchange the code and load the GitHub profile. Returns (token_data, user_data)."""
    token_data = await exchange_code_for_token(
        settings.GITHUB_CLIENT_ID,
        settings.GITHUB_CLIENT_SECRET,
        code,
        redirect_uri=redirect_uri,
        state=state,
    )
    user_data = await GitHubClient(token_data["access_token"]).get_authenticated_user()
    return token_data, user_data


# ----- Primary sign-in -----

@router.get("/github/login")
def github_login(settings: Settings = Depends(get_settings)):
    # Random state token protects the callback against CSRF
    state = secrets.token_urlsafe(16)
    STATE_TOKENS.add(state)

    params = {
        "client_id": settings.GITHUB_CLIENT_ID,
        "redirect_uri": settings.GITHUB_OAUTH_CALLBACK_URL,
        "scope": settings.GITHUB_OAUTH_SCOPES,
        "state": state,
        "allow_signup": "true",
    }
    url = GITHUB_AUTHORIZE_URL + "?" + urllib.parse.urlencode(params)
    return RedirectResponse(url)


@router.get("/github/callback")
async def github_callback(
    code: str = None,
    state: str = None,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    if not state or state not in STATE_TOKENS:
        raise HTTPException(status_code=400, detail="Invalid state")
    STATE_TOKENS.discard(state)

    if not code:
        raise HTTPException(status_code=400, detail="Missing code")

    try:
        token_data, github_user_data = await fetch_github_user(
            code, settings, settings.GITHUB_OAUTH_CALLBACK_URL, state
        )
    except (GitHubOAuthError, httpx.HTTPError) as exc:
        logger.error("GitHub sign-in failed: %s", exc)
        raise HTTPException(status_code=400, detail="Failed to get access token")

    access_token = token_data["access_token"]
    user = get_or_create_user_from_github(db, github_user_data)
    store_github_token(db, user, str(github_user_data.get("id")), access_token,
                       token_data.get("token_type"), token_data.get("scope"))

    session_token = create_session_token(
        settings, user.id, name=user.name, email=user.email, image=user.image, access_token=access_token
    )
    response = RedirectResponse(url="/dashboard", status_code=302)
    response.set_cookie(
        key=SESSION_COOKIE,
        value=session_token,
        max_age=settings.SESSION_MAX_AGE,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    logger.info("Primary sign-in for GitHub user %s", github_user_data.get("login"))
    return response


# ----- Direct exchange (fallback cookies) -----

def _direct_login_error(message: str) -> RedirectResponse:
    query = urllib.parse.urlencode({"error": message})
    return RedirectResponse(url=f"/auth/direct-login?{query}", status_code=302)


@router.get("/direct/callback")
async def direct_callback(
    code: str = None,
    error: str = None,
    error_description: str = None,
    settings: Settings = Depends(get_settings),
):
    if error:
        logger.error("GitHub OAuth error received: %s %s", error, error_description or "")
        return _direct_login_error(error_description or error)

    if not code:
        return _direct_login_error("no_code")

    if not settings.GITHUB_CLIENT_SECRET:
        logger.error("Missing GITHUB_CLIENT_SECRET")
        return _direct_login_error("missing_client_secret")

    try:
        token_data, github_user_data = await fetch_github_user(
            code, settings, settings.GITHUB_DIRECT_CALLBACK_URL
        )
    except (GitHubOAuthError, httpx.HTTPError) as exc:
        logger.error("GitHub direct exchange failed: %s", exc)
        return _direct_login_error(str(exc))

    response = RedirectResponse(url="/dashboard", status_code=302)
    cookie_options = dict(
        max_age=settings.AUTH_COOKIE_MAX_AGE,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    response.set_cookie(FALLBACK_USER_ID_COOKIE, str(github_user_data.get("id")), **cookie_options)
    response.set_cookie(FALLBACK_USER_LOGIN_COOKIE, github_user_data.get("login") or "", **cookie_options)
    response.set_cookie(FALLBACK_ACCESS_TOKEN_COOKIE, token_data["access_token"], **cookie_options)

    logger.info("Direct sign-in for GitHub user %s", github_user_data.get("login"))
    return response


# ----- Session -----

@router.get("/session")
def current_session(identity: Identity | None = Depends(get_identity)):
    if identity is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return identity.to_public_dict()


@router.get("/logout")
def logout():
    response = RedirectResponse(url="/", status_code=302)
    for key in (SESSION_COOKIE,) + FALLBACK_COOKIES:
        response.delete_cookie(key)
    return response
