# reviewhub/api/debug.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from reviewhub.api.deps import get_identity, get_settings
from reviewhub.core.config import Settings
from reviewhub.core.db import get_db
from reviewhub.core.logger import get_logger
from reviewhub.models import Repository, User
from reviewhub.services.account_linkage import get_github_account, get_user
from reviewhub.services.identity import Identity

logger = get_logger(__name__)

router = APIRouter(prefix="/api/debug", tags=["debug"])


def _user_dict(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "github_id": user.github_id,
        "github_login": user.github_login,
    }


def _repository_dict(repo: Repository) -> dict:
    return {"id": repo.id, "full_name": repo.full_name, "owner": repo.owner, "user_id": repo.user_id}


@router.get("")
def debug_overview(identity: Optional[Identity] = Depends(get_identity), db: Session = Depends(get_db)):
    try:
        users = db.query(User).all()
        repositories = db.query(Repository).all()
    except SQLAlchemyError as exc:
        logger.error("Debug overview failed: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to fetch debug data")

    current = [r for r in repositories if identity and r.user_id == identity.user_id]
    return {
        "session_user_id": identity.user_id if identity else "not-authenticated",
        "users": [_user_dict(u) for u in users],
        "repositories": [_repository_dict(r) for r in repositories],
        "current_user_repositories": [_repository_dict(r) for r in current],
        "repositories_count": {"total": len(repositories), "current_user": len(current)},
    }


@router.get("/auth")
def debug_auth(
    identity: Optional[Identity] = Depends(get_identity),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    if identity is None:
        return JSONResponse(
            status_code=401,
            content={"status": "unauthenticated", "user_id": None, "error": "No active session found"},
        )

    user_data = None
    account_data = None
    try:
        user = get_user(db, identity.user_id)
        if user:
            user_data = _user_dict(user)

        account = get_github_account(db, identity.user_id)
        if account:
            account_data = {
                "provider": account.provider,
                "provider_account_id": account.provider_account_id,
                "has_access_token": bool(account.access_token),
                "has_refresh_token": bool(account.refresh_token),
                "token_type": account.token_type,
                "scope": account.scope,
            }
    except SQLAlchemyError as exc:
        # Diagnostics still report the session side when the store is down.
        logger.error("Error getting user/account data: %s", exc)

    return {
        "auth_state": "authenticated",
        "session": identity.to_public_dict(),
        "database": {
            "user_found": user_data is not None,
            "user_data": user_data,
            "account_found": account_data is not None,
            "account_data": account_data,
        },
        "environment": _oauth_env(settings),
    }


@router.get("/oauth-env")
def debug_oauth_env(settings: Settings = Depends(get_settings)):
    return _oauth_env(settings)


def _oauth_env(settings: Settings) -> dict:
    return {
        "environment": settings.ENVIRONMENT,
        "github_client_id_set": bool(settings.GITHUB_CLIENT_ID),
        "github_client_secret_set": bool(settings.GITHUB_CLIENT_SECRET),
        "oauth_callback_url": settings.GITHUB_OAUTH_CALLBACK_URL or "Not set",
        "direct_callback_url": settings.GITHUB_DIRECT_CALLBACK_URL or "Not set",
    }
