# reviewhub/api/deps.py
from typing import Optional

from fastapi import Depends, HTTPException, Request

from reviewhub.core.config import Settings
from reviewhub.services.identity import Identity, resolve_identity


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_identity(request: Request) -> Optional[Identity]:
    return resolve_identity(request, request.app.state.primary_resolver)


def require_identity(identity: Optional[Identity] = Depends(get_identity)) -> Identity:
    if identity is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return identity
