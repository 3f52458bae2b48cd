# reviewhub/api/repositories.py
from datetime import datetime

import httpx
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from reviewhub.api.deps import require_identity
from reviewhub.core.db import get_db
from reviewhub.core.logger import get_logger
from reviewhub.github_client import GitHubClient
from reviewhub.models import Repository
from reviewhub.services.identity import Identity

logger = get_logger(__name__)

router = APIRouter(tags=["repositories"])

RECENT_LIMIT = 10

# ----- Pydantic schemas -----

class RepositoryConnect(BaseModel):
    full_name: str   # "owner/repo"


class RepositoryOut(BaseModel):
    id: str
    full_name: str
    description: str = ""
    language: str = ""
    is_private: bool = False
    url: str


class RepositorySummary(BaseModel):
    id: str
    full_name: str
    owner: str
    name: str

    class Config:
        from_attributes = True


def _repository_out(repo: Repository) -> RepositoryOut:
    return RepositoryOut(
        id=repo.id,
        full_name=repo.full_name,
        description=repo.description or "",
        language=repo.language or "",
        is_private=bool(repo.is_private),
        url=repo.url or f"https://github.com/{repo.full_name}",
    )


def _store_error(exc: SQLAlchemyError, what: str) -> HTTPException:
    logger.error("Error fetching %s: %s", what, exc)
    if isinstance(exc, OperationalError):
        return HTTPException(status_code=503, detail="Database connection error")
    return HTTPException(status_code=500, detail=f"Failed to fetch {what}")


# ----- Routes -----

@router.get("/api/repositories", response_model=dict[str, list[RepositoryOut]])
def recent_repositories(userId: str | None = None, db: Session = Depends(get_db)):
    if not userId:
        raise HTTPException(status_code=400, detail="User ID is required")

    try:
        repos = (
            db.query(Repository)
            .filter(Repository.user_id == userId)
            .order_by(Repository.updated_at.desc(), Repository.id.desc())
            .limit(RECENT_LIMIT)
            .all()
        )
    except SQLAlchemyError as exc:
        raise _store_error(exc, "repositories")

    return {"repositories": [_repository_out(r) for r in repos]}


@router.get("/api/repositories/count")
def repository_count(userId: str | None = None, db: Session = Depends(get_db)):
    if not userId:
        raise HTTPException(status_code=400, detail="User ID is required")

    try:
        count = db.query(Repository).filter(Repository.user_id == userId).count()
    except SQLAlchemyError as exc:
        raise _store_error(exc, "repository count")

    return {"count": count}


@router.get("/api/user/repositories")
def user_repositories(identity: Identity = Depends(require_identity), db: Session = Depends(get_db)):
    try:
        repos = (
            db.query(Repository)
            .filter(Repository.user_id == identity.user_id)
            .order_by(Repository.full_name)
            .all()
        )
    except SQLAlchemyError as exc:
        raise _store_error(exc, "repositories")
    return {"repositories": [RepositorySummary.model_validate(r).model_dump() for r in repos]}


@router.post("/api/user/repositories", status_code=201, response_model=RepositoryOut)
async def connect_repository(
    payload: RepositoryConnect,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    full_name = payload.full_name.strip()
    parts = full_name.split("/")
    if len(parts) != 2 or not all(parts):
        raise HTTPException(status_code=400, detail="Invalid repository format")
    owner, name = parts

    existing = (
        db.query(Repository)
        .filter(Repository.full_name == full_name, Repository.user_id == identity.user_id)
        .first()
    )
    if existing:
        raise HTTPException(status_code=409, detail="Repository already connected")

    if not identity.access_token:
        raise HTTPException(status_code=400, detail="GitHub access token not found")

    try:
        details = await GitHubClient(identity.access_token).get_repository(owner, name)
    except httpx.HTTPError as exc:
        logger.warning("GitHub lookup of %s failed: %s", full_name, exc)
        raise HTTPException(status_code=404, detail="Repository not found or you do not have access")

    now = datetime.utcnow()
    repo = Repository(
        name=details.get("name") or name,
        full_name=details.get("full_name") or full_name,
        owner=(details.get("owner") or {}).get("login") or owner,
        description=details.get("description"),
        language=details.get("language"),
        is_private=bool(details.get("private")),
        url=details.get("html_url"),
        user_id=identity.user_id,
        created_at=now,
        updated_at=now,
    )
    db.add(repo)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Repository already connected")
    db.refresh(repo)

    logger.info("User %s connected %s", identity.user_id, repo.full_name)
    return _repository_out(repo)


@router.delete("/api/user/repositories/{repo_id}")
def remove_repository(repo_id: str, identity: Identity = Depends(require_identity), db: Session = Depends(get_db)):
    repo = (
        db.query(Repository)
        .filter(Repository.id == repo_id, Repository.user_id == identity.user_id)
        .first()
    )
    if not repo:
        raise HTTPException(status_code=404, detail="Repository not found")

    db.delete(repo)
    db.commit()
    return {"success": True}


@router.get("/github/repos")
async def list_github_repos(identity: Identity = Depends(require_identity)):
    if not identity.access_token:
        raise HTTPException(status_code=400, detail="No GitHub token found for user")

    repos = await GitHubClient(identity.access_token).get_repos()

    return [
        {
            "full_name": r["full_name"],
            "private": r["private"],
            "default_branch": r.get("default_branch"),
        }
        for r in repos
    ]
