# reviewhub/services/repository_ownership.py
from dataclasses import dataclass, field, asdict
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from reviewhub.core.logger import get_logger
from reviewhub.models import Account, Repository, User, GITHUB_PROVIDER

logger = get_logger(__name__)

UPDATED = "updated"
SKIPPED = "skipped"
FAILED = "failed"

NO_MATCHING_ACCOUNT = "no matching account"


@dataclass
class RepairResult:
    repository: str
    status: str
    old_user_id: str | None = None
    new_user_id: str | None = None
    reason: str | None = None

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class OwnershipRepairResult:
    processed: int = 0
    results: list[RepairResult] = field(default_factory=list)
    error: str | None = None


def find_owner_account(db: Session, owner: str) -> Account | None:
    """First GitHub account whose user's name matches `owner`, ignoring case."""
    return (
        db.query(Account)
        .join(User, User.id == Account.user_id)
        .filter(func.lower(User.name) == owner.lower(), Account.provider == GITHUB_PROVIDER)
        .order_by(Account.id)
        .first()
    )


def repair_repository_ownership(db: Session) -> OwnershipRepairResult:
    """
    Point every repository's user_id at its owner's GitHub provider account id.

    Each repository is committed on its own, so a failure part way through
    leaves earlier repositories fixed. Re-running is harmless.
    """
    result = OwnershipRepairResult()

    try:
        repositories = db.query(Repository).order_by(Repository.full_name).all()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Could not list repositories: %s", exc)
        result.error = str(exc)
        return result

    # Plain values only: a rollback expires the ORM rows and reloading them needs the store.
    rows = [(r.id, r.full_name, r.owner, r.user_id) for r in repositories]
    logger.info("Found %d repositories to check", len(rows))

    for repo_id, full_name, owner, old_user_id in rows:
        try:
            account = find_owner_account(db, owner or "")
            if account is None:
                logger.info("No GitHub account found for repository owner %s", owner)
                result.results.append(RepairResult(
                    repository=full_name,
                    status=SKIPPED,
                    old_user_id=old_user_id,
                    reason=NO_MATCHING_ACCOUNT,
                ))
                continue

            new_user_id = account.provider_account_id
            (
                db.query(Repository)
                .filter(Repository.id == repo_id)
                .update({Repository.user_id: new_user_id, Repository.updated_at: datetime.utcnow()},
                        synchronize_session=False)
            )
            db.commit()
            logger.info("Repository %s: user %s -> %s", full_name, old_user_id, new_user_id)
            result.results.append(RepairResult(
                repository=full_name,
                status=UPDATED,
                old_user_id=old_user_id,
                new_user_id=new_user_id,
            ))
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Repository %s could not be repaired: %s", full_name, exc)
            result.results.append(RepairResult(
                repository=full_name,
                status=FAILED,
                old_user_id=old_user_id,
                reason=str(exc),
            ))

    result.processed = len(rows)
    return result
