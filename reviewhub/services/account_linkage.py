# reviewhub/services/account_linkage.py
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from reviewhub.core.logger import get_logger
from reviewhub.models import Account, User, GITHUB_PROVIDER
from reviewhub.services.identity import Identity

logger = get_logger(__name__)

DEFAULT_TOKEN_TYPE = "bearer"
DEFAULT_SCOPE = "read:user,user:email,repo"

CREATED_USER = "Created missing user record"
CREATED_ACCOUNT = "Created missing GitHub account record"
UPDATED_TOKEN = "Updated GitHub access token"


@dataclass
class LinkageRepairResult:
    fixed: bool = False
    actions: list[str] = field(default_factory=list)
    error: str | None = None


def get_user(db: Session, user_id: str) -> User | None:
    return db.query(User).filter(User.id == user_id).first()


def get_github_account(db: Session, user_id: str) -> Account | None:
    # Duplicates are possible; the oldest row is the one we treat as canonical.
    return (
        db.query(Account)
        .filter(Account.user_id == user_id, Account.provider == GITHUB_PROVIDER)
        .order_by(Account.id)
        .first()
    )


def repair_account_linkage(db: Session, identity: Identity) -> LinkageRepairResult:
    """
    Make sure the identity has a User row and a GitHub Account row.

    Missing rows are created; an existing account always gets the identity's
    access token written over it. Safe to call repeatedly.
    """
    if not identity.user_id:
        raise ValueError("identity.user_id is required")

    result = LinkageRepairResult()
    user_id = identity.user_id
    now = datetime.utcnow()

    try:
        if get_user(db, user_id) is None:
            db.add(User(
                id=user_id,
                name=identity.user_name or "",
                email=identity.email or "",
                image=identity.image or "",
                created_at=now,
                updated_at=now,
            ))
            db.commit()
            result.actions.append(CREATED_USER)

        account = get_github_account(db, user_id)
        if account is None and identity.access_token:
            db.add(Account(
                user_id=user_id,
                type="oauth",
                provider=GITHUB_PROVIDER,
                provider_account_id=user_id,
                access_token=identity.access_token,
                token_type=DEFAULT_TOKEN_TYPE,
                scope=DEFAULT_SCOPE,
                created_at=now,
                updated_at=now,
            ))
            db.commit()
            result.actions.append(CREATED_ACCOUNT)
        elif account is not None and identity.access_token:
            accounts = (
                db.query(Account)
                .filter(Account.user_id == user_id, Account.provider == GITHUB_PROVIDER)
                .all()
            )
            for linked in accounts:
                linked.access_token = identity.access_token
                linked.updated_at = now
            db.commit()
            result.actions.append(UPDATED_TOKEN)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Account linkage repair failed for user %s: %s", user_id, exc)
        result.error = str(exc)

    result.fixed = bool(result.actions)
    logger.info("Account linkage repair for user %s (%s): %s", user_id, identity.method, result.actions or "nothing to do")
    return result
