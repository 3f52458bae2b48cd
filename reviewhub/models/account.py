# reviewhub/models/account.py
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from reviewhub.core.db import Base

GITHUB_PROVIDER = "github"


class Account(Base):
    __tablename__ = "accounts"

    # (user_id, provider) is meant to be unique but nothing enforces it
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String, nullable=False)                     # e.g. "oauth"
    provider = Column(String, nullable=False, index=True)      # e.g. "github"
    provider_account_id = Column(String, nullable=False)     # GitHub user id
    access_token = Column(String, nullable=True)
    refresh_token = Column(String, nullable=True)
    token_type = Column(String, nullable=True)        # e.g. "bearer"
    scope = Column(String, nullable=True)             # e.g. "repo,read:user"

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", backref="accounts")
