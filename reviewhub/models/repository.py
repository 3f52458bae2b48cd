# reviewhub/models/repository.py
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Boolean, Text, UniqueConstraint
from reviewhub.core.db import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class Repository(Base):
    __tablename__ = "repositories"
    __table_args__ = (UniqueConstraint("full_name", "user_id", name="uq_repositories_full_name_user"),)

    id = Column(String, primary_key=True, default=_new_id)

    name = Column(String, nullable=False)                    # "repo"
    owner = Column(String, nullable=False)                   # owner login as recorded at connect time
    full_name = Column(String, nullable=False)               # "owner/repo"

    # Not a foreign key: ownership repair points this at a provider account id.
    user_id = Column(String, nullable=False, index=True)

    description = Column(Text, nullable=True)
    language = Column(String, nullable=True)
    is_private = Column(Boolean, nullable=True, default=False)
    url = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
