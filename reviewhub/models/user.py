# reviewhub/models/user.py
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime
from reviewhub.core.db import Base


class User(Base):
    __tablename__ = "users"

    # internal uuid for primary sign-in, GitHub numeric id (as text) for direct sign-in
    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=True)
    email = Column(String, nullable=True)
    image = Column(String, nullable=True)
    github_id = Column(Integer, nullable=True, index=True)
    github_login = Column(String, nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
