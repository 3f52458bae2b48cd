# reviewhub/core/db.py
from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

# SQLAlchemy Base class (for our models)
Base = declarative_base()


class Database:
    """Engine + session factory, built once at startup and handed to whoever needs the store."""

    def __init__(self, url: str, **engine_kwargs):
        if url.startswith("sqlite"):
            engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
            if ":memory:" in url or url == "sqlite://":
                engine_kwargs.setdefault("poolclass", StaticPool)
        else:
            engine_kwargs.setdefault("pool_pre_ping", True)

        self.url = url
        self.engine = create_engine(url, **engine_kwargs)
        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, expire_on_commit=False, bind=self.engine
        )

    def create_all(self):
        import reviewhub.models  # noqa: F401  register tables on Base

        Base.metadata.create_all(bind=self.engine)

    def session(self):
        return self.SessionLocal()

    def dispose(self):
        self.engine.dispose()


# Dependency for FastAPI routes
def get_db(request: Request):
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
