# reviewhub/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from reviewhub.api.auth_github import router as github_auth_router
from reviewhub.api.debug import router as debug_router
from reviewhub.api.repair import router as repair_router
from reviewhub.api.repositories import router as repositories_router
from reviewhub.core.config import Settings, settings as default_settings
from reviewhub.core.db import Database
from reviewhub.services.identity import PrimarySessionResolver, session_cookie_resolver


def create_app(
    settings: Settings | None = None,
    database: Database | None = None,
    primary_resolver: PrimarySessionResolver | None = None,
) -> FastAPI:
    settings = settings or default_settings
    database = database or Database(settings.DATABASE_URL)

    app = FastAPI(title="Reviewhub Backend")
    app.state.settings = settings
    app.state.database = database
    app.state.primary_resolver = primary_resolver or session_cookie_resolver(settings)

    # Include routers
    app.include_router(github_auth_router)
    app.include_router(repositories_router)
    app.include_router(repair_router)
    app.include_router(debug_router)

    @app.on_event("startup")
    def on_startup():
        # Create missing tables; column changes go through `python -m reviewhub.manage fix-schema`
        database.create_all()

    @app.on_event("shutdown")
    def on_shutdown():
        database.dispose()

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # dev only
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    return app


app = create_app()
