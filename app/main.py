"""FastAPI application entrypoint. No business logic; only wiring, middleware and error mapping."""

from dotenv import load_dotenv

load_dotenv()

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session, sessionmaker

from app.api.v1 import router as v1_router
from app.core.config import Settings, get_settings
from app.core.database import SessionLocal
from app.services.access import AccessGate
from app.services.auth import AuthService
from app.services.credentials import CredentialStore
from app.services.errors import AuthError, UnauthorizedError
from app.services.sessions import SessionRegistry
from app.services.tokens import TokenService

logger = logging.getLogger(__name__)


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Map typed auth failures to their HTTP status with a {"detail": message} body."""
    logger.warning(
        "Auth request failed",
        extra={
            "path": request.url.path,
            "method": request.method,
            "status_code": exc.status_code,
            "error": type(exc).__name__,
        },
    )
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthorizedError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers=headers,
    )


def create_app(
    settings: Settings | None = None,
    session_factory: sessionmaker[Session] | None = None,
) -> FastAPI:
    """
    Build the app. Stores, token service, orchestrator and gate are constructed
    here once and shared by all requests through app.state.
    """
    settings = settings or get_settings()
    session_factory = session_factory or SessionLocal

    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )

    tokens = TokenService.from_settings(settings)
    users = CredentialStore(session_factory, bcrypt_rounds=settings.BCRYPT_ROUNDS)
    sessions = SessionRegistry(session_factory)

    app = FastAPI(
        title="Panel API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.auth_service = AuthService(users, sessions, tokens, settings)
    app.state.access_gate = AccessGate(tokens)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.APP_ENV == "dev" else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(AuthError, auth_error_handler)
    app.include_router(v1_router, prefix=settings.API_V1_PREFIX)

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": "Panel API"}

    return app


app = create_app()
