"""Auth endpoints and the access-gate dependency (bearer extraction + operation policy)."""

from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.schemas.auth import (
    ApiResponse,
    CurrentUser,
    LoginRequest,
    LoginResult,
    LogoutAllResult,
    LogoutRequest,
    RefreshRequest,
    RegisterRequest,
    SessionPublic,
    TokenPair,
    UserPublic,
)
from app.services.access import AccessGate
from app.services.auth import AuthService

router = APIRouter()
security = HTTPBearer(auto_error=False)

UNKNOWN = "Unknown"


def get_auth_service(request: Request) -> AuthService:
    """Dependency: the AuthService built once in create_app()."""
    return request.app.state.auth_service


def require_operation(operation: str) -> Callable[..., CurrentUser | None]:
    """
    Dependency factory: run the access gate for one entry of OPERATION_POLICIES.

    Returns the principal for authenticated operations, None for public ones.
    Raises UnauthorizedError (401) or ForbiddenError (403).
    """

    def gate_dependency(
        request: Request,
        credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    ) -> CurrentUser | None:
        gate: AccessGate = request.app.state.access_gate
        token = credentials.credentials if credentials is not None else None
        return gate.authorize(operation, token)

    return gate_dependency


def get_client_ip(request: Request) -> str:
    """First X-Forwarded-For entry for proxied requests, else the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded and forwarded.split(",")[0].strip():
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN


def get_user_agent(request: Request) -> str:
    return request.headers.get("User-Agent") or UNKNOWN


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


@router.post(
    "/register",
    response_model=ApiResponse[UserPublic],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_operation("auth.register"))],
)
def register(body: RegisterRequest, auth: AuthServiceDep) -> ApiResponse[UserPublic]:
    """Create an account. 409 if the email or username is already registered."""
    user = auth.register(
        username=body.username,
        email=str(body.email),
        password=body.password,
        name=body.name,
    )
    return ApiResponse[UserPublic](message="Registration successful", data=user)


@router.post(
    "/login",
    response_model=ApiResponse[LoginResult],
    dependencies=[Depends(require_operation("auth.login"))],
)
def login(
    body: LoginRequest,
    request: Request,
    auth: AuthServiceDep,
) -> ApiResponse[LoginResult]:
    """
    Authenticate with username or email and password.
    Returns the user plus an access token (send as `Authorization: Bearer <accessToken>`)
    and a refresh token (send to /auth/refresh).
    """
    result = auth.login(
        identifier=body.identifier,
        password=body.password,
        device_info=get_user_agent(request),
        ip_address=get_client_ip(request),
    )
    return ApiResponse[LoginResult](message="Login successful", data=result)


@router.post(
    "/refresh",
    response_model=ApiResponse[TokenPair],
    dependencies=[Depends(require_operation("auth.refresh"))],
)
def refresh(body: RefreshRequest, auth: AuthServiceDep) -> ApiResponse[TokenPair]:
    """Exchange a refresh token for a new pair. The presented token stops working."""
    pair = auth.refresh(body.refresh_token)
    return ApiResponse[TokenPair](message="Token refreshed", data=pair)


@router.post("/logout", response_model=ApiResponse[None])
def logout(
    auth: AuthServiceDep,
    current_user: Annotated[CurrentUser, Depends(require_operation("auth.logout"))],
    body: LogoutRequest | None = None,
) -> ApiResponse[None]:
    """Revoke the given session, or the most recent one. Succeeds even if nothing was revoked."""
    auth.logout(current_user.id, body.session_id if body is not None else None)
    return ApiResponse[None](message="Logout successful")


@router.post("/logout-all", response_model=ApiResponse[LogoutAllResult])
def logout_all(
    auth: AuthServiceDep,
    current_user: Annotated[CurrentUser, Depends(require_operation("auth.logout_all"))],
) -> ApiResponse[LogoutAllResult]:
    """Revoke every session of the caller."""
    count = auth.logout_all(current_user.id)
    return ApiResponse[LogoutAllResult](
        message=f"Logged out from {count} device(s)",
        data=LogoutAllResult(count=count),
    )


@router.get("/me", response_model=ApiResponse[UserPublic])
def me(
    auth: AuthServiceDep,
    current_user: Annotated[CurrentUser, Depends(require_operation("auth.me"))],
) -> ApiResponse[UserPublic]:
    """Profile of the caller (no password hash)."""
    return ApiResponse[UserPublic](
        message="Profile retrieved successfully",
        data=auth.get_profile(current_user.id),
    )


@router.get("/sessions", response_model=ApiResponse[list[SessionPublic]])
def sessions(
    auth: AuthServiceDep,
    current_user: Annotated[CurrentUser, Depends(require_operation("auth.sessions"))],
) -> ApiResponse[list[SessionPublic]]:
    """Active sessions of the caller, newest first."""
    return ApiResponse[list[SessionPublic]](
        message="Sessions retrieved successfully",
        data=auth.get_sessions(current_user.id),
    )


@router.get(
    "/users",
    response_model=ApiResponse[list[UserPublic]],
    dependencies=[Depends(require_operation("auth.list_users"))],
)
def list_users(auth: AuthServiceDep) -> ApiResponse[list[UserPublic]]:
    """List all users (admin only)."""
    return ApiResponse[list[UserPublic]](
        message="Users retrieved successfully",
        data=auth.list_users(),
    )
