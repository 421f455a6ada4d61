from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Header, HTTPException, Query, status
from fastapi.responses import HTMLResponse

from ..logging_conf import get_logger
from ..service import users_service
from ..ui.loading import LoadingOptions, render_page
from .models import (
    ApiTestResponse,
    AuthResponse,
    HealthResponse,
    LoginRequest,
    ProfileResponse,
    RegisterRequest,
)

router = APIRouter()
users = APIRouter(prefix="/api/users")
logger = get_logger("api")


def _error(code: int, exc: users_service.UserServiceError) -> HTTPException:
    return HTTPException(
        status_code=code,
        detail={"error_code": exc.code, "error_message": str(exc)},
    )


def _bearer(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


@router.get("/health", response_model=HealthResponse, summary="Liveness/readiness check")
async def health() -> HealthResponse:
    return HealthResponse(status="ok", timestamp=datetime.now(UTC).isoformat(timespec="milliseconds"))


@router.get("/api/test", response_model=ApiTestResponse, summary="API reachability check")
async def api_test() -> ApiTestResponse:
    return ApiTestResponse(message="API is working")


@users.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
def register(req: RegisterRequest) -> AuthResponse:
    """Create a user and return it with a bearer token."""
    try:
        out = users_service.register(username=req.username, email=req.email, password=req.password)
    except users_service.UserServiceError as e:
        raise _error(status.HTTP_400_BAD_REQUEST, e)
    return AuthResponse(**out)


@users.post("/login", response_model=AuthResponse, summary="Log in with email and password")
def login(req: LoginRequest) -> AuthResponse:
    """Exchange credentials for a bearer token."""
    try:
        out = users_service.login(email=req.email, password=req.password)
    except users_service.InvalidCredentialsError as e:
        raise _error(status.HTTP_401_UNAUTHORIZED, e)
    return AuthResponse(**out)


@users.get("/profile", response_model=ProfileResponse, summary="Current user's profile")
async def profile(authorization: str | None = Header(default=None)) -> ProfileResponse:
    """Return the user owning the bearer token."""
    try:
        out = users_service.profile(token=_bearer(authorization))
    except users_service.AuthenticationError as e:
        raise _error(status.HTTP_401_UNAUTHORIZED, e)
    return ProfileResponse(**out)


@router.get("/ui/loading", response_class=HTMLResponse, summary="Loading indicator preview")
async def loading_preview(
    text: str = Query("Loading..."),
    size: int = Query(40, gt=0),
    full_page: bool = Query(False),
    height: str | None = Query(None, description="Pixels (e.g. 300) or any CSS length"),
) -> HTMLResponse:
    """Render the loading indicator as a standalone page."""
    parsed: int | str | None = int(height) if height and height.isdigit() else height
    opts = LoadingOptions(text=text, size=size, full_page=full_page, height=parsed)
    return HTMLResponse(content=render_page(opts))


router.include_router(users)
