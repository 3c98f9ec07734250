"""FastAPI routes: login, filtered listing, and column metadata.

``create_api()`` returns a standalone FastAPI app (served by
``reflex-filter-grid serve-api``) that can also be mounted into a Reflex
app through ``rx.App(api_transformer=...)``.

Routes::

    POST /auth/login          {username, password} -> {success, message, access_token}
    GET  /tasks/table-data    ?<filterKey>=<value>...  -> {data, total}     (bearer)
    GET  /tasks/column-info   -> [ColumnDescriptor, ...]                   (bearer)
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Response
from pydantic import BaseModel

from reflex_filter_grid.auth import TokenIssuer
from reflex_filter_grid.config import GridAppSettings, get_settings
from reflex_filter_grid.exceptions import AuthenticationError, SessionError
from reflex_filter_grid.filter_state import from_query_params
from reflex_filter_grid.log import redact_sensitive_data
from reflex_filter_grid.models import filter_types
from reflex_filter_grid.repository import EmployeeRepository, ListingRepository

logger = logging.getLogger(__name__)


class LoginRequest(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    success: bool
    message: str
    access_token: str


def bearer_dependency(issuer: TokenIssuer):
    """Build a dependency that requires a valid ``Authorization: Bearer`` token.

    Returns the token claims; raises HTTP 401 otherwise.
    """

    async def require_token(request: Request) -> dict[str, Any]:
        header = request.headers.get("authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise HTTPException(status_code=401, detail="Authentication token required")
        try:
            return issuer.verify(token.strip())
        except SessionError as exc:
            logger.info("rejected bearer token: %s", exc)
            raise HTTPException(status_code=401, detail="Invalid token") from exc

    return require_token


def create_auth_router(issuer: TokenIssuer, settings: GridAppSettings) -> APIRouter:
    """Router with ``POST /auth/login``."""
    router = APIRouter(prefix="/auth", tags=["authentication"])

    @router.post("/login", response_model=LoginResponse)
    async def auth_login(body: LoginRequest, response: Response) -> LoginResponse:
        logger.debug("login request %s", redact_sensitive_data(body.model_dump()))
        try:
            token = issuer.login(body.username, body.password)
        except AuthenticationError as exc:
            raise HTTPException(status_code=401, detail=exc.message) from exc

        response.set_cookie(
            key=settings.token.cookie_name,
            value=token,
            httponly=False,
            secure=settings.cookie.secure,
            samesite=settings.cookie.same_site,
            max_age=settings.session_cookie_max_age,
            path=settings.cookie.path,
        )
        return LoginResponse(success=True, message="Login successful", access_token=token)

    return router


def create_tasks_router(repository: ListingRepository, issuer: TokenIssuer) -> APIRouter:
    """Router with the bearer-protected ``/tasks/*`` listing routes."""
    router = APIRouter(
        prefix="/tasks",
        tags=["tasks"],
        dependencies=[Depends(bearer_dependency(issuer))],
    )

    @router.get("/table-data")
    async def table_data(request: Request) -> dict[str, Any]:
        types = filter_types(repository.columns())
        filters = from_query_params(list(request.query_params.multi_items()), types)
        rows, total = repository.list(filters)
        return {"data": rows, "total": total}

    @router.get("/column-info")
    async def column_info() -> list[dict[str, Any]]:
        return [column.to_json_dict() for column in repository.columns()]

    return router


def create_api(
    settings: GridAppSettings | None = None,
    repository: ListingRepository | None = None,
    issuer: TokenIssuer | None = None,
    app: FastAPI | None = None,
) -> FastAPI:
    """Assemble the API.

    Args:
        settings: App settings; defaults to :func:`get_settings`.
        repository: Listing repository; defaults to the employee directory.
        issuer: Token issuer; defaults to one built from ``settings.token``.
        app: Existing FastAPI app to add the routes to (used when mounting
            into Reflex); a new one is created when omitted.

    Returns:
        The FastAPI app with ``/auth`` and ``/tasks`` routes.
    """
    settings = settings or get_settings()
    repository = repository or EmployeeRepository()
    issuer = issuer or TokenIssuer(settings.token)
    if app is None:
        app = FastAPI(title="reflex-filter-grid API")
    app.include_router(create_auth_router(issuer, settings))
    app.include_router(create_tasks_router(repository, issuer))
    return app
