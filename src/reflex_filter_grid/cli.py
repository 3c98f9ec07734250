"""CLI for reflex-filter-grid -- serve and query the employee listing API.

Usage::

    # Serve the auth + listing API on :8000
    reflex-filter-grid serve-api --port 8000

    # Print a session token for the demo user
    reflex-filter-grid token --username test --password test123

    # Filtered listing (in-process unless --url is given)
    reflex-filter-grid query --filter department=개발팀 --filter age=30

    # Column descriptors as JSON
    reflex-filter-grid columns
"""

import asyncio
import json
from typing import Annotated, Any, Optional

import httpx
import typer

from reflex_filter_grid.api import create_api
from reflex_filter_grid.auth import TokenIssuer
from reflex_filter_grid.client import ApiClient
from reflex_filter_grid.config import ApiSettings, get_settings
from reflex_filter_grid.exceptions import FilterGridError
from reflex_filter_grid.filter_state import from_query_params
from reflex_filter_grid.log import get_logger
from reflex_filter_grid.session import SessionContext

app = typer.Typer(
    name="reflex-filter-grid",
    help="Serve and query the filterable employee listing API.",
    no_args_is_help=True,
)

# Base URL used when the API runs in-process behind an ASGI transport.
_IN_PROCESS_URL: str = "http://filter-grid.local"


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, ensure_ascii=False, indent=2, default=str))


def _parse_filters(pairs: list[str]) -> dict[str, Any]:
    """Turn ``key=value`` options into a filter state (repeated keys -> list)."""
    items: list[tuple[str, str]] = []
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"expected key=value, got {pair!r}", param_hint="--filter")
        items.append((key.strip(), value))
    return from_query_params(items)


def _client(url: str | None, session: SessionContext) -> ApiClient:
    settings = get_settings().api
    if url:
        return ApiClient(ApiSettings(base_url=url, timeout=settings.timeout), session)
    transport = httpx.ASGITransport(app=create_api())
    return ApiClient(
        ApiSettings(base_url=_IN_PROCESS_URL, timeout=settings.timeout),
        session,
        transport=transport,
    )


async def _query(url: str | None, username: str, password: str, filters: dict[str, Any]) -> dict[str, Any]:
    session = SessionContext()
    async with _client(url, session) as client:
        await client.login(username, password)
        result = await client.list_rows(filters)
    return {"data": result.rows, "total": result.total}


async def _columns(url: str | None, username: str, password: str) -> list[dict[str, Any]]:
    session = SessionContext()
    async with _client(url, session) as client:
        await client.login(username, password)
        columns = await client.column_info()
    return [c.to_json_dict() for c in columns]


UrlOption = Annotated[
    Optional[str],
    typer.Option("--url", help="API base URL; the API runs in-process when omitted."),
]
UsernameOption = Annotated[str, typer.Option("--username", "-u", help="Login username.")]
PasswordOption = Annotated[str, typer.Option("--password", "-p", help="Login password.")]


@app.command()
def serve_api(
    host: Annotated[str, typer.Option(help="Interface to bind.")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Port to listen on.")] = 8000,
    log_level: Annotated[str, typer.Option(help="Log level of the package logger.")] = "INFO",
) -> None:
    """Serve ``/auth/login`` and the ``/tasks`` listing routes with uvicorn."""
    import uvicorn

    get_logger(log_level.upper())
    typer.echo(f"Serving reflex-filter-grid API on http://{host}:{port}")
    uvicorn.run(create_api(), host=host, port=port, log_level=log_level.lower())


@app.command()
def token(
    username: UsernameOption = "test",
    password: PasswordOption = "test123",
) -> None:
    """Issue a session token for the given credentials."""
    issuer = TokenIssuer(get_settings().token)
    try:
        typer.echo(issuer.login(username, password))
    except FilterGridError as exc:
        typer.echo(f"Error: {exc.message}", err=True)
        raise typer.Exit(code=1) from exc


@app.command()
def query(
    filter_: Annotated[
        Optional[list[str]],
        typer.Option("--filter", "-f", help="Filter as key=value; repeat for more."),
    ] = None,
    url: UrlOption = None,
    username: UsernameOption = "test",
    password: PasswordOption = "test123",
) -> None:
    """Print the filtered listing as JSON."""
    filters = _parse_filters(filter_ or [])
    try:
        _echo_json(asyncio.run(_query(url, username, password, filters)))
    except FilterGridError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


@app.command()
def columns(
    url: UrlOption = None,
    username: UsernameOption = "test",
    password: PasswordOption = "test123",
) -> None:
    """Print the column descriptors as JSON."""
    try:
        _echo_json(asyncio.run(_columns(url, username, password)))
    except FilterGridError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
