from __future__ import annotations

import typer

from formdesk.config import ROLES, Settings, ensure_dirs
from formdesk.storage import init_storage

cli = typer.Typer(add_completion=False)


def run_server(host: str | None, port: int | None) -> None:
    import uvicorn

    from formdesk.app import create_app

    settings = Settings()
    resolved_host = host or settings.host
    resolved_port = port if port is not None else settings.port
    uvicorn.run(
        create_app(settings),
        host=resolved_host,
        port=resolved_port,
        log_level=settings.log_level,
    )


@cli.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    host: str | None = typer.Option(None, help="Address to bind"),
    port: int | None = typer.Option(None, help="Port to bind"),
) -> None:
    ctx.obj = {"host": host, "port": port}
    if ctx.invoked_subcommand is None:
        run_server(host, port)


@cli.command()
def run(
    ctx: typer.Context,
    host: str | None = typer.Option(None, help="Address to bind"),
    port: int | None = typer.Option(None, help="Port to bind"),
) -> None:
    base = ctx.obj or {}
    resolved_host = host or base.get("host")
    resolved_port = port if port is not None else base.get("port")
    run_server(resolved_host, resolved_port)


@cli.command("add-user")
def add_user(
    user_id: str = typer.Argument(..., help="User id sent in the X-User-Id header"),
    role: str = typer.Option("user", help="admin or user"),
    email: str | None = typer.Option(None, help="Email address"),
    first_name: str | None = typer.Option(None, help="First name"),
    last_name: str | None = typer.Option(None, help="Last name"),
) -> None:
    if role not in ROLES:
        raise typer.BadParameter(f"role must be one of: {', '.join(sorted(ROLES))}")
    settings = Settings()
    ensure_dirs(settings)
    storage = init_storage(settings)
    user: dict[str, str] = {"id": user_id, "role": role}
    if email:
        user["email"] = email
    if first_name:
        user["first_name"] = first_name
    if last_name:
        user["last_name"] = last_name
    saved = storage.users.upsert_user(user)
    typer.echo(f"{saved['id']} ({saved['role']})")
