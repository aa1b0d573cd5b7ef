import click


@click.group()
def main() -> None:
    """Codeyard - versioned multi-tenant workspaces with SSH sandbox access."""


@main.command()
@click.option("--host", default=None, help="Bind host (default: from CODEYARD_HOST or 0.0.0.0).")
@click.option("--port", default=None, type=int, help="Bind port (default: from CODEYARD_PORT or 8000).")
@click.option("--reload", is_flag=True, default=False, help="Enable auto-reload for development.")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Start the Workspace Runtime server."""
    import uvicorn

    from codeyard.workspace_runtime.settings import CodeyardSettings

    settings = CodeyardSettings()

    uvicorn.run(
        "codeyard.workspace_runtime.app:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level="warning",  # uvicorn's own logging is intercepted by loguru
    )


@main.command("ssh-check")
def ssh_check() -> None:
    """Connect to the SSH sandbox as the administrator and print host details."""
    import asyncio

    from codeyard.workspace_runtime.app import create_sandbox_manager
    from codeyard.workspace_runtime.errors import BoundaryUnavailableError, RemoteCommandError
    from codeyard.workspace_runtime.log import setup_logging
    from codeyard.workspace_runtime.settings import CodeyardSettings

    settings = CodeyardSettings()
    setup_logging(
        settings.log_level,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )

    manager = create_sandbox_manager(settings)
    try:
        result = asyncio.run(manager.test_connection())
    except (BoundaryUnavailableError, RemoteCommandError) as exc:
        raise click.ClickException(str(exc)) from None
    click.echo(result.stdout.rstrip())
