"""Command-line interface for ghostpost."""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from ghostpost.config import GhostPostConfig, load_config, merge_cli_overrides
from ghostpost.errors import PublishError, describe_error
from ghostpost.publisher import check_site, publish_document
from ghostpost.vault import EnvSecretStore, LocalVault, secret_env_var

app = typer.Typer(
    name="ghostpost",
    help="Publish markdown notes from a local vault to a Ghost blog.",
)

console = Console()
_stderr_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from ghostpost import __version__

        console.print(f"ghostpost {__version__}")
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=_stderr_console, show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO; keep it for --verbose only
    logging.getLogger("httpx").setLevel(logging.INFO if verbose else logging.WARNING)


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Log every pipeline step and HTTP request."),
    ] = False,
) -> None:
    """ghostpost - publish vault notes to Ghost."""
    _setup_logging(verbose)


ConfigOption = Annotated[
    Optional[Path],
    typer.Option(
        "--config",
        "-c",
        help="Path to a .ghostpost.toml file.",
        dir_okay=False,
    ),
]
BlogUrlOption = Annotated[
    Optional[str],
    typer.Option("--blog-url", help="Ghost blog URL, e.g. https://myblog.com."),
]


def _resolve_config(config_path: Path | None, **overrides: object) -> GhostPostConfig:
    return merge_cli_overrides(load_config(config_path), **overrides)


@app.command(name="publish")
def publish_cmd(
    path: Annotated[
        Path,
        typer.Argument(help="Markdown document to publish (absolute or relative to the vault)."),
    ],
    config_path: ConfigOption = None,
    vault_root: Annotated[
        Optional[Path],
        typer.Option(
            "--vault",
            help="Vault root directory.",
            exists=True,
            file_okay=False,
            dir_okay=True,
        ),
    ] = None,
    blog_url: BlogUrlOption = None,
    api_key_name: Annotated[
        Optional[str],
        typer.Option(
            "--api-key-name",
            help="Name of the secret holding the Admin API key.",
        ),
    ] = None,
) -> None:
    """Publish a document to Ghost, or update it if it was published before.

    The Admin API key is read from the environment variable derived from
    the secret name (ghost-admin-api-key -> GHOST_ADMIN_API_KEY).
    """
    config = _resolve_config(
        config_path,
        blog_url=blog_url,
        api_key_name=api_key_name,
        vault_root=vault_root,
    )
    vault = LocalVault(config.vault.root)

    try:
        active = vault.relative(path)
    except ValueError:
        _stderr_console.print(
            f"[red]Error:[/red] {escape(str(path))} is not inside the vault at {escape(str(vault.root))}"
        )
        raise typer.Exit(1)

    report = asyncio.run(publish_document(config, vault, EnvSecretStore(), active))

    if not report.success:
        _stderr_console.print(f"[red]Error:[/red] {escape(report.user_message())}")
        if report.error and report.error.error_type == "configuration":
            env_var = secret_env_var(config.ghost.api_key_name or "ghost-admin-api-key")
            _stderr_console.print(f"Check --blog-url and the {env_var} environment variable.")
        raise typer.Exit(1)

    console.print(f"[bold green]{escape(report.user_message())}[/bold green]")
    if report.final_path and report.final_path != active:
        console.print(f"  Moved to {escape(report.final_path)}")


@app.command(name="check")
def check_cmd(
    config_path: ConfigOption = None,
    blog_url: BlogUrlOption = None,
) -> None:
    """Check that the Ghost Admin API is reachable."""
    config = _resolve_config(config_path, blog_url=blog_url)

    try:
        site = asyncio.run(check_site(config))
    except PublishError as exc:
        _stderr_console.print(f"[red]Error:[/red] {escape(describe_error(exc))}")
        raise typer.Exit(1)

    console.print(f"[green]Connected to {escape(site.get('title') or config.blog_url)}[/green]")
    if site.get("version"):
        console.print(f"  Ghost version: {site['version']}")
    if site.get("url"):
        console.print(f"  URL: {site['url']}")


if __name__ == "__main__":
    app()
