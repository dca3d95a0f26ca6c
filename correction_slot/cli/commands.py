"""CLI commands for correction-slot."""

import logging
from datetime import datetime, timedelta, timezone

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from correction_slot import __logo__, __version__
from correction_slot.api.client import ApiError
from correction_slot.auth.flow import AUTH_PROMPT, AuthError, ensure_client
from correction_slot.auth.storage import TokenStoreError
from correction_slot.config import Settings
from correction_slot.constants import ENV_PREFIX, TOKEN_FILENAME
from correction_slot.slots import Slot, list_correction_projects, list_slots, select_slot

app = typer.Typer(
    name="correction-slot",
    help=f"{__logo__} correction-slot - find a 42 correction slot",
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger("correction_slot")


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )
    # Request lines are only interesting with --verbose.
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _show_auth_url(url: str) -> None:
    console.print(AUTH_PROMPT)
    console.print(url, soft_wrap=True, markup=False, highlight=False)


def _prompt_code(prompt: str) -> str:
    return typer.prompt(prompt)


def _slots_table(slots: list[Slot]) -> Table:
    table = Table(title="Available slots")
    table.add_column("ID", style="cyan")
    table.add_column("Begin")
    table.add_column("End")
    for slot in slots:
        table.add_row(str(slot.id), slot.begin_at.isoformat(), slot.end_at.isoformat())
    return table


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} correction-slot v{__version__}")
        raise typer.Exit()


def find_slot(settings: Settings) -> Slot | None:
    """Authenticate, pick the first project awaiting correction and select a slot."""
    with ensure_client(settings, on_auth=_show_auth_url, on_prompt=_prompt_code) as client:
        project_ids = list_correction_projects(client)
        console.print(f"Projects waiting for correction: {project_ids}")
        if not project_ids:
            logger.warning("No project waiting for correction")
            return None

        project_id = project_ids[0]
        now = datetime.now(timezone.utc)
        horizon = timedelta(days=settings.horizon_days)
        slots = list_slots(client, project_id, now=now, horizon=horizon)
        if slots:
            console.print(_slots_table(slots))
        else:
            console.print(f"No slots returned for project {project_id}")

    return select_slot(slots, now=now, horizon=horizon, window=settings.window)


@app.command()
def main(
    client_id: str = typer.Option(
        ..., "--client-id", envvar=f"{ENV_PREFIX}CLIENT_ID", help="The OAuth client ID"
    ),
    client_secret: str = typer.Option(
        ..., "--client-secret", envvar=f"{ENV_PREFIX}CLIENT_SECRET", help="The OAuth client secret"
    ),
    scopes: str = typer.Option(
        "", "--scopes", envvar=f"{ENV_PREFIX}SCOPES", help="Optional comma separated scopes"
    ),
    token_file: str = typer.Option(
        TOKEN_FILENAME, "--token-file", envvar=f"{ENV_PREFIX}TOKEN_FILE", help="Where the OAuth token is cached"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    version: bool = typer.Option(
        None, "--version", callback=version_callback, is_eager=True
    ),
):
    """Find a correction slot for the first project waiting for correction."""
    _setup_logging(verbose)
    settings = Settings.from_options(client_id, client_secret, scopes, token_file)

    try:
        slot = find_slot(settings)
    except (AuthError, ApiError, TokenStoreError) as e:
        err_console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if slot is None:
        logger.warning("No slot found")
        console.print("No slot found.")
        return

    console.print(
        f"[green]✓[/green] Selected slot {slot.id}: "
        f"{slot.begin_at.isoformat()} → {slot.end_at.isoformat()}"
    )


if __name__ == "__main__":
    app()
