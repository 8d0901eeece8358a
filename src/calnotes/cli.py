"""
calnotes Command Line Interface

Main entry point for the calnotes CLI.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import click
from rich.console import Console
from rich.table import Table

from calnotes.config import CalnotesSettings, load_settings
from calnotes.exceptions import CalnotesError, ConfigError, get_error_code
from calnotes.logging_config import setup_logging
from calnotes.state import PAGE_TOKEN_KEY, SYNC_TOKEN_KEY, StateStore

console = Console()
logger = logging.getLogger("calnotes")


def _fail(error: CalnotesError):
    console.print(f"[red]Error:[/red] {error}")
    sys.exit(get_error_code(error))


def _settings(config: Optional[str], **overrides) -> CalnotesSettings:
    return load_settings(Path(config) if config else None, overrides=overrides)


def _timezone(settings: CalnotesSettings):
    try:
        return ZoneInfo(settings.timezone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f"Unknown timezone '{settings.timezone}'", config_key="timezone", details=str(e))


def build_resolver(settings: CalnotesSettings):
    """DomainResolver whose suffix list is downloaded on first use."""
    from calnotes.domains import DomainResolver, TldTable

    return DomainResolver(
        blacklist_domains=settings.blacklist_domains,
        table_loader=lambda: TldTable.fetch(settings.tld_url, settings.tld_cache_path),
    )


def build_calendar(settings: CalnotesSettings, credentials):
    from googleapiclient.discovery import build
    from calnotes.calendar.google_calendar import GoogleCalendarClient

    service = build("calendar", "v3", credentials=credentials, cache_discovery=False)
    return GoogleCalendarClient(service, settings.calendar_id)


def build_documents(settings: CalnotesSettings, credentials):
    """Note store for the configured backend."""
    if settings.notes_backend == "local":
        from calnotes.notes.stores import LocalDocumentStore

        if settings.notes_path is None:
            raise ConfigError("notes_path is required for the local notes backend", config_key="notes_path")
        return LocalDocumentStore(settings.notes_path)

    from googleapiclient.discovery import build
    from calnotes.notes.drive import DriveDocumentStore

    if not settings.notes_folder_id:
        raise ConfigError("notes_folder_id is required for the drive notes backend", config_key="notes_folder_id")
    service = build("drive", "v3", credentials=credentials, cache_discovery=False)
    return DriveDocumentStore(service, settings.notes_folder_id)


def build_merger(settings: CalnotesSettings):
    from calnotes.domains import AccountCache, AccountDirectory, CompanyLookup
    from calnotes.notes.merger import NoteMerger

    accounts = AccountDirectory(
        AccountCache(settings.accounts_path),
        CompanyLookup(),
        label_prefix=settings.label_prefix,
    )
    return NoteMerger(_timezone(settings), accounts)


def build_coordinator(settings: CalnotesSettings):
    """Wire every sync component from settings."""
    from calnotes.calendar.artifacts import ArtifactManager
    from calnotes.calendar.reconcile import ReconciliationEngine
    from calnotes.calendar.sync import SyncCoordinator
    from calnotes.google_auth import get_credentials

    credentials = get_credentials(settings.credentials_path, settings.token_path, interactive=False)
    calendar = build_calendar(settings, credentials)
    documents = build_documents(settings, credentials) if settings.meeting_to_note else None

    artifacts = ArtifactManager(
        blockers=calendar,
        source=calendar,
        documents=documents,
        merger=build_merger(settings),
        tz=_timezone(settings),
        debug=settings.debug,
        keep_cancelled_notes=settings.keep_cancelled_notes,
    )
    return SyncCoordinator(
        source=calendar,
        state=StateStore(settings.state_path),
        resolver=build_resolver(settings),
        engine=ReconciliationEngine.from_settings(settings),
        artifacts=artifacts,
        debug=settings.debug,
    )


@click.group()
@click.version_option(package_name="calnotes")
def main():
    """calnotes: meeting notes and blockers from Google Calendar"""
    pass


@main.command()
@click.option("--full", is_flag=True, help="Discard the sync cursor and list the next days")
@click.option("--dry-run", is_flag=True, help="Log changes instead of making them")
@click.option("--config", type=click.Path(), help="Path to config.yaml")
@click.option("--verbose", "-v", is_flag=True, help="Show detailed output")
def sync(full: bool, dry_run: bool, config: str, verbose: bool):
    """Run one sync of calendar events to blockers and notes.

    Examples:
        calnotes sync             # Incremental sync
        calnotes sync --full      # Re-list the next five days
        calnotes sync --dry-run   # Show what would change
    """
    setup_logging(logging.DEBUG if verbose else None)

    try:
        settings = _settings(
            config,
            debug=True if dry_run else None,
            full_sync=True if full else None,
        )
        if settings.debug:
            console.print("[dim]Dry run mode - no changes will be made[/dim]")
        coordinator = build_coordinator(settings)
        report = coordinator.sync(force_full_resync=settings.full_sync)
    except CalnotesError as e:
        _fail(e)
        return

    table = Table(title=f"Sync ({report.mode.value})", border_style="blue")
    table.add_column("Counter", style="cyan")
    table.add_column("Value", style="white")
    for name, value in report.counters().items():
        table.add_row(name.replace("_", " "), str(value))
    console.print(table)
    if report.resynced:
        console.print("[yellow]⚠[/yellow] Sync token was rejected, a full resync was performed")


@main.command("root-domain")
@click.argument("emails", nargs=-1, required=True)
@click.option("--config", type=click.Path(), help="Path to config.yaml")
def root_domain(emails, config: str):
    """Show the root domain and classification of email addresses."""
    setup_logging(logging.WARNING)

    try:
        resolver = build_resolver(_settings(config))
        rows = [(email, resolver.root_domain(email), resolver.is_external(email)) for email in emails]
    except CalnotesError as e:
        _fail(e)
        return

    table = Table(border_style="blue")
    table.add_column("Address", style="cyan")
    table.add_column("Root domain")
    table.add_column("Class")
    for email, root, external in rows:
        table.add_row(email, root, "[red]external[/red]" if external else "[green]internal[/green]")
    console.print(table)


@main.command("note-preview")
@click.argument("event_id")
@click.option("--config", type=click.Path(), help="Path to config.yaml")
def note_preview(event_id: str, config: str):
    """Render the note an event would get, without writing anything."""
    from calnotes.calendar.artifacts import ArtifactManager
    from calnotes.calendar.models import MeetingEvent
    from calnotes.google_auth import get_credentials

    setup_logging(logging.WARNING)

    try:
        settings = _settings(config, debug=True)
        credentials = get_credentials(settings.credentials_path, settings.token_path)
        calendar = build_calendar(settings, credentials)
        event = calendar.get_event(event_id)
        if event is None:
            console.print(f"[red]Event {event_id} not found[/red]")
            sys.exit(1)

        meeting = MeetingEvent.from_api(event, build_resolver(settings))
        merger = build_merger(settings)
        artifacts = ArtifactManager(
            blockers=calendar,
            source=calendar,
            documents=build_documents(settings, credentials),
            merger=merger,
            tz=merger.tz,
            debug=True,
        )
        note = artifacts.find_note(meeting)
        if note is not None:
            content = merger.merge(note.read(), meeting)
            console.print(f"[dim]Merged into existing note {note.name}[/dim]")
        else:
            content = merger.materialize(meeting)
            console.print(f"[dim]New note {meeting.file_name(merger.tz)}[/dim]")
    except CalnotesError as e:
        _fail(e)
        return

    console.print()
    console.print(content, markup=False, highlight=False)


@main.group()
def state():
    """Inspect or reset the sync cursor."""
    pass


@state.command("show")
@click.option("--config", type=click.Path(), help="Path to config.yaml")
def state_show(config: str):
    """Show the stored sync and page tokens."""
    try:
        settings = _settings(config)
    except CalnotesError as e:
        _fail(e)
        return

    store = StateStore(settings.state_path)
    console.print(f"[bold]State file:[/bold] {settings.state_path}")
    for key in (SYNC_TOKEN_KEY, PAGE_TOKEN_KEY):
        value = store.get(key)
        console.print(f"  {key}: {value if value else '[dim]not set[/dim]'}")


@state.command("reset")
@click.option("--config", type=click.Path(), help="Path to config.yaml")
@click.confirmation_option(prompt="Discard the sync cursor? The next sync will be a full sync.")
def state_reset(config: str):
    """Delete the stored sync and page tokens."""
    try:
        settings = _settings(config)
    except CalnotesError as e:
        _fail(e)
        return

    store = StateStore(settings.state_path)
    store.delete(SYNC_TOKEN_KEY)
    store.delete(PAGE_TOKEN_KEY)
    console.print("[green]✓[/green] Sync cursor cleared")


@main.command()
@click.option("--config", type=click.Path(), help="Path to config.yaml")
@click.option("--port", default=0, help="Local port for the OAuth redirect (0 = auto)")
def auth(config: str, port: int):
    """Authorize calnotes against Google Calendar and Drive."""
    from calnotes.google_auth import run_oauth_flow

    try:
        settings = _settings(config)
        if not settings.credentials_path.exists():
            raise ConfigError(
                f"Google OAuth client file not found: {settings.credentials_path}",
                config_key="credentials_path",
            )
        run_oauth_flow(settings.credentials_path, settings.token_path, port=port)
    except CalnotesError as e:
        _fail(e)
        return

    console.print(f"[green]✓[/green] Token saved to {settings.token_path}")


if __name__ == "__main__":
    main()
