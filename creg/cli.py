"""creg CLI: register, update and verify content ownership claims."""

import hashlib
import logging
import sys

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from creg import __version__
from creg.config import Settings, load_settings
from creg.errors import ConfigError, RegistryOperationError, SnapshotError
from creg.registry.models import Currency

console = Console()


def _fail(message: str) -> None:
    console.print(f"[red]Error:[/] {escape(message)}")
    sys.exit(1)


def _open_registry(settings: Settings):
    """Load the registry snapshot for *settings*, creating a fresh one if absent."""
    from creg.registry.snapshot import open_registry

    try:
        return open_registry(settings)
    except SnapshotError as e:
        _fail(str(e))


def _save(settings: Settings, registry) -> None:
    from creg.registry.snapshot import save_snapshot

    save_snapshot(registry, settings.snapshot_path)


class _RegistryGroup(click.Group):
    """Command group that reports rejected registry operations."""

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except RegistryOperationError as e:
            console.print(f"[red]Rejected:[/] {escape(str(e))}")
            sys.exit(1)


def _parse_hash(value: str) -> bytes:
    try:
        return bytes.fromhex(value)
    except ValueError:
        _fail(f"Content hash must be hex-encoded, got '{value}'")


def _caller(settings: Settings) -> str:
    if not settings.caller:
        _fail("No caller identity. Pass --caller or set CREG_CALLER.")
    return settings.caller


@click.group(cls=_RegistryGroup)
@click.version_option(version=__version__)
@click.option("--home", default=None, help="State directory (default: $CREG_HOME or ~/.creg)")
@click.option("--caller", default=None, help="Identity invoking the command (default: $CREG_CALLER)")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, home: str | None, caller: str | None, verbose: bool):
    """creg: content ownership registry.

    Records who registered which content hash, when, and on what terms.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        settings = load_settings(home)
    except ConfigError as e:
        _fail(str(e))
    if caller:
        settings.caller = caller
    ctx.obj = settings


# ── Governance ───────────────────────────────────────────────────────


@main.group()
def authority():
    """Manage the governing authority."""


@authority.command(name="set")
@click.argument("identity")
@click.pass_obj
def set_authority(settings: Settings, identity: str):
    """Assign the registry authority (only possible once)."""
    registry = _open_registry(settings)
    registry.set_authority(settings.caller, identity).unwrap()
    _save(settings, registry)
    console.print(f"[green]Authority set:[/] {escape(identity)}")


@main.group(name="config")
def config_group():
    """View or change registry configuration."""


@config_group.command(name="show")
@click.pass_obj
def show_config(settings: Settings):
    """Show the current registry configuration."""
    registry = _open_registry(settings)
    cfg = registry.config
    console.print(f"  Authority:        {escape(cfg.authority or '(unset)')}")
    console.print(f"  Max contents:     {cfg.max_contents}")
    console.print(f"  Registration fee: {cfg.registration_fee}")
    console.print(f"  Registered:       {cfg.next_content_id}")


@config_group.command(name="max-contents")
@click.argument("value", type=int)
@click.pass_obj
def set_max_contents(settings: Settings, value: int):
    """Change the registry capacity ceiling."""
    registry = _open_registry(settings)
    registry.set_max_contents(settings.caller, value).unwrap()
    _save(settings, registry)
    console.print(f"[green]Max contents set to[/] {value}")


@config_group.command(name="fee")
@click.argument("value", type=int)
@click.pass_obj
def set_fee(settings: Settings, value: int):
    """Change the per-registration fee."""
    registry = _open_registry(settings)
    registry.set_registration_fee(settings.caller, value).unwrap()
    _save(settings, registry)
    console.print(f"[green]Registration fee set to[/] {value}")


# ── Content ──────────────────────────────────────────────────────────


@main.command()
@click.argument("content_hash")
@click.option("--title", "-t", required=True)
@click.option("--description", "-d", default="")
@click.option("--category", "-c", required=True)
@click.option("--tag", multiple=True, help="Tag (repeatable, at most 10)")
@click.option("--price", type=int, default=0)
@click.option("--royalty", type=int, default=0, help="Royalty rate in percent")
@click.option(
    "--currency",
    default=Currency.STX.value,
    type=click.Choice([c.value for c in Currency]),
)
@click.pass_obj
def register(
    settings: Settings,
    content_hash: str,
    title: str,
    description: str,
    category: str,
    tag: tuple,
    price: int,
    royalty: int,
    currency: str,
):
    """Register CONTENT_HASH (64 hex characters) as owned by the caller."""
    caller = _caller(settings)
    registry = _open_registry(settings)
    content_id = registry.register(
        caller,
        _parse_hash(content_hash),
        title,
        description,
        category,
        list(tag),
        price,
        royalty,
        currency,
    ).unwrap()
    _save(settings, registry)
    console.print(f"[green]Registered[/] content #{content_id}")


@main.command()
@click.argument("content_id", type=int)
@click.pass_obj
def get(settings: Settings, content_id: int):
    """Show a registered content record."""
    registry = _open_registry(settings)
    record = registry.get(content_id).unwrap()
    console.print(f"\n[bold]Content #{content_id}[/]")
    console.print(f"  Hash:        {record.hash_hex}")
    console.print(f"  Title:       {escape(record.title)}")
    console.print(f"  Description: {escape(record.description)}")
    console.print(f"  Creator:     {escape(record.creator)}")
    console.print(f"  Category:    {escape(record.category)}")
    console.print(f"  Tags:        {escape(', '.join(record.tags))}")
    console.print(f"  Price:       {record.price} {record.currency.value}")
    console.print(f"  Royalty:     {record.royalty_rate}%")
    console.print(f"  Registered:  {record.registered_at}")

    last = registry.get_update(content_id)
    if last.ok:
        console.print(f"  Last edit:   {last.value.updated_at} by {escape(last.value.updated_by)}")


@main.command()
@click.argument("content_id", type=int)
@click.option("--title", "-t", required=True)
@click.option("--description", "-d", default="")
@click.pass_obj
def update(settings: Settings, content_id: int, title: str, description: str):
    """Change the title and description of content you registered."""
    caller = _caller(settings)
    registry = _open_registry(settings)
    registry.update(caller, content_id, title, description).unwrap()
    _save(settings, registry)
    console.print(f"[green]Updated[/] content #{content_id}")


@main.command()
@click.pass_obj
def count(settings: Settings):
    """Print the number of registered content records."""
    registry = _open_registry(settings)
    console.print(registry.count().unwrap())


@main.command()
@click.argument("content_hash")
@click.argument("identity")
@click.pass_obj
def verify(settings: Settings, content_hash: str, identity: str):
    """Check whether IDENTITY registered CONTENT_HASH."""
    registry = _open_registry(settings)
    owned = registry.verify_ownership(_parse_hash(content_hash), identity).unwrap()
    if owned:
        console.print(f"[green]Verified:[/] {escape(identity)} owns {content_hash}")
    else:
        console.print(f"[yellow]Not verified:[/] {escape(identity)} does not own {content_hash}")
        sys.exit(2)


@main.command(name="list")
@click.option("--offset", type=int, default=0)
@click.option("--limit", type=int, default=50)
@click.pass_obj
def list_contents(settings: Settings, offset: int, limit: int):
    """List registered content."""
    registry = _open_registry(settings)
    page = registry.list_contents(offset, limit).unwrap()

    if not page:
        console.print("[yellow]Registry is empty.[/]")
        return

    table = Table(title=f"Registry ({registry.config.next_content_id} records)")
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Creator")
    table.add_column("Category")
    table.add_column("Price", justify="right")

    for content_id, record in page:
        table.add_row(
            str(content_id),
            escape(record.title[:40]),
            escape(record.creator),
            escape(record.category),
            f"{record.price} {record.currency.value}",
        )

    console.print(table)


@main.command(name="hash")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def hash_file(path: str):
    """Print the SHA-256 content hash of a file."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            digest.update(chunk)
    console.print(digest.hexdigest())


# ── Audit ────────────────────────────────────────────────────────────


@main.command()
@click.option("--content-id", type=int, default=None)
@click.option("--action", default=None)
@click.option("--format", "fmt", default=None, type=click.Choice(["json", "csv"]))
@click.option("--limit", type=int, default=50)
@click.pass_obj
def audit(settings: Settings, content_id: int | None, action: str | None, fmt: str | None, limit: int):
    """Show the audit trail of registry mutations."""
    from creg.security.audit_log import AuditLogger

    logger = AuditLogger(settings.audit_dir)
    filters = {"content_id": content_id, "action": action, "limit": limit}

    if fmt:
        click.echo(logger.export_events(fmt, **filters))
        return

    events = logger.get_events(**filters)
    if not events:
        console.print("[yellow]No audit events.[/]")
        return
    for e in events:
        status = "[green]OK[/]" if e.success else f"[red]{e.error}[/]"
        target = f" #{e.content_id}" if e.content_id is not None else ""
        console.print(f"  {e.timestamp} {escape(e.actor)} {e.action}{target} {status}")


if __name__ == "__main__":
    main()
