"""
image-vault CLI: inspect and manage collections from the command line.

Usage:
    image-vault init
    image-vault list
    image-vault create <name>
    image-vault delete <name> [--yes]
    image-vault clear [--yes]
    image-vault images <name> [--status STATUS] [--order-by COLUMN] [--asc]
    image-vault show <name> <image-id>
    image-vault status <name> <image-id> <STATUS>
    image-vault version
"""

from __future__ import annotations

import json
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from image_vault import __version__
from image_vault.errors import ErrorKind, StorageError, ValidationError, VaultError
from image_vault.models import Direction, ImageStatus, OrderBy

console = Console()

EXIT_CODES = {
    ErrorKind.VALIDATION: 2,
    ErrorKind.NOT_FOUND: 3,
    ErrorKind.DUPLICATE: 4,
    ErrorKind.PROCESSING: 5,
    ErrorKind.STORAGE: 6,
    ErrorKind.INTERNAL: 1,
}


def _registry(ctx: click.Context):
    """Build the registry lazily so `version` and `init` work without config."""
    from image_vault.config import get_config
    from image_vault.storage import CollectionRegistry

    obj = ctx.ensure_object(dict)
    if "registry" not in obj:
        try:
            config = get_config(config_path=obj.get("config_path"))
            root = obj.get("root") or config["paths"]["collections_dir"]
            obj["registry"] = CollectionRegistry(
                root,
                thumbnail_max_dimension=config["thumbnails"]["max_dimension"],
                thumbnail_quality=config["thumbnails"]["quality"],
            )
        except (ValueError, TypeError, KeyError) as e:
            # JSONDecodeError is a ValueError
            _fail(ValidationError(f"Invalid configuration: {e}", e))
        except OSError as e:
            _fail(StorageError(f"Unable to prepare collections root: {e}", e))
    return obj["registry"]


def _fail(error: VaultError) -> None:
    console.print(f"[bold red]{error.kind.value}[/bold red] {escape(error.message)}")
    if error.cause is not None:
        console.print(f"[dim]caused by: {escape(str(error.cause))}[/dim]")
    raise SystemExit(EXIT_CODES[error.kind])


@click.group()
@click.option("--root", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Collections root directory (default: from config)")
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              default=None, help="Path to config.json")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, root: Path | None, config_path: Path | None, verbose: bool) -> None:
    """Image Vault: curate image collections."""
    from image_vault.logging_setup import configure_logging

    configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["root"] = root
    ctx.obj["config_path"] = config_path


@cli.command()
def version() -> None:
    """Print the installed version."""
    click.echo(f"image-vault {__version__}")


@cli.command()
def init() -> None:
    """Create ~/.image-vault/ with a default configuration."""
    from image_vault.config import get_default_config
    from image_vault.paths import ensure_data_home, get_config_path

    data_home = ensure_data_home()
    click.echo(f"Data directory: {data_home}")

    config_path = get_config_path()
    if config_path.exists():
        click.echo(f"Config already exists: {config_path}")
    else:
        config_path.write_text(json.dumps(get_default_config(), indent=2), encoding="utf-8")
        click.echo(f"Config created: {config_path}")

    click.echo("Initialization complete.")


@cli.command("list")
@click.pass_context
def list_collections(ctx: click.Context) -> None:
    """List collection names."""
    try:
        names = _registry(ctx).list()
    except VaultError as e:
        _fail(e)
    if not names:
        console.print("[dim]no collections[/dim]")
    for name in names:
        click.echo(name)


@cli.command()
@click.argument("name")
@click.pass_context
def create(ctx: click.Context, name: str) -> None:
    """Create an empty collection NAME."""
    try:
        with _registry(ctx).create(name) as collection:
            click.echo(f"Created collection: {collection.name}")
    except VaultError as e:
        _fail(e)


@cli.command()
@click.argument("name")
@click.option("--yes", is_flag=True, default=False, help="Don't ask for confirmation")
@click.pass_context
def delete(ctx: click.Context, name: str, yes: bool) -> None:
    """Delete collection NAME and all of its images."""
    if not yes:
        click.confirm(f"Delete collection '{name}' and all of its images?", abort=True)
    try:
        _registry(ctx).delete(name)
    except VaultError as e:
        _fail(e)
    click.echo(f"Deleted collection: {name}")


@cli.command()
@click.option("--yes", is_flag=True, default=False, help="Don't ask for confirmation")
@click.pass_context
def clear(ctx: click.Context, yes: bool) -> None:
    """Delete every collection."""
    try:
        registry = _registry(ctx)
        if not yes:
            click.confirm(f"Delete ALL collections under {registry.collections_root}?", abort=True)
        registry.clear()
    except VaultError as e:
        _fail(e)
    click.echo("All collections deleted.")


@cli.command()
@click.argument("name")
@click.option("--status", type=click.Choice([s.value for s in ImageStatus]), default=None,
              help="Only show images in this status")
@click.option("--order-by", type=click.Choice([o.value for o in OrderBy]),
              default=OrderBy.UPDATED_AT.value, help="Timestamp to sort by")
@click.option("--asc", is_flag=True, default=False, help="Oldest first")
@click.option("--json", "json_out", is_flag=True, default=False, help="Emit JSON")
@click.pass_context
def images(
    ctx: click.Context,
    name: str,
    status: str | None,
    order_by: str,
    asc: bool,
    json_out: bool,
) -> None:
    """List images of collection NAME."""
    direction = Direction.ASC if asc else Direction.DESC
    try:
        with _registry(ctx).load(name) as collection:
            records = collection.get_images(status=status, order_by=order_by, direction=direction)
    except VaultError as e:
        _fail(e)

    if json_out:
        click.echo(json.dumps([r.to_dict() for r in records], indent=2))
        return

    if not records:
        console.print("[dim]no images[/dim]")
        return

    table = Table(title=f"{name} ({len(records)} images)")
    table.add_column("id", style="magenta")
    table.add_column("name")
    table.add_column("size", justify="right")
    table.add_column("dimensions", justify="right")
    table.add_column("status", style="cyan")
    table.add_column("updated")
    for record in records:
        table.add_row(
            record.id,
            f"{record.original_name}.{record.extension}",
            str(record.size_bytes),
            f"{record.width}x{record.height}",
            record.status.value,
            record.updated_at.isoformat(timespec="seconds"),
        )
    console.print(table)


@cli.command()
@click.argument("name")
@click.argument("image_id")
@click.pass_context
def show(ctx: click.Context, name: str, image_id: str) -> None:
    """Print the metadata of one image as JSON."""
    try:
        with _registry(ctx).load(name) as collection:
            record = collection.get_image(image_id)
    except VaultError as e:
        _fail(e)
    click.echo(json.dumps(record.to_dict(), indent=2))


@cli.command()
@click.argument("name")
@click.argument("image_id")
@click.argument("new_status", type=click.Choice([s.value for s in ImageStatus]))
@click.pass_context
def status(ctx: click.Context, name: str, image_id: str, new_status: str) -> None:
    """Move an image to NEW_STATUS."""
    try:
        with _registry(ctx).load(name) as collection:
            record = collection.update_image_status(image_id, new_status)
    except VaultError as e:
        _fail(e)
    click.echo(f"{record.id}: {record.status.value}")


if __name__ == "__main__":
    cli()
