"""
Main application entry point for Drive Manager.

This module provides the CLI commands for serving the web UI and for
working with a Drive account directly from the terminal.
"""

import mimetypes
from pathlib import Path
from typing import Optional

import click

from .core.logging import setup_logging, get_logger
from .core.exceptions import DriveManagerError
from .drive_integration import DriveService, GoogleDriveClient
from .settings import get_settings


# Setup logging
settings = get_settings()
setup_logging(settings.logging, "drive_manager")
logger = get_logger(__name__)


def open_client(ctx: click.Context) -> GoogleDriveClient:
    """Build a Drive client from the --token option."""
    token = ctx.obj.get("token")
    if not token:
        raise click.UsageError("An access token is required: pass --token or set DRIVE_ACCESS_TOKEN.")
    return GoogleDriveClient(token, settings.google_drive)


def fail(error: DriveManagerError) -> None:
    click.secho(f"❌ {error.message}", fg="red", err=True)
    raise SystemExit(1)


@click.group()
@click.version_option(version=settings.version)
@click.option('--token', envvar='DRIVE_ACCESS_TOKEN', help='OAuth access token for Drive commands')
@click.option('--debug', '-d', is_flag=True, help='Enable debug mode')
@click.pass_context
def cli(ctx: click.Context, token: Optional[str], debug: bool):
    """Drive Manager - browse, upload, download and trash Google Drive files."""
    ctx.ensure_object(dict)
    ctx.obj["token"] = token
    if debug:
        settings.debug = True
        logger.info("Debug mode enabled")


@cli.command()
def serve():
    """Start the web UI."""
    from .web.app import run_web
    run_web(settings)


@cli.command(name="list")
@click.pass_context
def list_files(ctx: click.Context):
    """List all files that are not in the trash."""
    try:
        with open_client(ctx) as client:
            files = client.list_all_files()
    except DriveManagerError as e:
        fail(e)

    if not files:
        click.echo("No files found.")
        return

    for drive_file in files:
        click.echo(
            f"{drive_file.id}\t{drive_file.name}\t{drive_file.type_label}\t{drive_file.modified_time or ''}"
        )
    click.echo(f"📁 {len(files)} files")


@cli.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--folder', '-f', help='Target folder name (created if missing)')
@click.option('--mime-type', '-m', help='MIME type (guessed from the file name by default)')
@click.option('--name', '-n', help='File name in Drive (defaults to the local name)')
@click.pass_context
def upload(ctx: click.Context, path: Path, folder: Optional[str], mime_type: Optional[str], name: Optional[str]):
    """Upload a local file."""
    mime_type = mime_type or mimetypes.guess_type(path.name)[0]
    try:
        with open_client(ctx) as client:
            uploaded = DriveService(client).upload(
                path.read_bytes(),
                file_name=name or path.name,
                mime_type=mime_type,
                folder_name=folder
            )
    except DriveManagerError as e:
        fail(e)

    click.echo(f"✅ Uploaded {uploaded.name} (ID: {uploaded.id})")


@cli.command()
@click.argument('file_id')
@click.option('--output', '-o', type=click.Path(path_type=Path), help='Output file or directory')
@click.pass_context
def download(ctx: click.Context, file_id: str, output: Optional[Path]):
    """Download a file; Google Docs, Sheets and Slides are exported."""
    try:
        with open_client(ctx) as client:
            result = client.download_file(file_id)
    except DriveManagerError as e:
        fail(e)

    target = output or Path(Path(result.file_name).name)
    if target.is_dir():
        target = target / Path(result.file_name).name
    target.write_bytes(result.content)
    click.echo(f"✅ Saved {target} ({len(result.content)} bytes, {result.content_type})")


@cli.command()
@click.argument('file_id')
@click.pass_context
def delete(ctx: click.Context, file_id: str):
    """Move a file to the trash."""
    try:
        with open_client(ctx) as client:
            client.delete_file(file_id)
    except DriveManagerError as e:
        fail(e)

    click.echo(f"🗑️  Moved {file_id} to trash")


@cli.command(name="delete-all")
@click.option('--yes', '-y', is_flag=True, help='Do not ask for confirmation')
@click.pass_context
def delete_all(ctx: click.Context, yes: bool):
    """Move every file to the trash."""
    if not yes:
        click.confirm("Are you sure you want to delete all files?", abort=True)

    try:
        with open_client(ctx) as client:
            client.delete_all_files()
    except DriveManagerError as e:
        fail(e)

    click.echo("🗑️  All files have been moved to trash")


if __name__ == "__main__":
    cli()
