import click
from flask import current_app
from flask.cli import with_appcontext

from aupgrab.errors import ValidationError
from aupgrab.models.sheets import ensure_schema, export_sheets, import_sheets


@click.command("init-db")
@with_appcontext
def init_db_command():
    """Create missing tables and normalize older sheet columns."""
    added = ensure_schema()
    if added:
        click.echo(f"Added columns: {', '.join(added)}")
    click.echo("Database ready.")


@click.command("sweep-deliveries")
@with_appcontext
def sweep_deliveries_command():
    """
    Auto-assign stale pending orders and refresh ETAs for confirmed ones.
    Run this command periodically (cron job or scheduler)

    Usage: flask sweep-deliveries
    """
    result = current_app.extensions["aupgrab"].sweep.run()
    if result is None:
        click.echo("Sweep already running, skipped.")
        return
    click.echo(
        f"Assigned: {len(result['assigned'])}, "
        f"dispatched: {len(result['dispatched'])}, "
        f"failed: {len(result['failed'])}"
    )


@click.command("export-sheets")
@click.argument("directory", type=click.Path(file_okay=False))
@with_appcontext
def export_sheets_command(directory):
    """Write every table as <Sheet>.csv in its positional layout."""
    counts = export_sheets(directory)
    for sheet_name, count in counts.items():
        click.echo(f"{sheet_name}: {count} rows")


@click.command("import-sheets")
@click.argument("directory", type=click.Path(exists=True, file_okay=False))
@with_appcontext
def import_sheets_command(directory):
    """Load <Sheet>.csv files exported from the spreadsheet."""
    try:
        counts = import_sheets(directory)
    except ValidationError as err:
        raise click.ClickException(err.message) from err
    if not counts:
        click.echo("No sheet files found.")
    for sheet_name, count in counts.items():
        click.echo(f"{sheet_name}: {count} rows imported")


def register_commands(app):
    app.cli.add_command(init_db_command)
    app.cli.add_command(sweep_deliveries_command)
    app.cli.add_command(export_sheets_command)
    app.cli.add_command(import_sheets_command)
