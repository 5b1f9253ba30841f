import click
from flask.cli import AppGroup
from app.services.outbox_service import OutboxService

outbox_cli = AppGroup("outbox", help="Manage queued notification emails.")


@outbox_cli.command("retry")
def retry_outbox():
    """Re-sends pending and failed notification emails."""
    report = OutboxService.retry_undelivered()
    summary = OutboxService.summarize(report)
    click.echo(f"Sent: {summary['sent']}, failed: {summary['failed']}")
    for error in summary["errors"]:
        click.echo(f"  {error}", err=True)
