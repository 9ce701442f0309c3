"""CLI error handling helpers."""

import logging

import click

from trustledger.domain.errors import ConcurrentModificationError, DomainError

logger = logging.getLogger(__name__)


def handle_domain_error(ctx: click.Context, error: DomainError) -> None:
    """Print a domain error on stderr and exit with status 1.

    A concurrent modification only reaches the CLI once ``--max-retries`` is
    used up, so it is printed with a hint.
    """
    logger.debug("%s failed: %s", ctx.command_path, getattr(error, "code", type(error).__name__))
    click.echo(f"Error: {error}", err=True)
    if isinstance(error, ConcurrentModificationError):
        click.echo("Hint: the ledger is busy; run the command again or raise --max-retries.", err=True)
    ctx.exit(1)
