"""Main CLI entry point."""

import logging

import click
from trustledger.database.factories import create_database
from trustledger.domain.transaction import DEFAULT_MAX_RETRIES

# Import and register all commands at module level
from trustledger.cli.commands import (
    account,
    ledger,
    transaction,
    reconcile,
    audit,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to SQLite database file (overrides TRUSTLEDGER_DB_PATH environment variable)",
    envvar="TRUSTLEDGER_DB_PATH",
)
@click.option(
    "--db-url",
    help="SQLAlchemy database URL, e.g. a Postgres URL (overrides --db-path)",
    envvar="TRUSTLEDGER_DB_URL",
)
@click.option(
    "--lock-timeout",
    type=float,
    default=5.0,
    show_default=True,
    help="Seconds to wait for a ledger lock before failing",
    envvar="TRUSTLEDGER_LOCK_TIMEOUT",
)
@click.option(
    "--max-retries",
    type=click.IntRange(min=0),
    default=DEFAULT_MAX_RETRIES,
    show_default=True,
    help="Retries after a concurrent modification",
    envvar="TRUSTLEDGER_MAX_RETRIES",
)
@click.option("--verbose", "-v", is_flag=True, help="Log ledger activity to stderr")
@click.pass_context
def cli(
    ctx,
    db_path: str | None,
    db_url: str | None,
    lock_timeout: float,
    max_retries: int,
    verbose: bool,
):
    """Trustledger - IOLTA trust account ledger.

    Keeps per-client trust balances as an append-only transaction log and
    reconciles them against bank statements.
    """
    ctx.ensure_object(dict)

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_database(database_url=db_url, database_path=db_path, lock_timeout=lock_timeout)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["max_retries"] = max_retries
        ctx.call_on_close(db.disconnect)


# Register all commands
account.register_commands(cli)
ledger.register_commands(cli)
transaction.register_commands(cli)
reconcile.register_commands(cli)
audit.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
