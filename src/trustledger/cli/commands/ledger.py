"""Client ledger commands."""

import click
from trustledger.cli.date_filters import parse_date_option
from trustledger.cli.error_handling import handle_domain_error
from trustledger.domain.account import AccountService
from trustledger.domain.errors import DomainError
from trustledger.domain.transaction import TransactionService
from trustledger.utils.amount_parser import format_amount


@click.group()
def ledger_group():
    """Manage client ledgers."""
    pass


@ledger_group.command("open")
@click.argument("account_id", type=int, metavar="ACCOUNT_ID")
@click.argument("client_id", metavar="CLIENT_ID")
@click.option("--matter", help="Matter identifier")
@click.option("--name", "client_name", help="Client display name")
@click.pass_context
def open_ledger(ctx, account_id: int, client_id: str, matter: str | None, client_name: str | None):
    """Open a client ledger in a trust account.

    Examples:
        trustledger ledger open 1 C-1001 --matter M-42 --name "Jane Roe"
    """
    service = AccountService(ctx.obj["db"])

    try:
        ledger_id = service.open_client_ledger(
            trust_account_id=account_id,
            client_id=client_id,
            matter_id=matter,
            client_name=client_name,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Opened client ledger for '{client_id}' (ID: {ledger_id})")


@ledger_group.command("list")
@click.argument("target_id", type=int, metavar="ID")
@click.option(
    "--merchant", "by_merchant", is_flag=True, help="ID is a merchant; list ledgers of all its accounts"
)
@click.pass_context
def list_ledgers(ctx, target_id: int, by_merchant: bool):
    """List client ledgers of a trust account or of a merchant."""
    service = AccountService(ctx.obj["db"])

    try:
        if by_merchant:
            ledgers = service.list_client_ledgers_for_merchant(target_id)
        else:
            ledgers = service.list_client_ledgers(target_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not ledgers:
        click.echo("No client ledgers found.")
        return

    click.echo("\nClient ledgers:")
    click.echo("-" * 82)
    for ledger in ledgers:
        client = ledger.client_id + (f" / {ledger.matter_id}" if ledger.matter_id else "")
        click.echo(
            f"ID: {ledger.id:3d} | Account: {ledger.trust_account_id:3d} | {client:24s} | "
            f"{ledger.status.value:6s} | {format_amount(ledger.current_balance):>14s}"
        )


@ledger_group.command("show")
@click.argument("ledger_id", type=int, metavar="LEDGER_ID")
@click.pass_context
def show_ledger(ctx, ledger_id: int):
    """Show details of a client ledger."""
    service = AccountService(ctx.obj["db"])

    try:
        ledger = service.require_client_ledger(ledger_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Client ledger {ledger.id}")
    click.echo(f"  Trust account: {ledger.trust_account_id}")
    click.echo(f"  Client: {ledger.client_id}")
    if ledger.matter_id:
        click.echo(f"  Matter: {ledger.matter_id}")
    if ledger.client_name:
        click.echo(f"  Name: {ledger.client_name}")
    click.echo(f"  Status: {ledger.status.value}")
    click.echo(f"  Balance: {format_amount(ledger.current_balance)}")
    if ledger.last_transaction_at:
        click.echo(f"  Last transaction: {ledger.last_transaction_at:%Y-%m-%d %H:%M}")


@ledger_group.command("balance")
@click.argument("ledger_id", type=int, metavar="LEDGER_ID")
@click.pass_context
def ledger_balance(ctx, ledger_id: int):
    """Show current, pending and available balance of a ledger."""
    service = TransactionService(ctx.obj["db"])

    try:
        balance = service.get_ledger_balance(ledger_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Client ledger {ledger_id}")
    click.echo(f"  Current:   {format_amount(balance.current_balance)}")
    click.echo(f"  Pending:   {format_amount(balance.pending_balance)}")
    click.echo(f"  Available: {format_amount(balance.available_balance)}")


@ledger_group.command("statement")
@click.argument("ledger_id", type=int, metavar="LEDGER_ID")
@click.option("--start", "start_date", help="First day (YYYY-MM-DD)")
@click.option("--end", "end_date", help="Last day (YYYY-MM-DD)")
@click.pass_context
def ledger_statement(ctx, ledger_id: int, start_date: str | None, end_date: str | None):
    """Print a client ledger statement with opening and closing balances."""
    service = TransactionService(ctx.obj["db"])
    start = parse_date_option(ctx, start_date, "start date")
    end = parse_date_option(ctx, end_date, "end date")

    try:
        statement = service.get_ledger_statement(ledger_id, start_date=start, end_date=end)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    ledger = statement.ledger
    click.echo(f"Statement for client ledger {ledger.id} ({ledger.client_id})")
    click.echo(f"  Period: {statement.start_date or 'beginning'} to {statement.end_date or 'today'}")
    click.echo(f"  Opening balance: {format_amount(statement.opening_balance)}")
    click.echo("-" * 72)
    for txn in statement.transactions:
        click.echo(
            f"{txn.created_at:%Y-%m-%d} | {txn.id:5d} | {txn.transaction_type.value:10s} | "
            f"{format_amount(txn.amount):>12s} | {format_amount(txn.balance_after):>12s}"
        )
    click.echo("-" * 72)
    click.echo(f"  Closing balance: {format_amount(statement.closing_balance)}")


@ledger_group.command("close")
@click.argument("ledger_id", type=int, metavar="LEDGER_ID")
@click.pass_context
def close_ledger(ctx, ledger_id: int):
    """Close an empty client ledger."""
    service = AccountService(ctx.obj["db"])

    try:
        service.close_client_ledger(ledger_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Closed client ledger {ledger_id}")


def register_commands(cli):
    """Register ledger commands with main CLI."""
    cli.add_command(ledger_group, name="ledger")
