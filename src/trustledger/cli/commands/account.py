"""Trust account management commands."""

import click
from trustledger.cli.error_handling import handle_domain_error
from trustledger.domain.account import AccountService
from trustledger.domain.errors import DomainError
from trustledger.utils.amount_parser import format_amount


@click.group()
def account_group():
    """Manage trust accounts."""
    pass


@account_group.command("create")
@click.argument("merchant_id", type=int, metavar="MERCHANT_ID")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--bank", help="Bank holding the trust account")
@click.option("--number", "account_number", help="Bank account number")
@click.pass_context
def create_account(ctx, merchant_id: int, name: str, bank: str | None, account_number: str | None):
    """Create a new trust account for a merchant.

    Examples:
        trustledger account create 7 "Operating IOLTA" --bank "First National"
    """
    service = AccountService(ctx.obj["db"])

    try:
        account_id = service.create_trust_account(
            merchant_id=merchant_id, name=name, bank_name=bank, account_number=account_number
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Created trust account '{name}' (ID: {account_id})")


@account_group.command("list")
@click.option("--merchant", type=int, help="Only show accounts of this merchant")
@click.pass_context
def list_accounts(ctx, merchant: int | None):
    """List trust accounts."""
    service = AccountService(ctx.obj["db"])

    accounts = service.list_trust_accounts(merchant_id=merchant)
    if not accounts:
        click.echo("No trust accounts found.")
        return

    click.echo("\nTrust accounts:")
    click.echo("-" * 72)
    for acc in accounts:
        click.echo(
            f"ID: {acc.id:3d} | {acc.name:24s} | Merchant: {acc.merchant_id:4d} | "
            f"{acc.status.value:6s} | {format_amount(acc.balance):>14s}"
        )


@account_group.command("show")
@click.argument("account_id", type=int, metavar="ACCOUNT_ID")
@click.pass_context
def show_account(ctx, account_id: int):
    """Show a trust account and its client ledgers."""
    service = AccountService(ctx.obj["db"])

    try:
        account = service.require_trust_account(account_id)
        ledgers = service.list_client_ledgers(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Trust account {account.id}: {account.name}")
    click.echo(f"  Merchant: {account.merchant_id}")
    if account.bank_name:
        click.echo(f"  Bank: {account.bank_name}")
    click.echo(f"  Status: {account.status.value}")
    click.echo(f"  Balance: {format_amount(account.balance)}")
    click.echo(f"  Client ledgers: {len(ledgers)}")
    for ledger in ledgers:
        matter = f" / {ledger.matter_id}" if ledger.matter_id else ""
        click.echo(
            f"    ID: {ledger.id:3d} | {ledger.client_id}{matter} | "
            f"{format_amount(ledger.current_balance)}"
        )


@account_group.command("close")
@click.argument("account_id", type=int, metavar="ACCOUNT_ID")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def close_account(ctx, account_id: int, yes: bool):
    """Close a trust account.

    The account can only be closed once every client ledger is empty.
    """
    service = AccountService(ctx.obj["db"])

    if not yes and not click.confirm(f"Are you sure you want to close trust account {account_id}?"):
        click.echo("Close cancelled.")
        return

    try:
        service.close_trust_account(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Closed trust account {account_id}")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
