"""Transaction commands."""

import click
from trustledger.cli.date_filters import parse_date_option
from trustledger.cli.error_handling import handle_domain_error
from trustledger.domain.entities import TransactionRequest, TransactionType
from trustledger.domain.errors import DomainError
from trustledger.domain.transaction import TransactionService
from trustledger.utils.amount_parser import format_amount


def _service(ctx) -> TransactionService:
    return TransactionService(ctx.obj["db"], max_retries=ctx.obj.get("max_retries", 3))


@click.group()
def transaction_group():
    """Submit and list ledger transactions."""
    pass


@transaction_group.command("submit")
@click.argument("account_id", type=int, metavar="ACCOUNT_ID")
@click.argument("ledger_id", type=int, metavar="LEDGER_ID")
@click.argument(
    "transaction_type",
    metavar="TYPE",
    type=click.Choice([t.value for t in TransactionType], case_sensitive=False),
)
@click.argument("amount", metavar="AMOUNT")
@click.option("--description", help="Transaction description")
@click.option("--reference", help="Reference or check number")
@click.option("--by", "created_by", help="User recording the transaction")
@click.option("--pending", is_flag=True, help="Record as pending (not yet cleared by the bank)")
@click.pass_context
def submit_transaction(
    ctx,
    account_id: int,
    ledger_id: int,
    transaction_type: str,
    amount: str,
    description: str | None,
    reference: str | None,
    created_by: str | None,
    pending: bool,
):
    """Submit a deposit, withdrawal, interest or fee transaction.

    Examples:
        trustledger txn submit 1 3 deposit 1000.00 --description "Retainer"
        trustledger txn submit 1 3 withdrawal 300.00 --reference "CHK 1042"
    """
    service = _service(ctx)
    request = TransactionRequest(
        trust_account_id=account_id,
        client_ledger_id=ledger_id,
        transaction_type=transaction_type,
        amount=amount,
        description=description,
        reference_number=reference,
        created_by=created_by,
        pending=pending,
    )

    try:
        txn = service.submit_transaction(request)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Recorded transaction {txn.id}")
    click.echo(f"  Type: {txn.transaction_type.value}")
    click.echo(f"  Amount: {format_amount(txn.amount)}")
    click.echo(f"  Balance after: {format_amount(txn.balance_after)}")
    if txn.is_pending:
        click.echo("  Status: pending")


@transaction_group.command("list")
@click.argument("target_id", type=int, metavar="ID")
@click.option(
    "--account", "by_account", is_flag=True, help="ID is a trust account; list all its ledgers"
)
@click.option("--start", "start_date", help="First day (YYYY-MM-DD)")
@click.option("--end", "end_date", help="Last day (YYYY-MM-DD)")
@click.pass_context
def list_transactions(
    ctx, target_id: int, by_account: bool, start_date: str | None, end_date: str | None
):
    """List transactions of a client ledger, or of a whole trust account, oldest first.

    Examples:
        trustledger txn list 3
        trustledger txn list 1 --account --start 2024-01-01
    """
    service = _service(ctx)
    start = parse_date_option(ctx, start_date, "start date")
    end = parse_date_option(ctx, end_date, "end date")

    try:
        if by_account:
            history = service.list_account_transactions(target_id, start_date=start, end_date=end)
        else:
            history = service.list_transactions(target_id, start_date=start, end_date=end)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    count = 0
    for txn in history:
        if count == 0:
            click.echo(
                f"{'ID':>5s} | {'Ledger':>6s} | {'Date':10s} | {'Type':10s} | {'Amount':>12s} | "
                f"{'Balance':>12s} | Status"
            )
            click.echo("-" * 81)
        count += 1
        click.echo(
            f"{txn.id:5d} | {txn.client_ledger_id:6d} | {txn.created_at:%Y-%m-%d} | "
            f"{txn.transaction_type.value:10s} | {format_amount(txn.amount):>12s} | "
            f"{format_amount(txn.balance_after):>12s} | {txn.status.value}"
        )

    if count == 0:
        click.echo("No transactions found.")


@transaction_group.command("complete")
@click.argument("transaction_id", type=int, metavar="TRANSACTION_ID")
@click.pass_context
def complete_transaction(ctx, transaction_id: int):
    """Mark a pending transaction as cleared by the bank."""
    service = _service(ctx)

    try:
        service.complete_transaction(transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Transaction {transaction_id} completed")


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="txn")
