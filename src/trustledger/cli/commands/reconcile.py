"""Reconciliation and bank statement commands."""

from datetime import date

import click
from trustledger.cli.date_filters import parse_date_option, resolve_cli_period
from trustledger.cli.error_handling import handle_domain_error
from trustledger.domain.entities import ReconciliationResult
from trustledger.domain.errors import DomainError
from trustledger.domain.reconciliation import ReconciliationService
from trustledger.utils.amount_parser import format_amount

PERIODS = ["this-month", "last-month", "last-quarter"]


def _echo_result(result: ReconciliationResult) -> None:
    rec = result.reconciliation
    click.echo(f"Reconciliation {rec.id} ({rec.status.value})")
    click.echo(f"  Period: {rec.period_start} to {rec.period_end}")
    click.echo(f"  Bank balance: {format_amount(rec.bank_balance)}")
    click.echo(f"  Book balance: {format_amount(rec.book_balance)}")
    click.echo(f"  Difference:   {format_amount(rec.difference)}")
    click.echo(f"  Balanced: {'yes' if rec.is_balanced else 'NO'}")
    if rec.is_provisional:
        click.echo(f"  Provisional: {rec.pending_count} pending transaction(s) excluded")
    if result.account_balance != result.ledger_total:
        click.echo(
            f"  Warning: account balance {format_amount(result.account_balance)} does not match "
            f"client ledger total {format_amount(result.ledger_total)}"
        )


@click.group()
def reconcile_group():
    """Reconcile trust accounts against bank statements."""
    pass


@reconcile_group.command("run")
@click.argument("account_id", type=int, metavar="ACCOUNT_ID")
@click.argument("bank_balance", metavar="BANK_BALANCE")
@click.option("--start", "start_date", help="Period start (YYYY-MM-DD)")
@click.option("--end", "end_date", help="Period end (YYYY-MM-DD)")
@click.option("--period", type=click.Choice(PERIODS), help="Named period instead of --start/--end")
@click.option("--by", "reconciled_by", help="User running the reconciliation")
@click.option("--notes", help="Notes stored with the reconciliation")
@click.pass_context
def run_reconciliation(
    ctx,
    account_id: int,
    bank_balance: str,
    start_date: str | None,
    end_date: str | None,
    period: str | None,
    reconciled_by: str | None,
    notes: str | None,
):
    """Reconcile a trust account against a bank balance.

    Examples:
        trustledger reconcile run 1 12500.00 --period last-month
        trustledger reconcile run 1 12500.00 --start 2024-01-01 --end 2024-01-31
    """
    service = ReconciliationService(ctx.obj["db"])
    start, end = resolve_cli_period(ctx, start_date=start_date, end_date=end_date, period=period)

    try:
        result = service.reconcile(
            trust_account_id=account_id,
            period_start=start,
            period_end=end,
            bank_balance=bank_balance,
            reconciled_by=reconciled_by,
            notes=notes,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    _echo_result(result)


@reconcile_group.command("add-statement")
@click.argument("account_id", type=int, metavar="ACCOUNT_ID")
@click.option("--opening", required=True, help="Starting balance on the statement")
@click.option("--closing", required=True, help="Ending balance on the statement")
@click.option("--start", "start_date", help="Period start (YYYY-MM-DD)")
@click.option("--end", "end_date", help="Period end (YYYY-MM-DD)")
@click.option("--period", type=click.Choice(PERIODS), help="Named period instead of --start/--end")
@click.option("--date", "statement_date", help="Statement date (defaults to period end)")
@click.pass_context
def add_statement(
    ctx,
    account_id: int,
    opening: str,
    closing: str,
    start_date: str | None,
    end_date: str | None,
    period: str | None,
    statement_date: str | None,
):
    """Record the figures of a bank statement."""
    service = ReconciliationService(ctx.obj["db"])
    start, end = resolve_cli_period(ctx, start_date=start_date, end_date=end_date, period=period)
    stmt_date: date = parse_date_option(ctx, statement_date, "statement date") or end

    try:
        statement_id = service.record_bank_statement(
            trust_account_id=account_id,
            statement_date=stmt_date,
            period_start=start,
            period_end=end,
            starting_balance=opening,
            ending_balance=closing,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Recorded bank statement {statement_id} for {start} to {end}")


@reconcile_group.command("statements")
@click.argument("account_id", type=int, metavar="ACCOUNT_ID")
@click.pass_context
def list_statements(ctx, account_id: int):
    """List recorded bank statements of a trust account."""
    service = ReconciliationService(ctx.obj["db"])

    try:
        statements = service.list_bank_statements(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not statements:
        click.echo("No bank statements found.")
        return

    for stmt in statements:
        click.echo(
            f"ID: {stmt.id:3d} | {stmt.period_start} to {stmt.period_end} | "
            f"opening {format_amount(stmt.starting_balance)} | "
            f"closing {format_amount(stmt.ending_balance)}"
        )


@reconcile_group.command("from-statement")
@click.argument("statement_id", type=int, metavar="STATEMENT_ID")
@click.option("--by", "reconciled_by", help="User running the reconciliation")
@click.option("--notes", help="Notes stored with the reconciliation")
@click.pass_context
def reconcile_from_statement(ctx, statement_id: int, reconciled_by: str | None, notes: str | None):
    """Reconcile against a recorded bank statement."""
    service = ReconciliationService(ctx.obj["db"])

    try:
        result = service.reconcile_statement(statement_id, reconciled_by=reconciled_by, notes=notes)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    _echo_result(result)


@reconcile_group.command("list")
@click.argument("account_id", type=int, metavar="ACCOUNT_ID")
@click.pass_context
def list_reconciliations(ctx, account_id: int):
    """List reconciliations of a trust account, newest first."""
    service = ReconciliationService(ctx.obj["db"])

    try:
        recs = service.list_reconciliations(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not recs:
        click.echo("No reconciliations found.")
        return

    for rec in recs:
        flag = "balanced" if rec.is_balanced else f"off by {format_amount(rec.difference)}"
        click.echo(
            f"ID: {rec.id:3d} | {rec.period_start} to {rec.period_end} | "
            f"{rec.status.value:8s} | {flag}"
        )


@reconcile_group.command("review")
@click.argument("reconciliation_id", type=int, metavar="RECONCILIATION_ID")
@click.option("--by", "reviewed_by", help="Reviewer")
@click.pass_context
def review_reconciliation(ctx, reconciliation_id: int, reviewed_by: str | None):
    """Mark a draft reconciliation as reviewed."""
    service = ReconciliationService(ctx.obj["db"])

    try:
        service.review_reconciliation(reconciliation_id, reviewed_by=reviewed_by)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Reconciliation {reconciliation_id} reviewed")


def register_commands(cli):
    """Register reconciliation commands with main CLI."""
    cli.add_command(reconcile_group, name="reconcile")
