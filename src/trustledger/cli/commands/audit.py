"""Audit command."""

import click
from trustledger.cli.error_handling import handle_domain_error
from trustledger.domain.audit import AuditService
from trustledger.domain.errors import DomainError


@click.command("audit")
@click.option("--account", "account_id", type=int, help="Audit every ledger of a trust account")
@click.option("--ledger", "ledger_id", type=int, help="Audit a single client ledger")
@click.pass_context
def audit(ctx, account_id: int | None, ledger_id: int | None):
    """Replay stored history and report balance mismatches.

    Nothing is changed; fix any mismatch with an offsetting transaction.

    Examples:
        trustledger audit --account 1
        trustledger audit --ledger 3
    """
    if (account_id is None) == (ledger_id is None):
        click.echo("Error: Provide exactly one of --account or --ledger.", err=True)
        ctx.exit(1)

    service = AuditService(ctx.obj["db"])

    try:
        if ledger_id is not None:
            findings = service.audit_ledger(ledger_id)
        else:
            findings = service.audit_trust_account(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not findings:
        click.echo("No mismatches found.")
        return

    for finding in findings:
        click.echo(finding.message)
    click.echo(f"{len(findings)} mismatch(es) found.", err=True)
    ctx.exit(2)


def register_commands(cli):
    """Register audit command with main CLI."""
    cli.add_command(audit)
