"""CLI helpers for date range resolution."""

from datetime import date

import click

from trustledger.utils.date_parser import get_date_range, parse_date


def parse_date_option(ctx: click.Context, value: str | None, label: str) -> date | None:
    """Parse an optional date option, or exit with a CLI error."""
    if not value:
        return None
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def resolve_cli_period(
    ctx: click.Context,
    *,
    start_date: str | None,
    end_date: str | None,
    period: str | None,
) -> tuple[date, date]:
    """Resolve a required statement period from --period or --start/--end."""
    if period and (start_date or end_date):
        click.echo("Error: --period cannot be combined with --start or --end.", err=True)
        ctx.exit(1)

    if period:
        try:
            return get_date_range(period)
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)

    start = parse_date_option(ctx, start_date, "start date")
    end = parse_date_option(ctx, end_date, "end date")
    if start is None or end is None:
        click.echo("Error: Provide --period, or both --start and --end.", err=True)
        ctx.exit(1)
    return start, end
