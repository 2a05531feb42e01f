"""CLI helpers for date range resolution."""

from datetime import date

import click

from finsight.utils.date_parser import get_date_range, parse_date

PERIODS = ("this-week", "this-month", "this-year", "last-week", "last-month", "last-year")


def _parse_bound(ctx, label: str, value: str, today: date) -> date:
    try:
        return parse_date(value, today=today)
    except ValueError as e:
        click.echo(f"Error: Invalid {label} date: {e}", err=True)
        ctx.exit(1)


def resolve_cli_date_range(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    period: str | None,
    today: date,
    default_range: tuple[date, date],
) -> tuple[date, date]:
    """Resolve a closed date range from a named period or explicit dates.

    Relative dates and periods are resolved against ``today``. A missing
    start or end falls back to the matching side of ``default_range``.
    """
    if period and (start_date or end_date):
        click.echo(
            "Error: --period cannot be combined with --start-date or --end-date.",
            err=True,
        )
        ctx.exit(1)

    if period:
        return get_date_range(period, today=today)

    start = _parse_bound(ctx, "start", start_date, today) if start_date else default_range[0]
    end = _parse_bound(ctx, "end", end_date, today) if end_date else default_range[1]

    if start > end:
        click.echo(
            f"Error: Start date {start.isoformat()} is after end date {end.isoformat()}.",
            err=True,
        )
        ctx.exit(1)

    return start, end
