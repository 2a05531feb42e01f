"""Shared CLI plumbing for commands that run an analysis pass."""

import json
from datetime import date
from decimal import Decimal
from typing import Any, Optional

import click

from finsight.domain.analytics import InsightService
from finsight.domain.entities import AnalysisSettings, AnalyticsResult
from finsight.domain.errors import DomainError
from finsight.utils.date_parser import parse_date


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


ANALYSIS_OPTIONS = (
    click.option("--user", required=True, envvar="FINSIGHT_USER", help="Ledger owner id"),
    click.option(
        "--as-of",
        default="today",
        show_default=True,
        help="Reference date (YYYY-MM-DD or relative like 'yesterday', 'last month')",
    ),
    click.option(
        "--upcoming-days",
        type=click.IntRange(min=0),
        default=30,
        show_default=True,
        envvar="FINSIGHT_UPCOMING_DAYS",
        help="Horizon for upcoming recurring transactions",
    ),
    click.option(
        "--top-categories",
        type=click.IntRange(min=1),
        default=5,
        show_default=True,
        envvar="FINSIGHT_TOP_CATEGORIES",
        help="Number of categories in the spending forecast",
    ),
    click.option("--json", "as_json", is_flag=True, help="Print machine-readable JSON"),
)


def analysis_options(command):
    """Add the options every analysis command accepts."""
    for option in reversed(ANALYSIS_OPTIONS):
        command = option(command)
    return command


def resolve_as_of(ctx: click.Context, as_of: str, today: Optional[date] = None) -> date:
    """Resolve the reference date once, at the edge of the program."""
    try:
        return parse_date(as_of, today=today or date.today())
    except ValueError as e:
        click.echo(f"Error: Invalid --as-of date: {e}", err=True)
        ctx.exit(1)


def run_analysis(
    ctx: click.Context,
    *,
    user: str,
    as_of: str,
    upcoming_days: int,
    top_categories: int,
    projection_months: int = 6,
) -> AnalyticsResult:
    """Load the user's ledger and analyze it, exiting on bad input."""
    now = resolve_as_of(ctx, as_of)
    settings = AnalysisSettings(
        upcoming_horizon_days=upcoming_days,
        top_categories=top_categories,
        projection_months=projection_months,
    )
    service = InsightService(ctx.obj["db"])
    try:
        return service.analyze_user(user, now, settings)
    except DomainError as e:
        handle_domain_error(ctx, e)


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=_json_default))


def format_money(amount: Decimal) -> str:
    """Format a decimal amount for display."""
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"
