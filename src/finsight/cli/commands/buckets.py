"""Time series command."""

import click
from dateutil.relativedelta import relativedelta

from finsight.cli.analysis import echo_json, format_money, handle_domain_error, resolve_as_of
from finsight.cli.date_filters import PERIODS, resolve_cli_date_range
from finsight.domain.analytics import to_primitive
from finsight.domain.buckets import bucket_transactions, custom_bucket
from finsight.domain.entities import BucketUnit
from finsight.domain.errors import DomainError


@click.command("buckets")
@click.option("--user", required=True, envvar="FINSIGHT_USER", help="Ledger owner id")
@click.option(
    "--unit",
    type=click.Choice([unit.value for unit in BucketUnit] + ["range"]),
    default=BucketUnit.MONTH.value,
    show_default=True,
    help="Bucket size; 'range' sums the whole range into one bucket",
)
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@click.option("--period", type=click.Choice(PERIODS), help="Named period instead of explicit dates")
@click.option("--as-of", default="today", show_default=True, help="Reference date for relative dates")
@click.option("--json", "as_json", is_flag=True, help="Print machine-readable JSON")
@click.pass_context
def buckets(
    ctx,
    user: str,
    unit: str,
    start_date: str | None,
    end_date: str | None,
    period: str | None,
    as_of: str,
    as_json: bool,
):
    """Show income, expenses and net per calendar bucket.

    Defaults to the twelve months ending at --as-of.
    """
    db = ctx.obj["db"]
    today = resolve_as_of(ctx, as_of)
    default_start = today.replace(day=1) - relativedelta(months=11)
    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period=period,
        today=today,
        default_range=(default_start, today),
    )

    try:
        transactions = db.list_transactions(user, end_date=end)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if unit == "range":
        series = [custom_bucket(transactions, start, end)]
    else:
        series = bucket_transactions(transactions, BucketUnit(unit), start, end)

    if as_json:
        echo_json(to_primitive(series))
        return

    if not transactions:
        click.echo("No transactions found.")
        return

    click.echo(f"{'Period':<24} {'Income':>15} {'Expenses':>15} {'Net':>15} {'Count':>6}")
    click.echo("-" * 79)
    for bucket in series:
        click.echo(
            f"{bucket.label:<24} {format_money(bucket.income_total):>15} "
            f"{format_money(bucket.expense_total):>15} {format_money(bucket.net):>15} "
            f"{bucket.transaction_count:>6}"
        )


def register_commands(cli):
    """Register buckets command with CLI."""
    cli.add_command(buckets)
