"""Full analysis report command."""

import click

from finsight.cli.analysis import analysis_options, echo_json, format_money, run_analysis
from finsight.cli.commands.insights import (
    show_alerts,
    show_forecast,
    show_health,
    show_recurring,
    show_runway,
)
from finsight.domain.analytics import result_to_dict
from finsight.domain.entities import AnalyticsResult


def _heading(title: str) -> None:
    click.echo()
    click.echo(title)
    click.echo("=" * 80)


def show_overview(result: AnalyticsResult) -> None:
    overview = result.overview
    click.echo(f"{'Month':<10} {'Income':>15} {'Expenses':>15} {'Savings':>15}")
    click.echo("-" * 58)
    for month in overview.months:
        click.echo(
            f"{month.month.strftime('%Y-%m'):<10} {format_money(month.income):>15} "
            f"{format_money(month.expenses):>15} {format_money(month.savings):>15}"
        )
    click.echo("-" * 58)
    click.echo(
        f"{'Total':<10} {format_money(overview.total_income):>15} "
        f"{format_money(overview.total_expenses):>15} {format_money(overview.total_savings):>15}"
    )
    click.echo(
        f"{'Average':<10} {format_money(overview.avg_monthly_income):>15} "
        f"{format_money(overview.avg_monthly_expenses):>15} "
        f"{format_money(overview.avg_monthly_savings):>15}"
    )
    click.echo(f"\nSavings rate: {overview.savings_rate:.1f}%")


def show_budgets(result: AnalyticsResult) -> None:
    if not result.budget_statuses:
        click.echo("No monthly budgets.")
        return
    click.echo(f"{'Category':<30} {'Spent':>12} {'Budget':>12} {'Used':>7} {'Projected':>12}")
    click.echo("-" * 77)
    for status in result.budget_statuses:
        name = status.category.name if status.category else f"#{status.budget.category_id}"
        click.echo(
            f"{name[:30]:<30} {format_money(status.spent):>12} "
            f"{format_money(status.budget.amount):>12} {status.percent_used:>6.0f}% "
            f"{format_money(status.projected_spending):>12}"
        )


def show_goals(result: AnalyticsResult) -> None:
    if not result.goal_progress:
        click.echo("No savings goals.")
        return
    for progress in result.goal_progress:
        goal = progress.goal
        state = "complete" if progress.is_complete else (
            "on track" if progress.on_track else "behind"
        )
        deadline = f", due {goal.deadline.isoformat()}" if goal.deadline else ""
        click.echo(
            f"{(goal.name or 'Savings goal')[:30]:<30} {progress.percent_complete:>5.0f}% "
            f"of {format_money(goal.target_amount)}{deadline} ({state})"
        )


@click.command("report")
@analysis_options
@click.pass_context
def report(ctx, user: str, as_of: str, upcoming_days: int, top_categories: int, as_json: bool):
    """Show the full financial insight report."""
    result = run_analysis(
        ctx,
        user=user,
        as_of=as_of,
        upcoming_days=upcoming_days,
        top_categories=top_categories,
    )

    if as_json:
        echo_json(result_to_dict(result))
        return

    click.echo(f"Financial report for {user} as of {result.now.isoformat()}")
    click.echo(f"Current balance: {format_money(result.current_balance)}")

    for title, renderer in (
        ("Last 12 Months", show_overview),
        ("Budgets", show_budgets),
        ("Savings Goals", show_goals),
        ("Recurring Transactions", show_recurring),
        ("Burn Rate & Runway", show_runway),
        ("Forecast", show_forecast),
        ("Financial Health", show_health),
        ("Alerts", show_alerts),
    ):
        _heading(title)
        renderer(result)


def register_commands(cli):
    """Register report command with CLI."""
    cli.add_command(report)
