"""Commands that show one part of the analysis."""

from decimal import Decimal
from typing import Optional

import click

from finsight.cli.analysis import (
    analysis_options,
    echo_json,
    format_money,
    handle_domain_error,
    run_analysis,
)
from finsight.domain.analytics import to_primitive
from finsight.domain.entities import AnalyticsResult, ScenarioComparison, WhatIfScenario
from finsight.domain.scenarios import (
    compare_scenarios,
    emergency_fund,
    expense_reduction,
    loan_payoff,
    new_expense,
    salary_increase,
)
from finsight.utils.amount_parser import parse_amount

SEVERITY_MARKERS = {
    "critical": "[!!]",
    "warning": "[! ]",
    "info": "[i ]",
    "success": "[ok]",
}


def show_recurring(result: AnalyticsResult) -> None:
    patterns = result.recurring_patterns
    if not patterns:
        click.echo("No recurring transactions detected.")
        return

    upcoming = result.upcoming_patterns
    click.echo(
        f"{'Description':<30} {'Frequency':<10} {'Amount':>12} {'Conf.':>6} {'Next':>12}"
    )
    click.echo("-" * 74)
    for pattern in patterns:
        marker = " *" if pattern in upcoming else ""
        click.echo(
            f"{pattern.description[:30]:<30} {pattern.frequency.value:<10} "
            f"{format_money(pattern.avg_amount):>12} {pattern.confidence:>5.0f}% "
            f"{pattern.next_expected_date.isoformat():>12}{marker}"
        )
    if upcoming:
        click.echo("\n* expected within the upcoming horizon")


def show_runway(result: AnalyticsResult) -> None:
    burn = result.burn_rate
    click.echo(f"Current balance:   {format_money(burn.balance)}")
    click.echo(f"Daily burn:        {format_money(burn.daily_burn)}")
    click.echo(f"Weekly burn:       {format_money(burn.weekly_burn)}")
    click.echo(f"Monthly burn:      {format_money(burn.monthly_burn)}")
    click.echo(f"Net monthly burn:  {format_money(burn.net_burn)}")
    if burn.is_unbounded:
        click.echo("Runway:            unlimited (not burning cash)")
    else:
        click.echo(
            f"Runway:            {burn.months_remaining} months ({burn.days_remaining} days)"
        )
    click.echo(f"Status:            {burn.status.value}")
    click.echo(f"Burn rate trend:   {burn.burn_rate_trend:+.1f}%")


def show_forecast(result: AnalyticsResult) -> None:
    forecast = result.forecast
    click.echo(f"{'Series':<10} {'3 mo':>12} {'6 mo':>12} {'12 mo':>12} {'Forecast':>12} {'Conf.':>6}")
    click.echo("-" * 70)
    for name, series in (("Income", forecast.income), ("Expenses", forecast.expense)):
        click.echo(
            f"{name:<10} {format_money(series.avg_3_months):>12} "
            f"{format_money(series.avg_6_months):>12} {format_money(series.avg_12_months):>12} "
            f"{format_money(series.value):>12} {series.confidence:>5.0f}%"
        )
    click.echo()
    click.echo(f"Forecast savings:  {format_money(forecast.savings)}")
    click.echo(f"Forecast balance:  {format_money(forecast.balance)}")
    click.echo(
        f"Confidence:        {forecast.confidence:.0f}% ({forecast.confidence_level.value})"
    )

    if forecast.categories:
        click.echo("\nTop spending categories next month:")
        for item in forecast.categories:
            click.echo(f"  {item.category_name:<40} {format_money(item.amount):>14}")

    projection = result.cash_flow_projection
    if projection.projections:
        click.echo(f"\nCash flow projection (trend: {projection.trend.value}):")
        show_projected_months(projection.projections)
        if projection.months_until_zero is not None:
            click.echo(
                f"At the average net flow the balance runs out in about "
                f"{projection.months_until_zero} months"
            )


def show_projected_months(months) -> None:
    click.echo(
        f"  {'Month':<10} {'Income':>14} {'Expenses':>14} {'Net':>14} {'Balance':>14}"
    )
    for month in months:
        click.echo(
            f"  {month.month.strftime('%b %Y'):<10} {format_money(month.income):>14} "
            f"{format_money(month.expense):>14} {format_money(month.net):>14} "
            f"{format_money(month.balance):>14}"
        )


def show_health(result: AnalyticsResult) -> None:
    health = result.health
    click.echo(f"Financial health: {health.score}/100 ({health.grade.value})")
    click.echo("-" * 40)
    for label, points, maximum in (
        ("Savings rate", health.savings_rate_score, 25),
        ("Budget adherence", health.budget_adherence_score, 20),
        ("Spending consistency", health.spending_consistency_score, 15),
        ("Emergency fund", health.emergency_fund_score, 15),
        ("Income stability", health.income_stability_score, 15),
        ("Expense ratio", health.expense_ratio_score, 10),
    ):
        click.echo(f"{label:<24} {points:>6.1f} / {maximum}")

    if health.recommendations:
        click.echo("\nRecommendations:")
        for recommendation in health.recommendations:
            click.echo(f"  - {recommendation}")


def show_alerts(result: AnalyticsResult) -> None:
    if not result.alerts:
        click.echo("No alerts.")
        return
    for alert in result.alerts:
        click.echo(f"{SEVERITY_MARKERS[alert.severity.value]} {alert.title}")
        click.echo(f"     {alert.message}")


SECTIONS = {
    "recurring": (show_recurring, "recurring_patterns", "Show detected recurring transactions."),
    "runway": (show_runway, "burn_rate", "Show burn rate and runway."),
    "forecast": (show_forecast, "forecast", "Show next-month forecast."),
    "health": (show_health, "health", "Show the financial health score."),
    "alerts": (show_alerts, "alerts", "Show prioritized alerts."),
}


def make_section_command(name: str) -> click.Command:
    """Build a command printing one section of the analysis."""
    renderer, attribute, help_text = SECTIONS[name]

    @click.command(name, help=help_text)
    @analysis_options
    @click.pass_context
    def command(ctx, user, as_of, upcoming_days, top_categories, as_json):
        result = run_analysis(
            ctx,
            user=user,
            as_of=as_of,
            upcoming_days=upcoming_days,
            top_categories=top_categories,
        )
        if as_json:
            echo_json(to_primitive(getattr(result, attribute)))
            return
        renderer(result)

    return command


def _signed(amount: Decimal) -> str:
    return f"+{format_money(amount)}" if amount > 0 else format_money(amount)


def show_scenarios(
    result: AnalyticsResult,
    scenarios: list[WhatIfScenario],
    comparison: Optional[ScenarioComparison],
) -> None:
    projection = result.cash_flow_projection
    click.echo(f"Average income:     {format_money(projection.average_income)}")
    click.echo(f"Average expenses:   {format_money(projection.average_expenses)}")
    click.echo(f"Average net:        {format_money(projection.average_net)}")
    click.echo(f"Trend:              {projection.trend.value}")
    click.echo(f"Projected balance:  {format_money(projection.projected_balance)}")
    click.echo()
    show_projected_months(projection.projections)

    if not scenarios:
        click.echo(
            "\nNo scenarios requested. Use --raise, --cut, --new-expense, "
            "--loan-payment or --emergency-savings."
        )
        return

    for scenario in scenarios:
        click.echo(f"\n{scenario.name}: {scenario.description}")
        if scenario.final_balance is not None:
            click.echo(f"  Final balance:  {format_money(scenario.final_balance)}")
        click.echo(f"  Total impact:   {_signed(scenario.total_impact)}")
        click.echo(f"  {scenario.recommendation}")

    if comparison is not None:
        click.echo(f"\n{comparison.summary}")


@click.command("what-if")
@analysis_options
@click.option(
    "--months",
    type=click.Choice(["3", "6", "12"]),
    default="6",
    show_default=True,
    envvar="FINSIGHT_PROJECTION_MONTHS",
    help="Projection horizon in months",
)
@click.option("--raise", "raise_amount", help="Monthly income increase")
@click.option(
    "--raise-start",
    type=click.IntRange(min=0),
    default=0,
    show_default=True,
    help="Projected months before the increase starts",
)
@click.option("--cut", "cut_amount", help="Monthly spending reduction")
@click.option("--cut-category", default="spending", show_default=True, help="What gets cut")
@click.option("--new-expense", "new_expense_amount", help="New monthly expense")
@click.option(
    "--new-expense-name", default="a new expense", show_default=True, help="Name of the expense"
)
@click.option("--loan-payment", help="Monthly loan payment that ends")
@click.option(
    "--loan-months", type=click.IntRange(min=0), help="Loan payments left before payoff"
)
@click.option("--emergency-savings", help="Monthly contribution to an emergency fund")
@click.option("--emergency-target", help="Emergency fund target")
@click.pass_context
def what_if(
    ctx,
    user: str,
    as_of: str,
    upcoming_days: int,
    top_categories: int,
    as_json: bool,
    months: str,
    raise_amount: Optional[str],
    raise_start: int,
    cut_amount: Optional[str],
    cut_category: str,
    new_expense_amount: Optional[str],
    new_expense_name: str,
    loan_payment: Optional[str],
    loan_months: Optional[int],
    emergency_savings: Optional[str],
    emergency_target: Optional[str],
):
    """Compare the cash flow projection against what-if scenarios.

    Examples:
        finsight what-if --user alice --raise 500 --cut 120 --cut-category Dining
        finsight what-if --user alice --months 12 --loan-payment 350 --loan-months 4
        finsight what-if --user alice --emergency-savings 400 --emergency-target 5000
    """
    if (loan_payment is None) != (loan_months is None):
        raise click.UsageError("--loan-payment and --loan-months must be given together")
    if (emergency_savings is None) != (emergency_target is None):
        raise click.UsageError(
            "--emergency-savings and --emergency-target must be given together"
        )

    result = run_analysis(
        ctx,
        user=user,
        as_of=as_of,
        upcoming_days=upcoming_days,
        top_categories=top_categories,
        projection_months=int(months),
    )
    baseline = result.cash_flow_projection.projections

    scenarios: list[WhatIfScenario] = []
    try:
        if raise_amount is not None:
            scenarios.append(salary_increase(baseline, parse_amount(raise_amount), raise_start))
        if cut_amount is not None:
            scenarios.append(expense_reduction(baseline, parse_amount(cut_amount), cut_category))
        if new_expense_amount is not None:
            scenarios.append(
                new_expense(baseline, parse_amount(new_expense_amount), new_expense_name)
            )
        if loan_payment is not None:
            scenarios.append(loan_payoff(baseline, parse_amount(loan_payment), loan_months))
        if emergency_savings is not None:
            scenarios.append(
                emergency_fund(
                    baseline,
                    parse_amount(emergency_savings),
                    parse_amount(emergency_target),
                )
            )
        comparison = compare_scenarios(scenarios) if len(scenarios) > 1 else None
    except ValueError as e:
        handle_domain_error(ctx, e)

    if as_json:
        echo_json(
            {
                "baseline": to_primitive(result.cash_flow_projection),
                "scenarios": to_primitive(scenarios),
                "comparison": to_primitive(comparison),
            }
        )
        return
    show_scenarios(result, scenarios, comparison)


def register_commands(cli):
    """Register section commands with CLI."""
    for name in SECTIONS:
        cli.add_command(make_section_command(name))
    cli.add_command(what_if)
