"""CLI tests for the analysis commands."""

import json

import pytest

from finsight.cli.main import cli


def _invoke(cli_runner, temp_db, *args):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args])


def test_help_does_not_need_database(cli_runner):
    result = cli_runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    for command in (
        "report",
        "recurring",
        "runway",
        "forecast",
        "health",
        "alerts",
        "buckets",
        "what-if",
    ):
        assert command in result.output


def test_report(cli_runner, temp_db, sample_ledger):
    result = _invoke(cli_runner, temp_db, "report", "--user", "alice", "--as-of", "2024-09-30")

    assert result.exit_code == 0, result.output
    assert "Financial report for alice as of 2024-09-30" in result.output
    assert "Current balance: $9,314.60" in result.output
    for heading in ("Last 12 Months", "Budgets", "Savings Goals", "Recurring Transactions"):
        assert heading in result.output
    assert "Groceries" in result.output
    assert "Vacation" in result.output


def test_report_json(cli_runner, temp_db, sample_ledger):
    result = _invoke(
        cli_runner, temp_db, "report", "--user", "alice", "--as-of", "2024-09-30", "--json"
    )

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["current_balance"] == "9314.60"
    assert len(data["monthly_buckets"]) == 12


def test_recurring(cli_runner, temp_db, sample_ledger):
    result = _invoke(
        cli_runner, temp_db, "recurring", "--user", "alice", "--as-of", "2024-09-30"
    )

    assert result.exit_code == 0, result.output
    assert "Rent" in result.output
    assert "Payroll" in result.output
    assert "2024-10-01 *" in result.output


def test_recurring_json(cli_runner, temp_db, sample_ledger):
    result = _invoke(
        cli_runner, temp_db, "recurring", "--user", "alice", "--as-of", "2024-09-30", "--json"
    )

    assert result.exit_code == 0, result.output
    patterns = json.loads(result.output)
    assert {p["description"] for p in patterns} == {"Rent", "Payroll"}
    assert all(p["frequency"] == "monthly" for p in patterns)


def test_recurring_empty_ledger(cli_runner, temp_db):
    result = _invoke(
        cli_runner, temp_db, "recurring", "--user", "nobody", "--as-of", "2024-09-30"
    )

    assert result.exit_code == 0
    assert "No recurring transactions detected." in result.output


@pytest.mark.parametrize(
    "command,expected",
    [
        ("runway", "Runway:            unlimited"),
        ("forecast", "Forecast balance:"),
        ("health", "Financial health: "),
    ],
)
def test_section_commands(cli_runner, temp_db, sample_ledger, command, expected):
    result = _invoke(cli_runner, temp_db, command, "--user", "alice", "--as-of", "2024-09-30")

    assert result.exit_code == 0, result.output
    assert expected in result.output


def test_alerts_for_empty_ledger(cli_runner, temp_db):
    result = _invoke(cli_runner, temp_db, "alerts", "--user", "nobody", "--as-of", "2024-09-10")

    assert result.exit_code == 0
    assert "No alerts." in result.output


def test_alerts_flag_missing_income(cli_runner, temp_db):
    result = _invoke(cli_runner, temp_db, "alerts", "--user", "nobody", "--as-of", "2024-09-20")

    assert result.exit_code == 0
    assert "[!!] No Income Recorded This Month" in result.output


def test_user_from_environment(cli_runner, temp_db, sample_ledger, monkeypatch):
    monkeypatch.setenv("FINSIGHT_USER", "alice")

    result = _invoke(cli_runner, temp_db, "health", "--as-of", "2024-09-30")

    assert result.exit_code == 0, result.output
    assert "Financial health: " in result.output


def test_missing_user_is_a_usage_error(cli_runner, temp_db, monkeypatch):
    monkeypatch.delenv("FINSIGHT_USER", raising=False)

    result = _invoke(cli_runner, temp_db, "health")

    assert result.exit_code == 2
    assert "--user" in result.output


def test_invalid_as_of(cli_runner, temp_db):
    result = _invoke(cli_runner, temp_db, "health", "--user", "alice", "--as-of", "someday")

    assert result.exit_code == 1
    assert "Invalid --as-of date" in result.output


def test_buckets_by_month(cli_runner, temp_db, sample_ledger):
    result = _invoke(
        cli_runner,
        temp_db,
        "buckets",
        "--user",
        "alice",
        "--start-date",
        "2024-07-01",
        "--end-date",
        "2024-09-30",
    )

    assert result.exit_code == 0, result.output
    lines = [line for line in result.output.splitlines() if line.startswith("2024-")]
    assert [line.split()[0] for line in lines] == ["2024-07", "2024-08", "2024-09"]
    assert "$2,714.60" in lines[2]


def test_buckets_range_json(cli_runner, temp_db, sample_ledger):
    result = _invoke(
        cli_runner,
        temp_db,
        "buckets",
        "--user",
        "alice",
        "--unit",
        "range",
        "--as-of",
        "2024-09-30",
        "--period",
        "last-month",
        "--json",
    )

    assert result.exit_code == 0, result.output
    (bucket,) = json.loads(result.output)
    assert bucket["start"] == "2024-08-01"
    assert bucket["end"] == "2024-08-31"
    assert bucket["transaction_count"] == 2


def test_buckets_reject_period_with_dates(cli_runner, temp_db):
    result = _invoke(
        cli_runner,
        temp_db,
        "buckets",
        "--user",
        "alice",
        "--period",
        "this-month",
        "--start-date",
        "2024-01-01",
    )

    assert result.exit_code == 1
    assert "cannot be combined" in result.output


def test_buckets_reject_reversed_range(cli_runner, temp_db):
    result = _invoke(
        cli_runner,
        temp_db,
        "buckets",
        "--user",
        "alice",
        "--start-date",
        "2024-03-01",
        "--end-date",
        "2024-01-01",
    )

    assert result.exit_code == 1
    assert "is after end date" in result.output


def test_buckets_empty_ledger(cli_runner, temp_db):
    result = _invoke(cli_runner, temp_db, "buckets", "--user", "nobody", "--as-of", "2024-09-30")

    assert result.exit_code == 0
    assert "No transactions found." in result.output


def test_what_if_scenarios(cli_runner, temp_db, sample_ledger):
    result = _invoke(
        cli_runner,
        temp_db,
        "what-if",
        "--user",
        "alice",
        "--as-of",
        "2024-09-30",
        "--months",
        "3",
        "--raise",
        "500",
        "--new-expense",
        "50",
        "--new-expense-name",
        "Gym",
    )

    assert result.exit_code == 0, result.output
    assert "Trend:              improving" in result.output
    assert "Projected balance:  $17,779.29" in result.output
    rows = [line.split() for line in result.output.splitlines() if line.startswith("  Oct 2024")]
    assert rows == [["Oct", "2024", "$4,080.00", "$1,240.75", "$2,796.55", "$12,111.15"]]
    assert "Salary Increase: Impact of a $500.00 monthly income increase" in result.output
    assert "Final balance:  $19,279.29" in result.output
    assert "Total impact:   +$1,500.00" in result.output
    assert "New Expense: Impact of adding Gym at $50.00 per month" in result.output
    assert "Total impact:   -$150.00" in result.output
    assert (
        "Best scenario: Salary Increase (+$1,500.00). "
        "Worst scenario: New Expense (-$150.00)." in result.output
    )


def test_what_if_json(cli_runner, temp_db, sample_ledger):
    result = _invoke(
        cli_runner,
        temp_db,
        "what-if",
        "--user",
        "alice",
        "--as-of",
        "2024-09-30",
        "--months",
        "3",
        "--cut",
        "100",
        "--loan-payment",
        "200",
        "--loan-months",
        "1",
        "--json",
    )

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["baseline"]["trend"] == "improving"
    assert data["baseline"]["months_until_zero"] is None
    assert [p["month"] for p in data["baseline"]["projections"]] == [
        "2024-10-01",
        "2024-11-01",
        "2024-12-01",
    ]
    assert [s["name"] for s in data["scenarios"]] == ["Expense Reduction", "Loan Payoff"]
    assert data["scenarios"][0]["total_impact"] == "300.00"
    assert data["scenarios"][1]["total_impact"] == "400.00"
    assert data["scenarios"][1]["description"] == "Impact of finishing loan payments by Nov 2024"
    assert data["comparison"]["best_case"]["name"] == "Loan Payoff"
    assert data["comparison"]["worst_case"]["name"] == "Expense Reduction"


def test_what_if_without_scenarios(cli_runner, temp_db, sample_ledger):
    result = _invoke(
        cli_runner, temp_db, "what-if", "--user", "alice", "--as-of", "2024-09-30"
    )

    assert result.exit_code == 0, result.output
    assert "No scenarios requested." in result.output
    assert "Dec 2024" in result.output
    assert "Mar 2025" in result.output


def test_what_if_loan_payment_needs_months(cli_runner, temp_db):
    result = _invoke(cli_runner, temp_db, "what-if", "--user", "alice", "--loan-payment", "200")

    assert result.exit_code == 2
    assert "--loan-payment and --loan-months must be given together" in result.output


def test_what_if_invalid_amount(cli_runner, temp_db, sample_ledger):
    result = _invoke(
        cli_runner, temp_db, "what-if", "--user", "alice", "--as-of", "2024-09-30", "--raise", "abc"
    )

    assert result.exit_code == 1
    assert "Error: Could not parse amount" in result.output


def test_what_if_rejects_negative_cut(cli_runner, temp_db, sample_ledger):
    result = _invoke(
        cli_runner,
        temp_db,
        "what-if",
        "--user",
        "alice",
        "--as-of",
        "2024-09-30",
        "--cut=-20",
    )

    assert result.exit_code == 1
    assert "amount must not be negative" in result.output
