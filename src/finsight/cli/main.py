"""Main CLI entry point."""

import logging

import click
from finsight.database.factories import create_sqlite_database

# Import and register all commands at module level
from finsight.cli.commands import buckets, insights, report


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to ledger database file (overrides FINSIGHT_DB_PATH environment variable)",
    envvar="FINSIGHT_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    envvar="FINSIGHT_LOG_LEVEL",
    help="Logging verbosity (logs go to stderr)",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str):
    """Finsight - Financial insights for a personal ledger.

    Detect recurring transactions, score financial health, project runway
    and forecast next month's income and expenses.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
report.register_commands(cli)
insights.register_commands(cli)
buckets.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
