"""Flask CLI commands for BudgetPilot."""

from __future__ import annotations

import json

import click


def init_app(app) -> None:
    """Register CLI commands on the Flask app."""

    @app.cli.command("budgetpilot-init-db")
    def budgetpilot_init_db() -> None:
        """Create database tables for every model."""

        from .extensions import get_engine
        from .infra.database import init_database

        init_database(get_engine())
        click.echo("Database schema is up to date.")

    @app.cli.command("budgetpilot-preview-plan")
    @click.option("--user-id", type=int, required=True, help="Owner of the credit accounts")
    @click.option(
        "--strategy",
        type=click.Choice(["snowball", "avalanche"]),
        default="avalanche",
        show_default=True,
    )
    @click.option("--extra", type=float, default=None, help="Extra monthly payment")
    def budgetpilot_preview_plan(user_id: int, strategy: str, extra: float | None) -> None:
        """Print a payoff plan for a user's credit accounts without saving it."""

        from .errors import BudgetPilotError
        from .extensions import get_session_factory
        from .infra.repositories.account import SQLModelAccountRepository
        from .services.debts import debts_from_accounts, generate_plan, payoff_milestones

        config = app.config["BUDGETPILOT_CONFIG"]
        accounts = SQLModelAccountRepository(get_session_factory()).list_credit(user_id=user_id)
        debts = debts_from_accounts(accounts)
        extra_payment = config.DEFAULT_EXTRA_PAYMENT if extra is None else extra
        try:
            plan = generate_plan(
                debts, strategy, extra_payment, max_months=config.MAX_PLAN_MONTHS
            )
        except BudgetPilotError as exc:
            raise click.ClickException(exc.message) from exc

        output = plan.to_dict()
        output["milestones"] = [m.to_dict() for m in payoff_milestones(plan)]
        click.echo(json.dumps(output, indent=2))
