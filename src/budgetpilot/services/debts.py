"""Debt payoff calculators (snowball and avalanche)."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Mapping, Sequence

from ..errors import UnpayableScheduleError, ValidationError
from ..logging_config import get_logger

logger = get_logger(__name__)

STRATEGIES = ("snowball", "avalanche")
MAX_PLAN_MONTHS = 1200
TARGET_PAYMENT_CEILING = 10_000
AVALANCHE_RECOMMENDATION_THRESHOLD = 500.0
MILESTONE_PERCENTAGES = (25, 50, 75, 100)

_STRATEGY_COPY = {
    "snowball": (
        "Debt Snowball Strategy",
        "Pay off smallest debts first for quick wins. Target payoff in {months} months.",
    ),
    "avalanche": (
        "Debt Avalanche Strategy",
        "Pay off highest interest debts first to save money. Target payoff in {months} months.",
    ),
}


@dataclass(slots=True)
class Debt:
    """Frozen snapshot of one liability used as planning input."""

    id: str
    account_name: str
    balance: float
    minimum_payment: float
    interest_rate: float | None = None  # annual decimal, 0.199 == 19.9 %

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Debt:
        """Build a debt from a camelCase (HTTP) or snake_case mapping."""

        def pick(*keys: str) -> Any:
            for key in keys:
                if key in data and data[key] is not None:
                    return data[key]
            return None

        debt_id = pick("id")
        name = pick("accountName", "account_name")
        if debt_id in (None, "") or not name:
            raise ValidationError("All debts must have id, accountName, and positive balance")
        try:
            balance = float(pick("balance"))
            minimum = float(pick("minimumPayment", "minimum_payment") or 0.0)
            raw_rate = pick("interestRate", "interest_rate")
            rate = float(raw_rate) if raw_rate is not None else None
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Debt {debt_id!r} has a non-numeric field") from exc
        if not all(math.isfinite(value) for value in (balance, minimum, rate or 0.0)):
            raise ValidationError(f"Debt {debt_id!r} has a non-finite amount")
        return cls(
            id=str(debt_id),
            account_name=str(name),
            balance=balance,
            minimum_payment=minimum,
            interest_rate=rate,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "accountName": self.account_name,
            "balance": self.balance,
            "interestRate": self.interest_rate,
            "minimumPayment": self.minimum_payment,
        }


@dataclass(slots=True)
class DebtPayment:
    """Money applied to one debt during one simulated month."""

    debt_id: str
    payment: float
    interest: float
    remaining_balance: float


@dataclass(slots=True)
class ScheduleMonth:
    month: int
    date: date
    payments: list[DebtPayment] = field(default_factory=list)

    @property
    def remaining_total(self) -> float:
        return round(sum(p.remaining_balance for p in self.payments), 2)


@dataclass(slots=True)
class PayoffPlan:
    """Result of :func:`generate_plan`; not persisted by itself."""

    strategy: str
    title: str
    description: str
    steps: list[str]
    total_debt: float
    monthly_payment: float
    extra_payment: float
    estimated_months: int
    total_interest: float
    interest_saved: float | None
    payoff_date: date
    payoff_order: list[str]
    debts: list[Debt]
    schedule: list[ScheduleMonth] = field(repr=False, default_factory=list)

    def to_dict(self, *, include_schedule: bool = False) -> dict[str, Any]:
        data: dict[str, Any] = {
            "strategy": self.strategy,
            "title": self.title,
            "description": self.description,
            "steps": list(self.steps),
            "totalDebt": self.total_debt,
            "monthlyPayment": self.monthly_payment,
            "extraPayment": self.extra_payment,
            "estimatedMonths": self.estimated_months,
            "totalInterest": self.total_interest,
            "interestSaved": self.interest_saved,
            "payoffDate": self.payoff_date.isoformat(),
            "payoffOrder": list(self.payoff_order),
            "debts": [debt.to_dict() for debt in self.debts],
        }
        if include_schedule:
            data["schedule"] = [
                {
                    "month": row.month,
                    "date": row.date.isoformat(),
                    "payments": [
                        {
                            "debtId": p.debt_id,
                            "payment": p.payment,
                            "interest": p.interest,
                            "remainingBalance": p.remaining_balance,
                        }
                        for p in row.payments
                    ],
                }
                for row in self.schedule
            ]
        return data


@dataclass(slots=True)
class StrategyComparison:
    snowball: PayoffPlan
    avalanche: PayoffPlan

    @property
    def months_saved(self) -> int:
        """Months the avalanche plan finishes ahead of snowball (negative when behind)."""
        return self.snowball.estimated_months - self.avalanche.estimated_months

    @property
    def interest_saved(self) -> float:
        return round(self.snowball.total_interest - self.avalanche.total_interest, 2)

    @property
    def recommended_strategy(self) -> str:
        if self.interest_saved > AVALANCHE_RECOMMENDATION_THRESHOLD:
            return "avalanche"
        return "snowball"

    def to_dict(self) -> dict[str, Any]:
        return {
            "snowball": self.snowball.to_dict(),
            "avalanche": self.avalanche.to_dict(),
            "savings": {
                "timeSaved": self.months_saved,
                "interestSaved": self.interest_saved,
                "recommendedStrategy": self.recommended_strategy,
            },
        }


@dataclass(slots=True)
class Milestone:
    percent: int
    title: str
    month: int
    date: date
    amount_paid: float
    remaining_debt: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "percent": self.percent,
            "title": self.title,
            "month": self.month,
            "targetDate": self.date.isoformat(),
            "amountPaid": self.amount_paid,
            "remainingDebt": self.remaining_debt,
        }


@dataclass(slots=True)
class _Simulation:
    months: int
    total_interest: float
    payoff_month: list[int]
    schedule: list[ScheduleMonth]


def _cents(amount: float) -> float:
    return round(amount, 2)


def _monthly_interest(balance: float, rate: float | None) -> float:
    if not rate or balance <= 0:
        return 0.0
    return _cents(balance * rate / 12)


def _add_months(value: date, months: int) -> date:
    month = value.month - 1 + months
    year = value.year + month // 12
    return value.replace(year=year, month=month % 12 + 1, day=1)


def order_debts(debts: Iterable[Debt], strategy: str) -> list[Debt]:
    """Return debts in payoff priority order for ``strategy``."""

    if strategy == "snowball":
        return sorted(debts, key=lambda d: d.balance)
    if strategy == "avalanche":
        # Missing rates count as 0 and sort after every explicit rate.
        return sorted(debts, key=lambda d: (d.interest_rate is None, -(d.interest_rate or 0.0)))
    raise ValidationError('Strategy must be either "snowball" or "avalanche"')


def _simulate(
    ordered: Sequence[Debt],
    *,
    extra_payment: float,
    start: date,
    rollover: bool = True,
    max_months: int = MAX_PLAN_MONTHS,
) -> _Simulation:
    """Run the month-by-month amortization for debts already in priority order.

    Interest accrues before payments. Every unpaid debt gets its minimum; the
    extra pool (``extra_payment`` plus minimums freed in earlier months) goes to
    the first unpaid debt and whatever it does not need cascades down the list.
    With ``rollover`` off the simulation models minimum-only payments.
    """

    balances = [_cents(max(debt.balance, 0.0)) for debt in ordered]
    minimums = [max(debt.minimum_payment, 0.0) for debt in ordered]
    payoff_month = [0] * len(ordered)

    capacity = sum(minimums) + (extra_payment if rollover else 0.0)
    opening_interest = sum(
        _monthly_interest(balance, debt.interest_rate) for balance, debt in zip(balances, ordered)
    )
    if capacity <= opening_interest:
        raise UnpayableScheduleError(
            f"Monthly payments of ${capacity:,.2f} do not cover ${opening_interest:,.2f} "
            "of monthly interest; raise the extra payment"
        )

    schedule: list[ScheduleMonth] = []
    rolled_minimums = 0.0
    total_interest = 0.0
    previous_total = sum(balances)
    stagnant_periods = 0
    month = 0

    while any(balance > 0 for balance in balances):
        if month >= max_months:
            raise UnpayableScheduleError(
                f"Payoff schedule did not finish within {max_months} months; "
                "raise the extra payment"
            )
        month += 1
        pool = extra_payment + rolled_minimums if rollover else 0.0
        row = ScheduleMonth(month=month, date=_add_months(start, month))

        for index, debt in enumerate(ordered):
            if balances[index] <= 0:
                continue

            interest = _monthly_interest(balances[index], debt.interest_rate)
            total_interest += interest
            owed = _cents(balances[index] + interest)

            payment = min(minimums[index], owed)
            if rollover:
                pool += minimums[index] - payment
                if pool > 0:
                    applied = min(pool, owed - payment)
                    payment += applied
                    pool -= applied

            balances[index] = _cents(owed - payment)
            if balances[index] < 0.01:
                balances[index] = 0.0
                payoff_month[index] = month
                rolled_minimums += minimums[index]

            row.payments.append(
                DebtPayment(
                    debt_id=debt.id,
                    payment=_cents(payment),
                    interest=interest,
                    remaining_balance=balances[index],
                )
            )

        schedule.append(row)

        # Progress guard: balances must keep falling or the loop never ends
        total_balance = sum(balances)
        if total_balance >= previous_total - 0.01:
            stagnant_periods += 1
        else:
            stagnant_periods = 0
        if stagnant_periods >= 3:
            raise UnpayableScheduleError("Payoff schedule did not converge; payments too low")
        previous_total = total_balance

    return _Simulation(
        months=month,
        total_interest=_cents(total_interest),
        payoff_month=payoff_month,
        schedule=schedule,
    )


def _validate_inputs(debts: Sequence[Debt], extra_payment: float) -> None:
    if not debts:
        raise ValidationError("At least one debt is required to create a payoff plan")
    if not math.isfinite(extra_payment) or extra_payment < 0:
        raise ValidationError("Extra payment must be a finite, non-negative amount")
    for debt in debts:
        amounts = (debt.balance, debt.minimum_payment, debt.interest_rate or 0.0)
        if not all(math.isfinite(value) for value in amounts):
            raise ValidationError(f"Amounts for {debt.account_name} must be finite numbers")
        if debt.balance <= 0:
            raise ValidationError("All debts must have id, accountName, and positive balance")
        if debt.minimum_payment < 0:
            raise ValidationError(f"Minimum payment for {debt.account_name} cannot be negative")
        if debt.interest_rate is not None and debt.interest_rate < 0:
            raise ValidationError(f"Interest rate for {debt.account_name} cannot be negative")


def generate_plan(
    debts: Sequence[Debt],
    strategy: str,
    extra_payment: float = 0.0,
    *,
    start: date | None = None,
    max_months: int = MAX_PLAN_MONTHS,
) -> PayoffPlan:
    """Build a snowball or avalanche payoff plan for ``debts``.

    Raises:
        ValidationError: no debts, unknown strategy or malformed amounts.
        UnpayableScheduleError: payments never retire the debt within ``max_months``.
    """

    debts = list(debts)
    _validate_inputs(debts, extra_payment)
    ordered = order_debts(debts, strategy)
    first_of_month = (start or date.today()).replace(day=1)

    simulation = _simulate(
        ordered, extra_payment=extra_payment, start=first_of_month, max_months=max_months
    )

    try:
        baseline = _simulate(
            ordered,
            extra_payment=0.0,
            start=first_of_month,
            rollover=False,
            max_months=max_months,
        )
    except UnpayableScheduleError:
        interest_saved = None
    else:
        interest_saved = _cents(baseline.total_interest - simulation.total_interest)

    sequence = sorted(range(len(ordered)), key=lambda i: (simulation.payoff_month[i], i))
    steps = [
        f"Pay off {ordered[i].account_name} in month {simulation.payoff_month[i]}"
        for i in sequence
    ]

    title, description = _STRATEGY_COPY[strategy]
    plan = PayoffPlan(
        strategy=strategy,
        title=title,
        description=description.format(months=simulation.months),
        steps=steps,
        total_debt=_cents(sum(debt.balance for debt in debts)),
        monthly_payment=_cents(sum(debt.minimum_payment for debt in debts) + extra_payment),
        extra_payment=_cents(extra_payment),
        estimated_months=simulation.months,
        total_interest=simulation.total_interest,
        interest_saved=interest_saved,
        payoff_date=_add_months(first_of_month, simulation.months),
        payoff_order=[ordered[i].id for i in sequence],
        debts=debts,
        schedule=simulation.schedule,
    )
    logger.info(
        "Generated payoff plan",
        extra={
            "strategy": strategy,
            "debt_count": len(debts),
            "estimated_months": plan.estimated_months,
            "total_debt": plan.total_debt,
        },
    )
    return plan


def compare_strategies(
    debts: Sequence[Debt],
    extra_payment: float = 0.0,
    *,
    start: date | None = None,
    max_months: int = MAX_PLAN_MONTHS,
) -> StrategyComparison:
    """Run both strategies on the same inputs."""

    return StrategyComparison(
        snowball=generate_plan(
            debts, "snowball", extra_payment, start=start, max_months=max_months
        ),
        avalanche=generate_plan(
            debts, "avalanche", extra_payment, start=start, max_months=max_months
        ),
    )


def target_extra_payment(
    debts: Sequence[Debt],
    target_months: int,
    *,
    ceiling: int = TARGET_PAYMENT_CEILING,
    max_months: int = MAX_PLAN_MONTHS,
) -> int:
    """Return the smallest whole-dollar extra payment that clears ``debts`` in time.

    Uses the avalanche ordering, which never takes longer than snowball.
    """

    if target_months < 1:
        raise ValidationError("Target months must be at least 1")

    def finishes_in_time(extra: int) -> bool:
        try:
            plan = generate_plan(debts, "avalanche", float(extra), max_months=max_months)
        except UnpayableScheduleError:
            return False
        return plan.estimated_months <= target_months

    if not finishes_in_time(ceiling):
        raise ValidationError(
            f"No extra payment up to ${ceiling:,} clears these debts in {target_months} months"
        )

    low, high, result = 0, ceiling, ceiling
    while low <= high:
        mid = (low + high) // 2
        if finishes_in_time(mid):
            result = mid
            high = mid - 1
        else:
            low = mid + 1
    return result


def payoff_milestones(plan: PayoffPlan) -> list[Milestone]:
    """Return the months where 25/50/75/100 % of the starting debt is gone."""

    milestones: list[Milestone] = []
    if plan.total_debt <= 0:
        return milestones
    for percent in MILESTONE_PERCENTAGES:
        target = plan.total_debt * percent / 100
        for row in plan.schedule:
            paid = plan.total_debt - row.remaining_total
            if paid >= target - 0.005:
                milestones.append(
                    Milestone(
                        percent=percent,
                        title=f"{percent}% Debt Free!",
                        month=row.month,
                        date=row.date,
                        amount_paid=_cents(paid),
                        remaining_debt=row.remaining_total,
                    )
                )
                break
    return milestones


def default_minimum_payment(balance: float) -> float:
    """2 % of the balance, never below $25."""

    return float(max(25, round(abs(balance) * 0.02)))


def debts_from_accounts(accounts: Iterable[Any]) -> list[Debt]:
    """Snapshot credit accounts that currently owe money as planning debts."""

    debts: list[Debt] = []
    for account in accounts:
        if (getattr(account, "account_type", "") or "").lower() != "credit":
            continue
        if account.balance is None or account.balance >= 0:
            continue
        owed = _cents(-account.balance)
        minimum = account.minimum_payment
        debts.append(
            Debt(
                id=str(account.id),
                account_name=account.name,
                balance=owed,
                minimum_payment=(
                    float(minimum) if minimum is not None else default_minimum_payment(owed)
                ),
                interest_rate=account.interest_rate,
            )
        )
    return debts
