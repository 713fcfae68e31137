"""
Transaction statistics — totals, category breakdowns and a daily series.

The aggregation is a pure function over already-loaded transactions, so it
can be tested without a database. The transaction service fetches the
date range and calls summarize_transactions().

Period windows end at `now` and start:
  day    1 day earlier
  week   7 days earlier
  month  1 calendar month earlier (Mar 31 -> Feb 28/29)
  year   1 calendar year earlier  (Feb 29 -> Feb 28)

A malformed record (missing date, broken reference) is logged and skipped.
It never fails the whole summary.
"""

import calendar
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable

import structlog

from app.models.transaction import TransactionType

logger = structlog.get_logger(__name__)

UNCATEGORIZED = "Uncategorized"
OTHER = "Other"

PERIODS = ("day", "week", "month", "year")


def shift_months(moment: datetime, months: int) -> datetime:
    """Move a datetime by whole calendar months, clamping the day to the month's end."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def period_start(now: datetime, period: str) -> datetime:
    if period == "day":
        return now - timedelta(days=1)
    if period == "week":
        return now - timedelta(days=7)
    if period == "month":
        return shift_months(now, -1)
    if period == "year":
        return shift_months(now, -12)
    raise ValueError(f"Unknown period: {period!r}")


def _day_of(moment: Any) -> date | None:
    """Calendar day (UTC) of a transaction date, or None when it isn't a date."""
    if isinstance(moment, datetime):
        if moment.tzinfo is not None:
            moment = moment.astimezone(timezone.utc)
        return moment.date()
    if isinstance(moment, date):
        return moment
    return None


def _breakdown(totals: dict[str, int], grand_total: int, limit: int | None = None) -> list[dict]:
    rows = [
        {
            "category": label,
            "amount_cents": amount,
            "percentage": amount / grand_total * 100 if grand_total > 0 else 0.0,
        }
        for label, amount in totals.items()
    ]
    rows.sort(key=lambda row: row["amount_cents"], reverse=True)
    return rows if limit is None else rows[:limit]


def _category_label(txn: Any) -> str:
    return txn.category.name if txn.category is not None else UNCATEGORIZED


def _investment_label(txn: Any) -> str:
    if txn.investment is not None:
        return txn.investment.type
    if txn.category is not None:
        return txn.category.name
    return OTHER


def summarize_transactions(
    transactions: Iterable[Any],
    period: str,
    start: datetime,
    end: datetime,
    top_categories: int = 5,
) -> dict:
    """
    Build the statistics payload for a list of transactions.

    Args:
        transactions: Objects with type, amount_cents, date, category
                      (with .name) and investment (with .type).
        period: The period label echoed in the overview.
        start: First instant of the window; its day opens the daily series.
        end: Last instant of the window; its day closes the daily series.
        top_categories: How many income and expense categories to keep.

    Returns:
        Dictionary matching TransactionStatsResponse.
    """
    transactions = list(transactions)

    total_income = 0
    total_expenses = 0
    total_investment = 0
    income_by_category: dict[str, int] = {}
    expenses_by_category: dict[str, int] = {}
    investments_by_type: dict[str, int] = {}

    for txn in transactions:
        try:
            amount = txn.amount_cents
            if txn.type == TransactionType.INCOME:
                label = _category_label(txn)
                total_income += amount
                income_by_category[label] = income_by_category.get(label, 0) + amount
            elif txn.type == TransactionType.EXPENSE:
                label = _category_label(txn)
                total_expenses += amount
                expenses_by_category[label] = expenses_by_category.get(label, 0) + amount
            elif txn.type == TransactionType.INVESTMENT:
                label = _investment_label(txn)
                total_investment += amount
                investments_by_type[label] = investments_by_type.get(label, 0) + amount
        except (AttributeError, TypeError) as exc:
            logger.warning(
                "stats_record_skipped",
                transaction_id=str(getattr(txn, "id", None)),
                stage="totals",
                error=str(exc),
            )

    # One bucket per calendar day in the window, both ends included
    by_day: dict[str, dict[str, int]] = {}
    day = _day_of(start)
    last_day = _day_of(end)
    while day <= last_day:
        by_day[day.isoformat()] = {"income": 0, "expense": 0, "investment": 0}
        day += timedelta(days=1)

    for txn in transactions:
        try:
            txn_day = _day_of(txn.date)
            if txn_day is None:
                logger.warning(
                    "stats_record_skipped",
                    transaction_id=str(getattr(txn, "id", None)),
                    stage="chart",
                    error="missing or invalid date",
                )
                continue
            bucket = by_day.get(txn_day.isoformat())
            if bucket is not None:
                bucket[TransactionType(txn.type).value] += txn.amount_cents
        except (AttributeError, TypeError, ValueError) as exc:
            logger.warning(
                "stats_record_skipped",
                transaction_id=str(getattr(txn, "id", None)),
                stage="chart",
                error=str(exc),
            )

    chart_data = sorted(
        (
            {
                "date": key,
                "income_cents": values["income"],
                "expense_cents": values["expense"],
                "investment_cents": values["investment"],
            }
            for key, values in by_day.items()
        ),
        key=lambda row: row["date"],
    )

    return {
        "overview": {
            "total_income_cents": total_income,
            "total_expenses_cents": total_expenses,
            "total_investment_cents": total_investment,
            "balance_cents": total_income - total_expenses - total_investment,
            "period": period,
        },
        "expenses_by_category": _breakdown(expenses_by_category, total_expenses, top_categories),
        "income_by_category": _breakdown(income_by_category, total_income, top_categories),
        "investments_by_type": _breakdown(investments_by_type, total_investment),
        "chart_data": chart_data,
    }
