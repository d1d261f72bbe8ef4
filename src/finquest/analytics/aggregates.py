"""Presentation aggregates computed from expense and budget rows.

Pure functions over anything with ``amount``, ``category`` and ``date``
attributes. Nothing here is persisted or cached.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import Decimal
from typing import Any, Protocol

MAX_MONTHS = 6
MAX_INSIGHTS = 5


class ExpenseLike(Protocol):
    amount: Any
    category: str
    date: Any


def _money(value: Any) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def category_totals(expenses: Iterable[ExpenseLike]) -> dict[str, float]:
    """Sum of amount per category, in first-seen order."""
    totals: dict[str, Decimal] = {}
    for expense in expenses:
        totals[expense.category] = totals.get(expense.category, Decimal("0")) + _money(expense.amount)
    return {category: float(total) for category, total in totals.items()}


def month_label(value: Any) -> str:
    """Short month name and year, e.g. ``Mar 2025``."""
    return value.strftime("%b %Y")


def monthly_series(expenses: Iterable[ExpenseLike]) -> list[dict[str, Any]]:
    """Spend per calendar month, oldest to newest, at most the 6 most recent months.

    ``expenses`` must be ordered newest first: buckets keep first-seen order,
    the first 6 are kept, then reversed for charting.
    """
    buckets: dict[str, Decimal] = {}
    for expense in expenses:
        label = month_label(expense.date)
        buckets[label] = buckets.get(label, Decimal("0")) + _money(expense.amount)
    recent = list(buckets.items())[:MAX_MONTHS]
    recent.reverse()
    return [{"month": label, "amount": float(amount)} for label, amount in recent]


def trend_percentage(totals: Sequence[float | Decimal]) -> float:
    """Change of the newest bucket over the one before it, in percent.

    0 when there are fewer than two buckets or the previous bucket is 0.
    """
    if len(totals) < 2:
        return 0.0
    previous, latest = float(totals[-2]), float(totals[-1])
    if previous == 0:
        return 0.0
    return (latest - previous) / previous * 100


def budget_utilization(spent: float | Decimal, allocated: float | Decimal) -> tuple[float, bool]:
    """Return ``(utilization_percent, over_budget)``.

    No allocation counts as 0% utilization. Over budget iff utilization > 100.
    """
    allocated_f = float(allocated)
    if allocated_f == 0:
        return 0.0, False
    utilization = float(spent) / allocated_f * 100
    return utilization, utilization > 100


def display_category(category: str) -> str:
    return category[:1].upper() + category[1:]


def spending_insights(
    trend: float,
    ranked_categories: Sequence[tuple[str, float]],
    total_spent: float,
    transaction_count: int,
) -> list[str]:
    """Short human-readable observations, at most five."""
    insights: list[str] = []
    if trend > 10:
        insights.append(
            f"⚠️ Your spending increased by {trend:.1f}% this month. Consider reviewing your budget."
        )
    elif trend < -10:
        insights.append(f"✅ Great job! Your spending decreased by {abs(trend):.1f}% this month.")

    if ranked_categories and total_spent > 0:
        name, value = ranked_categories[0]
        share = value / total_spent * 100
        if share > 40:
            insights.append(f"\U0001f4a1 {display_category(name)} accounts for {share:.1f}% of your spending.")

    if transaction_count >= 30:
        insights.append(f"\U0001f389 You've logged {transaction_count} transactions! Consistent tracking is key.")

    return insights[:MAX_INSIGHTS]


def spending_summary(expenses: Sequence[ExpenseLike]) -> dict[str, Any]:
    """Everything the analytics view shows, from newest-first expenses."""
    totals = category_totals(expenses)
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    series = monthly_series(expenses)
    trend = trend_percentage([bucket["amount"] for bucket in series])
    total_spent = float(sum((_money(e.amount) for e in expenses), Decimal("0")))
    days_tracked = max(1, len({e.date for e in expenses}))

    return {
        "total_spent": total_spent,
        "avg_daily": total_spent / days_tracked,
        "highest_category": display_category(ranked[0][0]) if ranked else "N/A",
        "trend": trend,
        "monthly": series,
        "categories": [
            {"category": name, "name": display_category(name), "amount": value} for name, value in ranked
        ],
        "insights": spending_insights(trend, ranked, total_spent, len(expenses)),
        "transaction_count": len(expenses),
    }
