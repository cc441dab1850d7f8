"""
Rule-based anomaly detection for a pay cycle's spending.

Three rules run over the period's debits (negative cents, transfers already
removed by the caller):

1. Large transaction: a single debit above 2x the historical average
   transaction for its saver/category (alert above 3x).
2. Category overspend: with more than half the period left, category spend
   above 150% of its budget (alert above 200%).
3. Duplicate merchant: the same description charged two or more times on one
   day.

Results are ordered alerts first, then by amount descending.
"""

from collections import defaultdict
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from finboard.domain.models import AnomalySeverity, AnomalyType, BudgetTransaction
from finboard.domain.views import Anomaly, CategoryAverage, PeriodProgress

CategoryKey = tuple[Optional[str], Optional[str]]

LARGE_WARNING_MULTIPLE = 2
LARGE_ALERT_MULTIPLE = 3
OVERSPEND_WARNING_RATIO = Decimal("1.5")
OVERSPEND_ALERT_RATIO = 2


def _dollars(cents: int) -> str:
    return f"${Decimal(cents) / 100:.2f}"


def _rounded_ratio(numerator: int, denominator: int) -> int:
    return int((Decimal(numerator) / Decimal(denominator)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _key_label(value: Optional[str]) -> str:
    return value or ""


def detect_anomalies(
    transactions: list[BudgetTransaction],
    averages: list[CategoryAverage],
    budgets: dict[CategoryKey, int],
    progress: PeriodProgress,
) -> list[Anomaly]:
    """
    Flag unusual spending in one period.

    Args:
        transactions: The period's non-transfer spend records
        averages: Historical per-category averages from prior cycles
        budgets: Period budget in cents per (saver_key, category_key)
        progress: Where today sits in the period
    """
    average_by_key = {(a.saver_key, a.category_key): a.avg_transaction_cents for a in averages}
    spending = [t for t in transactions if t.amount_cents < 0]
    anomalies: list[Anomaly] = []

    for txn in spending:
        average = average_by_key.get((txn.saver_key, txn.category_key), 0)
        amount = abs(txn.amount_cents)
        if average <= 0 or amount <= average * LARGE_WARNING_MULTIPLE:
            continue
        anomalies.append(
            Anomaly(
                anomaly_id=f"large_tx::{txn.budget_txn_id}",
                anomaly_type=AnomalyType.LARGE_TRANSACTION,
                severity=(
                    AnomalySeverity.ALERT if amount > average * LARGE_ALERT_MULTIPLE else AnomalySeverity.WARNING
                ),
                saver_key=txn.saver_key,
                category_key=txn.category_key,
                description=(
                    f"{txn.description} ({_dollars(amount)}) is {_rounded_ratio(amount, average)}x "
                    "the average transaction for this category"
                ),
                amount_cents=amount,
                comparison_cents=average,
            )
        )

    # Only meaningful early in the cycle
    if progress.days_remaining * 2 > progress.total_days:
        totals: dict[CategoryKey, int] = defaultdict(int)
        for txn in spending:
            totals[(txn.saver_key, txn.category_key)] += abs(txn.amount_cents)
        for (saver_key, category_key), total in totals.items():
            budget = budgets.get((saver_key, category_key), 0)
            if budget <= 0 or total <= budget * OVERSPEND_WARNING_RATIO:
                continue
            anomalies.append(
                Anomaly(
                    anomaly_id=f"overspend::{_key_label(saver_key)}::{_key_label(category_key)}",
                    anomaly_type=AnomalyType.CATEGORY_OVERSPEND,
                    severity=(
                        AnomalySeverity.ALERT if total > budget * OVERSPEND_ALERT_RATIO else AnomalySeverity.WARNING
                    ),
                    saver_key=saver_key,
                    category_key=category_key,
                    description=(
                        f"{category_key or saver_key} is at {_rounded_ratio(total * 100, budget)}% of budget "
                        f"with {progress.days_remaining} days remaining"
                    ),
                    amount_cents=total,
                    comparison_cents=budget,
                )
            )

    by_merchant_day: dict[tuple[str, str], list[BudgetTransaction]] = defaultdict(list)
    for txn in spending:
        by_merchant_day[((txn.description or "").strip().upper(), txn.txn_date.isoformat())].append(txn)
    for (merchant, day), charges in by_merchant_day.items():
        if len(charges) < 2:
            continue
        total = sum(abs(t.amount_cents) for t in charges)
        anomalies.append(
            Anomaly(
                anomaly_id=f"duplicate::{merchant}::{day}",
                anomaly_type=AnomalyType.DUPLICATE_MERCHANT,
                severity=AnomalySeverity.WARNING,
                saver_key=charges[0].saver_key,
                category_key=charges[0].category_key,
                description=f"{merchant} was charged {len(charges)} times on {day} (total {_dollars(total)})",
                amount_cents=total,
                comparison_cents=abs(charges[0].amount_cents),
            )
        )

    anomalies.sort(key=lambda a: (a.severity != AnomalySeverity.ALERT, -a.amount_cents))
    return anomalies


def category_averages(periods: list[list[BudgetTransaction]]) -> list[CategoryAverage]:
    """Average debit size and per-cycle total for each saver/category over prior cycles."""
    if not periods:
        return []
    totals: dict[CategoryKey, int] = defaultdict(int)
    counts: dict[CategoryKey, int] = defaultdict(int)
    for transactions in periods:
        for txn in transactions:
            if txn.amount_cents >= 0 or txn.is_transfer:
                continue
            key = (txn.saver_key, txn.category_key)
            totals[key] += abs(txn.amount_cents)
            counts[key] += 1
    return [
        CategoryAverage(
            saver_key=saver_key,
            category_key=category_key,
            avg_transaction_cents=_rounded_ratio(total, counts[(saver_key, category_key)]),
            avg_period_total_cents=_rounded_ratio(total, len(periods)),
        )
        for (saver_key, category_key), total in totals.items()
    ]
