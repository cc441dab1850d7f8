"""Carry-forward resolution of snapshot-based holding balances."""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from finboard.core.timezone import today_local, month_start, month_end, add_months
from finboard.domain.models import Snapshot, Contribution, active_only
from finboard.domain.views import SuperPeriodRow
from finboard.repositories.protocols import SnapshotRepository


def resolve_as_of(snapshots: Iterable[Snapshot], target: date) -> Optional[Snapshot]:
    """Most recent live snapshot dated on or before target, or None."""
    best: Optional[Snapshot] = None
    for snap in active_only(snapshots):
        if snap.snapshot_date > target:
            continue
        if best is None or snap.snapshot_date > best.snapshot_date:
            best = snap
    return best


def month_ends(months: int, today: Optional[date] = None) -> list[date]:
    """Month-end dates for the trailing N months, oldest first; the current month ends today."""
    today = today or today_local()
    points = []
    for offset in range(months - 1, -1, -1):
        point = month_end(add_months(month_start(today), -offset))
        points.append(min(point, today))
    return points


class SnapshotResolver:
    """
    Resolve balances of snapshot-based holdings at arbitrary dates.

    Each holding is resolved independently, so sparse snapshot histories
    never borrow values from other holdings.
    """

    def __init__(self, snapshot_repo: SnapshotRepository):
        self._snapshot_repo = snapshot_repo

    def balance_as_of(self, holding_id: str, target: date) -> Optional[Snapshot]:
        return resolve_as_of(self._snapshot_repo.list_by_holding(holding_id), target)

    def latest_for_holdings(
        self,
        holding_ids: list[str],
        as_of: Optional[date] = None,
    ) -> dict[str, Snapshot]:
        """Carried-forward snapshot per holding as of a date (default today)."""
        as_of = as_of or today_local()
        grouped = self._grouped(holding_ids, up_to=as_of)
        resolved = {}
        for holding_id, snaps in grouped.items():
            snap = resolve_as_of(snaps, as_of)
            if snap is not None:
                resolved[holding_id] = snap
        return resolved

    def monthly_series(
        self,
        holding_ids: list[str],
        months: int,
        today: Optional[date] = None,
    ) -> dict[date, dict[str, Optional[Snapshot]]]:
        """For each trailing month end, the resolved snapshot of every holding."""
        points = month_ends(months, today)
        grouped = self._grouped(holding_ids, up_to=points[-1] if points else None)
        return {
            point: {holding_id: resolve_as_of(grouped.get(holding_id, []), point) for holding_id in holding_ids}
            for point in points
        }

    def investment_return(
        self,
        holding_id: str,
        from_date: date,
        to_date: date,
    ) -> Optional[Decimal]:
        """
        Derived super return between two snapshot dates.

        new balance - old balance - employer - employee, where contributions
        are those recorded at to_date. None when either snapshot is missing.
        """
        old = self._snapshot_repo.get_for_date(holding_id, from_date)
        new = self._snapshot_repo.get_for_date(holding_id, to_date)
        if old is None or new is None:
            return None
        contribution = self._snapshot_repo.get_contribution(holding_id, to_date)
        contributed = contribution.total if contribution else Decimal("0")
        return new.balance - old.balance - contributed

    def super_breakdown(
        self,
        holding_ids: list[str],
        months: int,
        today: Optional[date] = None,
    ) -> list[SuperPeriodRow]:
        """
        Combined super balance, contributions and derived return per month.

        Balances carry forward per holding at each month end. Contributions
        are summed for the month they are dated in. The return is worked out
        per holding (balance movement since the previous month net of that
        holding's contributions) and only for holdings that already had a
        balance the month before, so a fund's first snapshot is never
        counted as growth.
        """
        today = today or today_local()
        series = self.monthly_series(holding_ids, months, today)
        contributions_by_month: dict[date, list[Contribution]] = defaultdict(list)
        for contribution in self._snapshot_repo.list_contributions(holding_ids):
            contributions_by_month[month_start(contribution.contribution_date)].append(contribution)

        rows: list[SuperPeriodRow] = []
        previous: dict[str, Optional[Snapshot]] = {}
        for point, resolved in series.items():
            snaps = [s for s in resolved.values() if s is not None]
            balance = sum((s.balance for s in snaps), Decimal("0")) if snaps else None
            month_contribs = contributions_by_month.get(month_start(point), [])
            employer = sum((c.employer_contrib for c in month_contribs), Decimal("0"))
            employee = sum((c.employee_contrib for c in month_contribs), Decimal("0"))

            contributed: dict[str, Decimal] = defaultdict(Decimal)
            for c in month_contribs:
                contributed[c.holding_id] += c.total

            investment_return: Optional[Decimal] = None
            for holding_id, snap in resolved.items():
                prior = previous.get(holding_id)
                if snap is None or prior is None:
                    continue
                holding_return = snap.balance - prior.balance - contributed[holding_id]
                investment_return = holding_return if investment_return is None else investment_return + holding_return

            rows.append(
                SuperPeriodRow(
                    month=month_start(point),
                    balance=balance,
                    employer_contrib=employer,
                    employee_contrib=employee,
                    investment_return=investment_return,
                )
            )
            previous = resolved
        return rows

    def _grouped(self, holding_ids: list[str], up_to: Optional[date] = None) -> dict[str, list[Snapshot]]:
        grouped: dict[str, list[Snapshot]] = defaultdict(list)
        for snap in self._snapshot_repo.list_by_holdings(holding_ids, up_to=up_to):
            grouped[snap.holding_id].append(snap)
        return grouped
