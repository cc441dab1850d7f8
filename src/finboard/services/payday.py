"""Pay-cycle period derivation and pace classification."""

from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from finboard.domain.models import PaydayConfig, PaceStatus
from finboard.domain.views import PeriodBounds, PeriodProgress

ZERO = Decimal("0")
HUNDRED = Decimal("100")
PERCENT = Decimal("0.01")
DEFAULT_NEAR_MARGIN = Decimal("0.85")


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def payday_for_month(year: int, month: int, config: PaydayConfig) -> date:
    """
    Effective payday in a month.

    With weekend adjustment a Saturday payday moves back to Friday (-1 day)
    and a Sunday payday moves back to Friday (-2 days).
    """
    payday = date(year, month, config.payday_day)
    if config.adjust_for_weekends:
        weekday = payday.weekday()
        if weekday == 5:
            payday -= timedelta(days=1)
        elif weekday == 6:
            payday -= timedelta(days=2)
    return payday


def resolve_period(on_date: date, config: PaydayConfig) -> PeriodBounds:
    """
    Pay-cycle period containing on_date: [payday_n, payday_n+1).

    Pure function of the date and the payday rule; end is stored as the day
    before the next payday.
    """
    year, month = on_date.year, on_date.month
    if payday_for_month(year, month, config) > on_date:
        year, month = _shift_month(year, month, -1)

    # An adjusted payday can fall back into the previous calendar month
    next_year, next_month = _shift_month(year, month, 1)
    while payday_for_month(next_year, next_month, config) <= on_date:
        year, month = next_year, next_month
        next_year, next_month = _shift_month(year, month, 1)

    start = payday_for_month(year, month, config)
    end = payday_for_month(next_year, next_month, config) - timedelta(days=1)
    return PeriodBounds(start=start, end=end)


def previous_period(bounds: PeriodBounds, config: PaydayConfig) -> PeriodBounds:
    """Period immediately before the given one."""
    return resolve_period(bounds.start - timedelta(days=1), config)


def next_payday(on_date: date, config: PaydayConfig) -> date:
    return resolve_period(on_date, config).end + timedelta(days=1)


def period_progress(bounds: PeriodBounds, today: date) -> PeriodProgress:
    """Elapsed days (inclusive of today) clamped to the period."""
    total_days = bounds.total_days
    elapsed = max(0, min(total_days, (today - bounds.start).days + 1))
    progress = (Decimal(elapsed) / Decimal(total_days) * HUNDRED).quantize(PERCENT, rounding=ROUND_HALF_UP)
    return PeriodProgress(
        days_elapsed=elapsed,
        days_remaining=total_days - elapsed,
        total_days=total_days,
        progress_percent=progress,
    )


def percent_used(actual_cents: int, budget_cents: int) -> Decimal:
    """actual / budget * 100, or 0 with no budget."""
    if budget_cents <= 0:
        return ZERO
    return (Decimal(actual_cents) / Decimal(budget_cents) * HUNDRED).quantize(PERCENT, rounding=ROUND_HALF_UP)


def classify_pace(
    actual_cents: int,
    budget_cents: int,
    progress_percent: Decimal,
    margin: Optional[Decimal] = None,
    is_fixed: bool = False,
) -> PaceStatus:
    """
    Compare spend pace against elapsed time in the period.

    Over (red) when pace exceeds progress, near (amber) when pace is at least
    margin x progress, otherwise under (green). A fixed item paid exactly in
    full is satisfied regardless of pace.
    """
    margin = DEFAULT_NEAR_MARGIN if margin is None else Decimal(margin)
    if is_fixed and budget_cents > 0 and actual_cents == budget_cents:
        return PaceStatus.SATISFIED
    if actual_cents <= 0:
        return PaceStatus.UNDER

    if budget_cents <= 0:
        # Any spend against an empty budget
        return PaceStatus.OVER

    pace = percent_used(actual_cents, budget_cents)
    progress = Decimal(progress_percent)
    if pace > progress:
        return PaceStatus.OVER
    if pace >= margin * progress:
        return PaceStatus.NEAR
    return PaceStatus.UNDER
