"""Cost basis and quantity derivation by replaying a holding's ledger."""

from collections import deque
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from finboard.core.exceptions import SellExceedsHoldingsError
from finboard.domain.models import Transaction, TransactionAction, CostBasisMethod, active_only
from finboard.domain.views import CostBasisResult, Lot

ZERO = Decimal("0")


def sort_ledger(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Live transactions in replay order: ascending date, then insertion sequence."""
    return sorted(active_only(transactions), key=lambda t: (t.txn_date, t.sequence))


def first_negative_point(transactions: Iterable[Transaction]) -> Optional[tuple[Transaction, Decimal]]:
    """
    Replay quantities and return the first transaction that drives the
    running quantity below zero, with the shortfall. None if the history is valid.
    """
    quantity = ZERO
    for txn in sort_ledger(transactions):
        quantity = _apply_quantity(quantity, txn)
        if quantity < 0:
            return txn, -quantity
    return None


def quantity_held(transactions: Iterable[Transaction], as_of: Optional[date] = None) -> Decimal:
    """Units held after replaying transactions dated on or before as_of (all if None)."""
    quantity = ZERO
    for txn in sort_ledger(transactions):
        if as_of is not None and txn.txn_date > as_of:
            break
        quantity = _apply_quantity(quantity, txn)
    return quantity


def replay(
    transactions: Iterable[Transaction],
    method: CostBasisMethod = CostBasisMethod.AVERAGE,
) -> CostBasisResult:
    """
    Replay a single holding's ledger into quantity, cost basis and realized gain.

    - BUY adds units and cost (quantity x price + fees)
    - SELL removes units; AVERAGE removes average cost x units, FIFO consumes
      the oldest lots. Fees reduce proceeds, not cost basis
    - SPLIT multiplies units by the ratio; cost basis is unchanged
    - DIVIDEND only accumulates dividend income

    Raises SellExceedsHoldingsError if any step would go negative.
    """
    result = CostBasisResult()
    lots: deque[Lot] = deque()

    for txn in sort_ledger(transactions):
        if txn.action == TransactionAction.BUY:
            total_cost = txn.gross_amount + txn.fees
            result.quantity += txn.quantity
            result.cost_basis += total_cost
            if method == CostBasisMethod.FIFO:
                lots.append(Lot(acquired_on=txn.txn_date, quantity=txn.quantity, unit_cost=total_cost / txn.quantity))

        elif txn.action == TransactionAction.SELL:
            if txn.quantity > result.quantity:
                raise SellExceedsHoldingsError(
                    txn.holding_id,
                    txn_date=txn.txn_date.isoformat(),
                    shortfall=str(txn.quantity - result.quantity),
                )
            if method == CostBasisMethod.FIFO:
                removed_cost = _consume_lots(lots, txn.quantity)
            else:
                removed_cost = (result.cost_basis / result.quantity) * txn.quantity

            proceeds = txn.gross_amount - txn.fees
            result.proceeds += proceeds
            result.realized_gain += proceeds - removed_cost
            result.quantity -= txn.quantity
            result.cost_basis -= removed_cost
            if result.quantity == 0:
                result.cost_basis = ZERO
                lots.clear()

        elif txn.action == TransactionAction.SPLIT:
            result.quantity *= txn.quantity
            for lot in lots:
                lot.quantity *= txn.quantity
                lot.unit_cost /= txn.quantity

        elif txn.action == TransactionAction.DIVIDEND:
            result.dividend_income += txn.gross_amount

    if method == CostBasisMethod.FIFO:
        result.cost_basis = sum((lot.cost for lot in lots), ZERO)
    result.lots = list(lots)
    return result


def _apply_quantity(quantity: Decimal, txn: Transaction) -> Decimal:
    if txn.action == TransactionAction.BUY:
        return quantity + txn.quantity
    if txn.action == TransactionAction.SELL:
        return quantity - txn.quantity
    if txn.action == TransactionAction.SPLIT:
        return quantity * txn.quantity
    return quantity


def _consume_lots(lots: deque[Lot], quantity: Decimal) -> Decimal:
    """Remove quantity from the oldest lots, returning the cost taken."""
    remaining = quantity
    removed_cost = ZERO
    while remaining > 0 and lots:
        lot = lots[0]
        take = min(lot.quantity, remaining)
        removed_cost += take * lot.unit_cost
        lot.quantity -= take
        remaining -= take
        if lot.quantity == 0:
            lots.popleft()
    return removed_cost
