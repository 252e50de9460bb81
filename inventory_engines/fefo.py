"""
Module: inventory_engines.fefo
Responsibility:
    Order open batches first-expired-first-out and plan how a requested
    quantity is drawn from them.  Planning never writes; services apply a
    plan only after it covers the whole request.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import inventory_kernel.domain and inventory_kernel.exceptions.

Invariants enforced:
    - FEFO order: expiration ascending with undated batches last, then
      received_at ascending, then created_at ascending.  batch_id breaks
      any remaining tie so the order is total.
    - Sum of planned draws == requested quantity, or the plan is rejected.
    - No draw exceeds its batch's quantity; no batch goes negative.
    - Purity: no clock access and no database access.  Planners do not
      log; the only output besides the plan is the @traced_engine record.

Failure modes:
    - InvalidQuantityError if the requested quantity is not positive.
    - InsufficientStockError when the item total (or, for waste, the open
      batch sum) cannot cover the request, or when open batches run out.
    - NoOpenBatchesError for a batch-tracked item with nothing open.
    - BatchQuantityExceededError for a targeted draw past the batch's
      remaining quantity.

Usage:
    from inventory_engines.fefo import build_draw_plan

    plan = build_draw_plan(stock=stock, quantity=4)
    for draw in plan.draws:
        ...
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from inventory_engines.tracer import traced_engine
from inventory_kernel.domain.stock import (
    BatchedStock,
    BatchSnapshot,
    Stock,
    StockMode,
    UnbatchedStock,
)
from inventory_kernel.exceptions import (
    BatchQuantityExceededError,
    InsufficientStockError,
    InvalidQuantityError,
    NoOpenBatchesError,
)


def fefo_sort_key(batch: BatchSnapshot) -> tuple:
    """Sort key implementing expiration ASC NULLS LAST, received_at, created_at."""
    return (
        batch.expiration_date is None,
        batch.expiration_date or date.min,
        batch.received_at,
        batch.created_at,
        str(batch.batch_id),
    )


def order_open_batches(batches: Iterable[BatchSnapshot]) -> tuple[BatchSnapshot, ...]:
    """Return batches in the order every consuming operation draws them."""
    return tuple(sorted(batches, key=fefo_sort_key))


@dataclass(frozen=True)
class PlannedDraw:
    """One batch's share of a plan."""

    batch_id: UUID
    take: int
    remaining_after: int
    expiration_date: date | None = None

    @property
    def closes_batch(self) -> bool:
        return self.remaining_after == 0


@dataclass(frozen=True)
class DrawPlan:
    """
    A complete, validated plan for removing ``requested`` units.

    ``draws`` is empty for an unbatched item: the counter is decremented
    directly.
    """

    item_id: UUID
    mode: StockMode
    requested: int
    draws: tuple[PlannedDraw, ...] = ()

    @property
    def total_planned(self) -> int:
        if self.mode is StockMode.UNBATCHED:
            return self.requested
        return sum(d.take for d in self.draws)


def _summarize_plan(plan: DrawPlan) -> dict:
    return {
        "mode": plan.mode.value,
        "draws": len(plan.draws),
        "closes": sum(1 for d in plan.draws if d.closes_batch),
    }


def _require_positive(quantity: int) -> None:
    if quantity <= 0:
        raise InvalidQuantityError("quantity", quantity)


def _walk(
    batches: Iterable[BatchSnapshot],
    quantity: int,
) -> tuple[tuple[PlannedDraw, ...], int]:
    """Draw ``min(batch.quantity, remaining)`` from each batch until satisfied."""
    remaining = quantity
    draws: list[PlannedDraw] = []
    for batch in order_open_batches(batches):
        if remaining <= 0:
            break
        take = min(batch.quantity, remaining)
        draws.append(
            PlannedDraw(
                batch_id=batch.batch_id,
                take=take,
                remaining_after=batch.quantity - take,
                expiration_date=batch.expiration_date,
            )
        )
        remaining -= take
    return tuple(draws), remaining


def _plan_batches(stock: BatchedStock, quantity: int) -> DrawPlan:
    draws, remaining = _walk(stock.batches, quantity)
    if remaining > 0:
        raise InsufficientStockError(
            str(stock.item_id), quantity, stock.open_quantity, "open_batches"
        )
    return DrawPlan(
        item_id=stock.item_id,
        mode=StockMode.BATCHED,
        requested=quantity,
        draws=draws,
    )


def _plan_counter(stock: UnbatchedStock, quantity: int) -> DrawPlan:
    if quantity > stock.quantity:
        raise InsufficientStockError(
            str(stock.item_id), quantity, stock.quantity, "item_total"
        )
    return DrawPlan(item_id=stock.item_id, mode=StockMode.UNBATCHED, requested=quantity)


@traced_engine("fefo.consume", "1.0", fingerprint_fields=("quantity",), summarize=_summarize_plan)
def build_draw_plan(*, stock: Stock, quantity: int) -> DrawPlan:
    """
    Plan a consumption.

    Checks, in order: the item total, the presence of open batches, then
    open batch coverage.
    """
    _require_positive(quantity)

    if isinstance(stock, UnbatchedStock):
        return _plan_counter(stock, quantity)

    if quantity > stock.quantity:
        raise InsufficientStockError(
            str(stock.item_id), quantity, stock.quantity, "item_total"
        )
    if not stock.batches:
        raise NoOpenBatchesError(str(stock.item_id))
    return _plan_batches(stock, quantity)


@traced_engine("fefo.waste", "1.0", fingerprint_fields=("quantity",), summarize=_summarize_plan)
def build_waste_plan(*, stock: Stock, quantity: int) -> DrawPlan:
    """
    Plan an untargeted waste.

    Validated against the open batch sum when the item has open batches,
    otherwise against the item total.
    """
    _require_positive(quantity)

    if isinstance(stock, UnbatchedStock):
        return _plan_counter(stock, quantity)

    if stock.batches:
        if quantity > stock.open_quantity:
            raise InsufficientStockError(
                str(stock.item_id), quantity, stock.open_quantity, "open_batches"
            )
        return _plan_batches(stock, quantity)

    if quantity > stock.quantity:
        raise InsufficientStockError(
            str(stock.item_id), quantity, stock.quantity, "item_total"
        )
    raise NoOpenBatchesError(str(stock.item_id))


@traced_engine("fefo.targeted", "1.0", fingerprint_fields=("quantity",), summarize=_summarize_plan)
def build_targeted_plan(*, item_id: UUID, batch: BatchSnapshot, quantity: int) -> DrawPlan:
    """Plan a draw from one named batch, bypassing FEFO order."""
    _require_positive(quantity)
    if quantity > batch.quantity:
        raise BatchQuantityExceededError(str(batch.batch_id), quantity, batch.quantity)
    draw = PlannedDraw(
        batch_id=batch.batch_id,
        take=quantity,
        remaining_after=batch.quantity - quantity,
        expiration_date=batch.expiration_date,
    )
    return DrawPlan(
        item_id=item_id,
        mode=StockMode.BATCHED,
        requested=quantity,
        draws=(draw,),
    )
