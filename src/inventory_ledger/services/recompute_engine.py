"""Recompute engine: keeps each product's movement chain and snapshots consistent."""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Iterable, Optional

from inventory_ledger.core.exceptions import (
    AppError,
    ConsistencyError,
    NotFoundError,
    ValidationError,
)
from inventory_ledger.core.timezone import (
    business_date,
    iter_days,
    now_business,
    start_of_day,
    start_of_next_day,
    to_business,
)
from inventory_ledger.domain.costing import (
    CostState,
    ZERO_STATE,
    advance,
    quantize_cost,
    quantize_quantity,
)
from inventory_ledger.domain.models import (
    Movement,
    MutationAction,
    MutationEvent,
    OversellPolicy,
)
from inventory_ledger.domain.views import RepairSummary
from inventory_ledger.repositories.protocols import MovementRepository, SnapshotRepository
from inventory_ledger.schemas.mutation import to_mutation_event
from inventory_ledger.services.coordinator import TransactionCoordinator

logger = logging.getLogger(__name__)


class RecomputeEngine:
    """
    Applies invoice-line mutations to the movement ledger.

    Every mutation replays the product's chain forward from the mutation
    point with the weighted-average recurrence, then rewrites the daily
    position snapshots from the mutated date onward. Snapshots are only ever
    written from replayed states; the ledger is the source of truth.
    """

    def __init__(
        self,
        movement_repo: MovementRepository,
        snapshot_repo: SnapshotRepository,
        coordinator: TransactionCoordinator,
        oversell_policy: OversellPolicy = OversellPolicy.REJECT,
        clock: Callable[[], datetime] = now_business,
    ):
        self._movements = movement_repo
        self._snapshots = snapshot_repo
        self._coordinator = coordinator
        self._oversell_policy = OversellPolicy(oversell_policy)
        self._clock = clock

    # ==================== Mutations ====================

    def apply(self, event: Any) -> Optional[Movement]:
        """
        Apply one mutation notification.

        Args:
            event: MutationEvent, MutationEventRequest or a mapping with
                invoice_id, product_id, action, delta, unit_cost and
                (CREATE only) effective_time.

        Returns:
            The created or edited Movement; None for DELETE.

        Raises:
            ValidationError: malformed event (nothing is written).
            NotFoundError: EDIT/DELETE of a movement that does not exist.
            ConsistencyError: broken chain link or oversell under REJECT.
            ConcurrencyError: the product lock could not be acquired in time.
        """
        event = to_mutation_event(event)

        try:
            with self._coordinator.atomic():
                self._coordinator.lock_product(event.product_id)
                if event.action == MutationAction.CREATE:
                    return self._create(event)
                if event.action == MutationAction.EDIT:
                    return self._edit(event)
                self._delete(event)
                return None
        except AppError as exc:
            logger.error(
                "%s of invoice %s for product %s aborted: %s",
                event.action.value,
                event.invoice_id,
                event.product_id,
                exc.message,
            )
            raise

    def create_movement(
        self,
        invoice_id: int,
        product_id: int,
        delta: Decimal,
        unit_cost: Decimal,
        effective_time: Optional[datetime] = None,
    ) -> Movement:
        return self.apply({
            "invoice_id": invoice_id,
            "product_id": product_id,
            "action": MutationAction.CREATE,
            "delta": delta,
            "unit_cost": unit_cost,
            "effective_time": effective_time,
        })

    def edit_movement(
        self,
        invoice_id: int,
        product_id: int,
        delta: Decimal,
        unit_cost: Decimal,
    ) -> Movement:
        return self.apply({
            "invoice_id": invoice_id,
            "product_id": product_id,
            "action": MutationAction.EDIT,
            "delta": delta,
            "unit_cost": unit_cost,
        })

    def delete_movement(self, invoice_id: int, product_id: int) -> None:
        self.apply({
            "invoice_id": invoice_id,
            "product_id": product_id,
            "action": MutationAction.DELETE,
        })

    def _create(self, event: MutationEvent) -> Movement:
        product_id = event.product_id
        effective_time = (
            to_business(event.effective_time) if event.effective_time else self._clock()
        )
        delta = quantize_quantity(event.delta)
        unit_cost = quantize_cost(event.unit_cost)

        if self._movements.get_by_key(event.invoice_id, product_id):
            raise ValidationError(
                f"Invoice {event.invoice_id} already has a movement for product {product_id}"
            )

        key = (effective_time, event.invoice_id)
        tail = self._movements.latest(product_id)
        if tail is None or key > tail.sort_key:
            # Appending at the end of the chain: nothing later to replay
            before = tail.after_state if tail else ZERO_STATE
            later: list[Movement] = []
        else:
            predecessor = self._movements.get_predecessor(
                product_id, effective_time, event.invoice_id
            )
            before = predecessor.after_state if predecessor else ZERO_STATE
            later = self._movements.get_chain_after(product_id, effective_time, event.invoice_id)

        after = self._advance(product_id, event.invoice_id, before, delta, unit_cost)
        movement = self._movements.append(
            Movement(
                product_id=product_id,
                invoice_id=event.invoice_id,
                effective_time=effective_time,
                quantity_delta=delta,
                unit_cost=unit_cost,
                quantity_before=before.quantity,
                quantity_after=after.quantity,
                avg_cost_after=after.avg_cost,
            )
        )
        self._replay(product_id, after, later)
        self._refresh_snapshots(product_id, movement.business_date)

        logger.debug(
            "Created movement %s (invoice %s, product %s, %s later movements)",
            movement.movement_id, event.invoice_id, product_id, len(later),
        )
        return movement

    def _edit(self, event: MutationEvent) -> Movement:
        product_id = event.product_id
        movement = self._require(event)
        delta = quantize_quantity(event.delta)
        unit_cost = quantize_cost(event.unit_cost)

        before = self._verify_link(movement)
        after = self._advance(product_id, movement.invoice_id, before, delta, unit_cost)
        updated = self._movements.overwrite(
            movement.movement_id,
            quantity_delta=delta,
            unit_cost=unit_cost,
            quantity_before=before.quantity,
            quantity_after=after.quantity,
            avg_cost_after=after.avg_cost,
        )

        later = self._movements.get_chain_after(
            product_id, movement.effective_time, movement.invoice_id
        )
        self._replay(product_id, after, later)
        self._refresh_snapshots(product_id, movement.business_date)
        return updated

    def _delete(self, event: MutationEvent) -> None:
        product_id = event.product_id
        movement = self._require(event)

        anchor = self._verify_link(movement)
        self._movements.remove(movement.movement_id)

        later = self._movements.get_chain_after(
            product_id, movement.effective_time, movement.invoice_id
        )
        self._replay(product_id, anchor, later)
        self._refresh_snapshots(product_id, movement.business_date)

    def _require(self, event: MutationEvent) -> Movement:
        movement = self._movements.get_by_key(event.invoice_id, event.product_id)
        if movement is None:
            raise NotFoundError("Movement", f"invoice {event.invoice_id} / product {event.product_id}")
        return movement

    def _verify_link(self, movement: Movement) -> CostState:
        """Return the predecessor's after-state, checking the chain link to it."""
        predecessor = self._movements.get_predecessor(
            movement.product_id, movement.effective_time, movement.invoice_id
        )
        expected = predecessor.quantity_after if predecessor else Decimal("0")
        if movement.quantity_before != expected:
            raise ConsistencyError(
                f"Movement {movement.movement_id} of product {movement.product_id} starts at "
                f"{movement.quantity_before} but its predecessor ends at {expected}",
                product_id=movement.product_id,
            )
        return predecessor.after_state if predecessor else ZERO_STATE

    # ==================== Replay ====================

    def _advance(
        self,
        product_id: int,
        invoice_id: int,
        state: CostState,
        delta: Decimal,
        unit_cost: Decimal,
    ) -> CostState:
        after = advance(state, delta, unit_cost)
        if after.quantity < 0:
            if self._oversell_policy == OversellPolicy.REJECT:
                raise ConsistencyError(
                    f"Invoice {invoice_id} would leave product {product_id} "
                    f"at {after.quantity} units",
                    product_id=product_id,
                )
            logger.warning(
                "Product %s goes negative (%s) at invoice %s",
                product_id, after.quantity, invoice_id,
            )
        return after

    def _replay(
        self,
        product_id: int,
        state: CostState,
        movements: Iterable[Movement],
    ) -> tuple[CostState, int]:
        """
        Feed each movement its predecessor's after-state, in chain order.

        Only movements whose stored before/after values differ are rewritten.
        Returns the final state and the number of corrected movements.
        """
        walked = 0
        corrected = 0
        for movement in movements:
            walked += 1
            after = self._advance(
                product_id, movement.invoice_id, state,
                movement.quantity_delta, movement.unit_cost,
            )
            stored = (movement.quantity_before, movement.quantity_after, movement.avg_cost_after)
            if stored != (state.quantity, after.quantity, after.avg_cost):
                self._movements.overwrite(
                    movement.movement_id,
                    quantity_delta=movement.quantity_delta,
                    unit_cost=movement.unit_cost,
                    quantity_before=state.quantity,
                    quantity_after=after.quantity,
                    avg_cost_after=after.avg_cost,
                )
                corrected += 1
            state = after

        if walked:
            logger.debug(
                "Replayed %d movements of product %s (%d rewritten)",
                walked, product_id, corrected,
            )
        return state, corrected

    # ==================== Snapshots ====================

    def _refresh_snapshots(self, product_id: int, start: date) -> tuple[int, Optional[date]]:
        """Rewrite snapshots from ``start`` through the later of today and the chain end."""
        candidates = [start, business_date(self._clock())]
        tail = self._movements.latest(product_id)
        if tail:
            candidates.append(tail.business_date)
        last_snapshot = self._snapshots.latest(product_id)
        if last_snapshot:
            candidates.append(last_snapshot.snapshot_date)
        end = max(candidates)

        predecessor = self._movements.get_predecessor(product_id, start_of_day(start))
        state = predecessor.after_state if predecessor else ZERO_STATE
        chain = self._movements.list_by_product(
            product_id,
            start=start_of_day(start),
            end_before=start_of_next_day(end),
        )
        return self._write_days(product_id, state, chain, start, end)

    def _write_days(
        self,
        product_id: int,
        state: CostState,
        chain: list[Movement],
        start: date,
        end: date,
    ) -> tuple[int, Optional[date]]:
        """
        Walk [start, end] day by day, carrying ``state`` forward.

        A day's state is its last movement's after-state. Only missing or
        stale rows are written. Returns (rows written, first written date).
        """
        existing = {
            s.snapshot_date: s
            for s in self._snapshots.list_range(product_id, start, end)
        }
        end_of_day: dict[date, CostState] = {}
        for movement in chain:
            end_of_day[movement.business_date] = movement.after_state

        written = 0
        first_written: Optional[date] = None
        for day in iter_days(start, end):
            state = end_of_day.get(day, state)
            current = existing.get(day)
            if (
                current is None
                or current.available_qty != state.quantity
                or current.avg_cost != state.avg_cost
            ):
                self._snapshots.upsert(product_id, day, state.quantity, state.avg_cost)
                written += 1
                if first_written is None:
                    first_written = day
        return written, first_written

    # ==================== Batch repair ====================

    def recompute_positions(
        self,
        product_id: Optional[int] = None,
        as_of: Optional[date] = None,
    ) -> RepairSummary:
        """
        Heal movements and snapshots by replaying from empty state.

        Each product is repaired in its own transaction while holding its
        lock. A second run right after the first writes nothing.

        Args:
            product_id: Product to repair; every product known to the ledger
                or the snapshot store when None.
            as_of: Last date to fill (default today). The walk always reaches
                the latest movement or snapshot date too.
        """
        as_of = as_of or business_date(self._clock())
        if product_id is not None:
            product_ids = [product_id]
        else:
            product_ids = sorted(
                set(self._movements.list_product_ids())
                | set(self._snapshots.list_product_ids())
            )

        summary = RepairSummary(as_of=as_of)
        for pid in product_ids:
            with self._coordinator.atomic():
                self._coordinator.lock_product(pid)
                corrected, written, first = self._repair_product(pid, as_of)
            summary.products_scanned += 1
            summary.movements_corrected += corrected
            summary.snapshots_written += written
            if first is not None:
                summary.repaired_from[pid] = first

        logger.info(
            "Repair as of %s: %d products, %d movements corrected, %d snapshots written",
            as_of, summary.products_scanned, summary.movements_corrected, summary.snapshots_written,
        )
        return summary

    def _repair_product(self, product_id: int, as_of: date) -> tuple[int, int, Optional[date]]:
        chain = self._movements.list_by_product(product_id)
        _, corrected = self._replay(product_id, ZERO_STATE, chain)
        if corrected:
            chain = self._movements.list_by_product(product_id)

        snapshots = self._snapshots.list_range(product_id)
        starts = []
        ends = [as_of]
        if chain:
            starts.append(chain[0].business_date)
            ends.append(chain[-1].business_date)
        if snapshots:
            starts.append(snapshots[0].snapshot_date)
            ends.append(snapshots[-1].snapshot_date)
        if not starts:
            return corrected, 0, None

        written, first = self._write_days(product_id, ZERO_STATE, chain, min(starts), max(ends))
        if corrected or written:
            logger.info(
                "Repaired product %s: %d movements, %d snapshots from %s",
                product_id, corrected, written, first,
            )
        return corrected, written, first
