"""
rate_engine/stores.py

Read interfaces of the three configuration stores, in-memory implementations,
and the timeout-guarded reader the evaluator goes through.

The engine never writes to a store.
"""
from dataclasses import replace
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from datetime import date
from typing import Any, Callable, Iterable, List, Optional, Protocol, Sequence, TypeVar
import logging
import threading

from rate_engine.conditions import NightContext
from rate_engine.errors import PricingError, RuleConfigurationWarning, StoreUnavailable
from rate_engine.models import (
    AdjustmentRule,
    OccupancyType,
    OverrideEntry,
    PlanType,
    RateMatrixEntry,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RateMatrixStore(Protocol):
    """Base price lookups."""

    def find_matrix_entries(
        self,
        property_id: str,
        room_category: str,
        plan_type: PlanType,
        occupancy_type: OccupancyType,
        night: date,
    ) -> List[RateMatrixEntry]:
        """All active entries whose window contains the night."""
        ...

    def find_entries_in_window(
        self,
        property_id: str,
        check_in: date,
        check_out: date,
        room_category: Optional[str] = None,
        plan_type: Optional[PlanType] = None,
        occupancy_type: Optional[OccupancyType] = None,
    ) -> List[RateMatrixEntry]:
        """All active entries intersecting [check_in, check_out), optionally filtered."""
        ...


class OverrideStore(Protocol):
    def find_override(
        self,
        property_id: str,
        room_category: str,
        plan_type: PlanType,
        occupancy_type: OccupancyType,
        night: date,
    ) -> Optional[OverrideEntry]:
        """Active override whose window contains the night, if any."""
        ...


class AdjustmentRuleStore(Protocol):
    def find_applicable_rules(
        self,
        property_id: str,
        plan_type: PlanType,
        night: date,
        booking_date: date,
        check_in: Optional[date] = None,
        room_category: Optional[str] = None,
    ) -> List[AdjustmentRule]:
        """Active global + property rules whose conditions hold, priority descending."""
        ...


# ============== Selection helpers shared by store backends ==============

def rule_sort_key(rule: AdjustmentRule):
    """Priority descending, then insertion sequence ascending."""
    return (-rule.priority, rule.sequence)


def select_applicable_rules(
    rules: Iterable[AdjustmentRule],
    property_id: str,
    plan_type: PlanType,
    night: date,
    booking_date: date,
    check_in: Optional[date] = None,
    room_category: Optional[str] = None,
) -> List[AdjustmentRule]:
    """
    Filter candidate rules for one night and order them for the rule stack.

    A rule is kept when it is active, global or owned by the property, carries
    a factor for the plan type, and every declared condition holds.

    Returns:
        Rules sorted by priority (highest first); ties keep insertion order.
    """
    plan_type = PlanType(plan_type)
    context = NightContext(
        night=night,
        booking_date=booking_date,
        check_in=check_in or night,
        room_category=room_category,
    )
    applicable = [
        rule
        for rule in rules
        if rule.is_active
        and (rule.property_id is None or rule.property_id == property_id)
        and rule.factor_for(plan_type) is not None
        and rule.condition.matches(context)
    ]
    return sorted(applicable, key=rule_sort_key)


def pick_override(candidates: Sequence[OverrideEntry]) -> Optional[OverrideEntry]:
    """
    Choose among overrides covering the same night.

    Candidates are ordered oldest first; the newest wins.
    """
    if not candidates:
        return None
    chosen = candidates[-1]
    if len(candidates) > 1:
        RuleConfigurationWarning(
            code="override_overlap",
            message="Multiple active overrides cover the same night; using the newest",
            context={
                "override_ids": [o.override_id for o in candidates],
                "chosen": chosen.override_id,
            },
        ).emit()
    return chosen


# ============== In-memory stores ==============

class InMemoryRateMatrixStore:
    """List-backed matrix store; insertion order is preserved."""

    def __init__(self, entries: Iterable[RateMatrixEntry] = ()):
        self._entries: List[RateMatrixEntry] = list(entries)

    def add(self, entry: RateMatrixEntry) -> RateMatrixEntry:
        self._entries.append(entry)
        return entry

    def find_matrix_entries(self, property_id, room_category, plan_type, occupancy_type, night):
        key = (property_id, room_category, PlanType(plan_type), OccupancyType(occupancy_type))
        return [e for e in self._entries if e.is_active and e.key == key and e.covers(night)]

    def find_entries_in_window(
        self,
        property_id,
        check_in,
        check_out,
        room_category=None,
        plan_type=None,
        occupancy_type=None,
    ):
        result = []
        for e in self._entries:
            if not e.is_active or e.property_id != property_id:
                continue
            if room_category is not None and e.room_category != room_category:
                continue
            if plan_type is not None and e.plan_type != PlanType(plan_type):
                continue
            if occupancy_type is not None and e.occupancy_type != OccupancyType(occupancy_type):
                continue
            if e.intersects(check_in, check_out):
                result.append(e)
        return result


class InMemoryOverrideStore:
    def __init__(self, overrides: Iterable[OverrideEntry] = ()):
        self._overrides: List[OverrideEntry] = list(overrides)

    def add(self, override: OverrideEntry) -> OverrideEntry:
        self._overrides.append(override)
        return override

    def find_override(self, property_id, room_category, plan_type, occupancy_type, night):
        key = (property_id, room_category, PlanType(plan_type), OccupancyType(occupancy_type))
        candidates = [
            o for o in self._overrides if o.is_active and o.key == key and o.covers(night)
        ]
        return pick_override(candidates)


class InMemoryAdjustmentRuleStore:
    """
    List-backed rule store.

    Rules added without an explicit sequence get the next number after the
    highest one seen so far, so priority ties resolve the same way on every run.
    """

    def __init__(self, rules: Iterable[AdjustmentRule] = ()):
        self._rules: List[AdjustmentRule] = []
        self._last_sequence = 0
        for rule in rules:
            self.add(rule)

    def add(self, rule: AdjustmentRule) -> AdjustmentRule:
        if rule.sequence == 0:
            rule = replace(rule, sequence=self._last_sequence + 1)
        self._last_sequence = max(self._last_sequence, rule.sequence)
        self._rules.append(rule)
        return rule

    def find_applicable_rules(
        self,
        property_id,
        plan_type,
        night,
        booking_date,
        check_in=None,
        room_category=None,
    ):
        return select_applicable_rules(
            self._rules, property_id, plan_type, night, booking_date, check_in, room_category
        )


# ============== Timeout-guarded reader ==============

class StoreReader:
    """
    Routes every store read through a timeout.

    A store exception or an expired timeout surfaces as StoreUnavailable.
    Reads are never retried here; retry policy belongs to the caller.

    Example:
        >>> reader = StoreReader(matrix, overrides, rules, timeout=2.0)
        >>> reader.find_override("P1", "DELUXE", PlanType.EP, OccupancyType.DOUBLE, night)
    """

    def __init__(
        self,
        matrix_store: RateMatrixStore,
        override_store: OverrideStore,
        rule_store: AdjustmentRuleStore,
        timeout: Optional[float] = None,
        max_workers: int = 16,
    ):
        self.matrix_store = matrix_store
        self.override_store = override_store
        self.rule_store = rule_store
        self.timeout = timeout
        self._max_workers = max_workers
        self._executor: Optional[ThreadPoolExecutor] = None
        self._lock = threading.Lock()

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            with self._lock:
                if self._executor is None:
                    self._executor = ThreadPoolExecutor(
                        max_workers=self._max_workers, thread_name_prefix="store-read"
                    )
        return self._executor

    def _call(self, operation: str, func: Callable[..., T], *args: Any) -> T:
        try:
            if self.timeout is None:
                return func(*args)
            future = self._get_executor().submit(func, *args)
            try:
                return future.result(timeout=self.timeout)
            except FuturesTimeoutError as e:
                future.cancel()
                logger.error(f"Store read {operation} timed out after {self.timeout}s")
                raise StoreUnavailable(operation, e) from e
        except PricingError:
            raise
        except Exception as e:
            logger.error(f"Store read {operation} failed: {e}", exc_info=True)
            raise StoreUnavailable(operation, e) from e

    def find_matrix_entries(self, property_id, room_category, plan_type, occupancy_type, night):
        return self._call(
            "find_matrix_entries",
            self.matrix_store.find_matrix_entries,
            property_id, room_category, plan_type, occupancy_type, night,
        )

    def find_entries_in_window(
        self,
        property_id,
        check_in,
        check_out,
        room_category=None,
        plan_type=None,
        occupancy_type=None,
    ):
        return self._call(
            "find_entries_in_window",
            self.matrix_store.find_entries_in_window,
            property_id, check_in, check_out, room_category, plan_type, occupancy_type,
        )

    def find_override(self, property_id, room_category, plan_type, occupancy_type, night):
        return self._call(
            "find_override",
            self.override_store.find_override,
            property_id, room_category, plan_type, occupancy_type, night,
        )

    def find_applicable_rules(
        self,
        property_id,
        plan_type,
        night,
        booking_date,
        check_in=None,
        room_category=None,
    ):
        return self._call(
            "find_applicable_rules",
            self.rule_store.find_applicable_rules,
            property_id, plan_type, night, booking_date, check_in, room_category,
        )

    def close(self) -> None:
        """Stop the read pool; waits for reads still running past their timeout."""
        if self._executor is not None:
            self._executor.shutdown(wait=True, cancel_futures=True)
            self._executor = None


__all__ = [
    "RateMatrixStore",
    "OverrideStore",
    "AdjustmentRuleStore",
    "rule_sort_key",
    "select_applicable_rules",
    "pick_override",
    "InMemoryRateMatrixStore",
    "InMemoryOverrideStore",
    "InMemoryAdjustmentRuleStore",
    "StoreReader",
]
