"""
Credit ledger port for paid layout features.

The layout engines never talk to the ledger. Callers check the cost,
reserve it, run the engine and then commit the reservation, or release it
if anything failed.
"""

import logging
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple, TypeVar

T = TypeVar('T')


class Feature(Enum):
    """Paid layout features."""
    AUTO_NEST = "auto_nest"
    SMART_FILL = "smart_fill"


class CostGateError(Exception):
    """Base class for ledger failures."""


class InsufficientCreditsError(CostGateError):
    """The user cannot pay for the requested feature."""


class ReservationError(CostGateError):
    """A reservation was committed or released twice, or is unknown."""


@dataclass
class FeaturePricing:
    feature: Feature
    display_name: str
    base_cost: int
    current_cost: int
    is_free_trial: bool = False
    free_trial_uses: int = 0
    promo_end_time: Optional[datetime] = None


DEFAULT_PRICING: Dict[Feature, FeaturePricing] = {
    Feature.AUTO_NEST: FeaturePricing(Feature.AUTO_NEST, "Auto-Nest", base_cost=5, current_cost=5),
    Feature.SMART_FILL: FeaturePricing(Feature.SMART_FILL, "Smart Fill", base_cost=3, current_cost=3),
}


@dataclass
class CostDecision:
    """Whether a user may run a feature, and what it will cost."""
    can_proceed: bool
    cost: int
    use_free_trial: bool
    free_trial_remaining: int = 0
    reason: Optional[str] = None


class ReservationStatus(Enum):
    HELD = "held"
    COMMITTED = "committed"
    RELEASED = "released"


@dataclass
class Reservation:
    """Funds (or one free-trial use) held for a single feature run."""
    user_id: str
    feature: Feature
    cost: int
    use_free_trial: bool
    reservation_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: ReservationStatus = ReservationStatus.HELD


@dataclass
class LedgerTransaction:
    user_id: str
    type: str  # "debit"
    amount: int
    balance_after: int
    reason: str
    created_at: datetime = field(default_factory=datetime.now)


class LedgerPort(ABC):
    """Operations a caller needs from the credit ledger."""

    @abstractmethod
    def check_cost(self, user_id: str, feature: Feature) -> CostDecision:
        ...

    @abstractmethod
    def reserve(self, user_id: str, feature: Feature) -> Reservation:
        ...

    @abstractmethod
    def commit(self, reservation: Reservation) -> None:
        ...

    @abstractmethod
    def release(self, reservation: Reservation) -> None:
        ...


class InMemoryLedger(LedgerPort):
    """Thread-safe ledger kept in process memory."""

    def __init__(self, balances: Optional[Dict[str, int]] = None,
                 pricing: Optional[Dict[Feature, FeaturePricing]] = None,
                 clock: Callable[[], datetime] = datetime.now):
        self.logger = logging.getLogger(__name__)
        self.pricing = dict(DEFAULT_PRICING if pricing is None else pricing)
        self.clock = clock
        self.transactions: List[LedgerTransaction] = []
        self._balances: Dict[str, int] = dict(balances or {})
        self._free_trials: Dict[Tuple[str, Feature], int] = {}
        self._reservations: Dict[str, Reservation] = {}
        self._lock = threading.Lock()

    def balance(self, user_id: str) -> int:
        with self._lock:
            return self._balances.get(user_id, 0)

    def free_trial_remaining(self, user_id: str, feature: Feature) -> int:
        with self._lock:
            return self._free_trials.get((user_id, feature), 0)

    def check_cost(self, user_id: str, feature: Feature) -> CostDecision:
        with self._lock:
            return self._decide(user_id, feature)

    def reserve(self, user_id: str, feature: Feature) -> Reservation:
        with self._lock:
            decision = self._decide(user_id, feature)
            if not decision.can_proceed:
                raise InsufficientCreditsError(decision.reason)

            if decision.use_free_trial:
                self._free_trials[(user_id, feature)] -= 1
            elif decision.cost > 0:
                self._balances[user_id] = self._balances.get(user_id, 0) - decision.cost

            reservation = Reservation(user_id, feature, decision.cost, decision.use_free_trial)
            self._reservations[reservation.reservation_id] = reservation

        self.logger.info(f"Reserved {reservation.cost} credits for {user_id}:{feature.value} "
                         f"(free trial: {reservation.use_free_trial})")
        return reservation

    def commit(self, reservation: Reservation) -> None:
        with self._lock:
            held = self._take_held(reservation)
            held.status = reservation.status = ReservationStatus.COMMITTED
            if held.cost > 0 and not held.use_free_trial:
                self.transactions.append(LedgerTransaction(
                    user_id=held.user_id,
                    type="debit",
                    amount=-held.cost,
                    balance_after=self._balances.get(held.user_id, 0),
                    reason=f"sheet_layout:{held.feature.value}"
                ))
        self.logger.info(f"Committed reservation {reservation.reservation_id}")

    def release(self, reservation: Reservation) -> None:
        with self._lock:
            held = self._take_held(reservation)
            held.status = reservation.status = ReservationStatus.RELEASED
            if held.use_free_trial:
                self._free_trials[(held.user_id, held.feature)] += 1
            elif held.cost > 0:
                self._balances[held.user_id] = self._balances.get(held.user_id, 0) + held.cost
        self.logger.info(f"Released reservation {reservation.reservation_id}")

    def _take_held(self, reservation: Reservation) -> Reservation:
        held = self._reservations.pop(reservation.reservation_id, None)
        if held is None:
            raise ReservationError(f"Reservation {reservation.reservation_id} is not held")
        return held

    def _decide(self, user_id: str, feature: Feature) -> CostDecision:
        pricing = self.pricing.get(feature)
        if pricing is None:
            return CostDecision(False, 0, False, reason="Feature not found")

        promo_active = pricing.promo_end_time is not None and pricing.promo_end_time > self.clock()
        if promo_active or pricing.current_cost == 0:
            return CostDecision(True, 0, False)

        if pricing.is_free_trial:
            key = (user_id, feature)
            if key not in self._free_trials:
                self._free_trials[key] = pricing.free_trial_uses
            remaining = self._free_trials[key]
            if remaining > 0:
                return CostDecision(True, 0, True, free_trial_remaining=remaining - 1)

        if self._balances.get(user_id, 0) >= pricing.current_cost:
            return CostDecision(True, pricing.current_cost, False)

        return CostDecision(False, pricing.current_cost, False,
                            reason=f"Insufficient credit balance. Need {pricing.current_cost} credits.")


def run_paid_operation(ledger: LedgerPort, user_id: str, feature: Feature,
                       operation: Callable[[], T]) -> Tuple[T, Reservation]:
    """
    Reserve, run ``operation``, then commit.

    The reservation is released if the operation raises, and the exception
    propagates to the caller.
    """
    reservation = ledger.reserve(user_id, feature)
    try:
        result = operation()
    except Exception:
        ledger.release(reservation)
        raise
    ledger.commit(reservation)
    return result, reservation
