"""Process-wide AI cost budget.

One ``AIBudget`` is shared by every concurrent extraction. A call first
reserves its worst-case token cost and one call slot in a single locked step,
then settles the reservation to the tokens actually used (or releases it when
the call failed before spending anything). Concurrent requests can therefore
never spend past the configured limits.
"""

import threading
from dataclasses import dataclass

from callsheet_ai.config import Settings
from callsheet_ai.core.exceptions import BudgetExceededError
from callsheet_ai.utils.logging import get_logger

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class BudgetReservation:
    """Tokens and one call held for an in-flight AI request."""
    tokens: int
    calls: int = 1


@dataclass(frozen=True)
class BudgetSnapshot:
    tokens_used: int
    calls_used: int
    tokens_reserved: int
    calls_reserved: int
    token_budget: int
    call_budget: int

    @property
    def tokens_remaining(self) -> int:
        return max(0, self.token_budget - self.tokens_used - self.tokens_reserved)

    @property
    def calls_remaining(self) -> int:
        return max(0, self.call_budget - self.calls_used - self.calls_reserved)


class AIBudget:
    """Shared counter of AI tokens and calls with atomic reserve-and-check."""

    def __init__(self, token_budget: int, call_budget: int):
        self.token_budget = token_budget
        self.call_budget = call_budget
        self._tokens_used = 0
        self._calls_used = 0
        self._tokens_reserved = 0
        self._calls_reserved = 0
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "AIBudget":
        return cls(token_budget=settings.ai_token_budget, call_budget=settings.ai_call_budget)

    def reserve(self, tokens: int) -> BudgetReservation:
        """Reserve ``tokens`` and one call, or raise BudgetExceededError."""
        with self._lock:
            tokens_remaining = self.token_budget - self._tokens_used - self._tokens_reserved
            calls_remaining = self.call_budget - self._calls_used - self._calls_reserved
            if calls_remaining < 1 or tokens_remaining < tokens:
                raise BudgetExceededError(
                    "AI budget exhausted",
                    tokens_remaining=max(0, tokens_remaining),
                    calls_remaining=max(0, calls_remaining),
                )
            self._tokens_reserved += tokens
            self._calls_reserved += 1
            return BudgetReservation(tokens=tokens)

    def settle(self, reservation: BudgetReservation, tokens_used: int) -> None:
        """Convert a reservation into actual usage."""
        with self._lock:
            self._tokens_reserved -= reservation.tokens
            self._calls_reserved -= reservation.calls
            self._tokens_used += max(0, tokens_used)
            self._calls_used += reservation.calls

        if tokens_used > reservation.tokens:
            LOGGER.warning(
                f"AI call used {tokens_used} tokens, more than the {reservation.tokens} reserved"
            )

    def release(self, reservation: BudgetReservation) -> None:
        """Return an unused reservation; the call slot is still counted as spent."""
        with self._lock:
            self._tokens_reserved -= reservation.tokens
            self._calls_reserved -= reservation.calls
            self._calls_used += reservation.calls

    def snapshot(self) -> BudgetSnapshot:
        with self._lock:
            return BudgetSnapshot(
                tokens_used=self._tokens_used,
                calls_used=self._calls_used,
                tokens_reserved=self._tokens_reserved,
                calls_reserved=self._calls_reserved,
                token_budget=self.token_budget,
                call_budget=self.call_budget,
            )
