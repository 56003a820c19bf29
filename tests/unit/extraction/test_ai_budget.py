"""Tests for the shared AI budget."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from callsheet_ai.core.exceptions import BudgetExceededError
from callsheet_ai.services.extraction.ai_budget import AIBudget


class TestAIBudget:

    def test_reserve_and_settle(self):
        budget = AIBudget(token_budget=1000, call_budget=5)

        reservation = budget.reserve(400)
        assert budget.snapshot().tokens_remaining == 600

        budget.settle(reservation, tokens_used=150)
        snapshot = budget.snapshot()
        assert snapshot.tokens_used == 150
        assert snapshot.calls_used == 1
        assert snapshot.tokens_reserved == 0
        assert snapshot.tokens_remaining == 850

    def test_release_returns_tokens_but_counts_call(self):
        budget = AIBudget(token_budget=1000, call_budget=5)

        budget.release(budget.reserve(400))
        snapshot = budget.snapshot()
        assert snapshot.tokens_remaining == 1000
        assert snapshot.calls_remaining == 4

    def test_token_budget_exhausted(self):
        budget = AIBudget(token_budget=100, call_budget=5)

        with pytest.raises(BudgetExceededError) as exc_info:
            budget.reserve(101)
        assert exc_info.value.tokens_remaining == 100

    def test_call_budget_exhausted(self):
        budget = AIBudget(token_budget=10_000, call_budget=1)
        budget.settle(budget.reserve(10), tokens_used=10)

        with pytest.raises(BudgetExceededError) as exc_info:
            budget.reserve(10)
        assert exc_info.value.calls_remaining == 0

    def test_concurrent_reservations_never_overspend(self):
        budget = AIBudget(token_budget=1000, call_budget=1000)

        def try_reserve(_):
            try:
                budget.reserve(10)
                return True
            except BudgetExceededError:
                return False

        with ThreadPoolExecutor(max_workers=16) as pool:
            granted = sum(pool.map(try_reserve, range(500)))

        assert granted == 100
        assert budget.snapshot().tokens_reserved == 1000
