"""Unit tests for cuehand.engine.cost_tracker — CostTracker and cost accounting."""

from __future__ import annotations

import pytest

from cuehand.config import CuehandError
from cuehand.engine.cost_tracker import (
    MODEL_PRICING,
    BudgetExceededError,
    CostSummary,
    CostTracker,
    OracleCall,
    _FALLBACK_MODEL,
)
from cuehand.models import PRICING

HAIKU = "claude-haiku-4-5-20251001"
SONNET = "claude-sonnet-4-20250514"


# ---------------------------------------------------------------------------
# 1. CostTracker initialization
# ---------------------------------------------------------------------------

class TestCostTrackerInit:
    """CostTracker should initialize with correct defaults and provided values."""

    def test_default_initialization(self):
        ct = CostTracker()
        assert ct.total_cost == 0.0
        assert ct.calls == []
        assert ct.warning_issued is False
        assert ct.budget_exceeded is False

    def test_custom_budget(self):
        ct = CostTracker(budget_usd=25.0)
        assert ct.get_summary().budget_limit_usd == 25.0

    def test_custom_warn_threshold(self):
        ct = CostTracker(budget_usd=1.0, warn_at_pct=50)
        # Haiku input: $0.80 per 1M tokens -> 80% of $1.00
        ct.record_call(HAIKU, 1_000_000, 0, purpose="role_intent")
        assert ct.warning_issued is True


# ---------------------------------------------------------------------------
# 2. record_call() — basic tracking
# ---------------------------------------------------------------------------

class TestRecordCall:
    """record_call() should track costs and return OracleCall records."""

    def test_record_call_returns_oracle_call(self):
        ct = CostTracker(budget_usd=100.0)
        call = ct.record_call(HAIKU, 1000, 500, purpose="keyword")
        assert isinstance(call, OracleCall)
        assert call.model == HAIKU
        assert call.input_tokens == 1000
        assert call.output_tokens == 500
        assert call.purpose == "keyword"
        assert call.timestamp

    def test_record_call_accumulates_tokens(self):
        ct = CostTracker(budget_usd=100.0)
        ct.record_call(HAIKU, 1000, 500)
        ct.record_call(HAIKU, 2000, 1000)
        summary = ct.get_summary()
        assert summary.total_input_tokens == 3000
        assert summary.total_output_tokens == 1500

    def test_calls_returns_a_copy(self):
        ct = CostTracker(budget_usd=100.0)
        ct.record_call(HAIKU, 100, 50)
        ct.calls.clear()
        assert len(ct.calls) == 1


# ---------------------------------------------------------------------------
# 3. Budget warning and enforcement
# ---------------------------------------------------------------------------

class TestBudget:
    """Warn once at the threshold, raise past the cap, never with a zero cap."""

    def test_no_warning_below_threshold(self):
        ct = CostTracker(budget_usd=100.0, warn_at_pct=80)
        ct.record_call(HAIKU, 100, 50)
        assert ct.warning_issued is False

    def test_warning_at_threshold(self):
        # Sonnet: 1M input = $3.00, 85.7% of $3.50
        ct = CostTracker(budget_usd=3.50, warn_at_pct=80)
        ct.record_call(SONNET, 1_000_000, 0, purpose="extraction")
        assert ct.warning_issued is True
        assert ct.budget_exceeded is False

    def test_raises_when_budget_exceeded(self):
        ct = CostTracker(budget_usd=0.001)
        with pytest.raises(BudgetExceededError, match="Session budget exceeded"):
            ct.record_call(HAIKU, 100_000, 0)
        assert ct.budget_exceeded is True
        # the call is still on the ledger
        assert len(ct.calls) == 1

    def test_budget_error_is_cuehand_error(self):
        assert issubclass(BudgetExceededError, CuehandError)

    def test_zero_budget_disables_cap(self):
        ct = CostTracker(budget_usd=0.0)
        ct.record_call(SONNET, 10_000_000, 1_000_000)
        assert ct.warning_issued is False
        assert ct.budget_exceeded is False


# ---------------------------------------------------------------------------
# 4. Cost calculation
# ---------------------------------------------------------------------------

class TestCostCalculation:
    """_calculate_cost() should produce accurate USD costs for known token counts."""

    def test_haiku_cost_calculation(self):
        cost = CostTracker._calculate_cost(HAIKU, 1_000_000, 1_000_000)
        assert abs(cost - (0.80 + 4.00)) < 0.0001

    def test_sonnet_cost_calculation(self):
        cost = CostTracker._calculate_cost(SONNET, 500_000, 200_000)
        expected = 0.5 * 3.00 + 0.2 * 15.00
        assert abs(cost - expected) < 0.0001

    def test_zero_tokens_zero_cost(self):
        assert CostTracker._calculate_cost(HAIKU, 0, 0) == 0.0

    def test_unknown_model_uses_fallback_pricing(self):
        cost = CostTracker._calculate_cost("unknown-model-v1", 1_000_000, 0)
        assert abs(cost - MODEL_PRICING[_FALLBACK_MODEL][0]) < 0.0001

    def test_pricing_table_mirrors_models(self):
        assert set(MODEL_PRICING) == set(PRICING)


# ---------------------------------------------------------------------------
# 5. get_summary()
# ---------------------------------------------------------------------------

class TestGetSummary:
    """get_summary() should return a CostSummary with correct aggregate values."""

    def test_summary_after_multiple_calls(self):
        ct = CostTracker(budget_usd=100.0)
        ct.record_call(HAIKU, 1000, 500, purpose="keyword")
        ct.record_call(HAIKU, 1000, 500, purpose="selector")
        ct.record_call(SONNET, 2000, 1000, purpose="extraction")

        summary = ct.get_summary()
        assert isinstance(summary, CostSummary)
        assert summary.call_count == 3
        assert summary.calls_by_purpose == {"keyword": 1, "selector": 1, "extraction": 1}
        assert set(summary.cost_by_model) == {HAIKU, SONNET}
        assert summary.budget_remaining_usd < 100.0
        assert summary.budget_exceeded is False

    def test_summary_cost_by_model(self):
        ct = CostTracker(budget_usd=100.0)
        ct.record_call(HAIKU, 1_000_000, 0)
        ct.record_call(SONNET, 1_000_000, 0)
        summary = ct.get_summary()
        assert abs(summary.cost_by_model[HAIKU] - 0.80) < 0.0001
        assert abs(summary.cost_by_model[SONNET] - 3.00) < 0.0001

    def test_summary_empty_tracker(self):
        summary = CostTracker(budget_usd=10.0).get_summary()
        assert summary.call_count == 0
        assert summary.total_cost_usd == 0.0
        assert summary.budget_remaining_usd == 10.0
