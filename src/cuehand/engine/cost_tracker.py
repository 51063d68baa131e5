"""Cuehand Cost Tracker — Tracks oracle token costs and enforces a session budget.

Monitors per-call costs (model, tokens in/out, USD, purpose), warns once a
configurable share of the budget is used, and hard-stops when the budget is
exceeded.
"""

from __future__ import annotations

import dataclasses
import datetime as dt
import logging

from cuehand.config import CuehandError
from cuehand.models import PRICING

logger = logging.getLogger("cuehand.engine.cost_tracker")


def _build_model_pricing() -> dict[str, tuple[float, float]]:
    """Convert PRICING dict to (input, output) tuple lookup."""
    result: dict[str, tuple[float, float]] = {}
    for model_id, prices in PRICING.items():
        result[model_id] = (prices["input"], prices["output"])
    return result


MODEL_PRICING: dict[str, tuple[float, float]] = _build_model_pricing()

# Unknown model IDs are priced like this one
_FALLBACK_MODEL = "claude-sonnet-4-20250514"


@dataclasses.dataclass
class OracleCall:
    """Record of a single oracle call."""

    timestamp: str
    model: str
    input_tokens: int
    output_tokens: int
    cost_usd: float
    purpose: str  # e.g. "role_intent", "keyword", "selector", "extraction"


@dataclasses.dataclass
class CostSummary:
    """Aggregated cost summary for a session."""

    total_cost_usd: float
    total_input_tokens: int
    total_output_tokens: int
    calls_by_purpose: dict[str, int]
    cost_by_model: dict[str, float]
    budget_limit_usd: float
    budget_remaining_usd: float
    budget_exceeded: bool
    warning_issued: bool
    call_count: int


class CostTracker:
    """Tracks oracle costs for a single session and enforces its budget.

    A ``budget_usd`` of 0 disables the cap.
    """

    def __init__(self, budget_usd: float = 1.0, warn_at_pct: int = 80) -> None:
        self._budget_usd = budget_usd
        self._warn_at_pct = warn_at_pct
        self._calls: list[OracleCall] = []
        self._total_cost: float = 0.0
        self._total_input_tokens: int = 0
        self._total_output_tokens: int = 0
        self._warning_issued: bool = False
        self._budget_exceeded: bool = False

    def record_call(
        self,
        model: str,
        input_tokens: int,
        output_tokens: int,
        purpose: str = "",
    ) -> OracleCall:
        """Record an oracle call and return the call record.

        Raises BudgetExceededError if the session cap is exceeded.
        """
        cost = self._calculate_cost(model, input_tokens, output_tokens)
        call = OracleCall(
            timestamp=dt.datetime.now(dt.timezone.utc).isoformat(timespec="seconds"),
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost_usd=round(cost, 6),
            purpose=purpose,
        )
        self._calls.append(call)
        self._total_cost += cost
        self._total_input_tokens += input_tokens
        self._total_output_tokens += output_tokens

        if not self._warning_issued and self._budget_usd > 0:
            pct_used = (self._total_cost / self._budget_usd) * 100
            if pct_used >= self._warn_at_pct:
                self._warning_issued = True
                logger.warning(
                    "Oracle spend at %.0f%% of budget ($%.4f of $%.2f)",
                    pct_used,
                    self._total_cost,
                    self._budget_usd,
                )

        if self._budget_usd > 0 and self._total_cost > self._budget_usd:
            self._budget_exceeded = True
            raise BudgetExceededError(
                f"Session budget exceeded: ${self._total_cost:.4f} > ${self._budget_usd:.2f} limit"
            )

        return call

    @property
    def warning_issued(self) -> bool:
        return self._warning_issued

    @property
    def budget_exceeded(self) -> bool:
        return self._budget_exceeded

    @property
    def total_cost(self) -> float:
        return round(self._total_cost, 6)

    @property
    def calls(self) -> list[OracleCall]:
        return list(self._calls)

    def get_summary(self) -> CostSummary:
        """Return aggregated cost summary."""
        calls_by_purpose: dict[str, int] = {}
        cost_by_model: dict[str, float] = {}
        for call in self._calls:
            calls_by_purpose[call.purpose] = calls_by_purpose.get(call.purpose, 0) + 1
            cost_by_model[call.model] = cost_by_model.get(call.model, 0.0) + call.cost_usd
        cost_by_model = {k: round(v, 6) for k, v in cost_by_model.items()}

        remaining = max(0.0, self._budget_usd - self._total_cost)
        return CostSummary(
            total_cost_usd=round(self._total_cost, 6),
            total_input_tokens=self._total_input_tokens,
            total_output_tokens=self._total_output_tokens,
            calls_by_purpose=calls_by_purpose,
            cost_by_model=cost_by_model,
            budget_limit_usd=self._budget_usd,
            budget_remaining_usd=round(remaining, 6),
            budget_exceeded=self._budget_exceeded,
            warning_issued=self._warning_issued,
            call_count=len(self._calls),
        )

    @staticmethod
    def _calculate_cost(model: str, input_tokens: int, output_tokens: int) -> float:
        """Calculate USD cost for a single call."""
        pricing = MODEL_PRICING.get(model)
        if pricing is None:
            pricing = MODEL_PRICING.get(_FALLBACK_MODEL, (3.00, 15.00))
        input_price, output_price = pricing
        return (input_tokens / 1_000_000) * input_price + (output_tokens / 1_000_000) * output_price


class BudgetExceededError(CuehandError):
    """Raised when a session exceeds its oracle cost budget."""

    pass
