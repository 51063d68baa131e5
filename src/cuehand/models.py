"""Centralized model configuration, pricing and engine defaults."""

# Model IDs for the oracle tiers
MODELS = {
    "intent": "claude-haiku-4-5-20251001",
    "extraction": "claude-sonnet-4-20250514",
}

# Pricing per million tokens (USD)
PRICING = {
    "claude-haiku-4-5-20251001": {"input": 0.80, "output": 4.00},
    "claude-sonnet-4-20250514": {"input": 3.00, "output": 15.00},
}

# Default budget per session (0 disables the cap)
DEFAULT_BUDGET_USD = 1.00

# Oracle response ceiling
DEFAULT_MAX_TOKENS = 4096

# Pause after a successful fill so reactive UIs can settle
DEFAULT_SETTLE_SECONDS = 1.0

# Resolution strategies for act()
STRATEGIES = ("role", "selector")
DEFAULT_STRATEGY = "role"

# What to do when a resolved locator matches nothing
NOT_FOUND_POLICIES = ("report", "raise")
DEFAULT_NOT_FOUND_POLICY = "report"
