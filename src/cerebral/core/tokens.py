"""Token estimation and output budget allocation.

Counts are approximations (~4 characters per token). They size requests and
decide warnings; they are not billing figures.
"""

from __future__ import annotations

import math

from pydantic import BaseModel

from ..models.provider import ModelTier

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Approximate the token count of ``text`` from its length."""
    return math.ceil(len(text or "") / CHARS_PER_TOKEN)


class BudgetPolicy(BaseModel):
    context_window: int
    max_output_tokens: int
    min_output_tokens: int
    prompt_deduction_cap: int = 10000
    warning_threshold: float


class TokenBudget(BaseModel):
    prompt_tokens: int
    allocated_output_tokens: int
    over_threshold: bool = False


def allocate_output_tokens(prompt_tokens: int, policy: BudgetPolicy) -> int:
    """Output tokens to request for a prompt of ``prompt_tokens``.

    Starts from the ceiling and subtracts the prompt size (up to the
    deduction cap), clamped to [min_output_tokens, max_output_tokens].
    """
    deduction = min(max(prompt_tokens, 0), policy.prompt_deduction_cap)
    floor = min(policy.min_output_tokens, policy.max_output_tokens)
    return min(policy.max_output_tokens, max(floor, policy.max_output_tokens - deduction))


def plan_budget(prompt: str, policy: BudgetPolicy) -> TokenBudget:
    prompt_tokens = estimate_tokens(prompt)
    return TokenBudget(
        prompt_tokens=prompt_tokens,
        allocated_output_tokens=allocate_output_tokens(prompt_tokens, policy),
        over_threshold=prompt_tokens > policy.warning_threshold,
    )


def load_budget_policies(config: dict) -> dict[ModelTier, BudgetPolicy]:
    """Build one BudgetPolicy per model tier from the ``budget`` config section."""
    budget_config = config.get("budget", {})
    return {tier: BudgetPolicy(**budget_config[tier.value]) for tier in ModelTier}
