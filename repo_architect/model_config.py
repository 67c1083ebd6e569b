"""
Token budgets for the analysis call.

The analyzer sends the whole repomix output in one request and expects the
complete analysis back in one response, so both sides of the call need a
budget: how much scanned content fits, and how many tokens the reply may use.
Known Claude models are listed below; anything else is looked up in litellm's
registry and otherwise gets conservative limits.
"""

import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

# A full analysis (overview, three diagrams, every module) fits well within this
MAX_ANALYSIS_OUTPUT_TOKENS = 16_000

# repomix XML averages roughly four characters per token
CHARS_PER_TOKEN = 4

PROVIDER_PREFIXES = ("openrouter/", "litellm_proxy/", "anthropic/", "bedrock/")


@dataclass(frozen=True)
class ModelConfig:
    context_window: int
    max_output_tokens: int

    @property
    def analysis_output_tokens(self) -> int:
        return min(self.max_output_tokens, MAX_ANALYSIS_OUTPUT_TOKENS)

    @property
    def input_budget_tokens(self) -> int:
        """Tokens left for prompt and scanned content once the reply is reserved."""
        return self.context_window - self.analysis_output_tokens

    def fits(self, text: str) -> bool:
        return estimate_tokens(text) <= self.input_budget_tokens

    def __str__(self) -> str:
        return f"ctx={self.context_window:,} reply={self.analysis_output_tokens:,}"


def estimate_tokens(text: str) -> int:
    return len(text) // CHARS_PER_TOKEN


# Bare model ids: "claude-sonnet-4-5-20250929", not "anthropic/claude-sonnet-4-5-20250929"
CLAUDE_MODELS = {
    "claude-sonnet-4-5-20250929": ModelConfig(context_window=200_000, max_output_tokens=64_000),
    "claude-opus-4-1-20250805": ModelConfig(context_window=200_000, max_output_tokens=32_000),
    "claude-3-5-haiku-20241022": ModelConfig(context_window=200_000, max_output_tokens=8_192),
}

FALLBACK_CONFIG = ModelConfig(context_window=100_000, max_output_tokens=8_192)


def bare_model_name(model: str) -> str:
    """'openrouter/anthropic/claude-3-5-haiku-20241022' -> 'claude-3-5-haiku-20241022'."""
    while True:
        prefix = next((p for p in PROVIDER_PREFIXES if model.startswith(p)), None)
        if prefix is None:
            return model
        model = model[len(prefix):]


def _from_litellm(model: str) -> Optional[ModelConfig]:
    try:
        import litellm
        info = litellm.get_model_info(model)
    except Exception as e:
        # litellm raises for any model missing from its registry
        logger.debug("litellm has no limits for %s: %s", model, e)
        return None
    if not info:
        return None

    context = info.get("max_input_tokens") or info.get("max_tokens") or FALLBACK_CONFIG.context_window
    output = info.get("max_output_tokens") or FALLBACK_CONFIG.max_output_tokens
    # Some registry entries report an output limit above the context window
    if output > context:
        output = context // 2
    return ModelConfig(context_window=context, max_output_tokens=output)


def resolve_model_config(model: str) -> ModelConfig:
    """Known Claude model, then litellm's registry, then the fallback limits."""
    known = CLAUDE_MODELS.get(bare_model_name(model))
    if known:
        return known

    found = _from_litellm(model)
    if found:
        return found

    logger.info("No limits known for %s, assuming %s", model, FALLBACK_CONFIG)
    return FALLBACK_CONFIG
