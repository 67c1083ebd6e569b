"""
LLM analysis of repository content.

Thin wrapper over an openhands ``LLM``: builds the request from a prompt
template and the scanned content, joins the text blocks of the reply and
hands the raw text to ``repo_architect.parser``. Authentication and rate
limit failures surface as ``AnalysisError``.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from openhands.sdk import LLM
from openhands.sdk.llm import Message, TextContent

from repo_architect.config import DEFAULT_MODEL, resolve_api_key
from repo_architect.errors import AnalysisError
from repo_architect.model_config import estimate_tokens, resolve_model_config
from repo_architect.models import AnalysisResult, IncrementalAnalysisResult
from repo_architect.parser import parse_analysis_response, parse_incremental_response

logger = logging.getLogger(__name__)

DEFAULT_PROMPTS_DIR = Path(__file__).resolve().parent / "prompts"

FULL_PROMPT = "analyze-full"
INCREMENTAL_PROMPT = "analyze-incremental"


class ArchitectureAnalyzer:
    """
    Sends repository content to the model and parses its reply.

    Args:
        model: litellm model identifier. Defaults to ``DEFAULT_MODEL``.
        prompts_dir: Directory holding ``<name>.md`` prompt templates.
        api_key: Anthropic key. Defaults to ``resolve_api_key()``.
        base_url: Optional proxy / gateway URL.
    """

    def __init__(
        self,
        model: Optional[str] = None,
        prompts_dir: Optional[Union[str, Path]] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
    ):
        self.model = model or DEFAULT_MODEL
        self.prompts_dir = Path(prompts_dir) if prompts_dir else DEFAULT_PROMPTS_DIR

        api_key = api_key or resolve_api_key()
        if not api_key:
            raise AnalysisError(
                "No Anthropic API key found.\n"
                "Set ANTHROPIC_API_KEY (or add it to .env), or save it to ~/.repo-architect\n"
                "Get one at https://console.anthropic.com/settings/keys"
            )

        self.model_config = resolve_model_config(self.model)
        kwargs = {"api_key": api_key}
        if base_url:
            kwargs["base_url"] = base_url

        self.llm = LLM(
            model=self.model,
            timeout=900,
            max_output_tokens=self.model_config.analysis_output_tokens,
            **kwargs,
        )
        logger.info("Analyzer configured: %s (%s)", self.model, self.model_config)

    # ----- prompts ---------------------------------------------------------

    def load_prompt(self, name: str) -> str:
        path = self.prompts_dir / f"{name}.md"
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise AnalysisError(f"Prompt template missing: {path}") from e

    # ----- analysis --------------------------------------------------------

    def analyze_full(self, repo_content: str) -> AnalysisResult:
        """Analyze a complete repository scan."""
        user_text = (
            "Analyze this repository and generate architecture documentation.\n\n"
            f"{repo_content}"
        )
        raw_text = self._complete(self.load_prompt(FULL_PROMPT), user_text)
        return parse_analysis_response(raw_text)

    def analyze_incremental(
        self,
        repo_content: str,
        existing_docs: str,
        change_summary: str,
        git_log: str,
    ) -> IncrementalAnalysisResult:
        """Analyze the changed files against the existing documentation."""
        user_text = "\n".join([
            "## Changes Since Last Run",
            change_summary,
            "",
            "## Git Log",
            git_log,
            "",
            "## Existing Architecture Docs",
            existing_docs,
            "",
            "## Current Repository Content",
            repo_content,
        ])
        raw_text = self._complete(self.load_prompt(INCREMENTAL_PROMPT), user_text)
        return parse_incremental_response(raw_text)

    # ----- internal --------------------------------------------------------

    def _complete(self, system_prompt: str, user_text: str) -> str:
        logger.info("Requesting analysis (%d chars of input)", len(user_text))
        if not self.model_config.fits(system_prompt + user_text):
            logger.warning(
                "Request is about %d tokens, over the %d-token input budget of %s; "
                "narrow it with \"include\"/\"ignore\" in .repo-architect.json",
                estimate_tokens(system_prompt + user_text),
                self.model_config.input_budget_tokens,
                self.model,
            )
        try:
            response = self.llm.completion(
                messages=[
                    Message(role="system", content=[TextContent(text=system_prompt)]),
                    Message(role="user", content=[TextContent(text=user_text)]),
                ],
            )
        except Exception as exc:
            raise wrap_api_error(exc) from exc

        # LLMResponse.message.content is a list of content objects
        raw_text = ""
        for block in response.message.content:
            if hasattr(block, "text"):
                raw_text += block.text

        logger.info("Received %d chars from %s", len(raw_text), self.model)
        return raw_text


def wrap_api_error(exc: Exception) -> AnalysisError:
    """Translate provider errors into operator-facing messages."""
    status = getattr(exc, "status_code", None)
    if status == 401:
        return AnalysisError(
            "Invalid API key. Check your ANTHROPIC_API_KEY or ~/.repo-architect file.\n"
            "Get a key at https://console.anthropic.com/settings/keys"
        )
    if status == 429:
        return AnalysisError(
            "Rate limited by the Anthropic API. Wait a minute and try again, "
            "or check your plan limits at https://console.anthropic.com"
        )
    if status is not None:
        return AnalysisError(f"Anthropic API error ({status}): {exc}")
    return AnalysisError(f"LLM request failed: {type(exc).__name__}: {exc}")
