"""
Per-repository configuration.

Settings come from ``.repo-architect.json`` at the repository root, with
environment variables (loaded through python-dotenv) for credentials and
model overrides::

    {
      "outputDir": "docs/architecture",
      "ignore": ["*.generated.ts"],
      "include": [],
      "model": "anthropic/claude-sonnet-4-5-20250929"
    }
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from dotenv import load_dotenv

from repo_architect.classifier import DEFAULT_OUTPUT_DIR
from repo_architect.errors import ConfigError
from repo_architect.security import PathValidator

CONFIG_FILENAME = ".repo-architect.json"
DEFAULT_MODEL = "anthropic/claude-sonnet-4-5-20250929"

# Key files checked, in order, when ANTHROPIC_API_KEY is unset
API_KEY_FILES = (
    Path("~/.repo-architect"),
    Path("~/.anthropic/api_key"),
)


@dataclass
class RepoArchitectConfig:
    output_dir: str = DEFAULT_OUTPUT_DIR
    ignore: List[str] = field(default_factory=list)
    include: List[str] = field(default_factory=list)
    model: str = DEFAULT_MODEL

    def to_json(self) -> dict:
        return {
            "outputDir": self.output_dir,
            "ignore": list(self.ignore),
            "include": list(self.include),
            "model": self.model,
        }


def _string_list(obj: dict, key: str) -> List[str]:
    value = obj[key]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{CONFIG_FILENAME}: {key} must be an array of strings")
    return list(value)


def load_config(repo_root: Union[str, Path]) -> RepoArchitectConfig:
    """
    Read ``.repo-architect.json``, merging it over the defaults.

    A missing file yields the defaults. Invalid JSON, a non-object document or
    a wrongly typed known key raises ConfigError. Unknown keys are ignored.
    """
    config_path = Path(repo_root) / CONFIG_FILENAME
    try:
        raw = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return RepoArchitectConfig()

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {CONFIG_FILENAME}: {e}") from e

    if not isinstance(parsed, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must be a JSON object")

    config = RepoArchitectConfig()

    if "outputDir" in parsed:
        output_dir = parsed["outputDir"]
        if not isinstance(output_dir, str):
            raise ConfigError(f"{CONFIG_FILENAME}: outputDir must be a string")
        is_valid, error, sanitized = PathValidator.validate_output_dir(output_dir)
        if not is_valid:
            raise ConfigError(f"{CONFIG_FILENAME}: outputDir {error}")
        config.output_dir = sanitized

    if "ignore" in parsed:
        config.ignore = _string_list(parsed, "ignore")

    if "include" in parsed:
        config.include = _string_list(parsed, "include")

    if "model" in parsed:
        if not isinstance(parsed["model"], str):
            raise ConfigError(f"{CONFIG_FILENAME}: model must be a string")
        config.model = parsed["model"]

    return config


def create_default_config(repo_root: Union[str, Path]) -> Path:
    """Write the default configuration file and return its path."""
    config_path = Path(repo_root) / CONFIG_FILENAME
    config_path.write_text(json.dumps(RepoArchitectConfig().to_json(), indent=2) + "\n", encoding="utf-8")
    return config_path


def resolve_api_key() -> Optional[str]:
    """Resolve the Anthropic key: environment (.env included), then key files."""
    load_dotenv()
    key = os.getenv("ANTHROPIC_API_KEY")
    if key:
        return key
    for candidate in API_KEY_FILES:
        path = candidate.expanduser()
        if path.is_file():
            key = path.read_text(encoding="utf-8").strip()
            if key:
                return key
    return None


def resolve_model(config: RepoArchitectConfig, override: Optional[str] = None) -> str:
    """CLI flag, then REPO_ARCHITECT_MODEL, then the config file / default."""
    load_dotenv()
    return override or os.getenv("REPO_ARCHITECT_MODEL") or config.model
