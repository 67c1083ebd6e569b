"""GitHub Actions workflow for scheduled incremental runs."""

from pathlib import Path
from typing import Optional, Union

DEFAULT_CRON = "0 3 * * *"
WORKFLOW_PATH = Path(".github") / "workflows" / "repo-architect.yml"

WORKFLOW_TEMPLATE = """name: Architecture Docs

on:
  schedule:
    - cron: '__CRON__'
  workflow_dispatch:

permissions:
  contents: write
  pull-requests: write

jobs:
  update-docs:
    runs-on: ubuntu-latest
    steps:
      - uses: actions/checkout@v4
        with:
          fetch-depth: 0

      - uses: actions/setup-python@v5
        with:
          python-version: '3.12'

      - uses: actions/setup-node@v4
        with:
          node-version: '20'

      - name: Install repo-architect
        run: pip install repo-architect

      - name: Update architecture docs and open PR
        env:
          ANTHROPIC_API_KEY: ${{ secrets.ANTHROPIC_API_KEY }}
          GITHUB_TOKEN: ${{ secrets.GITHUB_TOKEN }}
        run: |
          git config user.name "github-actions[bot]"
          git config user.email "github-actions[bot]@users.noreply.github.com"
          repo-architect --incremental --pr
"""


def render_workflow(cron: str = DEFAULT_CRON) -> str:
    return WORKFLOW_TEMPLATE.replace("__CRON__", cron)


def setup_github_action(repo_root: Union[str, Path], cron: Optional[str] = None) -> Path:
    """
    Write the workflow file, asking for a cron schedule when none is given.

    Returns:
        Path of the written workflow
    """
    if cron is None:
        answer = input(f'  Cron schedule (default: "{DEFAULT_CRON}" = 3am daily): ').strip()
        cron = answer or DEFAULT_CRON

    workflow_path = Path(repo_root) / WORKFLOW_PATH
    workflow_path.parent.mkdir(parents=True, exist_ok=True)
    workflow_path.write_text(render_workflow(cron), encoding="utf-8")
    return workflow_path
