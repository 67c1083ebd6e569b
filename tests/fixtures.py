"""Shared test data for the repo-architect test suite."""

import json
import subprocess

SAMPLE_ANALYSIS = {
    "projectName": "Shop API",
    "overview": "Shop API serves the storefront and runs order fulfilment jobs.",
    "techStack": ["Python", "FastAPI", "PostgreSQL"],
    "systemMap": "graph TD\n  Web-->API\n  API-->DB",
    "dataFlows": "sequenceDiagram\n  Web->>API: POST /orders\n  API->>DB: insert",
    "dependencyGraph": "graph LR\n  api-->orders\n  orders-->db",
    "modules": [
        {
            "name": "Orders",
            "path": "src/orders",
            "description": "Order lifecycle and payment capture.",
            "keyAbstractions": ["Order", "OrderService"],
            "internalDiagram": "graph TD\n  OrderService-->Order",
        },
        {
            "name": "CLI_Scanner (v2)",
            "path": "src/scanner",
            "description": "Command line inventory scanner.",
            "keyAbstractions": ["Scanner"],
            "internalDiagram": "",
        },
    ],
}

SAMPLE_ANALYSIS_FENCED = (
    "Here is the architecture analysis.\n\n```json\n"
    + json.dumps(SAMPLE_ANALYSIS, indent=2)
    + "\n```\n\nLet me know if you need more detail."
)

SAMPLE_TAGGED_RESPONSE = """I could not produce JSON, so here are the sections.

<PROJECT_NAME>Shop API</PROJECT_NAME>

<OVERVIEW>
Shop API serves the storefront.
</OVERVIEW>

<TECH_STACK>
- Python
* FastAPI

- PostgreSQL
</TECH_STACK>

<SYSTEM_MAP>
Web --> API
API --> DB
</SYSTEM_MAP>

<DATA_FLOWS>
The web app calls the API which writes to the database.
</DATA_FLOWS>

<MODULE>
<NAME>Orders</NAME>
<PATH>src/orders</PATH>
<DESCRIPTION>Order lifecycle.</DESCRIPTION>
<KEY_ABSTRACTIONS>
- Order
- OrderService
</KEY_ABSTRACTIONS>
<INTERNAL_DIAGRAM>flowchart LR
  OrderService --> Order</INTERNAL_DIAGRAM>
</MODULE>

<module>
<name>Payments</name>
<path>src/payments</path>
<description>Payment capture and refunds.</description>
<key_abstractions>
- PaymentGateway
</key_abstractions>
</module>
"""

SAMPLE_OVERVIEW_DOC = "\n".join([
    "# Project",
    "",
    "> Auto-generated",
    "",
    "## Overview",
    "",
    "Old overview content.",
    "",
    "## System Map",
    "",
    "```mermaid",
    "graph TD",
    "  A-->B",
    "```",
    "",
    "## Modules",
    "",
    "| Module | Path |",
    "|--------|------|",
])

SAMPLE_STATE = {
    "lastCommitSha": "a" * 40,
    "lastRunAt": "2026-10-01T03:00:00+00:00",
    "modules": [
        {"name": "Orders", "path": "src/orders", "description": "Order lifecycle."},
        {"name": "Old Module", "path": "src/old", "description": "Going away."},
    ],
    "repoRoot": "/tmp/repo",
}


def git(repo, *args):
    """Run git in repo and return stripped stdout."""
    result = subprocess.run(["git", *args], cwd=repo, capture_output=True, text=True, check=True)
    return result.stdout.strip()


def commit_all(repo, message):
    git(repo, "add", "-A")
    git(repo, "commit", "-q", "-m", message)
    return git(repo, "rev-parse", "HEAD")
