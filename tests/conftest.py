"""Pytest configuration and fixtures for Agent Relay tests."""

import json
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from agent_relay.adapters import ClaudeAdapter, CodexAdapter, CopilotAdapter


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def claude_root(temp_dir: Path) -> Path:
    root = temp_dir / "claude"
    root.mkdir()
    return root


@pytest.fixture
def codex_root(temp_dir: Path) -> Path:
    root = temp_dir / "codex"
    root.mkdir()
    return root


@pytest.fixture
def copilot_root(temp_dir: Path) -> Path:
    root = temp_dir / "copilot"
    root.mkdir()
    return root


@pytest.fixture
def claude(claude_root: Path) -> ClaudeAdapter:
    """Claude adapter rooted in a temporary directory."""
    return ClaudeAdapter(claude_root)


@pytest.fixture
def codex(codex_root: Path) -> CodexAdapter:
    """Codex adapter rooted in a temporary directory."""
    return CodexAdapter(codex_root)


@pytest.fixture
def copilot(copilot_root: Path) -> CopilotAdapter:
    """Copilot adapter rooted in a temporary directory."""
    return CopilotAdapter(copilot_root)


@pytest.fixture
def populated_claude(claude_root: Path) -> ClaudeAdapter:
    """Claude installation with one item in every domain."""
    commands_dir = claude_root / "commands"
    commands_dir.mkdir()
    (commands_dir / "deploy.md").write_text("""---
description: Deploy the current branch
---

# Deploy

Deploy now.
""")

    skill_dir = claude_root / "skills" / "testing" / "pytest-helper"
    skill_dir.mkdir(parents=True)
    (skill_dir / "SKILL.md").write_text("""---
name: pytest-helper
description: Write pytest tests
---

Use fixtures.
""")
    (skill_dir / "scripts").mkdir()
    (skill_dir / "scripts" / "run.sh").write_text("#!/bin/sh\npytest -q\n")

    hooks_dir = claude_root / "hooks"
    hooks_dir.mkdir()
    (hooks_dir / "pre-commit.md").write_text("# Pre-commit\n\nRun the linters.\n")

    agents_dir = claude_root / "agents"
    agents_dir.mkdir()
    (agents_dir / "reviewer.md").write_text("""---
name: reviewer
description: Reviews code
model: sonnet
color: blue
---

You review code.
""")

    settings = {
        "model": "sonnet",
        "permissions": {"allow": ["Bash(ls:*)"], "deny": []},
        "mcpServers": {
            "filesystem": {
                "command": "npx",
                "args": ["-y", "@modelcontextprotocol/server-filesystem", "/tmp"],
                "env": {"DEBUG": "1"},
            },
            "docs": {
                "type": "http",
                "url": "https://example.com/mcp",
                "headers": {"Authorization": "Bearer token"},
            },
        },
    }
    (claude_root / "settings.json").write_text(json.dumps(settings, indent=2))

    return ClaudeAdapter(claude_root)
