"""Tests for the GitHub Copilot CLI adapter."""

import json
from pathlib import Path

import pytest

from agent_relay.adapters import CopilotAdapter
from agent_relay.exceptions import MalformedConfigError
from agent_relay.models import Command, McpServer, Preferences, Unchanged


def write_json(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2))
    return path


class TestCopilotCapabilities:
    """Test unsupported domains."""

    def test_capabilities(self, copilot: CopilotAdapter):
        support = copilot.supported_fields()

        assert not support.commands
        assert not support.hooks
        assert support.mcp_servers and support.preferences and support.skills and support.agents

    def test_commands_are_noops(self, copilot: CopilotAdapter, copilot_root: Path):
        (copilot_root / "commands").mkdir()
        (copilot_root / "commands" / "deploy.md").write_text("x")

        assert copilot.read_commands() == []
        report = copilot.write_commands([Command("deploy", b"Deploy now")])
        assert report.written == 0
        assert report.skipped == []


class TestCopilotMcp:
    """Test mcp-config.json handling."""

    def test_reads_separate_mcp_file(self, copilot: CopilotAdapter, copilot_root: Path):
        write_json(copilot_root / "config.json", {"mcpServers": {"wrong": {"command": "x"}}})
        write_json(copilot_root / "mcp-config.json", {"mcpServers": {
            "github": {"type": "local", "command": "gh-mcp", "args": ["serve"], "tools": ["*"]},
        }})

        servers = copilot.read_mcp_servers()

        assert [s.name for s in servers] == ["github"]
        assert servers[0].command == "gh-mcp"

    def test_bad_fields_dropped_not_server(self, copilot: CopilotAdapter, copilot_root: Path, caplog):
        write_json(copilot_root / "mcp-config.json", {"mcpServers": {
            "args-string": {"command": "a", "args": "not-a-list"},
            "env-list": {"command": "b", "env": ["X=1"]},
            "mixed": {"command": "c", "args": ["ok", 5, None], "env": {"A": "1", "B": 2}},
            "empty-command": {"command": ""},
        }})

        servers = {s.name: s for s in copilot.read_mcp_servers()}

        assert set(servers) == {"args-string", "env-list", "mixed"}
        assert servers["args-string"].args == []
        assert servers["env-list"].env == {}
        assert servers["mixed"].args == ["ok"]
        assert servers["mixed"].env == {"A": "1"}
        assert "not a list" in caplog.text

    def test_write_keeps_local_type_and_tools(self, copilot: CopilotAdapter, copilot_root: Path):
        path = write_json(copilot_root / "mcp-config.json", {"mcpServers": {
            "github": {"type": "local", "command": "gh-mcp", "tools": ["*"]},
        }})
        before = path.read_text()

        report = copilot.write_mcp_servers([McpServer("github", command="gh-mcp")])

        assert report.skipped == [Unchanged("github")]
        assert path.read_text() == before

    def test_write_new_server(self, copilot: CopilotAdapter, copilot_root: Path):
        report = copilot.write_mcp_servers([McpServer("fs", command="npx", env={"A": "1"})])

        data = json.loads((copilot_root / "mcp-config.json").read_text())
        assert report.written == 1
        assert data == {"mcpServers": {"fs": {"command": "npx", "env": {"A": "1"}}}}

    def test_malformed_mcp_config(self, copilot: CopilotAdapter, copilot_root: Path):
        (copilot_root / "mcp-config.json").write_text("not json")

        with pytest.raises(MalformedConfigError):
            copilot.write_mcp_servers([McpServer("fs", command="npx")])


class TestCopilotPreferences:
    """Test config.json handling."""

    def test_model_written_next_to_security_settings(self, copilot: CopilotAdapter, copilot_root: Path):
        path = write_json(copilot_root / "config.json", {
            "trusted_folders": ["/work"],
            "allowed_urls": ["https://github.com"],
            "denied_urls": [],
        })

        report = copilot.write_preferences(Preferences(model="claude-sonnet-4"))

        data = json.loads(path.read_text())
        assert report.written == 1
        assert data["model"] == "claude-sonnet-4"
        assert data["trusted_folders"] == ["/work"]
        assert data["allowed_urls"] == ["https://github.com"]
        assert data["denied_urls"] == []
        assert copilot.read_preferences().model == "claude-sonnet-4"


class TestCopilotAgents:
    """Test flat agent files."""

    def test_write_agent_transforms_header(self, copilot: CopilotAdapter, copilot_root: Path):
        agent = Command("reviewer", b"---\nname: reviewer\nmodel: sonnet\ncolor: blue\n---\nBody\n")

        report = copilot.write_agents([agent])

        path = copilot_root / "agents" / "reviewer.agent.md"
        assert report.written == 1
        assert path.read_bytes() == b"---\nname: reviewer\ntarget: github-copilot\n---\nBody\n"

        again = copilot.write_agents([agent])
        assert again.written == 0
        assert again.skipped == [Unchanged("reviewer")]

    def test_nested_agent_name_flattened(self, copilot: CopilotAdapter, copilot_root: Path):
        copilot.write_agents([Command("team/reviewer", b"Body\n")])

        assert (copilot_root / "agents" / "teamreviewer.agent.md").exists()

    def test_read_agents_flat_only(self, copilot: CopilotAdapter, copilot_root: Path):
        agents_dir = copilot_root / "agents"
        (agents_dir / "nested").mkdir(parents=True)
        (agents_dir / "reviewer.agent.md").write_text("a")
        (agents_dir / "planner.md").write_text("b")
        (agents_dir / "nested" / "deep.agent.md").write_text("c")

        assert sorted(a.name for a in copilot.read_agents()) == ["planner", "reviewer"]


class TestCopilotSkills:
    """Test skills."""

    def test_nested_skills_roundtrip(self, copilot: CopilotAdapter, copilot_root: Path):
        copilot.write_skills([Command("frontend/react", b"# React")])

        assert (copilot_root / "skills" / "frontend" / "react" / "SKILL.md").exists()
        assert [s.name for s in copilot.read_skills()] == ["frontend/react"]
