"""Tests for the sync orchestrator."""

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest
import tomlkit

from agent_relay.adapters import ClaudeAdapter, CodexAdapter, CopilotAdapter
from agent_relay.exceptions import InvalidTargetError, MalformedConfigError, SyncAbortedError
from agent_relay.models import Command, SyncParams, Unchanged
from agent_relay.orchestrator import DEFAULT_TARGETS, SyncOrchestrator, parse_direction


def write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def snapshot(root: Path) -> dict:
    """Map every file below root to its bytes."""
    if not root.exists():
        return {}
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob('*')) if p.is_file()
    }


@pytest.fixture
def deploy_source(claude_root: Path) -> ClaudeAdapter:
    write(claude_root / "commands" / "deploy.md", "Deploy now")
    return ClaudeAdapter(claude_root)


class TestParseDirection:
    """Test direction validation and defaults."""

    def test_defaults(self):
        assert parse_direction('claude') == ('claude', 'codex')
        assert parse_direction('codex') == ('codex', 'claude')
        assert parse_direction('copilot') == ('copilot', 'claude')
        assert set(DEFAULT_TARGETS) == {'claude', 'codex', 'copilot'}

    def test_explicit_target(self):
        assert parse_direction('claude', 'copilot') == ('claude', 'copilot')

    def test_unknown_names(self):
        with pytest.raises(InvalidTargetError):
            parse_direction('cursor')
        with pytest.raises(InvalidTargetError):
            parse_direction('claude', 'cursor')

    def test_same_agent_rejected(self):
        with pytest.raises(InvalidTargetError):
            parse_direction('claude', 'claude')


class TestCommandScenarios:
    """Test the basic command sync scenarios."""

    def test_writes_new_command(self, deploy_source: ClaudeAdapter, codex: CodexAdapter, codex_root: Path):
        report = SyncOrchestrator(deploy_source, codex).sync(SyncParams.only('commands'))

        assert report['commands'].written == 1
        assert report['commands'].skipped == []
        assert (codex_root / "prompts" / "deploy.md").read_bytes() == b"Deploy now"

    def test_dry_run_changes_nothing(self, deploy_source: ClaudeAdapter, codex: CodexAdapter, codex_root: Path):
        before = snapshot(codex_root)

        report = SyncOrchestrator(deploy_source, codex).sync(SyncParams.only('commands', dry_run=True))

        assert report.dry_run
        assert report['commands'].written == 1
        assert snapshot(codex_root) == before
        assert "1 pending" in report.summary

    def test_identical_target_unchanged(self, deploy_source: ClaudeAdapter, codex: CodexAdapter, codex_root: Path):
        write(codex_root / "prompts" / "deploy.md", "Deploy now")

        report = SyncOrchestrator(deploy_source, codex).sync(SyncParams.only('commands'))

        assert report['commands'].written == 0
        assert report['commands'].skipped == [Unchanged("deploy")]

    def test_skip_existing_excludes_divergent_command(self, deploy_source: ClaudeAdapter,
                                                      codex: CodexAdapter, codex_root: Path):
        target_file = write(codex_root / "prompts" / "deploy.md", "My own version")

        report = SyncOrchestrator(deploy_source, codex).sync(
            SyncParams.only('commands', skip_existing_commands=True)
        )

        assert report['commands'].written == 0
        assert report['commands'].skipped == []
        assert target_file.read_text() == "My own version"

    def test_skip_existing_still_writes_new(self, deploy_source: ClaudeAdapter, claude_root: Path,
                                            codex: CodexAdapter, codex_root: Path):
        write(claude_root / "commands" / "build.md", "Build it")
        write(codex_root / "prompts" / "deploy.md", "Mine")

        report = SyncOrchestrator(deploy_source, codex).sync(
            SyncParams.only('commands', skip_existing_commands=True)
        )

        assert report['commands'].written == 1
        assert (codex_root / "prompts" / "build.md").read_text() == "Build it"


class TestFullSync:
    """Test multi-domain behaviour."""

    def test_idempotent_rerun(self, populated_claude: ClaudeAdapter, codex: CodexAdapter):
        orchestrator = SyncOrchestrator(populated_claude, codex)

        first = orchestrator.sync(SyncParams())
        second = orchestrator.sync(SyncParams())

        assert first.total_written() > 0
        assert second.total_written() == 0
        for domain, domain_report in first.domains.items():
            if domain == 'preferences':
                continue
            assert len(second[domain].skipped) == domain_report.written + len(domain_report.skipped)

    def test_rerun_with_colliding_command_names(self, claude_root: Path, codex: CodexAdapter, codex_root: Path):
        write(claude_root / "commands" / "my cmd.md", "one")
        write(claude_root / "commands" / "mycmd.md", "two")
        orchestrator = SyncOrchestrator(ClaudeAdapter(claude_root), codex)

        first = orchestrator.sync(SyncParams.only('commands'))
        second = orchestrator.sync(SyncParams.only('commands'))

        assert first['commands'].written == 1
        assert second['commands'].written == 0
        assert (codex_root / "prompts" / "mycmd.md").read_text() == "one"

    def test_domain_order_and_unsupported_domains(self, populated_claude: ClaudeAdapter, codex: CodexAdapter):
        report = SyncOrchestrator(populated_claude, codex).sync(SyncParams())

        assert list(report.domains) == ['commands', 'mcp_servers', 'preferences', 'skills', 'hooks', 'agents']
        # Codex has no hooks: contributes nothing, silently
        assert report['hooks'].written == 0
        assert report['hooks'].skipped == []

    def test_disabled_domains_absent(self, populated_claude: ClaudeAdapter, codex: CodexAdapter, codex_root: Path):
        params = SyncParams(sync_commands=False, sync_skills=False)

        report = SyncOrchestrator(populated_claude, codex).sync(params)

        assert 'commands' not in report.domains
        assert 'skills' not in report.domains
        assert not (codex_root / "prompts").exists()

    def test_preferences_model_translated(self, populated_claude: ClaudeAdapter, codex: CodexAdapter,
                                          codex_root: Path):
        SyncOrchestrator(populated_claude, codex).sync(SyncParams.only('preferences'))

        config = tomlkit.parse((codex_root / "config.toml").read_text()).unwrap()
        assert config["model"] == "gpt-4o-mini"

    def test_unknown_model_passed_through(self, claude: ClaudeAdapter, claude_root: Path,
                                          codex: CodexAdapter, codex_root: Path):
        write(claude_root / "settings.json", json.dumps({"model": "custom-model-v1"}))

        SyncOrchestrator(claude, codex).sync(SyncParams.only('preferences'))

        config = tomlkit.parse((codex_root / "config.toml").read_text()).unwrap()
        assert config["model"] == "custom-model-v1"

    def test_agents_converted_for_copilot(self, populated_claude: ClaudeAdapter, copilot: CopilotAdapter,
                                          copilot_root: Path):
        report = SyncOrchestrator(populated_claude, copilot).sync(SyncParams())

        agent = (copilot_root / "agents" / "reviewer.agent.md").read_text()
        assert "target: github-copilot" in agent
        assert "model:" not in agent
        assert "color:" not in agent
        # Copilot has no commands
        assert report['commands'].written == 0

    def test_mcp_servers_reach_copilot_file(self, populated_claude: ClaudeAdapter, copilot: CopilotAdapter,
                                            copilot_root: Path):
        SyncOrchestrator(populated_claude, copilot).sync(SyncParams.only('mcp_servers'))

        data = json.loads((copilot_root / "mcp-config.json").read_text())
        assert set(data["mcpServers"]) == {"filesystem", "docs"}
        assert not (copilot_root / "config.json").exists()

    def test_dry_run_full_sync_changes_nothing(self, populated_claude: ClaudeAdapter, codex: CodexAdapter,
                                               codex_root: Path):
        before = snapshot(codex_root)

        report = SyncOrchestrator(populated_claude, codex).sync(SyncParams(dry_run=True))

        assert report.total_written() > 0
        assert snapshot(codex_root) == before


class TestPrecedence:
    """Test duplicate resolution through a full sync."""

    def test_core_command_wins(self, claude_root: Path, codex: CodexAdapter, codex_root: Path):
        write(claude_root / "commands" / "deploy.md", "core")
        cached = write(claude_root / "plugins" / "cache" / "p" / "commands" / "deploy.md", "cache")
        os.utime(cached, (9_999_999_999, 9_999_999_999))

        SyncOrchestrator(ClaudeAdapter(claude_root), codex).sync(SyncParams.only('commands'))

        assert (codex_root / "prompts" / "deploy.md").read_text() == "core"

    def test_newest_skill_wins(self, claude_root: Path, codex: CodexAdapter, codex_root: Path):
        old = write(claude_root / "skills" / "helper" / "SKILL.md", "old")
        new = write(claude_root / "plugins" / "cache" / "p" / "skills" / "helper" / "SKILL.md", "new")
        os.utime(old, (1000, 1000))
        os.utime(new, (2000, 2000))

        SyncOrchestrator(ClaudeAdapter(claude_root), codex).sync(SyncParams.only('skills'))

        assert (codex_root / "skills" / "helper" / "SKILL.md").read_text() == "new"


class TestFailureHandling:
    """Test abort semantics and partial reports."""

    def test_malformed_target_aborts_remaining_domains(self, populated_claude: ClaudeAdapter,
                                                       copilot: CopilotAdapter, copilot_root: Path):
        (copilot_root / "mcp-config.json").write_text("{not json")

        with pytest.raises(SyncAbortedError) as exc_info:
            SyncOrchestrator(populated_claude, copilot).sync(SyncParams())

        error = exc_info.value
        assert error.domain == 'mcp_servers'
        assert isinstance(error.__cause__, MalformedConfigError)
        assert list(error.report.domains) == ['commands']
        # Later domains never ran
        assert not (copilot_root / "skills").exists()
        assert (copilot_root / "mcp-config.json").read_text() == "{not json"

    def test_completed_domains_keep_changes(self, populated_claude: ClaudeAdapter,
                                            codex: CodexAdapter, codex_root: Path):
        with patch.object(CodexAdapter, 'write_skills', side_effect=MalformedConfigError("x", "boom")):
            with pytest.raises(SyncAbortedError) as exc_info:
                SyncOrchestrator(populated_claude, codex).sync(SyncParams())

        assert exc_info.value.domain == 'skills'
        assert exc_info.value.report['commands'].written == 1
        assert (codex_root / "prompts" / "deploy.md").exists()

    def test_rerun_after_failure_resumes(self, populated_claude: ClaudeAdapter,
                                         copilot: CopilotAdapter, copilot_root: Path):
        (copilot_root / "mcp-config.json").write_text("{not json")
        with pytest.raises(SyncAbortedError):
            SyncOrchestrator(populated_claude, copilot).sync(SyncParams())

        (copilot_root / "mcp-config.json").unlink()
        report = SyncOrchestrator(populated_claude, copilot).sync(SyncParams())

        assert report['mcp_servers'].written == 2
        assert report['skills'].written == 1


class TestSyncItems:
    """Test syncing caller-provided item lists."""

    def test_sync_items_applies_skip_existing(self, claude: ClaudeAdapter, codex: CodexAdapter,
                                              codex_root: Path):
        write(codex_root / "prompts" / "deploy.md", "Mine")
        items = [Command("deploy", b"Theirs"), Command("build", b"Build")]

        report = SyncOrchestrator(claude, codex).sync_items(
            'commands', items, SyncParams(skip_existing_commands=True)
        )

        assert report.written == 1
        assert (codex_root / "prompts" / "deploy.md").read_text() == "Mine"

    def test_sync_items_unsupported_domain(self, claude: ClaudeAdapter, codex: CodexAdapter):
        report = SyncOrchestrator(claude, codex).sync_items('hooks', [Command("h", b"x")], SyncParams())

        assert report.written == 0
