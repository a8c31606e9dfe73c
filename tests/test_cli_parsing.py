"""
Tests for CLI argument parsing and small formatting helpers.
"""

import argparse
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from agent_relay.utils import format_timestamp
from relay import DOMAIN_COMMANDS, build_sync_params, create_parser, resolve_home


class TestFormatTimestamp:
    """Test the format_timestamp utility function."""

    def test_just_now(self):
        assert format_timestamp(datetime.now().isoformat()) == "just now"

    def test_minutes_ago(self):
        past = datetime.now() - timedelta(minutes=5)
        assert format_timestamp(past.isoformat()) == "5 minutes ago"

    def test_one_hour_ago(self):
        past = datetime.now() - timedelta(hours=1, minutes=1)
        assert format_timestamp(past.isoformat()) == "1 hour ago"

    def test_days_ago(self):
        past = datetime.now() - timedelta(days=3, hours=1)
        assert format_timestamp(past.isoformat()) == "3 days ago"

    def test_absolute_date_for_old_times(self):
        past = datetime(2020, 1, 15, 15, 45)
        assert format_timestamp(past.isoformat()) == "Jan 15, 2020 at 03:45 PM"

    def test_invalid_timestamp_returns_original(self):
        assert format_timestamp("not-a-date") == "not-a-date"


class TestCreateParser:
    """Test the argument parser."""

    def test_parser_creation(self):
        parser = create_parser()

        assert isinstance(parser, argparse.ArgumentParser)
        assert parser.prog == 'agent-relay'

    def test_sync_command(self):
        args = create_parser().parse_args(['sync', '--from', 'claude', '--to', 'codex'])

        assert args.command == 'sync'
        assert args.from_agent == 'claude'
        assert args.to_agent == 'codex'
        assert args.dry_run is False

    def test_sync_target_optional(self):
        args = create_parser().parse_args(['sync', '--from', 'copilot'])

        assert args.to_agent is None

    def test_from_is_required(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(['sync', '--to', 'codex'])

    def test_unknown_agent_rejected(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(['sync', '--from', 'cursor'])

    def test_global_flags(self):
        args = create_parser().parse_args(['--home', '/tmp/h', '-v', '--debug', 'capabilities'])

        assert args.home == '/tmp/h'
        assert args.verbose is True
        assert args.debug is True
        assert args.command == 'capabilities'

    def test_every_domain_command_exists(self):
        parser = create_parser()

        for command in DOMAIN_COMMANDS:
            args = parser.parse_args([command, '--from', 'claude', '--dry-run'])
            assert args.command == command
            assert args.dry_run is True

    def test_list_command(self):
        args = create_parser().parse_args(['list', 'claude', 'mcp_servers', '--include-marketplace'])

        assert args.agent == 'claude'
        assert args.domain == 'mcp_servers'
        assert args.include_marketplace is True

    def test_list_rejects_unknown_domain(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(['list', 'claude', 'rules'])


class TestBuildSyncParams:
    """Test translating arguments into SyncParams."""

    def test_full_sync_enables_everything(self):
        args = create_parser().parse_args(['sync', '--from', 'claude', '--skip-existing-commands'])

        params = build_sync_params(args)

        assert params.from_agent == 'claude'
        assert params.skip_existing_commands is True
        assert all(params.enabled(d) for d in DOMAIN_COMMANDS.values())

    def test_single_domain_command(self):
        args = create_parser().parse_args(['sync-skills', '--from', 'codex', '--dry-run'])

        params = build_sync_params(args)

        assert params.dry_run is True
        assert params.enabled('skills')
        assert not params.enabled('commands')
        assert not params.enabled('mcp_servers')

    def test_resolve_home(self, monkeypatch):
        monkeypatch.setenv('AGENT_RELAY_HOME', '/from/env')
        parser = create_parser()

        assert resolve_home(parser.parse_args(['capabilities'])) == Path('/from/env')
        assert resolve_home(parser.parse_args(['--home', '/explicit', 'capabilities'])) == Path('/explicit')

        monkeypatch.delenv('AGENT_RELAY_HOME')
        assert resolve_home(parser.parse_args(['capabilities'])) is None