#!/usr/bin/env python3
"""
Agent Relay - Synchronize commands, MCP servers, preferences, skills, hooks and
agents between AI coding agents.

This script is the command line front end of the agent_relay package: it picks
the adapters, builds the sync parameters and renders the report.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from agent_relay.adapters import ADAPTERS, get_adapter
from agent_relay.config import RelayConfig
from agent_relay.exceptions import (
    ConfigRootError,
    FileOperationError,
    InvalidTargetError,
    MalformedConfigError,
    RelayError,
    SyncAbortedError,
)
from agent_relay.formatting import (
    colored_status,
    format_agent_formats,
    format_capabilities,
    format_item_list,
    format_sync_report,
)
from agent_relay.logger import setup_logging
from agent_relay.models import DOMAINS, SyncParams
from agent_relay.orchestrator import SyncOrchestrator, parse_direction

logger = logging.getLogger('agent_relay.cli')

# Single-domain sub-commands and the domain each one syncs
DOMAIN_COMMANDS = {
    'sync-commands': 'commands',
    'sync-mcp-servers': 'mcp_servers',
    'sync-preferences': 'preferences',
    'sync-skills': 'skills',
    'sync-hooks': 'hooks',
    'sync-agents': 'agents',
}


def _add_sync_arguments(sync_parser: argparse.ArgumentParser):
    agents = sorted(ADAPTERS)
    sync_parser.add_argument('--from', dest='from_agent', required=True, choices=agents,
                             help='Agent to read from')
    sync_parser.add_argument('--to', dest='to_agent', choices=agents,
                             help='Agent to write to (default: claude->codex, codex->claude, copilot->claude)')
    sync_parser.add_argument('--dry-run', action='store_true',
                             help='Show what would change without writing anything')
    sync_parser.add_argument('--skip-existing-commands', action='store_true',
                             help='Never overwrite a command the target already has')
    sync_parser.add_argument('--include-marketplace', action='store_true',
                             help='Also read commands from plugin marketplaces')


def create_parser() -> argparse.ArgumentParser:
    """Create the command-line argument parser."""
    parser = argparse.ArgumentParser(
        prog='agent-relay',
        description='Agent Relay - Synchronize assets between AI coding agents',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Sync everything from Claude Code to Codex CLI
  %(prog)s sync --from claude --to codex

  # Preview what a sync would change
  %(prog)s sync --from claude --dry-run

  # Sync a single domain
  %(prog)s sync-skills --from claude --to copilot
  %(prog)s sync-commands --from claude --skip-existing-commands

  # Inspect an agent
  %(prog)s list claude skills
  %(prog)s capabilities
        """
    )

    # Global flags
    parser.add_argument('--home', metavar='PATH',
                        help='Home directory used to locate agent config roots (default: $AGENT_RELAY_HOME or ~)')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Show per-domain progress and skipped items')
    parser.add_argument('--debug', action='store_true',
                        help='Show discovery decisions')
    parser.add_argument('--log-file', metavar='FILE',
                        help='Also append log output to FILE')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    sync_parser = subparsers.add_parser('sync', help='Sync every domain')
    _add_sync_arguments(sync_parser)

    for command, domain in DOMAIN_COMMANDS.items():
        domain_parser = subparsers.add_parser(command, help=f"Sync {domain.replace('_', ' ')} only")
        _add_sync_arguments(domain_parser)

    list_parser = subparsers.add_parser('list', help='List the items an agent holds for one domain')
    list_parser.add_argument('agent', choices=sorted(ADAPTERS), help='Agent to inspect')
    list_parser.add_argument('domain', choices=list(DOMAINS), help='Domain to list')
    list_parser.add_argument('--include-marketplace', action='store_true',
                             help='Include plugin marketplace commands')

    subparsers.add_parser('capabilities', help='Show which domains each agent supports')

    return parser


def build_sync_params(args: argparse.Namespace) -> SyncParams:
    """Translate parsed arguments into SyncParams."""
    options = {
        'from_agent': args.from_agent,
        'dry_run': args.dry_run,
        'skip_existing_commands': args.skip_existing_commands,
        'include_marketplace': args.include_marketplace,
    }
    if args.command in DOMAIN_COMMANDS:
        return SyncParams.only(DOMAIN_COMMANDS[args.command], **options)
    return SyncParams(**options)


def resolve_home(args: argparse.Namespace) -> Optional[Path]:
    home = args.home or os.environ.get(RelayConfig.HOME_ENV_VAR)
    return Path(home) if home else None


def run_sync(args: argparse.Namespace, config: RelayConfig) -> int:
    source_name, target_name = parse_direction(args.from_agent, args.to_agent)
    source = get_adapter(source_name, config=config)
    target = get_adapter(target_name, config=config)
    logger.info("Syncing %s (%s) -> %s (%s)", source.display_name, source.config_root,
                target.display_name, target.config_root)

    params = build_sync_params(args)
    report = SyncOrchestrator(source, target).sync(params)
    print(format_sync_report(report, verbose=args.verbose))
    return 0


def run_list(args: argparse.Namespace, config: RelayConfig) -> int:
    adapter = get_adapter(args.agent, config=config)
    if not adapter.supported_fields().supports(args.domain):
        print(colored_status('INFO', f"{adapter.display_name} does not support {args.domain.replace('_', ' ')}"))
        return 0

    items = adapter.read(args.domain, args.include_marketplace)
    if args.domain == 'preferences':
        items = [items]
    print(format_item_list(args.domain, items))
    return 0


def run_capabilities(config: RelayConfig) -> int:
    adapters = [get_adapter(name, config=config) for name in ADAPTERS]
    print(format_capabilities(adapters))
    print()
    print(format_agent_formats(adapters))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(verbose=args.verbose, debug=args.debug, log_file=args.log_file)

    try:
        config = RelayConfig(home=resolve_home(args))

        if args.command == 'sync' or args.command in DOMAIN_COMMANDS:
            return run_sync(args, config)
        elif args.command == 'list':
            return run_list(args, config)
        elif args.command == 'capabilities':
            return run_capabilities(config)

        parser.print_help()
        return 1

    except KeyboardInterrupt:
        print("\n[ERROR] Operation cancelled by user", file=sys.stderr)
        return 1
    except SyncAbortedError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        if e.report.domains:
            print(colored_status('PARTIAL', "Domains completed before the failure:"), file=sys.stderr)
            print(e.report.format_summary(), file=sys.stderr)
        return 1
    except (InvalidTargetError, ConfigRootError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1
    except MalformedConfigError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1
    except FileOperationError as e:
        print(f"[ERROR] File operation failed: {e}", file=sys.stderr)
        return 1
    except RelayError as e:
        print(f"[ERROR] Agent Relay error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"[ERROR] File system error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
