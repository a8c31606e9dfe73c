"""
Output formatting utilities for Agent Relay.

Provides color codes and formatting functions for terminal output.
"""

from datetime import datetime
from typing import TYPE_CHECKING, List, Sequence

from .hal import get_hal
from .models import DOMAIN_LABELS, DOMAINS, Command, McpServer, McpTransport, Preferences
from .utils import format_timestamp, parse_frontmatter

if TYPE_CHECKING:
    from agent_relay.adapters.base import AgentAdapter
    from agent_relay.models import SyncReport


class Colors:
    """ANSI color codes for terminal output."""
    RED = '\033[0;31m'
    GREEN = '\033[0;32m'
    YELLOW = '\033[1;33m'
    BLUE = '\033[0;34m'
    MAGENTA = '\033[0;35m'
    CYAN = '\033[0;36m'
    NC = '\033[0m'  # No Color

    @staticmethod
    def colorize(text: str, color: str) -> str:
        """Wrap text in color codes."""
        return f"{color}{text}{Colors.NC}"


def colored_status(status_type: str, message: str = "") -> str:
    """Return a colored status message.

    Args:
        status_type: Type of status (SUCCESS, ERROR, WARNING, INFO, etc.)
        message: Optional message to append after the status

    Returns:
        Colored status string
    """
    color_map = {
        'SUCCESS': Colors.GREEN,
        'ERROR': Colors.RED,
        'WARNING': Colors.YELLOW,
        'INFO': Colors.BLUE,
        'DRY RUN': Colors.CYAN,
        'WRITTEN': Colors.GREEN,
        'PENDING': Colors.CYAN,
        'UNCHANGED': Colors.BLUE,
        'PARTIAL': Colors.YELLOW,
    }

    color = color_map.get(status_type, Colors.NC)
    status_text = Colors.colorize(f"[{status_type}]", color)

    if message:
        return f"{status_text} {message}"
    return status_text


def format_sync_report(report: 'SyncReport', verbose: bool = False) -> str:
    """Format a sync report for display.

    Args:
        report: SyncReport returned by the orchestrator
        verbose: If True, list every skipped item with its reason

    Returns:
        Formatted report string
    """
    lines = [report.summary or report.format_summary()]

    for domain in DOMAINS:
        domain_report = report.domains.get(domain)
        if domain_report is None:
            continue

        for warning in domain_report.warnings:
            lines.append(colored_status('WARNING', f"{DOMAIN_LABELS[domain]}: {warning}"))

        if verbose:
            for reason in domain_report.skipped:
                lines.append(f"    • {reason.description()}")

    if report.dry_run:
        lines.append(colored_status('DRY RUN', "No files were modified"))
    return '\n'.join(lines)


def format_capabilities(adapters: Sequence['AgentAdapter']) -> str:
    """Format the capability matrix of several adapters as a table."""
    name_width = max([len('Domain')] + [len(DOMAIN_LABELS[d]) for d in DOMAINS])
    column_widths = [max(len(adapter.name), 3) for adapter in adapters]

    header = f"{'Domain':<{name_width}}  " + '  '.join(
        f"{adapter.name:<{width}}" for adapter, width in zip(adapters, column_widths)
    )
    lines = [header.rstrip(), '-' * len(header.rstrip())]

    for domain in DOMAINS:
        cells = []
        for adapter, width in zip(adapters, column_widths):
            mark = '✓' if adapter.supported_fields().supports(domain) else '✗'
            cells.append(f"{mark:<{width}}")
        lines.append((f"{DOMAIN_LABELS[domain]:<{name_width}}  " + '  '.join(cells)).rstrip())

    return '\n'.join(lines)


def format_agent_formats(adapters: Sequence['AgentAdapter']) -> str:
    """List the agent header fields each adapter keeps, with its format docs."""
    hal = get_hal()
    lines = ["Agent header fields:"]
    for adapter in adapters:
        fields = ', '.join(hal.get_supported_fields(adapter.name))
        lines.append(f"  {adapter.display_name}: {fields}")
        docs_url = hal.get_docs_url(adapter.name)
        if docs_url:
            lines.append(f"    Docs: {docs_url}")
    return '\n'.join(lines)


def format_item_list(domain: str, items: List) -> str:
    """Format the items an adapter read for one domain.

    Args:
        domain: Domain the items belong to
        items: Commands, McpServers, or a single-element list of Preferences

    Returns:
        Formatted listing
    """
    if not items:
        return f"No {DOMAIN_LABELS[domain].lower()} found."

    lines = []
    for item in items:
        if isinstance(item, Command):
            frontmatter, _ = parse_frontmatter(item.content.decode('utf-8', errors='replace'))
            description = frontmatter.get('description')
            lines.append(f"📄 {item.name}")
            if description:
                lines.append(f"   {description}")
            lines.append(f"   Path: {item.source_path}")
            if item.modules:
                lines.append(f"   Modules: {', '.join(m.relative_path for m in item.modules)}")
            if item.modified:
                modified = datetime.fromtimestamp(item.modified).isoformat()
                lines.append(f"   Modified: {format_timestamp(modified)}")
        elif isinstance(item, McpServer):
            if item.transport == McpTransport.HTTP:
                endpoint = item.url or ''
            else:
                endpoint = ' '.join([item.command] + item.args)
            state = '' if item.enabled else ' (disabled)'
            lines.append(f"🔌 {item.name} [{item.transport.value}]{state}")
            lines.append(f"   {endpoint}")
        elif isinstance(item, Preferences):
            lines.append(f"⚙️  model: {item.model or 'not set'}")

    return '\n'.join(lines)
