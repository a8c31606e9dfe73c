"""
Canonical model shared by every agent adapter and the sync orchestrator.

Adapters read their native on-disk formats into these types and write them
back out, so the orchestrator never deals with ecosystem quirks directly.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .utils import calculate_content_checksum

# Fixed order in which the orchestrator visits domains
DOMAINS = ('commands', 'mcp_servers', 'preferences', 'skills', 'hooks', 'agents')

DOMAIN_LABELS = {
    'commands': 'Commands',
    'mcp_servers': 'MCP Servers',
    'preferences': 'Preferences',
    'skills': 'Skills',
    'hooks': 'Hooks',
    'agents': 'Agents',
}


def _as_bytes(content: Union[bytes, str]) -> bytes:
    if isinstance(content, str):
        return content.encode('utf-8')
    return bytes(content)


@dataclass
class ModuleFile:
    """A companion file stored next to a skill's SKILL.md."""

    relative_path: str
    content: bytes

    def __post_init__(self):
        self.content = _as_bytes(self.content)

    @property
    def hash(self) -> str:
        return calculate_content_checksum(self.content)


@dataclass
class Command:
    """A named markdown document: command, skill, hook or agent definition.

    Attributes:
        name: Logical identifier. Flat for commands, hooks and agents; a
            slash-delimited relative path for nested skills.
        content: Raw file bytes, preserved exactly.
        source_path: Where the document was read from (diagnostics only).
        modified: Source modification time, used to break duplicate ties.
        modules: Companion files (skills only).
        hash: SHA256 of ``content``; computed, never passed in.
    """

    name: str
    content: bytes
    source_path: Path = field(default_factory=Path)
    modified: float = 0.0
    modules: List[ModuleFile] = field(default_factory=list)
    hash: str = field(init=False)

    def __post_init__(self):
        self.content = _as_bytes(self.content)
        self.source_path = Path(self.source_path)
        self.hash = calculate_content_checksum(self.content)


class McpTransport(str, Enum):
    """How an MCP server is reached."""

    STDIO = 'stdio'
    HTTP = 'http'


@dataclass
class McpServer:
    """An MCP server connection definition."""

    name: str
    transport: McpTransport = McpTransport.STDIO
    command: str = ''
    args: List[str] = field(default_factory=list)
    env: Dict[str, str] = field(default_factory=dict)
    url: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    enabled: bool = True


@dataclass
class Preferences:
    """Agent-agnostic user preferences."""

    model: Optional[str] = None
    # Reserved for agent-specific fields that do not map cleanly
    custom: Dict[str, Any] = field(default_factory=dict)


@dataclass
class FieldSupport:
    """Capability matrix of an adapter, one flag per domain."""

    commands: bool = False
    mcp_servers: bool = False
    preferences: bool = False
    skills: bool = False
    hooks: bool = False
    agents: bool = False

    def supports(self, domain: str) -> bool:
        if domain not in DOMAINS:
            raise ValueError(f"Unknown domain: {domain}")
        return getattr(self, domain)

    def as_dict(self) -> Dict[str, bool]:
        return {domain: getattr(self, domain) for domain in DOMAINS}


@dataclass(frozen=True)
class SkipReason:
    """Why an item was not written."""

    item: str

    def description(self) -> str:
        raise NotImplementedError("Subclasses must implement description()")


@dataclass(frozen=True)
class Unchanged(SkipReason):
    """The target already holds byte-identical content."""

    def description(self) -> str:
        return f"{self.item} unchanged (same hash)"


@dataclass
class WriteReport:
    """Outcome of writing one domain to a target."""

    written: int = 0
    skipped: List[SkipReason] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def skipped_items(self) -> List[str]:
        return [reason.item for reason in self.skipped]


@dataclass
class SyncParams:
    """Parameters of one sync invocation.

    Attributes:
        from_agent: Source selector ('claude', 'codex', 'copilot')
        dry_run: Report what would change without touching the filesystem
        skip_existing_commands: Never overwrite a command the target already has
        include_marketplace: Also read commands from plugin marketplaces
    """

    from_agent: Optional[str] = None
    dry_run: bool = False
    sync_commands: bool = True
    sync_mcp_servers: bool = True
    sync_preferences: bool = True
    sync_skills: bool = True
    sync_hooks: bool = True
    sync_agents: bool = True
    skip_existing_commands: bool = False
    include_marketplace: bool = False

    def enabled(self, domain: str) -> bool:
        return getattr(self, f'sync_{domain}')

    @classmethod
    def only(cls, domain: str, **kwargs) -> 'SyncParams':
        """Build params with exactly one domain enabled."""
        if domain not in DOMAINS:
            raise ValueError(f"Unknown domain: {domain}")
        toggles = {f'sync_{name}': name == domain for name in DOMAINS}
        toggles.update(kwargs)
        return cls(**toggles)


@dataclass
class SyncReport:
    """Aggregated result of a sync run across all enabled domains."""

    source: str
    target: str
    dry_run: bool = False
    domains: Dict[str, WriteReport] = field(default_factory=dict)
    summary: str = ''

    def __getitem__(self, domain: str) -> WriteReport:
        return self.domains[domain]

    def total_written(self) -> int:
        return sum(report.written for report in self.domains.values())

    def total_skipped(self) -> int:
        return sum(len(report.skipped) for report in self.domains.values())

    def format_summary(self) -> str:
        """Render a short per-domain summary."""
        header = f"Sync complete: {self.source} -> {self.target}"
        if self.dry_run:
            header += " (dry run)"
        verb = "pending" if self.dry_run else "synced"

        lines = [header]
        for domain in DOMAINS:
            if domain not in self.domains:
                continue
            report = self.domains[domain]
            label = f"{DOMAIN_LABELS[domain]}:"
            lines.append(f"  {label:<13} {report.written} {verb}, {len(report.skipped)} skipped")
        return '\n'.join(lines)
