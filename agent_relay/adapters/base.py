"""
Agent adapter interface.

Every supported agent ecosystem is represented by one AgentAdapter subclass
that reads its native on-disk layout into the canonical model and writes the
canonical model back. Domains an adapter does not support are safe no-ops.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from ..config import RelayConfig
from ..exceptions import FileOperationError
from ..models import (
    DOMAINS,
    Command,
    FieldSupport,
    McpServer,
    McpTransport,
    ModuleFile,
    Preferences,
    Unchanged,
    WriteReport,
)
from ..utils import (
    DedupStrategy,
    NamePolicy,
    calculate_content_checksum,
    calculate_file_checksum,
    file_mtime,
    find_named_dirs,
    load_json_document,
    merge_by_name,
    read_file_bytes,
    safe_join,
    sanitize_name,
    save_json_document,
    walk_files,
    write_file_bytes,
)

logger = logging.getLogger(__name__)

# Depth limits for directory walks
COMMANDS_MAX_DEPTH = 3
PLUGIN_TREE_MAX_DEPTH = 10
SKILLS_MAX_DEPTH = 20
AGENTS_MAX_DEPTH = 10

SKILL_FILE = 'SKILL.md'


class AgentAdapter(ABC):
    """Abstract base class for agent ecosystem adapters.

    Subclasses set ``name``, implement ``supported_fields``
    and override the read/write operations of the domains they support.
    """

    name: str = ''

    # How logical names become destination paths, per domain
    NAME_POLICIES: Dict[str, NamePolicy] = {
        'commands': NamePolicy.FLAT,
        'skills': NamePolicy.HIERARCHICAL,
        'hooks': NamePolicy.FLAT,
        'agents': NamePolicy.FLAT,
    }

    # Which duplicate wins during discovery, per domain
    DEDUP_STRATEGIES: Dict[str, DedupStrategy] = {
        'commands': DedupStrategy.FIRST_WINS,
        'skills': DedupStrategy.NEWEST_WINS,
        'hooks': DedupStrategy.NEWEST_WINS,
        'agents': DedupStrategy.NEWEST_WINS,
    }

    # MCP entry keys written by this adapter; other keys in an entry are left alone
    OWNED_MCP_KEYS: Tuple[str, ...] = ('type', 'command', 'args', 'env', 'url', 'headers', 'disabled')

    # Owned keys whose existing value is kept when it only restates the default
    IMPLICIT_MCP_DEFAULTS: Dict[str, Tuple[Any, ...]] = {'type': ('stdio',), 'disabled': (False,)}

    HEADERS_KEY = 'headers'

    def __init__(self, root: Path):
        self.root = Path(root)

    @classmethod
    def from_config(cls, config: Optional[RelayConfig] = None) -> 'AgentAdapter':
        """Create an adapter rooted at the configured location for this agent."""
        config = config or RelayConfig()
        return cls(config.resolve_root(cls.name))

    @property
    def config_root(self) -> Path:
        return self.root

    @property
    def display_name(self) -> str:
        return RelayConfig.get_display_name(self.name)

    @abstractmethod
    def supported_fields(self) -> FieldSupport:
        """Return the capability matrix of this adapter."""
        pass

    # -- read operations -------------------------------------------------

    def read_commands(self, include_marketplace: bool = False) -> List[Command]:
        return []

    def read_mcp_servers(self) -> List[McpServer]:
        return []

    def read_preferences(self) -> Preferences:
        return Preferences()

    def read_skills(self) -> List[Command]:
        return []

    def read_hooks(self) -> List[Command]:
        return []

    def read_agents(self) -> List[Command]:
        return []

    # -- write operations ------------------------------------------------

    def write_commands(self, commands: List[Command], dry_run: bool = False) -> WriteReport:
        return WriteReport()

    def write_mcp_servers(self, servers: List[McpServer], dry_run: bool = False) -> WriteReport:
        return WriteReport()

    def write_preferences(self, preferences: Preferences, dry_run: bool = False) -> WriteReport:
        return WriteReport()

    def write_skills(self, skills: List[Command], dry_run: bool = False) -> WriteReport:
        return WriteReport()

    def write_hooks(self, hooks: List[Command], dry_run: bool = False) -> WriteReport:
        return WriteReport()

    def write_agents(self, agents: List[Command], dry_run: bool = False) -> WriteReport:
        return WriteReport()

    # -- domain dispatch -------------------------------------------------

    def read(self, domain: str, include_marketplace: bool = False) -> Any:
        """Read one domain. Preferences come back as a single object."""
        if domain not in DOMAINS:
            raise ValueError(f"Unknown domain: {domain}")
        if domain == 'commands':
            return self.read_commands(include_marketplace)
        return getattr(self, f'read_{domain}')()

    def write(self, domain: str, items: Any, dry_run: bool = False) -> WriteReport:
        if domain not in DOMAINS:
            raise ValueError(f"Unknown domain: {domain}")
        return getattr(self, f'write_{domain}')(items, dry_run=dry_run)

    def read_all(self, include_marketplace: bool = False) -> Dict[str, Any]:
        """Read every supported domain, keyed by domain name."""
        support = self.supported_fields()
        return {
            domain: self.read(domain, include_marketplace)
            for domain in DOMAINS
            if support.supports(domain)
        }

    # -- shared discovery helpers ----------------------------------------

    def _document(self, name: str, path: Path, modules: Optional[List[ModuleFile]] = None) -> Command:
        return Command(
            name=name,
            content=read_file_bytes(path),
            source_path=path,
            modified=file_mtime(path),
            modules=modules or [],
        )

    def _read_documents(self, directory: Path, max_depth: int,
                        suffix: str = '.md',
                        name_for: Optional[Callable[[Path], str]] = None) -> List[Command]:
        """Read markdown documents below ``directory``, named by file stem."""
        documents = []
        for path in walk_files(directory, max_depth):
            if not path.name.endswith(suffix):
                continue
            name = name_for(path) if name_for else path.stem
            documents.append(self._document(name, path))
        return documents

    def _find_plugin_dirs(self, tree: Path, dirname: str) -> List[Path]:
        return find_named_dirs(tree, dirname, PLUGIN_TREE_MAX_DEPTH)

    def _read_plugin_documents(self, tree: Path, dirname: str) -> List[Command]:
        """Read documents living inside directories named ``dirname`` in a plugin tree."""
        documents = []
        for directory in self._find_plugin_dirs(tree, dirname):
            documents.extend(self._read_documents(directory, PLUGIN_TREE_MAX_DEPTH))
        return documents

    def _read_skill_tree(self, skills_dir: Path, max_depth: int = SKILLS_MAX_DEPTH) -> List[Command]:
        """Read skills and their companion files from one skills directory.

        ``<dir>/<path>/SKILL.md`` is a skill named ``<path>``; every other file
        below that directory is one of its modules. Markdown files outside any
        skill directory are standalone skills named by their stem.
        """
        files = list(walk_files(skills_dir, max_depth))
        skill_dirs = {path.parent for path in files if path.name == SKILL_FILE}
        skill_dirs.discard(skills_dir)

        modules: Dict[Path, List[ModuleFile]] = {d: [] for d in skill_dirs}
        standalone: List[Path] = []

        for path in files:
            if path.name == SKILL_FILE:
                if path.parent == skills_dir:
                    logger.warning("Skipping %s: a skill file needs its own directory", path)
                continue
            owner = self._owning_skill_dir(path, skills_dir, skill_dirs)
            if owner is not None:
                relative = path.relative_to(owner).as_posix()
                modules[owner].append(ModuleFile(relative, read_file_bytes(path)))
            elif path.suffix == '.md':
                standalone.append(path)

        skills = []
        for skill_dir in sorted(skill_dirs):
            name = skill_dir.relative_to(skills_dir).as_posix()
            skill_modules = sorted(modules[skill_dir], key=lambda m: m.relative_path)
            skills.append(self._document(name, skill_dir / SKILL_FILE, skill_modules))
        for path in standalone:
            skills.append(self._document(path.stem, path))
        return skills

    @staticmethod
    def _owning_skill_dir(path: Path, skills_dir: Path, skill_dirs: Set[Path]) -> Optional[Path]:
        parent = path.parent
        while parent != skills_dir and skills_dir in parent.parents:
            if parent in skill_dirs:
                return parent
            parent = parent.parent
        return None

    def _merge(self, domain: str, items: Iterable[Command]) -> List[Command]:
        return merge_by_name(items, self.DEDUP_STRATEGIES[domain])

    # -- shared write helpers --------------------------------------------

    def _ensure_within_root(self, path: Path):
        if not path.resolve().is_relative_to(self.root.resolve()):
            raise FileOperationError(f"Refusing to write {path}: outside of {self.root}")

    @staticmethod
    def _matches(path: Path, content: bytes) -> bool:
        if not path.is_file():
            return False
        try:
            return calculate_file_checksum(path) == calculate_content_checksum(content)
        except OSError as e:
            raise FileOperationError(f"Could not read {path}: {e}") from e

    def _write_documents(self, items: List[Command], domain: str,
                         path_for: Callable[[str], Path],
                         transform: Optional[Callable[[bytes], bytes]] = None,
                         dry_run: bool = False) -> WriteReport:
        """Compare-before-write a list of documents.

        Args:
            items: Documents to write
            domain: Domain, selects the name policy
            path_for: Maps a sanitized name to the destination file
            transform: Optional content conversion applied before comparing
            dry_run: Compare only, never touch the filesystem

        Returns:
            WriteReport for the domain
        """
        report = WriteReport()
        policy = self.NAME_POLICIES[domain]
        claimed: Dict[Path, str] = {}

        for item in items:
            safe_name = sanitize_name(item.name, policy)
            if not safe_name:
                message = f"Skipping {domain} item {item.name!r}: name is empty after sanitization"
                logger.warning(message)
                report.warnings.append(message)
                continue

            path = path_for(safe_name)
            if path in claimed:
                message = (f"Skipping {domain} item {item.name!r}: "
                           f"same destination as {claimed[path]!r}")
                logger.warning(message)
                report.warnings.append(message)
                continue
            claimed[path] = item.name
            self._ensure_within_root(path)

            content = transform(item.content) if transform else item.content
            files = [(path, content)]
            for module in item.modules:
                files.append((safe_join(path.parent, module.relative_path), module.content))

            if all(self._matches(file_path, file_content) for file_path, file_content in files):
                report.skipped.append(Unchanged(item.name))
                continue

            if not dry_run:
                for file_path, file_content in files:
                    write_file_bytes(file_path, file_content)
                logger.debug("Wrote %s %s to %s", domain, item.name, path)
            report.written += 1

        return report

    # -- MCP helpers -----------------------------------------------------

    def _entry_enabled(self, entry: Dict[str, Any]) -> bool:
        return entry.get('disabled') is not True

    def _disabled_flag(self) -> Dict[str, Any]:
        return {'disabled': True}

    def _string_list(self, server: str, field: str, value: Any) -> List[str]:
        if not isinstance(value, list):
            logger.warning("MCP server %s: '%s' is not a list, ignoring it", server, field)
            return []
        items = []
        for item in value:
            if isinstance(item, str):
                items.append(item)
            else:
                logger.warning("MCP server %s: dropping non-string %s item %r", server, field, item)
        return items

    def _string_map(self, server: str, field: str, value: Any) -> Dict[str, str]:
        if not isinstance(value, dict):
            logger.warning("MCP server %s: '%s' is not an object, ignoring it", server, field)
            return {}
        mapping = {}
        for key, item in value.items():
            if isinstance(item, str):
                mapping[str(key)] = item
            else:
                logger.warning("MCP server %s: dropping non-string %s value for %s", server, field, key)
        return mapping

    def _server_from_entry(self, name: str, entry: Any) -> Optional[McpServer]:
        """Parse one serialized MCP server. Returns None for unusable entries."""
        if not isinstance(entry, dict):
            logger.warning("Skipping MCP server %s: entry is not an object", name)
            return None

        declared = entry.get('type')
        is_http = declared in ('http', 'sse', 'streamable-http') or ('url' in entry and 'command' not in entry)

        if is_http:
            url = entry.get('url')
            if not isinstance(url, str) or not url:
                logger.warning("Skipping MCP server %s: http server without a url", name)
                return None
            headers = {}
            if self.HEADERS_KEY in entry:
                headers = self._string_map(name, self.HEADERS_KEY, entry[self.HEADERS_KEY])
            return McpServer(
                name=name,
                transport=McpTransport.HTTP,
                url=url,
                headers=headers,
                enabled=self._entry_enabled(entry),
            )

        command = entry.get('command')
        if not isinstance(command, str) or not command:
            logger.warning("Skipping MCP server %s: missing command", name)
            return None
        args = self._string_list(name, 'args', entry['args']) if 'args' in entry else []
        env = self._string_map(name, 'env', entry['env']) if 'env' in entry else {}
        return McpServer(
            name=name,
            transport=McpTransport.STDIO,
            command=command,
            args=args,
            env=env,
            enabled=self._entry_enabled(entry),
        )

    def _servers_from_table(self, table: Any, source: Path) -> List[McpServer]:
        if table is None:
            return []
        if not isinstance(table, dict):
            logger.warning("Ignoring MCP servers in %s: not an object", source)
            return []
        servers = []
        for name, entry in table.items():
            server = self._server_from_entry(name, entry)
            if server is not None:
                servers.append(server)
        return servers

    def _entry_from_server(self, server: McpServer) -> Dict[str, Any]:
        """Serialize one MCP server into this adapter's native entry shape."""
        entry: Dict[str, Any] = {}
        if server.transport == McpTransport.HTTP:
            entry['type'] = 'http'
            entry['url'] = server.url or ''
            if server.headers:
                entry[self.HEADERS_KEY] = dict(server.headers)
        else:
            entry['command'] = server.command
            if server.args:
                entry['args'] = list(server.args)
            if server.env:
                entry['env'] = dict(server.env)
        if not server.enabled:
            entry.update(self._disabled_flag())
        return entry

    def _merge_server_entry(self, existing: Any, server: McpServer) -> Dict[str, Any]:
        serialized = self._entry_from_server(server)
        merged: Dict[str, Any] = {}
        if isinstance(existing, dict):
            for key, value in existing.items():
                if key not in self.OWNED_MCP_KEYS:
                    merged[key] = value
                elif key not in serialized and value in self.IMPLICIT_MCP_DEFAULTS.get(key, ()):
                    merged[key] = value
        merged.update(serialized)
        return merged

    def _merge_servers(self, table: Dict[str, Any], servers: List[McpServer], report: WriteReport) -> bool:
        """Merge servers into a native table in place. Returns True if anything changed."""
        changed = False
        for server in servers:
            existing = table.get(server.name)
            merged = self._merge_server_entry(existing, server)
            if merged == existing:
                report.skipped.append(Unchanged(server.name))
                continue
            table[server.name] = merged
            report.written += 1
            changed = True
        return changed

    # -- JSON settings helpers -------------------------------------------

    def _read_json_servers(self, path: Path, key: str) -> List[McpServer]:
        document = load_json_document(path)
        return self._servers_from_table(document.get(key), path)

    def _write_json_servers(self, path: Path, key: str, servers: List[McpServer],
                            dry_run: bool = False) -> WriteReport:
        """Merge servers into the ``key`` object of a JSON settings file."""
        report = WriteReport()
        if not servers:
            return report

        document = load_json_document(path)
        table = document.get(key)
        if not isinstance(table, dict):
            table = {}

        if self._merge_servers(table, servers, report) and not dry_run:
            document[key] = table
            save_json_document(path, document)
        return report

    def _read_json_model(self, path: Path) -> Preferences:
        model = load_json_document(path).get('model')
        return Preferences(model=model if isinstance(model, str) else None)

    def _write_json_model(self, path: Path, preferences: Preferences, dry_run: bool = False) -> WriteReport:
        """Set the top-level ``model`` key, leaving every other key untouched."""
        report = WriteReport()
        if preferences.model is None:
            return report

        document = load_json_document(path)
        if document.get('model') == preferences.model:
            report.skipped.append(Unchanged('model'))
            return report

        document['model'] = preferences.model
        if not dry_run:
            save_json_document(path, document)
        report.written += 1
        return report

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({str(self.root)!r})"
