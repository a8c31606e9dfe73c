"""
Codex CLI adapter.

Layout under the config root (``~/.codex`` by default):

    prompts/<name>.md           custom prompts (commands)
    skills/<path>/SKILL.md      skills, plus companion files
    agents/<name>.md            agent documents
    config.toml                 ``model``, ``[mcp_servers.<name>]``, ``[features]``

Codex has no hooks; those operations stay no-ops.
"""

import copy
import logging
from collections.abc import MutableMapping
from pathlib import Path
from typing import Any, Dict, List, Optional

import tomlkit
from tomlkit.exceptions import TOMLKitError
from tomlkit.toml_document import TOMLDocument

from ..exceptions import FileOperationError, MalformedConfigError
from ..hal import get_hal
from ..models import Command, FieldSupport, McpServer, Preferences, Unchanged, WriteReport
from ..utils import write_file_bytes
from .base import AGENTS_MAX_DEPTH, SKILL_FILE, AgentAdapter

logger = logging.getLogger(__name__)

PROMPTS_MAX_DEPTH = 2


def load_toml_document(path: Path) -> TOMLDocument:
    """Load a TOML config file, keeping its comments and layout.

    A missing file yields an empty document.
    """
    if not path.exists():
        return tomlkit.document()

    try:
        text = path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise FileOperationError(f"Could not read {path}: {e}") from e

    try:
        return tomlkit.parse(text)
    except TOMLKitError as e:
        raise MalformedConfigError(path, str(e)) from e


def save_toml_document(path: Path, document: TOMLDocument):
    write_file_bytes(path, tomlkit.dumps(document).encode('utf-8'))


def _plain(value: Any) -> Any:
    """Convert a tomlkit item into plain Python values."""
    return value.unwrap() if hasattr(value, 'unwrap') else value


def _update_entry(table: MutableMapping, name: str, entry: Dict[str, Any],
                  previous: Optional[Any]):
    """Apply a merged server entry, touching only the keys that changed."""
    current = table.get(name)
    if not isinstance(previous, dict) or not isinstance(current, MutableMapping):
        table[name] = entry
        return
    for key in list(previous):
        if key not in entry:
            del current[key]
    for key, value in entry.items():
        if previous.get(key) != value:
            current[key] = value


class CodexAdapter(AgentAdapter):
    """Adapter for Codex CLI."""

    name = 'codex'

    CONFIG_FILE = 'config.toml'
    MCP_KEY = 'mcp_servers'

    OWNED_MCP_KEYS = ('command', 'args', 'env', 'url', 'http_headers', 'enabled')
    IMPLICIT_MCP_DEFAULTS = {'enabled': (True,)}
    HEADERS_KEY = 'http_headers'

    @property
    def prompts_dir(self) -> Path:
        return self.root / 'prompts'

    @property
    def skills_dir(self) -> Path:
        return self.root / 'skills'

    @property
    def agents_dir(self) -> Path:
        return self.root / 'agents'

    @property
    def config_path(self) -> Path:
        return self.root / self.CONFIG_FILE

    def supported_fields(self) -> FieldSupport:
        return FieldSupport(
            commands=True,
            mcp_servers=True,
            preferences=True,
            skills=True,
            hooks=False,
            agents=True,
        )

    def read_commands(self, include_marketplace: bool = False) -> List[Command]:
        return self._merge('commands', self._read_documents(self.prompts_dir, PROMPTS_MAX_DEPTH))

    def read_mcp_servers(self) -> List[McpServer]:
        document = load_toml_document(self.config_path).unwrap()
        return self._servers_from_table(document.get(self.MCP_KEY), self.config_path)

    def read_preferences(self) -> Preferences:
        model = load_toml_document(self.config_path).unwrap().get('model')
        return Preferences(model=model if isinstance(model, str) else None)

    def read_skills(self) -> List[Command]:
        return self._merge('skills', self._read_skill_tree(self.skills_dir))

    def read_agents(self) -> List[Command]:
        return self._merge('agents', self._read_documents(self.agents_dir, AGENTS_MAX_DEPTH))

    def write_commands(self, commands: List[Command], dry_run: bool = False) -> WriteReport:
        return self._write_documents(
            commands, 'commands',
            lambda name: self.prompts_dir / f"{name}.md",
            dry_run=dry_run,
        )

    def write_mcp_servers(self, servers: List[McpServer], dry_run: bool = False) -> WriteReport:
        report = WriteReport()
        if not servers:
            return report

        document = load_toml_document(self.config_path)
        before = _plain(document.get(self.MCP_KEY))
        if not isinstance(before, dict):
            before = {}
        table = copy.deepcopy(before)

        if not self._merge_servers(table, servers, report) or dry_run:
            return report

        if not isinstance(document.get(self.MCP_KEY), MutableMapping):
            document[self.MCP_KEY] = tomlkit.table()
        servers_table = document[self.MCP_KEY]
        for name, entry in table.items():
            if entry != before.get(name):
                _update_entry(servers_table, name, entry, before.get(name))
        save_toml_document(self.config_path, document)
        return report

    def write_preferences(self, preferences: Preferences, dry_run: bool = False) -> WriteReport:
        report = WriteReport()
        if preferences.model is None:
            return report

        document = load_toml_document(self.config_path)
        if document.get('model') == preferences.model:
            report.skipped.append(Unchanged('model'))
            return report

        document['model'] = preferences.model
        if not dry_run:
            save_toml_document(self.config_path, document)
        report.written += 1
        return report

    def write_skills(self, skills: List[Command], dry_run: bool = False) -> WriteReport:
        report = self._write_documents(
            skills, 'skills',
            lambda name: self.skills_dir / name / SKILL_FILE,
            dry_run=dry_run,
        )
        if skills and not dry_run:
            self._enable_skills_feature()
        return report

    def write_agents(self, agents: List[Command], dry_run: bool = False) -> WriteReport:
        return self._write_documents(
            agents, 'agents',
            lambda name: self.agents_dir / f"{name}.md",
            transform=get_hal().get_converter(self.name).convert,
            dry_run=dry_run,
        )

    def _enable_skills_feature(self):
        """Make sure ``[features] skills = true`` is set in config.toml."""
        document = load_toml_document(self.config_path)
        features = document.get('features')
        if not isinstance(features, MutableMapping):
            document['features'] = tomlkit.table()
            features = document['features']
        elif _plain(features).get('skills') is True:
            return
        features['skills'] = True
        save_toml_document(self.config_path, document)
        logger.info("Enabled skills feature in %s", self.config_path)

    # -- MCP entry shape -------------------------------------------------

    def _entry_enabled(self, entry: Dict[str, Any]) -> bool:
        return entry.get('enabled') is not False

    def _disabled_flag(self) -> Dict[str, Any]:
        return {'enabled': False}

    def _entry_from_server(self, server: McpServer) -> Dict[str, Any]:
        # Codex infers the transport from the presence of ``url``
        entry = super()._entry_from_server(server)
        entry.pop('type', None)
        return entry
