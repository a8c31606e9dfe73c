"""
Claude Code adapter.

Layout under the config root (``~/.claude`` by default):

    commands/<name>.md                      slash commands
    skills/<path>/SKILL.md                  skills, plus companion files
    hooks/<name>.md                         hook documents
    agents/<name>.md                        sub-agents
    settings.json                           ``mcpServers`` and ``model``
    plugins/cache/**/{commands,skills,agents}/
    plugins/marketplaces/**/commands/       only with include_marketplace
"""

from pathlib import Path
from typing import List

from ..hal import get_hal
from ..models import Command, FieldSupport, McpServer, Preferences, WriteReport
from .base import (
    AGENTS_MAX_DEPTH,
    COMMANDS_MAX_DEPTH,
    SKILL_FILE,
    AgentAdapter,
)


class ClaudeAdapter(AgentAdapter):
    """Adapter for Claude Code."""

    name = 'claude'

    SETTINGS_FILE = 'settings.json'
    MCP_KEY = 'mcpServers'

    @property
    def commands_dir(self) -> Path:
        return self.root / 'commands'

    @property
    def skills_dir(self) -> Path:
        return self.root / 'skills'

    @property
    def hooks_dir(self) -> Path:
        return self.root / 'hooks'

    @property
    def agents_dir(self) -> Path:
        return self.root / 'agents'

    @property
    def settings_path(self) -> Path:
        return self.root / self.SETTINGS_FILE

    @property
    def plugin_cache_dir(self) -> Path:
        return self.root / 'plugins' / 'cache'

    @property
    def marketplaces_dir(self) -> Path:
        return self.root / 'plugins' / 'marketplaces'

    def supported_fields(self) -> FieldSupport:
        return FieldSupport(
            commands=True,
            mcp_servers=True,
            preferences=True,
            skills=True,
            hooks=True,
            agents=True,
        )

    def read_commands(self, include_marketplace: bool = False) -> List[Command]:
        # Core commands first so user-curated files win over plugin copies
        commands = self._read_documents(self.commands_dir, COMMANDS_MAX_DEPTH)
        commands.extend(self._read_plugin_documents(self.plugin_cache_dir, 'commands'))
        if include_marketplace:
            commands.extend(self._read_plugin_documents(self.marketplaces_dir, 'commands'))
        return self._merge('commands', commands)

    def read_mcp_servers(self) -> List[McpServer]:
        return self._read_json_servers(self.settings_path, self.MCP_KEY)

    def read_preferences(self) -> Preferences:
        return self._read_json_model(self.settings_path)

    def read_skills(self) -> List[Command]:
        skills = self._read_skill_tree(self.skills_dir)
        for directory in self._find_plugin_dirs(self.plugin_cache_dir, 'skills'):
            skills.extend(self._read_skill_tree(directory))
        return self._merge('skills', skills)

    def read_hooks(self) -> List[Command]:
        return self._merge('hooks', self._read_documents(self.hooks_dir, AGENTS_MAX_DEPTH))

    def read_agents(self) -> List[Command]:
        agents = self._read_documents(self.agents_dir, AGENTS_MAX_DEPTH)
        for directory in self._find_plugin_dirs(self.plugin_cache_dir, 'agents'):
            agents.extend(self._read_documents(directory, 1))
        return self._merge('agents', agents)

    def write_commands(self, commands: List[Command], dry_run: bool = False) -> WriteReport:
        return self._write_documents(
            commands, 'commands',
            lambda name: self.commands_dir / f"{name}.md",
            dry_run=dry_run,
        )

    def write_mcp_servers(self, servers: List[McpServer], dry_run: bool = False) -> WriteReport:
        return self._write_json_servers(self.settings_path, self.MCP_KEY, servers, dry_run)

    def write_preferences(self, preferences: Preferences, dry_run: bool = False) -> WriteReport:
        return self._write_json_model(self.settings_path, preferences, dry_run)

    def write_skills(self, skills: List[Command], dry_run: bool = False) -> WriteReport:
        return self._write_documents(
            skills, 'skills',
            lambda name: self.skills_dir / name / SKILL_FILE,
            dry_run=dry_run,
        )

    def write_hooks(self, hooks: List[Command], dry_run: bool = False) -> WriteReport:
        return self._write_documents(
            hooks, 'hooks',
            lambda name: self.hooks_dir / f"{name}.md",
            dry_run=dry_run,
        )

    def write_agents(self, agents: List[Command], dry_run: bool = False) -> WriteReport:
        return self._write_documents(
            agents, 'agents',
            lambda name: self.agents_dir / f"{name}.md",
            transform=get_hal().get_converter(self.name).convert,
            dry_run=dry_run,
        )
