"""
GitHub Copilot CLI adapter.

Layout under the config root (``$XDG_CONFIG_HOME/copilot``, ``~/.config/copilot``
or the legacy ``~/.copilot``):

    skills/<path>/SKILL.md      skills, plus companion files
    agents/<name>.agent.md      custom agents, flat
    mcp-config.json             ``mcpServers``
    config.json                 ``model`` next to security settings

Copilot has no custom commands or hooks; those operations stay no-ops.
"""

from pathlib import Path
from typing import List

from ..hal import get_hal
from ..models import Command, FieldSupport, McpServer, Preferences, WriteReport
from .base import SKILL_FILE, AgentAdapter

AGENT_SUFFIX = '.agent.md'


def agent_name(path: Path) -> str:
    """Strip ``.agent.md`` (or plain ``.md``) from an agent file name."""
    if path.name.endswith(AGENT_SUFFIX):
        return path.name[:-len(AGENT_SUFFIX)]
    return path.stem


class CopilotAdapter(AgentAdapter):
    """Adapter for GitHub Copilot CLI."""

    name = 'copilot'

    MCP_CONFIG_FILE = 'mcp-config.json'
    CONFIG_FILE = 'config.json'
    MCP_KEY = 'mcpServers'

    # Copilot spells the stdio transport "local"
    IMPLICIT_MCP_DEFAULTS = {'type': ('stdio', 'local'), 'disabled': (False,)}

    @property
    def skills_dir(self) -> Path:
        return self.root / 'skills'

    @property
    def agents_dir(self) -> Path:
        return self.root / 'agents'

    @property
    def mcp_config_path(self) -> Path:
        return self.root / self.MCP_CONFIG_FILE

    @property
    def config_path(self) -> Path:
        return self.root / self.CONFIG_FILE

    def supported_fields(self) -> FieldSupport:
        return FieldSupport(
            commands=False,
            mcp_servers=True,
            preferences=True,
            skills=True,
            hooks=False,
            agents=True,
        )

    def read_mcp_servers(self) -> List[McpServer]:
        return self._read_json_servers(self.mcp_config_path, self.MCP_KEY)

    def read_preferences(self) -> Preferences:
        return self._read_json_model(self.config_path)

    def read_skills(self) -> List[Command]:
        return self._merge('skills', self._read_skill_tree(self.skills_dir))

    def read_agents(self) -> List[Command]:
        # Agents are flat: only files directly inside agents/
        agents = self._read_documents(self.agents_dir, 1, name_for=agent_name)
        return self._merge('agents', agents)

    def write_mcp_servers(self, servers: List[McpServer], dry_run: bool = False) -> WriteReport:
        return self._write_json_servers(self.mcp_config_path, self.MCP_KEY, servers, dry_run)

    def write_preferences(self, preferences: Preferences, dry_run: bool = False) -> WriteReport:
        return self._write_json_model(self.config_path, preferences, dry_run)

    def write_skills(self, skills: List[Command], dry_run: bool = False) -> WriteReport:
        return self._write_documents(
            skills, 'skills',
            lambda name: self.skills_dir / name / SKILL_FILE,
            dry_run=dry_run,
        )

    def write_agents(self, agents: List[Command], dry_run: bool = False) -> WriteReport:
        return self._write_documents(
            agents, 'agents',
            lambda name: self.agents_dir / f"{name}{AGENT_SUFFIX}",
            transform=get_hal().get_converter(self.name).convert,
            dry_run=dry_run,
        )
