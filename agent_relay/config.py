"""
Configuration management for Agent Relay.

Resolves the configuration root of every supported agent from an explicit
home directory, environment overrides and an optional JSON config file.
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from .exceptions import ConfigRootError, InvalidTargetError

logger = logging.getLogger(__name__)


class RelayConfig:
    """Configuration for Agent Relay targets and paths."""

    # Default target configurations, roots relative to the home directory
    TARGET_CONFIGS = {
        'claude': {
            'display_name': 'Claude Code',
            'root': '.claude',
            'env_var': 'CLAUDE_CONFIG_DIR',
        },
        'codex': {
            'display_name': 'Codex CLI',
            'root': '.codex',
            'env_var': 'CODEX_HOME',
        },
        'copilot': {
            'display_name': 'GitHub Copilot CLI',
            'root': '.config/copilot',
            'legacy_root': '.copilot',
            'env_var': None,
        },
    }

    CONFIG_FILE = '.agent-relay.json'
    HOME_ENV_VAR = 'AGENT_RELAY_HOME'

    def __init__(self, home: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None):
        self.environ = dict(os.environ if environ is None else environ)
        self.home = self._resolve_home(home)
        self.config_path = self.home / self.CONFIG_FILE
        self.config = self._load_config()

    def _resolve_home(self, home: Optional[Path]) -> Path:
        if home is not None:
            return Path(home).expanduser()
        try:
            return Path.home()
        except RuntimeError as e:
            raise ConfigRootError(f"Could not determine home directory: {e}") from e

    def _load_config(self) -> Dict:
        """Load configuration from file or fall back to defaults."""
        if self.config_path.exists():
            try:
                with open(self.config_path) as f:
                    config = json.load(f)
                if not isinstance(config, dict):
                    raise ValueError("top-level value is not an object")
                roots = config.get('roots', {})
                if not isinstance(roots, dict):
                    raise ValueError("'roots' is not an object")
                config['roots'] = roots
                return config
            except (OSError, ValueError) as e:
                logger.warning("Could not load config file %s: %s", self.config_path, e)

        return {'roots': {}}

    @classmethod
    def get_target_config(cls, target: str) -> Dict:
        """Get the full configuration for a target."""
        if target not in cls.TARGET_CONFIGS:
            raise InvalidTargetError(
                f"Unknown agent '{target}'. Available: {', '.join(cls.get_available_targets())}"
            )
        return cls.TARGET_CONFIGS[target]

    @classmethod
    def get_display_name(cls, target: str) -> str:
        return cls.get_target_config(target)['display_name']

    def resolve_root(self, target: str) -> Path:
        """Resolve the configuration root of a target.

        Precedence: environment override, then the ``roots`` entry of the
        config file, then the built-in default under the home directory.
        """
        target_config = self.get_target_config(target)

        env_var = target_config.get('env_var')
        if env_var and self.environ.get(env_var):
            return Path(self.environ[env_var]).expanduser()

        configured = self.config['roots'].get(target)
        if configured:
            return Path(configured).expanduser()

        if target == 'copilot':
            return self._resolve_copilot_root(target_config)
        return self.home / target_config['root']

    def _resolve_copilot_root(self, target_config: Dict) -> Path:
        """Prefer the XDG location; use the legacy one only when it alone exists."""
        xdg_config_home = self.environ.get('XDG_CONFIG_HOME')
        if xdg_config_home:
            xdg_path = Path(xdg_config_home).expanduser() / 'copilot'
        else:
            xdg_path = self.home / target_config['root']
        legacy_path = self.home / target_config['legacy_root']

        if xdg_path.exists() or not legacy_path.exists():
            return xdg_path
        return legacy_path

    @classmethod
    def get_available_targets(cls) -> List[str]:
        """Get list of available target names."""
        return list(cls.TARGET_CONFIGS.keys())
