"""
Agent ecosystem adapters and the adapter registry.
"""

from pathlib import Path
from typing import Dict, Optional, Type

from ..config import RelayConfig
from ..exceptions import InvalidTargetError
from .base import AgentAdapter
from .claude import ClaudeAdapter
from .codex import CodexAdapter
from .copilot import CopilotAdapter

ADAPTERS: Dict[str, Type[AgentAdapter]] = {
    ClaudeAdapter.name: ClaudeAdapter,
    CodexAdapter.name: CodexAdapter,
    CopilotAdapter.name: CopilotAdapter,
}


def get_adapter(name: str, root: Optional[Path] = None,
                config: Optional[RelayConfig] = None) -> AgentAdapter:
    """Create an adapter by agent name.

    Args:
        name: Agent name ('claude', 'codex', 'copilot')
        root: Explicit config root; resolved through ``config`` when omitted
        config: RelayConfig used to resolve the default root

    Returns:
        Adapter instance

    Raises:
        InvalidTargetError: If the agent name is unknown
    """
    adapter_class = ADAPTERS.get(name)
    if adapter_class is None:
        raise InvalidTargetError(f"Unknown agent '{name}'. Available: {', '.join(ADAPTERS)}")
    if root is not None:
        return adapter_class(root)
    return adapter_class.from_config(config)


__all__ = [
    'ADAPTERS',
    'AgentAdapter',
    'ClaudeAdapter',
    'CodexAdapter',
    'CopilotAdapter',
    'get_adapter',
]
