"""
Agent Relay - Cross-agent asset synchronization for AI coding assistants.

This package reads commands, MCP servers, preferences, skills, hooks and agent
definitions from one AI coding agent (Claude Code, Codex CLI, GitHub Copilot CLI)
and writes them idempotently into another.
"""

__version__ = "1.0.0"

# Import exceptions
from .exceptions import (
    ConfigRootError,
    FileOperationError,
    InvalidTargetError,
    MalformedConfigError,
    RelayError,
    SyncAbortedError,
)

# Import canonical model
from .models import (
    DOMAINS,
    Command,
    FieldSupport,
    McpServer,
    McpTransport,
    ModuleFile,
    Preferences,
    SkipReason,
    SyncParams,
    SyncReport,
    Unchanged,
    WriteReport,
)

# Import HAL
from .hal import (
    AgentConverter,
    AgentHAL,
    ClaudeConverter,
    CodexConverter,
    CopilotConverter,
    convert_agent_format,
    get_hal,
    translate_model,
)

# Import configuration, adapters and orchestration
from .config import RelayConfig
from .adapters import ADAPTERS, AgentAdapter, get_adapter
from .orchestrator import SyncOrchestrator, parse_direction

__all__ = [
    # Version
    "__version__",
    # Exceptions
    "RelayError",
    "ConfigRootError",
    "InvalidTargetError",
    "FileOperationError",
    "MalformedConfigError",
    "SyncAbortedError",
    # Model
    "DOMAINS",
    "Command",
    "ModuleFile",
    "McpServer",
    "McpTransport",
    "Preferences",
    "FieldSupport",
    "SkipReason",
    "Unchanged",
    "WriteReport",
    "SyncParams",
    "SyncReport",
    # HAL
    "AgentConverter",
    "ClaudeConverter",
    "CodexConverter",
    "CopilotConverter",
    "AgentHAL",
    "get_hal",
    "convert_agent_format",
    "translate_model",
    # Sync
    "RelayConfig",
    "ADAPTERS",
    "AgentAdapter",
    "get_adapter",
    "SyncOrchestrator",
    "parse_direction",
]
