"""
Agent Relay Hardware Abstraction Layer (HAL).

This module provides the HAL for converting agent definitions and preferences
between AI coding agent ecosystems. It supports Claude Code, Codex CLI and
GitHub Copilot CLI.
"""

import logging
from typing import Dict, List, Optional, Tuple

from .utils import detect_newline, render_document, split_document

logger = logging.getLogger(__name__)


class AgentConverter:
    """Base class for agent-specific definition header converters.

    A converter rewrites the header of an agent document on its way into the
    target ecosystem. The body after the header always passes through as-is.
    """

    # Official documentation URL for this agent's definition format
    DOCS_URL: Optional[str] = None

    # Header fields this agent understands
    SUPPORTED_FIELDS: List[str] = []

    # Header fields that mean nothing on this agent and are dropped
    DROPPED_FIELDS: List[str] = []

    # (key, value) injected into every header when absent
    TARGET_MARKER: Optional[Tuple[str, str]] = None

    def convert(self, content: bytes) -> bytes:
        """Convert agent content to the agent-specific format.

        Args:
            content: Raw agent document

        Returns:
            Converted document. Content that is not UTF-8 is returned untouched.
        """
        try:
            text = content.decode('utf-8')
        except UnicodeDecodeError:
            return content

        header, body = split_document(text)

        if header is None:
            if self.TARGET_MARKER is None:
                return content
            key, value = self.TARGET_MARKER
            nl = detect_newline(text)
            return f"---{nl}{key}: {value}{nl}---{nl}{nl}{text}".encode('utf-8')

        before = header.keys()
        header.remove(self.DROPPED_FIELDS)
        if self.TARGET_MARKER is not None:
            header.set_default(*self.TARGET_MARKER)

        if header.keys() == before:
            return content
        return render_document(header, body).encode('utf-8')


class ClaudeConverter(AgentConverter):
    """Converter for Claude Code.

    Official Documentation: https://docs.anthropic.com/en/docs/claude-code/sub-agents

    Claude Code sub-agents are markdown files with YAML frontmatter:
    - name: Agent identifier
    - description: When the agent should be used
    - tools: Comma-separated tool allowlist
    - model: Model alias (sonnet, opus, haiku, inherit)
    - color: Display color in the terminal UI
    """

    DOCS_URL = "https://docs.anthropic.com/en/docs/claude-code/sub-agents"
    SUPPORTED_FIELDS = ['name', 'description', 'tools', 'model', 'color']
    DROPPED_FIELDS = ['target']


class CodexConverter(AgentConverter):
    """Converter for Codex CLI.

    Codex reads agent documents as plain markdown prompts; it keeps the model
    hint but has no notion of a display color or a target marker.
    """

    DOCS_URL = None  # Codex doesn't document an agent header format yet
    SUPPORTED_FIELDS = ['name', 'description', 'tools', 'model']
    DROPPED_FIELDS = ['target', 'color']


class CopilotConverter(AgentConverter):
    """Converter for GitHub Copilot CLI.

    Official Documentation: https://docs.github.com/en/copilot/reference/custom-agents-configuration

    Copilot custom agents are ``<name>.agent.md`` files whose header must carry
    ``target: github-copilot``. Model selection and colors are not supported.
    """

    DOCS_URL = "https://docs.github.com/en/copilot/reference/custom-agents-configuration"
    SUPPORTED_FIELDS = ['name', 'description', 'tools', 'target']
    DROPPED_FIELDS = ['model', 'color']
    TARGET_MARKER = ('target', 'github-copilot')


# Model equivalents, checked in order with substring matching on lowercase ids
CLAUDE_TO_CODEX_MODELS = [
    ('opus', 'gpt-4o'),
    ('sonnet', 'gpt-4o-mini'),
    ('haiku', 'gpt-4o-mini'),
]

CODEX_TO_CLAUDE_MODELS = [
    ('o3-mini', 'haiku'),
    ('o3_mini', 'haiku'),
    ('o1-mini', 'haiku'),
    ('o1_mini', 'haiku'),
    ('gpt-4o-mini', 'sonnet'),
    ('gpt4o-mini', 'sonnet'),
    ('gpt-4o', 'opus'),
    ('gpt4o', 'opus'),
    ('o1', 'opus'),
]

MODEL_TRANSLATIONS: Dict[Tuple[str, str], List[Tuple[str, str]]] = {
    ('claude', 'codex'): CLAUDE_TO_CODEX_MODELS,
    ('codex', 'claude'): CODEX_TO_CLAUDE_MODELS,
}


class AgentHAL:
    """Hardware Abstraction Layer (HAL) for AI coding agent formats.

    This class provides a unified interface for converting agent definitions
    and model ids into the format of a target ecosystem.

    Supported Agents:
    - Claude Code: https://docs.anthropic.com/en/docs/claude-code
    - Codex CLI
    - GitHub Copilot CLI: https://docs.github.com/en/copilot
    """

    def __init__(self):
        """Initialize the HAL with agent-specific converters."""
        self._converters: Dict[str, AgentConverter] = {
            'claude': ClaudeConverter(),
            'codex': CodexConverter(),
            'copilot': CopilotConverter(),
        }

    def get_converter(self, target: str) -> AgentConverter:
        """Get the converter for a specific target agent.

        Args:
            target: Target agent name

        Returns:
            AgentConverter instance for the target
        """
        return self._converters.get(target, ClaudeConverter())

    def convert(self, content: bytes, target: str) -> bytes:
        """Convert agent content to the target-specific format.

        Args:
            content: Agent document as read from the source
            target: Target agent ('claude', 'codex', 'copilot')

        Returns:
            Converted content for the target agent
        """
        return self.get_converter(target).convert(content)

    def translate_model(self, model: str, source: str, target: str) -> str:
        """Map a model id to its nearest equivalent on the target agent.

        Args:
            model: Model id as configured on the source
            source: Source agent name
            target: Target agent name

        Returns:
            Translated model id, or the original id when no mapping applies
        """
        if source == target:
            return model

        table = MODEL_TRANSLATIONS.get((source, target))
        if table is None:
            logger.debug("No model mapping from %s to %s, keeping %s", source, target, model)
            return model

        lowered = model.lower()
        for needle, translated in table:
            if needle in lowered:
                return translated

        logger.debug("Unknown model %s passed through without translation", model)
        return model

    def get_docs_url(self, target: str) -> Optional[str]:
        """Get the official documentation URL for a target agent's format."""
        return self.get_converter(target).DOCS_URL

    def get_supported_fields(self, target: str) -> List[str]:
        """Get the list of supported header fields for a target agent."""
        return self.get_converter(target).SUPPORTED_FIELDS


# Global HAL instance
_hal_instance = None


def get_hal() -> AgentHAL:
    """Get the global HAL instance (singleton pattern)."""
    global _hal_instance
    if _hal_instance is None:
        _hal_instance = AgentHAL()
    return _hal_instance


def convert_agent_format(content: bytes, target: str) -> bytes:
    """Convert an agent definition for a specific target agent.

    This is a convenience wrapper for the AgentHAL class.
    """
    return get_hal().convert(content, target)


def translate_model(model: str, source: str, target: str) -> str:
    """Translate a model id between agents. Wrapper for AgentHAL.translate_model."""
    return get_hal().translate_model(model, source, target)
