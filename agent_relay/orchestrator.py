"""
Sync orchestration for Agent Relay.

The orchestrator drives the read -> filter -> write pipeline for every enabled
domain between one source adapter and one target adapter.
"""

import dataclasses
import logging
from typing import Any, List, Optional, Tuple

from .adapters import ADAPTERS, AgentAdapter
from .exceptions import InvalidTargetError, RelayError, SyncAbortedError
from .hal import get_hal
from .models import DOMAINS, Command, Preferences, SyncParams, SyncReport, WriteReport

logger = logging.getLogger(__name__)

# Target used when a caller only names the source
DEFAULT_TARGETS = {
    'claude': 'codex',
    'codex': 'claude',
    'copilot': 'claude',
}


def parse_direction(source: str, target: Optional[str] = None) -> Tuple[str, str]:
    """Validate a sync direction.

    Args:
        source: Source agent name
        target: Target agent name, or None for the default target of ``source``

    Returns:
        Tuple of (source, target)

    Raises:
        InvalidTargetError: If a name is unknown or both sides are the same agent
    """
    available = ', '.join(ADAPTERS)
    if source not in ADAPTERS:
        raise InvalidTargetError(f"Unknown source agent '{source}'. Available: {available}")

    if target is None:
        target = DEFAULT_TARGETS[source]
    elif target not in ADAPTERS:
        raise InvalidTargetError(f"Unknown target agent '{target}'. Available: {available}")

    if source == target:
        raise InvalidTargetError(f"Source and target are both '{source}'")
    return source, target


class SyncOrchestrator:
    """Synchronize assets from one agent adapter to another.

    The orchestrator holds no state between runs; every call to ``sync``
    reads the source afresh and relies on the target's compare-before-write
    behaviour for idempotence.
    """

    def __init__(self, source: AgentAdapter, target: AgentAdapter):
        self.source = source
        self.target = target

    def sync(self, params: SyncParams) -> SyncReport:
        """Run every enabled domain in order.

        Args:
            params: Domain toggles and write options

        Returns:
            SyncReport with one WriteReport per enabled domain

        Raises:
            SyncAbortedError: If any domain fails. Domains finished before the
                failure keep their changes and appear in the attached report.
        """
        report = SyncReport(source=self.source.name, target=self.target.name, dry_run=params.dry_run)

        for domain in DOMAINS:
            if not params.enabled(domain):
                continue
            try:
                report.domains[domain] = self.sync_domain(domain, params)
            except (RelayError, OSError) as e:
                report.summary = report.format_summary()
                logger.error("Syncing %s failed: %s", domain, e)
                raise SyncAbortedError(domain, report, e) from e

        report.summary = report.format_summary()
        return report

    def sync_domain(self, domain: str, params: SyncParams) -> WriteReport:
        """Read one domain from the source and write it to the target."""
        if not self._both_support(domain):
            logger.debug("Skipping %s: not supported by both %s and %s",
                         domain, self.source.name, self.target.name)
            return WriteReport()

        items = self.source.read(domain, params.include_marketplace)
        return self.sync_items(domain, items, params)

    def sync_items(self, domain: str, items: Any, params: SyncParams) -> WriteReport:
        """Write already-discovered items of one domain to the target.

        Applies the same filtering and translation as a full sync, so callers
        holding their own item lists (for example from a discovery cache) get
        identical behaviour.
        """
        if not self._both_support(domain):
            return WriteReport()

        if domain == 'preferences':
            items = self._translate_preferences(items)
        elif domain == 'commands' and params.skip_existing_commands:
            items = self._without_existing_commands(items, params)

        report = self.target.write(domain, items, dry_run=params.dry_run)
        logger.info("%s: %d %s, %d unchanged", domain, report.written,
                    'pending' if params.dry_run else 'written', len(report.skipped))
        return report

    def _both_support(self, domain: str) -> bool:
        return (self.source.supported_fields().supports(domain)
                and self.target.supported_fields().supports(domain))

    def _translate_preferences(self, preferences: Preferences) -> Preferences:
        if preferences.model is None:
            return preferences
        model = get_hal().translate_model(preferences.model, self.source.name, self.target.name)
        if model != preferences.model:
            logger.info("Translated model %s -> %s", preferences.model, model)
        return dataclasses.replace(preferences, model=model)

    def _without_existing_commands(self, commands: List[Command], params: SyncParams) -> List[Command]:
        existing = {command.name for command in self.target.read_commands(params.include_marketplace)}
        kept = []
        for command in commands:
            if command.name in existing:
                logger.debug("Keeping existing target command %s", command.name)
                continue
            kept.append(command)
        return kept
