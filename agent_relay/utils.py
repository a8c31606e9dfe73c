"""
Agent Relay utility functions.

This module contains utility functions for hashing, frontmatter handling, name
sanitization, duplicate resolution, directory walking and JSON settings files.
"""

import hashlib
import json
import logging
import os
import re
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple, TypeVar, Union

import yaml

from .exceptions import FileOperationError, MalformedConfigError

logger = logging.getLogger(__name__)

T = TypeVar('T')


def calculate_file_checksum(file_path: Path) -> str:
    """Calculate SHA256 checksum of a file."""
    sha256_hash = hashlib.sha256()
    with open(file_path, "rb") as f:
        for byte_block in iter(lambda: f.read(4096), b""):
            sha256_hash.update(byte_block)
    return sha256_hash.hexdigest()


def calculate_content_checksum(content: Union[bytes, str]) -> str:
    """Calculate SHA256 checksum of in-memory content.

    Args:
        content: Raw bytes, or a string which is hashed as UTF-8

    Returns:
        SHA256 hex digest of the content
    """
    if isinstance(content, str):
        content = content.encode('utf-8')
    return hashlib.sha256(content).hexdigest()


def parse_frontmatter(content: str) -> tuple[dict, str]:
    """Parse YAML frontmatter from markdown content.

    Args:
        content: Markdown content that may contain frontmatter

    Returns:
        Tuple of (frontmatter_dict, body_content)
    """
    lines = content.split('\n')

    # Check if file starts with frontmatter delimiter
    if not lines or lines[0].strip() != '---':
        return {}, content

    # Find the closing delimiter
    frontmatter_lines = []
    body_start_idx = 0

    for i in range(1, len(lines)):
        if lines[i].strip() == '---':
            body_start_idx = i + 1
            break
        frontmatter_lines.append(lines[i])
    else:
        # No closing delimiter found
        return {}, content

    try:
        frontmatter = yaml.safe_load('\n'.join(frontmatter_lines)) or {}
    except yaml.YAMLError:
        frontmatter = {}
    if not isinstance(frontmatter, dict):
        frontmatter = {}

    # Get body content (skip leading blank lines)
    body_lines = lines[body_start_idx:]
    while body_lines and not body_lines[0].strip():
        body_lines.pop(0)

    return frontmatter, '\n'.join(body_lines)


def format_timestamp(timestamp_str: str) -> str:
    """Format ISO timestamp to human-readable relative or absolute time.

    Args:
        timestamp_str: ISO format timestamp string

    Returns:
        Human-readable time string like "2 hours ago" or "Jan 15, 2025 at 3:45 PM"
    """
    try:
        timestamp = datetime.fromisoformat(timestamp_str)
        now = datetime.now(timestamp.tzinfo) if timestamp.tzinfo else datetime.now()
        diff = now - timestamp

        if diff.total_seconds() < 60:
            seconds = int(diff.total_seconds())
            return "just now" if seconds < 10 else f"{seconds} seconds ago"
        elif diff.total_seconds() < 3600:
            minutes = int(diff.total_seconds() / 60)
            return f"{minutes} minute{'s' if minutes != 1 else ''} ago"
        elif diff.total_seconds() < 86400:
            hours = int(diff.total_seconds() / 3600)
            return f"{hours} hour{'s' if hours != 1 else ''} ago"
        elif diff.days < 7:
            return f"{diff.days} day{'s' if diff.days != 1 else ''} ago"
        elif diff.days < 30:
            weeks = diff.days // 7
            return f"{weeks} week{'s' if weeks != 1 else ''} ago"
        else:
            return timestamp.strftime("%b %d, %Y at %I:%M %p")

    except (ValueError, AttributeError):
        return timestamp_str


# ---------------------------------------------------------------------------
# Ordered document header
# ---------------------------------------------------------------------------

_HEADER_KEY_RE = re.compile(r'^([A-Za-z_][\w.-]*)\s*:')


class DocumentHeader:
    """Ordered top-level key/value header of a markdown document.

    Each entry keeps the raw lines it was parsed from (the key line plus any
    indented continuation lines), so rewriting a header only touches the
    entries that are removed or added.
    """

    def __init__(self, entries: Optional[List[Tuple[Optional[str], List[str]]]] = None,
                 newline: str = '\n'):
        self.entries: List[Tuple[Optional[str], List[str]]] = entries or []
        self.newline = newline

    @classmethod
    def parse(cls, lines: Iterable[str], newline: str = '\n') -> 'DocumentHeader':
        """Build a header from its raw lines (newlines kept)."""
        entries: List[Tuple[Optional[str], List[str]]] = []
        for line in lines:
            match = _HEADER_KEY_RE.match(line)
            if match:
                entries.append((match.group(1), [line]))
            elif entries:
                entries[-1][1].append(line)
            else:
                # Comments or blank lines before the first key
                entries.append((None, [line]))
        return cls(entries, newline)

    def keys(self) -> List[str]:
        return [key for key, _ in self.entries if key is not None]

    def __contains__(self, key: str) -> bool:
        return key in self.keys()

    def remove(self, keys: Iterable[str]):
        """Drop every entry whose key is in ``keys``."""
        dropped = set(keys)
        self.entries = [(key, lines) for key, lines in self.entries if key not in dropped]

    def set_default(self, key: str, value: str):
        """Append ``key: value`` unless the key is already present."""
        if key not in self:
            self.entries.append((key, [f"{key}: {value}{self.newline}"]))

    def render(self) -> str:
        return ''.join(''.join(lines) for _, lines in self.entries)


def detect_newline(text: str) -> str:
    """Return the line ending used by the first line of ``text``."""
    first_line = text.split('\n', 1)[0]
    return '\r\n' if first_line.endswith('\r') else '\n'


def split_document(text: str) -> Tuple[Optional[DocumentHeader], str]:
    """Split a markdown document into its header and body.

    Returns:
        ``(header, body)``. ``header`` is None when the document has no
        header or the header is never closed; ``body`` is then the whole text.
    """
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != '---':
        return None, text

    newline = detect_newline(text)
    for i in range(1, len(lines)):
        if lines[i].strip() == '---':
            return DocumentHeader.parse(lines[1:i], newline), ''.join(lines[i + 1:])
    return None, text


def render_document(header: DocumentHeader, body: str) -> str:
    """Join a header and body back into a markdown document."""
    newline = header.newline
    return f"---{newline}{header.render()}---{newline}{body}"


# ---------------------------------------------------------------------------
# Name sanitization
# ---------------------------------------------------------------------------

class NamePolicy(str, Enum):
    """How a logical name becomes a relative destination path.

    HIERARCHICAL keeps slash-separated structure (``category/my-skill``);
    FLAT strips separators so the name stays a single path component.
    """

    HIERARCHICAL = 'hierarchical'
    FLAT = 'flat'


_SEPARATOR_RE = re.compile(r'[/\\]')


def sanitize_segment(segment: str) -> str:
    """Keep only alphanumerics, hyphens and underscores."""
    return ''.join(c for c in segment if c.isalnum() or c in '-_')


def sanitize_name(name: str, policy: NamePolicy = NamePolicy.HIERARCHICAL) -> str:
    """Map a logical name to a safe relative path.

    Empty, ``.`` and ``..`` segments are dropped and every remaining segment is
    reduced to alphanumerics, hyphens and underscores.

    Args:
        name: Logical item name
        policy: Whether to keep the slash-separated hierarchy

    Returns:
        Sanitized name, possibly empty when nothing usable remains
    """
    segments = [
        sanitize_segment(segment)
        for segment in _SEPARATOR_RE.split(name)
        if segment not in ('', '.', '..')
    ]
    segments = [segment for segment in segments if segment]
    separator = '/' if policy == NamePolicy.HIERARCHICAL else ''
    return separator.join(segments)


def safe_join(base: Path, relative: str) -> Path:
    """Join ``relative`` onto ``base`` and refuse anything escaping ``base``."""
    parts = [part for part in _SEPARATOR_RE.split(relative) if part not in ('', '.', '..')]
    if not parts:
        raise FileOperationError(f"Empty relative path under {base}")
    candidate = base.joinpath(*parts)
    if not candidate.resolve().is_relative_to(base.resolve()):
        raise FileOperationError(f"Path {relative!r} escapes {base}")
    return candidate


# ---------------------------------------------------------------------------
# Duplicate resolution
# ---------------------------------------------------------------------------

class DedupStrategy(str, Enum):
    """Which instance wins when the same logical name is discovered twice."""

    FIRST_WINS = 'first_wins'
    NEWEST_WINS = 'newest_wins'


def merge_by_name(items: Iterable[T], strategy: DedupStrategy) -> List[T]:
    """Collapse items sharing a ``name`` according to ``strategy``.

    FIRST_WINS keeps the earliest occurrence. NEWEST_WINS replaces an earlier
    occurrence only when the later one has a strictly greater ``modified``.
    The result keeps the order in which names were first seen.
    """
    merged = {}
    for item in items:
        existing = merged.get(item.name)
        if existing is None:
            merged[item.name] = item
            continue
        if strategy == DedupStrategy.NEWEST_WINS and item.modified > existing.modified:
            logger.debug("Duplicate %s: %s replaces %s", item.name,
                         getattr(item, 'source_path', '?'), getattr(existing, 'source_path', '?'))
            merged[item.name] = item
        else:
            logger.debug("Duplicate %s ignored: %s", item.name, getattr(item, 'source_path', '?'))
    return list(merged.values())


# ---------------------------------------------------------------------------
# Filesystem helpers
# ---------------------------------------------------------------------------

def is_hidden_component(name: str) -> bool:
    return name.startswith('.')


def _raise_walk_error(error: OSError):
    raise FileOperationError(f"Could not scan {error.filename}: {error}") from error


def walk_files(root: Path, max_depth: int) -> Iterator[Path]:
    """Yield regular files below ``root``, at most ``max_depth`` levels deep.

    Symlinks are never followed or yielded and hidden components (relative
    to ``root``) are skipped. A file directly inside ``root`` is at depth 1.
    """
    if not root.is_dir():
        return

    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error, followlinks=False):
        current = Path(dirpath)
        depth = len(current.relative_to(root).parts)

        if depth + 2 > max_depth:
            dirnames[:] = []
        else:
            dirnames[:] = sorted(
                d for d in dirnames
                if not is_hidden_component(d) and not (current / d).is_symlink()
            )

        for filename in sorted(filenames):
            if is_hidden_component(filename):
                continue
            path = current / filename
            if path.is_symlink() or not path.is_file():
                continue
            yield path


def find_named_dirs(root: Path, dirname: str, max_depth: int) -> List[Path]:
    """Find directories literally named ``dirname`` below ``root``.

    The search does not descend into a matched directory.
    """
    found: List[Path] = []
    if not root.is_dir():
        return found

    for dirpath, dirnames, _ in os.walk(root, onerror=_raise_walk_error, followlinks=False):
        current = Path(dirpath)
        depth = len(current.relative_to(root).parts)
        keep = []
        for d in sorted(dirnames):
            if is_hidden_component(d) or (current / d).is_symlink():
                continue
            if d == dirname:
                found.append(current / d)
            elif depth + 1 < max_depth:
                keep.append(d)
        dirnames[:] = keep
    return found


def file_mtime(path: Path) -> float:
    try:
        return path.stat().st_mtime
    except OSError as e:
        raise FileOperationError(f"Could not stat {path}: {e}") from e


def read_file_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise FileOperationError(f"Could not read {path}: {e}") from e


def write_file_bytes(path: Path, content: bytes):
    """Write bytes, creating parent directories as needed."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
    except OSError as e:
        raise FileOperationError(f"Could not write {path}: {e}") from e


def load_json_document(path: Path) -> dict:
    """Load a JSON settings file whose top level must be an object.

    A missing or blank file yields an empty dict. Anything unparseable raises
    MalformedConfigError so callers never overwrite data they cannot merge into.
    """
    if not path.exists():
        return {}

    try:
        text = path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise FileOperationError(f"Could not read {path}: {e}") from e

    if not text.strip():
        return {}

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedConfigError(path, str(e)) from e

    if not isinstance(data, dict):
        raise MalformedConfigError(path, "top-level value is not an object")
    return data


def save_json_document(path: Path, data: dict):
    """Serialize a whole settings document back to disk."""
    text = json.dumps(data, indent=2, ensure_ascii=False) + '\n'
    write_file_bytes(path, text.encode('utf-8'))
