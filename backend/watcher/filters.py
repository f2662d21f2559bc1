"""
Sorta Ignore-Pattern Filter.

Recognizes partial downloads and lock files that must never be organized.
Requires Python 3.11+.
"""

import fnmatch
import os
import re
from functools import lru_cache

DEFAULT_IGNORE_PATTERNS: tuple[str, ...] = (
    "*.tmp",
    "*.part",
    "*.download",
    "*.crdownload",  # Chrome partial downloads
    "*.partial",
    ".~*",  # LibreOffice lock files (.~lock.report.odt#)
)

_GLOB_CHARS = frozenset("*?[")


def default_ignore_patterns() -> list[str]:
    """Return a fresh copy of the built-in ignore patterns."""
    return list(DEFAULT_IGNORE_PATTERNS)


def _normalize(pattern: str) -> str | None:
    """
    Rewrite a shell glob into the dialect fnmatch understands.

    ``\\c`` escapes c, ``[^...]`` negates like ``[!...]`` and a leading
    ``]`` is a class member. Returns None for an unclosed character
    class or a trailing backslash.
    """
    out: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        c = pattern[i]
        if c == "\\":
            if i + 1 >= n:
                return None
            escaped = pattern[i + 1]
            # fnmatch has no escapes; a one-member class is the literal
            out.append(f"[{escaped}]" if escaped in "*?[]" else escaped)
            i += 2
            continue
        if c != "[":
            out.append(c)
            i += 1
            continue

        j = i + 1
        negate = j < n and pattern[j] in "!^"
        if negate:
            j += 1
        members: list[str] = []
        if j < n and pattern[j] == "]":
            members.append("]")
            j += 1
        while j < n and pattern[j] != "]":
            if pattern[j] == "\\":
                if j + 1 >= n:
                    return None
                j += 1
            members.append(pattern[j])
            j += 1
        if j >= n:
            return None

        # fnmatch reads ] as a member only first, and ! first as negation
        if "]" in members[1:]:
            members.remove("]")
            members.insert(0, "]")
        if members[0] == "!":
            members.append(members.pop(0))
        out.append("[" + ("!" if negate else "") + "".join(members) + "]")
        i = j + 1
    return "".join(out)


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str] | None:
    """Compile a glob to a regex, or None if the glob is malformed."""
    normalized = _normalize(pattern)
    if normalized is None:
        return None
    try:
        return re.compile(fnmatch.translate(normalized))
    except re.error:
        return None


def _is_extension_pattern(pattern: str) -> bool:
    return pattern.startswith(".") and not (_GLOB_CHARS & set(pattern))


class FileFilter:
    """
    Decides whether a path names a transient file.

    Patterns are matched against the base name only. Globs are
    case-sensitive; a plain extension such as ``.tmp`` additionally
    matches as a case-insensitive suffix, so it also catches ``FILE.TMP``.
    """

    def __init__(self, patterns: list[str] | tuple[str, ...] | None = None) -> None:
        """
        Initialize the filter.

        Args:
            patterns: Glob patterns to ignore; None or empty selects the defaults
        """
        self._patterns: list[str] = list(patterns) if patterns else default_ignore_patterns()

    def should_ignore(self, path: str | os.PathLike[str]) -> bool:
        """Check if the file name matches any ignore pattern."""
        filename = os.path.basename(os.fspath(path))
        lowered = filename.lower()

        for pattern in self._patterns:
            regex = _compile(pattern)
            if regex is not None and regex.match(filename):
                return True
            if _is_extension_pattern(pattern) and lowered.endswith(pattern.lower()):
                return True
        return False

    def get_patterns(self) -> list[str]:
        """Get a copy of the current ignore patterns."""
        return list(self._patterns)

    def add_pattern(self, pattern: str) -> None:
        """Append a pattern to the filter."""
        self._patterns.append(pattern)


def is_temporary_file(path: str | os.PathLike[str]) -> bool:
    """Check a path against the default ignore patterns."""
    return FileFilter().should_ignore(path)
