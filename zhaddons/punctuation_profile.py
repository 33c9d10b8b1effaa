"""Per-language punctuation mapping tables."""

from __future__ import annotations

import os
import re
import tempfile
from collections.abc import Iterable
from dataclasses import dataclass
from os import PathLike
from pathlib import Path

PROFILE_PREFIX = "punc.mb."
WHITESPACE = " \t\r\n\v\f"
_SPLIT_RE = re.compile(r"[ \t\r\n\v\f]+")


@dataclass(frozen=True)
class PunctuationEntry:
    """A key and what it maps to, with an optional closing counterpart."""

    key: str
    mapping: str
    alt_mapping: str = ""


def _valid(text: str) -> bool:
    return not any(0xD800 <= ord(c) <= 0xDFFF for c in text)


def _key(unicode: int | str) -> str:
    return chr(unicode) if isinstance(unicode, int) else unicode


class PunctuationProfile:
    """The punctuation table of one language."""

    def __init__(self) -> None:
        self._map: dict[str, list[tuple[str, str]]] = {}
        self._entries: list[PunctuationEntry] = []
        self._defaults: list[PunctuationEntry] = []

    def _add(self, key: str, value: str, value2: str) -> None:
        self._map.setdefault(key, []).append((value, value2))
        self._entries.append(PunctuationEntry(key, value, value2))

    def _clear(self) -> None:
        self._map.clear()
        self._entries = []

    def load_system(self, lines: Iterable[str | bytes]) -> None:
        """Load the system table and make it the default entries."""
        self.load(lines)
        self._defaults = list(self._entries)

    def load(self, lines: Iterable[str | bytes]) -> None:
        """Replace the table with ``key mapping [alt_mapping]`` lines."""
        self._clear()
        for raw in lines:
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8", "surrogateescape")
            trimmed = raw.strip(WHITESPACE)
            if not trimmed:
                continue
            tokens = [t for t in _SPLIT_RE.split(trimmed) if t]
            if len(tokens) not in (2, 3):
                continue
            if not any(_valid(token) for token in tokens):
                continue
            # '#' is a valid key here, not a comment.
            if len(tokens[0]) != 1 or not _valid(tokens[0]):
                continue
            self._add(tokens[0], tokens[1], tokens[2] if len(tokens) > 2 else "")

    def reset_default_value(self) -> None:
        """Forget the configured and default entries."""
        self._entries = []
        self._defaults = []

    def set_entries(self, entries: Iterable[PunctuationEntry]) -> None:
        """Replace the table, skipping entries without a single-character key or mapping."""
        self._clear()
        for entry in entries:
            if not entry.key or not entry.mapping:
                continue
            if len(entry.key) != 1 or not _valid(entry.key):
                continue
            self._add(entry.key, entry.mapping, entry.alt_mapping)

    def entries(self) -> list[PunctuationEntry]:
        """The current entries in table order."""
        return list(self._entries)

    def default_entries(self) -> list[PunctuationEntry]:
        """The entries loaded from the system table."""
        return list(self._defaults)

    def dumps(self) -> str:
        """The table in its file format."""
        lines = []
        for entry in self._entries:
            line = f"{entry.key} {entry.mapping}"
            if entry.alt_mapping:
                line += f" {entry.alt_mapping}"
            lines.append(line + "\n")
        return "".join(lines)

    def save(self, path: str | PathLike[str]) -> None:
        """Write the table to ``path`` atomically."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8", errors="surrogateescape", newline="\n") as handle:
                handle.write(self.dumps())
            os.replace(tmp, target)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def get_punctuation(self, unicode: int | str) -> tuple[str, str]:
        """The first mapping of a key, or a pair of empty strings."""
        values = self._map.get(_key(unicode))
        if not values:
            return ("", "")
        return values[0]

    def get_punctuations(self, unicode: int | str) -> list[str]:
        """Every candidate of a key; a single entry yields only its first mapping."""
        values = self._map.get(_key(unicode))
        if not values:
            return []
        if len(values) == 1:
            return [values[0][0]]
        result = []
        for first, second in values:
            result.append(first)
            if second:
                result.append(second)
        return result