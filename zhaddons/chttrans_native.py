"""Simplified and Traditional Chinese conversion from a character table."""

from __future__ import annotations

import abc
from collections.abc import Iterable, Mapping
from os import PathLike
from pathlib import Path
from typing import Any

TABLE_GBKS2T = "chttrans/gbks2t.tab"


def convert_with_map(mapping: Mapping[str, str], text: str) -> str:
    """Replace every character of ``text`` that has an entry in ``mapping``."""
    return "".join(mapping.get(char, char) for char in text)


def _valid_char(char: str) -> bool:
    return not 0xD800 <= ord(char) <= 0xDFFF


class ChttransBackend(abc.ABC):
    """A conversion engine that loads its data once, on first use."""

    def __init__(self) -> None:
        self._loaded = False
        self._load_result = False

    def load(self, config: Any = None) -> bool:
        """Load the backend data once and report whether that succeeded."""
        if not self._loaded:
            self._load_result = bool(self._load_once(config))
            self._loaded = True
        return self._load_result

    def loaded(self) -> bool:
        """True when loading was attempted and succeeded."""
        return self._loaded and self._load_result

    def update_config(self, config: Any) -> None:
        """Apply a new configuration; the base backend keeps no settings."""

    @abc.abstractmethod
    def convert_simp_to_trad(self, text: str) -> str:
        """Convert Simplified Chinese to Traditional Chinese."""

    @abc.abstractmethod
    def convert_trad_to_simp(self, text: str) -> str:
        """Convert Traditional Chinese to Simplified Chinese."""

    @abc.abstractmethod
    def _load_once(self, config: Any) -> bool:
        """Do the actual loading."""


class NativeBackend(ChttransBackend):
    """Character by character conversion from a two-column table.

    Each table line starts with a simplified character followed by its
    traditional counterpart. Without a table path, loading succeeds with
    whatever was added through :meth:`load_lines`.
    """

    def __init__(self, table_path: str | PathLike[str] | None = None) -> None:
        super().__init__()
        self.table_path = None if table_path is None else Path(table_path)
        self._s2t: dict[str, str] = {}
        self._t2s: dict[str, str] = {}

    def _load_once(self, config: Any) -> bool:
        if self.table_path is None:
            return True
        try:
            raw = self.table_path.read_bytes()
        except OSError:
            return False
        self.load_lines(
            line.decode("utf-8", "surrogateescape") for line in raw.split(b"\n")
        )
        return True

    def load_lines(self, lines: Iterable[str]) -> None:
        """Add table lines; the first mapping of a character wins."""
        for line in lines:
            line = line.removesuffix("\n")
            if len(line) < 2:
                continue
            simp, trad = line[0], line[1]
            if not (_valid_char(simp) and _valid_char(trad)):
                continue
            self._s2t.setdefault(simp, trad)
            self._t2s.setdefault(trad, simp)

    def convert_simp_to_trad(self, text: str) -> str:
        return convert_with_map(self._s2t, text)

    def convert_trad_to_simp(self, text: str) -> str:
        return convert_with_map(self._t2s, text)