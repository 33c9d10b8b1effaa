"""Look up Chinese characters by their stroke sequence, with fuzzy matching."""

from __future__ import annotations

import heapq
import itertools
import re
from bisect import bisect_left
from collections.abc import Iterable, Iterator
from concurrent.futures import Future, ThreadPoolExecutor
from os import PathLike
from pathlib import Path

STROKE_DIGITS = "12345"
WHITESPACE = " \t\r\n\v\f"

DELETION_WEIGHT = 5
INSERTION_WEIGHT = 5
SUBSTITUTION_WEIGHT = 5
TRANSPOSITION_WEIGHT = 5
MAX_WEIGHT = 10

_STROKE_TABLE = ("一", "丨", "丿", "㇏", "𠃍")
_WHITESPACE_RE = re.compile(r"[ \t\r\n\v\f]")


def pretty_string(strokes: str) -> str:
    """Render a digit stroke sequence as stroke glyphs; invalid input gives ''."""
    parts = []
    for char in strokes:
        if char not in STROKE_DIGITS:
            return ""
        parts.append(_STROKE_TABLE[ord(char) - ord("1")])
    return "".join(parts)


class _KeySet:
    """Sorted keys supporting prefix tests and ordered prefix iteration."""

    def __init__(self, keys: Iterable[str] = ()) -> None:
        self._keys = sorted(set(keys))

    def has_prefix(self, prefix: str) -> bool:
        index = bisect_left(self._keys, prefix)
        return index < len(self._keys) and self._keys[index].startswith(prefix)

    def with_prefix(self, prefix: str) -> Iterator[str]:
        index = bisect_left(self._keys, prefix)
        while index < len(self._keys) and self._keys[index].startswith(prefix):
            yield self._keys[index]
            index += 1


def _build(lines: Iterable[str | bytes]) -> tuple[_KeySet, _KeySet]:
    forward: set[str] = set()
    reverse: set[str] = set()
    for raw in lines:
        if isinstance(raw, bytes):
            try:
                raw = raw.decode("utf-8")
            except UnicodeDecodeError:
                continue
        line = raw.strip(WHITESPACE)
        if not line or line.startswith("#"):
            continue
        match = _WHITESPACE_RE.search(line)
        if match is None:
            continue
        key = line[: match.start()]
        value = line[match.start() + 1:].strip(WHITESPACE)
        if len(value) != 1 or any(c not in STROKE_DIGITS for c in key):
            continue
        forward.add(f"{key}|{value}")
        reverse.add(f"{value}|{key}")
    return _KeySet(forward), _KeySet(reverse)


class Stroke:
    """Stroke dictionary read from a file of ``<strokes> <character>`` lines."""

    def __init__(self, path: str | PathLike[str] | None = None) -> None:
        self.path = None if path is None else Path(path)
        self._dict = _KeySet()
        self._reverse = _KeySet()
        self._loaded = False
        self._load_result = False
        self._future: Future[tuple[_KeySet, _KeySet]] | None = None

    def _read_file(self) -> tuple[_KeySet, _KeySet]:
        if self.path is None:
            raise FileNotFoundError("Failed to open file")
        return _build(self.path.read_bytes().split(b"\n"))

    def load_async(self) -> None:
        """Start reading the dictionary file in the background, once."""
        if self._future is not None:
            return
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="stroke")
        self._future = executor.submit(self._read_file)
        executor.shutdown(wait=False)

    def load(self) -> bool:
        """Wait for the dictionary; the first call reports True even on failure."""
        if self._loaded:
            return self._load_result
        if self._future is None:
            self.load_async()
        try:
            self._dict, self._reverse = self._future.result()
            self._load_result = True
        except Exception:
            self._load_result = False
        self._loaded = True
        return True

    def load_lines(self, lines: Iterable[str | bytes]) -> None:
        """Replace the dictionary with the given lines and mark it loaded."""
        self._dict, self._reverse = _build(lines)
        self._loaded = True
        self._load_result = True

    def lookup(self, strokes: str, limit: int) -> list[tuple[str, str]]:
        """Find characters for a stroke sequence, allowing one edit.

        Returns (character, strokes) pairs; a limit of zero or less means
        no limit once the search has started.
        """
        result: list[tuple[str, str]] = []
        seen: set[str] = set()

        def add(hanzi: str, sequence: str) -> None:
            if sequence not in seen:
                seen.add(sequence)
                result.append((hanzi, sequence))

        matches = self._dict.with_prefix(strokes)
        first = next(matches, None)
        if first is not None and next(matches, None) is None:
            head, sep, tail = first.rpartition("|")
            if sep:
                add(tail, head)
        if limit >= 0 and len(result) >= limit:
            return result

        heap: list[tuple[int, int, str, str]] = []
        counter = itertools.count()

        def push(prefix: str, remain: str, weight: int) -> None:
            if weight >= MAX_WEIGHT:
                return
            heapq.heappush(heap, (weight, next(counter), prefix, remain))

        push("", strokes, 0)
        while heap:
            weight, _, prefix, remain = heapq.heappop(heap)
            if not remain:
                full = False
                for key in self._dict.with_prefix(prefix + "|"):
                    add(key[len(prefix) + 1:], key[: len(prefix)])
                    if not (limit <= 0 or len(result) < limit):
                        full = True
                        break
                if full:
                    break

            if remain:
                push(prefix, remain[1:], weight + DELETION_WEIGHT)

            for digit in STROKE_DIGITS:
                nxt = prefix + digit
                if not self._dict.has_prefix(nxt):
                    continue
                if remain and remain[0] == digit:
                    push(nxt, remain[1:], weight)
                else:
                    push(nxt, remain, weight + INSERTION_WEIGHT)
                    if remain:
                        push(nxt, remain[1:], weight + SUBSTITUTION_WEIGHT)
                if len(remain) >= 2 and remain[1] == digit:
                    swapped = nxt + remain[0]
                    if self._dict.has_prefix(swapped):
                        push(swapped, remain[2:], weight + TRANSPOSITION_WEIGHT)
        return result

    def reverse_lookup(self, hanzi: str) -> str:
        """The stroke sequence of a character, or '' when missing or ambiguous."""
        prefix = hanzi + "|"
        matches = self._reverse.with_prefix(prefix)
        first = next(matches, None)
        if first is None or next(matches, None) is not None:
            return ""
        return first[len(prefix):]

    def pretty_string(self, strokes: str) -> str:
        """Render a digit stroke sequence as stroke glyphs."""
        return pretty_string(strokes)