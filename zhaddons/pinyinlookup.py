"""Look up the pinyin readings of a Chinese character."""

from __future__ import annotations

from dataclasses import dataclass
from os import PathLike
from pathlib import Path

UTF8_MAX_LENGTH = 6

_VOCALS: tuple[tuple[str, ...], ...] = (
    ("", "", "", "", ""),
    ("a", "ā", "á", "ǎ", "à"),
    ("ai", "āi", "ái", "ǎi", "ài"),
    ("an", "ān", "án", "ǎn", "àn"),
    ("ang", "āng", "áng", "ǎng", "àng"),
    ("ao", "āo", "áo", "ǎo", "ào"),
    ("e", "ē", "é", "ě", "è"),
    ("ei", "ēi", "éi", "ěi", "èi"),
    ("en", "ēn", "én", "ěn", "èn"),
    ("eng", "ēng", "éng", "ěng", "èng"),
    ("er", "ēr", "ér", "ěr", "èr"),
    ("i", "ī", "í", "ǐ", "ì"),
    ("ia", "iā", "iá", "iǎ", "ià"),
    ("ian", "iān", "ián", "iǎn", "iàn"),
    ("iang", "iāng", "iáng", "iǎng", "iàng"),
    ("iao", "iāo", "iáo", "iǎo", "iào"),
    ("ie", "iē", "ié", "iě", "iè"),
    ("in", "īn", "ín", "ǐn", "ìn"),
    ("ing", "īng", "íng", "ǐng", "ìng"),
    ("iong", "iōng", "ióng", "iǒng", "iòng"),
    ("iu", "iū", "iú", "iǔ", "iù"),
    ("m", "m", "m", "m", "m"),
    ("n", "n", "ń", "ň", "ǹ"),
    ("ng", "ng", "ńg", "ňg", "ǹg"),
    ("o", "ō", "ó", "ǒ", "ò"),
    ("ong", "ōng", "óng", "ǒng", "òng"),
    ("ou", "ōu", "óu", "ǒu", "òu"),
    ("u", "ū", "ú", "ǔ", "ù"),
    ("ua", "uā", "uá", "uǎ", "uà"),
    ("uai", "uāi", "uái", "uǎi", "uài"),
    ("uan", "uān", "uán", "uǎn", "uàn"),
    ("uang", "uāng", "uáng", "uǎng", "uàng"),
    ("ue", "uē", "ué", "uě", "uè"),
    ("ueng", "uēng", "uéng", "uěng", "uèng"),
    ("ui", "uī", "uí", "uǐ", "uì"),
    ("un", "ūn", "ún", "ǔn", "ùn"),
    ("uo", "uō", "uó", "uǒ", "uò"),
    ("ü", "ǖ", "ǘ", "ǚ", "ǜ"),
    ("üan", "üān", "üán", "üǎn", "üàn"),
    ("üe", "üē", "üé", "üě", "üè"),
    ("ün", "ǖn", "ǘn", "ǚn", "ǜn"),
)

_CONSONANTS: tuple[str, ...] = (
    "", "b", "c", "ch", "d", "f", "g", "h", "j", "k", "l", "m", "n",
    "ng", "p", "q", "r", "s", "sh", "t", "w", "x", "y", "z", "zh",
)


def vocal(index: int, tone: int) -> str:
    """The final for ``index`` marked with ``tone``; unknown tones give no mark."""
    if not 0 <= index < len(_VOCALS):
        return ""
    if not 0 <= tone <= 4:
        tone = 0
    return _VOCALS[index][tone]


def consonant(index: int) -> str:
    """The initial for ``index``, or an empty string when out of range."""
    if not 0 <= index < len(_CONSONANTS):
        return ""
    return _CONSONANTS[index]


@dataclass(frozen=True)
class PinyinLookupData:
    """One reading of a character as table indices."""

    consonant: int
    vocal: int
    tone: int


def parse_py_table(data: bytes) -> dict[str, list[PinyinLookupData]]:
    """Parse a binary pinyin table.

    Each record is a length byte, that many bytes of one UTF-8 character,
    a count byte and ``count`` triples of (consonant, vocal, tone) bytes.
    Raises ValueError on malformed data.
    """
    table: dict[str, list[PinyinLookupData]] = {}
    pos = 0
    size = len(data)
    while pos < size:
        word_len = data[pos]
        pos += 1
        if word_len > UTF8_MAX_LENGTH:
            raise ValueError(f"word length {word_len} too large")
        if pos + word_len > size:
            raise ValueError("truncated word")
        raw = data[pos:pos + word_len].split(b"\x00", 1)[0]
        pos += word_len
        try:
            word = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ValueError("invalid UTF-8 word") from exc
        if len(word) != 1:
            raise ValueError("word is not a single character")
        if pos >= size:
            raise ValueError("truncated count")
        count = data[pos]
        pos += 1
        if count == 0:
            continue
        if pos + 3 * count > size:
            raise ValueError("truncated readings")
        readings = table.setdefault(word, [])
        for offset in range(pos, pos + 3 * count, 3):
            readings.append(PinyinLookupData(*data[offset:offset + 3]))
        pos += 3 * count
    return table


def _char(hz: str | int) -> str:
    return chr(hz) if isinstance(hz, int) else hz


class PinyinLookup:
    """Character to pinyin lookup backed by a binary table file, loaded once."""

    def __init__(self, path: str | PathLike[str] | None = None) -> None:
        self.path = None if path is None else Path(path)
        self._data: dict[str, list[PinyinLookupData]] = {}
        self._loaded = False
        self._load_result = False

    def load(self) -> bool:
        """Load the table on first call; report whether it succeeded."""
        if self._loaded:
            return self._load_result
        self._loaded = True
        if self.path is None:
            return False
        try:
            raw = self.path.read_bytes()
            self._data = parse_py_table(raw)
        except (OSError, ValueError):
            return False
        self._load_result = True
        return True

    def _readings(self, hz: str | int):
        for data in self._data.get(_char(hz), ()):
            c = consonant(data.consonant)
            v = vocal(data.vocal, data.tone)
            if not c and not v:
                continue
            yield data, c, v

    def lookup(self, hz: str | int) -> list[str]:
        """Toned pinyin readings of a character."""
        return [c + v for _, c, v in self._readings(hz)]

    def full_lookup(self, hz: str | int) -> list[tuple[str, str, int]]:
        """Readings as (toned pinyin, pinyin without tone, tone)."""
        return [
            (c + v, c + vocal(data.vocal, 0), data.tone)
            for data, c, v in self._readings(hz)
        ]