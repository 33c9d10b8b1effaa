"""Toggle Simplified/Traditional Chinese conversion per input method."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from os import PathLike
from pathlib import Path
from typing import Any

from zhaddons.chttrans_native import ChttransBackend, NativeBackend

DEFAULT_HOTKEY = "Control+Shift+F"


class ChttransIMType(Enum):
    """The script an input method produces, or that conversion targets."""

    SIMP = "Simp"
    TRAD = "Trad"
    OTHER = "Other"


class ChttransEngine(Enum):
    """Available conversion engines."""

    NATIVE = "Native"
    OPENCC = "OpenCC"


@dataclass
class ChttransConfig:
    """Settings of the conversion addon."""

    engine: ChttransEngine = ChttransEngine.OPENCC
    hotkey: list[str] = field(default_factory=lambda: [DEFAULT_HOTKEY])
    enabled_im: list[str] = field(default_factory=list)
    opencc_s2t_profile: str = "default"
    opencc_t2s_profile: str = "default"


@dataclass(frozen=True)
class InputMethodInfo:
    """The input method active in an input context."""

    unique_name: str
    language_code: str


def input_method_type(language_code: str) -> ChttransIMType:
    """Classify an input method by its language code."""
    if language_code == "zh_CN":
        return ChttransIMType.SIMP
    if language_code in ("zh_HK", "zh_TW"):
        return ChttransIMType.TRAD
    return ChttransIMType.OTHER


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1].replace('\\"', '"').replace("\\\\", "\\")
    return value


def _numbered(values: Mapping[str, str]) -> list[str]:
    items = []
    for key, value in values.items():
        try:
            items.append((int(key), value))
        except ValueError:
            continue
    return [value for _, value in sorted(items)]


def load_config(path: str | PathLike[str]) -> ChttransConfig:
    """Read a configuration file; a missing file gives the defaults."""
    config = ChttransConfig()
    try:
        text = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        return config

    sections: dict[str, dict[str, str]] = {"": {}}
    current = ""
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("[") and line.endswith("]"):
            current = line[1:-1].strip()
            sections.setdefault(current, {})
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        sections.setdefault(current, {})[key.strip()] = _unquote(value.strip())

    top = sections[""]
    if "Engine" in top:
        try:
            config.engine = ChttransEngine(top["Engine"])
        except ValueError:
            pass
    config.opencc_s2t_profile = top.get("OpenCCS2TProfile", config.opencc_s2t_profile)
    config.opencc_t2s_profile = top.get("OpenCCT2SProfile", config.opencc_t2s_profile)
    if "Hotkey" in sections:
        config.hotkey = _numbered(sections["Hotkey"])
    if "EnabledIM" in sections:
        config.enabled_im = _numbered(sections["EnabledIM"])
    return config


def save_config(config: ChttransConfig, path: str | PathLike[str]) -> None:
    """Write the configuration atomically."""
    lines = [
        f"Engine={config.engine.value}",
        f"OpenCCS2TProfile={config.opencc_s2t_profile}",
        f"OpenCCT2SProfile={config.opencc_t2s_profile}",
        "",
        "[Hotkey]",
        *(f"{i}={key}" for i, key in enumerate(config.hotkey)),
        "",
        "[EnabledIM]",
        *(f"{i}={name}" for i, name in enumerate(config.enabled_im)),
        "",
    ]
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
            handle.write("\n".join(lines))
        os.replace(tmp, target)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


class Chttrans:
    """Per input method switch between Simplified and Traditional output."""

    def __init__(
        self,
        config: ChttransConfig | None = None,
        backends: Mapping[ChttransEngine, ChttransBackend] | None = None,
    ) -> None:
        self.config = config if config is not None else ChttransConfig()
        self._backends: dict[ChttransEngine, ChttransBackend] = (
            dict(backends)
            if backends is not None
            else {ChttransEngine.NATIVE: NativeBackend()}
        )
        self._current: ChttransBackend | None = None
        self._enabled: set[str] = set()
        self.populate_config()

    def populate_config(self) -> None:
        """Apply the current configuration to state and backends."""
        self._enabled = set(self.config.enabled_im)
        for backend in self._backends.values():
            if backend.loaded():
                backend.update_config(self.config)
        engine = self.config.engine
        backend = self._backends.get(engine)
        if backend is None and engine != ChttransEngine.NATIVE:
            backend = self._backends.get(ChttransEngine.NATIVE)
        self._current = backend

    def set_config(self, config: ChttransConfig) -> None:
        """Replace the configuration and apply it."""
        self.config = config
        self.populate_config()

    def enabled_im(self) -> frozenset[str]:
        """Unique names of input methods with conversion turned on."""
        return frozenset(self._enabled)

    def _im_type(self, im: InputMethodInfo | None) -> ChttransIMType:
        if im is None:
            return ChttransIMType.OTHER
        return input_method_type(im.language_code)

    @staticmethod
    def _flip(im_type: ChttransIMType) -> ChttransIMType:
        return ChttransIMType.TRAD if im_type == ChttransIMType.SIMP else ChttransIMType.SIMP

    def convert_type(self, im: InputMethodInfo | None) -> ChttransIMType:
        """The direction to convert to, or OTHER when nothing is converted."""
        im_type = self._im_type(im)
        if im_type == ChttransIMType.OTHER or im.unique_name not in self._enabled:
            return ChttransIMType.OTHER
        return self._flip(im_type)

    def current_type(self, im: InputMethodInfo | None) -> ChttransIMType:
        """The script actually produced, considering conversion."""
        im_type = self._im_type(im)
        if im_type == ChttransIMType.OTHER:
            return ChttransIMType.OTHER
        if im.unique_name not in self._enabled:
            return im_type
        return self._flip(im_type)

    def convert(self, im_type: ChttransIMType, text: str) -> str:
        """Convert ``text`` towards ``im_type`` with the current backend."""
        if self._current is None or not self._current.load(self.config):
            return text
        if im_type == ChttransIMType.TRAD:
            return self._current.convert_simp_to_trad(text)
        return self._current.convert_trad_to_simp(text)

    def _sync_to_config(self) -> None:
        self.config.enabled_im = sorted(self._enabled)

    def toggle(self, im: InputMethodInfo | None) -> None:
        """Turn conversion on or off for the given input method."""
        if self._im_type(im) == ChttransIMType.OTHER:
            return
        self._enabled ^= {im.unique_name}
        self._sync_to_config()

    def handle_key(self, im: InputMethodInfo | None, key: str, is_release: bool = False) -> bool:
        """Toggle on the hotkey; return True when the key was consumed."""
        if is_release:
            return False
        if self.current_type(im) == ChttransIMType.OTHER:
            return False
        if key in self.config.hotkey:
            self.toggle(im)
            return True
        return False

    def filter_commit(self, im: InputMethodInfo | None, text: str) -> str:
        """Convert committed text when conversion is on."""
        im_type = self.convert_type(im)
        if im_type == ChttransIMType.OTHER:
            return text
        return self.convert(im_type, text)

    def filter_output(
        self,
        im: InputMethodInfo | None,
        segments: Sequence[tuple[str, Any]],
        cursor: int,
    ) -> tuple[list[tuple[str, Any]], int]:
        """Convert formatted text, keeping segment formats and the cursor.

        ``cursor`` is a character offset; a negative value means no cursor.
        """
        segments = list(segments)
        old = "".join(text for text, _ in segments)
        if not old:
            return segments, cursor
        im_type = self.convert_type(im)
        if im_type == ChttransIMType.OTHER:
            return segments, cursor
        new = self.convert(im_type, old)

        if len(segments) == 1:
            result = [(new, segments[0][1])]
        else:
            result = []
            offset = 0
            remain = len(new)
            for text, fmt in segments:
                length = min(remain, len(text))
                remain -= length
                result.append((new[offset:offset + length], fmt))
                offset += length

        if cursor > 0:
            cursor = min(len(old[:cursor]), len(new))
        return result, cursor

    def short_text(self, im: InputMethodInfo | None) -> str:
        """Label of the toggle action."""
        if self.current_type(im) == ChttransIMType.TRAD:
            return "Traditional Chinese"
        return "Simplified Chinese"

    def icon(self, im: InputMethodInfo | None) -> str:
        """Icon name of the toggle action."""
        if self.current_type(im) == ChttransIMType.TRAD:
            return "fcitx-chttrans-active"
        return "fcitx-chttrans-inactive"


def _iter_backends(chttrans: Chttrans) -> Iterable[ChttransBackend]:
    return chttrans._backends.values()