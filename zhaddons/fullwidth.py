"""Type full width forms of ASCII characters."""

from __future__ import annotations

from collections.abc import Iterable

_FIRST = 32
_CORNER_TRANS: tuple[str, ...] = tuple(
    "\u3000" if code == 32 else "\uffe5" if code == 36 else chr(code + 0xFEE0)
    for code in range(32, 127)
)


def fullwidth_char(code: int) -> str | None:
    """The full width form of an ASCII code point from space to tilde."""
    if _FIRST <= code < _FIRST + len(_CORNER_TRANS):
        return _CORNER_TRANS[code - _FIRST]
    return None


def to_fullwidth(text: str) -> str:
    """Convert printable ASCII in ``text``, leaving spaces as they are."""
    result = []
    for char in text:
        code = ord(char)
        converted = fullwidth_char(code) if code > _FIRST else None
        result.append(converted if converted is not None else char)
    return "".join(result)


class Fullwidth:
    """Switchable full width character input."""

    def __init__(self, hotkeys: Iterable[str] = ()) -> None:
        self.hotkeys = list(hotkeys)
        self.enabled = False

    def set_enabled(self, enabled: bool) -> None:
        """Turn full width input on or off."""
        self.enabled = enabled

    def process_key(
        self, key: str, sym: int, has_modifiers: bool = False, is_release: bool = False
    ) -> tuple[bool, str | None]:
        """Handle a key press.

        Returns ``(accepted, commit)``: whether the key was consumed and the
        text to commit for it, if any.
        """
        if is_release:
            return (False, None)
        if key in self.hotkeys:
            self.set_enabled(not self.enabled)
            return (True, None)
        if not self.enabled or has_modifiers:
            return (False, None)
        converted = fullwidth_char(sym)
        if converted is None:
            return (False, None)
        return (True, converted)

    def filter_commit(self, text: str) -> str:
        """Convert committed text when full width input is on."""
        if not self.enabled:
            return text
        return to_fullwidth(text)

    def short_text(self) -> str:
        """Label of the toggle action."""
        return "Full width Character" if self.enabled else "Half width Character"

    def icon(self) -> str:
        """Icon name of the toggle action."""
        return "fcitx-fullwidth-active" if self.enabled else "fcitx-fullwidth-inactive"