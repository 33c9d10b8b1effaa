"""Per input context state used when converting punctuation."""

from __future__ import annotations

from dataclasses import dataclass, field

PUNCTUATION_MAP_PREFIX = "punctuationmap/"


@dataclass
class PunctuationConfig:
    """Settings of the punctuation addon."""

    hotkey: list[str] = field(default_factory=lambda: ["Control+period"])
    half_width_punc_after_latin_or_number: bool = True
    type_paired_punctuation_together: bool = False
    enabled: bool = True


def lang_by_path(path: str) -> str:
    """The language named by a sub configuration path, or ''."""
    if path.startswith(PUNCTUATION_MAP_PREFIX):
        return path[len(PUNCTUATION_MAP_PREFIX):]
    return ""


def _char(unicode: int | str | None) -> str:
    if unicode is None:
        return ""
    return chr(unicode) if isinstance(unicode, int) else unicode


def dont_convert_when_en(unicode: int | str | None) -> bool:
    """Whether a key stays half width right after a letter or digit."""
    return _char(unicode) in (".", ",")


def _is_ascii_alnum(char: str) -> bool:
    return len(char) == 1 and char.isascii() and char.isalnum()


@dataclass
class PunctuationState:
    """What was typed recently in one input context.

    ``last_punc_stack`` maps an opening key to the punctuation emitted for it,
    so the next press of that key emits the closing counterpart.
    """

    last_punc_stack: dict[str, str] = field(default_factory=dict)
    last_is_eng_or_digit: str = ""
    not_converted: str = ""
    may_rebuild_state_from_surrounding_text: bool = False
    last_punc_stack_backup: dict[str, str] = field(default_factory=dict)
    not_converted_backup: str = ""

    def on_commit(self, sentence: str) -> None:
        """Remember whether committed text ended with a letter or digit."""
        if sentence and _is_ascii_alnum(sentence[-1]):
            self.last_is_eng_or_digit = sentence[-1]
        else:
            self.last_is_eng_or_digit = ""

    def on_key(self, char: str | None, accepted: bool = False, is_release: bool = False) -> None:
        """Track a key press that the input method did not consume."""
        if is_release or accepted:
            return
        if char and _is_ascii_alnum(char):
            self.last_is_eng_or_digit = char
        else:
            self.last_is_eng_or_digit = ""

    def on_focus_in(self, surrounding_supported: bool) -> None:
        """Allow rebuilding state from surrounding text after focus."""
        if surrounding_supported:
            self.may_rebuild_state_from_surrounding_text = True

    def on_reset(self, surrounding_supported: bool) -> None:
        """Clear state, keeping a backup to restore from surrounding text."""
        self.last_is_eng_or_digit = ""
        self.not_converted_backup = self.not_converted
        self.not_converted = ""
        self.last_punc_stack_backup = dict(self.last_punc_stack)
        self.last_punc_stack.clear()
        if surrounding_supported:
            self.may_rebuild_state_from_surrounding_text = True

    def on_surrounding_text_updated(
        self, text: str | None, cursor: int, surrounding_supported: bool
    ) -> None:
        """Restore backed up state that still matches the text before the cursor.

        ``text`` is None when the surrounding text is not valid; ``cursor``
        is a character offset.
        """
        if self.may_rebuild_state_from_surrounding_text:
            self.may_rebuild_state_from_surrounding_text = False
        else:
            self.not_converted_backup = ""
            self.last_punc_stack_backup.clear()
            return
        if not surrounding_supported or text is None:
            return
        if cursor <= 0 or cursor > len(text):
            return
        last = text[cursor - 1]
        if _is_ascii_alnum(last):
            self.last_is_eng_or_digit = last
        if (
            self.not_converted_backup
            and last == self.not_converted_backup
            and not self.not_converted
        ):
            self.not_converted = self.not_converted_backup
        self.not_converted_backup = ""
        if self.last_punc_stack_backup and not self.last_punc_stack:
            for char in text[:cursor]:
                for key, value in self.last_punc_stack_backup.items():
                    if value == char:
                        self.last_punc_stack.setdefault(key, value)
                        break
        self.last_punc_stack_backup.clear()