"""Convert typed punctuation to its full width, language specific form."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from os import PathLike
from pathlib import Path

from zhaddons.punctuation_profile import PROFILE_PREFIX, PunctuationEntry, PunctuationProfile
from zhaddons.punctuation_state import (
    PunctuationConfig,
    PunctuationState,
    dont_convert_when_en,
    lang_by_path,
)

_LOG = logging.getLogger(__name__)

_EMPTY_PAIR = ("", "")


def _key(unicode: int | str) -> str:
    return chr(unicode) if isinstance(unicode, int) else unicode


def _profile_files(directory: str | PathLike[str] | None) -> dict[str, Path]:
    if directory is None:
        return {}
    base = Path(directory)
    if not base.is_dir():
        return {}
    return {
        path.name: path
        for path in sorted(base.iterdir())
        if path.name.startswith(PROFILE_PREFIX) and path.is_file()
    }


def _read_lines(path: Path) -> list[bytes]:
    return path.read_bytes().split(b"\n")


class Punctuation:
    """Maps punctuation keys per language and tracks paired punctuation."""

    def __init__(
        self,
        config: PunctuationConfig | None = None,
        profiles: Mapping[str, PunctuationProfile] | None = None,
    ) -> None:
        self.config = config if config is not None else PunctuationConfig()
        self.profiles: dict[str, PunctuationProfile] = dict(profiles or {})

    def load_profiles(
        self,
        system_dir: str | PathLike[str] | None,
        user_dir: str | PathLike[str] | None = None,
    ) -> None:
        """Load ``punc.mb.<lang>`` files; user files refine the system ones."""
        system_files = _profile_files(system_dir)
        user_files = _profile_files(user_dir)
        all_files = {**system_files, **user_files}

        for lang in list(self.profiles):
            if PROFILE_PREFIX + lang not in all_files:
                del self.profiles[lang]

        for name in sorted(all_files):
            lang = name[len(PROFILE_PREFIX):]
            if not lang:
                continue
            system_path = system_files.get(name)
            user_path = user_files.get(name)
            profile = self.profiles.setdefault(lang, PunctuationProfile())
            try:
                if system_path is not None:
                    profile.load_system(_read_lines(system_path))
                else:
                    profile.reset_default_value()
                if user_path is not None and user_path != system_path:
                    profile.load(_read_lines(user_path))
            except OSError as exc:
                _LOG.warning("Error when load profile %s: %s", name, exc)

    def enabled(self) -> bool:
        """Whether full width punctuation is on."""
        return self.config.enabled

    def set_enabled(self, enabled: bool) -> None:
        """Turn full width punctuation on or off."""
        self.config.enabled = enabled

    def short_text(self) -> str:
        """Label of the toggle action."""
        return "Full width punctuation" if self.enabled() else "Half width punctuation"

    def icon(self) -> str:
        """Icon name of the toggle action."""
        return "fcitx-punc-active" if self.enabled() else "fcitx-punc-inactive"

    def process_hotkey(self, key: str, is_release: bool = False) -> bool:
        """Toggle on the hotkey; return True when the key was consumed."""
        if is_release:
            return False
        if key in self.config.hotkey:
            self.set_enabled(not self.enabled())
            return True
        return False

    def get_punctuation(self, language: str, unicode: int | str) -> tuple[str, str]:
        """The first mapping of a key in a language, or two empty strings."""
        if not self.config.enabled:
            return _EMPTY_PAIR
        profile = self.profiles.get(language)
        if profile is None:
            return _EMPTY_PAIR
        return profile.get_punctuation(unicode)

    def get_punctuations(self, language: str, unicode: int | str) -> list[str]:
        """All candidates of a key in a language."""
        if not self.config.enabled:
            return []
        profile = self.profiles.get(language)
        if profile is None:
            return []
        return profile.get_punctuations(unicode)

    def _should_skip(self, state: PunctuationState, char: str) -> bool:
        if (
            state.last_is_eng_or_digit
            and self.config.half_width_punc_after_latin_or_number
            and dont_convert_when_en(char)
        ):
            state.not_converted = char
            return True
        return False

    def push_punctuation(
        self, language: str, state: PunctuationState, unicode: int | str
    ) -> str:
        """The punctuation to emit for a key, alternating paired symbols."""
        if not self.enabled():
            return ""
        char = _key(unicode)
        if self._should_skip(state, char):
            return ""
        if language not in self.profiles:
            return ""
        first, second = self.get_punctuation(language, char)
        state.not_converted = ""
        if not second:
            return first
        if char in state.last_punc_stack:
            del state.last_punc_stack[char]
            return second
        state.last_punc_stack[char] = first
        return first

    def push_punctuation_v2(
        self, language: str, state: PunctuationState, unicode: int | str
    ) -> tuple[str, str]:
        """Like :meth:`push_punctuation`, optionally giving both paired symbols."""
        if not self.enabled():
            return _EMPTY_PAIR
        char = _key(unicode)
        if self._should_skip(state, char):
            return _EMPTY_PAIR
        if language not in self.profiles:
            return _EMPTY_PAIR
        first, second = self.get_punctuation(language, char)
        state.not_converted = ""
        if not second:
            return (first, "")
        if self.config.type_paired_punctuation_together:
            return (first, second)
        if char in state.last_punc_stack:
            del state.last_punc_stack[char]
            return (second, "")
        state.last_punc_stack[char] = first
        return (first, "")

    def cancel_last(self, language: str, state: PunctuationState) -> str:
        """Convert the punctuation that was left half width after a letter."""
        if not self.enabled():
            return ""
        if dont_convert_when_en(state.not_converted):
            result = self.get_punctuation(language, state.not_converted)[0]
            state.not_converted = ""
            return result
        return ""

    def get_punctuation_candidates(self, language: str, unicode: int | str) -> list[str]:
        """Candidates to offer for a key, when punctuation is on."""
        if not self.enabled():
            return []
        if language not in self.profiles:
            return []
        return self.get_punctuations(language, unicode)

    def get_sub_config(self, path: str) -> list[PunctuationEntry] | None:
        """Entries of the profile named by ``punctuationmap/<lang>``."""
        lang = lang_by_path(path)
        if not lang:
            return None
        profile = self.profiles.get(lang)
        if profile is None:
            return None
        return profile.entries()

    def set_sub_config(
        self,
        path: str,
        entries: Iterable[PunctuationEntry],
        directory: str | PathLike[str] | None = None,
    ) -> None:
        """Replace a profile's entries and save it into ``directory``."""
        lang = lang_by_path(path)
        profile = self.profiles.get(lang)
        if profile is None:
            return
        profile.set_entries(entries)
        if directory is not None:
            profile.save(Path(directory) / f"{PROFILE_PREFIX}{lang}")