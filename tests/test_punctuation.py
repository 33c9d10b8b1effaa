import pytest

from zhaddons.punctuation import Punctuation
from zhaddons.punctuation_profile import PunctuationEntry, PunctuationProfile
from zhaddons.punctuation_state import PunctuationConfig, PunctuationState

LINES = [", ，", ". 。", '" “ ”', "[ 【"]


def _make(config=None):
    profile = PunctuationProfile()
    profile.load_system(LINES)
    return Punctuation(config or PunctuationConfig(), {"zh_CN": profile})


def test_get_punctuation():
    punc = _make()
    assert punc.get_punctuation("zh_CN", ",") == ("，", "")
    assert punc.get_punctuation("zh_CN", ord(".")) == ("。", "")
    assert punc.get_punctuation("en", ",") == ("", "")


def test_disabled_returns_nothing():
    punc = _make()
    punc.set_enabled(False)
    state = PunctuationState()
    assert punc.get_punctuation("zh_CN", ",") == ("", "")
    assert punc.push_punctuation("zh_CN", state, ",") == ""
    assert punc.get_punctuation_candidates("zh_CN", ",") == []


def test_paired_alternates():
    punc = _make()
    state = PunctuationState()
    assert punc.push_punctuation("zh_CN", state, '"') == "“"
    assert state.last_punc_stack == {'"': "“"}
    assert punc.push_punctuation("zh_CN", state, '"') == "”"
    assert state.last_punc_stack == {}


def test_v2_alternates_and_together():
    punc = _make()
    state = PunctuationState()
    assert punc.push_punctuation_v2("zh_CN", state, '"') == ("“", "")
    assert punc.push_punctuation_v2("zh_CN", state, '"') == ("”", "")
    together = _make(PunctuationConfig(type_paired_punctuation_together=True))
    assert together.push_punctuation_v2("zh_CN", PunctuationState(), '"') == ("“", "”")


def test_half_width_after_latin_and_cancel():
    punc = _make()
    state = PunctuationState()
    state.on_commit("abc")
    assert punc.push_punctuation("zh_CN", state, ".") == ""
    assert state.not_converted == "."
    assert punc.cancel_last("zh_CN", state) == "。"
    assert state.not_converted == ""
    assert punc.cancel_last("zh_CN", state) == ""


def test_half_width_option_off_converts():
    punc = _make(PunctuationConfig(half_width_punc_after_latin_or_number=False))
    state = PunctuationState()
    state.on_commit("1")
    assert punc.push_punctuation("zh_CN", state, ",") == "，"


def test_unknown_language_push():
    punc = _make()
    assert punc.push_punctuation("ja", PunctuationState(), ",") == ""
    assert punc.push_punctuation_v2("ja", PunctuationState(), ",") == ("", "")


def test_candidates():
    punc = _make()
    assert punc.get_punctuation_candidates("zh_CN", '"') == ["“"]
    assert punc.get_punctuation_candidates("zh_CN", "x") == []


def test_hotkey_toggle_and_labels():
    punc = _make()
    assert punc.short_text() == "Full width punctuation"
    assert punc.icon() == "fcitx-punc-active"
    assert punc.process_hotkey("Control+period", is_release=True) is False
    assert punc.process_hotkey("Control+period") is True
    assert punc.enabled() is False
    assert punc.short_text() == "Half width punctuation"
    assert punc.icon() == "fcitx-punc-inactive"
    assert punc.process_hotkey("a") is False


def test_load_profiles_user_overrides(tmp_path):
    system = tmp_path / "system"
    user = tmp_path / "user"
    system.mkdir()
    user.mkdir()
    (system / "punc.mb.zh_CN").write_text(", ，\n. 。\n", encoding="utf-8")
    (user / "punc.mb.zh_CN").write_text(", ；\n", encoding="utf-8")
    (user / "punc.mb.zh_TW").write_text(". ．\n", encoding="utf-8")
    (system / "other.txt").write_text(", x\n", encoding="utf-8")
    punc = Punctuation()
    punc.load_profiles(system, user)
    assert sorted(punc.profiles) == ["zh_CN", "zh_TW"]
    assert punc.get_punctuation("zh_CN", ",") == ("；", "")
    assert punc.get_punctuation("zh_CN", ".") == ("", "")
    assert punc.profiles["zh_CN"].default_entries() == [
        PunctuationEntry(",", "，"),
        PunctuationEntry(".", "。"),
    ]
    assert punc.get_punctuation("zh_TW", ".") == ("．", "")


def test_load_profiles_removes_missing(tmp_path):
    punc = _make()
    punc.load_profiles(tmp_path, None)
    assert punc.profiles == {}


def test_sub_config_round_trip(tmp_path):
    punc = _make()
    assert punc.get_sub_config("other/zh_CN") is None
    assert punc.get_sub_config("punctuationmap/ja") is None
    assert punc.get_sub_config("punctuationmap/zh_CN")[0] == PunctuationEntry(",", "，")
    new_entries = [PunctuationEntry("!", "！"), PunctuationEntry("", "x")]
    punc.set_sub_config("punctuationmap/zh_CN", new_entries, tmp_path)
    assert punc.get_sub_config("punctuationmap/zh_CN") == [PunctuationEntry("!", "！")]
    reloaded = Punctuation()
    reloaded.load_profiles(None, tmp_path)
    assert reloaded.get_punctuation("zh_CN", "!") == ("！", "")


@pytest.mark.parametrize("key", [",", "."])
def test_skip_only_for_comma_and_period(key):
    punc = _make()
    state = PunctuationState(last_is_eng_or_digit="a")
    assert punc.push_punctuation("zh_CN", state, key) == ""
    assert punc.push_punctuation("zh_CN", state, "[") == "【"