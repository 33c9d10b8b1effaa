import pytest

from zhaddons.chttrans import (
    Chttrans,
    ChttransConfig,
    ChttransEngine,
    ChttransIMType,
    InputMethodInfo,
    input_method_type,
    load_config,
    save_config,
)
from zhaddons.chttrans_native import NativeBackend

PINYIN = InputMethodInfo("pinyin", "zh_CN")
BOSHIAMY = InputMethodInfo("boshiamy", "zh_TW")
KEYBOARD = InputMethodInfo("keyboard-us", "en")


def make(config=None):
    backend = NativeBackend()
    backend.load_lines(["汉漢", "发發", "发髮", "字字"])
    return Chttrans(config or ChttransConfig(), {ChttransEngine.NATIVE: backend})


@pytest.mark.parametrize(
    "code, expected",
    [
        ("zh_CN", ChttransIMType.SIMP),
        ("zh_TW", ChttransIMType.TRAD),
        ("zh_HK", ChttransIMType.TRAD),
        ("ja", ChttransIMType.OTHER),
    ],
)
def test_input_method_type(code, expected):
    assert input_method_type(code) == expected


def test_types_before_and_after_toggle():
    c = make()
    assert c.convert_type(PINYIN) == ChttransIMType.OTHER
    assert c.current_type(PINYIN) == ChttransIMType.SIMP
    c.toggle(PINYIN)
    assert c.convert_type(PINYIN) == ChttransIMType.TRAD
    assert c.current_type(PINYIN) == ChttransIMType.TRAD
    assert c.enabled_im() == {"pinyin"}
    assert c.config.enabled_im == ["pinyin"]


def test_toggle_twice_restores():
    c = make()
    c.toggle(PINYIN)
    c.toggle(PINYIN)
    assert c.enabled_im() == frozenset()
    assert c.config.enabled_im == []


def test_other_and_missing_im_ignored():
    c = make()
    c.toggle(KEYBOARD)
    assert c.enabled_im() == frozenset()
    assert c.current_type(None) == ChttransIMType.OTHER
    assert c.filter_commit(None, "汉") == "汉"


def test_filter_commit_converts_when_enabled():
    c = make()
    assert c.filter_commit(PINYIN, "汉字") == "汉字"
    c.toggle(PINYIN)
    assert c.filter_commit(PINYIN, "汉发") == "漢發"


def test_trad_to_simp_direction():
    c = make()
    c.toggle(BOSHIAMY)
    assert c.convert_type(BOSHIAMY) == ChttransIMType.SIMP
    assert c.filter_commit(BOSHIAMY, "漢髮") == "汉发"


def test_handle_key():
    c = make()
    assert c.handle_key(PINYIN, "Control+Shift+F", is_release=True) is False
    assert c.handle_key(PINYIN, "Control+A") is False
    assert c.enabled_im() == frozenset()
    assert c.handle_key(PINYIN, "Control+Shift+F") is True
    assert c.enabled_im() == {"pinyin"}
    assert c.handle_key(KEYBOARD, "Control+Shift+F") is False


def test_filter_output_segments_and_cursor():
    c = make()
    c.toggle(PINYIN)
    result, cursor = c.filter_output(PINYIN, [("汉", "a"), ("字", "b")], 1)
    assert result == [("漢", "a"), ("字", "b")]
    assert cursor == 1


def test_filter_output_single_segment_and_no_cursor():
    c = make()
    c.toggle(PINYIN)
    result, cursor = c.filter_output(PINYIN, [("汉发", "f")], -1)
    assert result == [("漢發", "f")]
    assert cursor == -1


def test_filter_output_unchanged_when_disabled():
    c = make()
    segments = [("汉", "a")]
    assert c.filter_output(PINYIN, segments, 1) == (segments, 1)


def test_short_text_and_icon():
    c = make()
    assert c.short_text(PINYIN) == "Simplified Chinese"
    assert c.icon(PINYIN) == "fcitx-chttrans-inactive"
    c.toggle(PINYIN)
    assert c.short_text(PINYIN) == "Traditional Chinese"
    assert c.icon(PINYIN) == "fcitx-chttrans-active"


def test_engine_falls_back_to_native():
    c = make(ChttransConfig(engine=ChttransEngine.OPENCC))
    assert c.convert(ChttransIMType.TRAD, "汉") == "漢"


def test_no_backend_returns_text():
    c = Chttrans(ChttransConfig(), {})
    assert c.convert(ChttransIMType.TRAD, "汉") == "汉"


def test_failed_backend_returns_text(tmp_path):
    backend = NativeBackend(tmp_path / "missing.tab")
    c = Chttrans(ChttransConfig(), {ChttransEngine.NATIVE: backend})
    assert c.convert(ChttransIMType.TRAD, "汉") == "汉"


def test_set_config_updates_enabled():
    c = make()
    c.set_config(ChttransConfig(enabled_im=["pinyin"]))
    assert c.enabled_im() == {"pinyin"}


def test_config_round_trip(tmp_path):
    path = tmp_path / "conf" / "chttrans.conf"
    config = ChttransConfig(
        engine=ChttransEngine.NATIVE,
        hotkey=["Control+Shift+F", "Super+T"],
        enabled_im=["pinyin", "shuangpin"],
        opencc_s2t_profile="s2tw.json",
    )
    save_config(config, path)
    assert load_config(path) == config


def test_load_missing_config_gives_defaults(tmp_path):
    assert load_config(tmp_path / "none.conf") == ChttransConfig()


def test_load_config_text(tmp_path):
    path = tmp_path / "chttrans.conf"
    path.write_text('Engine=Native\n# comment\n[EnabledIM]\n1="b"\n0=a\n', encoding="utf-8")
    config = load_config(path)
    assert config.engine == ChttransEngine.NATIVE
    assert config.enabled_im == ["a", "b"]
    assert config.hotkey == ["Control+Shift+F"]