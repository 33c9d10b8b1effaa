# zhaddons

Helpers for Chinese text input, usable as a plain Python library with no
third-party dependencies:

- `zhaddons.scel` – read Sogou `.scel` cell dictionaries and write them as
  pinyin dictionary lines or as an extra table (`[Phrase]`) list. Also the
  `scel2org5` command.
- `zhaddons.chttrans_native` – Simplified ⇄ Traditional conversion, character
  by character, from a two-column table (`NativeBackend`).
- `zhaddons.chttrans` – per input method toggling of that conversion
  (`Chttrans`), with a small INI-style configuration reader and writer
  (`load_config`, `save_config`).
- `zhaddons.punctuation_profile` – punctuation tables (`punc.mb.<lang>` files).
- `zhaddons.punctuation_state` – per input context state: paired punctuation,
  and half-width `.`/`,` right after a Latin letter or digit.
- `zhaddons.punctuation` – `Punctuation`, which combines profiles, state and
  configuration.
- `zhaddons.fullwidth` – full-width forms of ASCII characters.
- `zhaddons.pinyinlookup` – pinyin readings of a character from a binary
  `py_table.mb` file.
- `zhaddons.stroke` – look up characters by stroke sequence (one edit of fuzzy
  matching allowed), reverse lookup, and stroke glyph strings.
- `zhaddons.lrucache` – a small least-recently-used cache.
- `zhaddons.fetch` and `zhaddons.cloudpinyin` – cloud pinyin requests run on
  background threads with `urllib`, results cached in an `LRUCache`.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Converting a .scel dictionary

```
scel2org5 -o words.txt dictionary.scel
```

Options:

- `-o <file>` write to a file instead of standard output (`-` means standard output)
- `-t` write in the extra table dictionary format: a `[Phrase]` line, then one word per line
- `-d` print deleted words to standard error as `DEL:<word>`
- `-h` show help

The dictionary's descriptions are printed to standard error as `DESC:`,
`LDESC:` and `NEXT:` lines. Otherwise each output line is
`word<TAB>pin'yin<TAB>0`. A malformed file makes the command print an error
and exit with status 1.

From Python:

```python
from zhaddons.scel import parse_scel, format_entries

with open("dictionary.scel", "rb") as f:
    dictionary = parse_scel(f.read(), table=False, read_deleted=False)
for line in format_entries(dictionary, table=False):
    print(line)
```

`parse_scel` raises `ScelFormatError` (a `ValueError`) on bad headers or
truncated data, and returns a `ScelDictionary` with `description`,
`long_description`, `next_description`, `pinyins`, `entries` and `deleted`.

## Simplified and Traditional conversion

```python
from zhaddons.chttrans_native import NativeBackend

backend = NativeBackend()            # or NativeBackend("gbks2t.tab")
backend.load_lines(["汉漢", "语語"])
print(backend.convert_simp_to_trad("汉语"))  # 漢語
print(backend.convert_trad_to_simp("漢語"))  # 汉语
```

Each table line is a simplified character followed by its traditional form;
the first mapping of a character wins. With a path, the table file is read on
the first call to `load()`.

Toggling per input method:

```python
from zhaddons.chttrans import Chttrans, ChttransEngine, InputMethodInfo

chttrans = Chttrans(backends={ChttransEngine.NATIVE: backend})
pinyin = InputMethodInfo(unique_name="pinyin", language_code="zh_CN")
chttrans.toggle(pinyin)                       # or handle_key(pinyin, "Control+Shift+F")
print(chttrans.filter_commit(pinyin, "汉语"))  # 漢語
print(chttrans.short_text(pinyin))            # Traditional Chinese
```

`zh_CN` input methods are converted to Traditional, `zh_HK` and `zh_TW` ones to
Simplified; other languages are left alone. `filter_output` converts a list of
`(text, format)` segments and keeps the cursor in range.

## Punctuation

```python
from zhaddons.punctuation import Punctuation
from zhaddons.punctuation_state import PunctuationState

punctuation = Punctuation()
punctuation.load_profiles("data/punctuation", "user/punctuation")
state = PunctuationState()
print(punctuation.push_punctuation("zh_CN", state, '"'))  # opening quote
print(punctuation.push_punctuation("zh_CN", state, '"'))  # closing quote
```

Profile files hold lines of `key mapping [alt_mapping]`. A file in the user
directory is applied on top of the system file of the same name.
`set_sub_config("punctuationmap/<lang>", entries, directory)` replaces a
profile's entries and saves it into `directory`.

## Full-width characters

```python
from zhaddons.fullwidth import to_fullwidth

print(to_fullwidth("abc 123"))  # ａｂｃ １２３ (a space is kept as it is)
```

`Fullwidth` adds an on/off switch with hotkeys; `process_key` returns whether a
key was consumed and the full-width text to commit for it.

## Pinyin lookup

```python
from zhaddons.pinyinlookup import PinyinLookup

lookup = PinyinLookup("py_table.mb")
if lookup.load():
    print(lookup.lookup("中"))       # toned readings
    print(lookup.full_lookup("中"))  # (toned, without tone, tone) tuples
```

## Stroke lookup

```python
from zhaddons.stroke import Stroke, pretty_string

stroke = Stroke()
stroke.load_lines(["1 一", "12 十"])
print(stroke.lookup("12", 5))       # [(character, strokes), ...]
print(stroke.reverse_lookup("十"))  # 12
print(pretty_string("12"))          # 一丨
```

Stroke digits are `1`–`5`. With a file path, `load_async()` reads the file in
the background and `load()` waits for it.

## Cloud pinyin

```python
from zhaddons.cloudpinyin import CloudPinyin, CloudPinyinConfig

cloud = CloudPinyin(CloudPinyinConfig())
cloud.request("nihao", lambda pinyin, hanzi: print(pinyin, hanzi))
...
cloud.close()
```

Pinyin shorter than `minimum_length` (4 by default) is answered with an empty
string at once. After ten failed requests, requests are answered empty until
`reset_error()` is called or five minutes have passed. A custom `fetch`
function and a `dispatch` function (to run result handling on your own loop)
can be passed to `CloudPinyin`.

## What this package does not do

- It is not an input method framework plug-in: there is no key event wiring,
  status area, notifications or configuration screen. The classes take plain
  strings and flags and return what should happen.
- Only the character table engine is available for Simplified/Traditional
  conversion; `ChttransEngine.OPENCC` has no backend here, so `Chttrans` falls
  back to the native one.
- No data files are shipped: conversion tables, punctuation profiles, the
  pinyin table and the stroke dictionary must be supplied by the caller.