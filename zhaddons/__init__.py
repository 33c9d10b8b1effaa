"""Chinese input helpers: .scel conversion, Simplified/Traditional conversion,
punctuation, full-width characters, pinyin and stroke lookup, cloud pinyin."""

__version__ = "5.1.8"