[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "zhaddons"
version = "5.1.8"
description = "Chinese input helpers: Simplified/Traditional conversion, punctuation mapping, full-width characters, pinyin and stroke lookup, cloud pinyin requests and .scel dictionary conversion"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "chinese",
    "pinyin",
    "input-method",
    "punctuation",
    "stroke",
    "scel",
    "traditional",
    "simplified",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Natural Language :: Chinese (Simplified)",
    "Natural Language :: Chinese (Traditional)",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Text Processing :: Linguistic",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
scel2org5 = "zhaddons.scel:main"

[tool.hatch.build.targets.wheel]
packages = ["zhaddons"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
