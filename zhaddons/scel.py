"""Read Sogou ``.scel`` cell dictionaries and write them as pinyin dictionaries."""

from __future__ import annotations

import contextlib
import getopt
import logging
import string
import struct
import sys
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

_LOG = logging.getLogger(__name__)

HEADER_SIZE = 12
DELTBL_SIZE = 8
PHRASE_OFFSET = 0x5C
ENTRY_OFFSET = 0x120
DESC_START = 0x130
DESC_LENGTH = 0x338 - 0x130
LDESC_LENGTH = 0x540 - 0x338
NEXT_LENGTH = 0x1540 - 0x540

HEADER_MAGIC = b"\x40\x15\x00\x00"
FORMAT_MAGICS = (b"\x44\x43\x53\x01", b"\x45\x43\x53\x01", b"\xd2\x6d\x53\x01")
VERSION_MAGIC = b"\x01\x00\x00\x00"
DELTBL_MAGIC = b"L\x00T\x00B\x00L\x00"

DEFAULT_PINYINS: tuple[str, ...] = tuple(
    """
    a ai an ang ao ba bai ban bang bao bei ben beng bi bian biao bie bin bing
    bo bu ca cai can cang cao ce cen ceng cha chai chan chang chao che chen
    cheng chi chong chou chu chua chuai chuan chuang chui chun chuo ci cong
    cou cu cuan cui cun cuo da dai dan dang dao de dei den deng di dia dian
    diao die ding diu dong dou du duan dui dun duo e ei en eng er fa fan fang
    fei fen feng fiao fo fou fu ga gai gan gang gao ge gei gen geng gong gou
    gu gua guai guan guang gui gun guo ha hai han hang hao he hei hen heng
    hong hou hu hua huai huan huang hui hun huo ji jia jian jiang jiao jie jin
    jing jiong jiu ju juan jue jun ka kai kan kang kao ke kei ken keng kong
    kou ku kua kuai kuan kuang kui kun kuo la lai lan lang lao le lei leng li
    lia lian liang liao lie lin ling liu lo long lou lu luan lve lun luo lv
    ma mai man mang mao me mei men meng mi mian miao mie min ming miu mo mou
    mu na nai nan nang nao ne nei nen neng ni nian niang niao nie nin ning
    niu nong nou nu nuan nve nun nuo nv o ou pa pai pan pang pao pei pen peng
    pi pian piao pie pin ping po pou pu qi qia qian qiang qiao qie qin qing
    qiong qiu qu quan que qun ran rang rao re ren reng ri rong rou ru rua
    ruan rui run ruo sa sai san sang sao se sen seng sha shai shan shang shao
    she shei shen sheng shi shou shu shua shuai shuan shuang shui shun shuo
    si song sou su suan sui sun suo ta tai tan tang tao te tei teng ti tian
    tiao tie ting tong tou tu tuan tui tun tuo wa wai wan wang wei wen weng
    wo wu xi xia xian xiang xiao xie xin xing xiong xiu xu xuan xue xun ya
    yan yang yao ye yi yin ying yo yong you yu yuan yue yun za zai zan zang
    zao ze zei zen zeng zha zhai zhan zhang zhao zhe zhei zhen zheng zhi
    zhong zhou zhu zhua zhuai zhuan zhuang zhui zhun zhuo zi zong zou zu zuan
    zui zun zuo
    """.split()
) + tuple(string.ascii_uppercase)

USAGE = """\
scel2org - Convert .scel file to libime compatible file (SEE NOTES BELOW)

  usage: scel2org [OPTION] [scel file]

  -o <file>  specify the output file, if not specified, the output will
             be stdout.
  -t         specify the output to be in format of extra table dict.
  -d         print the deleted words to stderr.
  -h         display this help.

NOTES:
   Always check the produced output for errors.
"""


class ScelFormatError(ValueError):
    """Raised when a ``.scel`` file is malformed."""


class _Truncated(Exception):
    """The file ended where the format allows stopping quietly."""


@dataclass
class ScelDictionary:
    """The content of a ``.scel`` file."""

    description: str = ""
    long_description: str = ""
    next_description: str = ""
    pinyins: list[str] = field(default_factory=list)
    entries: list[tuple[str, str]] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self.pos = 0

    def seek(self, pos: int) -> None:
        self.pos = pos

    def skip(self, count: int) -> None:
        self.pos += count

    def read(self, count: int, error: str | None = None) -> bytes:
        end = self.pos + count
        if end > len(self._data):
            self.pos = len(self._data)
            if error:
                raise ScelFormatError(error)
            raise _Truncated
        chunk = self._data[self.pos:end]
        self.pos = end
        return chunk

    def u16(self, error: str | None = None) -> int:
        return struct.unpack("<H", self.read(2, error))[0]

    def u32(self, error: str | None = None) -> int:
        return struct.unpack("<I", self.read(4, error))[0]


def decode_utf16(data: bytes) -> str:
    """Decode little endian UTF-16, stopping at the first zero code unit."""
    if len(data) % 2:
        raise ScelFormatError("Invalid size of string")
    units = struct.unpack(f"<{len(data) // 2}H", data)
    if 0 in units:
        data = data[: units.index(0) * 2]
    try:
        return data.decode("utf-16-le")
    except UnicodeDecodeError as exc:
        raise ScelFormatError(f"Invalid UTF-16 text: {exc}") from exc


def index_pinyin(index: int, pys: Sequence[str]) -> str:
    """Return the syllable for a pinyin table index."""
    if index < len(pys):
        return pys[index]
    extra = index - len(pys)
    if extra == 43:
        return "#"
    if extra >= 10:
        _LOG.warning("Invalid index: %d", index)
    return str(extra)


def _code(indices: Sequence[int], pys: Sequence[str]) -> str:
    return "'".join(index_pinyin(index, pys) for index in indices)


def _read_entries(reader: _Reader, count: int, dictionary: ScelDictionary) -> None:
    pys = dictionary.pinyins
    for _ in range(count):
        sym_count = reader.u16()
        word_count = reader.u16("Failed to read count") // 2
        indices = []
        for _ in range(word_count):
            index = reader.u16("Failed to read pyindex")
            if index >= len(pys):
                _LOG.warning("Invalid pinyin index: %d at offset: %d", index, reader.pos)
            indices.append(index)
        for _ in range(sym_count):
            length = reader.u16("Failed to read count")
            text = decode_utf16(reader.read(length, "Failed to read text"))
            if word_count > 0:
                dictionary.entries.append((text, _code(indices, pys)))
            extra = reader.u16("failed to read count")
            reader.read(extra, "failed to read buf")


def _read_phrases(reader: _Reader, count: int, dictionary: ScelDictionary) -> None:
    pys = dictionary.pinyins
    for _ in range(count):
        info = reader.read(17, "Failed to read buf")
        length = reader.u16("Failed to read count")
        if info[2] == 0x1:
            indices = [reader.u16("Failed to read pyindex") for _ in range(length // 2)]
            code = _code(indices, pys)
        else:
            code = decode_utf16(reader.read(length, "Failed to read buf"))
        length = reader.u16("Failed to read count")
        text = decode_utf16(reader.read(length, "Failed to read buf"))
        dictionary.entries.append((text, code))


def _read_deleted(
    reader: _Reader, offset: int, count: int, dictionary: ScelDictionary
) -> None:
    if count > 0:
        reader.seek(offset)
    else:
        try:
            magic = reader.read(DELTBL_SIZE)
        except _Truncated:
            return
        if magic != DELTBL_MAGIC:
            return
        count = reader.u16()
    for _ in range(count):
        length = (reader.u16() * 2) & 0xFFFF
        dictionary.deleted.append(decode_utf16(reader.read(length, "Failed to read text")))


def parse_scel(data: bytes, table: bool = False, read_deleted: bool = False) -> ScelDictionary:
    """Parse the bytes of a ``.scel`` file.

    A file that ends where an entry count or a deleted word would start is
    accepted and yields what was read up to there.
    """
    reader = _Reader(data)
    header = reader.read(HEADER_SIZE, "Failed to read header")
    if (
        header[:4] != HEADER_MAGIC
        or header[4:8] not in FORMAT_MAGICS
        or header[8:12] != VERSION_MAGIC
    ):
        raise ScelFormatError("format error.")

    reader.seek(PHRASE_OFFSET)
    phrase_count = reader.u32("Failed to read phrase count")
    phrase_offset = reader.u32("Failed to read phrase offset")
    reader.skip(8)
    del_offset = reader.u32("Failed to read delete table offset")
    reader.skip(4)
    del_count = reader.u32("Failed to read delete table count")

    reader.seek(ENTRY_OFFSET)
    entry_count = reader.u32("Failed to read entry count")

    reader.seek(DESC_START)
    dictionary = ScelDictionary(
        description=decode_utf16(reader.read(DESC_LENGTH, "Failed to read description")),
        long_description=decode_utf16(
            reader.read(LDESC_LENGTH, "Failed to read long description")
        ),
        next_description=decode_utf16(
            reader.read(NEXT_LENGTH, "Failed to read next description")
        ),
    )

    pys = dictionary.pinyins
    for _ in range(reader.u32("Failed to read py count")):
        reader.u16("failed to read index")
        length = reader.u16("failed to read pinyin count")
        py = decode_utf16(reader.read(length, "Failed to read py"))
        if py in ("lue", "nue"):
            py = py[0] + "ve"
        pys.append(py)

    if not table and not pys:
        pys.extend(DEFAULT_PINYINS)
    if len(pys) < len(DEFAULT_PINYINS):
        pys.extend(string.ascii_uppercase)

    try:
        _read_entries(reader, entry_count, dictionary)
        if phrase_count > 0:
            reader.seek(phrase_offset)
        _read_phrases(reader, phrase_count, dictionary)
        if read_deleted:
            _read_deleted(reader, del_offset, del_count, dictionary)
    except _Truncated:
        pass
    return dictionary


def format_entries(dictionary: ScelDictionary, table: bool = False) -> Iterator[str]:
    """Yield the output lines, without line endings."""
    if table:
        yield "[Phrase]"
    for text, code in dictionary.entries:
        yield text if table else f"{text}\t{code}\t0"


def main(argv: Sequence[str] | None = None) -> int:
    """Convert a ``.scel`` file given on the command line."""
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        opts, rest = getopt.gnu_getopt(args, "o:hdt")
    except getopt.GetoptError as exc:
        print(exc, file=sys.stderr)
        print(USAGE, end="")
        return 1

    output_file = None
    print_deleted = False
    table = False
    for opt, value in opts:
        if opt == "-o":
            output_file = value
        elif opt == "-d":
            print_deleted = True
        elif opt == "-t":
            table = True
        else:
            print(USAGE, end="")
            return 1

    with contextlib.ExitStack() as stack:
        if output_file is None or output_file == "-":
            out = sys.stdout
        else:
            out = stack.enter_context(
                open(output_file, "w", encoding="utf-8", newline="\n")
            )

        if not rest:
            print(USAGE, end="")
            return 1

        try:
            with open(rest[0], "rb") as source:
                data = source.read()
        except OSError:
            _LOG.error("Cannot open file: %s", rest[0])
            return 1

        try:
            dictionary = parse_scel(data, table=table, read_deleted=print_deleted)
        except ScelFormatError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 1

        print(f"DESC:{dictionary.description}", file=sys.stderr)
        print(f"LDESC:{dictionary.long_description}", file=sys.stderr)
        print(f"NEXT:{dictionary.next_description}", file=sys.stderr)
        for line in format_entries(dictionary, table):
            out.write(line + "\n")
        out.flush()
        for word in dictionary.deleted:
            print(f"DEL:{word}", file=sys.stderr)
    return 0