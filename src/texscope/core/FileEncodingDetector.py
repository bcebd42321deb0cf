# texscope/core/FileEncodingDetector.py
"""FileEncodingDetector Module
============================
This module inspects the raw bytes of a file and reports the properties the
status bar shows for an open document: encoding, line-ending convention,
UTF-8 Byte Order Mark presence and indentation style/size.

Detection is a pure function of the byte buffer. It never raises: a file that
cannot be read yields `DEFAULT_FILE_INFO`.

Encoding detection order:
-------------------------
1. UTF-8 BOM (``EF BB BF``) -> ``utf-8-bom``
2. UTF-16 BE BOM (``FE FF``) -> ``utf-16-be``
3. UTF-16 LE BOM (``FF FE``) -> ``utf-16-le``
4. UTF-32 BE BOM (``00 00 FE FF``) -> ``utf-32-be``
5. More than 10% NUL bytes in the first 1024 bytes -> ``binary``
6. Valid UTF-8 -> ``utf-8`` if a byte in the first 1024 is above 127, else ``ascii``
7. Invalid UTF-8 with high bytes in the first 1024 -> ``latin1``
8. Anything else -> ``utf-8``

Line endings and indentation are derived from the text decoded with the codec
matching the detected encoding. No transcoding is offered.
"""

import logging
import re
from collections import Counter
from dataclasses import dataclass
from typing import Literal, Optional

from texscope.integrations.FileSystemBridge import FileSystem, FileSystemBridge


logger = logging.getLogger("texscope")

LineEnding = Literal["LF", "CRLF", "CR", "Mixed"]
IndentStyle = Literal["spaces", "tabs", "mixed", "none"]

BINARY_SAMPLE_SIZE = 1024
BINARY_NUL_RATIO = 0.1

UTF8_BOM = b"\xef\xbb\xbf"

# Leading byte sequences, in the order they are checked.
BOM_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (UTF8_BOM, "utf-8-bom"),
    (b"\xfe\xff", "utf-16-be"),
    (b"\xff\xfe", "utf-16-le"),
    (b"\x00\x00\xfe\xff", "utf-32-be"),
)

# Python codec used to decode the buffer for line-ending/indent analysis.
DECODE_CODECS = {
    "utf-8-bom": "utf-8-sig",
    "utf-16-be": "utf-16",
    "utf-16-le": "utf-16",
    "utf-32-be": "utf-32",
    "latin1": "latin-1",
    "binary": "latin-1",
    "ascii": "utf-8",
    "utf-8": "utf-8",
}

_LEADING_WS_RE = re.compile(r"^[\t ]+")
_LINE_SPLIT_RE = re.compile(r"\r?\n")


@dataclass(frozen=True)
class FileInfo:
    encoding: str
    line_ending: LineEnding
    has_bom: bool
    indent_style: IndentStyle
    indent_size: int


DEFAULT_FILE_INFO = FileInfo(
    encoding="utf-8",
    line_ending="LF",
    has_bom=False,
    indent_style="none",
    indent_size=2,
)


def detect_bom(buffer: bytes) -> Optional[str]:
    """Returns the encoding named by a leading BOM, or None."""
    for signature, encoding in BOM_SIGNATURES:
        if buffer.startswith(signature):
            return encoding
    return None


def is_valid_utf8(buffer: bytes) -> bool:
    """Walks `buffer` and checks every lead byte has its continuation bytes.

    Only the byte structure is checked (lead byte patterns ``0xxxxxxx``,
    ``110xxxxx``, ``1110xxxx``, ``11110xxx`` followed by one, two or three
    ``10xxxxxx`` bytes). Overlong forms and surrogates are not rejected.
    """
    i = 0
    length = len(buffer)
    while i < length:
        byte = buffer[i]
        if byte <= 0x7F:
            i += 1
            continue
        if byte & 0xE0 == 0xC0:
            needed = 1
        elif byte & 0xF0 == 0xE0:
            needed = 2
        elif byte & 0xF8 == 0xF0:
            needed = 3
        else:
            return False
        if i + needed >= length:
            return False
        for offset in range(1, needed + 1):
            if buffer[i + offset] & 0xC0 != 0x80:
                return False
        i += needed + 1
    return True


def detect_encoding(buffer: bytes) -> str:
    bom_encoding = detect_bom(buffer)
    if bom_encoding:
        return bom_encoding

    sample = buffer[:BINARY_SAMPLE_SIZE]
    if sample.count(0) > len(sample) * BINARY_NUL_RATIO:
        return "binary"

    has_high_bytes = any(byte > 0x7F for byte in sample)
    if is_valid_utf8(buffer):
        return "utf-8" if has_high_bytes else "ascii"
    if has_high_bytes:
        return "latin1"
    return "utf-8"


def decode_for_analysis(buffer: bytes, encoding: str) -> str:
    codec = DECODE_CODECS.get(encoding, "utf-8")
    return buffer.decode(codec, errors="replace")


def detect_line_ending(text: str) -> LineEnding:
    crlf_count = text.count("\r\n")
    cr_only_count = text.count("\r") - crlf_count
    lf_only_count = text.count("\n") - crlf_count

    counts: dict[LineEnding, int] = {
        "CRLF": crlf_count,
        "CR": cr_only_count,
        "LF": lf_only_count,
    }
    present = [name for name, count in counts.items() if count > 0]
    if not present:
        return "LF"
    if len(present) > 1:
        return "Mixed"
    return present[0]


def detect_indentation(text: str) -> tuple[IndentStyle, int]:
    """Classifies the indentation of `text`.

    Returns:
        tuple[IndentStyle, int]: Indent style and indent size.
    """
    space_sizes: Counter[int] = Counter()
    tab_lines = 0
    space_lines = 0

    for line in _LINE_SPLIT_RE.split(text):
        leading = _LEADING_WS_RE.match(line)
        if not leading:
            continue
        ws = leading.group(0)
        if "\t" in ws and " " in ws:
            # Ambiguous line: counts for both.
            tab_lines += 1
            space_lines += 1
        elif "\t" in ws:
            tab_lines += 1
        else:
            space_lines += 1
            if 1 <= len(ws) <= 8:
                space_sizes[len(ws)] += 1

    if tab_lines == 0 and space_lines == 0:
        return "none", 2
    if space_lines == 0:
        return "tabs", 4
    if tab_lines == 0:
        size = 2
        best_count = 0
        for candidate in sorted(space_sizes):
            if space_sizes[candidate] > best_count:
                best_count = space_sizes[candidate]
                size = candidate
        if size > 4:
            if size % 4 == 0:
                size = 4
            elif size % 2 == 0:
                size = 2
        return "spaces", size
    return "mixed", 2


def format_encoding(info: FileInfo) -> str:
    """Status bar label for the encoding, e.g. ``UTF-8`` or ``UTF-8-BOM``."""
    label = info.encoding.upper()
    if info.has_bom and "bom" not in info.encoding.lower():
        label += " BOM"
    return label


def format_line_ending(info: FileInfo) -> str:
    return info.line_ending


def format_indent(info: FileInfo) -> str:
    if info.indent_style == "none":
        return ""
    if info.indent_style == "tabs":
        return "Tab"
    if info.indent_style == "mixed":
        return "Mixed"
    return f"Spc:{info.indent_size}"


# ==================== FileEncodingDetector Class ====================
class FileEncodingDetector:
    """Reports `FileInfo` for files read through a filesystem collaborator."""

    def __init__(self, filesystem: Optional[FileSystem] = None) -> None:
        self.filesystem: FileSystem = filesystem or FileSystemBridge()

    def detect(self, path: str) -> FileInfo:
        """Reads `path` and inspects its bytes. Unreadable files give the default."""
        try:
            buffer = self.filesystem.read_bytes(path)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read '{path}' for file info: {e}. Using defaults.")
            return DEFAULT_FILE_INFO
        return self.detect_bytes(buffer)

    def detect_bytes(self, buffer: bytes) -> FileInfo:
        encoding = detect_encoding(buffer)
        text = decode_for_analysis(buffer, encoding)
        indent_style, indent_size = detect_indentation(text)
        info = FileInfo(
            encoding=encoding,
            line_ending=detect_line_ending(text),
            has_bom=buffer.startswith(UTF8_BOM),
            indent_style=indent_style,
            indent_size=indent_size,
        )
        logger.debug(f"Detected file info: {info}")
        return info
