"""
Process memory reader.

Parses /proc/self/stat, a single line of space-separated fields in a fixed
kernel-defined order. The second field is the executable name in parentheses
and may itself contain spaces and parentheses, so it is scanned up to the last
")" followed by a space rather than split on whitespace.
"""

import os
from typing import Optional

from platstat.config import DEFAULT_PATHS, PlatformPaths
from platstat.errors import IOFailure, ParseFailure
from platstat.models import ProcessMemoryInfo

# Fields following the executable name, in the order the kernel writes them
# (see proc(5)). "signed" fields may legitimately be negative.
STAT_FIELDS: tuple[tuple[str, str], ...] = (
    ("state", "char"),
    ("ppid", "signed"),
    ("pgrp", "signed"),
    ("session", "signed"),
    ("tty_nr", "signed"),
    ("tpgid", "signed"),
    ("flags", "unsigned"),
    ("minflt", "unsigned"),
    ("cminflt", "unsigned"),
    ("majflt", "unsigned"),
    ("cmajflt", "unsigned"),
    ("utime", "signed"),
    ("stime", "signed"),
    ("cutime", "signed"),
    ("cstime", "signed"),
    ("priority", "signed"),
    ("nice", "signed"),
    ("num_threads", "signed"),
    ("itrealvalue", "signed"),
    ("starttime", "unsigned"),
    ("vsize", "unsigned"),
    ("rss", "unsigned"),
    ("rsslim", "unsigned"),
    ("startcode", "unsigned"),
    ("endcode", "unsigned"),
    ("startstack", "unsigned"),
)


class StatScanner:
    """Sequential scanner over the fields of one /proc/<pid>/stat line."""

    def __init__(self, line: str, path: Optional[str] = None) -> None:
        self._line = line.rstrip("\n")
        self._pos = 0
        self._path = path

    def _fail(self, field_name: str, detail: str) -> ParseFailure:
        return ParseFailure(
            f"Malformed stat field '{field_name}': {detail}",
            "get_process_memory",
            path=self._path,
            field_name=field_name,
        )

    def _next_token(self, field_name: str) -> str:
        line = self._line
        while self._pos < len(line) and line[self._pos] == " ":
            self._pos += 1
        if self._pos >= len(line):
            raise self._fail(field_name, "unexpected end of line")
        end = line.find(" ", self._pos)
        if end == -1:
            end = len(line)
        token = line[self._pos:end]
        self._pos = end
        return token

    def read_int(self, field_name: str, signed: bool = True) -> int:
        token = self._next_token(field_name)
        if not signed and token.startswith("-"):
            raise self._fail(field_name, f"expected an unsigned integer, got {token!r}")
        # Plain ASCII decimal only; no "+", "_" or non-ASCII digits.
        digits = token[1:] if token.startswith("-") else token
        if not (digits.isascii() and digits.isdigit()):
            raise self._fail(field_name, f"expected an integer, got {token!r}")
        return int(token)

    def read_char(self, field_name: str) -> str:
        token = self._next_token(field_name)
        if len(token) != 1:
            raise self._fail(field_name, f"expected a single character, got {token!r}")
        return token

    def read_comm(self) -> str:
        """Read the parenthesized executable name."""
        line = self._line
        while self._pos < len(line) and line[self._pos] == " ":
            self._pos += 1
        if self._pos >= len(line) or line[self._pos] != "(":
            raise self._fail("comm", "missing opening parenthesis")
        start = self._pos + 1
        # The name ends at the last ")" that is followed by a space.
        end = line.rfind(") ", start)
        if end == -1:
            raise self._fail("comm", "missing closing parenthesis")
        self._pos = end + 1
        return line[start:end]


def parse_stat_line(line: str, page_size: int, path: Optional[str] = None) -> ProcessMemoryInfo:
    """
    Parse a /proc/<pid>/stat line into a ProcessMemoryInfo.

    Args:
        line: Contents of the stat pseudo-file.
        page_size: Size of a memory page in bytes; rss is reported in pages.
        path: File the line came from, used in error messages.

    Raises:
        ParseFailure: Any field is missing or malformed.
    """
    scanner = StatScanner(line, path)
    fields: dict[str, object] = {"pid": scanner.read_int("pid"), "comm": scanner.read_comm()}
    for name, kind in STAT_FIELDS:
        if kind == "char":
            fields[name] = scanner.read_char(name)
        else:
            fields[name] = scanner.read_int(name, signed=(kind == "signed"))

    return ProcessMemoryInfo(
        resident_bytes=fields["rss"] * page_size,
        virtual_bytes=fields["vsize"],
    )


def get_process_memory(
    paths: PlatformPaths = DEFAULT_PATHS,
    page_size: Optional[int] = None,
) -> ProcessMemoryInfo:
    """
    Read the resident and virtual memory size of the current process.

    Raises:
        IOFailure: /proc/self/stat could not be read.
        ParseFailure: The stat line did not have the expected fields.
    """
    if page_size is None:
        page_size = os.sysconf("SC_PAGE_SIZE")
    stat_path = paths.self_stat
    try:
        with open(stat_path, encoding="utf-8", errors="surrogateescape") as f:
            line = f.readline()
    except OSError as e:
        raise IOFailure.from_os_error(e, "get_process_memory", str(stat_path)) from e
    return parse_stat_line(line, page_size, str(stat_path))
