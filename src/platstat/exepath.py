"""Executable path resolver."""

import os

from platstat.config import DEFAULT_PATHS, PlatformPaths
from platstat.errors import IOFailure

PATH_MAX = 4096


def get_executable_path(capacity: int = PATH_MAX + 1, paths: PlatformPaths = DEFAULT_PATHS) -> str:
    """
    Resolve the path of the running executable through /proc/self/exe.

    Like readlink(2) into a buffer of ``capacity`` bytes, at most
    ``capacity - 1`` bytes are returned; one byte is reserved for the
    terminator and longer targets are truncated.

    Raises:
        IOFailure: The link could not be read or resolved to nothing.
    """
    link = paths.self_exe
    try:
        target = os.readlink(os.fsencode(link))
    except OSError as e:
        raise IOFailure.from_os_error(e, "get_executable_path", str(link)) from e

    target = target[: max(capacity - 1, 0)]
    if not target:
        raise IOFailure(
            f"{link} resolved to an empty path (capacity {capacity})",
            "get_executable_path",
            path=str(link),
        )
    return os.fsdecode(target)
