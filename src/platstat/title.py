"""Process title store."""

import ctypes
import os
import threading
from typing import Callable, Optional

from platstat.capabilities import CAPABILITIES, LIBC, PR_SET_NAME
from platstat.errors import IOFailure, NotSupported


def _prctl_set_name(title: str) -> None:
    """Rename the OS-visible process via prctl(PR_SET_NAME)."""
    # The kernel keeps at most 15 bytes plus the terminator.
    name = ctypes.create_string_buffer(os.fsencode(title))
    if LIBC.prctl(PR_SET_NAME, name, 0, 0, 0) != 0:
        errno = ctypes.get_errno()
        raise IOFailure(
            f"prctl(PR_SET_NAME) failed: {os.strerror(errno)}",
            "set_title",
            errno=errno,
        )


class ProcessTitleStore:
    """
    Process-wide holder of the user-visible process title.

    The title is seeded once from argv[0] and replaced only by set_title().
    Updates swap the stored string under a lock, so a reader on another thread
    sees either the old or the new title, never a mix.
    """

    def __init__(self, rename: Optional[Callable[[str], None]] = None) -> None:
        """
        Initialize the store.

        Args:
            rename: Callable renaming the OS-visible process. Defaults to
                prctl(PR_SET_NAME) when libc provides it; None means the
                platform cannot rename processes.
        """
        if rename is None and CAPABILITIES.prctl:
            rename = _prctl_set_name
        self._rename = rename
        self._lock = threading.Lock()
        self._title: Optional[str] = None
        self._seeded = False

    def setup(self, argv0: str) -> None:
        """Seed the title from the first launch argument. Later calls are ignored."""
        with self._lock:
            if self._seeded:
                return
            self._title = str(argv0)
            self._seeded = True

    def set_title(self, title: str) -> None:
        """
        Replace the title and rename the OS-visible process.

        Raises:
            NotSupported: The platform has no way to rename a process.
            IOFailure: The rename call failed; the stored title is unchanged.
        """
        if self._rename is None:
            raise NotSupported(
                "'process.title' is not writable on this platform", "set_title"
            )
        new_title = str(title)
        with self._lock:
            self._rename(new_title)
            self._title = new_title

    def get_title(self) -> tuple[str, int]:
        """Return the current title and its length, or ("", 0) if unset."""
        with self._lock:
            title = self._title
        if title is None:
            return "", 0
        return title, len(title)


_store = ProcessTitleStore()


def setup(argv0: str) -> None:
    _store.setup(argv0)


def set_title(title: str) -> None:
    _store.set_title(title)


def get_title() -> tuple[str, int]:
    return _store.get_title()
