"""
Detection of the OS facilities platstat relies on.

Detection runs once at import time and the result is kept in CAPABILITIES,
so the readers pick their strategy from a fixed set of flags instead of
probing the platform on every call.
"""

import ctypes
import ctypes.util
import logging
import time
from dataclasses import dataclass
from typing import Optional

import psutil

logger = logging.getLogger(__name__)

# From <linux/prctl.h>
PR_SET_NAME = 15


class Sysinfo(ctypes.Structure):
    """Layout of ``struct sysinfo`` from <sys/sysinfo.h>."""

    _fields_ = [
        ("uptime", ctypes.c_long),
        ("loads", ctypes.c_ulong * 3),
        ("totalram", ctypes.c_ulong),
        ("freeram", ctypes.c_ulong),
        ("sharedram", ctypes.c_ulong),
        ("bufferram", ctypes.c_ulong),
        ("totalswap", ctypes.c_ulong),
        ("freeswap", ctypes.c_ulong),
        ("procs", ctypes.c_ushort),
        ("pad", ctypes.c_ushort),
        ("totalhigh", ctypes.c_ulong),
        ("freehigh", ctypes.c_ulong),
        ("mem_unit", ctypes.c_uint),
        (
            "_f",
            ctypes.c_char
            * max(0, 20 - 2 * ctypes.sizeof(ctypes.c_long) - ctypes.sizeof(ctypes.c_uint)),
        ),
    ]


@dataclass(slots=True, frozen=True)
class Capabilities:
    """Which OS facilities are available to this process."""

    monotonic_clock: bool
    sysinfo: bool
    prctl: bool
    interface_enumeration: bool
    boot_time: bool


def load_libc() -> Optional[ctypes.CDLL]:
    """Load the C library, or return None when it cannot be found."""
    try:
        return ctypes.CDLL(ctypes.util.find_library("c"), use_errno=True)
    except OSError as e:
        logger.debug(f"Could not load libc: {e}")
        return None


def _has_symbol(lib: Optional[ctypes.CDLL], name: str) -> bool:
    if lib is None:
        return False
    try:
        getattr(lib, name)
    except AttributeError:
        return False
    return True


def detect_capabilities(libc: Optional[ctypes.CDLL] = None) -> Capabilities:
    """Probe the running platform once."""
    return Capabilities(
        monotonic_clock=hasattr(time, "clock_gettime") and hasattr(time, "CLOCK_MONOTONIC"),
        sysinfo=_has_symbol(libc, "sysinfo"),
        prctl=_has_symbol(libc, "prctl"),
        interface_enumeration=hasattr(psutil, "net_if_addrs") and hasattr(psutil, "net_if_stats"),
        boot_time=hasattr(psutil, "boot_time"),
    )


LIBC = load_libc()
CAPABILITIES = detect_capabilities(LIBC)
