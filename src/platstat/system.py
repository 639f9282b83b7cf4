"""System-wide memory, uptime and load average queries."""

import ctypes
import logging
import os
import time
from typing import Callable, Optional

import psutil

from platstat.capabilities import CAPABILITIES, LIBC, Capabilities, Sysinfo
from platstat.errors import IOFailure, NotSupported
from platstat.models import LoadAverage

logger = logging.getLogger(__name__)

# sysinfo() reports load averages as fixed point with 16 fractional bits.
LOAD_SCALE = 65536.0

UPTIME_UNAVAILABLE = -1.0


def _sysconf(name: str, operation: str) -> int:
    try:
        return os.sysconf(name)
    except (ValueError, AttributeError):
        raise NotSupported(f"sysconf({name}) is not available", operation) from None
    except OSError as e:
        raise IOFailure.from_os_error(e, operation) from e


def get_free_memory() -> float:
    """Available physical memory in bytes."""
    pages = _sysconf("SC_AVPHYS_PAGES", "get_free_memory")
    page_size = _sysconf("SC_PAGE_SIZE", "get_free_memory")
    return float(pages) * float(page_size)


def get_total_memory() -> float:
    """Total physical memory in bytes."""
    pages = _sysconf("SC_PHYS_PAGES", "get_total_memory")
    page_size = _sysconf("SC_PAGE_SIZE", "get_total_memory")
    return float(pages) * float(page_size)


def read_sysinfo(operation: str) -> Sysinfo:
    """
    Call sysinfo(2) through libc.

    Raises:
        NotSupported: libc has no sysinfo().
        IOFailure: The call failed.
    """
    if not CAPABILITIES.sysinfo:
        raise NotSupported("sysinfo() is not available", operation)
    info = Sysinfo()
    if LIBC.sysinfo(ctypes.byref(info)) != 0:
        errno = ctypes.get_errno()
        raise IOFailure(f"sysinfo() failed: {os.strerror(errno)}", operation, errno=errno)
    return info


def _monotonic_uptime() -> float:
    return time.clock_gettime(time.CLOCK_MONOTONIC)


def _sysinfo_uptime() -> float:
    return float(read_sysinfo("get_uptime").uptime)


def _boot_time_uptime() -> float:
    return time.time() - psutil.boot_time()


def select_uptime_source(capabilities: Capabilities) -> Optional[Callable[[], float]]:
    """Pick the uptime source for the given capabilities, best first."""
    if capabilities.monotonic_clock:
        return _monotonic_uptime
    if capabilities.sysinfo:
        return _sysinfo_uptime
    if capabilities.boot_time:
        return _boot_time_uptime
    return None


_uptime_source = select_uptime_source(CAPABILITIES)
logger.debug(
    f"Uptime source: {_uptime_source.__name__ if _uptime_source else 'unavailable'}"
)


def get_uptime() -> float:
    """
    Seconds elapsed on a monotonic clock, or since boot.

    Returns UPTIME_UNAVAILABLE (negative) when no clock source works; callers
    must check for a negative value rather than treat it as elapsed time.
    """
    if _uptime_source is None:
        return UPTIME_UNAVAILABLE
    try:
        return _uptime_source()
    except (OSError, NotSupported):
        return UPTIME_UNAVAILABLE


def normalize_load(raw: int) -> float:
    """Convert a fixed-point kernel load value to a float."""
    return raw / LOAD_SCALE


def get_load_average() -> LoadAverage:
    """
    Read the 1, 5 and 15 minute load averages.

    Raises:
        NotSupported: sysinfo() is not available.
        IOFailure: sysinfo() failed.
    """
    info = read_sysinfo("get_load_average")
    return LoadAverage(
        load1=normalize_load(info.loads[0]),
        load5=normalize_load(info.loads[1]),
        load15=normalize_load(info.loads[2]),
    )


# Captured once, when the module is first imported.
PROCESS_START_TIME = get_uptime()


def get_process_uptime() -> float:
    """Seconds since this module was imported, or UPTIME_UNAVAILABLE."""
    now = get_uptime()
    if now < 0 or PROCESS_START_TIME < 0:
        return UPTIME_UNAVAILABLE
    return now - PROCESS_START_TIME
