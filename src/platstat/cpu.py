"""
CPU topology and usage reader.

Merges two independent sources into one CpuRecord per logical CPU:

- /proc/cpuinfo provides the model name and clock speed. Only the first
  "model name" line is kept and applied to every core; the clock speed comes
  from the first core's block.
- /proc/stat provides the per-core time counters, in clock ticks.

A per-core sysfs max-frequency file, when present, overrides the clock speed.
"""

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

from platstat.config import DEFAULT_PATHS, PlatformPaths
from platstat.errors import IOFailure, ParseFailure
from platstat.models import CpuRecord, CpuTimes

logger = logging.getLogger(__name__)

MODEL_MARKER = "model name"
SPEED_MARKER = "cpu MHz"


@dataclass(slots=True, frozen=True)
class CpuDescription:
    """What /proc/cpuinfo says about the machine's processors."""

    count: int
    model: str
    speed_mhz: int


@dataclass(slots=True, frozen=True)
class CpuTicks:
    """Raw counters of one cpu<N> line of /proc/stat."""

    name: str
    user: int
    nice: int
    sys: int
    idle: int
    irq: int


def _value_after_colon(line: str) -> str:
    _, _, value = line.partition(":")
    return value.strip()


def _model_after_colon(line: str) -> str:
    # Only the ": " separator and the newline go; the model text is kept as is.
    _, _, value = line.partition(":")
    return value[1:].rstrip("\n")


def parse_cpuinfo(lines: Iterable[str]) -> CpuDescription:
    """
    Parse /proc/cpuinfo lines.

    Each "model name" line counts one logical CPU. The model text is taken from
    the first such line only, and "cpu MHz" lines are honoured while exactly
    one model line has been seen, i.e. within the first core's block. A
    malformed speed value is skipped and the last good value kept.
    """
    count = 0
    model = ""
    speed = 0
    for line in lines:
        if line.startswith(MODEL_MARKER):
            count += 1
            if count == 1:
                model = _model_after_colon(line)
        elif line.startswith(SPEED_MARKER):
            if count == 1:
                raw = _value_after_colon(line)
                try:
                    # "2394.454" -> 2394
                    speed = int(float(raw))
                except ValueError:
                    logger.debug(f"Ignoring malformed '{SPEED_MARKER}' value {raw!r}")
    return CpuDescription(count=count, model=model, speed_mhz=speed)


def parse_stat_cpu_lines(lines: Iterable[str]) -> list[CpuTicks]:
    """
    Parse the per-core lines at the top of /proc/stat.

    The aggregate "cpu " line is skipped and scanning stops at the first line
    that is not a cpu line. Counters read are user, nice, system, idle and irq;
    iowait (the fifth column) is skipped.
    """
    cores: list[CpuTicks] = []
    for line in lines:
        if line.startswith("cpu "):
            continue
        if not line.startswith("cpu"):
            break
        parts = line.split()
        name = parts[0]
        if not name[3:].isdigit():
            raise ParseFailure(
                f"Malformed cpu line key {name!r}", "get_cpu_info", field_name="cpu"
            )
        if len(parts) < 7:
            raise ParseFailure(
                f"Expected at least 6 counters on {name!r}, got {len(parts) - 1}",
                "get_cpu_info",
                field_name=name,
            )
        try:
            user, nice, system, idle, _iowait, irq = (int(v) for v in parts[1:7])
        except ValueError:
            raise ParseFailure(
                f"Non-numeric counter on {name!r}", "get_cpu_info", field_name=name
            ) from None
        cores.append(CpuTicks(name=name, user=user, nice=nice, sys=system, idle=idle, irq=irq))
    return cores


def read_max_freq_mhz(path: os.PathLike) -> Optional[int]:
    """Read a cpuinfo_max_freq file (kHz) as MHz, or None if unavailable."""
    try:
        with open(path, "rb") as f:
            raw = f.readline().strip()
    except OSError:
        logger.debug(f"No max frequency file at {path}, keeping /proc/cpuinfo speed")
        return None
    try:
        return int(raw) // 1000
    except ValueError:
        logger.debug(f"Unreadable max frequency {raw!r} in {path}, keeping /proc/cpuinfo speed")
        return None


def get_cpu_info(
    paths: PlatformPaths = DEFAULT_PATHS,
    ticks_per_second: Optional[int] = None,
) -> list[CpuRecord]:
    """
    Return one CpuRecord per logical CPU, in /proc/stat order.

    Args:
        paths: Locations of the procfs and sysfs trees.
        ticks_per_second: Clock ticks per second used by /proc/stat.
            Defaults to sysconf(SC_CLK_TCK).

    Raises:
        IOFailure: Neither /proc/cpuinfo nor /proc/stat could be read.
        ParseFailure: A counter line in /proc/stat was malformed.
    """
    if ticks_per_second is None:
        ticks_per_second = os.sysconf("SC_CLK_TCK")
    multiplier = 1000 // ticks_per_second

    description = CpuDescription(count=0, model="", speed_mhz=0)
    cpuinfo_error: Optional[OSError] = None
    try:
        with open(paths.cpuinfo, encoding="utf-8", errors="replace") as f:
            description = parse_cpuinfo(f)
    except OSError as e:
        cpuinfo_error = e
        logger.debug(f"Could not read {paths.cpuinfo}: {e}")

    try:
        with open(paths.stat, encoding="utf-8", errors="replace") as f:
            cores = parse_stat_cpu_lines(f)
    except OSError as e:
        if cpuinfo_error is not None:
            raise IOFailure.from_os_error(e, "get_cpu_info", str(paths.stat)) from e
        logger.debug(f"Could not read {paths.stat}: {e}")
        return []

    records: list[CpuRecord] = []
    for index, core in enumerate(cores):
        speed = read_max_freq_mhz(paths.cpu_max_freq(index))
        records.append(
            CpuRecord(
                model=description.model,
                speed_mhz=description.speed_mhz if speed is None else speed,
                times=CpuTimes(
                    user=core.user * multiplier,
                    nice=core.nice * multiplier,
                    sys=core.sys * multiplier,
                    idle=core.idle * multiplier,
                    irq=core.irq * multiplier,
                ),
            )
        )
    return records
