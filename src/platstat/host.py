"""
Host adapter.

The readers return plain dataclasses. This module converts them into the
dict/list shapes a host runtime consumes and gathers every query into one
PlatformSnapshot for display.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, TypeVar

from platstat import cpu, exepath, interfaces, memory, system, title
from platstat.errors import PlatformError
from platstat.models import (
    CpuRecord,
    CpuTimes,
    InterfaceAddress,
    LoadAverage,
    ProcessMemoryInfo,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def to_host(value: Any) -> Any:
    """Convert a result entity, or a list/dict of them, to plain values."""
    if isinstance(value, ProcessMemoryInfo):
        return {"rss": value.resident_bytes, "vsize": value.virtual_bytes}
    if isinstance(value, CpuTimes):
        return {
            "user": value.user,
            "nice": value.nice,
            "sys": value.sys,
            "idle": value.idle,
            "irq": value.irq,
        }
    if isinstance(value, CpuRecord):
        return {"model": value.model, "speed": value.speed_mhz, "times": to_host(value.times)}
    if isinstance(value, LoadAverage):
        return list(value)
    if isinstance(value, InterfaceAddress):
        return {
            "address": value.address,
            "family": value.family.value,
            "internal": value.internal,
        }
    if isinstance(value, dict):
        return {key: to_host(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_host(item) for item in value]
    return value


@dataclass(slots=True)
class PlatformSnapshot:
    """Every platstat query taken at one moment."""

    title: str
    executable_path: Optional[str]
    process_memory: Optional[ProcessMemoryInfo]
    cpus: list[CpuRecord]
    free_memory: Optional[float]
    total_memory: Optional[float]
    uptime_seconds: float
    process_uptime_seconds: float
    load_average: Optional[LoadAverage]
    interfaces: dict[str, list[InterfaceAddress]]
    errors: dict[str, str] = field(default_factory=dict)

    def to_host(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "execPath": self.executable_path,
            "memoryUsage": to_host(self.process_memory),
            "cpus": to_host(self.cpus),
            "freemem": self.free_memory,
            "totalmem": self.total_memory,
            "uptime": self.uptime_seconds,
            "processUptime": self.process_uptime_seconds,
            "loadavg": to_host(self.load_average),
            "interfaces": to_host(self.interfaces),
            "errors": dict(self.errors),
        }


def collect_snapshot() -> PlatformSnapshot:
    """
    Run every query once.

    A failing query does not abort the snapshot; its error message is stored
    in ``errors`` under the query name and its field is left empty.
    """
    errors: dict[str, str] = {}

    def attempt(name: str, query: Callable[[], T], default: T) -> T:
        try:
            return query()
        except PlatformError as e:
            logger.debug(f"{name} failed: {e}")
            errors[name] = str(e)
            return default

    current_title, _ = title.get_title()
    return PlatformSnapshot(
        title=current_title,
        executable_path=attempt("executable_path", exepath.get_executable_path, None),
        process_memory=attempt("process_memory", memory.get_process_memory, None),
        cpus=attempt("cpus", cpu.get_cpu_info, []),
        free_memory=attempt("free_memory", system.get_free_memory, None),
        total_memory=attempt("total_memory", system.get_total_memory, None),
        uptime_seconds=system.get_uptime(),
        process_uptime_seconds=system.get_process_uptime(),
        load_average=attempt("load_average", system.get_load_average, None),
        interfaces=attempt("interfaces", interfaces.get_interface_addresses, {}),
        errors=errors,
    )
