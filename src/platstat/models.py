"""Data models for platstat."""

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum


@dataclass(slots=True, frozen=True)
class ProcessMemoryInfo:
    """Memory footprint of the current process."""

    resident_bytes: int  # rss pages * page size
    virtual_bytes: int  # vsize, already in bytes


@dataclass(slots=True, frozen=True)
class CpuTimes:
    """Time spent by one logical CPU in each mode, in milliseconds."""

    user: int
    nice: int
    sys: int
    idle: int
    irq: int


@dataclass(slots=True, frozen=True)
class CpuRecord:
    """Identity and usage counters of one logical CPU."""

    model: str
    speed_mhz: int
    times: CpuTimes


@dataclass(slots=True, frozen=True)
class LoadAverage:
    """System load averaged over 1, 5 and 15 minutes."""

    load1: float
    load5: float
    load15: float

    def __iter__(self) -> Iterator[float]:
        return iter((self.load1, self.load5, self.load15))


class AddressFamily(Enum):
    """Address family of an interface address."""

    IPV4 = "IPv4"
    IPV6 = "IPv6"
    UNKNOWN = "<unknown>"


@dataclass(slots=True, frozen=True)
class InterfaceAddress:
    """One address assigned to a network interface."""

    address: str
    family: AddressFamily
    internal: bool  # True for loopback interfaces
