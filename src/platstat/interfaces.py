"""Network interface address enumeration."""

import socket
from collections.abc import Iterable
from dataclasses import dataclass

import psutil

from platstat.capabilities import CAPABILITIES
from platstat.errors import IOFailure, NotSupported
from platstat.models import AddressFamily, InterfaceAddress

UNKNOWN_ADDRESS = "<unknown sa family>"

# Raw link-layer entries (AF_PACKET on Linux) are not network addresses.
LINK_FAMILIES = frozenset({psutil.AF_LINK, getattr(socket, "AF_PACKET", psutil.AF_LINK)})


@dataclass(slots=True, frozen=True)
class InterfaceEntry:
    """One record of the OS interface-address list."""

    name: str
    family: int
    address: str | None
    flags: frozenset[str]  # e.g. {"up", "running", "loopback"}


def _classify(entry: InterfaceEntry) -> InterfaceAddress:
    if entry.family == socket.AF_INET6:
        # Drop the "%ifname" scope suffix some resolvers append to link-local addresses.
        address, family = entry.address.split("%", 1)[0], AddressFamily.IPV6
    elif entry.family == socket.AF_INET:
        address, family = entry.address, AddressFamily.IPV4
    else:
        address, family = UNKNOWN_ADDRESS, AddressFamily.UNKNOWN
    return InterfaceAddress(
        address=address,
        family=family,
        internal="loopback" in entry.flags,
    )


def group_interface_entries(entries: Iterable[InterfaceEntry]) -> dict[str, list[InterfaceAddress]]:
    """
    Group interface-address records by interface name.

    Records of interfaces that are not both up and running are skipped, as
    are records without an address and link-layer records. Names keep the
    order they are first seen in and later records append to the same list.
    """
    grouped: dict[str, list[InterfaceAddress]] = {}
    for entry in entries:
        if not ("up" in entry.flags and "running" in entry.flags):
            continue
        if not entry.address:
            continue
        if entry.family in LINK_FAMILIES:
            continue
        grouped.setdefault(entry.name, []).append(_classify(entry))
    return grouped


def _family_rank(entry: InterfaceEntry) -> int:
    if entry.family in LINK_FAMILIES:
        return 0
    if entry.family == socket.AF_INET:
        return 1
    if entry.family == socket.AF_INET6:
        return 2
    return 3


def _enumerate_entries() -> list[InterfaceEntry]:
    """
    List interface-address records in getifaddrs(3) order.

    psutil keys its result by the first record of each name, link-layer ones
    included, so its name order is that of the link records. glibc lists every
    link record, then every IPv4 record, then every IPv6 record; a stable sort
    by family puts the flattened records back in that order.
    """
    addrs = psutil.net_if_addrs()
    stats = psutil.net_if_stats()
    entries: list[InterfaceEntry] = []
    for name, snics in addrs.items():
        stat = stats.get(name)
        if stat is None:
            flags: frozenset[str] = frozenset()
        else:
            flags = frozenset(f for f in stat.flags.split(",") if f)
        for snic in snics:
            entries.append(
                InterfaceEntry(name=name, family=int(snic.family), address=snic.address, flags=flags)
            )
    entries.sort(key=_family_rank)
    return entries


def get_interface_addresses() -> dict[str, list[InterfaceAddress]]:
    """
    Return the addresses of every up-and-running interface, keyed by name.

    Raises:
        NotSupported: Interface enumeration is not available.
        IOFailure: The OS interface list could not be read.
    """
    if not CAPABILITIES.interface_enumeration:
        raise NotSupported("Interface enumeration is not available", "get_interface_addresses")
    try:
        entries = _enumerate_entries()
    except OSError as e:
        raise IOFailure.from_os_error(e, "get_interface_addresses") from e
    return group_interface_entries(entries)
