"""Locations of the kernel pseudo-files read by platstat."""

from dataclasses import dataclass
from pathlib import Path


@dataclass(slots=True, frozen=True)
class PlatformPaths:
    """
    Roots of the procfs and sysfs trees.

    Readers take an instance of this class so they can be pointed at a
    fixture tree instead of the live kernel.
    """

    proc_root: Path = Path("/proc")
    sys_root: Path = Path("/sys")

    @property
    def self_stat(self) -> Path:
        return Path(self.proc_root) / "self" / "stat"

    @property
    def self_exe(self) -> Path:
        return Path(self.proc_root) / "self" / "exe"

    @property
    def cpuinfo(self) -> Path:
        return Path(self.proc_root) / "cpuinfo"

    @property
    def stat(self) -> Path:
        return Path(self.proc_root) / "stat"

    def cpu_max_freq(self, index: int) -> Path:
        """Path of the max-frequency file (kHz) of logical CPU ``index``."""
        return (
            Path(self.sys_root)
            / "devices"
            / "system"
            / "cpu"
            / f"cpu{index}"
            / "cpufreq"
            / "cpuinfo_max_freq"
        )


DEFAULT_PATHS = PlatformPaths()
