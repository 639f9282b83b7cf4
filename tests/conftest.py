"""Shared fixtures: a fake procfs/sysfs tree under tmp_path."""

from pathlib import Path

import pytest

from platstat.config import PlatformPaths


def make_stat_line(comm: str = "cat", vsize: int = 8192000, rss: int = 250) -> str:
    """Build a /proc/<pid>/stat line with the given name and memory fields."""
    return (
        f"4242 ({comm}) R 1 4242 4242 34816 -1 4194304 100 0 0 0 3 1 0 0 20 0 1 0 5000 "
        f"{vsize} {rss} 18446744073709551615 94000000 94100000 140730000000000 "
        "0 0 0 0 0 0 0 0 0 17 3 0 0 0 0 0\n"
    )


def make_cpuinfo(models: list[str], mhz: list[str]) -> str:
    """Build /proc/cpuinfo text with one block per core."""
    blocks = []
    for index, (model, speed) in enumerate(zip(models, mhz)):
        blocks.append(
            f"processor\t: {index}\n"
            "vendor_id\t: GenuineIntel\n"
            f"model name\t: {model}\n"
            f"cpu MHz\t\t: {speed}\n"
            "cache size\t: 8192 KB\n"
        )
    return "\n".join(blocks) + "\n"


def make_proc_stat(cores: list[tuple[int, int, int, int, int, int]]) -> str:
    """Build /proc/stat text from (user, nice, system, idle, iowait, irq) per core."""
    total = [sum(column) for column in zip(*cores)] if cores else [0] * 6
    lines = ["cpu  " + " ".join(str(v) for v in total) + " 0 0 0 0"]
    for index, counters in enumerate(cores):
        lines.append(f"cpu{index} " + " ".join(str(v) for v in counters) + " 0 0 0 0")
    lines.extend(
        [
            "intr 123456 0 0 0",
            "ctxt 98765",
            "btime 1700000000",
            "processes 4321",
            "procs_running 2",
            "procs_blocked 0",
        ]
    )
    return "\n".join(lines) + "\n"


class ProcTree:
    """Writes pseudo-files into a temporary directory."""

    def __init__(self, root: Path) -> None:
        self.proc_root = root / "proc"
        self.sys_root = root / "sys"
        (self.proc_root / "self").mkdir(parents=True)
        self.sys_root.mkdir()
        self.paths = PlatformPaths(proc_root=self.proc_root, sys_root=self.sys_root)

    def write_self_stat(self, text: str) -> None:
        (self.proc_root / "self" / "stat").write_text(text)

    def write_cpuinfo(self, text: str) -> None:
        (self.proc_root / "cpuinfo").write_text(text)

    def write_stat(self, text: str) -> None:
        (self.proc_root / "stat").write_text(text)

    def write_max_freq(self, index: int, khz: str) -> None:
        path = self.paths.cpu_max_freq(index)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"{khz}\n")

    def link_exe(self, target: str) -> None:
        (self.proc_root / "self" / "exe").symlink_to(target)


@pytest.fixture
def proc_tree(tmp_path: Path) -> ProcTree:
    """An empty fake /proc and /sys tree."""
    return ProcTree(tmp_path)
