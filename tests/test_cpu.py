"""Tests for the CPU topology and usage reader."""

import pytest

from conftest import make_cpuinfo, make_proc_stat
from platstat.cpu import get_cpu_info, parse_cpuinfo, parse_stat_cpu_lines
from platstat.errors import IOFailure, ParseFailure
from platstat.models import CpuRecord, CpuTimes

FOUR_CORES = [
    (100, 1, 50, 1000, 7, 2),
    (200, 2, 60, 2000, 8, 3),
    (300, 3, 70, 3000, 9, 4),
    (400, 4, 80, 4000, 10, 5),
]


class TestParseCpuinfo:
    """Tests for parse_cpuinfo."""

    def test_first_model_wins(self):
        """Only the first model name is kept, every model line is counted."""
        text = make_cpuinfo(["Model A", "Model B", "Model C"], ["1000.000", "2000.000", "3000.000"])
        description = parse_cpuinfo(text.splitlines(keepends=True))
        assert description.count == 3
        assert description.model == "Model A"

    def test_speed_from_first_core_integer_part(self):
        """The clock speed comes from the first core block, truncated to MHz."""
        text = make_cpuinfo(["M", "M"], ["2394.454", "3600.000"])
        description = parse_cpuinfo(text.splitlines(keepends=True))
        assert description.speed_mhz == 2394

    def test_empty_input(self):
        """No model lines means no CPUs, empty model and zero speed."""
        description = parse_cpuinfo([])
        assert (description.count, description.model, description.speed_mhz) == (0, "", 0)

    def test_malformed_speed_is_ignored(self):
        """A non-numeric cpu MHz value leaves the speed at zero."""
        description = parse_cpuinfo(["model name\t: M\n", "cpu MHz\t\t: fast\n"])
        assert (description.count, description.model, description.speed_mhz) == (1, "M", 0)

    def test_malformed_speed_keeps_last_good_value(self):
        """A later malformed cpu MHz line does not discard an earlier value."""
        description = parse_cpuinfo(
            ["model name\t: M\n", "cpu MHz\t\t: 1600.000\n", "cpu MHz\t\t: ?\n"]
        )
        assert description.speed_mhz == 1600

    def test_model_keeps_surrounding_text(self):
        """Only the ": " separator and the newline are removed from the model."""
        description = parse_cpuinfo(["model name\t: Model X  \n"])
        assert description.model == "Model X  "


class TestParseStatCpuLines:
    """Tests for parse_stat_cpu_lines."""

    def test_skips_aggregate_and_stops_at_first_other_line(self):
        """The "cpu " total line is skipped and parsing ends at "intr"."""
        lines = make_proc_stat(FOUR_CORES[:2]).splitlines(keepends=True)
        cores = parse_stat_cpu_lines(lines)
        assert [core.name for core in cores] == ["cpu0", "cpu1"]

    def test_counter_columns(self):
        """user, nice, system, idle and irq are read; iowait is skipped."""
        cores = parse_stat_cpu_lines(["cpu0 11 12 13 14 15 16 17 18\n"])
        core = cores[0]
        assert (core.user, core.nice, core.sys, core.idle, core.irq) == (11, 12, 13, 14, 16)

    def test_short_line_is_parse_failure(self):
        """A cpu line with too few counters is rejected."""
        with pytest.raises(ParseFailure):
            parse_stat_cpu_lines(["cpu0 1 2 3\n"])

    def test_non_numeric_counter_is_parse_failure(self):
        """A cpu line with a non-numeric counter is rejected."""
        with pytest.raises(ParseFailure):
            parse_stat_cpu_lines(["cpu0 1 2 x 4 5 6\n"])


class TestGetCpuInfo:
    """Tests for get_cpu_info against fixture trees."""

    def test_four_cores(self, proc_tree):
        """Four model lines and four cpu lines give four records sharing one model."""
        proc_tree.write_cpuinfo(make_cpuinfo(["Xeon A", "Xeon B", "Xeon C", "Xeon D"], ["2400.000"] * 4))
        proc_tree.write_stat(make_proc_stat(FOUR_CORES))

        records = get_cpu_info(proc_tree.paths, ticks_per_second=100)

        assert len(records) == 4
        assert {record.model for record in records} == {"Xeon A"}
        assert records[0] == CpuRecord(
            model="Xeon A",
            speed_mhz=2400,
            times=CpuTimes(user=1000, nice=10, sys=500, idle=10000, irq=20),
        )
        assert records[3].times.idle == 40000

    def test_ticks_per_second_conversion(self, proc_tree):
        """Ticks are converted with 1000 / ticks_per_second."""
        proc_tree.write_cpuinfo(make_cpuinfo(["M"], ["1000.000"]))
        proc_tree.write_stat(make_proc_stat([(250, 0, 0, 500, 0, 0)]))

        (record,) = get_cpu_info(proc_tree.paths, ticks_per_second=250)

        assert record.times.user == 1000
        assert record.times.idle == 2000

    def test_max_freq_overrides_speed(self, proc_tree):
        """A cpuinfo_max_freq file (kHz) overrides the /proc/cpuinfo speed."""
        proc_tree.write_cpuinfo(make_cpuinfo(["M", "M"], ["1200.000", "1200.000"]))
        proc_tree.write_stat(make_proc_stat(FOUR_CORES[:2]))
        proc_tree.write_max_freq(1, "3500000")

        records = get_cpu_info(proc_tree.paths, ticks_per_second=100)

        assert records[0].speed_mhz == 1200
        assert records[1].speed_mhz == 3500

    def test_missing_max_freq_keeps_cpuinfo_speed(self, proc_tree):
        """Without sysfs frequency files the /proc/cpuinfo speed is used, no error."""
        proc_tree.write_cpuinfo(make_cpuinfo(["M"] * 4, ["1800.000"] * 4))
        proc_tree.write_stat(make_proc_stat(FOUR_CORES))

        records = get_cpu_info(proc_tree.paths, ticks_per_second=100)

        assert [record.speed_mhz for record in records] == [1800] * 4

    def test_undecodable_max_freq_keeps_cpuinfo_speed(self, proc_tree):
        """Non-ASCII bytes in a cpuinfo_max_freq file fall back like a missing file."""
        proc_tree.write_cpuinfo(make_cpuinfo(["M", "M"], ["1200.000", "1200.000"]))
        proc_tree.write_stat(make_proc_stat(FOUR_CORES[:2]))
        max_freq = proc_tree.paths.cpu_max_freq(0)
        max_freq.parent.mkdir(parents=True)
        max_freq.write_bytes(b"\xff\xfe\n")

        records = get_cpu_info(proc_tree.paths, ticks_per_second=100)

        assert [record.speed_mhz for record in records] == [1200, 1200]

    def test_malformed_cpuinfo_speed_still_reports_cores(self, proc_tree):
        """A bad cpu MHz value does not stop the per-core records."""
        proc_tree.write_cpuinfo("model name\t: M\ncpu MHz\t\t: unknown\n")
        proc_tree.write_stat(make_proc_stat(FOUR_CORES[:2]))

        records = get_cpu_info(proc_tree.paths, ticks_per_second=100)

        assert len(records) == 2
        assert all(record.model == "M" and record.speed_mhz == 0 for record in records)

    def test_unreadable_cpuinfo_still_reports_cores(self, proc_tree):
        """Without /proc/cpuinfo the records have an empty model and zero speed."""
        proc_tree.write_stat(make_proc_stat(FOUR_CORES[:3]))

        records = get_cpu_info(proc_tree.paths, ticks_per_second=100)

        assert len(records) == 3
        assert all(record.model == "" and record.speed_mhz == 0 for record in records)

    def test_unreadable_stat_gives_no_records(self, proc_tree):
        """Without /proc/stat there are no usage counters and so no records."""
        proc_tree.write_cpuinfo(make_cpuinfo(["M"], ["1000.000"]))

        assert get_cpu_info(proc_tree.paths, ticks_per_second=100) == []

    def test_both_unreadable_is_io_failure(self, proc_tree):
        """IOFailure is raised only when neither file can be opened."""
        with pytest.raises(IOFailure):
            get_cpu_info(proc_tree.paths, ticks_per_second=100)

    def test_record_count_follows_stat(self, proc_tree):
        """Records follow the /proc/stat core lines when the two files disagree."""
        proc_tree.write_cpuinfo(make_cpuinfo(["M"] * 4, ["1000.000"] * 4))
        proc_tree.write_stat(make_proc_stat(FOUR_CORES[:2]))

        assert len(get_cpu_info(proc_tree.paths, ticks_per_second=100)) == 2

    def test_live_counters_do_not_decrease(self):
        """Two immediate reads of the live system never go backwards."""
        first = get_cpu_info()
        second = get_cpu_info()
        assert len(first) == len(second)
        assert len(first) >= 1
        for before, after in zip(first, second):
            assert before.model == after.model
            assert after.times.user >= before.times.user
            assert after.times.sys >= before.times.sys
