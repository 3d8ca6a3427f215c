from types import SimpleNamespace
from unittest.mock import patch

import psutil

from systemcheck import system_info
from systemcheck.system_info import (
    CpuTopology,
    MemoryTotals,
    collect_core_ids,
    get_available_cpu_count,
    get_cpu_topology,
    get_system_cpu_count,
    get_system_memory,
    get_system_physical_cpu_count,
    parse_meminfo,
)


class TestCpuTopology:
    def test_counts_from_cpuinfo(self, proc_root):
        assert get_cpu_topology(str(proc_root)) == CpuTopology(logical_count=4, physical_count=2)

    def test_multi_socket_core_ids_are_distinct(self):
        lines = [
            "processor : 0", "physical id : 0", "core id : 0",
            "processor : 1", "physical id : 1", "core id : 0",
        ]
        assert collect_core_ids(lines) == {(0, 0), (1, 0)}

    def test_core_id_without_physical_id_is_ignored(self):
        assert collect_core_ids(["processor : 0", "core id : 0"]) == set()

    def test_physical_id_carries_over_to_later_processors(self):
        lines = [
            "processor : 0", "physical id : 1", "core id : 0",
            "processor : 1", "core id : 1",
        ]
        assert collect_core_ids(lines) == {(1, 0), (1, 1)}

    def test_missing_cpuinfo_falls_back_to_sysconf(self, tmp_path, monkeypatch):
        monkeypatch.setattr(system_info.os, "sysconf", lambda name: 8)
        assert get_system_cpu_count(str(tmp_path)) == 8

    def test_sysconf_failure_falls_back_to_available_count(self, tmp_path, monkeypatch):
        def broken_sysconf(name):
            raise ValueError(name)

        monkeypatch.setattr(system_info.os, "sysconf", broken_sysconf)
        monkeypatch.setattr(system_info, "get_available_cpu_count", lambda: 3)
        assert get_system_cpu_count(str(tmp_path)) == 3

    def test_physical_falls_back_to_psutil(self, tmp_path, write_file):
        write_file(tmp_path, "cpuinfo", "processor : 0\nprocessor : 1\n")
        with patch("systemcheck.system_info.psutil.cpu_count", return_value=6):
            assert get_system_physical_cpu_count(str(tmp_path)) == 6


class TestAvailableCpuCount:
    def test_uses_affinity_mask(self):
        fake_process = SimpleNamespace(cpu_affinity=lambda: [0, 2])
        with patch("systemcheck.system_info.psutil.Process", return_value=fake_process):
            assert get_available_cpu_count() == 2

    def test_falls_back_to_cpu_count(self):
        def no_affinity():
            raise psutil.AccessDenied()

        fake_process = SimpleNamespace(cpu_affinity=no_affinity)
        with patch("systemcheck.system_info.psutil.Process", return_value=fake_process), patch(
            "systemcheck.system_info.psutil.cpu_count", return_value=5
        ):
            assert get_available_cpu_count() == 5


class TestSystemMemory:
    def test_reads_meminfo_in_kib(self, proc_root):
        totals = get_system_memory(str(proc_root))
        assert totals == MemoryTotals(total_bytes=2 * 1024**3, available_bytes=1024**3)

    def test_missing_fields_default_to_zero(self):
        assert parse_meminfo(["MemTotal: 1024 kB", "MemFree: 512 kB"]) == MemoryTotals(1024 * 1024, 0)
        assert parse_meminfo(["garbage"]) == MemoryTotals(0, 0)

    def test_unreadable_meminfo_uses_psutil(self, tmp_path):
        fake = SimpleNamespace(total=4096, available=1024)
        with patch("systemcheck.system_info.psutil.virtual_memory", return_value=fake):
            assert get_system_memory(str(tmp_path / "nonexistent")) == MemoryTotals(4096, 1024)
