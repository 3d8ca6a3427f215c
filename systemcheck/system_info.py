"""
Host ground truth: CPU topology and system memory.

These values ignore cgroup limits on purpose. They come from /proc/cpuinfo and
/proc/meminfo, with psutil and sysconf as fallbacks when procfs has nothing
useful to say.
"""

import os
from dataclasses import dataclass
from typing import List, Optional, Set, Tuple

import psutil

from systemcheck import log, pseudofs
from systemcheck.constants import DEFAULT_PROC_ROOT, KIB, PROC_CPUINFO, PROC_MEMINFO

logger = log.get_logger()


@dataclass(frozen=True)
class CpuTopology:
    logical_count: int
    physical_count: int


@dataclass(frozen=True)
class MemoryTotals:
    total_bytes: int
    available_bytes: int


def _field_value(line: str) -> Optional[str]:
    """Value part of a "key : value" cpuinfo line."""
    parts = line.split(":", 1)
    if len(parts) != 2:
        return None
    return parts[1].strip()


def _read_cpuinfo(proc_root: str) -> List[str]:
    lines = pseudofs.read_lines(pseudofs.join_path(proc_root, PROC_CPUINFO))
    return lines if lines is not None else []


def get_available_cpu_count() -> int:
    """
    Number of CPUs this process may be scheduled on.

    Uses the process CPU affinity mask, so cpusets and taskset pinning are
    reflected; CFS quotas are not.
    """
    try:
        return len(psutil.Process().cpu_affinity())
    except (AttributeError, psutil.Error, OSError) as e:
        logger.debug(f"Could not read CPU affinity: {e}")
    return psutil.cpu_count() or 1


def count_logical_processors(lines: List[str]) -> int:
    """Count distinct "processor" records in cpuinfo lines."""
    processors = set()
    for line in lines:
        if line.startswith("processor"):
            processors.add(_field_value(line))
    return len(processors)


def collect_core_ids(lines: List[str]) -> Set[Tuple[int, int]]:
    """
    Distinct (physical id, core id) pairs in cpuinfo lines.

    A "core id" line pairs with the most recent "physical id" seen; it is
    skipped until one has appeared.
    """
    core_ids = set()
    physical_id = None
    for line in lines:
        if line.startswith("physical id"):
            try:
                physical_id = int(_field_value(line) or "")
            except ValueError:
                physical_id = None
        elif line.startswith("core id") and physical_id is not None:
            try:
                core_ids.add((physical_id, int(_field_value(line) or "")))
            except ValueError:
                continue
    return core_ids


def get_system_cpu_count(proc_root: str = DEFAULT_PROC_ROOT) -> int:
    """
    Logical CPUs on the host, not limited by cgroups.

    Falls back to sysconf(SC_NPROCESSORS_ONLN), then to the affinity-aware
    count, which may itself be limited.
    """
    count = count_logical_processors(_read_cpuinfo(proc_root))
    if count > 0:
        return count

    try:
        count = os.sysconf("SC_NPROCESSORS_ONLN")
        if count > 0:
            return count
    except (ValueError, OSError, AttributeError) as e:
        logger.debug(f"sysconf(SC_NPROCESSORS_ONLN) failed: {e}")

    return get_available_cpu_count()


def get_system_physical_cpu_count(proc_root: str = DEFAULT_PROC_ROOT) -> int:
    """Physical cores on the host, from cpuinfo core ids or psutil."""
    core_ids = collect_core_ids(_read_cpuinfo(proc_root))
    if core_ids:
        return len(core_ids)

    physical = psutil.cpu_count(logical=False)
    if physical:
        return physical
    return get_system_cpu_count(proc_root)


def get_cpu_topology(proc_root: str = DEFAULT_PROC_ROOT) -> CpuTopology:
    return CpuTopology(
        logical_count=get_system_cpu_count(proc_root),
        physical_count=get_system_physical_cpu_count(proc_root),
    )


def _parse_meminfo_kib(line: str) -> Optional[int]:
    parts = line.split()
    if len(parts) < 2:
        return None
    try:
        return int(parts[1])
    except ValueError:
        return None


def parse_meminfo(lines: List[str]) -> MemoryTotals:
    """
    Extract MemTotal and MemAvailable from meminfo lines.

    Values are in KiB in the listing; missing fields count as zero.
    """
    total_kib = 0
    available_kib = 0
    for line in lines:
        if line.startswith("MemTotal:"):
            total_kib = _parse_meminfo_kib(line) or total_kib
        elif line.startswith("MemAvailable:"):
            available_kib = _parse_meminfo_kib(line) or available_kib
    return MemoryTotals(total_bytes=total_kib * KIB, available_bytes=available_kib * KIB)


def get_system_memory(proc_root: str = DEFAULT_PROC_ROOT) -> MemoryTotals:
    """
    System memory totals, not scoped to any cgroup.

    Falls back to psutil when meminfo cannot be read at all.
    """
    lines = pseudofs.read_lines(pseudofs.join_path(proc_root, PROC_MEMINFO))
    if lines is not None:
        return parse_meminfo(lines)

    mem = psutil.virtual_memory()
    return MemoryTotals(total_bytes=mem.total, available_bytes=mem.available)
