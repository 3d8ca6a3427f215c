"""
Decide whether the process is actually constrained, and derive the figures
reported alongside that verdict.
"""

from dataclasses import dataclass
from typing import Optional

from systemcheck import log
from systemcheck.cgroup_limits import (
    CPU_V1_NODE,
    CPU_V2_NODE,
    MEMORY_LIMIT_V1_NODE,
    MEMORY_LIMIT_V2_NODE,
    read_cpuset,
)
from systemcheck.constants import DEFAULT_CGROUP_ROOT, SESSION_SCOPE_MARKER, USER_SLICE_PREFIX
from systemcheck.hierarchy import HierarchyVersion, detect_cgroup_version
from systemcheck.system_info import CpuTopology, MemoryTotals

logger = log.get_logger()


@dataclass(frozen=True)
class ConstraintVerdict:
    cpu_constrained: bool
    memory_constrained: bool
    used_bytes: int
    usage_percent: Optional[float] = None


def classify(
    topology: CpuTopology,
    available_cpus: int,
    memory: MemoryTotals,
    memory_limit_bytes: Optional[int],
    memory_usage_bytes: Optional[int],
) -> ConstraintVerdict:
    """
    Combine host ground truth with resolved cgroup values.

    Args:
        topology: Host CPU topology
        available_cpus: Affinity-aware CPU count for this process
        memory: Host memory totals
        memory_limit_bytes: Resolved cgroup memory limit, None if unlimited
        memory_usage_bytes: Resolved cgroup memory usage, None if unreadable

    Returns:
        ConstraintVerdict. usage_percent is None unless both limit and usage are
        known; a zero would read as "nothing used".
    """
    cpu_constrained = available_cpus < topology.logical_count
    memory_constrained = memory_limit_bytes is not None and memory_limit_bytes < memory.total_bytes
    used_bytes = max(0, memory.total_bytes - memory.available_bytes)

    usage_percent = None
    if memory_limit_bytes is not None and memory_usage_bytes is not None and memory_limit_bytes > 0:
        usage_percent = memory_usage_bytes / memory_limit_bytes * 100.0

    return ConstraintVerdict(
        cpu_constrained=cpu_constrained,
        memory_constrained=memory_constrained,
        used_bytes=used_bytes,
        usage_percent=usage_percent,
    )


def is_default_user_slice_path(cgroup_path: str) -> bool:
    """
    Heuristic for an unconfigured systemd user session,
    e.g. /user.slice/user-1000.slice/session-4.scope
    """
    return cgroup_path.startswith(USER_SLICE_PREFIX) and SESSION_SCOPE_MARKER in cgroup_path


def has_explicit_limits_at_path(cgroup_path: str, cgroup_root: str = DEFAULT_CGROUP_ROOT) -> bool:
    """
    Whether the node itself sets a CPU quota, a memory limit, or a narrower cpuset.

    Only the node's own files are consulted, no root fallback. Advisory only:
    a cpuset-only restriction shows up here, not in the CPU verdict.
    """
    version = detect_cgroup_version(cgroup_root)
    if version is HierarchyVersion.V2:
        checks = (CPU_V2_NODE, MEMORY_LIMIT_V2_NODE)
    else:
        checks = (CPU_V1_NODE, MEMORY_LIMIT_V1_NODE)

    for tier in checks:
        if tier.read(cgroup_path, cgroup_root) is not None:
            logger.debug(f"Explicit limit at {cgroup_path!r}: {tier.description}")
            return True

    node_cpus = read_cpuset(cgroup_path, version, cgroup_root)
    root_cpus = read_cpuset("", version, cgroup_root)
    if node_cpus is not None and root_cpus is not None and node_cpus != root_cpus:
        logger.debug(f"Explicit cpuset at {cgroup_path!r}: {sorted(node_cpus)}")
        return True

    return False
