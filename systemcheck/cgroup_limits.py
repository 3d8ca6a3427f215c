"""
Cgroup-aware limit resolution for containers and systemd slices.

psutil reports the host's resources, not the limits of the cgroup the process
runs in. This module reads the actual CPU quota, memory limit and memory usage
for a hierarchy node from the cgroup files.

Both schemas are probed regardless of which one the host reports, in a fixed
order: cgroup v2 node, v2 root, v1 node, v1 root. The first tier that yields
an accepted value wins. A root tier stands in for the node's ancestors, which
is where container runtimes and session managers usually put the limit.

Each tier is a FallbackTier: the file(s) it reads, a parser, and an acceptance
predicate. The "no limit" sentinels live in the predicates, so each schema's
sentinel can be checked on its own.
"""

import re
from dataclasses import dataclass
from fractions import Fraction
from typing import Any, Callable, FrozenSet, Optional, Sequence, Tuple

from systemcheck import log, pseudofs
from systemcheck.constants import (
    CGROUP_V1_CPU_PERIOD,
    CGROUP_V1_CPU_QUOTA,
    CGROUP_V1_CPU_SUBTREE,
    CGROUP_V1_CPUSET_CPUS,
    CGROUP_V1_CPUSET_SUBTREE,
    CGROUP_V1_MEMORY_LIMIT,
    CGROUP_V1_MEMORY_SUBTREE,
    CGROUP_V1_MEMORY_UNLIMITED,
    CGROUP_V1_MEMORY_USAGE,
    CGROUP_V2_CPU_MAX,
    CGROUP_V2_CPUSET_EFFECTIVE,
    CGROUP_V2_MEMORY_CURRENT,
    CGROUP_V2_MEMORY_MAX,
    CGROUP_V2_UNLIMITED,
    DEFAULT_CGROUP_ROOT,
    UINT64_MAX,
)
from systemcheck.hierarchy import HierarchyVersion, is_root_path

logger = log.get_logger()

_UINT_RE = re.compile(r"^[0-9]+$")
_INT_RE = re.compile(r"^-?[0-9]+$")

# (quota, period); quota is None when cpu.max says "max"
CpuQuota = Tuple[Optional[int], int]


def parse_int(text: str) -> int:
    """Strictly parse a signed decimal integer (no '+', '_' or inner spaces)."""
    if not _INT_RE.match(text):
        raise ValueError(f"not an integer: {text!r}")
    return int(text)


def parse_uint64(text: str) -> int:
    """Parse a byte count that must fit in an unsigned 64-bit integer."""
    if not _UINT_RE.match(text):
        raise ValueError(f"not an unsigned integer: {text!r}")
    value = int(text)
    if value > UINT64_MAX:
        raise ValueError(f"out of range for uint64: {text!r}")
    return value


def parse_v2_cpu_max(text: str) -> CpuQuota:
    """
    Parse a cgroup v2 cpu.max record ("$QUOTA $PERIOD" or "max $PERIOD").
    """
    parts = text.split()
    if len(parts) != 2:
        raise ValueError(f"expected 'quota period', got {text!r}")
    quota_field, period_field = parts
    quota = None if quota_field == CGROUP_V2_UNLIMITED else parse_int(quota_field)
    return (quota, parse_int(period_field))


def parse_v1_cfs(quota_text: str, period_text: str) -> CpuQuota:
    """Parse the cgroup v1 cpu.cfs_quota_us / cpu.cfs_period_us pair."""
    return (parse_int(quota_text), parse_int(period_text))


def parse_v2_memory(text: str) -> Optional[int]:
    """Parse memory.max / memory.current; the "max" token parses to None."""
    if text == CGROUP_V2_UNLIMITED:
        return None
    return parse_uint64(text)


def is_v2_cpu_quota(value: CpuQuota) -> bool:
    quota, period = value
    return quota is not None and period > 0


def is_v1_cpu_quota(value: CpuQuota) -> bool:
    # -1 is the v1 "no quota" value
    quota, period = value
    return quota is not None and quota > 0 and period > 0


def is_v2_memory_limit(value: Optional[int]) -> bool:
    return value is not None and value < UINT64_MAX


def is_v1_memory_limit(value: Optional[int]) -> bool:
    return value is not None and value < CGROUP_V1_MEMORY_UNLIMITED


def is_memory_usage(value: Optional[int]) -> bool:
    return value is not None


@dataclass(frozen=True)
class FallbackTier:
    """
    One place a value may be found.

    Attributes:
        description: Name used in log messages
        filenames: Control file(s) read; their trimmed contents are passed to parser in order
        parser: Turns file contents into a raw value, raising ValueError if malformed
        accept: Predicate a parsed value must satisfy to count as resolved
        subtree: v1 controller directory, "" for v2
        scoped: True to read below the process's node, False to read at the root
    """

    description: str
    filenames: Tuple[str, ...]
    parser: Callable[..., Any]
    accept: Callable[[Any], bool]
    subtree: str = ""
    scoped: bool = True

    def read(self, cgroup_path: str, cgroup_root: str = DEFAULT_CGROUP_ROOT) -> Optional[Any]:
        """
        Try this tier.

        Returns:
            The parsed value if present, well-formed and accepted, otherwise None.
        """
        node = cgroup_path if self.scoped else ""
        contents = []
        for filename in self.filenames:
            text = pseudofs.read_trimmed(pseudofs.cgroup_file(cgroup_root, filename, node, self.subtree))
            if text is None:
                return None
            contents.append(text)

        try:
            value = self.parser(*contents)
        except ValueError as e:
            logger.debug(f"Could not parse {self.description}: {e}")
            return None

        if not self.accept(value):
            logger.debug(f"Rejected {self.description}: {value!r}")
            return None
        return value


def resolve_first(tiers: Sequence[FallbackTier], cgroup_path: str, cgroup_root: str = DEFAULT_CGROUP_ROOT) -> Optional[Any]:
    """
    Walk tiers in order and return the first accepted value.

    Node-scoped tiers are skipped when the path already is the root, since the
    following root tier reads the same file.
    """
    for tier in tiers:
        if tier.scoped and is_root_path(cgroup_path):
            continue
        value = tier.read(cgroup_path, cgroup_root)
        if value is not None:
            logger.debug(f"Resolved {tier.description}: {value!r}")
            return value
    return None


CPU_V2_NODE = FallbackTier("cgroup v2 cpu.max", (CGROUP_V2_CPU_MAX,), parse_v2_cpu_max, is_v2_cpu_quota)
CPU_V2_ROOT = FallbackTier(
    "cgroup v2 root cpu.max", (CGROUP_V2_CPU_MAX,), parse_v2_cpu_max, is_v2_cpu_quota, scoped=False
)
CPU_V1_NODE = FallbackTier(
    "cgroup v1 cfs quota",
    (CGROUP_V1_CPU_QUOTA, CGROUP_V1_CPU_PERIOD),
    parse_v1_cfs,
    is_v1_cpu_quota,
    subtree=CGROUP_V1_CPU_SUBTREE,
)
CPU_V1_ROOT = FallbackTier(
    "cgroup v1 root cfs quota",
    (CGROUP_V1_CPU_QUOTA, CGROUP_V1_CPU_PERIOD),
    parse_v1_cfs,
    is_v1_cpu_quota,
    subtree=CGROUP_V1_CPU_SUBTREE,
    scoped=False,
)

MEMORY_LIMIT_V2_NODE = FallbackTier(
    "cgroup v2 memory.max", (CGROUP_V2_MEMORY_MAX,), parse_v2_memory, is_v2_memory_limit
)
MEMORY_LIMIT_V2_ROOT = FallbackTier(
    "cgroup v2 root memory.max", (CGROUP_V2_MEMORY_MAX,), parse_v2_memory, is_v2_memory_limit, scoped=False
)
MEMORY_LIMIT_V1_NODE = FallbackTier(
    "cgroup v1 memory.limit_in_bytes",
    (CGROUP_V1_MEMORY_LIMIT,),
    parse_uint64,
    is_v1_memory_limit,
    subtree=CGROUP_V1_MEMORY_SUBTREE,
)
MEMORY_LIMIT_V1_ROOT = FallbackTier(
    "cgroup v1 root memory.limit_in_bytes",
    (CGROUP_V1_MEMORY_LIMIT,),
    parse_uint64,
    is_v1_memory_limit,
    subtree=CGROUP_V1_MEMORY_SUBTREE,
    scoped=False,
)

MEMORY_USAGE_V2_NODE = FallbackTier(
    "cgroup v2 memory.current", (CGROUP_V2_MEMORY_CURRENT,), parse_uint64, is_memory_usage
)
MEMORY_USAGE_V2_ROOT = FallbackTier(
    "cgroup v2 root memory.current", (CGROUP_V2_MEMORY_CURRENT,), parse_uint64, is_memory_usage, scoped=False
)
MEMORY_USAGE_V1_NODE = FallbackTier(
    "cgroup v1 memory.usage_in_bytes",
    (CGROUP_V1_MEMORY_USAGE,),
    parse_uint64,
    is_memory_usage,
    subtree=CGROUP_V1_MEMORY_SUBTREE,
)
MEMORY_USAGE_V1_ROOT = FallbackTier(
    "cgroup v1 root memory.usage_in_bytes",
    (CGROUP_V1_MEMORY_USAGE,),
    parse_uint64,
    is_memory_usage,
    subtree=CGROUP_V1_MEMORY_SUBTREE,
    scoped=False,
)

CPU_QUOTA_TIERS = (CPU_V2_NODE, CPU_V2_ROOT, CPU_V1_NODE, CPU_V1_ROOT)
MEMORY_LIMIT_TIERS = (MEMORY_LIMIT_V2_NODE, MEMORY_LIMIT_V2_ROOT, MEMORY_LIMIT_V1_NODE, MEMORY_LIMIT_V1_ROOT)
MEMORY_USAGE_TIERS = (MEMORY_USAGE_V2_NODE, MEMORY_USAGE_V2_ROOT, MEMORY_USAGE_V1_NODE, MEMORY_USAGE_V1_ROOT)


def cpu_quota_ratio(value: CpuQuota) -> float:
    """Fractional CPU count for a quota/period pair, computed exactly then rounded once."""
    quota, period = value
    return float(Fraction(quota, period))


def get_cgroup_cpu_quota(cgroup_path: str = "", cgroup_root: str = DEFAULT_CGROUP_ROOT) -> Optional[float]:
    """
    Get the CPU quota for a cgroup node.

    Returns:
        Number of CPUs allowed (e.g. 1.5 for quota=150000/period=100000),
        or None if no quota is configured at any tier checked.
    """
    value = resolve_first(CPU_QUOTA_TIERS, cgroup_path, cgroup_root)
    if value is None:
        return None
    return cpu_quota_ratio(value)


def get_cgroup_memory_limit_bytes(cgroup_path: str = "", cgroup_root: str = DEFAULT_CGROUP_ROOT) -> Optional[int]:
    """
    Get the memory limit for a cgroup node.

    Returns:
        Memory limit in bytes, or None if unlimited or not configured.
    """
    return resolve_first(MEMORY_LIMIT_TIERS, cgroup_path, cgroup_root)


def get_cgroup_memory_usage_bytes(cgroup_path: str = "", cgroup_root: str = DEFAULT_CGROUP_ROOT) -> Optional[int]:
    """
    Get the current memory usage charged to a cgroup node.

    Returns:
        Usage in bytes, or None if unreadable.
    """
    return resolve_first(MEMORY_USAGE_TIERS, cgroup_path, cgroup_root)


@dataclass(frozen=True)
class ResolvedLimits:
    cpu_quota: Optional[float]
    memory_limit_bytes: Optional[int]
    memory_usage_bytes: Optional[int]


def resolve_limits(cgroup_path: str = "", cgroup_root: str = DEFAULT_CGROUP_ROOT) -> ResolvedLimits:
    """Resolve CPU quota, memory limit and memory usage for a cgroup node."""
    return ResolvedLimits(
        cpu_quota=get_cgroup_cpu_quota(cgroup_path, cgroup_root),
        memory_limit_bytes=get_cgroup_memory_limit_bytes(cgroup_path, cgroup_root),
        memory_usage_bytes=get_cgroup_memory_usage_bytes(cgroup_path, cgroup_root),
    )


def parse_cpu_list(text: str) -> FrozenSet[int]:
    """
    Parse a kernel CPU list such as "0-3,8,10-11" into a set of CPU ids.

    Raises:
        ValueError: If any element is malformed or a range is reversed
    """
    cpus = set()
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            start_text, end_text = part.split("-", 1)
            start, end = parse_uint64(start_text), parse_uint64(end_text)
            if end < start:
                raise ValueError(f"reversed CPU range: {part!r}")
            cpus.update(range(start, end + 1))
        else:
            cpus.add(parse_uint64(part))
    return frozenset(cpus)


def read_cpuset(
    cgroup_path: str, version: HierarchyVersion, cgroup_root: str = DEFAULT_CGROUP_ROOT
) -> Optional[FrozenSet[int]]:
    """
    CPUs a node may run on, from cpuset.cpus.effective (v2) or cpuset.cpus (v1).

    Returns:
        Set of CPU ids, or None if the file is missing, empty or malformed.
    """
    if version is HierarchyVersion.V2:
        path = pseudofs.cgroup_file(cgroup_root, CGROUP_V2_CPUSET_EFFECTIVE, cgroup_path)
    else:
        path = pseudofs.cgroup_file(cgroup_root, CGROUP_V1_CPUSET_CPUS, cgroup_path, CGROUP_V1_CPUSET_SUBTREE)

    text = pseudofs.read_trimmed(path)
    if not text:
        return None
    try:
        cpus = parse_cpu_list(text)
    except ValueError as e:
        logger.debug(f"Could not parse cpuset {path}: {e}")
        return None
    return cpus or None
