"""
Assemble the resolved resource view and render it.

gather_report() reads everything once into a ResourceReport. The summary and
detailed views, as text or JSON, are all rendered from that one snapshot, so
the four combinations never disagree on values.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from systemcheck import log
from systemcheck.__version__ import __version__
from systemcheck.cgroup_limits import resolve_limits
from systemcheck.classifier import (
    ConstraintVerdict,
    classify,
    has_explicit_limits_at_path,
    is_default_user_slice_path,
)
from systemcheck.config import Settings
from systemcheck.hierarchy import detect_cgroup_version, is_root_path, parse_cgroup_path, read_membership_lines
from systemcheck.system_info import get_available_cpu_count, get_cpu_topology, get_system_memory

logger = log.get_logger()

BYTE_UNITS = ["B", "KiB", "MiB", "GiB", "TiB"]


@dataclass(frozen=True)
class ResourceReport:
    version: str
    system_logical_cpus: int
    system_physical_cpus: int
    available_cpus: int
    cgroup_cpu_quota: Optional[float]
    system_total_bytes: int
    system_available_bytes: int
    system_used_bytes: int
    cgroup_memory_limit_bytes: Optional[int]
    cgroup_memory_usage_bytes: Optional[int]
    cgroup_version: Optional[str]
    cgroup_path: str
    cgroup_membership: Tuple[str, ...]
    verdict: ConstraintVerdict
    default_user_slice: bool
    explicit_limits: bool

    def to_summary_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "cpu": {
                "available_cpus": self.available_cpus,
                "system_logical_cpus": self.system_logical_cpus,
                "constrained": self.verdict.cpu_constrained,
            },
            "memory": {
                "system_available_bytes": self.system_available_bytes,
                "cgroup_memory_limit_bytes": self.cgroup_memory_limit_bytes,
                "constrained": self.verdict.memory_constrained,
            },
        }

    def to_detailed_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "cpu": {
                "system_logical_cpus": self.system_logical_cpus,
                "system_physical_cpus": self.system_physical_cpus,
                "available_cpus": self.available_cpus,
                "cgroup_cpu_quota": self.cgroup_cpu_quota,
            },
            "memory": {
                "system_total_bytes": self.system_total_bytes,
                "system_available_bytes": self.system_available_bytes,
                "system_used_bytes": self.system_used_bytes,
                "cgroup_memory_limit_bytes": self.cgroup_memory_limit_bytes,
                "cgroup_memory_usage_bytes": self.cgroup_memory_usage_bytes,
                "cgroup_memory_usage_percent": self.verdict.usage_percent,
            },
            "cgroup": {
                "version": self.cgroup_version,
                "current_path": self.cgroup_path,
                "cpu_quota": self.cgroup_cpu_quota,
                "memory_limit_bytes": self.cgroup_memory_limit_bytes,
                "default_user_slice": self.default_user_slice,
                "explicit_limits": self.explicit_limits,
            },
        }


def gather_report(settings: Optional[Settings] = None) -> ResourceReport:
    """
    Read host and cgroup state once and resolve it into a report.

    Args:
        settings: Roots to read from; defaults to the live /proc and /sys/fs/cgroup

    Returns:
        ResourceReport snapshot. Never raises for missing or malformed files.
    """
    settings = settings or Settings()

    topology = get_cpu_topology(settings.proc_root)
    available_cpus = get_available_cpu_count()
    memory = get_system_memory(settings.proc_root)
    membership = read_membership_lines(settings.proc_root)
    cgroup_path = parse_cgroup_path(membership)
    version = detect_cgroup_version(settings.cgroup_root)
    limits = resolve_limits(cgroup_path, settings.cgroup_root)

    verdict = classify(
        topology,
        available_cpus,
        memory,
        limits.memory_limit_bytes,
        limits.memory_usage_bytes,
    )
    logger.debug(f"Resolved limits for {cgroup_path!r}: {limits}, verdict: {verdict}")

    return ResourceReport(
        version=__version__,
        system_logical_cpus=topology.logical_count,
        system_physical_cpus=topology.physical_count,
        available_cpus=available_cpus,
        cgroup_cpu_quota=limits.cpu_quota,
        system_total_bytes=memory.total_bytes,
        system_available_bytes=memory.available_bytes,
        system_used_bytes=verdict.used_bytes,
        cgroup_memory_limit_bytes=limits.memory_limit_bytes,
        cgroup_memory_usage_bytes=limits.memory_usage_bytes,
        cgroup_version=version.tag,
        cgroup_path=cgroup_path,
        cgroup_membership=tuple(membership),
        verdict=verdict,
        default_user_slice=is_default_user_slice_path(cgroup_path),
        explicit_limits=has_explicit_limits_at_path(cgroup_path, settings.cgroup_root),
    )


def format_bytes(num: float) -> str:
    """Format a byte count with binary units, e.g. 536870912 -> "512.0 MiB"."""
    for unit in BYTE_UNITS:
        if num < 1024.0:
            return f"{num:.1f} {unit}"
        num /= 1024.0
    return f"{num:.1f} PiB"


def render_json(report: ResourceReport, verbose: bool = False) -> str:
    data = report.to_detailed_dict() if verbose else report.to_summary_dict()
    return json.dumps(data, indent=2)


def _cgroup_note(report: ResourceReport) -> Optional[str]:
    if report.default_user_slice and not report.explicit_limits:
        return "CGroup: default user slice (no explicit limits)"
    if is_root_path(report.cgroup_path):
        return None
    if report.explicit_limits:
        return f"CGroup: limits present at {report.cgroup_path}"
    return f"CGroup: {report.cgroup_path} (no explicit limits)"


def render_summary_text(report: ResourceReport) -> str:
    lines = [f"systemcheck: {report.version}", "", "CPU Usage:"]
    if report.verdict.cpu_constrained:
        lines.append(f"Constrained to {report.available_cpus} of {report.system_logical_cpus} CPUs")
    else:
        lines.append(f"Not constrained: {report.available_cpus} CPUs available")
    lines.append("")

    available = format_bytes(report.system_available_bytes)
    if report.cgroup_memory_limit_bytes is not None:
        lines.append(f"Memory: Limited to {format_bytes(report.cgroup_memory_limit_bytes)} of {available} available")
    else:
        lines.append(f"Memory: Unconstrained, {available} available")

    note = _cgroup_note(report)
    if note:
        lines.append(note)
    lines.append("")
    lines.append("see more details with systemcheck -v")
    return "\n".join(lines)


def _cpu_section(report: ResourceReport) -> List[str]:
    lines = [
        "CPU Information:",
        "----------------",
        f"  System Logical CPUs:     {report.system_logical_cpus} threads",
        f"  System Physical CPUs:    {report.system_physical_cpus} cores",
        f"  Available CPUs (cgroup): {report.available_cpus}",
    ]
    if report.verdict.cpu_constrained:
        lines.append(
            f"  ⚠️  CPU is constrained by cgroups to {report.available_cpus} of {report.system_logical_cpus} system CPUs"
        )
    if report.cgroup_cpu_quota is not None:
        lines.append(f"  CGroup CPU Quota:        {report.cgroup_cpu_quota:.2f} CPUs")
    return lines


def _memory_section(report: ResourceReport) -> List[str]:
    lines = [
        "Memory Information:",
        "-------------------",
        f"  System Total Memory:     {format_bytes(report.system_total_bytes)}",
        f"  System Available Memory: {format_bytes(report.system_available_bytes)}",
        f"  System Used Memory:      {format_bytes(report.system_used_bytes)}",
    ]
    if report.cgroup_memory_limit_bytes is not None:
        lines.append(f"  CGroup Memory Limit:     {format_bytes(report.cgroup_memory_limit_bytes)}")
        if report.verdict.memory_constrained:
            lines.append("  ⚠️  Memory is constrained by cgroups!")
            if report.cgroup_memory_usage_bytes is not None and report.verdict.usage_percent is not None:
                lines.append(
                    f"  CGroup Memory Usage:     {format_bytes(report.cgroup_memory_usage_bytes)}"
                    f" ({report.verdict.usage_percent:.1f}% of limit)"
                )
    return lines


def _cgroup_section(report: ResourceReport) -> List[str]:
    lines = ["CGroup Information:", "-------------------"]
    if report.cgroup_version == "v2":
        lines.append("  CGroup Version: v2 (unified hierarchy)")
    elif report.cgroup_version == "v1":
        lines.append("  CGroup Version: v1")
    else:
        lines.append("  CGroup Version: Not detected or not in container")

    if report.cgroup_membership:
        lines.append("  Current Process CGroups:")
        lines.extend(f"    {line}" for line in report.cgroup_membership)

    if not is_root_path(report.cgroup_path):
        lines.append("")
        lines.append("  Resource Constraints for Current CGroup:")
        if report.cgroup_cpu_quota is not None:
            lines.append(f"    CPU Quota: {report.cgroup_cpu_quota:.2f} CPUs")
        if report.cgroup_memory_limit_bytes is not None:
            lines.append(f"    Memory Limit: {format_bytes(report.cgroup_memory_limit_bytes)}")
        if report.default_user_slice and not report.explicit_limits:
            lines.append("")
            lines.append(
                "  Note: no explicit cpu/memory/cpuset limits detected at this cgroup;"
                " this looks like a default systemd user slice."
            )
    return lines


def render_detailed_text(report: ResourceReport) -> str:
    lines = [f"systemcheck v{report.version}", "", "=== System Check - Resource Diagnostics ===", ""]
    lines.extend(_cpu_section(report))
    lines.append("")
    lines.extend(_memory_section(report))
    lines.append("")
    lines.extend(_cgroup_section(report))
    return "\n".join(lines)


def render(report: ResourceReport, verbose: bool = False, as_json: bool = False) -> str:
    """Render a report in one of the four supported forms."""
    if as_json:
        return render_json(report, verbose)
    if verbose:
        return render_detailed_text(report)
    return render_summary_text(report)
