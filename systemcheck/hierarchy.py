"""
Locate the current process in the cgroup hierarchy and detect the cgroup version.

/proc/self/cgroup lists one membership per line as
``hierarchy-id:controller-list:path``. On a cgroup v2 host the single unified
entry is ``0::/path``; on a v1 host each controller has its own line and the
memory controller's path is used for every resource type.
"""

import enum
from typing import List, Optional

from systemcheck import log, pseudofs
from systemcheck.constants import (
    CGROUP_V1_CPU_SUBTREE,
    CGROUP_V1_MEMORY_CONTROLLER,
    CGROUP_V1_MEMORY_SUBTREE,
    CGROUP_V2_MARKER,
    CGROUP_V2_MEMBERSHIP_PREFIX,
    DEFAULT_CGROUP_ROOT,
    DEFAULT_PROC_ROOT,
    PROC_SELF_CGROUP,
)

logger = log.get_logger()


class HierarchyVersion(enum.Enum):
    V1 = "v1"
    V2 = "v2"
    UNKNOWN = "unknown"

    @property
    def tag(self) -> Optional[str]:
        """Short tag for reports, None when no cgroup hierarchy was found."""
        if self is HierarchyVersion.UNKNOWN:
            return None
        return self.value


def is_root_path(cgroup_path: str) -> bool:
    """True when a hierarchy path names no specific node ("" or "/")."""
    return cgroup_path.strip("/") == ""


def read_membership_lines(proc_root: str = DEFAULT_PROC_ROOT) -> List[str]:
    """
    Raw non-empty lines of /proc/self/cgroup.

    Returns:
        List of membership lines, empty if the listing cannot be read.
    """
    lines = pseudofs.read_lines(pseudofs.join_path(proc_root, PROC_SELF_CGROUP))
    if lines is None:
        return []
    return [line for line in lines if line]


def parse_cgroup_path(lines: List[str]) -> str:
    """
    Extract the hierarchy path from membership lines.

    The v2 ``0::`` entry wins; otherwise the v1 entry whose controller field is
    exactly ``memory``.

    Returns:
        Hierarchy path, or "" when no usable entry exists.
    """
    for line in lines:
        if line.startswith(CGROUP_V2_MEMBERSHIP_PREFIX):
            return line[len(CGROUP_V2_MEMBERSHIP_PREFIX):]

    for line in lines:
        parts = line.split(":", 2)
        if len(parts) == 3 and parts[1] == CGROUP_V1_MEMORY_CONTROLLER:
            return parts[2]

    return ""


def get_current_cgroup_path(proc_root: str = DEFAULT_PROC_ROOT) -> str:
    """
    Hierarchy path of the current process.

    Returns:
        A slash-rooted path such as "/user.slice/user-1000.slice/session-4.scope",
        or "" when the process is unscoped or the listing is unreadable.
    """
    path = parse_cgroup_path(read_membership_lines(proc_root))
    logger.debug(f"Current cgroup path: {path!r}")
    return path


def detect_cgroup_version(cgroup_root: str = DEFAULT_CGROUP_ROOT) -> HierarchyVersion:
    """
    Decide which cgroup schema is active from marker paths.

    v2 is authoritative when both are present (hybrid hosts keep legacy v1
    mounts next to the unified one).
    """
    if pseudofs.exists(pseudofs.join_path(cgroup_root, CGROUP_V2_MARKER)):
        version = HierarchyVersion.V2
    elif pseudofs.exists(pseudofs.join_path(cgroup_root, CGROUP_V1_CPU_SUBTREE)) or pseudofs.exists(
        pseudofs.join_path(cgroup_root, CGROUP_V1_MEMORY_SUBTREE)
    ):
        version = HierarchyVersion.V1
    else:
        version = HierarchyVersion.UNKNOWN
    logger.debug(f"Detected cgroup version: {version.value}")
    return version
