"""
Read access to the kernel pseudo-filesystems (procfs and the cgroup mount).

Provides a thin layer over local file reads so that every reader in the
package degrades the same way: a file that is missing, unreadable or not text
yields None and a DEBUG log line, never an exception. Roots are passed in
explicitly so a fake tree can stand in for /proc and /sys/fs/cgroup.
"""

import os
from typing import List, Optional

from systemcheck import log

logger = log.get_logger()


def join_path(root: str, *parts: str) -> str:
    """
    Join path components below a root. Works for cgroup node paths too.

    Each component may itself contain slashes (e.g. "/user.slice/session-4.scope");
    empty segments are dropped, so "", "/" and trailing slashes all collapse.

    Args:
        root: Mount point or fake root directory
        *parts: Path components to append

    Returns:
        Joined path as string
    """
    segments = [segment for part in parts for segment in part.split("/") if segment]
    return os.path.join(root, *segments)


def cgroup_file(cgroup_root: str, filename: str, node: str = "", subtree: str = "") -> str:
    """
    Path of a cgroup control file.

    Args:
        cgroup_root: cgroup mount point
        filename: Control file name (e.g. "cpu.max")
        node: Hierarchy path of the node, "" or "/" for the root
        subtree: v1 controller directory ("cpu", "memory", ...), "" for v2
    """
    return join_path(cgroup_root, subtree, node, filename)


def read_text(path: str) -> Optional[str]:
    """
    Read a whole pseudo-file.

    Returns:
        File contents, or None if the file cannot be read.
    """
    try:
        with open(path, "r") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(f"Could not read {path}: {e}")
        return None


def read_trimmed(path: str) -> Optional[str]:
    """Read a single-value pseudo-file with surrounding whitespace removed."""
    contents = read_text(path)
    if contents is None:
        return None
    return contents.strip()


def read_lines(path: str) -> Optional[List[str]]:
    """Read a line-oriented listing. Returns None if unreadable."""
    contents = read_text(path)
    if contents is None:
        return None
    return contents.splitlines()


def exists(path: str) -> bool:
    return os.path.exists(path)
