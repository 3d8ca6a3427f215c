from pathlib import Path
from typing import Callable

import pytest

from systemcheck.config import Settings

CPUINFO_4_THREADS_2_CORES = """processor\t: 0
vendor_id\t: GenuineIntel
physical id\t: 0
siblings\t: 4
core id\t\t: 0
cpu cores\t: 2

processor\t: 1
vendor_id\t: GenuineIntel
physical id\t: 0
siblings\t: 4
core id\t\t: 1
cpu cores\t: 2

processor\t: 2
vendor_id\t: GenuineIntel
physical id\t: 0
siblings\t: 4
core id\t\t: 0
cpu cores\t: 2

processor\t: 3
vendor_id\t: GenuineIntel
physical id\t: 0
siblings\t: 4
core id\t\t: 1
cpu cores\t: 2
"""

# 2 GiB total, 1 GiB available
MEMINFO_2_GIB = """MemTotal:        2097152 kB
MemFree:          524288 kB
MemAvailable:    1048576 kB
Buffers:           65536 kB
Cached:           262144 kB
"""

SESSION_PATH = "/user.slice/user-1000.slice/session-4.scope"


def write_tree_file(root: Path, relative: str, content: str) -> Path:
    path = root / relative.lstrip("/")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


@pytest.fixture
def write_file() -> Callable[[Path, str, str], Path]:
    return write_tree_file


@pytest.fixture
def cgroup_root(tmp_path: Path) -> Path:
    root = tmp_path / "cgroup"
    root.mkdir()
    return root


@pytest.fixture
def proc_root(tmp_path: Path) -> Path:
    root = tmp_path / "proc"
    write_tree_file(root, "cpuinfo", CPUINFO_4_THREADS_2_CORES)
    write_tree_file(root, "meminfo", MEMINFO_2_GIB)
    return root


@pytest.fixture
def settings(cgroup_root: Path, proc_root: Path) -> Settings:
    return Settings(cgroup_root=str(cgroup_root), proc_root=str(proc_root))


@pytest.fixture
def v2_host(cgroup_root: Path, proc_root: Path) -> Path:
    """Unified hierarchy with the process in a systemd session scope."""
    write_tree_file(cgroup_root, "cgroup.controllers", "cpuset cpu io memory pids\n")
    write_tree_file(proc_root, "self/cgroup", f"0::{SESSION_PATH}\n")
    return cgroup_root


@pytest.fixture
def v1_host(cgroup_root: Path, proc_root: Path) -> Path:
    """Legacy per-controller hierarchies with the process in /docker/abc."""
    (cgroup_root / "cpu").mkdir()
    (cgroup_root / "memory").mkdir()
    write_tree_file(
        proc_root,
        "self/cgroup",
        "12:pids:/docker/abc\n"
        "6:cpu,cpuacct:/docker/abc\n"
        "4:memory:/docker/abc\n"
        "1:name=systemd:/docker/abc\n",
    )
    return cgroup_root
