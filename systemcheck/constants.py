# Mount points
DEFAULT_CGROUP_ROOT = "/sys/fs/cgroup"
DEFAULT_PROC_ROOT = "/proc"

# procfs listings (relative to the proc root)
PROC_CPUINFO = "cpuinfo"
PROC_MEMINFO = "meminfo"
PROC_SELF_CGROUP = "self/cgroup"

# Version markers (relative to the cgroup root)
CGROUP_V2_MARKER = "cgroup.controllers"
CGROUP_V1_CPU_SUBTREE = "cpu"
CGROUP_V1_MEMORY_SUBTREE = "memory"
CGROUP_V1_CPUSET_SUBTREE = "cpuset"

# Cgroup v2 files (unified hierarchy)
CGROUP_V2_CPU_MAX = "cpu.max"
CGROUP_V2_MEMORY_MAX = "memory.max"
CGROUP_V2_MEMORY_CURRENT = "memory.current"
CGROUP_V2_CPUSET_EFFECTIVE = "cpuset.cpus.effective"

# Cgroup v1 files (per-controller hierarchies)
CGROUP_V1_CPU_QUOTA = "cpu.cfs_quota_us"
CGROUP_V1_CPU_PERIOD = "cpu.cfs_period_us"
CGROUP_V1_MEMORY_LIMIT = "memory.limit_in_bytes"
CGROUP_V1_MEMORY_USAGE = "memory.usage_in_bytes"
CGROUP_V1_CPUSET_CPUS = "cpuset.cpus"

# /proc/self/cgroup markers
CGROUP_V2_MEMBERSHIP_PREFIX = "0::"
CGROUP_V1_MEMORY_CONTROLLER = "memory"

# "No limit" values
CGROUP_V2_UNLIMITED = "max"
UINT64_MAX = 2**64 - 1
# Page-aligned LONG_MAX the v1 memory controller reports when no limit is set
CGROUP_V1_MEMORY_UNLIMITED = 9223372036854771712

# systemd user session layout, e.g. /user.slice/user-1000.slice/session-4.scope
USER_SLICE_PREFIX = "/user.slice/user-"
SESSION_SCOPE_MARKER = "/session-"

KIB = 1024

# Environment variables
ENV_CGROUP_ROOT = "SYSTEMCHECK_CGROUP_ROOT"
ENV_PROC_ROOT = "SYSTEMCHECK_PROC_ROOT"
ENV_LOG_LEVEL = "SYSTEMCHECK_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"
