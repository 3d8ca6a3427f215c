import pytest

from systemcheck.hierarchy import (
    HierarchyVersion,
    detect_cgroup_version,
    get_current_cgroup_path,
    is_root_path,
    parse_cgroup_path,
    read_membership_lines,
)


class TestParseCgroupPath:
    def test_v2_unified_entry(self):
        assert parse_cgroup_path(["0::/user.slice/user-1000.slice/session-4.scope"]) == (
            "/user.slice/user-1000.slice/session-4.scope"
        )

    def test_v2_root(self):
        assert parse_cgroup_path(["0::/"]) == "/"

    def test_v1_memory_controller(self):
        lines = ["6:cpu,cpuacct:/docker/abc", "4:memory:/docker/abc", "1:name=systemd:/other"]
        assert parse_cgroup_path(lines) == "/docker/abc"

    def test_v2_entry_wins_over_v1_memory(self):
        """Hybrid hosts list both; the unified entry is authoritative."""
        lines = ["4:memory:/legacy", "0::/unified"]
        assert parse_cgroup_path(lines) == "/unified"

    def test_memory_must_be_whole_controller_field(self):
        lines = ["4:memory_pressure:/nope", "5:cpu,memory:/nope"]
        assert parse_cgroup_path(lines) == ""

    def test_path_may_contain_colons(self):
        assert parse_cgroup_path(["4:memory:/odd:name"]) == "/odd:name"

    def test_no_match_is_empty(self):
        assert parse_cgroup_path(["1:name=systemd:/init.scope"]) == ""
        assert parse_cgroup_path([]) == ""


class TestGetCurrentCgroupPath:
    def test_reads_proc_self_cgroup(self, proc_root, write_file):
        write_file(proc_root, "self/cgroup", "0::/system.slice/app.service\n")
        assert get_current_cgroup_path(str(proc_root)) == "/system.slice/app.service"

    def test_missing_file_is_empty_path(self, tmp_path):
        assert get_current_cgroup_path(str(tmp_path / "nonexistent")) == ""

    def test_membership_lines_skip_blanks(self, proc_root, write_file):
        write_file(proc_root, "self/cgroup", "0::/a\n\n")
        assert read_membership_lines(str(proc_root)) == ["0::/a"]


class TestIsRootPath:
    @pytest.mark.parametrize("path", ["", "/", "//"])
    def test_root_forms(self, path):
        assert is_root_path(path)

    def test_node(self):
        assert not is_root_path("/docker/abc")


class TestDetectCgroupVersion:
    def test_v2_marker(self, cgroup_root, write_file):
        write_file(cgroup_root, "cgroup.controllers", "cpu memory\n")
        assert detect_cgroup_version(str(cgroup_root)) is HierarchyVersion.V2

    def test_v1_cpu_mount(self, cgroup_root):
        (cgroup_root / "cpu").mkdir()
        assert detect_cgroup_version(str(cgroup_root)) is HierarchyVersion.V1

    def test_v1_memory_mount(self, cgroup_root):
        (cgroup_root / "memory").mkdir()
        assert detect_cgroup_version(str(cgroup_root)) is HierarchyVersion.V1

    def test_v2_takes_precedence_over_v1(self, cgroup_root, write_file):
        (cgroup_root / "memory").mkdir()
        write_file(cgroup_root, "cgroup.controllers", "cpu memory\n")
        assert detect_cgroup_version(str(cgroup_root)) is HierarchyVersion.V2

    def test_nothing_mounted(self, cgroup_root):
        version = detect_cgroup_version(str(cgroup_root))
        assert version is HierarchyVersion.UNKNOWN
        assert version.tag is None

    def test_tags(self):
        assert HierarchyVersion.V1.tag == "v1"
        assert HierarchyVersion.V2.tag == "v2"
