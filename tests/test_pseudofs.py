from systemcheck import pseudofs


class TestJoinPath:
    def test_node_path_below_root(self):
        assert pseudofs.join_path("/sys/fs/cgroup", "/user.slice/session-4.scope", "cpu.max") == (
            "/sys/fs/cgroup/user.slice/session-4.scope/cpu.max"
        )

    def test_root_forms_collapse(self):
        for node in ("", "/", "/docker/abc/"):
            assert "//" not in pseudofs.cgroup_file("/sys/fs/cgroup", "memory.max", node)

    def test_v1_subtree(self):
        assert pseudofs.cgroup_file("/sys/fs/cgroup", "cpu.cfs_quota_us", "/docker/abc", "cpu") == (
            "/sys/fs/cgroup/cpu/docker/abc/cpu.cfs_quota_us"
        )


class TestRead:
    def test_read_trimmed(self, tmp_path):
        path = tmp_path / "memory.max"
        path.write_text("  max\n")
        assert pseudofs.read_trimmed(str(path)) == "max"

    def test_missing_file(self, tmp_path):
        assert pseudofs.read_trimmed(str(tmp_path / "nonexistent")) is None
        assert pseudofs.read_lines(str(tmp_path / "nonexistent")) is None

    def test_directory_is_unreadable(self, tmp_path):
        assert pseudofs.read_text(str(tmp_path)) is None
