"""Tests for sysfs access backends."""

from pathlib import Path

import pytest

from pcie_exporter.backends import LocalSysfs, MockSysfs, SysfsAccess


class TestLocalSysfs:
    """Tests for LocalSysfs."""

    def test_implements_protocol(self) -> None:
        """LocalSysfs implements SysfsAccess protocol."""
        assert isinstance(LocalSysfs(), SysfsAccess)

    def test_read_text_strips(self, tmp_path: Path) -> None:
        """File contents are trimmed."""
        (tmp_path / "vendor").write_text("0x8086\n")
        assert LocalSysfs().read_text(str(tmp_path / "vendor")) == "0x8086"

    def test_read_text_missing(self, tmp_path: Path) -> None:
        """Missing files read as None."""
        assert LocalSysfs().read_text(str(tmp_path / "label")) is None

    def test_read_text_invalid_utf8(self, tmp_path: Path) -> None:
        """Undecodable bytes are replaced, not raised."""
        (tmp_path / "label").write_bytes(b"\xc3\x28\n")
        assert LocalSysfs().read_text(str(tmp_path / "label")) == "\ufffd("

    def test_read_text_directory_raises(self, tmp_path: Path) -> None:
        """Reading a directory is an error, not an absence."""
        with pytest.raises(IsADirectoryError):
            LocalSysfs().read_text(str(tmp_path))

    def test_listdir(self, tmp_path: Path) -> None:
        """Directory entries are listed by name."""
        (tmp_path / "a").mkdir()
        (tmp_path / "b").write_text("")
        assert sorted(LocalSysfs().listdir(str(tmp_path))) == ["a", "b"]

    def test_listdir_missing_raises(self, tmp_path: Path) -> None:
        """Listing a missing directory raises."""
        with pytest.raises(FileNotFoundError):
            LocalSysfs().listdir(str(tmp_path / "missing"))

    def test_realpath_follows_symlinks(self, tmp_path: Path) -> None:
        """realpath returns the canonical target."""
        real = tmp_path / "devices" / "0000:00:01.0"
        real.mkdir(parents=True)
        (tmp_path / "link").symlink_to(real, target_is_directory=True)
        assert LocalSysfs().realpath(str(tmp_path / "link")) == str(real.resolve())

    def test_realpath_dangling_raises(self, tmp_path: Path) -> None:
        """Dangling symlinks cannot be resolved."""
        (tmp_path / "link").symlink_to(tmp_path / "gone")
        with pytest.raises(OSError):
            LocalSysfs().realpath(str(tmp_path / "link"))

    def test_resolve_link(self, tmp_path: Path) -> None:
        """resolve_link returns the target or None."""
        target = tmp_path / "drivers" / "nvme"
        target.mkdir(parents=True)
        (tmp_path / "driver").symlink_to(target, target_is_directory=True)
        (tmp_path / "broken").symlink_to(tmp_path / "gone")
        fs = LocalSysfs()
        assert fs.resolve_link(str(tmp_path / "driver")) == str(target.resolve())
        assert fs.resolve_link(str(tmp_path / "broken")) is None
        assert fs.resolve_link(str(tmp_path / "missing")) is None


class TestMockSysfs:
    """Tests for MockSysfs."""

    def test_implements_protocol(self) -> None:
        """MockSysfs implements SysfsAccess protocol."""
        assert isinstance(MockSysfs(), SysfsAccess)

    def test_files_and_dirs(self) -> None:
        """Files are readable and parent directories are created."""
        fs = MockSysfs()
        fs.add_file("/sys/devices/0000:00:01.0/vendor", "0x8086\n")
        assert fs.read_text("/sys/devices/0000:00:01.0/vendor") == "0x8086"
        assert fs.read_text("/sys/devices/0000:00:01.0/label") is None
        assert fs.listdir("/sys/devices") == ["0000:00:01.0"]

    def test_listing_keeps_insertion_order(self) -> None:
        """Entries are listed in the order they were added."""
        fs = MockSysfs()
        fs.add_dir("/d/b")
        fs.add_dir("/d/a")
        fs.add_file("/d/c", "")
        assert fs.listdir("/d") == ["b", "a", "c"]

    def test_relative_symlinks(self) -> None:
        """Relative symlink targets resolve against the link's directory."""
        fs = MockSysfs()
        fs.add_file("/sys/devices/pci0000:00/0000:00:01.0/class", "0x060400")
        fs.add_symlink("/sys/bus/pci/devices/0000:00:01.0", "../../../devices/pci0000:00/0000:00:01.0")
        assert fs.realpath("/sys/bus/pci/devices/0000:00:01.0") == "/sys/devices/pci0000:00/0000:00:01.0"
        assert fs.read_text("/sys/bus/pci/devices/0000:00:01.0/class") == "0x060400"

    def test_missing_paths(self) -> None:
        """Missing paths raise for listdir/realpath, None for resolve_link."""
        fs = MockSysfs()
        with pytest.raises(FileNotFoundError):
            fs.listdir("/sys/bus/pci/devices")
        with pytest.raises(FileNotFoundError):
            fs.realpath("/sys/devices/x")
        assert fs.resolve_link("/sys/devices/x/driver") is None

    def test_symlink_loop(self) -> None:
        """Symlink loops raise OSError rather than recursing forever."""
        fs = MockSysfs()
        fs.add_symlink("/a", "/b")
        fs.add_symlink("/b", "/a")
        with pytest.raises(OSError):
            fs.realpath("/a")
        assert fs.resolve_link("/a") is None

    def test_injected_error(self) -> None:
        """Injected errors are raised on access."""
        fs = MockSysfs()
        fs.add_file("/sys/x/vendor", "0x8086")
        fs.set_error("/sys/x/vendor", PermissionError(13, "Permission denied"))
        with pytest.raises(PermissionError):
            fs.read_text("/sys/x/vendor")
