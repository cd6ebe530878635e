"""Tests for fragment_sync.sync.replace module.

Validates backup-first ordering, atomic replacement, permission handling and
that injected failures never leave a partially written destination.
"""

import os
import stat

import pytest

from fragment_sync.errors import BackupFailed, WriteError
from fragment_sync.sync import replace as replace_module
from fragment_sync.sync.replace import (
    ReplaceResult,
    atomic_write_bytes,
    backup_and_replace,
)


def leftover_temps(directory):
    return [p.name for p in directory.iterdir() if p.name.endswith(".tmp")]


class TestAtomicWriteBytes:

    def test_writes_new_file(self, tmp_path):
        target = tmp_path / "credentials"
        assert atomic_write_bytes(target, b"[a]\n") == 4
        assert target.read_bytes() == b"[a]\n"
        assert leftover_temps(tmp_path) == []

    def test_new_file_is_private(self, tmp_path):
        target = tmp_path / "credentials"
        atomic_write_bytes(target, b"secret", fsync=False)
        assert stat.S_IMODE(target.stat().st_mode) == 0o600

    def test_explicit_mode(self, tmp_path):
        target = tmp_path / "config"
        atomic_write_bytes(target, b"x", fsync=False, mode=0o644)
        assert stat.S_IMODE(target.stat().st_mode) == 0o644

    def test_creates_parent_directory(self, tmp_path):
        target = tmp_path / "nested" / "dir" / "config"
        atomic_write_bytes(target, b"x", fsync=False)
        assert target.read_bytes() == b"x"

    def test_rename_failure_keeps_old_content(self, tmp_path, monkeypatch):
        target = tmp_path / "credentials"
        target.write_bytes(b"old content\n")

        def boom(src, dst):
            raise OSError("simulated crash during rename")

        monkeypatch.setattr(replace_module.os, "replace", boom)
        with pytest.raises(OSError):
            atomic_write_bytes(target, b"new content that is longer\n", fsync=False)

        assert target.read_bytes() == b"old content\n"
        assert leftover_temps(tmp_path) == []


class TestBackupAndReplace:

    def test_first_run_no_backup(self, tmp_path):
        dest = tmp_path / "credentials"
        backup = tmp_path / "credentials.bak"

        result = backup_and_replace(dest, backup, b"[a]\n", fsync=False)

        assert isinstance(result, ReplaceResult)
        assert result.backup_created is False
        assert result.backup_path is None
        assert result.bytes_written == 4
        assert dest.read_bytes() == b"[a]\n"
        assert not backup.exists()

    def test_backup_holds_previous_content(self, tmp_path):
        dest = tmp_path / "credentials"
        backup = tmp_path / "credentials.bak"
        dest.write_bytes(b"old\r\n")

        result = backup_and_replace(dest, backup, b"new\n", fsync=False)

        assert result.backup_created is True
        assert result.backup_path == backup
        assert backup.read_bytes() == b"old\r\n"
        assert dest.read_bytes() == b"new\n"

    def test_empty_destination_backed_up(self, tmp_path):
        dest = tmp_path / "credentials"
        backup = tmp_path / "credentials.bak"
        dest.write_bytes(b"")

        result = backup_and_replace(dest, backup, b"[a]\n", fsync=False)
        assert result.backup_created is True
        assert backup.read_bytes() == b""

    def test_previous_backup_overwritten(self, tmp_path):
        dest = tmp_path / "credentials"
        backup = tmp_path / "credentials.bak"
        backup.write_bytes(b"ancient\n")
        dest.write_bytes(b"old\n")

        backup_and_replace(dest, backup, b"new\n", fsync=False)
        assert backup.read_bytes() == b"old\n"

    def test_mode_preserved(self, tmp_path):
        dest = tmp_path / "config"
        dest.write_bytes(b"old\n")
        os.chmod(dest, 0o640)

        backup_and_replace(dest, tmp_path / "config.bak", b"new\n", fsync=False)
        assert stat.S_IMODE(dest.stat().st_mode) == 0o640

    def test_with_fsync(self, tmp_path):
        dest = tmp_path / "credentials"
        dest.write_bytes(b"old\n")
        backup_and_replace(dest, tmp_path / "credentials.bak", b"new\n", fsync=True)
        assert dest.read_bytes() == b"new\n"

    def test_backup_failure_leaves_destination(self, tmp_path):
        dest = tmp_path / "credentials"
        dest.write_bytes(b"old\n")
        # A directory where the backup file should go makes the rename fail
        backup = tmp_path / "credentials.bak"
        backup.mkdir()
        (backup / "occupied").write_text("x")

        with pytest.raises(BackupFailed):
            backup_and_replace(dest, backup, b"new\n", fsync=False)

        assert dest.read_bytes() == b"old\n"
        assert leftover_temps(tmp_path) == []

    def test_stat_failure_leaves_destination(self, tmp_path, monkeypatch):
        dest = tmp_path / "credentials"
        dest.write_bytes(b"old\n")

        def denied(path):
            raise PermissionError(13, "Permission denied", str(path))

        monkeypatch.setattr(replace_module, "_file_mode", denied)
        with pytest.raises(BackupFailed):
            backup_and_replace(dest, tmp_path / "credentials.bak", b"new\n", fsync=False)

        assert dest.read_bytes() == b"old\n"
        assert not (tmp_path / "credentials.bak").exists()

    def test_symlinked_destination_keeps_link(self, tmp_path):
        real = tmp_path / "dotfiles" / "credentials"
        real.parent.mkdir()
        real.write_bytes(b"old\n")
        link = tmp_path / "credentials"
        link.symlink_to(real)

        result = backup_and_replace(link, tmp_path / "credentials.bak", b"new\n", fsync=False)

        assert link.is_symlink()
        assert real.read_bytes() == b"new\n"
        assert (tmp_path / "credentials.bak").read_bytes() == b"old\n"
        assert result.backup_created is True
        assert leftover_temps(real.parent) == []

    def test_write_failure_leaves_destination(self, tmp_path, monkeypatch):
        dest = tmp_path / "credentials"
        backup = tmp_path / "credentials.bak"
        dest.write_bytes(b"old\n")

        real_replace = os.replace

        def fail_on_destination(src, dst):
            if os.fspath(dst) == os.fspath(dest):
                raise OSError("simulated crash")
            return real_replace(src, dst)

        monkeypatch.setattr(replace_module.os, "replace", fail_on_destination)

        with pytest.raises(WriteError):
            backup_and_replace(dest, backup, b"a much longer new content\n", fsync=False)

        assert dest.read_bytes() == b"old\n"
        assert backup.read_bytes() == b"old\n"
        assert leftover_temps(tmp_path) == []

    def test_interrupted_write_leaves_destination(self, tmp_path, monkeypatch):
        dest = tmp_path / "credentials"
        dest.write_bytes(b"old\n")

        def fail_fsync(fd):
            raise OSError("simulated power loss")

        monkeypatch.setattr(replace_module.os, "fsync", fail_fsync)

        with pytest.raises(BackupFailed):
            backup_and_replace(dest, tmp_path / "credentials.bak", b"new\n", fsync=True)
        assert dest.read_bytes() == b"old\n"
        assert leftover_temps(tmp_path) == []

    def test_interrupted_write_first_run(self, tmp_path, monkeypatch):
        dest = tmp_path / "credentials"

        def fail_fsync(fd):
            raise OSError("simulated power loss")

        monkeypatch.setattr(replace_module.os, "fsync", fail_fsync)

        with pytest.raises(WriteError):
            backup_and_replace(dest, tmp_path / "credentials.bak", b"new\n", fsync=True)
        assert not dest.exists()
        assert leftover_temps(tmp_path) == []
