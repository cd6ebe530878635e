"""Tests for the fragment_sync command line front end."""

import json
import logging

import pytest

from fragment_sync.__main__ import main


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def dirs_args(tmp_dirs):
    return ["--source-dir", str(tmp_dirs["source"]), "--target-dir", str(tmp_dirs["target"])]


class TestSyncCommand:

    def test_sync_writes(self, tmp_dirs, scenario_fragments, capsys):
        code = main(["sync", *dirs_args(tmp_dirs)])
        assert code == 0
        assert (tmp_dirs["target"] / "credentials").read_bytes() == scenario_fragments
        assert "[credentials] replaced" in capsys.readouterr().out

    def test_preview_json(self, tmp_dirs, scenario_fragments, capsys):
        code = main(["sync", "--preview", "--json", *dirs_args(tmp_dirs)])
        assert code == 0
        report = json.loads(capsys.readouterr().out)
        assert report["preview"] is True
        creds = [c for c in report["categories"] if c["category"] == "credentials"][0]
        assert creds["different"] is True
        assert creds["replaced"] is False
        assert not (tmp_dirs["target"] / "credentials").exists()

    def test_failure_exit_code(self, tmp_dirs, write_fragment, capsys):
        write_fragment("config.1.a", "[x]\n")
        write_fragment("config.2.b", "[x]\n")
        code = main(["sync", "--category", "config", *dirs_args(tmp_dirs)])
        assert code == 1
        assert "DuplicateSectionError" in capsys.readouterr().out

    def test_config_file(self, tmp_dirs, scenario_fragments):
        config_path = tmp_dirs["root"] / "sync.json"
        config_path.write_text(json.dumps({
            "fsync": False,
            "categories": [{
                "name": "credentials",
                "source_dir": "fragments",
                "destination": "target/credentials",
            }],
        }))
        assert main(["sync", "--config", str(config_path)]) == 0
        assert (tmp_dirs["target"] / "credentials").read_bytes() == scenario_fragments

    def test_bad_config_file(self, tmp_path, capsys):
        config_path = tmp_path / "sync.json"
        config_path.write_text("[]")
        assert main(["sync", "--config", str(config_path)]) == 1
        assert "Error" in capsys.readouterr().err


class TestStatusCommand:

    def test_status_json(self, tmp_dirs, scenario_fragments, capsys):
        code = main(["status", "--json", "--category", "credentials", *dirs_args(tmp_dirs)])
        assert code == 0
        status = json.loads(capsys.readouterr().out)
        assert status["credentials"]["in_sync"] is False


class TestRestoreCommand:

    def test_restore(self, tmp_dirs, scenario_fragments):
        dest = tmp_dirs["target"] / "credentials"
        dest.write_bytes(b"[before]\n")
        assert main(["sync", *dirs_args(tmp_dirs)]) == 0
        assert main(["restore", "--category", "credentials", *dirs_args(tmp_dirs)]) == 0
        assert dest.read_bytes() == b"[before]\n"

    def test_restore_every_category(self, tmp_dirs, scenario_fragments, write_fragment):
        write_fragment("config.1.a", "[default]\n")
        creds = tmp_dirs["target"] / "credentials"
        config = tmp_dirs["target"] / "config"
        creds.write_bytes(b"[old-creds]\n")
        config.write_bytes(b"[old-config]\n")
        assert main(["sync", *dirs_args(tmp_dirs)]) == 0

        code = main([
            "restore", "--category", "credentials", "--category", "config", *dirs_args(tmp_dirs)
        ])
        assert code == 0
        assert creds.read_bytes() == b"[old-creds]\n"
        assert config.read_bytes() == b"[old-config]\n"

    def test_restore_continues_past_missing_backup(self, tmp_dirs, scenario_fragments, capsys):
        creds = tmp_dirs["target"] / "credentials"
        creds.write_bytes(b"[before]\n")
        assert main(["sync", "--category", "credentials", *dirs_args(tmp_dirs)]) == 0

        code = main([
            "restore", "--category", "config", "--category", "credentials", *dirs_args(tmp_dirs)
        ])
        assert code == 1
        assert creds.read_bytes() == b"[before]\n"
        assert "[config] No backup" in capsys.readouterr().err

    def test_restore_without_backup(self, tmp_dirs, capsys):
        code = main(["restore", "--category", "config", *dirs_args(tmp_dirs)])
        assert code == 1
        assert "No backup" in capsys.readouterr().err


def test_no_command_prints_help(capsys):
    assert main([]) == 0
    assert "usage" in capsys.readouterr().out.lower()
