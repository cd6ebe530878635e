"""Shared pytest fixtures for Fragment Sync tests.

Provides temp directories, config objects, and a fragment-writing helper so
tests never touch a real ~/.aws.
"""

import pytest

from fragment_sync.config import CategoryConfig, SyncConfig, RunMode


@pytest.fixture
def tmp_dirs(tmp_path):
    """Create temporary fragment and target directories."""
    source = tmp_path / "fragments"
    target = tmp_path / "target"
    source.mkdir()
    target.mkdir()
    return {"source": source, "target": target, "root": tmp_path}


@pytest.fixture
def write_fragment(tmp_dirs):
    """Return a helper writing raw bytes (or text) to a fragment file."""
    def _write(name, content):
        path = tmp_dirs["source"] / name
        if isinstance(content, str):
            content = content.encode("utf-8")
        path.write_bytes(content)
        return path
    return _write


@pytest.fixture
def credentials_category(tmp_dirs):
    """A CategoryConfig for 'credentials' inside the temp directories."""
    return CategoryConfig(
        name="credentials",
        source_dir=tmp_dirs["source"],
        destination=tmp_dirs["target"] / "credentials",
    )


@pytest.fixture
def sample_config(tmp_dirs):
    """A SyncConfig for credentials and config with fsync off for speed."""
    return SyncConfig.for_directories(
        tmp_dirs["source"],
        tmp_dirs["target"],
        fsync=False,
    )


@pytest.fixture
def preview_config(tmp_dirs):
    """Same layout as sample_config but in preview mode."""
    return SyncConfig.for_directories(
        tmp_dirs["source"],
        tmp_dirs["target"],
        mode=RunMode.PREVIEW,
        fsync=False,
    )


@pytest.fixture
def scenario_fragments(write_fragment):
    """The two credentials fragments used by the end-to-end scenarios."""
    write_fragment("credentials.2024-0301.a", "[a]\nkey=1\n")
    write_fragment("credentials.2024-0310.b", "[b]\nkey=2\n")
    return b"[a]\nkey=1\n[b]\nkey=2\n"
