"""Pytest bootstrap ensuring the in-repo procfs_mcp package is imported.

Also provides ``fake_proc`` / ``fake_sys``: a tmp directory installed as
PROCFS_ROOT / SYSFS_ROOT plus a helper writing files beneath it.
"""

import os, sys
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
DATA_DIR = os.path.join(os.path.dirname(__file__), 'data')
if REPO_ROOT not in sys.path:
    # Prepend so it wins over any site-packages installation
    sys.path.insert(0, REPO_ROOT)


class FakeRoot:
    def __init__(self, root):
        self.root = root

    def write(self, relpath: str, text: str):
        path = self.root / relpath
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)
        return path


@pytest.fixture
def fake_proc(tmp_path, monkeypatch):
    root = tmp_path / 'proc'
    root.mkdir()
    monkeypatch.setenv('PROCFS_ROOT', str(root))
    return FakeRoot(root)


@pytest.fixture
def fake_sys(tmp_path, monkeypatch):
    root = tmp_path / 'sys'
    (root / 'block').mkdir(parents=True)
    monkeypatch.setenv('SYSFS_ROOT', str(root))
    return FakeRoot(root)
