"""Shared fixtures: a sprint-based legacy project laid out in ``tmp_path``."""

import hashlib
from pathlib import Path

import pytest

from suitesorter.logger import META_DIR

LEGACY_FILES = {
    "tests/connectx_api/sit_tests/test_login.py": "def test_login():\n    assert True\n",
    "tests/connectx_api/sit_tests/pages/login_page.py": "class LoginPage:\n    pass\n",
    "tests/connectx_api/tests/sprint-1_NetworkCoverage/__init__.py": "",
    "tests/connectx_api/tests/sprint-1_NetworkCoverage/test_valid_zip.py": "def test_zip():\n    pass\n",
    "tests/connectx_api/tests/sprint-2_UserProfile/test_profile.py": "def test_profile():\n    pass\n",
    "tests/connectx_api/tests/conftest.py": "import pytest\n",
    "tests/connectx_api/fixtures/users.json": '{"users": []}\n',
    "tests/connectx_api/reports/run.html": "<html></html>\n",
    "tests/connectx_api/README.md": "# ConnectX API tests\n",
    "tests/test_orphan.py": "def test_orphan():\n    pass\n",
}


def write_files(root: Path, files: dict) -> Path:
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def make_project(tmp_path):
    """Factory: build a project from {relative path: content}."""
    def _make(files: dict, name: str = "project") -> Path:
        return write_files(tmp_path / name, files)
    return _make


@pytest.fixture
def legacy_project(make_project):
    return make_project(LEGACY_FILES)


def digest_tree(root: Path) -> str:
    """Checksum over every folder and file (path and content), ignoring the move journal."""
    h = hashlib.sha256()
    for p in sorted(root.rglob("*")):
        rel = p.relative_to(root)
        if rel.parts[0] == META_DIR:
            continue
        h.update(rel.as_posix().encode())
        if p.is_file():
            h.update(hashlib.sha256(p.read_bytes()).digest())
    return h.hexdigest()


@pytest.fixture
def tree_digest():
    return digest_tree


def file_hash(path: Path) -> str:
    return hashlib.sha256(path.read_bytes()).hexdigest()


@pytest.fixture
def content_hashes():
    def _hashes(root: Path, rels) -> dict:
        return {rel: file_hash(root / rel) for rel in rels}
    return _hashes
