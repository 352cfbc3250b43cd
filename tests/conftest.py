"""
Pytest configuration and shared fixtures for govm tests.
"""

import hashlib
import io
import json
import stat
import tarfile
from pathlib import Path

import pytest
import responses

from govm.core.config import GovmConfig
from govm.core.platform import PlatformInfo, clear_platform_cache
from govm.core.store import VersionStore

CATALOG_URL = "https://go.test/dl/?mode=json&include=all"
DOWNLOAD_BASE = "https://go.test/dl/"
TEST_PLATFORM = PlatformInfo(os="linux", arch="amd64")


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests that require network access",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --integration flag is provided."""
    if not config.getoption("--integration"):
        skip_integration = pytest.mark.skip(reason="need --integration option to run")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (requires --integration)",
    )


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep the developer's own govm settings out of every test."""
    monkeypatch.delenv("GOVM_ROOT", raising=False)
    monkeypatch.delenv("GOVM_VERSION", raising=False)
    clear_platform_cache()
    yield
    clear_platform_cache()


@pytest.fixture
def govm_root(tmp_path: Path) -> Path:
    """Store root inside the test's temporary directory."""
    return tmp_path / "govm"


@pytest.fixture
def config(govm_root: Path) -> GovmConfig:
    """Configuration pointing at the fake distribution server."""
    return GovmConfig(
        root=govm_root,
        catalog_url=CATALOG_URL,
        download_base=DOWNLOAD_BASE,
        lock_timeout=10,
        request_timeout=5,
        max_retries=3,
    )


@pytest.fixture
def store(govm_root: Path) -> VersionStore:
    return VersionStore(govm_root)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """A project directory outside the store root."""
    path = tmp_path / "workspace"
    path.mkdir()
    return path


def fake_go_script(version: str, exit_code: int = 0) -> str:
    """
    Shell script standing in for a Go binary.

    Prints its version, arguments and GOROOT, then exits with ``exit_code``.
    """
    return (
        "#!/bin/sh\n"
        f'echo "go{version} args:$* goroot:$GOROOT"\n'
        f"exit {exit_code}\n"
    )


def build_go_archive(version: str, exit_code: int = 0) -> bytes:
    """Build a .tar.gz laid out like an official Go release archive."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for directory in ("go", "go/bin"):
            info = tarfile.TarInfo(directory)
            info.type = tarfile.DIRTYPE
            info.mode = 0o755
            tar.addfile(info)

        files = {
            "go/VERSION": (f"go{version}\n", 0o644),
            "go/bin/go": (fake_go_script(version, exit_code), 0o755),
            "go/bin/gofmt": (fake_go_script(version, exit_code), 0o755),
        }
        for name, (content, mode) in files.items():
            data = content.encode("utf-8")
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = mode
            tar.addfile(info, io.BytesIO(data))

    return buffer.getvalue()


def install_fake_version(
    store: VersionStore, version: str, exit_code: int = 0, binaries=("go", "gofmt")
) -> Path:
    """Place a version directly in the store, bypassing the installer."""
    bin_dir = store.bin_path(version, "go").parent
    bin_dir.mkdir(parents=True, exist_ok=True)
    for binary in binaries:
        path = bin_dir / binary
        path.write_text(fake_go_script(version, exit_code))
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return store.path_of(version)


@pytest.fixture
def fake_install(store: VersionStore):
    """Factory fixture: fake_install("1.22.0") places a runnable version."""

    def _install(version: str, exit_code: int = 0, binaries=("go", "gofmt")) -> Path:
        return install_fake_version(store, version, exit_code, binaries)

    return _install


class GoDistribution:
    """
    In-memory stand-in for go.dev/dl backed by ``responses``.

    Releases added with ``add`` appear in the JSON catalog and their
    archives are served from DOWNLOAD_BASE.
    """

    def __init__(self, rsps: responses.RequestsMock):
        self.rsps = rsps
        self.releases = []
        rsps.add_callback(
            responses.GET,
            CATALOG_URL,
            callback=self._catalog,
            content_type="application/json",
        )

    def _catalog(self, request):
        return 200, {}, json.dumps(self.releases)

    def archive_url(self, version: str) -> str:
        return f"{DOWNLOAD_BASE}go{version}.{TEST_PLATFORM.platform_string()}.tar.gz"

    def add(
        self,
        version: str,
        stable: bool = True,
        exit_code: int = 0,
        sha256: str = None,
        body: bytes = None,
    ) -> bytes:
        """Publish a release; returns the archive bytes."""
        archive = build_go_archive(version, exit_code) if body is None else body
        filename = f"go{version}.{TEST_PLATFORM.platform_string()}.tar.gz"

        self.releases.insert(
            0,
            {
                "version": f"go{version}",
                "stable": stable,
                "files": [
                    {
                        "filename": f"go{version}.src.tar.gz",
                        "os": "",
                        "arch": "",
                        "sha256": "0" * 64,
                        "size": 1,
                        "kind": "source",
                    },
                    {
                        "filename": filename,
                        "os": TEST_PLATFORM.os,
                        "arch": TEST_PLATFORM.arch,
                        "sha256": sha256 if sha256 is not None else hashlib.sha256(archive).hexdigest(),
                        "size": len(archive),
                        "kind": "archive",
                    },
                ],
            },
        )
        self.rsps.add(
            responses.GET,
            self.archive_url(version),
            body=archive,
            status=200,
            content_type="application/octet-stream",
        )
        return archive

    def download_count(self, version: str) -> int:
        url = self.archive_url(version)
        return sum(1 for call in self.rsps.calls if call.request.url == url)


@pytest.fixture
def go_dist():
    """Fake release server; every HTTP request in the test goes through it."""
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield GoDistribution(rsps)


@pytest.fixture
def go_archive():
    """Factory fixture: go_archive("1.22.0") returns release archive bytes."""
    return build_go_archive
