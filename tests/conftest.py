"""
Pytest configuration and shared fixtures for the artifact store test suite.

Backend-transparency tests take the parametrized ``repository`` fixture and
run once against the local backend and once against the S3 backend (backed by
an in-memory fake client).
"""

import io
import os

import pytest

from artstore.core.manager import ArtifactManager
from artstore.repository.local import LocalRepository
from artstore.repository.s3 import S3Repository
from artstore.utils.logging_context import clear_context
from tests.mocks import FakeS3Client


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep tests independent of the developer's store settings."""
    for key in (
        "ART_REPOSITORY",
        "ART_TRANSFER_WORKERS",
        "ART_VERIFY_DOWNLOADS",
        "ART_S3_ENDPOINT_URL",
        "LOG_JSON",
    ):
        monkeypatch.delenv(key, raising=False)
    yield
    clear_context()


@pytest.fixture
def local_repo(tmp_path):
    """Local repository rooted in a fresh temporary directory."""
    return LocalRepository(tmp_path / "repo")


@pytest.fixture
def fake_s3():
    return FakeS3Client()


@pytest.fixture
def s3_repo(fake_s3):
    """S3 repository under s3://test-bucket/myrepo backed by the fake client."""
    return S3Repository("test-bucket", "myrepo", client=fake_s3)


@pytest.fixture(params=["local", "s3"])
def repository(request, tmp_path):
    """Each backend in turn, for tests that must behave identically on both."""
    if request.param == "local":
        return LocalRepository(tmp_path / "repo")
    return S3Repository("test-bucket", "myrepo", client=FakeS3Client())


@pytest.fixture
def manager(repository, tmp_path):
    """ArtifactManager over the parametrized backend, printing into a buffer."""
    return ArtifactManager(repository, output=io.StringIO())


@pytest.fixture
def make_file(tmp_path):
    """Factory writing ``size`` random bytes to a file under tmp_path."""

    def _make(name: str, size: int = 1024, content: bytes | None = None):
        path = tmp_path / "src" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content if content is not None else os.urandom(size))
        return path

    return _make
