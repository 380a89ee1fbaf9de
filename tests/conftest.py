"""
Pytest configuration and fixtures for box-loader tests.
"""

import os

import httpx
import pytest
from hypothesis import Verbosity, settings

from box_loader.client import RemoteClient
from box_loader.exceptions import BoxAPIError
from box_loader.extensions import file_extension, representation_kind_for
from box_loader.types import FileDescriptor, FolderEntry, RepresentationKind

# Configure hypothesis settings for property-based testing
settings.register_profile(
    "default",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None,
)

settings.register_profile(
    "ci",
    max_examples=200,
    verbosity=Verbosity.normal,
    deadline=None,
)

settings.register_profile(
    "dev",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


def info_url(file_id: str, kind: RepresentationKind) -> str:
    return f"https://api.box.com/2.0/internal_files/{file_id}/versions/1/representations/{kind.value}"


def url_template(file_id: str, kind: RepresentationKind) -> str:
    return (
        f"https://dl.boxcloud.com/api/2.0/internal_files/{file_id}/versions/1"
        f"/representations/{kind.value}/content/{{+asset_path}}"
    )


def content_url(file_id: str, kind: RepresentationKind) -> str:
    return url_template(file_id, kind).replace("{+asset_path}", "")


def rep_entry(kind: RepresentationKind, state: str | None, url: str | None, message=None):
    entry = {"representation": kind.value}
    if state is not None:
        entry["status"] = {"state": state}
        if message:
            entry["status"]["message"] = message
    if url is not None:
        entry["info"] = {"url": url}
    return entry


def file_entry(file_id: str, name: str) -> FolderEntry:
    return FolderEntry(id=file_id, type="file", name=name, extension=file_extension(name))


def folder_entry(folder_id: str, name: str = "folder") -> FolderEntry:
    return FolderEntry(id=folder_id, type="folder", name=name)


class FakeBoxClient(RemoteClient):
    """
    In-memory RemoteClient.

    Listing and URL responses are queues: each call consumes the next item
    and the last item repeats once the queue is down to one.
    """

    def __init__(self):
        self.files: dict[str, FileDescriptor] = {}
        self.listings: dict[str, list] = {}
        self.responses: dict[str, list] = {}
        self.folders: dict[str, list[FolderEntry]] = {}
        self.metadata_errors: dict[str, Exception] = {}
        self.folder_errors: dict[str, Exception] = {}

        self.metadata_calls: list[str] = []
        self.listing_calls: list[tuple[str, RepresentationKind]] = []
        self.folder_calls: list[tuple[str, int, int]] = []
        self.get_calls: list[str] = []
        self.closed = False

    @staticmethod
    def _next(queue: list):
        if len(queue) > 1:
            return queue.pop(0)
        return queue[0]

    def add_file(
        self,
        file_id: str,
        name: str,
        texts: str | list[str] = "file text",
        states: list[str | None] | None = None,
        size: int = 1024,
    ) -> FileDescriptor:
        """Register a file whose representation passes through ``states``."""
        extension = file_extension(name)
        descriptor = FileDescriptor(
            id=file_id,
            name=name,
            size=size,
            extension=extension,
            created_at="2024-01-01T00:00:00-08:00",
            modified_at="2024-02-01T00:00:00-08:00",
        )
        self.files[file_id] = descriptor

        kind = representation_kind_for(extension)
        url = info_url(file_id, kind)
        self.listings[file_id] = [
            [rep_entry(kind, state, url)] for state in (states or ["success"])
        ]
        self.responses[url] = [
            httpx.Response(200, json={"content": {"url_template": url_template(file_id, kind)}})
        ]
        if isinstance(texts, str):
            texts = [texts]
        self.responses[content_url(file_id, kind)] = [
            httpx.Response(200, text=text) for text in texts
        ]
        return descriptor

    async def get_item_metadata(self, file_id: str) -> FileDescriptor:
        self.metadata_calls.append(file_id)
        if file_id in self.metadata_errors:
            raise self.metadata_errors[file_id]
        if file_id not in self.files:
            raise BoxAPIError("Not Found", 404, {"code": "not_found"})
        return self.files[file_id]

    async def list_representations(self, file_id, kind):
        self.listing_calls.append((file_id, kind))
        queue = self.listings.get(file_id)
        if not queue:
            return []
        result = self._next(queue)
        if isinstance(result, Exception):
            raise result
        return result

    async def list_folder_items(self, folder_id, offset, limit, fields):
        self.folder_calls.append((folder_id, offset, limit))
        if folder_id in self.folder_errors:
            raise self.folder_errors[folder_id]
        return list(self.folders.get(folder_id, [])[offset:offset + limit])

    async def http_get(self, url):
        self.get_calls.append(url)
        queue = self.responses.get(url)
        if not queue:
            return httpx.Response(404, text="missing")
        result = self._next(queue)
        if isinstance(result, Exception):
            raise result
        return result

    async def aclose(self):
        self.closed = True


class SleepRecorder:
    """Stands in for asyncio.sleep and records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def fake_client():
    return FakeBoxClient()


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def no_box_env(monkeypatch):
    """Remove Box credentials from the environment."""
    for name in (
        "BOX_DEVELOPER_TOKEN",
        "BOX_JWT_PATH",
        "BOX_CLIENT_ID",
        "BOX_CLIENT_SECRET",
        "BOX_ENTERPRISE_ID",
        "BOX_USER_ID",
    ):
        monkeypatch.delenv(name, raising=False)
