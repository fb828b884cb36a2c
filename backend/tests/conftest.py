"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from fakes import PASSWORD, FakeAuthProvider, InMemoryDocumentStore, InMemoryNoteStore, InMemoryObjectStorage
from studydesk.config import Settings
from studydesk.main import app
from studydesk.schemas.auth import Identity
from studydesk.sync.workspace import Workspace


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, environment="development")


@pytest.fixture
def auth() -> FakeAuthProvider:
    return FakeAuthProvider()


@pytest.fixture
def documents() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def storage() -> InMemoryObjectStorage:
    return InMemoryObjectStorage()


@pytest.fixture
def note_store() -> InMemoryNoteStore:
    return InMemoryNoteStore()


@pytest.fixture
def ann(auth: FakeAuthProvider) -> Identity:
    return auth.register("ann@example.com", PASSWORD)


@pytest.fixture
def bob(auth: FakeAuthProvider) -> Identity:
    return auth.register("bob@example.com", PASSWORD)


@pytest.fixture
async def workspace(auth, documents, storage, note_store, settings) -> AsyncGenerator[Workspace, None]:
    """Started workspace whose initial identity has resolved to signed out."""
    ws = Workspace(auth, documents, storage, note_store, settings)
    ws.start()
    auth.emit(None)
    yield ws
    await ws.dispose()


@pytest.fixture
async def signed_in(workspace: Workspace, ann: Identity) -> Workspace:
    """Workspace signed in as ann with the initial refetch settled."""
    await workspace.session.sign_in(ann.email, PASSWORD)
    await workspace.collections.wait_until_settled()
    return workspace


@pytest.fixture
async def client(workspace: Workspace) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints against the fake-backed workspace."""
    # ASGITransport does not run the lifespan, so the workspace is installed directly
    app.state.workspace = workspace
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    del app.state.workspace
