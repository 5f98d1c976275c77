import os
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

# Must be set before importing workora.config so a developer .env is ignored.
os.environ["DISABLE_DOTENV"] = "1"

from workora.config import Settings  # noqa: E402
from workora.main import create_app  # noqa: E402
from workora.services.uploads import UploadResult  # noqa: E402
from workora.utils.error_handlers import UpstreamError  # noqa: E402

from helpers import TEST_SECRET  # noqa: E402


class FakeUploadClient:
    """Stands in for the upload relay; records every call."""

    def __init__(self):
        self.calls: list[dict] = []
        self.fail = False
        self.connected = False

    async def connect(self) -> None:
        self.connected = True

    async def close(self) -> None:
        self.connected = False

    async def upload(self, buffer: str, public_id: str | None = None) -> UploadResult:
        if self.fail:
            raise UpstreamError("Failed to upload file")
        self.calls.append({"buffer": buffer, "public_id": public_id})
        n = len(self.calls)
        return UploadResult(url=f"https://media.test/asset-{n}", public_id=f"asset-{n}")


class FakeMediaStore:
    def __init__(self):
        self.deleted: list[str] = []
        self.stored: list[str] = []
        self.error: Exception | None = None

    def connect(self) -> None:
        pass

    def close(self) -> None:
        pass

    def replace(self, buffer: str, public_id: str | None = None) -> dict:
        if self.error is not None:
            raise self.error
        if public_id:
            self.deleted.append(public_id)
        self.stored.append(buffer)
        return {"url": f"https://media.test/stored-{len(self.stored)}", "public_id": f"stored-{len(self.stored)}"}


@pytest.fixture()
def test_db_path(tmp_path: Path) -> Path:
    return tmp_path / "test.sqlite3"


@pytest.fixture()
def settings(test_db_path: Path) -> Settings:
    return Settings(
        database_url=f"sqlite:///{test_db_path}",
        jwt_secret=TEST_SECRET,
        frontend_url="http://frontend.test",
        # Tests drive delivery explicitly through OutboxWorker.run_once().
        mail_worker_enabled=False,
    )


@pytest.fixture()
def uploads() -> FakeUploadClient:
    return FakeUploadClient()


@pytest.fixture()
def media() -> FakeMediaStore:
    return FakeMediaStore()


@pytest.fixture()
def app(settings: Settings, uploads: FakeUploadClient, media: FakeMediaStore) -> FastAPI:
    return create_app(settings, upload_client=uploads, media_store=media)


@pytest.fixture()
def client(app: FastAPI):
    # Entering the context runs the lifespan, which connects the clients.
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def db_session(app: FastAPI, client: TestClient):
    """Direct SQLAlchemy session on the same temporary SQLite DB used by the app."""
    db = app.state.db.session()
    try:
        yield db
    finally:
        db.close()
