import io
from pathlib import Path
from typing import Dict, Any

import pytest
from fastapi.testclient import TestClient
from passlib.context import CryptContext
from PIL import Image

from blog.auth import auth_util
from blog.config import Settings
from blog.main import create_app

# ======================================================================
#  1. CONFIGURATION
# ======================================================================

TEST_SECRET = "test-secret-key-which-is-long-enough-for-hs256"

ALICE = {"username": "alice", "password": "pw1"}
BOB = {"username": "bob", "password": "hunter2"}


@pytest.fixture(autouse=True)
def cheap_password_hashing(monkeypatch):
    """bcrypt with the minimum cost factor keeps the suite fast."""
    monkeypatch.setattr(
        auth_util,
        "CRYPT_CONTEXT",
        CryptContext(schemes=["bcrypt"], default="bcrypt", bcrypt__rounds=4, truncate_error=True),
    )


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def settings(tmp_path: Path, upload_dir: Path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'blog.db'}",
        jwt_secret_key=TEST_SECRET,
        upload_dir=str(upload_dir),
        # the test client talks plain http, so Secure cookies would never be sent back
        cookie_secure=False,
        cookie_samesite="lax",
    )

# ======================================================================
#  2. TEST CLIENT
# ======================================================================

@pytest.fixture
def client(settings: Settings):
    with TestClient(create_app(settings)) as test_client:
        yield test_client


def register(client: TestClient, credentials: Dict[str, str]) -> Dict[str, Any]:
    resp = client.post("/register", json=credentials)
    assert resp.status_code == 200, resp.text
    return resp.json()


def login(client: TestClient, credentials: Dict[str, str]) -> Dict[str, Any]:
    """Logs in; the session cookie is kept in the client's cookie jar."""
    resp = client.post("/login", json=credentials)
    assert resp.status_code == 200, resp.text
    return resp.json()


def create_post(client: TestClient, title: str = "Hello", image: bytes | None = None, **fields) -> Dict[str, Any]:
    data = {"title": title, "summary": f"{title} summary", "content": f"<p>{title}</p>"}
    data.update(fields)
    files = {"file": ("cover.png", image, "image/png")} if image is not None else None
    resp = client.post("/post", data=data, files=files)
    assert resp.status_code == 200, resp.text
    return resp.json()


@pytest.fixture
def alice(client: TestClient) -> Dict[str, Any]:
    register(client, ALICE)
    return login(client, ALICE)

# ======================================================================
#  3. IMAGES
# ======================================================================

_FILL = {"RGB": "red", "P": 0, "LA": (128, 255), "CMYK": (0, 255, 255, 0)}


def make_image(fmt: str = "PNG", mode: str = "RGB", size=(16, 12)) -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color=_FILL[mode]).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_image("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image("JPEG")
