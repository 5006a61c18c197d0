"""
Pytest configuration and fixtures for Printer Station tests.
"""

import os
import shutil
import tempfile
from pathlib import Path

import pytest

# Set test environment variables before importing the app
_TMP = tempfile.mkdtemp(prefix="print_station_test_")
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP}/test.db"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["APP_ENV"] = "test"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP, "uploads")
os.environ["BREVO_API_KEY"] = ""
os.environ["RESEND_API_KEY"] = ""
os.environ["S3_BUCKET_NAME"] = ""
os.environ["REQUIRE_VERIFIED_EMAIL"] = "false"
os.environ["SCHEDULER_ENABLED"] = "false"

from fastapi.testclient import TestClient

from print_station.database import Base, SessionLocal, engine, init_db
from print_station.dependencies import get_mailer, get_storage
from print_station.main import app
from print_station.services import credentials
from print_station.services.auth import create_access_token
from print_station.services.storage import StoredAsset

init_db()

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< /Root 1 0 R >>\n%%EOF\n"


class FakeMailer:
    """Records every message; flip ``fail`` to simulate a provider outage."""

    configured = True

    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, to_email, subject, html_content, text_content=None):
        if self.fail:
            return False
        self.sent.append({"to": to_email, "subject": subject, "html": html_content, "text": text_content})
        return True


class FakeStorage:
    """In-memory bucket. Unconfigured by default so uploads stay on local disk."""

    def __init__(self):
        self.configured = False
        self.objects = {}
        self.deleted = []
        self.fail_delete = False

    def key_for(self, filename):
        return f"print-jobs/{filename}"

    def store(self, local_path, key, content_type=None):
        if not self.configured:
            return None
        self.objects[key] = Path(local_path).read_bytes()
        return StoredAsset(key=key, url=f"https://bucket.test/{key}")

    def delete(self, key):
        self.deleted.append(key)
        if self.fail_delete:
            raise RuntimeError("remote storage unavailable")
        return self.objects.pop(key, None) is not None


@pytest.fixture(scope="session", autouse=True)
def _tmp_dir():
    yield _TMP
    shutil.rmtree(_TMP, ignore_errors=True)


@pytest.fixture(autouse=True)
def _clean_tables():
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def client(mailer, storage):
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_admin(db):
    counter = {"n": 0}

    def _make(email=None, password="admin-pass", name="Station Admin"):
        counter["n"] += 1
        admin = credentials.register_admin(
            db, email=email or f"admin{counter['n']}@example.com", password=password, name=name
        )
        return admin, create_access_token(admin)

    return _make


@pytest.fixture
def make_clerk(db):
    counter = {"n": 0}

    def _make(admin, email=None, password="clerk-pass", permissions=None):
        counter["n"] += 1
        clerk, _ = credentials.create_clerk(
            db,
            admin_id=admin.id,
            email=email or f"clerk{counter['n']}@example.com",
            name="Front Desk",
            password=password,
            permissions=permissions,
        )
        return clerk, create_access_token(clerk)

    return _make


@pytest.fixture
def make_client(db):
    counter = {"n": 0}

    def _make(email=None, password="client-pass"):
        counter["n"] += 1
        c = credentials.register_client(
            db,
            email=email or f"client{counter['n']}@example.com",
            password=password,
            full_name="Jane Customer",
            phone_number="+1 555 123 4567",
        )
        return c, create_access_token(c)

    return _make


@pytest.fixture
def submit(client):
    """POST a print job; returns the response."""

    def _submit(client_id, admin_id, token=None, file=None, field="pdfFile", **overrides):
        data = {
            "artwork": "Summer Poster",
            "width": "24in",
            "height": "36in",
            "quantity": "3",
            "location": "Front counter",
            "adminId": str(admin_id),
            "description": "Glossy finish",
        }
        data.update(overrides)
        # None drops a field from the form
        data = {k: v for k, v in data.items() if v is not None}
        files = {field: file or ("poster.pdf", PDF_BYTES, "application/pdf")}
        return client.post(
            f"/print/submit/client/{client_id}",
            data=data,
            files=files,
            headers=auth(token) if token else {},
        )

    return _submit
