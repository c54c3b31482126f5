from io import BytesIO
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient
from moto import mock_aws
from PIL import Image

from artgallery.aws import clients, profiles, schema
from artgallery.core.config import settings


def png_bytes(size=(3, 2), color=(0, 128, 255)) -> bytes:
    img = Image.new("RGB", size, color=color)
    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def jpeg_bytes(size=(800, 600), color=(200, 30, 30)) -> bytes:
    img = Image.new("RGB", size, color=color)
    buf = BytesIO()
    img.save(buf, format="JPEG")
    return buf.getvalue()


@pytest.fixture
def aws_mock(monkeypatch):
    with mock_aws():
        # Route boto3 to moto (no endpoint), use test resources
        monkeypatch.setattr(settings, "aws_endpoint_url", None)
        monkeypatch.setattr(settings, "aws_region", "us-east-1")
        monkeypatch.setattr(settings, "aws_access_key_id", "testing")
        monkeypatch.setattr(settings, "aws_secret_access_key", "testing")
        monkeypatch.setattr(settings, "bucket_name", "test-bucket")
        monkeypatch.setattr(settings, "key_prefix", "gallery/images")
        monkeypatch.setattr(settings, "artworks_table", "TestArtworks")
        monkeypatch.setattr(settings, "tags_table", "TestTags")
        monkeypatch.setattr(settings, "profiles_table", "TestProfiles")
        monkeypatch.setattr(settings, "users_table", "TestUsers")
        monkeypatch.setattr(settings, "sessions_table", "TestSessions")
        monkeypatch.setattr(settings, "url_expiry", 60)
        monkeypatch.setattr(settings, "google_client_id", "client-id")
        monkeypatch.setattr(settings, "google_client_secret", "client-secret")
        clients.reset()
        schema.create_tables()
        schema.create_bucket()
        yield
        clients.reset()


@pytest.fixture
def make_client(aws_mock, monkeypatch):
    """Build TestClients, optionally signed in through the OAuth callback."""
    from artgallery.main import app

    def _make(email=None, role="user", user_id=None):
        client = TestClient(app)
        if email is None:
            return client
        uid = user_id or f"google-{email.split('@')[0]}"
        info = {"id": uid, "email": email, "name": email.split("@")[0].title(), "picture": None}
        monkeypatch.setattr("artgallery.auth.oauth.exchange_code", lambda code, verifier=None: info)

        r = client.get("/api/auth/signin", follow_redirects=False)
        assert r.status_code == 302, r.text
        state = parse_qs(urlparse(r.headers["location"]).query)["state"][0]
        r = client.get(
            "/api/auth/callback/google",
            params={"code": "auth-code", "state": state},
            follow_redirects=False,
        )
        assert r.status_code == 302, r.text
        if role != "user":
            profiles.set_role(uid, role)
        return client

    return _make


@pytest.fixture
def anon_client(make_client):
    return make_client()


@pytest.fixture
def user_client(make_client):
    return make_client("visitor@example.com")


@pytest.fixture
def admin_client(make_client):
    return make_client("curator@example.com", role="admin")
