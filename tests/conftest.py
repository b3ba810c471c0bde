import os

# Must be set before the app (and its settings) are imported
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ENABLE_TEST_ROUTES"] = "true"
os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-with-enough-length-for-hs256"
os.environ["PASSWORD_HASH_METHOD"] = "pbkdf2:sha256:1000"
os.environ["MAIL_API_URL"] = ""
os.environ["MAIL_API_KEY"] = ""

from typing import Dict, List
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from app.core.mailer import Mailer, get_mailer
from app.main import create_app
from app.scripts.seed_permissions_roles import seed
from tests.fake_supabase import FakeSupabase

ADMIN_EMAIL = "test-1@test.com"
DEVELOPER_EMAIL = "test-2@test.com"
USER_EMAIL = "test-3@test.com"
TEST_PASSWORD = "password"
STRONG_PASSWORD = "Str0ng!Passw0rd"


class RecordingMailer(Mailer):
    """Keeps sent emails in memory instead of calling the mail API"""

    def __init__(self):
        super().__init__(api_url="", api_key="", sender="test@localhost")
        self.sent: List[Dict[str, str]] = []

    def send(self, to_email, subject, text_body):
        self.sent.append({"to": to_email, "subject": subject, "body": text_body})
        return {"success": True, "data": None}

    def last_token(self, to_email: str) -> str:
        """Token from the link of the latest email sent to the address"""
        for message in reversed(self.sent):
            if message["to"] != to_email:
                continue
            for word in message["body"].split():
                if word.startswith("http"):
                    return parse_qs(urlparse(word).query)["token"][0]
        raise AssertionError(f"no email with a link sent to {to_email}")


@pytest.fixture
def supabase():
    return FakeSupabase()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def app(supabase, mailer):
    application = create_app(supabase)
    application.dependency_overrides[get_mailer] = lambda: mailer
    return application


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def seeded(supabase):
    """Permissions, roles, default grants and the three test accounts"""
    return seed(supabase, with_test_users=True)


def login(client, email, password=TEST_PASSWORD) -> Dict[str, str]:
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 201, response.text
    return response.json()


def bearer(tokens: Dict[str, str]) -> Dict[str, str]:
    return {"Authorization": f"Bearer {tokens['access_token']}"}


@pytest.fixture
def admin_headers(client, seeded):
    return bearer(login(client, ADMIN_EMAIL))


@pytest.fixture
def developer_headers(client, seeded):
    return bearer(login(client, DEVELOPER_EMAIL))


@pytest.fixture
def user_headers(client, seeded):
    return bearer(login(client, USER_EMAIL))


def user_id_by_email(supabase, email) -> str:
    return next(row["id"] for row in supabase.rows("users") if row["email"] == email)


def role_id_by_name(supabase, name) -> str:
    return next(row["id"] for row in supabase.rows("roles") if row["name"] == name)


def permission_id(supabase, module, action) -> str:
    return next(
        row["id"] for row in supabase.rows("permissions")
        if row["module"] == module and row["action"] == action
    )
