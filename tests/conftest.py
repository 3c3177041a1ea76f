import os
import sys
import tempfile
from pathlib import Path

# Ajoute la racine du projet au PYTHONPATH EN PREMIER
sys.path.insert(0, str(Path(__file__).parent.parent))

# Config de test AVANT d'importer app (engine + dossier d'upload créés à l'import)
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="rtask-uploads-")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from fastapi.testclient import TestClient

from app.core.database import Base, SessionLocal, engine, init_db
from app.core.deps import get_email_service, get_google_verifier
from app.core.errors import AuthenticationError, UpstreamServiceError
from app.main import app
from app.services.google_service import GoogleIdentity

PASSWORD = "longpass1"


class FakeEmailService:
    """Records emails instead of calling the provider."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def _send(self, kind, user, **extra):
        if self.fail:
            raise UpstreamServiceError("Failed to send email.")
        self.sent.append({"kind": kind, "to": user.email, **extra})
        return True

    def send_welcome_email(self, user):
        return self._send("welcome", user)

    def send_password_reset_email(self, user, reset_token):
        return self._send("reset", user, token=reset_token)

    def last_reset_token(self, email):
        tokens = [m["token"] for m in self.sent if m["kind"] == "reset" and m["to"] == email]
        return tokens[-1] if tokens else None


class FakeGoogleVerifier:
    """Accepts only the credentials registered in ``identities``."""

    def __init__(self):
        self.identities = {}
        self.unreachable = False

    def verify(self, credential):
        if self.unreachable:
            raise UpstreamServiceError("Could not verify Google credential.")
        if credential not in self.identities:
            raise AuthenticationError("Invalid Google credential.")
        return self.identities[credential]

    def add(self, credential, sub, email, name="Google User", picture=None):
        self.identities[credential] = GoogleIdentity(sub=sub, email=email, name=name, picture=picture)


@pytest.fixture(autouse=True)
def setup_teardown():
    """Crée et nettoie la DB avant/après chaque test"""
    Base.metadata.drop_all(bind=engine)
    init_db(engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def email_service():
    fake = FakeEmailService()
    app.dependency_overrides[get_email_service] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_email_service, None)


@pytest.fixture(autouse=True)
def google_verifier():
    fake = FakeGoogleVerifier()
    app.dependency_overrides[get_google_verifier] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_google_verifier, None)


@pytest.fixture
def client():
    """Client de test FastAPI"""
    return TestClient(app)


@pytest.fixture
def db():
    """Session DB pour les tests"""
    db = SessionLocal()
    yield db
    db.close()


@pytest.fixture
def register(client):
    """Inscrit un utilisateur et retourne les headers Authorization"""

    def _register(email="test@example.com", name="Test User", password=PASSWORD):
        response = client.post(
            "/user/register",
            json={"name": name, "email": email, "password": password}
        )
        assert response.status_code == 201, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}

    return _register


@pytest.fixture
def auth_headers(register):
    return register()
