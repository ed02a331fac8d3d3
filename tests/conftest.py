import os
import tempfile

# settings are read at import time
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["DATABASE_URL"] = ""
os.environ["STREAM_API_KEY"] = ""
os.environ["STREAM_API_SECRET"] = ""
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="storefront-uploads-")

import mongomock
import pytest
from fastapi.testclient import TestClient

from auth import hash_password, issue_token
from chat import get_chat_gateway
from database import create_document, ensure_indexes, get_db
from errors import UpstreamError
from main import app


class FakeChatGateway:
    """In-memory stand-in for the Stream server client."""

    def __init__(self):
        self.channels = {}
        self.add_calls = []
        self.tokens = {}
        self.fail = False

    def _check(self):
        if self.fail:
            raise UpstreamError("Chat service failed: connection refused")

    def find_channel(self, channel_id):
        self._check()
        channel = self.channels.get(channel_id)
        if channel is None:
            return None
        return {"cid": channel["cid"], "members": set(channel["members"])}

    def create_channel(self, channel_id, name, created_by, members):
        self._check()
        cid = f"messaging:{channel_id}"
        self.channels[channel_id] = {"cid": cid, "name": name, "created_by": created_by, "members": list(members)}
        return cid

    def add_members(self, channel_id, members):
        self._check()
        self.add_calls.append(list(members))
        self.channels[channel_id]["members"].extend(members)

    def create_token(self, user_id, exp=None, **claims):
        self._check()
        self.tokens[user_id] = dict(claims, exp=exp)
        return f"chat-token-{user_id}"


@pytest.fixture
def mongo_db():
    database = mongomock.MongoClient()["storefront_test"]
    ensure_indexes(database)
    return database


@pytest.fixture
def chat_gateway():
    return FakeChatGateway()


@pytest.fixture
def client(mongo_db, chat_gateway):
    app.dependency_overrides[get_db] = lambda: mongo_db
    app.dependency_overrides[get_chat_gateway] = lambda: chat_gateway
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(mongo_db):
    """Insert a user directly and return (user_id, auth headers)."""

    def _make(email, role="user", name="Test User", password="secret123"):
        user_id = create_document(
            mongo_db,
            "user",
            {"name": name, "email": email, "password_hash": hash_password(password), "role": role, "avatar_url": None},
        )
        return user_id, {"Authorization": f"Bearer {issue_token(user_id)}"}

    return _make


@pytest.fixture
def admin(make_user):
    return make_user("admin@example.com", role="admin", name="Admin")


@pytest.fixture
def customer(make_user):
    return make_user("customer@example.com", name="Customer")


@pytest.fixture
def shirt():
    return {"name": "T", "price": 10, "stock": 5, "category": "Shirts", "colors": ["black"], "sizes": ["M"]}
