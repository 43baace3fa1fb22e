import os
import tempfile

# Configure the process before any chatbridge module reads the environment
_TMP_DIR = tempfile.mkdtemp(prefix="chatbridge-tests-")
os.environ["REPLICATE_API_TOKEN"] = "r8_test_token"
os.environ["OPENAI_API_KEY"] = "sk-test-key"
os.environ["CHATBRIDGE_DB_PATH"] = os.path.join(_TMP_DIR, "chatbridge-test.db")
os.environ["CHATBRIDGE_LOG_DIR"] = _TMP_DIR
os.environ["IMAGE_POLL_INTERVAL"] = "0"
os.environ["JWT_SECRET_KEY"] = "test-secret"

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from chatbridge.core.store import ConversationStore
from chatbridge.models.user import User
# Register every table on SQLModel.metadata
from chatbridge.models.conversation import Conversation, Message  # noqa: F401
from chatbridge.models.generation import GenerationLog  # noqa: F401


@pytest.fixture
def session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


def _add_user(session, username):
    user = User.create(username=username, password="password123")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def owner(session):
    return _add_user(session, "alice")


@pytest.fixture
def other_user(session):
    return _add_user(session, "bob")


@pytest.fixture
def store(session, owner):
    return ConversationStore(session, owner.id)


@pytest.fixture
def other_store(session, other_user):
    return ConversationStore(session, other_user.id)
