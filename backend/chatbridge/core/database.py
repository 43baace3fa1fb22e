from sqlmodel import SQLModel, create_engine, Session
from chatbridge.core.config import get_settings
# Ensure models are imported for table creation
from chatbridge.models.user import User  # noqa: F401
from chatbridge.models.conversation import Conversation, Message  # noqa: F401
from chatbridge.models.generation import GenerationLog  # noqa: F401

sqlite_url = get_settings().database_url

connect_args = {"check_same_thread": False}
engine = create_engine(sqlite_url, connect_args=connect_args)


def create_db_and_tables():
    SQLModel.metadata.create_all(engine)


def get_session():
    with Session(engine) as session:
        yield session
