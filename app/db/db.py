import os
from sqlmodel import Session, SQLModel, create_engine

# Register tables on the shared metadata
from app.models import claim, claim_event, item, user  # noqa: F401


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./retrievo.db")

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=connect_args, pool_pre_ping=True)


def create_db_and_tables():
    SQLModel.metadata.create_all(engine)


def get_session():
    with Session(engine) as session:
        yield session
