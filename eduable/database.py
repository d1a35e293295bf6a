# eduable/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base


def make_engine(database_url: str):
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}  # FastAPI ходит в SQLite из пула потоков
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # Одна общая in-memory база на все соединения
            return create_engine(database_url, connect_args=connect_args, poolclass=StaticPool)
        return create_engine(database_url, connect_args=connect_args)
    return create_engine(database_url)


def make_session_factory(database_url: str) -> sessionmaker:
    engine = make_engine(database_url)
    # Создаём таблицы при первом запуске
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
