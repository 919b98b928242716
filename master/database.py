from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from master.models import Base

DEFAULT_STORE_DIR = "./master_data"

engine = None
SessionLocal = sessionmaker(autocommit=False, autoflush=False)


def database_url_for(store_dir: str) -> str:
    path = Path(store_dir or DEFAULT_STORE_DIR)
    path.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{path / 'master.db'}"


def init_db(database_url: str):
    """Create the engine, bind SessionLocal and create missing tables"""
    global engine
    engine = create_engine(database_url, connect_args={"check_same_thread": False})
    SessionLocal.configure(bind=engine)
    Base.metadata.create_all(bind=engine)
    return engine


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
