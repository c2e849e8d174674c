from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from core.config_loader import load_config


def create_db_engine(database_url: str):
    return create_engine(database_url, pool_pre_ping=True)


def create_session_factory(bind):
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


# DATABASE_URL overrides database.url in config.yaml
DATABASE_URL = load_config().database.url

engine = create_db_engine(DATABASE_URL)
SessionLocal = create_session_factory(engine)
