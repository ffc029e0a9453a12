import os

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker


DEFAULT_DATABASE_URL = "sqlite:///tavern.db"

DATABASE_URL = os.getenv("TAVERN_DATABASE_URL") or DEFAULT_DATABASE_URL

engine = create_engine(DATABASE_URL, echo=False, future=True, pool_pre_ping=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False)
