# apps/backend/app/db.py
from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

Base = declarative_base()


def make_engine(database_url: str):
  if not database_url:
    # Fail fast: better to know immediately in logs
    raise RuntimeError("database_url is not set")

  if database_url.startswith("sqlite"):
    kwargs = {"connect_args": {"check_same_thread": False}}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
      # one shared connection, otherwise every session sees an empty db
      kwargs["poolclass"] = StaticPool
    return create_engine(database_url, **kwargs)

  return create_engine(
    database_url,
    pool_pre_ping=True,
    pool_size=5,
    max_overflow=10,
  )


def make_session_factory(engine):
  return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request):
  db = request.app.state.session_factory()
  try:
    yield db
  finally:
    db.close()
