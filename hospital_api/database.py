"""
Database connection and session management.
Provides SQLAlchemy engine, session, and base class for models.
"""
from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

# Create base class for declarative models
Base = declarative_base()


def build_engine(database_url: str):
    """
    Create a SQLAlchemy engine for the given URL.

    SQLite connections are shared with FastAPI's worker threads, so the
    same-thread check is disabled for them.
    """
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args)


def build_session_factory(engine):
    """Create the session factory bound to an engine."""
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


def get_db(request: Request):
    """
    Database dependency - Creates and yields a database session.

    The session is automatically closed after the request is processed,
    even if an exception occurs during request handling.

    Yields:
        SQLAlchemy Session: Database session
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
