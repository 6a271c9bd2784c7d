"""Database configuration and initialization."""
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

# Create SQLAlchemy base
Base = declarative_base()


def _begin_immediate(engine):
    """Take SQLite's write lock when a transaction begins, not at its first write."""
    @event.listens_for(engine, 'connect')
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        # Let the 'begin' hook below emit BEGIN instead of the driver
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, 'begin')
    def _emit_begin(conn):
        conn.exec_driver_sql('BEGIN IMMEDIATE')

    return engine


def make_engine(database_uri, echo=False):
    """Create an engine suitable for the configured backend."""
    if database_uri in ('sqlite://', 'sqlite:///:memory:'):
        # One shared connection so every session sees the same in-memory DB
        return _begin_immediate(create_engine(
            database_uri,
            echo=echo,
            poolclass=StaticPool,
            connect_args={'check_same_thread': False},
        ))
    if database_uri.startswith('sqlite'):
        # Other processes wait up to 30s on the write lock
        return _begin_immediate(create_engine(
            database_uri,
            echo=echo,
            connect_args={'check_same_thread': False, 'timeout': 30},
        ))
    return create_engine(
        database_uri,
        echo=echo,
        pool_pre_ping=True,  # Enable connection health checks
        pool_size=10,
        max_overflow=20
    )


def make_session_factory(engine):
    """Create the session factory and make sure the schema exists."""
    # Import models so their tables are registered on Base.metadata
    from swiftsale import models  # noqa: F401
    Base.metadata.create_all(engine)
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_db(app):
    """Initialize database connection and the document store for the app."""
    from swiftsale.services.activity_log import ActivityLog
    from swiftsale.services.document_store import DocumentStore

    engine = make_engine(
        app.config['SQLALCHEMY_DATABASE_URI'],
        echo=app.config.get('SQLALCHEMY_ECHO', False),
    )
    session_factory = make_session_factory(engine)
    store = DocumentStore(session_factory, activity=ActivityLog())
    store.initialize()

    app.extensions['engine'] = engine
    app.extensions['store'] = store
    return store


def get_store():
    """Get the document store bound to the current app."""
    from flask import current_app
    return current_app.extensions['store']
