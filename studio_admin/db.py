import os
from contextlib import contextmanager
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

load_dotenv()

# Local development database used when DATABASE_URL is not set, relative to the working directory
DEFAULT_SQLITE_PATH = Path("database") / "registrations.db"
DEFAULT_BCRYPT_ROUNDS = 10


def resolve_sqlite_path() -> Path:
    return Path(os.environ.get("STUDIO_DB_PATH", str(DEFAULT_SQLITE_PATH))).expanduser().resolve()


class UnsupportedDialectError(Exception):
    """Raised when a maintenance statement has no form for the connected database."""


class DatabaseConfig(BaseModel):
    database_url: str
    ssl: bool = True
    bcrypt_rounds: int = Field(DEFAULT_BCRYPT_ROUNDS, ge=4, le=31)

    @field_validator("database_url")
    @classmethod
    def normalize_scheme(cls, value: str) -> str:
        # Managed providers hand out postgres:// URLs, SQLAlchemy wants postgresql://
        if value.startswith("postgres://"):
            value = value.replace("postgres://", "postgresql://", 1)
        return value

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        database_url = os.getenv("DATABASE_URL")
        if not database_url:
            db_path = resolve_sqlite_path()
            print(f"ℹ️  DATABASE_URL not set, using SQLite database: {db_path}")
            database_url = f"sqlite:///{db_path}"
        return cls(
            database_url=database_url,
            ssl=os.getenv("DATABASE_SSL", "true"),
            bcrypt_rounds=os.getenv("BCRYPT_ROUNDS", DEFAULT_BCRYPT_ROUNDS),
        )

    @property
    def backend(self) -> str:
        return make_url(self.database_url).get_backend_name()

    def connect_args(self) -> dict:
        # TLS without certificate verification
        if self.backend == "postgresql" and self.ssl and "sslmode" not in self.database_url:
            return {"sslmode": "require"}
        return {}

    def create_engine(self) -> Engine:
        if self.backend == "sqlite":
            database = make_url(self.database_url).database
            if database and database != ":memory:":
                Path(database).parent.mkdir(parents=True, exist_ok=True)

        engine = create_engine(
            self.database_url,
            connect_args=self.connect_args(),
            poolclass=NullPool,
        )
        if engine.dialect.name == "sqlite":
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


@contextmanager
def open_connection(engine: Engine):
    """Yield one autocommit connection and close it on every exit path.

    Statements are not wrapped in a transaction: each one is committed as
    soon as it runs, so a failure part-way leaves earlier statements applied.
    """
    try:
        conn = engine.connect()
    except SQLAlchemyError as e:
        print(f"❌ Database connection failed: {str(e)}")
        raise
    print(f"✅ Connected to {engine.dialect.name} database")

    try:
        conn = conn.execution_options(isolation_level="AUTOCOMMIT")
        yield conn
    finally:
        try:
            conn.close()
            print("✅ Database connection closed")
        except SQLAlchemyError as e:
            print(f"⚠️  Could not close database connection: {str(e)}")
