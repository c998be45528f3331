import pytest
from pydantic import ValidationError
from sqlalchemy import insert
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError, OperationalError

from studio_admin.db import DatabaseConfig, open_connection
from studio_admin.models import Registration


def test_postgres_scheme_is_rewritten():
    config = DatabaseConfig(database_url="postgres://user:pw@db.example.com:5432/studio")

    assert config.database_url == "postgresql://user:pw@db.example.com:5432/studio"
    assert config.backend == "postgresql"


def test_postgres_uses_tls_without_verification():
    config = DatabaseConfig(database_url="postgresql://user:pw@db.example.com/studio")

    assert config.connect_args() == {"sslmode": "require"}


def test_tls_can_be_disabled():
    config = DatabaseConfig(database_url="postgresql://user:pw@localhost/studio", ssl=False)

    assert config.connect_args() == {}


def test_explicit_sslmode_in_url_wins():
    config = DatabaseConfig(database_url="postgresql://user:pw@localhost/studio?sslmode=disable")

    assert config.connect_args() == {}


def test_sqlite_has_no_tls_args(config):
    assert config.connect_args() == {}


def test_from_env_falls_back_to_sqlite_in_working_directory(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("STUDIO_DB_PATH", raising=False)
    monkeypatch.delenv("BCRYPT_ROUNDS", raising=False)

    config = DatabaseConfig.from_env()

    assert config.database_url == f"sqlite:///{tmp_path.resolve() / 'database' / 'registrations.db'}"
    assert config.bcrypt_rounds == 10


def test_from_env_reads_connection_settings(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgres://user:pw@db.example.com/studio")
    monkeypatch.setenv("DATABASE_SSL", "false")
    monkeypatch.setenv("BCRYPT_ROUNDS", "12")

    config = DatabaseConfig.from_env()

    assert config.database_url.startswith("postgresql://")
    assert config.ssl is False
    assert config.bcrypt_rounds == 12


@pytest.mark.parametrize("rounds", ["abc", "3", "32"])
def test_invalid_bcrypt_rounds_rejected(monkeypatch, rounds):
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.setenv("BCRYPT_ROUNDS", rounds)

    with pytest.raises(ValidationError):
        DatabaseConfig.from_env()


def test_sqlite_engine_creates_database_directory(tmp_path):
    database = tmp_path / "database" / "registrations.db"

    DatabaseConfig(database_url=f"sqlite:///{database}").create_engine()

    assert database.parent.is_dir()


def test_sqlite_engine_enforces_foreign_keys(engine):
    with pytest.raises(IntegrityError):
        with engine.begin() as conn:
            conn.execute(insert(Registration.__table__).values(course_id=999))


def test_sqlite_path_can_be_overridden(monkeypatch, tmp_path):
    db_path = tmp_path / "studio.sqlite"
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("STUDIO_DB_PATH", str(db_path))

    config = DatabaseConfig.from_env()

    assert config.database_url == f"sqlite:///{db_path.resolve()}"


def test_failed_close_is_only_a_warning(monkeypatch, engine, capsys):
    def failing_close(self):
        raise OperationalError("close", {}, Exception("close failed"))

    with open_connection(engine) as conn:
        monkeypatch.setattr(Connection, "close", failing_close)
        conn.exec_driver_sql("SELECT 1")

    monkeypatch.undo()
    assert "Could not close database connection" in capsys.readouterr().out
