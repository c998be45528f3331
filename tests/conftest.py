import pytest
from sqlalchemy import func, insert, select

from studio_admin.db import DatabaseConfig
from studio_admin.models import Base, Course, Registration


@pytest.fixture
def config(tmp_path):
    # Low bcrypt cost keeps the suite fast
    return DatabaseConfig(database_url=f"sqlite:///{tmp_path / 'studio.db'}", bcrypt_rounds=4)


@pytest.fixture
def engine(config):
    engine = config.create_engine()
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def seed(engine):
    def _seed(courses=3, registrations=5):
        with engine.begin() as conn:
            course_ids = [
                conn.execute(
                    insert(Course.__table__).values(name=f"Salsa Level {i + 1}", capacity=20)
                ).inserted_primary_key[0]
                for i in range(courses)
            ]
            for i in range(registrations):
                conn.execute(
                    insert(Registration.__table__).values(course_id=course_ids[i % len(course_ids)])
                )
        return course_ids
    return _seed


@pytest.fixture
def count_rows(engine):
    def _count(model):
        with engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(model.__table__)).scalar_one()
    return _count
