"""Delete every dance course and registration and restart their ID sequences.

⚠️ WARNING: this permanently removes all course and registration data. Only
run it deliberately, and never while the booking site is taking registrations.
"""

from pydantic import BaseModel
from sqlalchemy import delete, func, select, text
from sqlalchemy.exc import SQLAlchemyError

from studio_admin.db import DatabaseConfig, UnsupportedDialectError, open_connection
from studio_admin.models import Course, Registration

RESET_SEQUENCE_SQL = {
    "postgresql": [
        "ALTER SEQUENCE courses_id_seq RESTART WITH 1",
        "ALTER SEQUENCE registrations_id_seq RESTART WITH 1",
    ],
    # AUTOINCREMENT tables keep their high-water mark in sqlite_sequence
    "sqlite": [
        "DELETE FROM sqlite_sequence WHERE name IN ('courses', 'registrations')",
    ],
}


class ClearResult(BaseModel):
    courses_found: int
    registrations_deleted: int = 0
    courses_deleted: int = 0
    sequences_reset: bool = False


def sequence_reset_statements(dialect_name: str):
    if dialect_name not in RESET_SEQUENCE_SQL:
        raise UnsupportedDialectError(f"Cannot reset ID sequences on {dialect_name}")
    return [text(sql) for sql in RESET_SEQUENCE_SQL[dialect_name]]


class ClearCourses:
    def __init__(self, config: DatabaseConfig, engine=None):
        self.config = config
        self.engine = engine if engine is not None else config.create_engine()

    def run(self) -> ClearResult:
        print("🗑️  Starting to clear all dance courses...")

        with open_connection(self.engine) as conn:
            try:
                course_count = conn.execute(
                    select(func.count()).select_from(Course.__table__)
                ).scalar_one()
                print(f"📊 Found {course_count} courses to delete")

                if course_count == 0:
                    print("ℹ️  No courses found to delete")
                    return ClearResult(courses_found=0)

                # Registrations reference courses, so they go first
                registrations_deleted = conn.execute(delete(Registration.__table__)).rowcount
                print(f"🗑️  Deleted {registrations_deleted} registrations")

                courses_deleted = conn.execute(delete(Course.__table__)).rowcount
                print(f"🗑️  Deleted {courses_deleted} courses")

                for statement in sequence_reset_statements(conn.dialect.name):
                    conn.execute(statement)
                print("🔄 Reset ID sequences")
            except (SQLAlchemyError, UnsupportedDialectError) as e:
                print(f"❌ Error clearing courses: {str(e)}")
                raise

        print("🎉 Successfully cleared all dance courses and registrations!")
        return ClearResult(
            courses_found=course_count,
            registrations_deleted=registrations_deleted,
            courses_deleted=courses_deleted,
            sequences_reset=True,
        )


def main() -> int:
    config = DatabaseConfig.from_env()
    ClearCourses(config).run()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
