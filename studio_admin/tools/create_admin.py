"""Create or refresh the studio's administrator account.

The default credentials are public. Set ADMIN_PASSWORD (and optionally
ADMIN_USERNAME / ADMIN_EMAIL) in the environment, or change the password
after the first login.
"""

import os

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError

from studio_admin.db import DatabaseConfig, UnsupportedDialectError, open_connection
from studio_admin.models import AdminUser
from studio_admin.utils import hash_password, mask_secret

DEFAULT_USERNAME = "admin"
DEFAULT_PASSWORD = "admin123"
DEFAULT_EMAIL = "admin@dancestudio.com"

INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class AdminCredentials(BaseModel):
    username: str = DEFAULT_USERNAME
    password: str = DEFAULT_PASSWORD
    email: str = DEFAULT_EMAIL

    @classmethod
    def from_env(cls) -> "AdminCredentials":
        return cls(
            username=os.getenv("ADMIN_USERNAME") or DEFAULT_USERNAME,
            password=os.getenv("ADMIN_PASSWORD") or DEFAULT_PASSWORD,
            email=os.getenv("ADMIN_EMAIL") or DEFAULT_EMAIL,
        )

    @property
    def uses_default_password(self) -> bool:
        return self.password == DEFAULT_PASSWORD


class AdminResult(BaseModel):
    username: str
    email: str
    created: bool


def build_upsert(dialect_name: str, username: str, password_hash: str, email: str):
    """INSERT ... ON CONFLICT (username) DO UPDATE for the admin row."""
    if dialect_name not in INSERT_BY_DIALECT:
        raise UnsupportedDialectError(f"Cannot upsert admin user on {dialect_name}")

    table = AdminUser.__table__
    stmt = INSERT_BY_DIALECT[dialect_name](table).values(
        username=username,
        password_hash=password_hash,
        email=email,
        is_active=True,
    )
    return stmt.on_conflict_do_update(
        index_elements=[table.c.username],
        set_={
            "password_hash": stmt.excluded.password_hash,
            "email": stmt.excluded.email,
            "is_active": stmt.excluded.is_active,
        },
    )


class CreateAdmin:
    def __init__(self, config: DatabaseConfig, credentials: AdminCredentials = None, engine=None):
        self.config = config
        self.credentials = credentials or AdminCredentials()
        self.engine = engine if engine is not None else config.create_engine()

    def run(self) -> AdminResult:
        print("🔐 Creating admin user...")
        creds = self.credentials
        table = AdminUser.__table__

        with open_connection(self.engine) as conn:
            try:
                table.create(conn, checkfirst=True)

                password_hash = hash_password(creds.password, rounds=self.config.bcrypt_rounds)

                # Only used for reporting, the upsert itself is a single statement
                existing = conn.execute(
                    select(table.c.id).where(table.c.username == creds.username)
                ).first()

                conn.execute(build_upsert(conn.dialect.name, creds.username, password_hash, creds.email))
            except (SQLAlchemyError, UnsupportedDialectError) as e:
                print(f"❌ Failed to create admin user: {str(e)}")
                raise

        created = existing is None
        print(f"✅ Admin user {'created' if created else 'updated'} successfully")
        print(f"   Username: {creds.username}")
        if creds.uses_default_password:
            print(f"   Password: {creds.password}")
            print("   ⚠️  Please change this password after first login!")
        else:
            print(f"   Password: {mask_secret(creds.password)}")

        return AdminResult(username=creds.username, email=creds.email, created=created)


def main() -> int:
    config = DatabaseConfig.from_env()
    CreateAdmin(config, AdminCredentials.from_env()).run()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
