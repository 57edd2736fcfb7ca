from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from user_management.core import config


def _connect_args(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    config.DATABASE_URL,
    echo=config.DATABASE_ECHO,
    connect_args=_connect_args(config.DATABASE_URL),
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_user_schema_checked = False


def ensure_user_schema() -> None:
    global _user_schema_checked

    if _user_schema_checked:
        return

    with _schema_lock:
        if _user_schema_checked:
            return

        inspector = inspect(engine)

        if 'users' not in inspector.get_table_names():
            _user_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('users')}
        migration_steps = [
            ('name', "ALTER TABLE users ADD COLUMN name VARCHAR(100) NOT NULL DEFAULT ''"),
            ('phone', 'ALTER TABLE users ADD COLUMN phone VARCHAR(20)'),
            ('role', "ALTER TABLE users ADD COLUMN role VARCHAR(5) NOT NULL DEFAULT 'USER'"),
            ('active', 'ALTER TABLE users ADD COLUMN active BOOLEAN NOT NULL DEFAULT TRUE'),
            ('created_at', 'ALTER TABLE users ADD COLUMN created_at TIMESTAMP'),
            ('updated_at', 'ALTER TABLE users ADD COLUMN updated_at TIMESTAMP'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text("UPDATE users SET name = email WHERE name IS NULL OR name = ''")
            )
            connection.execute(
                text("UPDATE users SET role = 'ADMIN' WHERE lower(role) = 'admin'")
            )
            connection.execute(
                text("UPDATE users SET role = 'USER' WHERE role IS NULL OR role NOT IN ('USER', 'ADMIN')")
            )
            connection.execute(
                text('UPDATE users SET created_at = CURRENT_TIMESTAMP WHERE created_at IS NULL')
            )
            connection.execute(
                text('UPDATE users SET updated_at = created_at WHERE updated_at IS NULL')
            )
            connection.execute(
                text('CREATE UNIQUE INDEX IF NOT EXISTS ix_users_email ON users(email)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_users_active_role ON users(active, role)')
            )

        _user_schema_checked = True
