from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from backend import config


def make_engine(url: str, echo: bool = False) -> Engine:
    connect_args = {}
    if url.startswith("sqlite"):
        # Sessions are handed between the request thread and worker threads
        connect_args["check_same_thread"] = False
    return create_engine(url, echo=echo, connect_args=connect_args)


engine = make_engine(config.DATABASE_URL, echo=config.DATABASE_ECHO)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


_SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS projects (
        id VARCHAR(64) PRIMARY KEY,
        project_number VARCHAR(64),
        name TEXT NOT NULL,
        status VARCHAR(32) NOT NULL DEFAULT 'draft',
        planned_start_date DATE,
        planned_end_date DATE,
        progress_percent NUMERIC(5, 2) NOT NULL DEFAULT 0,
        created_at TIMESTAMP NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS phases (
        id VARCHAR(64) PRIMARY KEY,
        project_id VARCHAR(64) NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
        phase_number INTEGER NOT NULL,
        sequence_order INTEGER NOT NULL,
        name TEXT NOT NULL,
        status VARCHAR(32) NOT NULL DEFAULT 'pending',
        planned_start_date DATE,
        planned_end_date DATE,
        progress_percent NUMERIC(5, 2) NOT NULL DEFAULT 0,
        created_at TIMESTAMP NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS work_packages (
        id VARCHAR(64) PRIMARY KEY,
        project_id VARCHAR(64) NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
        phase_id VARCHAR(64) NOT NULL REFERENCES phases(id) ON DELETE CASCADE,
        package_number VARCHAR(64) NOT NULL,
        name TEXT NOT NULL,
        status VARCHAR(32) NOT NULL DEFAULT 'pending',
        planned_start_date DATE,
        planned_end_date DATE,
        progress_percent NUMERIC(5, 2) NOT NULL DEFAULT 0,
        created_at TIMESTAMP NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_phases_project ON phases (project_id, sequence_order)",
    "CREATE INDEX IF NOT EXISTS ix_work_packages_phase ON work_packages (phase_id, created_at)",
]


def init_db(bind: Engine = None) -> None:
    """Create the project hierarchy tables if they do not exist yet."""
    bind = bind or engine
    with bind.begin() as conn:
        for ddl in _SCHEMA:
            conn.execute(text(ddl))


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
