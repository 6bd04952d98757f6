"""
db/init_db.py
-------------
Creates the database schema (tables and indexes) if it does not already exist.
Run this module directly to initialize a fresh database:
    python -m db.init_db
"""

from db.connection import ConnectionPool
from utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA_SQL = """
-- Users table: one row per account; user_id is the tenant key of every other table
CREATE TABLE IF NOT EXISTS users (
    id                      SERIAL PRIMARY KEY,
    user_id                 VARCHAR(255) UNIQUE NOT NULL,
    email                   VARCHAR(255) UNIQUE NOT NULL,
    name                    VARCHAR(255),
    degree                  VARCHAR(255),
    year                    VARCHAR(100),
    subjects                JSONB DEFAULT '[]',
    energy_preference       VARCHAR(50) DEFAULT 'morning',
    career_interests        JSONB DEFAULT '[]',
    financial_stress_level  INTEGER DEFAULT 1,
    hobbies                 JSONB DEFAULT '[]',
    created_at              TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at              TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Goals table
CREATE TABLE IF NOT EXISTS goals (
    id              SERIAL PRIMARY KEY,
    goal_id         VARCHAR(255) UNIQUE NOT NULL,
    user_id         VARCHAR(255) NOT NULL,
    title           VARCHAR(500) NOT NULL,
    description     TEXT,
    category        VARCHAR(50) NOT NULL,
    status          VARCHAR(50) DEFAULT 'active',
    created_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Habits table: completed_dates is a list of ISO dates
CREATE TABLE IF NOT EXISTS habits (
    id              SERIAL PRIMARY KEY,
    habit_id        VARCHAR(255) UNIQUE NOT NULL,
    user_id         VARCHAR(255) NOT NULL,
    name            VARCHAR(255) NOT NULL,
    category        VARCHAR(50) NOT NULL,
    description     TEXT,
    frequency       VARCHAR(50) DEFAULT 'daily',
    completed_dates JSONB DEFAULT '[]',
    created_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Tasks table: goal/habit links are soft references
CREATE TABLE IF NOT EXISTS tasks (
    id              SERIAL PRIMARY KEY,
    task_id         VARCHAR(255) UNIQUE NOT NULL,
    user_id         VARCHAR(255) NOT NULL,
    title           VARCHAR(500) NOT NULL,
    description     TEXT,
    completed       BOOLEAN DEFAULT FALSE,
    due_date        DATE,
    linked_goal_id  VARCHAR(255),
    linked_habit_id VARCHAR(255),
    priority        VARCHAR(50) DEFAULT 'medium',
    created_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Stress logs table: one entry per user and day (not enforced here)
CREATE TABLE IF NOT EXISTS stress_logs (
    id              SERIAL PRIMARY KEY,
    log_id          VARCHAR(255) UNIQUE NOT NULL,
    user_id         VARCHAR(255) NOT NULL,
    date            DATE NOT NULL,
    mood            INTEGER NOT NULL CHECK (mood >= 1 AND mood <= 5),
    fatigue         INTEGER NOT NULL CHECK (fatigue >= 1 AND fatigue <= 5),
    study_duration  DECIMAL(4,2) DEFAULT 0,
    stress_factors  JSONB DEFAULT '[]',
    notes           TEXT,
    created_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Mood entries table: daily mood check-ins, one per user and day (not enforced here)
CREATE TABLE IF NOT EXISTS mood_entries (
    id              SERIAL PRIMARY KEY,
    entry_id        VARCHAR(255) UNIQUE NOT NULL,
    user_id         VARCHAR(255) NOT NULL,
    date            DATE NOT NULL,
    mood            INTEGER NOT NULL CHECK (mood >= 1 AND mood <= 5),
    energy          INTEGER CHECK (energy >= 1 AND energy <= 5),
    emotions        JSONB DEFAULT '[]',
    note            TEXT,
    created_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Focus sessions table
CREATE TABLE IF NOT EXISTS focus_sessions (
    id              SERIAL PRIMARY KEY,
    session_id      VARCHAR(255) UNIQUE NOT NULL,
    user_id         VARCHAR(255) NOT NULL,
    duration        INTEGER NOT NULL,
    type            VARCHAR(50) NOT NULL,
    start_time      TIMESTAMP NOT NULL,
    end_time        TIMESTAMP,
    completed       BOOLEAN DEFAULT FALSE,
    created_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Expenses table
CREATE TABLE IF NOT EXISTS expenses (
    id              SERIAL PRIMARY KEY,
    expense_id      VARCHAR(255) UNIQUE NOT NULL,
    user_id         VARCHAR(255) NOT NULL,
    amount          DECIMAL(10,2) NOT NULL,
    category        VARCHAR(50) NOT NULL,
    description     VARCHAR(500) NOT NULL,
    expense_date    DATE NOT NULL,
    created_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Hobby posts table: the only table read across users (global feed)
CREATE TABLE IF NOT EXISTS hobby_posts (
    id              SERIAL PRIMARY KEY,
    post_id         VARCHAR(255) UNIQUE NOT NULL,
    user_id         VARCHAR(255) NOT NULL,
    user_name       VARCHAR(255) NOT NULL,
    title           VARCHAR(500) NOT NULL,
    content         TEXT NOT NULL,
    type            VARCHAR(50) DEFAULT 'text',
    file_url        VARCHAR(1000),
    created_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Weekly reflections table: one JSON object per tracked area
CREATE TABLE IF NOT EXISTS weekly_reflections (
    id              SERIAL PRIMARY KEY,
    reflection_id   VARCHAR(255) UNIQUE NOT NULL,
    user_id         VARCHAR(255) NOT NULL,
    week_start_date DATE NOT NULL,
    goals_data      JSONB DEFAULT '{}',
    habits_data     JSONB DEFAULT '{}',
    tasks_data      JSONB DEFAULT '{}',
    stress_data     JSONB DEFAULT '{}',
    finance_data    JSONB DEFAULT '{}',
    hobbies_data    JSONB DEFAULT '{}',
    overall_data    JSONB DEFAULT '{}',
    created_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Career tasks table
CREATE TABLE IF NOT EXISTS career_tasks (
    id              SERIAL PRIMARY KEY,
    task_id         VARCHAR(255) UNIQUE NOT NULL,
    user_id         VARCHAR(255) NOT NULL,
    title           VARCHAR(500) NOT NULL,
    description     TEXT,
    estimated_time  INTEGER DEFAULT 30,
    completed       BOOLEAN DEFAULT FALSE,
    category        VARCHAR(50) NOT NULL,
    created_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""

# Tables first created without updated_at gain the column in place.
LEGACY_TABLES_WITHOUT_UPDATED_AT = (
    "stress_logs", "focus_sessions", "expenses", "hobby_posts", "weekly_reflections",
)

UPGRADE_SQL = "\n".join(
    f"ALTER TABLE {table} ADD COLUMN IF NOT EXISTS updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP;"
    for table in LEGACY_TABLES_WITHOUT_UPDATED_AT
)

INDEX_SQL = """
-- One owner index per table; the feed is read by recency instead
CREATE INDEX IF NOT EXISTS idx_users_user_id ON users(user_id);
CREATE INDEX IF NOT EXISTS idx_goals_user_id ON goals(user_id);
CREATE INDEX IF NOT EXISTS idx_habits_user_id ON habits(user_id);
CREATE INDEX IF NOT EXISTS idx_tasks_user_id ON tasks(user_id);
CREATE INDEX IF NOT EXISTS idx_stress_logs_user_id ON stress_logs(user_id);
CREATE INDEX IF NOT EXISTS idx_mood_entries_user_id ON mood_entries(user_id);
CREATE INDEX IF NOT EXISTS idx_focus_sessions_user_id ON focus_sessions(user_id);
CREATE INDEX IF NOT EXISTS idx_expenses_user_id ON expenses(user_id);
CREATE INDEX IF NOT EXISTS idx_hobby_posts_created_at ON hobby_posts(created_at DESC);
CREATE INDEX IF NOT EXISTS idx_weekly_reflections_user_id ON weekly_reflections(user_id);
CREATE INDEX IF NOT EXISTS idx_career_tasks_user_id ON career_tasks(user_id);
"""


def initialize(db_pool: ConnectionPool) -> None:
    """
    Create all tables and indexes in a single transaction.
    Safe to call on every start (uses IF NOT EXISTS, never drops anything).

    Args:
        db_pool: An open connection pool.

    Raises:
        Exception: Any database error, after rolling back. Callers must
            treat it as fatal.
    """
    with db_pool.connection() as conn:
        try:
            with conn.cursor() as cur:
                cur.execute(SCHEMA_SQL)
                cur.execute(UPGRADE_SQL)
                cur.execute(INDEX_SQL)
            conn.commit()
            logger.info("Database schema initialized successfully.")
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to initialize schema: {e}")
            raise


if __name__ == "__main__":
    _pool = ConnectionPool()
    _pool.open()
    try:
        initialize(_pool)
    finally:
        _pool.close()
    print("✅ Database schema created successfully.")
