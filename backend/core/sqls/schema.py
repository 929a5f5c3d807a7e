"""
Database schema definitions
All tables and indexes are created idempotently by DatabaseManager
"""

CREATE_USERS_TABLE = """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        external_id TEXT NOT NULL UNIQUE,
        email TEXT NOT NULL,
        name TEXT,
        planning_time TEXT,
        timezone TEXT,
        onboarding_complete INTEGER NOT NULL DEFAULT 0,
        created_at INTEGER NOT NULL
    )
"""

CREATE_HABITS_TABLE = """
    CREATE TABLE IF NOT EXISTS habits (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        name TEXT NOT NULL,
        description TEXT,
        frequency TEXT NOT NULL,
        custom_days TEXT,
        preferred_time TEXT,
        duration_minutes INTEGER NOT NULL,
        current_streak INTEGER NOT NULL DEFAULT 0,
        best_streak INTEGER NOT NULL DEFAULT 0,
        is_active INTEGER NOT NULL DEFAULT 1,
        color TEXT,
        created_at INTEGER NOT NULL,
        FOREIGN KEY (user_id) REFERENCES users(id)
    )
"""

CREATE_HABIT_LOGS_TABLE = """
    CREATE TABLE IF NOT EXISTS habit_logs (
        id TEXT PRIMARY KEY,
        habit_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        date TEXT NOT NULL,
        completed INTEGER NOT NULL,
        notes TEXT,
        created_at INTEGER NOT NULL,
        UNIQUE (habit_id, date),
        FOREIGN KEY (habit_id) REFERENCES habits(id)
    )
"""

CREATE_CALENDAR_EVENTS_TABLE = """
    CREATE TABLE IF NOT EXISTS calendar_events (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        title TEXT NOT NULL,
        description TEXT,
        start_time TEXT NOT NULL,
        end_time TEXT NOT NULL,
        date TEXT NOT NULL,
        category TEXT NOT NULL,
        is_recurring INTEGER NOT NULL DEFAULT 0,
        recurring_pattern TEXT,
        created_by TEXT NOT NULL,
        completed INTEGER NOT NULL DEFAULT 0,
        created_at INTEGER NOT NULL,
        FOREIGN KEY (user_id) REFERENCES users(id)
    )
"""

CREATE_PLANNING_SESSIONS_TABLE = """
    CREATE TABLE IF NOT EXISTS planning_sessions (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        planning_date TEXT NOT NULL,
        messages TEXT NOT NULL DEFAULT '[]',
        is_complete INTEGER NOT NULL DEFAULT 0,
        created_at INTEGER NOT NULL,
        updated_at INTEGER NOT NULL,
        UNIQUE (user_id, planning_date),
        FOREIGN KEY (user_id) REFERENCES users(id)
    )
"""

ALL_TABLES = [
    CREATE_USERS_TABLE,
    CREATE_HABITS_TABLE,
    CREATE_HABIT_LOGS_TABLE,
    CREATE_CALENDAR_EVENTS_TABLE,
    CREATE_PLANNING_SESSIONS_TABLE,
]

ALL_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_habits_user ON habits(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_habit_logs_habit_date ON habit_logs(habit_id, date)",
    "CREATE INDEX IF NOT EXISTS idx_habit_logs_user_date ON habit_logs(user_id, date)",
    "CREATE INDEX IF NOT EXISTS idx_calendar_events_user_date ON calendar_events(user_id, date)",
    "CREATE INDEX IF NOT EXISTS idx_calendar_events_user ON calendar_events(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_planning_sessions_user ON planning_sessions(user_id)",
]
