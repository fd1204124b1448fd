"""
SQLite persistence for Leisure Finder.
Used when Firestore isn't configured; exposes the same functions as
firestore_db so the app can use either one.
"""

import json
import logging
import sqlite3
from datetime import datetime

import config

logger = logging.getLogger(__name__)

DB_PATH = config.DATABASE_URL


def get_conn():
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


def init_db():
    """Create tables if they don't exist."""
    with get_conn() as c:
        c.executescript("""
            CREATE TABLE IF NOT EXISTS users (
                user_id TEXT PRIMARY KEY,
                prefs_json TEXT NOT NULL DEFAULT '{}',
                calendar_events_json TEXT NOT NULL DEFAULT '[]',
                updated_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS history (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                collection TEXT NOT NULL,
                user_id TEXT,
                data_json TEXT NOT NULL,
                created_at TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_history_user ON history(collection, user_id);
        """)
    logger.info("Initialized SQLite at %s", DB_PATH)


def _loads(raw, default):
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return default


# ---------- Users & preferences ----------

def get_user(user_id):
    """User document as {preferences, calendarEvents}, or None."""
    with get_conn() as c:
        row = c.execute(
            "SELECT prefs_json, calendar_events_json FROM users WHERE user_id = ?",
            (user_id,)
        ).fetchone()
    if row is None:
        return None
    return {
        "preferences": _loads(row["prefs_json"], {}),
        "calendarEvents": _loads(row["calendar_events_json"], []),
    }


def get_preferences(user_id):
    user = get_user(user_id)
    return user["preferences"] if user else None


def set_preferences(user_id, prefs):
    """Overwrite the whole preferences blob."""
    now = datetime.now().isoformat()
    prefs_json = json.dumps(prefs if isinstance(prefs, dict) else {})
    with get_conn() as c:
        c.execute(
            "INSERT INTO users (user_id, prefs_json, updated_at) VALUES (?, ?, ?) "
            "ON CONFLICT(user_id) DO UPDATE SET prefs_json = ?, updated_at = ?",
            (user_id, prefs_json, now, prefs_json, now)
        )


# ---------- Saved activities ----------

def get_saved_activities(user_id):
    return list((get_preferences(user_id) or {}).get("savedActivities") or [])


def add_saved_activity(user_id, activity_id):
    """Add an id to the saved list; saving twice is a no-op."""
    prefs = get_preferences(user_id) or {}
    saved = list(prefs.get("savedActivities") or [])
    if activity_id not in saved:
        saved.append(activity_id)
        set_preferences(user_id, dict(prefs, savedActivities=saved))
    return saved


def remove_saved_activity(user_id, activity_id):
    prefs = get_preferences(user_id)
    if prefs is None:
        return []
    saved = [a for a in (prefs.get("savedActivities") or []) if a != activity_id]
    set_preferences(user_id, dict(prefs, savedActivities=saved))
    return saved


def add_calendar_event(user_id, record):
    """Append an event reference to an existing user. Returns False for unknown users."""
    user = get_user(user_id)
    if user is None:
        return False
    events = user["calendarEvents"] + [record]
    with get_conn() as c:
        c.execute(
            "UPDATE users SET calendar_events_json = ?, updated_at = ? WHERE user_id = ?",
            (json.dumps(events), datetime.now().isoformat(), user_id)
        )
    return True


# ---------- History collections ----------

def log_history(collection, record):
    """Append a history record. Failures are logged, never raised."""
    try:
        with get_conn() as c:
            c.execute(
                "INSERT INTO history (collection, user_id, data_json, created_at) VALUES (?, ?, ?, ?)",
                (collection, record.get("userId"), json.dumps(record, default=str), datetime.now().isoformat())
            )
    except sqlite3.Error as e:
        logger.error("Error logging %s record: %s", collection, e)


def get_history(collection, user_id):
    with get_conn() as c:
        rows = c.execute(
            "SELECT data_json FROM history WHERE collection = ? AND user_id = ? ORDER BY id",
            (collection, user_id)
        ).fetchall()
    return [_loads(r["data_json"], {}) for r in rows]
