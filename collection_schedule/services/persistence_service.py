"""
This module defines the PersistenceService for database interactions.
"""

import json
import sqlite3
from typing import List, Optional

from ..config import CIVICKEY_DB_PATH, DEFAULT_REMINDER_HOUR
from ..models import ScheduleData


class PersistenceService:
    """Handles all database interactions for the application."""

    def __init__(self, db_path: str = CIVICKEY_DB_PATH):
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        self._cursor: Optional[sqlite3.Cursor] = None

    def __enter__(self) -> "PersistenceService":
        """Establishes the database connection."""
        self._conn = sqlite3.connect(self.db_path)
        self._conn.row_factory = sqlite3.Row
        self._cursor = self._conn.cursor()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Commits changes and closes the connection."""
        if self._conn:
            if exc_type is None:
                self._conn.commit()
            else:
                self._conn.rollback()
            self._conn.close()
        self._conn = None
        self._cursor = None

    def _get_cursor(self) -> sqlite3.Cursor:
        """Returns the cursor, ensuring the connection is open."""
        if self._cursor is None:
            raise RuntimeError("Database connection is not open. Use 'with' statement.")
        return self._cursor

    def init_db(self) -> None:
        """Initialize SQLite schema if not exists."""
        cur = self._get_cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS schedule_documents (
                municipality_id TEXT PRIMARY KEY,
                payload TEXT NOT NULL,
                hash TEXT NOT NULL,
                updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
            )
        """
        )
        cur.execute(
            f"""
            CREATE TABLE IF NOT EXISTS subscriptions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                chat_id INTEGER NOT NULL,
                municipality_id TEXT NOT NULL,
                zone_id TEXT NOT NULL,
                language TEXT NOT NULL DEFAULT 'en',
                reminder_hour INTEGER NOT NULL DEFAULT {int(DEFAULT_REMINDER_HOUR)},
                last_notified DATE,
                is_active BOOLEAN DEFAULT 1,
                created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                UNIQUE(chat_id, municipality_id)
            )
        """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                timestamp DATETIME DEFAULT CURRENT_TIMESTAMP,
                level TEXT NOT NULL,
                message TEXT NOT NULL,
                logger_name TEXT
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS system_info (
                key TEXT PRIMARY KEY,
                value TEXT
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS notification_logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                subscription_id INTEGER,
                timestamp_scheduled DATETIME DEFAULT CURRENT_TIMESTAMP,
                timestamp_sent DATETIME,
                status TEXT NOT NULL,
                error_message TEXT,
                FOREIGN KEY(subscription_id) REFERENCES subscriptions(id)
            )
            """
        )

    # --- Schedule documents ---

    def upsert_schedule(self, municipality_id: str, schedule: ScheduleData) -> bool:
        """
        Stores a municipality's schedule document.

        Returns:
            True if the stored document changed, False if it was identical.
        """
        cur = self._get_cursor()
        schedule_hash = schedule.compute_hash()
        cur.execute(
            "SELECT hash FROM schedule_documents WHERE municipality_id = ?",
            (municipality_id,),
        )
        row = cur.fetchone()
        if row and row[0] == schedule_hash:
            return False

        payload = json.dumps(schedule.to_dict(), ensure_ascii=False)
        if row:
            cur.execute(
                "UPDATE schedule_documents SET payload = ?, hash = ?, updated_at = CURRENT_TIMESTAMP WHERE municipality_id = ?",
                (payload, schedule_hash, municipality_id),
            )
        else:
            cur.execute(
                "INSERT INTO schedule_documents (municipality_id, payload, hash) VALUES (?, ?, ?)",
                (municipality_id, payload, schedule_hash),
            )
        return True

    def get_schedule(self, municipality_id: str) -> Optional[ScheduleData]:
        """Returns the cached schedule document, or None if there is none."""
        cur = self._get_cursor()
        cur.execute(
            "SELECT payload FROM schedule_documents WHERE municipality_id = ?",
            (municipality_id,),
        )
        row = cur.fetchone()
        if not row:
            return None
        return ScheduleData.from_dict(json.loads(row[0]))

    def get_all_municipality_ids(self) -> List[str]:
        cur = self._get_cursor()
        cur.execute("SELECT municipality_id FROM schedule_documents ORDER BY municipality_id")
        return [row[0] for row in cur.fetchall()]

    # --- Subscriptions ---

    def find_subscription_by_chat_and_municipality(
        self, chat_id: int, municipality_id: str
    ) -> Optional[dict]:
        """Finds a subscription by chat_id and municipality_id."""
        cur = self._get_cursor()
        cur.execute(
            "SELECT * FROM subscriptions WHERE chat_id = ? AND municipality_id = ?",
            (chat_id, municipality_id),
        )
        return cur.fetchone()

    def reactivate_subscription(
        self, subscription_id: int, zone_id: str, language: str, reminder_hour: int
    ) -> None:
        """Reactivates an existing subscription, possibly for a new zone."""
        cur = self._get_cursor()
        cur.execute(
            "UPDATE subscriptions SET is_active = 1, zone_id = ?, language = ?, reminder_hour = ?, last_notified = NULL WHERE id = ?",
            (zone_id, language, reminder_hour, subscription_id),
        )

    def create_subscription(
        self,
        chat_id: int,
        municipality_id: str,
        zone_id: str,
        language: str,
        reminder_hour: int,
    ) -> None:
        """Creates a new subscription."""
        cur = self._get_cursor()
        cur.execute(
            "INSERT INTO subscriptions (chat_id, municipality_id, zone_id, language, reminder_hour, last_notified) VALUES (?, ?, ?, ?, ?, NULL)",
            (chat_id, municipality_id, zone_id, language, reminder_hour),
        )

    def get_subscriptions_by_chat_id(self, chat_id: int) -> List[dict]:
        """Retrieves all active subscriptions for a given chat_id."""
        cur = self._get_cursor()
        cur.execute(
            "SELECT id, municipality_id, zone_id, language, reminder_hour FROM subscriptions WHERE chat_id = ? AND is_active = 1",
            (chat_id,),
        )
        return cur.fetchall()

    def deactivate_subscription(self, subscription_id: int) -> None:
        """Marks a subscription as inactive."""
        cur = self._get_cursor()
        cur.execute(
            "UPDATE subscriptions SET is_active = 0 WHERE id = ?", (subscription_id,)
        )

    def get_all_active_subscriptions(self) -> List[dict]:
        """Retrieves all active subscriptions from the database."""
        cur = self._get_cursor()
        cur.execute(
            "SELECT id, chat_id, municipality_id, zone_id, language, reminder_hour, last_notified FROM subscriptions WHERE is_active = 1"
        )
        return cur.fetchall()

    def update_subscription_last_notified(
        self, subscription_id: int, notification_date: str
    ) -> None:
        """Updates the last_notified date for a subscription."""
        cur = self._get_cursor()
        cur.execute(
            "UPDATE subscriptions SET last_notified = ? WHERE id = ?",
            (notification_date, subscription_id),
        )

    def get_unique_subscribed_municipalities(self) -> List[str]:
        """Municipalities with at least one active subscription."""
        cur = self._get_cursor()
        cur.execute(
            "SELECT DISTINCT municipality_id FROM subscriptions WHERE is_active = 1 ORDER BY municipality_id"
        )
        return [row[0] for row in cur.fetchall()]

    # --- Notification logs, logs and system info ---

    def create_notification_log(self, subscription_id: int, status: str) -> int:
        """Creates a new notification log entry and returns its ID."""
        cur = self._get_cursor()
        cur.execute(
            "INSERT INTO notification_logs (subscription_id, status) VALUES (?, ?)",
            (subscription_id, status),
        )
        return cur.lastrowid

    def update_notification_log_status(
        self, log_id: int, status: str, error_message: Optional[str] = None
    ) -> None:
        """Updates the status of a notification log."""
        cur = self._get_cursor()
        cur.execute(
            "UPDATE notification_logs SET status = ?, error_message = ?, timestamp_sent = CURRENT_TIMESTAMP WHERE id = ?",
            (status, error_message, log_id),
        )

    def get_notification_stats(self) -> dict:
        """Counts notification outcomes for the dashboard."""
        cur = self._get_cursor()
        cur.execute(
            "SELECT status, COUNT(*) AS total FROM notification_logs GROUP BY status"
        )
        return {row["status"]: row["total"] for row in cur.fetchall()}

    def get_all_logs(self) -> List[dict]:
        """Retrieves all logs from the database, ordered by timestamp descending."""
        cur = self._get_cursor()
        cur.execute(
            "SELECT * FROM logs ORDER BY timestamp DESC LIMIT 100"
        )  # Limit to 100 to avoid overwhelming the dashboard
        return cur.fetchall()

    def record_system_info(self, key: str, value: str) -> None:
        cur = self._get_cursor()
        cur.execute(
            "INSERT OR REPLACE INTO system_info (key, value) VALUES (?, ?)",
            (key, value),
        )

    def get_system_info(self, key: str) -> Optional[str]:
        cur = self._get_cursor()
        cur.execute("SELECT value FROM system_info WHERE key = ?", (key,))
        row = cur.fetchone()
        return row[0] if row else None
