"""
This module sets up a database logging handler for the application.
"""
import logging
import sqlite3
import sys
from logging import Handler, LogRecord

from collection_schedule.config import CIVICKEY_DB_PATH, LOG_LEVEL


class SQLiteHandler(Handler):
    """
    A logging handler that writes records to the `logs` table.
    """

    def __init__(self, db_path: str = CIVICKEY_DB_PATH):
        super().__init__()
        self.db_path = db_path

    def emit(self, record: LogRecord) -> None:
        try:
            conn = sqlite3.connect(self.db_path)
            try:
                conn.execute(
                    "INSERT INTO logs (level, message, logger_name) VALUES (?, ?, ?)",
                    (record.levelname, self.format(record), record.name),
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error:
            self.handleError(record)


def setup_database_logging(db_path: str = CIVICKEY_DB_PATH, level: int = LOG_LEVEL) -> None:
    """
    Configures the root logger to write to the database and to stderr.
    """
    root = logging.getLogger()
    root.setLevel(level)

    # Remove any existing handlers to avoid duplicates
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    db_handler = SQLiteHandler(db_path)
    db_handler.setLevel(level)
    db_handler.setFormatter(formatter)
    root.addHandler(db_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    # Request logs from the HTTP stack are noisy at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    logging.info("Logging configured to use database and console.")
