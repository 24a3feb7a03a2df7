"""Runtime settings from the environment and persisted user preferences."""
import os
from dataclasses import dataclass

from exam_academy.db import DEFAULT_DB_PATH, get_connection
from exam_academy.exceptions import InvalidInput
from exam_academy.session import SECONDS_PER_QUESTION

ENV_PREFIX = "EXAM_ACADEMY_"


@dataclass
class Settings:
    db_path: str = DEFAULT_DB_PATH
    log_level: str = "WARNING"
    seconds_per_question: int = SECONDS_PER_QUESTION
    default_questions: int = 10


def _env_int(environ, name: str, default: int) -> int:
    raw = environ.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise InvalidInput(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise InvalidInput(f"{ENV_PREFIX}{name} must be positive, got {value}")
    return value


def load_settings(environ=None) -> Settings:
    environ = os.environ if environ is None else environ
    return Settings(
        db_path=environ.get(ENV_PREFIX + "DB") or DEFAULT_DB_PATH,
        log_level=(environ.get(ENV_PREFIX + "LOG_LEVEL") or "WARNING").upper(),
        seconds_per_question=_env_int(environ, "SECONDS_PER_QUESTION", SECONDS_PER_QUESTION),
        default_questions=_env_int(environ, "DEFAULT_QUESTIONS", 10),
    )


def get_setting(db_path: str, key: str, default: str = None) -> str | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT value FROM user_settings WHERE key = ?", (key,)).fetchone()
    conn.close()
    return row["value"] if row else default


def set_setting(db_path: str, key: str, value: str) -> None:
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO user_settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
        (key, value, value),
    )
    conn.commit()
    conn.close()
