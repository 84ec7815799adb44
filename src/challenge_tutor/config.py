"""Engine policy settings, stored as overrides in the user_settings table."""
from dataclasses import dataclass, fields, replace
from typing import Optional
from zoneinfo import ZoneInfoNotFoundError

from challenge_tutor.clock import zone
from challenge_tutor.db import get_connection
from challenge_tutor.errors import ConfigError


@dataclass(frozen=True)
class Settings:
    timezone: str = "UTC"
    expected_seconds: float = 30.0
    quick_answer_seconds: Optional[float] = 20.0  # None disables the fast bonus
    mastery_repetitions: int = 3
    mastery_interval_days: int = 30
    streak_grace_days: int = 2
    leaderboard_size: int = 50


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


def _parse(name: str, raw: str, default):
    if name == "timezone":
        try:
            zone(raw)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigError(f"unknown time zone {raw!r}") from e
        return raw
    if name == "quick_answer_seconds" and raw.strip().lower() in ("", "none", "off"):
        return None
    try:
        if isinstance(default, int):
            return int(raw)
        return float(raw)
    except ValueError as e:
        raise ConfigError(f"setting {name} has invalid value {raw!r}") from e


def load_settings(db_path: str) -> Settings:
    """Defaults merged with any overrides saved in the database."""
    conn = get_connection(db_path)
    rows = conn.execute("SELECT key, value FROM user_settings").fetchall()
    conn.close()
    stored = {r["key"]: r["value"] for r in rows}
    settings = Settings()
    overrides = {}
    for f in fields(Settings):
        if f.name in stored and stored[f.name] is not None:
            overrides[f.name] = _parse(f.name, stored[f.name], getattr(settings, f.name))
    return replace(settings, **overrides)
