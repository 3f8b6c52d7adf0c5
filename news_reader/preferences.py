"""
Persisted user preferences.

Preferences live in a single JSON file. Loading never fails (defaults are
used when the file is missing or unreadable) and saving never raises
(failures are logged and the in-memory record stays authoritative).
Every mutation is written back to disk before it returns.
"""

from __future__ import annotations

from collections import Counter
import json
import logging
import os
from pathlib import Path
import tempfile
from typing import Any, Iterable

from .config import PreferencesConfig
from .core.errors import InvalidRequestError
from .core.types import FeedSource, PreferenceStats, UserPreferences
from .logging_utils import log_event

logger = logging.getLogger(__name__)

SETTING_FIELDS = {
    "textSize": "text_size",
    "realityMode": "reality_mode",
    "hideReadMode": "hide_read_mode",
}


def push_bounded(items: list[str], values: Iterable[str], limit: int, unique: bool = False) -> list[str]:
    """Append values and keep only the most recent ``limit`` entries.

    With unique=True a repeated value moves to the most recent position
    instead of being stored twice.
    """
    result = list(items)
    for value in values:
        if unique and value in result:
            result.remove(value)
        result.append(value)
    if len(result) > limit:
        result = result[len(result) - limit:]
    return result


def _clean_topics(topics: Iterable[str] | None) -> list[str]:
    if not topics:
        return []
    cleaned = (str(topic).strip().lower() for topic in topics)
    return [topic for topic in cleaned if topic]


def _validate_setting(key: str, value: Any) -> Any:
    if key == "textSize":
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            raise InvalidRequestError("textSize must be a positive number")
        return float(value)
    if not isinstance(value, bool):
        raise InvalidRequestError(f"{key} must be a boolean")
    return value


class PreferenceStore:
    """Owns the preference record and its file."""

    def __init__(self, cfg: PreferencesConfig, path: Path | None = None):
        self.cfg = cfg
        self.path = path or Path(cfg.path)
        self._prefs = self.load()

    @property
    def preferences(self) -> UserPreferences:
        return self._prefs

    def load(self) -> UserPreferences:
        """Read preferences from disk; any failure yields defaults."""
        if not self.path.exists():
            return UserPreferences()
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
            if not isinstance(data, dict):
                raise ValueError("preference file does not hold an object")
            return UserPreferences.from_dict(data)
        except Exception as exc:  # noqa: BLE001
            log_event(
                logger,
                f"Could not load preferences from {self.path}: {exc}",
                level=logging.WARNING,
                event="preferences_load_failed",
                path=str(self.path),
                error=str(exc),
            )
            return UserPreferences()

    def save(self) -> None:
        """Write preferences to disk; failures are logged, not raised."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".prefs-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(self._prefs.to_dict(), handle, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except Exception as exc:  # noqa: BLE001
            log_event(
                logger,
                f"Could not save preferences to {self.path}: {exc}",
                level=logging.WARNING,
                event="preferences_save_failed",
                path=str(self.path),
                error=str(exc),
            )

    def update(self, changes: dict[str, Any]) -> UserPreferences:
        """Apply display-setting changes (textSize, realityMode, hideReadMode).

        All changes are validated before any is applied, so a rejected
        request leaves the record untouched.

        Raises:
            InvalidRequestError: On unknown keys or wrongly typed values
        """
        unknown = sorted(set(changes) - set(SETTING_FIELDS))
        if unknown:
            raise InvalidRequestError(f"Unknown preference field(s): {', '.join(unknown)}")
        validated = {SETTING_FIELDS[key]: _validate_setting(key, value) for key, value in changes.items()}
        prefs = self._prefs
        for attr, value in validated.items():
            setattr(prefs, attr, value)
        self.save()
        return prefs

    def clear(self) -> UserPreferences:
        """Reset to defaults, keeping user-added feeds."""
        self._prefs = UserPreferences(custom_feeds=list(self._prefs.custom_feeds))
        self.save()
        return self._prefs

    def mark_read(self, article_id: str, topics: Iterable[str] | None = None) -> UserPreferences:
        prefs = self._prefs
        prefs.read_articles = push_bounded(
            prefs.read_articles, [article_id], self.cfg.max_read_articles, unique=True
        )
        liked = _clean_topics(topics)
        if liked:
            prefs.interested_topics = push_bounded(prefs.interested_topics, liked, self.cfg.max_topics)
        self.save()
        return prefs

    def mark_not_interested(
        self, article_id: str | None = None, topics: Iterable[str] | None = None
    ) -> UserPreferences:
        """Record disliked topics; a dismissed article also counts as seen."""
        prefs = self._prefs
        if article_id:
            prefs.read_articles = push_bounded(
                prefs.read_articles, [article_id], self.cfg.max_read_articles, unique=True
            )
        disliked = _clean_topics(topics)
        if disliked:
            prefs.not_interested_topics = push_bounded(
                prefs.not_interested_topics, disliked, self.cfg.max_topics
            )
        self.save()
        return prefs

    def set_custom_feeds(self, feeds: Iterable[FeedSource]) -> None:
        self._prefs.custom_feeds = list(feeds)
        self.save()

    def stats(self) -> PreferenceStats:
        limit = self.cfg.stats_limit
        return PreferenceStats(
            read_count=len(self._prefs.read_articles),
            top_interested=Counter(self._prefs.interested_topics).most_common(limit),
            top_not_interested=Counter(self._prefs.not_interested_topics).most_common(limit),
        )
