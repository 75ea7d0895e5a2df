"""Durable key/value storage and the profile, favorites and progress stores."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List
from urllib.parse import quote

import structlog
from pydantic import ValidationError

from .schemas import IncomeIdea, UserProfile

logger = structlog.get_logger(__name__)

PROFILE_KEY = "pg_profile"
FAVORITES_KEY = "pg_favorites"
PROGRESS_KEY_PREFIX = "pg_progress_"


def progress_key(idea_id: str) -> str:
    """Return the storage key holding progress for *idea_id*."""

    return f"{PROGRESS_KEY_PREFIX}{idea_id}"


def task_key(phase_index: int, task_index: int) -> str:
    return f"{phase_index}-{task_index}"


class LocalStorage:
    """Store JSON snapshots in a directory, one file per key.

    Reads never raise: a missing or undecodable file is reported as absent.
    Writes are best effort; a failing write is logged and otherwise ignored.
    """

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def _path(self, key: str) -> Path:
        # Percent-encoding keeps distinct keys in distinct files.
        return self._root / f"{quote(key, safe='')}.json"

    def get(self, key: str) -> Any | None:
        """Return the decoded value stored under *key*, or ``None``."""

        path = self._path(key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("storage_read_failed", key=key, error=str(exc))
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("storage_corrupt_entry", key=key)
            return None

    def set(self, key: str, value: Any) -> None:
        """Serialize *value* under *key*."""

        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(".json.tmp")
            tmp_path.write_text(json.dumps(value, ensure_ascii=False), encoding="utf-8")
            tmp_path.replace(path)
        except (OSError, TypeError) as exc:
            logger.warning("storage_write_failed", key=key, error=str(exc))


class ProfileStore:
    """Persist the onboarding profile."""

    def __init__(self, storage: LocalStorage) -> None:
        self._storage = storage

    def load(self) -> UserProfile:
        raw = self._storage.get(PROFILE_KEY)
        if not isinstance(raw, dict):
            return UserProfile()
        try:
            return UserProfile.model_validate(raw)
        except ValidationError:
            logger.warning("profile_discarded", reason="invalid shape")
            return UserProfile()

    def save(self, profile: UserProfile) -> None:
        self._storage.set(PROFILE_KEY, profile.model_dump(by_alias=True))


class FavoritesStore:
    """Persist saved ideas as an ordered set keyed by idea id."""

    def __init__(self, storage: LocalStorage) -> None:
        self._storage = storage

    def load(self) -> List[IncomeIdea]:
        raw = self._storage.get(FAVORITES_KEY)
        if not isinstance(raw, list):
            return []
        favorites: List[IncomeIdea] = []
        seen: set[str] = set()
        for entry in raw:
            try:
                idea = IncomeIdea.model_validate(entry)
            except ValidationError:
                logger.warning("favorite_discarded", reason="invalid shape")
                continue
            if idea.id in seen:
                continue
            seen.add(idea.id)
            favorites.append(idea)
        return favorites

    def save(self, favorites: List[IncomeIdea]) -> None:
        self._storage.set(FAVORITES_KEY, [idea.model_dump(by_alias=True, mode="json") for idea in favorites])

    def contains(self, idea_id: str) -> bool:
        return any(idea.id == idea_id for idea in self.load())

    def toggle(self, idea: IncomeIdea) -> bool:
        """Add *idea* if absent, remove it otherwise. Return True when added."""

        favorites = self.load()
        remaining = [existing for existing in favorites if existing.id != idea.id]
        added = len(remaining) == len(favorites)
        if added:
            remaining.append(idea)
        self.save(remaining)
        return added


class ProgressStore:
    """Persist completed checklist tasks, one entry per idea."""

    def __init__(self, storage: LocalStorage) -> None:
        self._storage = storage

    def load(self, idea_id: str) -> Dict[str, bool]:
        raw = self._storage.get(progress_key(idea_id))
        if not isinstance(raw, dict):
            return {}
        return {str(key): value for key, value in raw.items() if isinstance(value, bool)}

    def save(self, idea_id: str, completed: Dict[str, bool]) -> None:
        self._storage.set(progress_key(idea_id), dict(completed))

    def toggle_task(self, idea_id: str, phase_index: int, task_index: int) -> bool:
        """Flip one task and return its new completion state."""

        completed = self.load(idea_id)
        key = task_key(phase_index, task_index)
        completed[key] = not completed.get(key, False)
        self.save(idea_id, completed)
        return completed[key]


class Stores:
    """Bundle the three stores sharing one storage backend."""

    def __init__(self, storage: LocalStorage) -> None:
        self.storage = storage
        self.profile = ProfileStore(storage)
        self.favorites = FavoritesStore(storage)
        self.progress = ProgressStore(storage)
