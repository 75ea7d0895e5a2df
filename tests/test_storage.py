from __future__ import annotations

from pathlib import Path
from typing import List

from passive_genius.schemas import IncomeIdea, UserProfile
from passive_genius.storage import (
    FAVORITES_KEY,
    PROFILE_KEY,
    LocalStorage,
    Stores,
    progress_key,
)


def test_missing_entries_read_as_defaults(stores: Stores) -> None:
    assert stores.profile.load() == UserProfile()
    assert stores.favorites.load() == []
    assert stores.progress.load("idea-1") == {}


def test_profile_round_trip(stores: Stores, profile: UserProfile) -> None:
    stores.profile.save(profile)

    assert stores.profile.load() == profile
    assert stores.storage.get(PROFILE_KEY)["timeCommitment"] == "5-10 hours/week"


def test_corrupt_entries_read_as_defaults(stores: Stores) -> None:
    root = stores.storage.root
    root.mkdir(parents=True)
    (root / f"{PROFILE_KEY}.json").write_text("{not json", encoding="utf-8")
    (root / f"{FAVORITES_KEY}.json").write_text('{"oops": true}', encoding="utf-8")
    (root / f"{progress_key('idea-1')}.json").write_text("[1, 2, 3]", encoding="utf-8")

    assert stores.profile.load() == UserProfile()
    assert stores.favorites.load() == []
    assert stores.progress.load("idea-1") == {}


def test_wrongly_typed_profile_reads_as_default(stores: Stores) -> None:
    stores.storage.set(PROFILE_KEY, {"skills": ["not", "text"]})

    assert stores.profile.load() == UserProfile()


def test_favorites_toggle_is_idempotent_membership(stores: Stores, ideas: List[IncomeIdea]) -> None:
    first, second = ideas[0], ideas[1]

    assert stores.favorites.toggle(first) is True
    assert stores.favorites.toggle(second) is True
    assert [idea.id for idea in stores.favorites.load()] == [first.id, second.id]

    assert stores.favorites.toggle(first) is False
    assert [idea.id for idea in stores.favorites.load()] == [second.id]

    assert stores.favorites.toggle(first) is True
    assert stores.favorites.contains(first.id)
    assert len([idea for idea in stores.favorites.load() if idea.id == first.id]) == 1


def test_favorites_round_trip_preserves_ideas(stores: Stores, ideas: List[IncomeIdea]) -> None:
    stores.favorites.save(ideas)

    assert stores.favorites.load() == ideas


def test_invalid_favorite_entries_are_dropped(stores: Stores, idea_payloads: List[dict]) -> None:
    broken = dict(idea_payloads[1])
    broken.pop("title")
    stores.storage.set(FAVORITES_KEY, [idea_payloads[0], broken, idea_payloads[0]])

    assert [idea.id for idea in stores.favorites.load()] == ["idea-1"]


def test_progress_is_namespaced_by_idea(stores: Stores) -> None:
    assert stores.progress.toggle_task("idea-1", 0, 1) is True
    assert stores.progress.toggle_task("idea-2", 2, 0) is True
    assert stores.progress.toggle_task("idea-1", 0, 1) is False

    assert stores.progress.load("idea-1") == {"0-1": False}
    assert stores.progress.load("idea-2") == {"2-0": True}


def test_progress_ignores_non_boolean_values(stores: Stores) -> None:
    stores.storage.set(progress_key("idea-1"), {"0-0": True, "0-1": "yes"})

    assert stores.progress.load("idea-1") == {"0-0": True}


def test_unsafe_keys_stay_inside_the_storage_root(tmp_path: Path) -> None:
    storage = LocalStorage(tmp_path)
    storage.set(progress_key("../../escape"), {"0-0": True})

    assert storage.get(progress_key("../../escape")) == {"0-0": True}
    assert all(path.parent == tmp_path for path in tmp_path.iterdir())


def test_similar_idea_ids_keep_separate_progress(stores: Stores) -> None:
    stores.progress.toggle_task("idea/1", 0, 0)
    stores.progress.toggle_task("idea_1", 1, 1)

    assert stores.progress.load("idea/1") == {"0-0": True}
    assert stores.progress.load("idea_1") == {"1-1": True}


def test_failed_writes_are_ignored(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory", encoding="utf-8")
    storage = LocalStorage(blocker / "nested")

    storage.set(PROFILE_KEY, {"skills": "x"})

    assert storage.get(PROFILE_KEY) is None
