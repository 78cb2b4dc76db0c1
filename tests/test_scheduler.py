"""Tests for per-level replenishment ranking."""

from __future__ import annotations

from wordsearch.inventory import InventorySnapshot, UserProgressSnapshot
from wordsearch.levels import DEFAULT_LEVEL_TABLE, get_level_config
from wordsearch.scheduler import LevelPolicy, prioritize_levels

POLICY = LevelPolicy(min_per_level=2, target_per_level=5, max_per_level=10)


def _stocked(overrides: dict[int, int]) -> dict[int, int]:
    counts = {config.level: POLICY.target_per_level for config in DEFAULT_LEVEL_TABLE}
    counts.update(overrides)
    return counts


def test_critical_level_scores_critical_and_below_target() -> None:
    snapshot = InventorySnapshot(counts_by_level=_stocked({5: 1}))

    entries = prioritize_levels(snapshot, None, POLICY)

    assert [entry.level for entry in entries] == [5]
    entry = entries[0]
    assert entry.priority_score == 120
    assert entry.reasons == ("critical_low", "below_target")
    assert entry.needed == 4
    assert entry.level_config == get_level_config(5)


def test_users_and_recent_plays_raise_priority() -> None:
    snapshot = InventorySnapshot(counts_by_level=_stocked({3: 3}))
    progress = UserProgressSnapshot(users_at_level={3: 2}, recent_plays_at_level={3: 7})

    (entry,) = prioritize_levels(snapshot, progress, POLICY)

    assert entry.priority_score == 50 + 10 + 40 + 7 + 20
    assert entry.reasons == ("2_users_here", "7_recent_plays", "below_target")
    assert (entry.users_here, entry.recent_plays) == (2, 7)


def test_activity_on_stocked_level_is_ignored() -> None:
    snapshot = InventorySnapshot(counts_by_level=_stocked({4: 6}))
    progress = UserProgressSnapshot(users_at_level={4: 12}, recent_plays_at_level={4: 30})

    assert prioritize_levels(snapshot, progress, POLICY) == []


def test_levels_at_max_are_never_scheduled() -> None:
    snapshot = InventorySnapshot(counts_by_level={1: 10, 2: 15, 3: 0})
    progress = UserProgressSnapshot(users_at_level={1: 40, 2: 40}, recent_plays_at_level={1: 99})
    levels = [get_level_config(level) for level in (1, 2, 3)]

    entries = prioritize_levels(snapshot, progress, POLICY, levels)

    assert [entry.level for entry in entries] == [3]
    assert all(entry.current_count < POLICY.max_per_level for entry in entries)


def test_entries_sorted_by_score_with_ties_in_level_order() -> None:
    snapshot = InventorySnapshot(counts_by_level={1: 0, 2: 3, 3: 0, 4: 4, 5: 8})
    progress = UserProgressSnapshot(users_at_level={4: 1})
    levels = [get_level_config(level) for level in (5, 4, 3, 2, 1)]

    entries = prioritize_levels(snapshot, progress, POLICY, levels)

    scores = [entry.priority_score for entry in entries]
    assert scores == sorted(scores, reverse=True)
    assert [entry.level for entry in entries] == [1, 3, 4, 2]
    assert [entry.priority_score for entry in entries] == [120, 120, 75, 20]


def test_empty_inventory_ranks_every_level() -> None:
    entries = prioritize_levels(InventorySnapshot(), UserProgressSnapshot(), POLICY)

    assert len(entries) == len(DEFAULT_LEVEL_TABLE)
    assert entries[0].level == 1
    assert all(entry.needed == POLICY.target_per_level for entry in entries)
