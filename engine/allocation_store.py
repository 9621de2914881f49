"""Sparse per-assignment allocation map: assignment id -> {ISO date -> percentage}.

Inner maps are never mutated in place. A write replaces the assignment's map
with a fresh dict, so copies taken with copy() share untouched maps and
never observe later writes.
"""

import logging
from datetime import date
from typing import Dict, Iterator, Mapping, Optional, Tuple, Union

from config.defaults import MAX_ALLOCATION_PCT, MIN_ALLOCATION_PCT

logger = logging.getLogger(__name__)

DateLike = Union[date, str]


def to_iso(day: DateLike) -> str:
    if isinstance(day, date):
        return day.isoformat()
    return date.fromisoformat(day).isoformat()


def validate_percentage(percentage: int) -> int:
    if isinstance(percentage, bool) or int(percentage) != percentage:
        raise ValueError(f"Allocation percentage must be an integer, got {percentage!r}")
    value = int(percentage)
    if value < MIN_ALLOCATION_PCT or value > MAX_ALLOCATION_PCT:
        raise ValueError(
            f"Allocation percentage must be between {MIN_ALLOCATION_PCT} and "
            f"{MAX_ALLOCATION_PCT}, got {value}"
        )
    return value


class AllocationStore:
    def __init__(self, maps: Optional[Mapping[str, Dict[str, int]]] = None):
        # Inner maps are shared, not copied. Use from_dict for raw data.
        self._maps: Dict[str, Dict[str, int]] = {
            aid: entries for aid, entries in (maps or {}).items() if entries
        }

    @classmethod
    def from_dict(cls, maps: Mapping[str, Mapping[str, int]]) -> "AllocationStore":
        """Build a store from plain data, dropping zero entries and copying inner maps."""
        return cls({
            aid: {to_iso(d): validate_percentage(p) for d, p in entries.items() if p}
            for aid, entries in maps.items()
        })

    def get(self, assignment_id: str, day: DateLike) -> int:
        return self._maps.get(assignment_id, {}).get(to_iso(day), 0)

    def set(self, assignment_id: str, day: DateLike, percentage: int) -> None:
        """Write one cell; 0 removes the key."""
        value = validate_percentage(percentage)
        key = to_iso(day)
        current = self._maps.get(assignment_id, {})
        updated = dict(current)
        if value == 0:
            updated.pop(key, None)
        else:
            updated[key] = value
        if updated:
            self._maps[assignment_id] = updated
        else:
            self._maps.pop(assignment_id, None)

    def cascade_delete(self, assignment_id: str) -> None:
        removed = self._maps.pop(assignment_id, None)
        if removed:
            logger.debug("Dropped %d allocation entries of assignment %s", len(removed), assignment_id)

    def has_entry(self, assignment_id: str, day: DateLike) -> bool:
        return to_iso(day) in self._maps.get(assignment_id, {})

    def assignment_map(self, assignment_id: str) -> Dict[str, int]:
        return dict(self._maps.get(assignment_id, {}))

    def assignment_ids(self):
        return list(self._maps.keys())

    def entries(self) -> Iterator[Tuple[str, str, int]]:
        """Yield (assignment_id, ISO date, percentage) for every stored cell."""
        for assignment_id, entries in self._maps.items():
            for day, percentage in entries.items():
                yield assignment_id, day, percentage

    def copy(self) -> "AllocationStore":
        clone = AllocationStore()
        clone._maps = dict(self._maps)
        return clone

    def as_mapping(self) -> Dict[str, Dict[str, int]]:
        """Shallow view for value snapshots; callers must not mutate inner maps."""
        return dict(self._maps)

    def snapshot(self) -> Dict[str, Dict[str, int]]:
        """Deep copy of the whole map."""
        return {aid: dict(entries) for aid, entries in self._maps.items()}

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._maps.values())

    def __eq__(self, other) -> bool:
        if not isinstance(other, AllocationStore):
            return NotImplemented
        return self._maps == other._maps

    def __repr__(self) -> str:
        return f"AllocationStore(assignments={len(self._maps)}, entries={len(self)})"
