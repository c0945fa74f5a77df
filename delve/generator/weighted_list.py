"""Weighted random choice over resolved module entities.

Entries are resolved from ids once, when the list is built, so a bad id in a
template surfaces as an UnresolvedReference before any generation runs and
the hot generation loops only ever index into an owned table.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping

from delve.errors import InvalidParameter, UnresolvedReference
from delve.util.rng import ReproducibleRandom


class WeightedList[T]:
    """Ordered (entity, weight) table with weight-proportional picks.

    Weights are visited in insertion order, so a pick depends only on the
    random source state and the weight vector.

    Example:
        kinds = WeightedList({"stone": 3, "brick": 1}, "wall kind", module.wall_kind)
        kind = kinds.pick(rand)  # "stone" three times as often as "brick"
    """

    def __init__(
        self,
        entries: Mapping[str, int] | Iterable[tuple[str, int]],
        kind_label: str,
        resolver: Callable[[str], T | None],
    ) -> None:
        """Resolve every id in entries through resolver.

        Args:
            entries: id -> weight mapping, or (id, weight) pairs.
            kind_label: Label naming the entity kind in error messages.
            resolver: Lookup returning the entity for an id, or None.

        Raises:
            UnresolvedReference: If resolver returns None for any id.
            InvalidParameter: If any weight is negative.
        """
        pairs = entries.items() if isinstance(entries, Mapping) else entries

        self.kind_label = kind_label
        self._entries: list[tuple[T, int]] = []
        self._ids: list[str] = []
        for entry_id, weight in pairs:
            if weight < 0:
                raise InvalidParameter(
                    f"Negative weight {weight} for {kind_label} '{entry_id}'"
                )
            entity = resolver(entry_id)
            if entity is None:
                raise UnresolvedReference(kind_label, entry_id)
            self._entries.append((entity, weight))
            self._ids.append(entry_id)

        self.total_weight = sum(weight for _, weight in self._entries)

    @classmethod
    def empty(cls, kind_label: str) -> WeightedList[T]:
        return cls({}, kind_label, lambda _id: None)

    def pick_index(self, rand: ReproducibleRandom) -> int | None:
        """Pick an entry index with probability proportional to its weight.

        Returns None without drawing from rand if the list is empty or every
        weight is zero.
        """
        if self.total_weight <= 0:
            return None

        roll = rand.gen(0, self.total_weight)
        for index, (_, weight) in enumerate(self._entries):
            if roll < weight:
                return index
            roll -= weight

        raise AssertionError("weighted roll exceeded total weight")

    def pick(self, rand: ReproducibleRandom) -> T | None:
        """Pick an entity, or None if nothing can be picked."""
        index = self.pick_index(rand)
        if index is None:
            return None
        return self._entries[index][0]

    def entity(self, index: int) -> T:
        return self._entries[index][0]

    def ids(self) -> list[str]:
        return list(self._ids)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[tuple[T, int]]:
        return iter(self._entries)

    def __repr__(self) -> str:
        weights = ", ".join(
            f"{entry_id}={weight}"
            for entry_id, (_, weight) in zip(self._ids, self._entries, strict=True)
        )
        return f"WeightedList[{self.kind_label}]({weights})"
