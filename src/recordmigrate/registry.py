"""Migration registry - the ordered set of known migration units.

Units are registered explicitly, usually by a migration module's
``register(registry)`` function, and are always iterated by version, never by
registration order::

    registry = MigrationRegistry()
    registry.register(1768297642, up, down, name="1768297642_tags_and_links")
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Iterable, Iterator, Sequence

from recordmigrate.exceptions import DuplicateVersionError

if TYPE_CHECKING:
    from recordmigrate.store import Store

MigrationFunc = Callable[["Store"], None]


@dataclass(frozen=True)
class MigrationUnit:
    """One forward/backward pair, identified by its version."""

    version: int
    forward: MigrationFunc = field(compare=False)
    backward: MigrationFunc = field(compare=False)
    name: str = field(default="", compare=False)

    @property
    def label(self) -> str:
        return self.name or str(self.version)


class MigrationRegistry:
    """Append-only collection of migration units kept sorted by version."""

    def __init__(self) -> None:
        self._versions: list[int] = []
        self._units: dict[int, MigrationUnit] = {}

    def register(
        self,
        version: int,
        forward: MigrationFunc,
        backward: MigrationFunc,
        *,
        name: str | None = None,
    ) -> MigrationUnit:
        """Add a unit.  Raises DuplicateVersionError if the version is taken."""
        if isinstance(version, bool) or not isinstance(version, int):
            raise TypeError(f"Migration version must be an int, got {version!r}")
        if version in self._units:
            raise DuplicateVersionError(version)
        unit = MigrationUnit(version, forward, backward, name or str(version))
        bisect.insort(self._versions, version)
        self._units[version] = unit
        return unit

    def get(self, version: int) -> MigrationUnit | None:
        return self._units.get(version)

    def versions(self) -> list[int]:
        return list(self._versions)

    def pending(self, applied: Iterable[int]) -> Iterator[MigrationUnit]:
        """Yield units not in ``applied``, ascending by version."""
        done = set(applied)
        for v in self._versions:
            if v not in done:
                yield self._units[v]

    def applied(self, applied: Sequence[int]) -> Iterator[MigrationUnit]:
        """Yield registered units in ``applied``, in reverse of the given order.

        ``applied`` must be the applied-version log in application order
        (as returned by ``MigrationRecorder.get_applied``); the result is then
        rollback order.  Unordered collections are rejected.
        """
        if not isinstance(applied, Sequence):
            raise TypeError(f"applied must be an ordered sequence of versions, got {type(applied).__name__}")
        units = (self._units.get(v) for v in reversed(applied))
        return (unit for unit in units if unit is not None)

    def __contains__(self, version: object) -> bool:
        return version in self._units

    def __len__(self) -> int:
        return len(self._versions)

    def __iter__(self) -> Iterator[MigrationUnit]:
        return (self._units[v] for v in self._versions)
