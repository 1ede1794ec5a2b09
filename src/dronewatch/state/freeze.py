"""Position freezing for restricted vehicles."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FreezeLock:
    """Position and heading captured at the first restricted observation."""

    longitude: float
    latitude: float
    yaw: float

    def as_tuple(self) -> tuple[float, float, float]:
        return self.longitude, self.latitude, self.yaw


class FreezeGate:
    """Owns the identifier -> :class:`FreezeLock` map.

    A restricted vehicle is pinned to the first position it was seen at;
    later candidates are ignored. An admitted classification releases the
    lock and passes live values through.
    """

    def __init__(self) -> None:
        self._locks: dict[str, FreezeLock] = {}

    def resolve(
        self,
        identifier: str,
        longitude: float,
        latitude: float,
        yaw: float,
        *,
        admitted: bool,
    ) -> tuple[float, float, float]:
        """Return the effective ``(longitude, latitude, yaw)`` for this update."""
        if admitted:
            self._locks.pop(identifier, None)
            return longitude, latitude, yaw

        lock = self._locks.get(identifier)
        if lock is None:
            lock = FreezeLock(longitude=longitude, latitude=latitude, yaw=yaw)
            self._locks[identifier] = lock
        return lock.as_tuple()

    def get(self, identifier: str) -> FreezeLock | None:
        return self._locks.get(identifier)

    def release(self, identifier: str) -> bool:
        return self._locks.pop(identifier, None) is not None

    def clear(self) -> None:
        self._locks.clear()

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._locks

    def __len__(self) -> int:
        return len(self._locks)
