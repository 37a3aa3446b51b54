"""Fixed-expiry key/value bucket used by the windowed store."""

from __future__ import annotations

from typing import Generic, TypeVar

V = TypeVar("V")


class Generation(Generic[V]):
    """Mutable mapping whose expiry never changes after construction."""

    __slots__ = ("_expiry_ms", "_data")

    def __init__(self, expiry_ms: float) -> None:
        self._expiry_ms = expiry_ms
        self._data: dict[str, V] = {}

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"Generation(expiry_ms={self._expiry_ms}, size={len(self._data)})"

    def __len__(self) -> int:
        return len(self._data)

    @property
    def expiry_ms(self) -> float:
        return self._expiry_ms

    def has(self, key: str) -> bool:
        return key in self._data

    def get(self, key: str) -> V | None:
        return self._data.get(key)

    def set(self, key: str, value: V) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def is_expired(self, now_ms: float) -> bool:
        return now_ms >= self._expiry_ms
