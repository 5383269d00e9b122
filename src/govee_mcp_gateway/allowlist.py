"""Device allowlist enforcement."""

from __future__ import annotations

import re
from typing import Callable, FrozenSet, Iterable, List, TypeVar, Union

from .errors import AuthorizationError

_SEPARATORS = re.compile(r"[,\s]+")

T = TypeVar("T")


def parse_allowlist(value: Union[str, Iterable[str], None]) -> FrozenSet[str]:
    """Split a comma/whitespace separated id list; blanks are dropped."""

    if value is None:
        return frozenset()
    if isinstance(value, str):
        parts: Iterable[str] = _SEPARATORS.split(value)
    else:
        parts = value
    return frozenset(part.strip() for part in parts if part and part.strip())


class AllowlistGuard:
    """Membership check over opaque device ids; an empty set allows everything."""

    def __init__(self, device_ids: Union[str, Iterable[str], None] = None) -> None:
        self._ids = parse_allowlist(device_ids)

    @property
    def restricted(self) -> bool:
        return bool(self._ids)

    @property
    def device_ids(self) -> FrozenSet[str]:
        return self._ids

    def is_allowed(self, device_id: str) -> bool:
        return not self._ids or device_id in self._ids

    def require(self, device_id: str) -> None:
        if not self.is_allowed(device_id):
            raise AuthorizationError(f"Device not allowed: {device_id}")

    def filter(self, items: Iterable[T], device_id: Callable[[T], str]) -> List[T]:
        return [item for item in items if self.is_allowed(device_id(item))]
