from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType


class ExchangeIdentityMap:
    """Bidirectional lookup between short exchange ids and canonical addresses.

    Built once at startup and never mutated; safe to share between requests.
    """

    __slots__ = ("_to_canonical", "_to_short")

    def __init__(self, short_to_canonical: Mapping[str, str]):
        forward: dict[str, str] = {}
        reverse: dict[str, str] = {}
        for short_id, canonical in short_to_canonical.items():
            key = short_id.strip().lower()
            if not key or not canonical:
                raise ValueError(f"invalid exchange mapping {short_id!r} -> {canonical!r}")
            if key in forward:
                raise ValueError(f"duplicate exchange id {key!r}")
            if canonical in reverse:
                raise ValueError(f"canonical address {canonical!r} mapped by {reverse[canonical]!r} and {key!r}")
            forward[key] = canonical
            reverse[canonical] = key
        self._to_canonical = MappingProxyType(forward)
        self._to_short = MappingProxyType(reverse)

    @classmethod
    def from_mapping(cls, short_to_canonical: Mapping[str, str]) -> ExchangeIdentityMap:
        return cls(short_to_canonical)

    @classmethod
    def from_settings(cls, settings) -> ExchangeIdentityMap:
        return cls(settings.exchanges)

    def to_canonical(self, short_id: str) -> str | None:
        return self._to_canonical.get(short_id.lower())

    def to_short(self, canonical: str) -> str | None:
        return self._to_short.get(canonical)

    def rewrite(self, value: str) -> str:
        """Return the short id for a known canonical address, else ``value`` untouched."""
        short_id = self._to_short.get(value)
        return short_id if short_id is not None else value

    def __contains__(self, short_id: object) -> bool:
        return isinstance(short_id, str) and short_id.lower() in self._to_canonical

    def __iter__(self) -> Iterator[str]:
        return iter(self._to_canonical)

    def __len__(self) -> int:
        return len(self._to_canonical)

    def __repr__(self) -> str:
        return f"ExchangeIdentityMap({dict(self._to_canonical)!r})"
