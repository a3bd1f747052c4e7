from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Sequence


class _Absent:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


# Marks a slot the caller did not supply. Distinct from None, which is a value.
ABSENT = _Absent()


def args_with_fn(args: Sequence[Any], names: Sequence[str]) -> dict[str, Any]:
    """
    Map a call shaped ``(opt1, ..., optN, fn)`` onto ``names``.

    The trailing argument is always the completion callback and fills the
    last name. The arguments before it fill the leading names in order; any
    leading name left over is set to ``ABSENT``.

    ``args_with_fn((5, cb), ["limit", "marker", "fn"])`` gives
    ``{"limit": 5, "marker": ABSENT, "fn": cb}``.
    """
    if not names:
        raise TypeError("names must not be empty")
    if not args:
        raise TypeError(f"expected a completion callback as the last of {list(names)}")
    if len(args) > len(names):
        raise TypeError(f"expected at most {len(names)} arguments, got {len(args)}")

    *leading, fn = args
    if not callable(fn):
        raise TypeError(f"last argument must be callable, got {type(fn).__name__}")

    out: dict[str, Any] = {name: ABSENT for name in names[:-1]}
    for name, value in zip(names, leading):
        out[name] = value
    out[names[-1]] = fn
    return out


@dataclass(frozen=True)
class ServerQuery:
    """Pagination controls for a server listing. ``None`` means not supplied."""

    limit: int | None = None
    marker: str | None = None

    def __post_init__(self) -> None:
        if self.limit is not None:
            if isinstance(self.limit, bool) or not isinstance(self.limit, int):
                raise TypeError(f"limit must be an int, got {type(self.limit).__name__}")
            if self.limit < 0:
                raise ValueError(f"limit must be >= 0, got {self.limit}")

    def params(self) -> Iterator[tuple[str, str]]:
        if self.limit is not None:
            yield "limit", str(self.limit)
        if self.marker is not None:
            yield "marker", str(self.marker)

    @classmethod
    def from_resolved(cls, resolved: Mapping[str, Any]) -> "ServerQuery":
        def pick(key: str):
            value = resolved.get(key, ABSENT)
            return None if value is ABSENT else value

        return cls(limit=pick("limit"), marker=pick("marker"))
