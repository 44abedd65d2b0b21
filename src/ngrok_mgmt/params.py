"""Request parameter model with tri-state optional values."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Final, TypeVar, Union

T = TypeVar("T")


class _Absent:
    """Marker for a parameter that must not appear on the wire at all."""

    _instance: _Absent | None = None

    def __new__(cls) -> _Absent:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "ABSENT"


ABSENT: Final = _Absent()

# A value that may be left out (ABSENT), cleared (None) or set.
Maybe = Union[T, None, _Absent]


def is_absent(value: Any) -> bool:
    return value is ABSENT


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @classmethod
    def parse(cls, value: str | HttpMethod) -> HttpMethod:
        if isinstance(value, HttpMethod):
            return value
        try:
            return cls(value.strip().upper())
        except ValueError:
            raise ValueError(f"unsupported HTTP method {value!r}") from None


class ParameterSet:
    """Ordered (name, value) pairs for one request's query string or body.

    Names may repeat; the effective mapping keeps the last value written for a
    name at the position where that name was first declared. ``ABSENT`` values
    are kept in the sequence but never reach the wire, while ``None`` is an
    explicit null.
    """

    __slots__ = ("_pairs",)

    def __init__(self, pairs: Iterable[tuple[str, Any]] = ()) -> None:
        checked: list[tuple[str, Any]] = []
        for name, value in pairs:
            if not isinstance(name, str) or not name:
                raise ValueError(f"parameter names must be non-empty strings, got {name!r}")
            checked.append((name, value))
        self._pairs: tuple[tuple[str, Any], ...] = tuple(checked)

    @classmethod
    def of(cls, *pairs: tuple[str, Any]) -> ParameterSet:
        return cls(pairs)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any] | None) -> ParameterSet:
        if not values:
            return EMPTY
        return cls(values.items())

    @property
    def pairs(self) -> tuple[tuple[str, Any], ...]:
        return self._pairs

    def effective(self) -> dict[str, Any]:
        """Resolve to one value per name, absent names included."""
        resolved: dict[str, Any] = {}
        for name, value in self._pairs:
            resolved[name] = value
        return resolved

    def present(self) -> dict[str, Any]:
        """Effective values that go on the wire (explicit nulls included)."""
        return {name: value for name, value in self.effective().items() if value is not ABSENT}

    def get(self, name: str, default: Any = ABSENT) -> Any:
        return self.effective().get(name, default)

    def replace(self, name: str, value: Any) -> ParameterSet:
        """Return a copy with ``name`` set to ``value`` in its original position."""
        rewritten: list[tuple[str, Any]] = []
        placed = False
        for key, current in self._pairs:
            if key != name:
                rewritten.append((key, current))
            elif not placed:
                rewritten.append((name, value))
                placed = True
        if not placed:
            rewritten.append((name, value))
        return ParameterSet(rewritten)

    def is_empty(self) -> bool:
        return not self.present()

    def __iter__(self) -> Iterator[tuple[str, Any]]:
        return iter(self._pairs)

    def __len__(self) -> int:
        return len(self._pairs)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParameterSet):
            return NotImplemented
        return self.effective() == other.effective()

    def __hash__(self) -> int:
        return hash(tuple(self.effective().items()))

    def __repr__(self) -> str:
        return f"ParameterSet({list(self._pairs)!r})"


EMPTY: Final = ParameterSet()


@dataclass(frozen=True, slots=True)
class ApiRequest:
    operation: str
    method: HttpMethod
    path: str
    query: ParameterSet = field(default=EMPTY)
    body: ParameterSet = field(default=EMPTY)
    response_type: Any | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", HttpMethod.parse(self.method))
        if self.path and not self.path.startswith("/"):
            object.__setattr__(self, "path", f"/{self.path}")

    def with_query(self, name: str, value: Any) -> ApiRequest:
        return replace(self, query=self.query.replace(name, value))
