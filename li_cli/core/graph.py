"""
Entity graph for LinkedIn's normalized responses.

A normalized response carries a flat ``included`` array of entities, each with
a ``$type`` tag and an ``entityUrn``. Entities point at each other by URN,
under either a ``*name`` key (resolved marker) or a plain ``name`` key;
which one appears varies by endpoint, so both are tried, prefixed first.

The index is always built completely before any reference is followed, so
forward references resolve regardless of array order.
"""

from collections.abc import Callable, Iterable, Iterator
from typing import Any, TypeVar

T = TypeVar("T")


def urn_id(urn: str) -> str:
    """
    Extract the trailing segment of a URN.

    "urn:li:member:123" -> "123". Empty, colon-less or trailing-colon input
    yields "".

    """
    urn = (urn or "").strip()
    i = urn.rfind(":")
    if i < 0 or i + 1 >= len(urn):
        return ""
    return urn[i + 1 :]


def first_of(*strategies: Callable[[], T | None]) -> T | None:
    """Evaluate strategies in order and return the first truthy result."""
    for strategy in strategies:
        result = strategy()
        if result:
            return result
    return None


def reference_keys(name: str) -> tuple[str, str]:
    """The two key conventions for one relation, preferred first."""
    return f"*{name}", name


class EntityView:
    """
    Read-only typed accessors over one JSON object.

    Every getter is fallible: a missing key or a value of the wrong type
    yields an empty value ("", 0, None, []) instead of raising.
    """

    __slots__ = ("raw",)

    def __init__(self, raw: dict[str, Any]):
        self.raw = raw

    def __repr__(self) -> str:
        return f"EntityView(type={self.type!r}, urn={self.urn!r})"

    def __contains__(self, key: str) -> bool:
        return key in self.raw

    @property
    def type(self) -> str:
        return self.string("$type")

    @property
    def urn(self) -> str:
        return self.string("entityUrn")

    def get(self, *path: str) -> Any:
        """Walk a key path; None if any step is missing or not an object."""
        if not path:
            return None
        cur: Any = self.raw
        for key in path:
            if not isinstance(cur, dict) or key not in cur:
                return None
            cur = cur[key]
        return cur

    def string(self, *path: str) -> str:
        value = self.get(*path)
        return value if isinstance(value, str) else ""

    def integer(self, *path: str) -> int:
        value = self.get(*path)
        if isinstance(value, bool):
            return 0
        if isinstance(value, (int, float)):
            return int(value)
        return 0

    def obj(self, *path: str) -> "EntityView | None":
        value = self.get(*path)
        return EntityView(value) if isinstance(value, dict) else None

    def strings(self, *path: str) -> list[str]:
        """A list value, keeping only its string items."""
        value = self.get(*path)
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, str)]

    def text(self, key: str) -> str:
        """A value that is either a plain string or an object carrying it under "text"."""
        value = self.raw.get(key)
        if isinstance(value, str):
            return value
        if isinstance(value, dict):
            nested = value.get("text")
            return nested if isinstance(nested, str) else ""
        return ""

    def ref(self, name: str) -> str:
        """A single reference URN, "*name" preferred over "name"."""
        for key in reference_keys(name):
            value = self.raw.get(key)
            if isinstance(value, str) and value:
                return value
        return ""


class EntityIndex:
    """
    Lookup tables over a response's ``included`` array.

    Built in one pass: by URN (last occurrence wins) and grouped by exact
    ``$type``. Elements that are not JSON objects are skipped.
    """

    def __init__(self, included: Iterable[Any] | None = None):
        self._entities: list[EntityView] = []
        self._by_urn: dict[str, EntityView] = {}
        self._by_type: dict[str, list[EntityView]] = {}

        for item in included or ():
            if not isinstance(item, dict):
                continue
            entity = EntityView(item)
            self._entities.append(entity)
            if entity.urn:
                self._by_urn[entity.urn] = entity
            self._by_type.setdefault(entity.type, []).append(entity)

    @classmethod
    def from_document(cls, doc: Any) -> "EntityIndex":
        """Index the ``included`` array of a decoded response (empty if absent)."""
        included = doc.get("included") if isinstance(doc, dict) else None
        return cls(included if isinstance(included, list) else None)

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[EntityView]:
        return iter(self._entities)

    def get(self, urn: str) -> EntityView | None:
        return self._by_urn.get(urn) if urn else None

    def of_type(self, type_name: str) -> list[EntityView]:
        """Entities whose ``$type`` equals type_name, in array order."""
        return list(self._by_type.get(type_name, ()))

    def matching(self, *type_fragments: str, urn_fragments: Iterable[str] = ()) -> list[EntityView]:
        """Entities whose ``$type`` contains any type fragment or whose URN contains any URN fragment."""
        urn_fragments = tuple(urn_fragments)
        return [
            entity
            for entity in self._entities
            if any(fragment in entity.type for fragment in type_fragments)
            or any(fragment in entity.urn for fragment in urn_fragments)
        ]

    def first(self, predicate: Callable[[EntityView], bool]) -> EntityView | None:
        for entity in self._entities:
            if predicate(entity):
                return entity
        return None
