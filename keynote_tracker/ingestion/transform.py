"""Declarative reshaping of JSON API responses into item lists.

A transform is either a dotted path selecting the item list::

    transform: data.posts

or a mapping with an optional filter and projection::

    transform:
      path: data.posts
      where:
        - {field: status, equals: published}
        - {field: tags, contains: launch}
      select:
        title: headline
        date: meta.published_at
        link: url

Predicates support ``equals``, ``notEquals``, ``in``, ``exists`` and
``contains``. Nothing in a transform is executed as code.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .normalizer import MISSING, lookup

PREDICATE_OPERATORS = ("equals", "notEquals", "in", "exists", "contains")


class TransformError(ValueError):
    """Invalid transform definition, or a response it cannot be applied to."""


@dataclass
class Predicate:
    field: str
    operator: str
    operand: Any

    @classmethod
    def parse(cls, spec: Any) -> "Predicate":
        if not isinstance(spec, dict) or not isinstance(spec.get("field"), str):
            raise TransformError(f"Predicate must be a mapping with a 'field': {spec!r}")
        operators = [op for op in PREDICATE_OPERATORS if op in spec]
        if len(operators) != 1:
            raise TransformError(
                f"Predicate on '{spec['field']}' needs exactly one of "
                f"{', '.join(PREDICATE_OPERATORS)}"
            )
        operator = operators[0]
        operand = spec[operator]
        if operator == "in" and not isinstance(operand, list):
            raise TransformError(f"'in' predicate on '{spec['field']}' needs a list")
        return cls(field=spec["field"], operator=operator, operand=operand)

    def matches(self, item: Any) -> bool:
        value = lookup(item, self.field)

        if self.operator == "exists":
            return (value is not MISSING and value is not None) == bool(self.operand)
        if value is MISSING:
            return self.operator == "notEquals"
        if self.operator == "equals":
            return value == self.operand
        if self.operator == "notEquals":
            return value != self.operand
        if self.operator == "in":
            return value in self.operand
        # contains
        if isinstance(value, str):
            return isinstance(self.operand, str) and self.operand in value
        if isinstance(value, (list, tuple)):
            return self.operand in value
        return False


@dataclass
class Transform:
    path: str = ""
    where: List[Predicate] = field(default_factory=list)
    select: Optional[Dict[str, str]] = None

    @classmethod
    def parse(cls, spec: Union[str, Dict[str, Any]]) -> "Transform":
        if isinstance(spec, str):
            return cls(path=spec.strip())
        if not isinstance(spec, dict):
            raise TransformError(f"Transform must be a path or a mapping, got {type(spec).__name__}")

        unknown = set(spec) - {"path", "where", "select"}
        if unknown:
            raise TransformError(f"Unknown transform keys: {', '.join(sorted(unknown))}")

        path = spec.get("path") or ""
        if not isinstance(path, str):
            raise TransformError("Transform 'path' must be a string")

        where = spec.get("where") or []
        if isinstance(where, dict):
            where = [where]
        if not isinstance(where, list):
            raise TransformError("Transform 'where' must be a predicate or a list of predicates")

        select = spec.get("select")
        if select is not None:
            if not isinstance(select, dict) or not all(
                isinstance(k, str) and isinstance(v, str) for k, v in select.items()
            ):
                raise TransformError("Transform 'select' must map field names to paths")

        return cls(
            path=path.strip(),
            where=[Predicate.parse(p) for p in where],
            select=select,
        )

    def apply(self, data: Any) -> List[Any]:
        items = lookup(data, self.path)
        if items is MISSING:
            raise TransformError(f"Path '{self.path}' not found in response")
        if not isinstance(items, list):
            raise TransformError(
                f"Path '{self.path or '.'}' did not yield a list (got {type(items).__name__})"
            )

        if self.where:
            items = [item for item in items if all(p.matches(item) for p in self.where)]

        if self.select is not None:
            items = [self._project(item) for item in items if isinstance(item, dict)]

        return items

    def _project(self, item: dict) -> dict:
        projected = {}
        for name, path in self.select.items():
            value = lookup(item, path)
            if value is not MISSING:
                projected[name] = value
        return projected


def apply_transform(spec: Union[str, Dict[str, Any]], data: Any) -> List[Any]:
    """Parse a transform definition and apply it to a response body."""
    return Transform.parse(spec).apply(data)
