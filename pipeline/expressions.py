"""
Field paths, match conditions and computed-field expressions.

Paths are dotted ("owner.username"). Walking a path through a list maps
over its elements, so "subscribers.subscriber" on a list of subscription
records yields the list of subscriber ids.
"""

from typing import Any, Iterable, Mapping

ABSENT = None  # Explicit absent marker; serialises as JSON null.


def get_path(record: Any, path: str) -> Any:
    current = record
    for part in path.split("."):
        if isinstance(current, list):
            current = [item.get(part) for item in current if isinstance(item, dict)]
        elif isinstance(current, dict):
            current = current.get(part, ABSENT)
        else:
            return ABSENT
    return current


# === Match conditions ===

class Condition:
    """A test applied to one field value."""

    def test(self, value: Any) -> bool:
        raise NotImplementedError


class Eq(Condition):
    def __init__(self, expected: Any):
        self.expected = expected

    def test(self, value: Any) -> bool:
        return value == self.expected


class In(Condition):
    """Membership: value is one of the given values."""

    def __init__(self, values: Iterable[Any]):
        self.values = list(values)

    def test(self, value: Any) -> bool:
        return value in self.values


class Exists(Condition):
    def __init__(self, present: bool = True):
        self.present = present

    def test(self, value: Any) -> bool:
        return (value is not ABSENT) == self.present


class Search(Condition):
    """Case-insensitive substring match on text fields."""

    def __init__(self, text: str):
        self.text = text.strip().lower()

    def test(self, value: Any) -> bool:
        return isinstance(value, str) and self.text in value.lower()


def _as_condition(spec: Any) -> Condition:
    if isinstance(spec, Condition):
        return spec
    return Eq(spec)


class Criteria:
    """All field conditions must hold."""

    def __init__(self, fields: Mapping[str, Any]):
        self.fields = {path: _as_condition(spec) for path, spec in fields.items()}

    def __call__(self, record: dict) -> bool:
        return all(cond.test(get_path(record, path)) for path, cond in self.fields.items())


class AnyOf:
    """At least one of several criteria must hold."""

    def __init__(self, *alternatives: Mapping[str, Any]):
        self.alternatives = [Criteria(a) for a in alternatives]

    def __call__(self, record: dict) -> bool:
        return any(c(record) for c in self.alternatives)


def as_predicate(criteria: Any):
    """Accept a field mapping, AnyOf/Criteria, or any callable."""
    if isinstance(criteria, Mapping):
        return Criteria(criteria)
    if callable(criteria):
        return criteria
    raise TypeError(f"Unsupported match criteria: {criteria!r}")


# === Computed fields ===

class Expression:
    """Derives a value from a record."""

    def evaluate(self, record: dict) -> Any:
        raise NotImplementedError


class Size(Expression):
    """Length of a sequence field. Absent counts as empty."""

    def __init__(self, path: str):
        self.path = path

    def evaluate(self, record: dict) -> int:
        value = get_path(record, self.path)
        if isinstance(value, (list, tuple)):
            return len(value)
        return 0


class Membership(Expression):
    """Is value present in the named sequence (or equal to a scalar field)."""

    def __init__(self, value: Any, path: str):
        self.value = value
        self.path = path

    def evaluate(self, record: dict) -> bool:
        if self.value is ABSENT:
            return False
        found = get_path(record, self.path)
        if isinstance(found, (list, tuple)):
            return self.value in found
        return found == self.value


class First(Expression):
    """First element of a sequence, or the absent marker."""

    def __init__(self, path: str):
        self.path = path

    def evaluate(self, record: dict) -> Any:
        value = get_path(record, self.path)
        if isinstance(value, (list, tuple)):
            return value[0] if value else ABSENT
        return value


class Sum(Expression):
    """Sum of numeric values along a path; non-numbers are skipped."""

    def __init__(self, path: str):
        self.path = path

    def evaluate(self, record: dict) -> float:
        value = get_path(record, self.path)
        if not isinstance(value, (list, tuple)):
            value = [value]
        return sum(v for v in value if isinstance(v, (int, float)) and not isinstance(v, bool))


class Literal(Expression):
    def __init__(self, value: Any):
        self.value = value

    def evaluate(self, record: dict) -> Any:
        return self.value


def as_expression(spec: Any) -> Expression:
    if isinstance(spec, Expression):
        return spec
    return Literal(spec)
