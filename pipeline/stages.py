"""
Pipeline stages.

Each stage is a pure transform from one list of records to another. Stages
never mutate the records they receive; anything they change is written
to a shallow copy.
"""

from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping, Optional, Sequence, Union

from errors import ValidationError
from .expressions import ABSENT, as_expression, as_predicate, get_path

if TYPE_CHECKING:
    from .engine import EvaluationContext, Pipeline

Records = list[dict]


class Direction(str, Enum):
    ASCENDING = "ascending"
    DESCENDING = "descending"

    @classmethod
    def parse(cls, value: Union[str, "Direction"]) -> "Direction":
        if isinstance(value, Direction):
            return value
        aliases = {"asc": cls.ASCENDING, "desc": cls.DESCENDING, "1": cls.ASCENDING, "-1": cls.DESCENDING}
        text = str(value).strip().lower()
        if text in aliases:
            return aliases[text]
        try:
            return cls(text)
        except ValueError:
            raise ValidationError(f"Invalid sort direction: {value}")


class Stage:
    """Base stage."""

    name = "stage"

    def apply(self, records: Records, ctx: "EvaluationContext") -> Records:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"


class Match(Stage):
    """Keep records satisfying field equality/membership criteria."""

    name = "match"

    def __init__(self, criteria: Any):
        self.predicate = as_predicate(criteria)

    def apply(self, records, ctx):
        return [r for r in records if self.predicate(r)]


class Join(Stage):
    """
    Left join against another collection.

    For each record, foreign records whose foreign_field equals the
    record's local_field are attached as a list under `as_`. A list-valued
    local field joins element by element and keeps that element order,
    repeats included. No match gives an empty list; the record is kept.
    """

    name = "join"

    def __init__(
        self,
        collection: str,
        local_field: str,
        foreign_field: str,
        as_: str,
        pipeline: Optional["Pipeline"] = None,
    ):
        self.collection = collection
        self.local_field = local_field
        self.foreign_field = foreign_field
        self.as_ = as_
        self.pipeline = pipeline

    def _index(self, ctx) -> dict:
        index: dict = {}
        for foreign in ctx.load(self.collection):
            value = get_path(foreign, self.foreign_field)
            keys = value if isinstance(value, list) else [value]
            for key in keys:
                if key is ABSENT:
                    continue
                index.setdefault(key, []).append(foreign)
        return index

    def apply(self, records, ctx):
        index = self._index(ctx)
        out = []
        for record in records:
            ctx.check()
            local = get_path(record, self.local_field)
            refs = local if isinstance(local, list) else [local]
            matches = []
            for ref in refs:
                if ref is ABSENT:
                    continue
                try:
                    matches.extend(index.get(ref, ()))
                except TypeError:
                    # Unhashable local value never matches
                    continue
            if self.pipeline is not None:
                matches = self.pipeline.evaluate(matches, ctx)
            joined = dict(record)
            joined[self.as_] = matches
            out.append(joined)
        return out


class Unwind(Stage):
    """
    One output record per element of a list field.

    Empty or absent lists drop the record unless preserve_empty is set, in
    which case one record is emitted with the field set to ABSENT.
    """

    name = "unwind"

    def __init__(self, field: str, preserve_empty: bool = False):
        self.field = field
        self.preserve_empty = preserve_empty

    def apply(self, records, ctx):
        out = []
        for record in records:
            value = record.get(self.field, ABSENT)
            if isinstance(value, list):
                if value:
                    for item in value:
                        expanded = dict(record)
                        expanded[self.field] = item
                        out.append(expanded)
                    continue
            elif value is not ABSENT:
                out.append(record)
                continue
            if self.preserve_empty:
                expanded = dict(record)
                expanded[self.field] = ABSENT
                out.append(expanded)
        return out


class AddFields(Stage):
    """Add fields computed from each record (Size, Membership, First, Sum)."""

    name = "add_fields"

    def __init__(self, fields: Mapping[str, Any]):
        self.fields = {name: as_expression(spec) for name, spec in fields.items()}

    def apply(self, records, ctx):
        out = []
        for record in records:
            enriched = dict(record)
            for name, expr in self.fields.items():
                # Expressions see the original record, not each other's output
                enriched[name] = expr.evaluate(record)
            out.append(enriched)
        return out


def _path_tree(paths: Sequence[str]) -> dict:
    """["a", "b.c", "b.d"] -> {"a": None, "b": {"c": None, "d": None}}. None = whole value."""
    tree: dict = {}
    for path in paths:
        node = tree
        parts = path.split(".")
        for part in parts[:-1]:
            if part in node and node[part] is None:
                break
            node = node.setdefault(part, {})
        else:
            node[parts[-1]] = None
    return tree


def _project_tree(record: dict, tree: dict) -> dict:
    out = {}
    for key, sub in tree.items():
        value = record.get(key, ABSENT)
        if sub is None:
            out[key] = value
        elif isinstance(value, dict):
            out[key] = _project_tree(value, sub)
        elif isinstance(value, list):
            out[key] = [_project_tree(v, sub) if isinstance(v, dict) else v for v in value]
        else:
            out[key] = ABSENT
    return out


class Project(Stage):
    """
    Keep only listed fields.

    Accepts a list of (dotted) paths, or a mapping of output name to either
    True (keep under the same name) or a source path (rename). Listed
    fields missing from a record come out as ABSENT.
    """

    name = "project"

    def __init__(self, fields: Union[Sequence[str], Mapping[str, Any]]):
        includes: list[str] = []
        self.renames: dict[str, str] = {}
        items = fields.items() if isinstance(fields, Mapping) else ((f, True) for f in fields)
        for name, source in items:
            if source is True or source == 1:
                includes.append(name)
            elif isinstance(source, str):
                self.renames[name] = source
            else:
                raise ValueError(f"Invalid projection for {name}: {source!r}")
        self.tree = _path_tree(includes)

    def apply(self, records, ctx):
        out = []
        for record in records:
            shaped = _project_tree(record, self.tree)
            for name, source in self.renames.items():
                shaped[name] = get_path(record, source)
            out.append(shaped)
        return out


class Sort(Stage):
    """Stable sort on one field; ties keep their incoming order."""

    name = "sort"

    def __init__(self, field: str, direction: Union[str, Direction] = Direction.ASCENDING):
        self.field = field
        self.direction = Direction.parse(direction)

    def apply(self, records, ctx):
        def key(record):
            value = get_path(record, self.field)
            # Absent sorts before any value ascending
            return (value is not ABSENT, value if value is not ABSENT else 0)

        return sorted(records, key=key, reverse=self.direction == Direction.DESCENDING)


class Skip(Stage):
    name = "skip"

    def __init__(self, n: int):
        if n < 0:
            raise ValueError("skip must be >= 0")
        self.n = n

    def apply(self, records, ctx):
        return records[self.n:]


class Limit(Stage):
    name = "limit"

    def __init__(self, n: int):
        if n < 0:
            raise ValueError("limit must be >= 0")
        self.n = n

    def apply(self, records, ctx):
        return records[:self.n]


class Count(Stage):
    """Replace the records with a single {field: n} record (n may be 0)."""

    name = "count"

    def __init__(self, field: str = "count"):
        self.field = field

    def apply(self, records, ctx):
        return [{self.field: len(records)}]


class Facet(Stage):
    """
    Run several sub-pipelines over the same input.

    Emits exactly one record mapping each name to its sub-pipeline output,
    even when the input is empty.
    """

    name = "facet"

    def __init__(self, pipelines: Mapping[str, "Pipeline"]):
        self.pipelines = dict(pipelines)

    def apply(self, records, ctx):
        bundle = {}
        for name, pipeline in self.pipelines.items():
            bundle[name] = pipeline.evaluate(list(records), ctx)
        return [bundle]
