"""
Pipeline engine - runs an ordered list of stages over a base collection.

A pipeline reads; it never writes. Collections are loaded once per run
(the snapshot every stage of that run sees) through any source exposing
snapshot(collection) -> list[dict], normally a Repository.

Usage:
    rows = (
        Pipeline("comments")
        .match({"video_id": video_id})
        .join("users", "owner", "id", "owner", Pipeline().project(["username", "avatar"]))
        .unwind("owner", preserve_empty=True)
        .run(repo)
    )
"""

import logging
import threading
import time
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from config import PIPELINE_TIMEOUT_SECONDS
from errors import PipelineCancelled
from .stages import (
    Stage,
    Match,
    Join,
    Unwind,
    AddFields,
    Project,
    Sort,
    Skip,
    Limit,
    Count,
    Facet,
    Direction,
)

logger = logging.getLogger(__name__)


class Deadline:
    """An absolute point on the monotonic clock."""

    def __init__(self, expires_at: float):
        self.expires_at = expires_at

    @classmethod
    def after(cls, seconds: float) -> "Deadline":
        return cls(time.monotonic() + seconds)

    @property
    def remaining(self) -> float:
        return max(0.0, self.expires_at - time.monotonic())

    def expired(self) -> bool:
        return time.monotonic() >= self.expires_at


def default_deadline() -> Optional[Deadline]:
    """Deadline from config, or None when disabled."""
    if PIPELINE_TIMEOUT_SECONDS and PIPELINE_TIMEOUT_SECONDS > 0:
        return Deadline.after(PIPELINE_TIMEOUT_SECONDS)
    return None


class EvaluationContext:
    """Per-run state: collection cache plus deadline/cancel checks."""

    def __init__(self, source, deadline: Deadline = None, cancel: threading.Event = None):
        self._source = source
        self._cache: dict[str, list[dict]] = {}
        self.deadline = deadline
        self.cancel = cancel

    def load(self, collection: str) -> list[dict]:
        if collection not in self._cache:
            self.check()
            self._cache[collection] = self._source.snapshot(collection)
        return self._cache[collection]

    def check(self) -> None:
        """Abort the run if cancelled or past the deadline."""
        if self.cancel is not None and self.cancel.is_set():
            raise PipelineCancelled("Pipeline cancelled")
        if self.deadline is not None and self.deadline.expired():
            raise PipelineCancelled("Pipeline deadline exceeded")


class Pipeline:
    """
    An ordered list of read-only stages.

    A pipeline with a collection can be run against a source; one without
    is a sub-pipeline, evaluated over records handed to it by join or
    facet. Builder methods append a stage and return the pipeline.
    """

    def __init__(self, collection: str = None, stages: Iterable[Stage] = ()):
        self.collection = collection
        self.stages: list[Stage] = list(stages)

    def __repr__(self) -> str:
        names = " -> ".join(s.name for s in self.stages)
        return f"<Pipeline {self.collection or '(sub)'}: {names}>"

    # Builders

    def add(self, stage: Stage) -> "Pipeline":
        self.stages.append(stage)
        return self

    def extend(self, stages: Iterable[Stage]) -> "Pipeline":
        self.stages.extend(stages)
        return self

    def match(self, criteria: Any) -> "Pipeline":
        return self.add(Match(criteria))

    def join(
        self,
        collection: str,
        local_field: str,
        foreign_field: str,
        as_: str,
        pipeline: "Pipeline" = None,
    ) -> "Pipeline":
        return self.add(Join(collection, local_field, foreign_field, as_, pipeline))

    def unwind(self, field: str, preserve_empty: bool = False) -> "Pipeline":
        return self.add(Unwind(field, preserve_empty))

    def add_fields(self, fields: Mapping[str, Any]) -> "Pipeline":
        return self.add(AddFields(fields))

    def project(self, fields: Union[Sequence[str], Mapping[str, Any]]) -> "Pipeline":
        return self.add(Project(fields))

    def sort(self, field: str, direction: Union[str, Direction] = Direction.ASCENDING) -> "Pipeline":
        return self.add(Sort(field, direction))

    def skip(self, n: int) -> "Pipeline":
        return self.add(Skip(n))

    def limit(self, n: int) -> "Pipeline":
        return self.add(Limit(n))

    def count(self, field: str = "count") -> "Pipeline":
        return self.add(Count(field))

    def facet(self, pipelines: Mapping[str, "Pipeline"]) -> "Pipeline":
        return self.add(Facet(pipelines))

    # Evaluation

    def evaluate(self, records: list[dict], ctx: EvaluationContext) -> list[dict]:
        """Apply every stage in declared order."""
        for stage in self.stages:
            ctx.check()
            records = stage.apply(records, ctx)
        return records

    def run(
        self,
        source,
        deadline: Deadline = None,
        cancel: threading.Event = None,
    ) -> list[dict]:
        """
        Evaluate against the base collection of `source`.

        An empty result is a normal outcome. Raises PipelineCancelled when
        the deadline passes or `cancel` is set; nothing is written either way.
        """
        if self.collection is None:
            raise ValueError("Sub-pipelines have no base collection; use evaluate()")

        ctx = EvaluationContext(source, deadline=deadline, cancel=cancel)
        started = time.monotonic()
        try:
            records = self.evaluate(list(ctx.load(self.collection)), ctx)
        except PipelineCancelled:
            logger.warning("%r aborted after %.3fs", self, time.monotonic() - started)
            raise
        logger.debug("%r -> %d records in %.3fs", self, len(records), time.monotonic() - started)
        return records
