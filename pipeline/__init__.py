"""
Pipeline engine - declarative, read-only query composition.

Every derived view (profiles, feeds, history, dashboards) is built from
these stages instead of ad hoc per-call-site joins.
"""

from .expressions import (
    ABSENT,
    get_path,
    Eq,
    In,
    Exists,
    Search,
    AnyOf,
    Size,
    Membership,
    First,
    Sum,
)
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
from .engine import Pipeline, Deadline, EvaluationContext, default_deadline
from .pagination import Pagination, paginated, unpack_page

__all__ = [
    # Expressions
    "ABSENT",
    "get_path",
    "Eq",
    "In",
    "Exists",
    "Search",
    "AnyOf",
    "Size",
    "Membership",
    "First",
    "Sum",
    # Stages
    "Stage",
    "Match",
    "Join",
    "Unwind",
    "AddFields",
    "Project",
    "Sort",
    "Skip",
    "Limit",
    "Count",
    "Facet",
    "Direction",
    # Engine
    "Pipeline",
    "Deadline",
    "EvaluationContext",
    "default_deadline",
    # Pagination
    "Pagination",
    "paginated",
    "unpack_page",
]
