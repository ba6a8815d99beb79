"""Chain DSL parser.

Turns a compact pipeline expression into an ordered list of
:class:`StageDescriptor` objects::

    parse_chain("planner -> task-manager -> coordinator")

Whether a stage loops is intrinsic to its role (see
:data:`forge_chain.roles.ROLE_LIFECYCLE`); it cannot be set per invocation.
"""

from __future__ import annotations

import logging
import re

from forge_chain.roles import is_loop_role, resolve_role
from forge_chain.schemas import StageDescriptor

logger = logging.getLogger(__name__)

ARROW = "->"

_COLON_COUNT_RE = re.compile(r"^(?P<name>[^:]*):\s*(?P<count>.*)$")


class ChainSpecError(ValueError):
    """Raised when a chain expression is malformed."""


def parse_chain(expression: str) -> list[StageDescriptor]:
    """Parse a chain DSL expression into stage descriptors.

    Raises :class:`ChainSpecError` for an empty expression, an empty
    segment anywhere in the pipeline, or a deprecated ``role:count``
    segment. Never returns a partial list.
    """
    trimmed = (expression or "").strip()
    if not trimmed:
        raise ChainSpecError("Chain expression cannot be empty")

    segments = trimmed.split(ARROW)
    stages: list[StageDescriptor] = []
    for position, segment in enumerate(segments):
        stages.append(_parse_stage(segment, position=position, total=len(segments)))
    return stages


def _parse_stage(segment: str, *, position: int, total: int) -> StageDescriptor:
    name = segment.strip()
    if not name:
        if position == 0:
            raise ChainSpecError(f"Chain expression cannot start with '{ARROW}'")
        if position == total - 1:
            raise ChainSpecError(f"Chain expression cannot end with '{ARROW}'")
        raise ChainSpecError(f"Empty stage name at position {position + 1}")

    match = _COLON_COUNT_RE.match(name)
    if match is not None:
        role = match.group("name").strip().lower() or "<empty>"
        raise ChainSpecError(
            f"Stage '{name}' uses the 'role:count' syntax, which is no longer "
            f"supported. Loop behavior is intrinsic to the role; use '{role}' instead."
        )

    name = name.lower()
    if resolve_role(name) is None:
        logger.warning("Unknown role %r in chain expression; running it as a one-shot stage", name)
    return StageDescriptor(name=name, loop=is_loop_role(name))
