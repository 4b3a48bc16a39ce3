"""
Named response checks.

A check is a pure predicate over a :class:`~workload.models.Response`.
Its outcome is counted by the runner but never changes the flow of an
iteration.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from workload.models import Response

logger = logging.getLogger(__name__)

Predicate = Callable[[Response], bool]


@dataclass(frozen=True)
class Check:
    """A named boolean assertion evaluated once per iteration."""

    name: str
    predicate: Predicate

    def evaluate(self, response: Response | None) -> bool:
        """
        Return whether *response* satisfies the check.

        A missing response (the request never completed) always fails.
        A predicate that raises is reported as a failed check.
        """
        if response is None:
            return False
        try:
            return bool(self.predicate(response))
        except Exception:
            logger.exception("Check %r raised while evaluating a response", self.name)
            return False


def body_equals(expected: str) -> Predicate:
    """
    Build a predicate that passes only when the body equals *expected*.

    The comparison is exact: case sensitive, no whitespace trimming, and
    code point for code point on multi-byte text.
    """

    def _predicate(response: Response) -> bool:
        return response.body == expected

    _predicate.__name__ = f"body_equals({expected!r})"
    return _predicate
