"""Return Validator (C4) — Checks a returned value against its declared type.

The check is deliberately strict: a present value's runtime type must be
exactly the declared type once Optional has been unwrapped (``bool`` does
not satisfy ``-> int``).  Void members, absent values on nullable returns
and unconstrained declarations (``Any``, ``object``, bare TypeVars) always
pass.
"""

import logging
import types
import typing
from typing import Any, Optional

from smokecrawl.catalog import ReturnDescriptor, SmokeCrawlError
from smokecrawl.invoker import CONTRACT, Fault, InvocationOutcome

logger = logging.getLogger(__name__)

CONTRACT_MESSAGE = "Method result is not valid"


class ContractViolation(SmokeCrawlError):
    """A member returned a value that does not match its declared type.

    Recorded as a fault, never raised by the crawler.
    """

    def __init__(self, expected: Any = None, actual: Optional[type] = None):
        super().__init__(CONTRACT_MESSAGE)
        self.expected = expected
        self.actual = actual


def _accepted_types(tp: Any) -> Optional[tuple[type, ...]]:
    """Runtime types that satisfy *tp*, or None when anything does."""
    if tp is Any or tp is object:
        return None
    if isinstance(tp, typing.TypeVar):
        if tp.__bound__ is not None:
            return _accepted_types(tp.__bound__)
        if tp.__constraints__:
            accepted: list[type] = []
            for c in tp.__constraints__:
                inner = _accepted_types(c)
                if inner is None:
                    return None
                accepted.extend(inner)
            return tuple(accepted)
        return None

    origin = typing.get_origin(tp)
    if origin is typing.Union or origin is types.UnionType:
        accepted = []
        for member in typing.get_args(tp):
            inner = _accepted_types(member)
            if inner is None:
                return None
            accepted.extend(inner)
        return tuple(accepted)
    if origin is typing.Literal:
        return tuple({type(v) for v in typing.get_args(tp)})
    if origin is typing.Annotated:
        return _accepted_types(typing.get_args(tp)[0])
    if origin is not None:
        return _accepted_types(origin)

    if isinstance(tp, type):
        return (tp,)
    # Unresolvable annotation (forward ref string, etc.)
    return None


class ReturnValidator:
    """Checks invocation outcomes against a member's return contract."""

    def validate(
        self,
        outcome: InvocationOutcome,
        returns: Optional[ReturnDescriptor],
    ) -> InvocationOutcome:
        if isinstance(outcome, Fault):
            return outcome
        if returns is None:
            return outcome

        value = outcome.value
        if value is None and returns.nullable:
            return outcome

        accepted = _accepted_types(returns.underlying_type)
        if accepted is None:
            return outcome

        actual = type(value)
        if any(actual is t for t in accepted):
            return outcome

        logger.debug(
            "Return type mismatch: expected %r, got %s",
            returns.declared_type, actual.__name__,
        )
        return Fault(
            ContractViolation(expected=returns.declared_type, actual=actual),
            kind=CONTRACT,
        )
