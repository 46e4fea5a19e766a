"""Invoker (C3) — Calls one member with one argument tuple and captures faults.

The outcome is a typed result rather than a raised exception: ``Success``
with the returned value, or ``Fault`` with the original cause.  Coroutine
methods are driven to completion on a fresh event loop; exceptions wrapped
by an indirection layer (single-exception groups by default) are unwrapped
before being recorded.

No retries. Every invocation is attempted exactly once.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from smokecrawl.catalog import GETTER, SETTER, MemberDescriptor
from smokecrawl.synthesizer import ArgumentTuple

logger = logging.getLogger(__name__)

# Fault kinds
CONSTRUCTION = "construction"
INVOCATION = "invocation"
CONTRACT = "contract"

DEFAULT_WRAPPER_TYPES: tuple[type[BaseException], ...] = (BaseExceptionGroup,)


# ── Outcomes ──


@dataclass(frozen=True)
class Success:
    """The call returned (``value`` is None for void members)."""

    value: Any = None


@dataclass(frozen=True)
class Fault:
    """The call (or its contract check) failed.

    Attributes:
        error: The original cause, already unwrapped.
        kind: "construction", "invocation", or "contract".
    """

    error: BaseException
    kind: str = INVOCATION


InvocationOutcome = Union[Success, Fault]


def unwrap_fault(
    exc: BaseException,
    wrapper_types: tuple[type[BaseException], ...] = DEFAULT_WRAPPER_TYPES,
) -> BaseException:
    """Descend through indirection wrappers to the original cause.

    Exception groups are unwrapped only when they hold exactly one
    exception; other wrapper types are unwrapped via ``__cause__``.
    """
    seen: set[int] = set()
    while isinstance(exc, wrapper_types) and id(exc) not in seen:
        seen.add(id(exc))
        if isinstance(exc, BaseExceptionGroup):
            if len(exc.exceptions) != 1:
                break
            exc = exc.exceptions[0]
        elif exc.__cause__ is not None:
            exc = exc.__cause__
        else:
            break
    return exc


# ── Invoker ──


class Invoker:
    """Performs a single call of a member on an instance.

    Usage::

        outcome = Invoker().invoke(instance, member, arguments)
        if isinstance(outcome, Fault):
            ...
    """

    def __init__(
        self,
        wrapper_types: Optional[tuple[type[BaseException], ...]] = None,
    ):
        self.wrapper_types = (
            DEFAULT_WRAPPER_TYPES if wrapper_types is None else wrapper_types
        )

    def invoke(
        self,
        instance: Any,
        member: MemberDescriptor,
        arguments: ArgumentTuple,
    ) -> InvocationOutcome:
        if arguments.pending_fault is not None:
            return Fault(
                unwrap_fault(arguments.pending_fault, self.wrapper_types),
            )

        try:
            if member.accessor == GETTER:
                result = getattr(instance, member.name)
            elif member.accessor == SETTER:
                setattr(instance, member.name, *arguments.positional())
                result = None
            else:
                bound = getattr(instance, member.name)
                result = bound(*arguments.positional(), **arguments.keywords())
            if inspect.isawaitable(result):
                result = _run_awaitable(result)
        except (Exception, SystemExit) as exc:
            # KeyboardInterrupt is not captured
            cause = unwrap_fault(exc, self.wrapper_types)
            logger.debug(
                "%s%s raised %s",
                member.qualified_name, arguments.describe(),
                type(cause).__name__,
            )
            return Fault(cause)
        return Success(result)


def _run_awaitable(awaitable) -> Any:
    """Drive a coroutine to completion on a private event loop."""

    async def _await():
        return await awaitable

    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(_await())
    finally:
        loop.close()
