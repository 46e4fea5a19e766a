"""Argument Synthesizer (C2) — Structural default arguments for crawled methods.

Produces the base argument tuple for a member plus one "nullable variant"
per Optional parameter.  Values are structural defaults only (zeros, empty
containers, no-arg instances), never domain-valid inputs.

Default selection is an explicit per-category policy:

  - value-like builtins     → zero / empty value
  - nullable (Optional[X])  → None
  - no-arg constructible    → ``cls()``
  - enums / Literal         → first member / first literal
  - Any, object, TypeVar    → ``object()`` (or the bound's default)
  - anything else           → no default; the parameter is omitted

Synthesis never raises.  Construction faults are parked on the tuple and
surface as invocation faults when the tuple is used.
"""

import collections.abc
import enum
import inspect
import logging
import types
import typing
from dataclasses import dataclass, field, replace
from typing import Any, Optional

from smokecrawl.catalog import (
    MemberDescriptor,
    ParameterDescriptor,
    SmokeCrawlError,
)

logger = logging.getLogger(__name__)

# Zero / empty values for value-like builtins
_VALUE_DEFAULTS: dict[type, Any] = {
    int: 0,
    float: 0.0,
    complex: 0j,
    bool: False,
    str: "",
    bytes: b"",
    type(None): None,
}

# Types that cannot be synthesised even though they look constructible
_NO_DEFAULT_ORIGINS = frozenset({
    collections.abc.Callable,
    type,
})

_RECURSION_LIMIT = 8


# ── Exceptions ──


class SynthesisError(SmokeCrawlError):
    """No default value could be synthesised for a required slot."""


# ── Sentinel ──


class _NoDefault:
    """Marker for 'this type has no structural default'."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_DEFAULT"

    def __bool__(self) -> bool:
        return False


NO_DEFAULT = _NoDefault()


# ── Data Classes ──


@dataclass
class ArgumentTuple:
    """One candidate set of arguments for a single invocation attempt.

    Attributes:
        parameters: Descriptors for the included parameters, in order.
        values: Synthesised values, one per included parameter.
        forced_index: Index (into the member's parameters) of the nullable
            parameter forced to its underlying default, or None for the base
            tuple.
        omitted: Names of parameters with no synthesizable default.
        pending_fault: Error raised while synthesising, reported when the
            tuple is invoked.
    """

    parameters: list[ParameterDescriptor] = field(default_factory=list)
    values: list = field(default_factory=list)
    forced_index: Optional[int] = None
    omitted: list[str] = field(default_factory=list)
    pending_fault: Optional[BaseException] = None

    def __len__(self) -> int:
        return len(self.values)

    @property
    def is_variant(self) -> bool:
        return self.forced_index is not None

    def positional(self) -> list:
        return [
            v for p, v in zip(self.parameters, self.values)
            if not p.keyword_only
        ]

    def keywords(self) -> dict:
        return {
            p.name: v for p, v in zip(self.parameters, self.values)
            if p.keyword_only
        }

    def describe(self) -> str:
        """Short human-readable rendering, e.g. ``(0, None, x='')``."""
        parts = [_safe_repr(v) for v in self.positional()]
        parts.extend(f"{k}={_safe_repr(v)}" for k, v in self.keywords().items())
        return "(" + ", ".join(parts) + ")"


def _safe_repr(value: Any) -> str:
    try:
        return repr(value)
    except Exception:
        return f"<{type(value).__name__}>"


# ── Default Value Policy ──


class DefaultValuePolicy:
    """Maps a declared type to its structural default.

    Each category has its own method so callers can override one category
    without touching the others.  ``default_for`` returns ``NO_DEFAULT``
    when the type has no representation; it raises only when constructing
    a no-arg instance raises.
    """

    def __init__(self, value_defaults: Optional[dict[type, Any]] = None):
        self.value_defaults = dict(_VALUE_DEFAULTS)
        if value_defaults:
            self.value_defaults.update(value_defaults)

    def default_for(self, tp: Any, _depth: int = 0) -> Any:
        if _depth > _RECURSION_LIMIT:
            return NO_DEFAULT

        if tp is Any or tp is object:
            return object()
        if isinstance(tp, typing.TypeVar):
            return self.typevar_default(tp, _depth)

        origin = typing.get_origin(tp)
        if origin is typing.Union or origin is types.UnionType:
            return self.union_default(tp, _depth)
        if origin is typing.Literal:
            args = typing.get_args(tp)
            return args[0] if args else NO_DEFAULT
        if origin is typing.Annotated:
            return self.default_for(typing.get_args(tp)[0], _depth + 1)
        if origin is not None:
            # Generic alias: list[int] → list(), Callable[...] → none
            return self.default_for(origin, _depth + 1)

        if not isinstance(tp, type):
            return NO_DEFAULT
        if tp in self.value_defaults:
            return self.value_defaults[tp]
        if issubclass(tp, enum.Enum):
            return self.enum_default(tp)
        return self.reference_default(tp)

    def nullable_default(self, param: ParameterDescriptor) -> Any:
        """Absent representation of a nullable parameter."""
        return None

    def union_default(self, tp: Any, depth: int) -> Any:
        for member in typing.get_args(tp):
            value = self.default_for(member, depth + 1)
            if value is not NO_DEFAULT:
                return value
        return NO_DEFAULT

    def typevar_default(self, tp: typing.TypeVar, depth: int) -> Any:
        if tp.__bound__ is not None:
            return self.default_for(tp.__bound__, depth + 1)
        if tp.__constraints__:
            return self.default_for(tp.__constraints__[0], depth + 1)
        return object()

    def enum_default(self, tp: type) -> Any:
        members = list(tp)
        return members[0] if members else NO_DEFAULT

    def reference_default(self, tp: type) -> Any:
        if not has_no_arg_constructor(tp):
            return NO_DEFAULT
        return tp()


def has_no_arg_constructor(tp: type) -> bool:
    """True if ``tp()`` is a plausible call.

    Abstract classes, protocols and callables are never constructible.
    When the signature cannot be inspected (many builtins), construction is
    assumed possible and left to fail at call time.
    """
    if tp in _NO_DEFAULT_ORIGINS:
        return False
    if inspect.isabstract(tp) or getattr(tp, "_is_protocol", False):
        return False
    try:
        sig = inspect.signature(tp)
    except (TypeError, ValueError):
        return True
    for p in sig.parameters.values():
        if p.kind in (
            inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD,
        ):
            continue
        if p.default is inspect.Parameter.empty:
            return False
    return True


# ── Argument Synthesizer ──


class ArgumentSynthesizer:
    """Builds base and nullable-variant argument tuples for a member.

    Usage::

        synth = ArgumentSynthesizer()
        base = synth.synthesize_base(member)
        variants = synth.synthesize_nullable_variants(member, base)
    """

    def __init__(self, policy: Optional[DefaultValuePolicy] = None):
        self.policy = policy or DefaultValuePolicy()

    def synthesize_base(self, member: MemberDescriptor) -> ArgumentTuple:
        """Structural default per parameter; absent (None) for nullables.

        Parameters with no default are omitted from the tuple rather than
        failing synthesis.  A fault raised while constructing a default is
        stored as ``pending_fault``.
        """
        result = ArgumentTuple()
        for param in member.parameters:
            if param.nullable:
                value = self.policy.nullable_default(param)
            else:
                try:
                    value = self.policy.default_for(param.declared_type)
                except (Exception, SystemExit) as exc:
                    logger.debug(
                        "Default construction failed for %s(%s): %s",
                        member.qualified_name, param.name, exc,
                    )
                    if result.pending_fault is None:
                        result.pending_fault = exc
                    value = None
                if value is NO_DEFAULT:
                    logger.debug(
                        "No default for %s(%s: %r); omitting",
                        member.qualified_name, param.name, param.declared_type,
                    )
                    result.omitted.append(param.name)
                    continue
            result.parameters.append(param)
            result.values.append(value)
        return result

    def synthesize_nullable_variants(
        self,
        member: MemberDescriptor,
        base: ArgumentTuple,
    ) -> list[ArgumentTuple]:
        """One variant per nullable parameter, in declaration order.

        Each variant copies *base* with that parameter forced to its
        underlying (non-absent) default.
        """
        return [
            self.synthesize_nullable_variant(member, base, index)
            for index in member.nullable_indices
        ]

    def synthesize_nullable_variant(
        self,
        member: MemberDescriptor,
        base: ArgumentTuple,
        index: int,
    ) -> ArgumentTuple:
        """Copy of *base* with parameter *index* forced to its underlying default.

        Only that one default is constructed.
        """
        param = member.parameters[index]
        if not param.nullable:
            raise ValueError(
                f"{member.qualified_name}: parameter {param.name} is not nullable"
            )
        variant = replace(
            base,
            parameters=list(base.parameters),
            values=list(base.values),
            omitted=list(base.omitted),
            forced_index=index,
        )
        try:
            value = self.policy.default_for(param.underlying_type)
            if value is NO_DEFAULT:
                raise SynthesisError(
                    f"No default value for {param.name}: "
                    f"{param.underlying_type!r}"
                )
        except (Exception, SystemExit) as exc:
            if variant.pending_fault is None:
                variant.pending_fault = exc
            value = None
        # Nullable parameters are never omitted, so the slot exists
        slot = variant.parameters.index(param)
        variant.values[slot] = value
        return variant
