"""Tests for the Argument Synthesizer (C2).

Tests cover:
  - DefaultValuePolicy per category (value-like, reference, enum, literal,
    TypeVar, union, uninstantiable)
  - Base tuples: one slot per parameter, nullables absent, omission quirk
  - Nullable variants: one per nullable parameter, in order, each differing
    from the base in exactly one slot
  - Synthesis never raises; construction faults are deferred
"""

import abc
import enum
from dataclasses import dataclass, field
from typing import Any, Callable, Literal, Optional, Protocol, TypeVar

import pytest

from smokecrawl.catalog import MemberDescriptor, ParameterDescriptor
from smokecrawl.synthesizer import (
    NO_DEFAULT,
    ArgumentSynthesizer,
    ArgumentTuple,
    DefaultValuePolicy,
    SynthesisError,
    has_no_arg_constructor,
)


# ── Fixtures ──


class Color(enum.Enum):
    RED = 1
    GREEN = 2


class Empty(enum.Enum):
    pass


@dataclass
class Point:
    x: int = 0
    y: int = 0


@dataclass
class Required:
    x: int


class Shape(abc.ABC):
    @abc.abstractmethod
    def area(self) -> float:
        ...


class Greeter(Protocol):
    def greet(self) -> str:
        ...


class Exploding:
    def __init__(self):
        raise RuntimeError("cannot build")


Bounded = TypeVar("Bounded", bound=int)
Constrained = TypeVar("Constrained", str, bytes)
Free = TypeVar("Free")


def _make_member(*params: ParameterDescriptor, name: str = "m") -> MemberDescriptor:
    return MemberDescriptor(name=name, parameters=tuple(params), owner="Sample")


def _p(name: str, annotation: Any, keyword_only: bool = False) -> ParameterDescriptor:
    return ParameterDescriptor.of(name, annotation, keyword_only=keyword_only)


@pytest.fixture
def policy() -> DefaultValuePolicy:
    return DefaultValuePolicy()


@pytest.fixture
def synth() -> ArgumentSynthesizer:
    return ArgumentSynthesizer()


# ── Tests: DefaultValuePolicy ──


class TestDefaultValuePolicy:
    """Structural defaults per declared-type category."""

    @pytest.mark.parametrize("tp, expected", [
        (int, 0),
        (float, 0.0),
        (complex, 0j),
        (bool, False),
        (str, ""),
        (bytes, b""),
        (type(None), None),
    ])
    def test_value_like(self, policy, tp, expected):
        value = policy.default_for(tp)
        assert value == expected
        assert type(value) is type(expected)

    def test_containers_constructed(self, policy):
        assert policy.default_for(list) == []
        assert policy.default_for(dict[str, int]) == {}
        assert policy.default_for(set[int]) == set()

    def test_no_arg_class(self, policy):
        assert policy.default_for(Point) == Point()

    def test_enum_first_member(self, policy):
        assert policy.default_for(Color) is Color.RED

    def test_empty_enum_has_no_default(self, policy):
        assert policy.default_for(Empty) is NO_DEFAULT

    def test_literal_first_value(self, policy):
        assert policy.default_for(Literal["a", "b"]) == "a"

    def test_any_and_object(self, policy):
        assert type(policy.default_for(Any)) is object
        assert type(policy.default_for(object)) is object

    def test_typevars(self, policy):
        assert policy.default_for(Bounded) == 0
        assert policy.default_for(Constrained) == ""
        assert type(policy.default_for(Free)) is object

    def test_union_picks_first_with_default(self, policy):
        assert policy.default_for(Shape | int) == 0

    @pytest.mark.parametrize("tp", [Required, Shape, Greeter, Callable[[int], int], type])
    def test_no_default(self, policy, tp):
        assert policy.default_for(tp) is NO_DEFAULT

    def test_construction_fault_propagates_from_policy(self, policy):
        with pytest.raises(RuntimeError):
            policy.default_for(Exploding)

    def test_value_default_override(self):
        policy = DefaultValuePolicy(value_defaults={int: 7})
        assert policy.default_for(int) == 7
        assert policy.default_for(str) == ""

    def test_has_no_arg_constructor(self):
        assert has_no_arg_constructor(Point) is True
        assert has_no_arg_constructor(Required) is False
        assert has_no_arg_constructor(Shape) is False


# ── Tests: synthesize_base ──


class TestSynthesizeBase:
    """Base argument tuples."""

    def test_divide_scenario(self, synth):
        member = _make_member(_p("a", int), _p("b", int))
        base = synth.synthesize_base(member)
        assert base.values == [0, 0]
        assert len(base) == 2
        assert base.forced_index is None
        assert base.pending_fault is None

    def test_nullable_is_absent(self, synth):
        member = _make_member(_p("x", Optional[int]), _p("y", str))
        base = synth.synthesize_base(member)
        assert base.values == [None, ""]

    def test_no_parameters(self, synth):
        base = synth.synthesize_base(_make_member())
        assert base.values == []
        assert base.describe() == "()"

    def test_uninstantiable_parameter_omitted(self, synth):
        member = _make_member(_p("a", int), _p("s", Shape), _p("b", str))
        base = synth.synthesize_base(member)
        assert base.values == [0, ""]
        assert [p.name for p in base.parameters] == ["a", "b"]
        assert base.omitted == ["s"]

    def test_construction_fault_deferred(self, synth):
        member = _make_member(_p("e", Exploding), _p("b", int))
        base = synth.synthesize_base(member)
        assert isinstance(base.pending_fault, RuntimeError)
        assert len(base) == 2

    def test_keyword_only_split(self, synth):
        member = _make_member(_p("a", int), _p("scale", float, keyword_only=True))
        base = synth.synthesize_base(member)
        assert base.positional() == [0]
        assert base.keywords() == {"scale": 0.0}
        assert base.describe() == "(0, scale=0.0)"

    def test_fresh_instances_per_call(self, synth):
        member = _make_member(_p("items", list))
        first = synth.synthesize_base(member)
        second = synth.synthesize_base(member)
        assert first.values[0] is not second.values[0]


# ── Tests: synthesize_nullable_variants ──


class TestNullableVariants:
    """One variant per nullable parameter."""

    def test_none_without_nullables(self, synth):
        member = _make_member(_p("a", int), _p("b", int))
        base = synth.synthesize_base(member)
        assert synth.synthesize_nullable_variants(member, base) == []

    def test_one_per_nullable_in_order(self, synth):
        member = _make_member(
            _p("x", Optional[int]), _p("y", str), _p("z", Optional[Color]),
        )
        base = synth.synthesize_base(member)
        variants = synth.synthesize_nullable_variants(member, base)

        assert [v.forced_index for v in variants] == [0, 2]
        assert variants[0].values == [0, "", None]
        assert variants[1].values == [None, "", Color.RED]

    def test_each_variant_differs_in_exactly_one_slot(self, synth):
        member = _make_member(
            _p("a", Optional[int]), _p("b", Optional[str]), _p("c", Optional[float]),
        )
        base = synth.synthesize_base(member)
        for variant in synth.synthesize_nullable_variants(member, base):
            diffs = [
                i for i, (b, v) in enumerate(zip(base.values, variant.values))
                if b != v
            ]
            assert diffs == [variant.forced_index]

    def test_base_not_mutated(self, synth):
        member = _make_member(_p("x", Optional[int]))
        base = synth.synthesize_base(member)
        synth.synthesize_nullable_variants(member, base)
        assert base.values == [None]
        assert base.forced_index is None

    def test_box_scenario_typevar(self, synth):
        T = TypeVar("T")
        member = _make_member(_p("x", Optional[T]))
        base = synth.synthesize_base(member)
        (variant,) = synth.synthesize_nullable_variants(member, base)
        assert base.values == [None]
        assert variant.values[0] is not None
        assert variant.is_variant

    def test_variant_without_underlying_default_defers_fault(self, synth):
        member = _make_member(_p("s", Optional[Shape]))
        base = synth.synthesize_base(member)
        (variant,) = synth.synthesize_nullable_variants(member, base)
        assert base.pending_fault is None
        assert isinstance(variant.pending_fault, SynthesisError)

    def test_variant_with_omitted_sibling(self, synth):
        member = _make_member(_p("s", Shape), _p("x", Optional[int]))
        base = synth.synthesize_base(member)
        (variant,) = synth.synthesize_nullable_variants(member, base)
        assert variant.values == [0]
        assert variant.omitted == ["s"]
        assert variant.forced_index == 1

    def test_single_variant_by_index(self, synth):
        member = _make_member(
            _p("a", Optional[int]), _p("b", str), _p("c", Optional[Point]),
        )
        base = synth.synthesize_base(member)
        variant = synth.synthesize_nullable_variant(member, base, 2)
        assert variant.forced_index == 2
        assert variant.values == [None, "", Point()]
        assert base.values == [None, "", None]

    def test_single_variant_rejects_non_nullable(self, synth):
        member = _make_member(_p("a", int))
        base = synth.synthesize_base(member)
        with pytest.raises(ValueError):
            synth.synthesize_nullable_variant(member, base, 0)

    def test_variant_constructor_fault_deferred(self, synth):
        member = _make_member(_p("e", Optional[Exploding]))
        base = synth.synthesize_base(member)
        variant = synth.synthesize_nullable_variant(member, base, 0)
        assert isinstance(variant.pending_fault, RuntimeError)
        assert variant.values == [None]


# ── Tests: ArgumentTuple ──


class TestArgumentTuple:

    def test_defaults(self):
        t = ArgumentTuple()
        assert len(t) == 0
        assert t.is_variant is False
        assert t.omitted == []
