"""Type Catalog (C1) — Discovers crawlable classes and their public members.

Turns imported modules (or an explicit list of classes) into the ordered
type and member descriptors the Crawler consumes.  Parameter and return
metadata come from ``inspect.signature`` plus resolved type hints, with
``Optional[X]`` / ``X | None`` recorded as nullable over ``X``.

Members are public plain methods plus public properties, the latter as a
getter (no parameters) and, when writable, a setter (one parameter).
"""

import importlib
import inspect
import logging
import pkgutil
import types
import typing
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Protocol

logger = logging.getLogger(__name__)

_NONE_TYPE = type(None)

# How a member is reached on the instance
METHOD = "method"
GETTER = "getter"
SETTER = "setter"

# Parameter kinds that take a fixed slot in a call
_POSITIONAL_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


# ── Exceptions ──


class SmokeCrawlError(Exception):
    """Base exception for smokecrawl errors."""


class CatalogError(SmokeCrawlError):
    """A module could not be loaded into the catalog."""


# ── Type Helpers ──


def split_optional(tp: Any) -> tuple[bool, Any]:
    """Split a possibly-optional annotation into ``(nullable, underlying)``.

    ``Optional[int]`` → ``(True, int)``
    ``int | str | None`` → ``(True, int | str)``
    ``int`` → ``(False, int)``
    """
    origin = typing.get_origin(tp)
    if origin is typing.Union or origin is types.UnionType:
        args = typing.get_args(tp)
        rest = tuple(a for a in args if a is not _NONE_TYPE)
        if len(rest) < len(args):
            if len(rest) == 1:
                return True, rest[0]
            return True, typing.Union[rest]
    return False, tp


def _resolve_hints(func) -> dict:
    """Resolve annotations on *func*, tolerating unresolvable forward refs."""
    try:
        return typing.get_type_hints(func)
    except Exception as exc:
        logger.debug(
            "Could not resolve type hints for %s: %s",
            getattr(func, "__qualname__", func), exc,
        )
        raw = dict(getattr(func, "__annotations__", {}) or {})
        # Unresolved string annotations carry no usable type
        return {
            k: (object if isinstance(v, str) else v) for k, v in raw.items()
        }


# ── Data Classes ──


@dataclass(frozen=True)
class TypeDescriptor:
    """A crawlable class."""

    cls: type
    name: str
    module: str = ""

    @classmethod
    def of(cls, klass: type) -> "TypeDescriptor":
        return cls(cls=klass, name=klass.__qualname__, module=klass.__module__)


@dataclass(frozen=True)
class ParameterDescriptor:
    """A single fixed parameter of a member.

    Attributes:
        name: Parameter name as declared.
        declared_type: Resolved annotation (``object`` when unannotated).
        nullable: True for ``Optional[X]`` / ``X | None``.
        underlying_type: ``X`` for nullable parameters, else ``declared_type``.
        keyword_only: True for parameters after ``*`` / ``*args``.
    """

    name: str
    declared_type: Any = object
    nullable: bool = False
    underlying_type: Any = object
    keyword_only: bool = False

    @classmethod
    def of(
        cls, name: str, annotation: Any, keyword_only: bool = False,
    ) -> "ParameterDescriptor":
        nullable, underlying = split_optional(annotation)
        return cls(
            name=name,
            declared_type=annotation,
            nullable=nullable,
            underlying_type=underlying,
            keyword_only=keyword_only,
        )


@dataclass(frozen=True)
class ReturnDescriptor:
    """Declared return contract of a value-returning member."""

    declared_type: Any = object
    nullable: bool = False
    underlying_type: Any = object

    @classmethod
    def of(cls, annotation: Any) -> "ReturnDescriptor":
        nullable, underlying = split_optional(annotation)
        return cls(
            declared_type=annotation,
            nullable=nullable,
            underlying_type=underlying,
        )


@dataclass(frozen=True)
class MemberDescriptor:
    """A public instance member of a crawlable class.

    ``returns`` is None for void members (``-> None`` or no annotation).
    ``accessor`` is ``METHOD`` for plain methods, or ``GETTER`` / ``SETTER``
    for the two halves of a property.
    """

    name: str
    parameters: tuple[ParameterDescriptor, ...] = ()
    returns: Optional[ReturnDescriptor] = None
    is_async: bool = False
    owner: str = ""
    accessor: str = METHOD

    @property
    def nullable_indices(self) -> list[int]:
        return [i for i, p in enumerate(self.parameters) if p.nullable]

    @property
    def label(self) -> str:
        """Name used in reports; setters read ``name.setter``."""
        if self.accessor == SETTER:
            return f"{self.name}.setter"
        return self.name

    @property
    def qualified_name(self) -> str:
        return f"{self.owner}.{self.label}" if self.owner else self.label


def describe_member(
    name: str, func, owner: str = "", accessor: str = METHOD,
) -> MemberDescriptor:
    """Build a MemberDescriptor from an unbound function defined on a class.

    For property accessors pass ``fget`` / ``fset`` as *func*.
    """
    sig = inspect.signature(func)
    hints = _resolve_hints(func)

    params: list[ParameterDescriptor] = []
    for index, p in enumerate(sig.parameters.values()):
        # First positional slot is the instance
        if index == 0 and p.kind in _POSITIONAL_KINDS:
            continue
        if p.kind in (
            inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD,
        ):
            continue
        annotation = hints.get(p.name, object)
        params.append(ParameterDescriptor.of(
            p.name, annotation,
            keyword_only=p.kind == inspect.Parameter.KEYWORD_ONLY,
        ))

    returns: Optional[ReturnDescriptor] = None
    ret = hints.get("return", _NONE_TYPE)
    if ret is not _NONE_TYPE and ret is not None:
        returns = ReturnDescriptor.of(ret)

    return MemberDescriptor(
        name=name,
        parameters=tuple(params),
        returns=returns,
        is_async=inspect.iscoroutinefunction(func),
        owner=owner,
        accessor=accessor,
    )


def describe_property(
    name: str, prop: property, owner: str = "",
) -> list[MemberDescriptor]:
    """Getter and (when writable) setter descriptors for a property."""
    members: list[MemberDescriptor] = []
    if prop.fget is not None:
        members.append(describe_member(name, prop.fget, owner, GETTER))
    if prop.fset is not None:
        members.append(describe_member(name, prop.fset, owner, SETTER))
    return members


def public_instance_methods(
    klass: type, include_inherited: bool = False,
) -> list[tuple[str, Any]]:
    """Public plain functions and properties on *klass*, in declaration order.

    Static methods, class methods and underscore-prefixed names are
    excluded.  With ``include_inherited`` the MRO is walked (``object``
    excluded) and the most-derived definition wins.
    """
    owners = [klass]
    if include_inherited:
        owners = [k for k in klass.__mro__ if k is not object]

    seen: set[str] = set()
    found: list[tuple[str, Any]] = []
    for owner in owners:
        for name, value in vars(owner).items():
            if name in seen:
                continue
            seen.add(name)
            if name.startswith("_"):
                continue
            if inspect.isfunction(value) or isinstance(value, property):
                found.append((name, value))
    return found


# ── Catalog Protocol ──


class TypeCatalog(Protocol):
    """Source of crawlable types — injectable for testing."""

    def list_types(self) -> list[TypeDescriptor]:
        """Ordered sequence of types to crawl."""
        ...

    def list_public_instance_members(
        self, type_desc: TypeDescriptor,
    ) -> list[MemberDescriptor]:
        """Public instance members declared on *type_desc*."""
        ...

    def construct(self, type_desc: TypeDescriptor) -> Any:
        """Create an instance with no arguments.  Raises on failure."""
        ...


# ── Concrete Catalogs ──


class ClassCatalog:
    """Catalog over an explicit, ordered list of classes.

    Usage::

        catalog = ClassCatalog([Calculator, Box])
    """

    def __init__(
        self,
        classes: Iterable[type] = (),
        include_inherited: bool = False,
    ):
        self.classes = list(classes)
        self.include_inherited = include_inherited

    def list_types(self) -> list[TypeDescriptor]:
        return [TypeDescriptor.of(c) for c in self.classes]

    def list_public_instance_members(
        self, type_desc: TypeDescriptor,
    ) -> list[MemberDescriptor]:
        members: list[MemberDescriptor] = []
        for name, value in public_instance_methods(
            type_desc.cls, self.include_inherited,
        ):
            try:
                if isinstance(value, property):
                    members.extend(
                        describe_property(name, value, type_desc.name),
                    )
                else:
                    members.append(describe_member(name, value, type_desc.name))
            except (TypeError, ValueError) as exc:
                # Signature not introspectable (e.g. some C-level callables)
                logger.warning(
                    "Skipping %s.%s: cannot read signature: %s",
                    type_desc.name, name, exc,
                )
        return members

    def construct(self, type_desc: TypeDescriptor) -> Any:
        return type_desc.cls()


class ModuleCatalog(ClassCatalog):
    """Catalog over the public classes defined in one or more modules.

    Classes are listed in definition order per module, modules in the order
    given.  Classes merely imported into a module are not included.
    """

    def __init__(
        self,
        modules: Iterable[types.ModuleType],
        include_inherited: bool = False,
    ):
        self.modules = list(modules)
        classes: list[type] = []
        for module in self.modules:
            classes.extend(_classes_defined_in(module))
        super().__init__(classes, include_inherited=include_inherited)

    @classmethod
    def from_names(
        cls,
        names: Iterable[str],
        recursive: bool = False,
        include_inherited: bool = False,
    ) -> tuple["ModuleCatalog", list[CatalogError]]:
        """Import modules by dotted name.

        Returns the catalog plus one CatalogError per module (and, with
        ``recursive``, per submodule) that failed to import; failures do
        not stop the remaining modules from loading.
        """
        modules: list[types.ModuleType] = []
        errors: list[CatalogError] = []
        for name in names:
            try:
                modules.extend(
                    load_modules(name, recursive=recursive, errors=errors),
                )
            except CatalogError as exc:
                logger.warning("%s", exc)
                errors.append(exc)
        return cls(modules, include_inherited=include_inherited), errors


def _classes_defined_in(module: types.ModuleType) -> list[type]:
    return [
        obj for name, obj in vars(module).items()
        if inspect.isclass(obj)
        and not name.startswith("_")
        and obj.__module__ == module.__name__
    ]


def _import_error(name: str, exc: BaseException) -> CatalogError:
    error = CatalogError(
        f"Could not import module '{name}': {type(exc).__name__}: {exc}"
    )
    error.__cause__ = exc
    return error


def load_modules(
    name: str,
    recursive: bool = False,
    errors: Optional[list[CatalogError]] = None,
) -> list[types.ModuleType]:
    """Import *name* (and, for packages with ``recursive``, its submodules).

    Raises CatalogError if *name* itself cannot be imported.  Submodule
    import failures are logged, appended to *errors* when given, and skipped.
    """
    try:
        module = importlib.import_module(name)
    except Exception as exc:
        raise _import_error(name, exc) from exc

    modules = [module]
    if recursive and hasattr(module, "__path__"):
        for info in pkgutil.walk_packages(module.__path__, prefix=name + "."):
            try:
                modules.append(importlib.import_module(info.name))
            except Exception as exc:
                error = _import_error(info.name, exc)
                logger.warning("%s", error)
                if errors is not None:
                    errors.append(error)
    return modules
