"""Crawl Report (C6) — Run-scoped error report with text and JSON rendering.

Faults are owned by the scope that produced them: a member owns its list,
a type owns its construction fault plus its members' lists, and the run
owns the concatenation of its types' lists.  Nothing here is persisted.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from smokecrawl.catalog import SmokeCrawlError
from smokecrawl.invoker import CONSTRUCTION, CONTRACT, INVOCATION

logger = logging.getLogger(__name__)

# Truncation limit for fault messages in rendered output
_MESSAGE_MAX = 500


# ── Exceptions ──


class SmokeTestFailure(SmokeCrawlError):
    """Raised by ``CrawlReport.raise_if_faults`` when any fault was recorded."""

    def __init__(self, report: "CrawlReport"):
        self.report = report
        lines = [f"{report.total_faults} fault(s) recorded:"]
        for record in report.errors:
            lines.append(f"  - {record.headline()}")
        super().__init__("\n".join(lines))


# ── Data Classes ──


@dataclass
class FaultRecord:
    """A single captured fault, scoped to (type, member).

    Attributes:
        type_name: Qualified name of the crawled class.
        member_name: Method name, or None for construction faults.
        kind: "construction", "invocation", or "contract".
        error: The captured exception (unwrapped).
        arguments: Rendering of the argument tuple used, if any.
        forced_index: Which nullable parameter was forced for a variant
            invocation, or None for the base call.
    """

    type_name: str
    member_name: Optional[str]
    kind: str
    error: BaseException
    arguments: str = ""
    forced_index: Optional[int] = None

    @property
    def error_type(self) -> str:
        return type(self.error).__name__

    @property
    def message(self) -> str:
        return _safe_str(self.error)

    @property
    def location(self) -> str:
        if self.member_name is None:
            return self.type_name
        return f"{self.type_name}.{self.member_name}"

    def headline(self, message_max: int = _MESSAGE_MAX) -> str:
        call = f"{self.location}{self.arguments}"
        return f"[{self.kind}] {call}: {self.error_type}: {self.message[:message_max]}"

    def as_dict(self, message_max: int = _MESSAGE_MAX) -> dict:
        return {
            "type": self.type_name,
            "member": self.member_name,
            "kind": self.kind,
            "error_type": self.error_type,
            "message": self.message[:message_max],
            "arguments": self.arguments,
            "forced_index": self.forced_index,
        }


def _safe_str(error: BaseException) -> str:
    try:
        return str(error)
    except Exception:
        return f"<{type(error).__name__}>"


@dataclass
class MemberReport:
    """Outcome of exercising one member."""

    member_name: str
    invocations: int = 0
    faults: list[FaultRecord] = field(default_factory=list)
    omitted_parameters: list[str] = field(default_factory=list)
    skipped: str = ""


@dataclass
class TypeReport:
    """Outcome of crawling one type.

    ``construction_fault`` is set when the type could not be instantiated;
    in that case ``members`` is empty.  ``interrupted`` is set when
    cancellation stopped the type before its last member.
    """

    type_name: str
    module: str = ""
    members: list[MemberReport] = field(default_factory=list)
    construction_fault: Optional[FaultRecord] = None
    interrupted: bool = False

    @property
    def constructed(self) -> bool:
        return self.construction_fault is None

    @property
    def errors(self) -> list[FaultRecord]:
        errors: list[FaultRecord] = []
        if self.construction_fault is not None:
            errors.append(self.construction_fault)
        for m in self.members:
            errors.extend(m.faults)
        return errors

    @property
    def invocations(self) -> int:
        return sum(m.invocations for m in self.members)


@dataclass
class CrawlReport:
    """Complete output of a crawl run.

    Attributes:
        types: Per-type reports in crawl order.
        cancelled: True when cancellation stopped the crawl early.
        load_errors: Modules that could not be imported (CLI runs only).
        elapsed_ms: Wall-clock time of the crawl.
    """

    types: list[TypeReport] = field(default_factory=list)
    cancelled: bool = False
    load_errors: list[str] = field(default_factory=list)
    elapsed_ms: float = 0.0

    @property
    def errors(self) -> list[FaultRecord]:
        errors: list[FaultRecord] = []
        for t in self.types:
            errors.extend(t.errors)
        return errors

    @property
    def total_faults(self) -> int:
        return len(self.errors)

    @property
    def invocations(self) -> int:
        return sum(t.invocations for t in self.types)

    @property
    def members_exercised(self) -> int:
        return sum(
            1 for t in self.types for m in t.members if not m.skipped
        )

    @property
    def ok(self) -> bool:
        return not self.errors

    def faults_by_kind(self) -> dict[str, int]:
        counts = {CONSTRUCTION: 0, INVOCATION: 0, CONTRACT: 0}
        for record in self.errors:
            counts[record.kind] = counts.get(record.kind, 0) + 1
        return counts

    def as_mapping(self) -> dict[tuple[str, Optional[str]], list[FaultRecord]]:
        """``{(type_name, member_name): [faults]}`` for every faulted scope.

        Construction faults are keyed with ``member_name=None``.
        """
        mapping: dict[tuple[str, Optional[str]], list[FaultRecord]] = {}
        for record in self.errors:
            key = (record.type_name, record.member_name)
            mapping.setdefault(key, []).append(record)
        return mapping

    def raise_if_faults(self) -> None:
        """Raise SmokeTestFailure if anything faulted.  For use in unit tests."""
        if self.errors:
            raise SmokeTestFailure(self)

    def as_dict(self, message_max: int = _MESSAGE_MAX) -> dict:
        """JSON-serializable representation."""
        return {
            "summary": {
                "types_crawled": len(self.types),
                "types_constructed": sum(1 for t in self.types if t.constructed),
                "members_exercised": self.members_exercised,
                "invocations": self.invocations,
                "total_faults": self.total_faults,
                "faults_by_kind": self.faults_by_kind(),
                "cancelled": self.cancelled,
                "elapsed_ms": self.elapsed_ms,
            },
            "load_errors": list(self.load_errors),
            "types": [
                {
                    "name": t.type_name,
                    "module": t.module,
                    "constructed": t.constructed,
                    "construction_fault": (
                        t.construction_fault.as_dict(message_max)
                        if t.construction_fault else None
                    ),
                    "members": [
                        {
                            "name": m.member_name,
                            "invocations": m.invocations,
                            "omitted_parameters": list(m.omitted_parameters),
                            "skipped": m.skipped,
                            "faults": [f.as_dict(message_max) for f in m.faults],
                        }
                        for m in t.members
                    ],
                }
                for t in self.types
            ],
        }

    def as_text(self, message_max: int = _MESSAGE_MAX) -> str:
        """Render the report as readable plain text."""
        sections: list[str] = []

        sections.append("=" * 60)
        sections.append("  smokecrawl Report")
        sections.append("=" * 60)

        constructed = sum(1 for t in self.types if t.constructed)
        sections.append(
            f"\nTypes: {len(self.types)} crawled, {constructed} constructed"
        )
        sections.append(
            f"Members: {self.members_exercised} exercised, "
            f"{self.invocations} invocations"
        )
        if self.cancelled:
            sections.append("Run cancelled; results are partial.")

        if self.load_errors:
            sections.append("\n" + "-" * 40)
            sections.append("  Modules Not Loaded")
            sections.append("-" * 40)
            for err in self.load_errors:
                sections.append(f"  - {err[:message_max]}")

        sections.append("\n" + "-" * 40)
        sections.append("  Faults")
        sections.append("-" * 40)
        errors = self.errors
        if not errors:
            sections.append("\n  No faults recorded.")
        else:
            kinds = self.faults_by_kind()
            sections.append(
                f"\n  {len(errors)} total: "
                f"{kinds[CONSTRUCTION]} construction, "
                f"{kinds[INVOCATION]} invocation, "
                f"{kinds[CONTRACT]} contract"
            )
            for record in errors:
                sections.append(f"\n  - {record.headline(message_max)}")

        skipped = [
            (t.type_name, m) for t in self.types for m in t.members if m.skipped
        ]
        if skipped:
            sections.append("\n" + "-" * 40)
            sections.append("  Skipped Members")
            sections.append("-" * 40)
            for type_name, m in skipped:
                sections.append(f"  - {type_name}.{m.member_name}: {m.skipped}")

        return "\n".join(sections)
