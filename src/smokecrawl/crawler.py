"""Crawler (C5) — Orchestrates a smoke-test crawl over a type catalog.

For each type: construct one instance, discover its public instance
members, then for each member invoke the base argument tuple and one
variant per nullable parameter, validating every return value.  Every
fault is captured at the single-invocation scope and recorded; only a
cancellation request stops the crawl early, and even then the partial
report is returned rather than raised.

Single-threaded.  The cancellation token may be set from another thread or
a signal handler; it is observed once per member.
"""

import fnmatch
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

from smokecrawl.catalog import (
    ClassCatalog,
    MemberDescriptor,
    TypeCatalog,
    TypeDescriptor,
)
from smokecrawl.invoker import (
    CONSTRUCTION,
    Fault,
    Invoker,
    unwrap_fault,
)
from smokecrawl.report import (
    CrawlReport,
    FaultRecord,
    MemberReport,
    TypeReport,
)
from smokecrawl.sink import LoggingSink, Sink
from smokecrawl.synthesizer import ArgumentSynthesizer, ArgumentTuple
from smokecrawl.validator import ReturnValidator

logger = logging.getLogger(__name__)


# ── Configuration ──


@dataclass
class CrawlConfig:
    """Configuration for a crawl run.

    Attributes:
        include_inherited: Also exercise public methods inherited from base
            classes (only applies to catalogs built by the crawler).
        exclude: fnmatch patterns matched against ``Type`` and
            ``Type.member``; matches are not crawled.
        run_coroutines: Drive ``async def`` members on a private event loop.
            When False they are reported as skipped.
        wrapper_types: Exception types unwrapped to their cause before
            recording.  None uses the Invoker default.
        message_max: Truncation limit for fault messages in rendered output.
    """

    include_inherited: bool = False
    exclude: tuple[str, ...] = field(default_factory=tuple)
    run_coroutines: bool = True
    wrapper_types: Optional[tuple[type[BaseException], ...]] = None
    message_max: int = 500


class CancellationToken:
    """Cooperative stop request shared between the caller and the crawl."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


# ── Crawler ──


class Crawler:
    """Exercises every public instance method of every type in a catalog.

    Usage::

        crawler = Crawler(ModuleCatalog([mymodule]))
        report = crawler.crawl_catalog()
        report.raise_if_faults()
    """

    def __init__(
        self,
        catalog: Optional[TypeCatalog] = None,
        config: Optional[CrawlConfig] = None,
        synthesizer: Optional[ArgumentSynthesizer] = None,
        invoker: Optional[Invoker] = None,
        validator: Optional[ReturnValidator] = None,
        sink: Optional[Sink] = None,
    ):
        self.catalog = catalog
        self.config = config or CrawlConfig()
        self.synthesizer = synthesizer or ArgumentSynthesizer()
        self.invoker = invoker or Invoker(self.config.wrapper_types)
        self.validator = validator or ReturnValidator()
        self.sink = sink or LoggingSink()

    # ── Entry Points ──

    def crawl_catalog(
        self,
        catalog: Optional[TypeCatalog] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> CrawlReport:
        """Crawl every type in *catalog* (or the crawler's own) in order."""
        if catalog is None:
            catalog = self.catalog
        if catalog is None:
            raise ValueError("No catalog to crawl.")

        report = CrawlReport()
        start = time.perf_counter()
        type_descs = catalog.list_types()
        logger.info("Starting crawl of %d types", len(type_descs))

        for type_desc in type_descs:
            if _is_cancelled(cancel):
                report.cancelled = True
                break
            if self._excluded(type_desc.name):
                logger.debug("Excluded type %s", type_desc.name)
                continue
            type_report = self.crawl_type(type_desc, catalog, cancel)
            report.types.append(type_report)
            if type_report.interrupted:
                report.cancelled = True
                break

        report.elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
        if report.cancelled:
            logger.warning(
                "Crawl cancelled after %d types; returning partial results",
                len(report.types),
            )
        logger.info(
            "Crawl finished: %d types, %d invocations, %d faults, %.0f ms",
            len(report.types), report.invocations, report.total_faults,
            report.elapsed_ms,
        )
        return report

    def crawl_class(
        self,
        cls: type,
        cancel: Optional[CancellationToken] = None,
    ) -> CrawlReport:
        """Crawl a single class without building a catalog first."""
        catalog = ClassCatalog(
            [cls], include_inherited=self.config.include_inherited,
        )
        return self.crawl_catalog(catalog, cancel)

    def crawl_type(
        self,
        type_desc: TypeDescriptor,
        catalog: TypeCatalog,
        cancel: Optional[CancellationToken] = None,
    ) -> TypeReport:
        """Construct one instance of *type_desc* and exercise its members.

        A construction failure is recorded as the type's single fault and
        no member is invoked.
        """
        report = TypeReport(type_name=type_desc.name, module=type_desc.module)
        self.sink.emit("type", name=type_desc.name)

        try:
            instance = catalog.construct(type_desc)
        except (Exception, SystemExit) as exc:
            report.construction_fault = FaultRecord(
                type_name=type_desc.name,
                member_name=None,
                kind=CONSTRUCTION,
                error=unwrap_fault(exc, self.invoker.wrapper_types),
                arguments="()",
            )
            logger.warning(
                "%s", report.construction_fault.headline(self.config.message_max),
            )
            return report
        self.sink.emit("instance", name=type_desc.name)

        try:
            declared = catalog.list_public_instance_members(type_desc)
        except Exception as exc:
            report.construction_fault = FaultRecord(
                type_name=type_desc.name,
                member_name=None,
                kind=CONSTRUCTION,
                error=exc,
            )
            logger.warning(
                "Could not list members: %s",
                report.construction_fault.headline(self.config.message_max),
            )
            return report
        members = [
            m for m in declared if not self._excluded(type_desc.name, m.label)
        ]
        report.members = self.invoke_members(
            instance, members, cancel, type_name=type_desc.name,
        )
        report.interrupted = len(report.members) < len(members)
        return report

    def invoke_members(
        self,
        instance: Any,
        members: list[MemberDescriptor],
        cancel: Optional[CancellationToken] = None,
        type_name: str = "",
    ) -> list[MemberReport]:
        """Exercise *members* on an existing instance, in order.

        Cancellation is checked before each member; members not yet started
        when it is observed are not reported.
        """
        type_name = type_name or type(instance).__qualname__
        reports: list[MemberReport] = []
        for member in members:
            if _is_cancelled(cancel):
                logger.info(
                    "Cancellation observed before %s.%s", type_name, member.label,
                )
                break
            reports.append(self.invoke_member(instance, member, type_name))
        return reports

    def invoke_member(
        self,
        instance: Any,
        member: MemberDescriptor,
        type_name: str = "",
    ) -> MemberReport:
        """Invoke the base tuple, then each nullable variant, of one member."""
        type_name = type_name or type(instance).__qualname__
        report = MemberReport(member_name=member.label)

        if member.is_async and not self.config.run_coroutines:
            report.skipped = "coroutine members disabled"
            logger.info("Skipping coroutine %s.%s", type_name, member.label)
            return report

        self.sink.emit("member", type=type_name, name=member.label)
        for arguments in self._argument_sets(member):
            if not arguments.is_variant:
                report.omitted_parameters = list(arguments.omitted)
            report.invocations += 1
            self.sink.emit(
                "invocation",
                member=f"{type_name}.{member.label}",
                arguments=arguments.describe(),
            )
            outcome = self.invoker.invoke(instance, member, arguments)
            outcome = self.validator.validate(outcome, member.returns)
            if isinstance(outcome, Fault):
                record = FaultRecord(
                    type_name=type_name,
                    member_name=member.label,
                    kind=outcome.kind,
                    error=outcome.error,
                    arguments=arguments.describe(),
                    forced_index=arguments.forced_index,
                )
                logger.warning("%s", record.headline(self.config.message_max))
                report.faults.append(record)
        return report

    # ── Helpers ──

    def _argument_sets(self, member: MemberDescriptor) -> Iterator[ArgumentTuple]:
        """Base tuple, then one variant per nullable parameter.

        Each variant is derived from a freshly synthesised base so no
        argument object is shared between invocations.
        """
        yield self.synthesizer.synthesize_base(member)
        for index in member.nullable_indices:
            fresh = self.synthesizer.synthesize_base(member)
            yield self.synthesizer.synthesize_nullable_variant(member, fresh, index)

    def _excluded(self, type_name: str, member_name: Optional[str] = None) -> bool:
        target = type_name if member_name is None else f"{type_name}.{member_name}"
        return any(
            fnmatch.fnmatchcase(target, pattern)
            for pattern in self.config.exclude
        )


def _is_cancelled(cancel: Optional[CancellationToken]) -> bool:
    return cancel is not None and cancel.cancelled
