"""smokecrawl — Reflective smoke tests for Python classes."""

from smokecrawl.catalog import (
    CatalogError,
    ClassCatalog,
    MemberDescriptor,
    ModuleCatalog,
    ParameterDescriptor,
    ReturnDescriptor,
    SmokeCrawlError,
    TypeCatalog,
    TypeDescriptor,
)
from smokecrawl.synthesizer import (
    NO_DEFAULT,
    ArgumentSynthesizer,
    ArgumentTuple,
    DefaultValuePolicy,
    SynthesisError,
)
from smokecrawl.invoker import (
    Fault,
    InvocationOutcome,
    Invoker,
    Success,
    unwrap_fault,
)
from smokecrawl.validator import ContractViolation, ReturnValidator
from smokecrawl.report import (
    CrawlReport,
    FaultRecord,
    MemberReport,
    SmokeTestFailure,
    TypeReport,
)
from smokecrawl.sink import LoggingSink, NullSink, Sink
from smokecrawl.crawler import CancellationToken, CrawlConfig, Crawler

__all__ = [
    # Type Catalog (C1)
    "TypeCatalog",
    "ClassCatalog",
    "ModuleCatalog",
    "TypeDescriptor",
    "MemberDescriptor",
    "ParameterDescriptor",
    "ReturnDescriptor",
    "SmokeCrawlError",
    "CatalogError",
    # Argument Synthesizer (C2)
    "ArgumentSynthesizer",
    "ArgumentTuple",
    "DefaultValuePolicy",
    "SynthesisError",
    "NO_DEFAULT",
    # Invoker (C3)
    "Invoker",
    "InvocationOutcome",
    "Success",
    "Fault",
    "unwrap_fault",
    # Return Validator (C4)
    "ReturnValidator",
    "ContractViolation",
    # Crawler (C5)
    "Crawler",
    "CrawlConfig",
    "CancellationToken",
    # Report (C6)
    "CrawlReport",
    "TypeReport",
    "MemberReport",
    "FaultRecord",
    "SmokeTestFailure",
    # Sinks
    "Sink",
    "LoggingSink",
    "NullSink",
]
