"""Per-target results and the overall exit status of an install run."""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from pathlib import Path


class Outcome(Enum):
    """Result of performing one target."""

    INSTALLED = "installed"
    RAN = "ran"
    SKIPPED = "skipped"
    SKIPPED_SILENT = "skipped-silent"
    ERROR = "error"
    FATAL = "fatal"

    @property
    def reported(self) -> bool:
        """Whether the outcome shows up in the final summary."""
        return self not in (Outcome.RAN, Outcome.SKIPPED_SILENT)


class ExitStatus(IntEnum):
    SUCCESS = 0
    FATAL = 1
    ERRORS = 2


@dataclass(frozen=True)
class ReportEntry:
    name: str
    outcome: Outcome
    message: str
    destination: Path | None = None


@dataclass
class Report:
    """Accumulates target results in execution order.

    `halted` is set when a fatal outcome stopped the traversal.
    """

    entries: list[ReportEntry] = field(default_factory=list)
    halted: bool = False

    def record(self, entry: ReportEntry) -> None:
        self.entries.append(entry)
        if entry.outcome is Outcome.FATAL:
            self.halted = True

    def reported_entries(self) -> list[ReportEntry]:
        return [e for e in self.entries if e.outcome.reported]

    def count(self, outcome: Outcome) -> int:
        return sum(1 for e in self.entries if e.outcome is outcome)

    @property
    def status(self) -> ExitStatus:
        """Worst outcome observed: fatal, then non-fatal errors, then success."""
        if self.halted:
            return ExitStatus.FATAL
        if any(e.outcome is Outcome.ERROR for e in self.entries):
            return ExitStatus.ERRORS
        return ExitStatus.SUCCESS
