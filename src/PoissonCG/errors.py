"""Error taxonomy and exit statuses for solver runs.

Every failure a run can end in maps to one ``ExitStatus``, which becomes
the process exit code.
"""

from enum import IntEnum


class ExitStatus(IntEnum):
    """Process exit codes."""

    OK = 0
    USAGE_ERROR = 2
    CONFIG_ERROR = 3
    IO_ERROR = 4
    NUMERICAL_ERROR = 5
    COMMUNICATION_ERROR = 6
    INTERNAL_ERROR = 7


class PoissonError(Exception):
    """Base class for all solver errors."""

    status = ExitStatus.INTERNAL_ERROR


class UsageError(PoissonError):
    """Bad command-line arguments."""

    status = ExitStatus.USAGE_ERROR


class ConfigurationError(PoissonError, ValueError):
    """Invalid run parameters (resolution, process count, bounds...)."""

    status = ExitStatus.CONFIG_ERROR


class OutputError(PoissonError):
    """Result matrix could not be written."""

    status = ExitStatus.IO_ERROR


class DegenerateStepError(PoissonError, ArithmeticError):
    """Step-size denominator vanished (flat search direction)."""

    status = ExitStatus.NUMERICAL_ERROR

    def __init__(self, numerator: float, denominator: float):
        self.numerator = numerator
        self.denominator = denominator
        super().__init__(
            f"Degenerate step size: {numerator!r} / {denominator!r}"
        )


class CommunicationError(PoissonError):
    """Point-to-point or collective communication failed."""

    status = ExitStatus.COMMUNICATION_ERROR
