"""Error taxonomy for benchmark runs."""

from typing import Iterable, Tuple


class DriverBenchError(Exception):
    """Base class for all driverbench errors."""


class ConfigurationError(DriverBenchError):
    """A credential or URL required by the requested driver is missing."""


class ProvisioningError(DriverBenchError):
    """Creating or seeding the benchmark schema failed."""


class ExecutionError(DriverBenchError):
    """A single query execution failed while sampling."""

    def __init__(
        self,
        message: str,
        driver: str | None = None,
        query_name: str | None = None,
        iteration: int | None = None,
    ):
        super().__init__(message)
        self.driver = driver
        self.query_name = query_name
        self.iteration = iteration


class InputValidationError(DriverBenchError):
    """The comparison request is invalid; raised before any driver is touched."""


class AllDriversFailedError(DriverBenchError):
    """Every requested driver failed, so there is nothing to compare.

    ``failures`` holds one ``(driver, message)`` pair per requested position.
    """

    def __init__(self, failures: Iterable[Tuple[str, str]]):
        self.failures = list(failures)
        super().__init__(
            "All requested drivers failed: " + ", ".join(driver for driver, _ in self.failures)
            if self.failures else "No drivers were run"
        )

    @property
    def details(self) -> str:
        return "; ".join(f"{driver}: {message}" for driver, message in self.failures)
