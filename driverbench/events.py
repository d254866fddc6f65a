"""
Observer interface for benchmark progress.

The engine reports what happens during a run by calling an observer instead
of logging inline. ``LoggingObserver`` is the default and writes to the
``driverbench.events`` logger.
"""
import logging

from driverbench.logging_config import EVENTS_LOGGER, get_logger


class BenchmarkObserver:
    """No-op base; override the events of interest."""

    def driver_started(self, driver: str) -> None:
        pass

    def driver_completed(self, result) -> None:
        pass

    def driver_failed(self, driver: str, error: BaseException) -> None:
        pass

    def query_completed(self, driver: str, result) -> None:
        pass

    def schema_checked(self, driver: str, status) -> None:
        pass

    def schema_provisioned(self, driver: str) -> None:
        pass

    def schema_provisioning_failed(self, driver: str, error: BaseException) -> None:
        pass


class LoggingObserver(BenchmarkObserver):
    """Writes events to ``driverbench.events`` with ``driver``/``query`` record fields."""

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or get_logger(EVENTS_LOGGER)

    def _log(self, level: int, driver: str, message: str, *args, query: str = "-") -> None:
        self.logger.log(level, message, *args, extra={"driver": driver, "query": query})

    def driver_started(self, driver: str) -> None:
        self._log(logging.INFO, driver, "started")

    def driver_completed(self, result) -> None:
        self._log(
            logging.INFO, result.driver,
            "finished %d queries: total median %.3fms, total mean %.3fms",
            len(result.results), result.total_median, result.total_mean,
        )

    def driver_failed(self, driver: str, error: BaseException) -> None:
        self._log(logging.ERROR, driver, "failed and is excluded from the comparison: %s", error)

    def query_completed(self, driver: str, result) -> None:
        self._log(
            logging.DEBUG, driver,
            "n=%d median=%.3fms p95=%.3fms p99=%.3fms",
            result.sample_count, result.median, result.p95, result.p99,
            query=result.query_name,
        )

    def schema_checked(self, driver: str, status) -> None:
        self._log(logging.DEBUG, driver, "schema %s", getattr(status, "value", status))

    def schema_provisioned(self, driver: str) -> None:
        self._log(logging.INFO, driver, "provisioned benchmark schema")

    def schema_provisioning_failed(self, driver: str, error: BaseException) -> None:
        self._log(logging.WARNING, driver, "schema provisioning failed, continuing: %s", error)
