"""Logging decorators for automatic function and operation tracking."""

from collections.abc import Callable
import functools
import time
from typing import ParamSpec, TypeVar

from .logger import get_logger

P = ParamSpec("P")
T = TypeVar("T")


def log_calls(
    logger_name: str | None = None,
    log_args: bool = True,
    log_result: bool = False,
    log_timing: bool = True,
    level: str = "DEBUG",
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Decorator to log function calls with arguments, results, and timing.

    Args:
        logger_name: Custom logger name, defaults to function's module
        log_args: Whether to log function arguments
        log_result: Whether to log function return value
        log_timing: Whether to log execution time
        level: Log level (DEBUG, INFO, WARNING, ERROR)

    Example:
        @log_calls()
        def parse(self, path):
            return []
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        logger = get_logger(logger_name or func.__module__)
        log_level = getattr(logger, level.lower())

        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            func_name = func.__name__

            args_str = ""
            if log_args and (args or kwargs):
                args_parts = [str(arg)[:100] for arg in args]  # Limit arg length
                args_parts.extend(f"{k}={str(v)[:100]}" for k, v in kwargs.items())
                args_str = f" with args: ({', '.join(args_parts)})"

            log_level("Calling %s%s", func_name, args_str)

            start_time = time.time()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                elapsed = time.time() - start_time
                timing_str = f" (failed after {elapsed:.3f}s)" if log_timing else ""
                logger.error(
                    "Failed %s%s: %s: %s", func_name, timing_str, type(e).__name__, e
                )
                raise

            timing_str = ""
            if log_timing:
                timing_str = f" (took {time.time() - start_time:.3f}s)"

            result_str = ""
            if log_result:
                result_str = f" -> {str(result)[:200]}"

            log_level("Completed %s%s%s", func_name, timing_str, result_str)
            return result

        return wrapper

    return decorator


def log_api_calls(
    service_name: str = "API",
    log_responses: bool = False,
    max_response_length: int = 500,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Decorator for logging calls made to external price providers.

    Args:
        service_name: Name of the external service
        log_responses: Whether to log response data
        max_response_length: Maximum length of response data to log

    Example:
        @log_api_calls("YFinance")
        def fetch_latest_price(self, ticker):
            ...
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        logger = get_logger(func.__module__)

        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            func_name = func.__name__
            logger.info("Calling %s API: %s", service_name, func_name)

            start_time = time.time()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                elapsed = time.time() - start_time
                logger.error(
                    "Failed %s API call: %s (%.3fs): %s",
                    service_name,
                    func_name,
                    elapsed,
                    e,
                )
                raise

            elapsed = time.time() - start_time
            logger.info(
                "Completed %s API call: %s (%.3fs)", service_name, func_name, elapsed
            )
            if log_responses and result is not None:
                logger.debug("API response: %s", str(result)[:max_response_length])
            return result

        return wrapper

    return decorator


def log_performance(
    warn_threshold: float = 1.0,
    error_threshold: float = 5.0,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Decorator for performance monitoring with configurable thresholds.

    Args:
        warn_threshold: Seconds after which to log a warning
        error_threshold: Seconds after which to log an error

    Example:
        @log_performance(warn_threshold=0.5, error_threshold=2.0)
        def build(self, transactions):
            ...
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        logger = get_logger(func.__module__)

        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            func_name = func.__name__
            start_time = time.time()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                elapsed = time.time() - start_time
                logger.error(
                    "Performance: %s failed after %.3fs: %s", func_name, elapsed, e
                )
                raise

            elapsed = time.time() - start_time
            message = f"Performance: {func_name} completed in {elapsed:.3f}s"
            if elapsed >= error_threshold:
                logger.error("SLOW PERFORMANCE: %s", message)
            elif elapsed >= warn_threshold:
                logger.warning("PERFORMANCE WARNING: %s", message)
            else:
                logger.debug(message)

            return result

        return wrapper

    return decorator


class LoggerMixin:
    """Mixin class that provides a ``self.logger`` named after the class.

    Example:
        class ReportBuilder(LoggerMixin):
            def build(self, transactions):
                self.logger.debug("Building report")
    """

    @property
    def logger(self):
        """Logger named after the concrete class."""
        return get_logger(f"{self.__class__.__module__}.{self.__class__.__name__}")

    def log_operation_start(self, operation: str, details: str = ""):
        """Log the start of an operation."""
        details_str = f": {details}" if details else ""
        self.logger.debug("Starting %s%s", operation, details_str)

    def log_operation_success(
        self, operation: str, duration: float | None = None, details: str = ""
    ):
        """Log successful completion of an operation."""
        timing_str = f" ({duration:.3f}s)" if duration else ""
        details_str = f": {details}" if details else ""
        self.logger.debug("Completed %s%s%s", operation, timing_str, details_str)
