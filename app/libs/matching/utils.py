"""
Utility functions for the matching engine.
"""

import inspect
from functools import wraps
from time import time
from typing import Any, List

from loguru import logger

from app.core.config import settings


def log_performance(func_name: str, elapsed: float, **kwargs) -> None:
    """
    Log operation timing, escalating the level for slow operations.

    Args:
        func_name: Function name
        elapsed: Elapsed time in seconds
        **kwargs: Additional context
    """
    log_data = {
        "function": func_name,
        "elapsed_time": f"{elapsed:.6f}s",
        **kwargs,
    }

    elapsed_ms = elapsed * 1000
    if elapsed_ms > settings.slow_operation_threshold_ms:
        logger.warning(f"Slow operation detected: {func_name}", **log_data)
    elif elapsed_ms > settings.slow_operation_threshold_ms / 4:
        logger.info(f"Operation timing: {func_name}", **log_data)
    else:
        logger.debug(f"Operation completed: {func_name}", **log_data)


def performance_log(func):
    """
    Decorator to log function performance.

    Args:
        func: Function to be decorated

    Returns:
        Decorated function with performance logging
    """
    @wraps(func)
    async def async_wrapper(*args, **kwargs):
        start_time = time()
        try:
            result = await func(*args, **kwargs)
            log_performance(func.__name__, time() - start_time)
            return result
        except Exception as e:
            elapsed = time() - start_time
            logger.error(
                f"Error in {func.__name__}",
                error=str(e),
                error_type=type(e).__name__,
                elapsed_time=f"{elapsed:.6f}s",
            )
            raise

    @wraps(func)
    def sync_wrapper(*args, **kwargs):
        start_time = time()
        try:
            result = func(*args, **kwargs)
            log_performance(func.__name__, time() - start_time)
            return result
        except Exception as e:
            elapsed = time() - start_time
            logger.error(
                f"Error in {func.__name__}",
                error=str(e),
                error_type=type(e).__name__,
                elapsed_time=f"{elapsed:.6f}s",
            )
            raise

    if inspect.iscoroutinefunction(func):
        return async_wrapper
    return sync_wrapper


def trace_sql_execution(query: str, params: List[Any]) -> None:
    """Log a SQL query with long parameters truncated."""
    max_query_length = 1000
    truncated_query = query[:max_query_length] + "..." if len(query) > max_query_length else query

    sanitized_params = []
    for param in params:
        if isinstance(param, str) and len(param) > 100:
            sanitized_params.append(param[:50] + "...")
        else:
            sanitized_params.append(param)

    logger.debug("Executing SQL query", query=truncated_query, params=sanitized_params)
