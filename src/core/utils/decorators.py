"""
Utility decorators for engine and host operations.
"""

import functools
import inspect
import time
import uuid
from collections.abc import Callable
from typing import Any, TypeVar

from loguru import logger

_CONTEXT_PARAMS = ["side", "size_delta", "leverage", "close_amount", "amount", "rate", "now"]
_RECORD_PARAMS = ["position", "user", "market"]

F = TypeVar("F", bound=Callable[..., Any])


def _extract_operation_context(bound_args: inspect.BoundArguments) -> dict[str, Any]:
    """Extract identifying context from function arguments."""
    context: dict[str, Any] = {}
    for param_name, value in bound_args.arguments.items():
        if param_name == "self":
            continue
        if param_name in _RECORD_PARAMS and value is not None:
            for key in ["user_id", "market_id"]:
                if hasattr(value, key):
                    context.setdefault(key, getattr(value, key))
        elif param_name in ["user_id", "market_id", "liquidator_id"]:
            context[param_name] = value
        elif param_name == "price":
            context["price"] = getattr(value, "price", value)
        elif param_name in _CONTEXT_PARAMS:
            context[param_name] = _serialize_parameter_value(value)
    return context


def _serialize_parameter_value(value: Any) -> Any:
    """Serialize parameter value for logging."""
    if hasattr(value, "value"):
        return str(value.value)  # Handle enum values
    return value


def _create_success_context(
    base_context: dict[str, Any], execution_time_ms: float, result: Any
) -> dict[str, Any]:
    """Create success logging context."""
    success_context = {
        **base_context,
        "success": True,
        "execution_time_ms": round(execution_time_ms, 2),
        "result_type": type(result).__name__,
    }

    record = getattr(result, "record", None)
    if record is not None:
        success_context["kind"] = record.kind.value
        success_context["margin_delta"] = record.margin_delta
        success_context["realized_pnl"] = record.realized_pnl
        success_context["open_interest"] = record.open_interest
    elif isinstance(result, bool | int | str):
        success_context["result"] = result

    return success_context


def _create_error_context(
    base_context: dict[str, Any], execution_time_ms: float, error: Exception
) -> dict[str, Any]:
    """Create error logging context."""
    return {
        **base_context,
        "success": False,
        "execution_time_ms": round(execution_time_ms, 2),
        "error_type": type(error).__name__,
        "error_message": str(error),
    }


def _setup_logging_context(
    func: Callable[..., Any], args: tuple[Any, ...], kwargs: dict[str, Any]
) -> dict[str, Any]:
    """Setup logging context for an operation."""
    sig = inspect.signature(func)
    bound_args = sig.bind(*args, **kwargs)
    bound_args.apply_defaults()

    return {
        "correlation_id": str(uuid.uuid4())[:8],
        "timestamp": str(time.time()),
        **_extract_operation_context(bound_args),
    }


def _execute_with_logging(
    func: Callable[..., Any],
    context: dict[str, Any],
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
) -> Any:
    """Execute function with start/success/failure logging."""
    func_name = func.__name__
    logger.info(f"Operation started: {func_name}", extra=context)
    start_time = time.perf_counter()

    try:
        result = func(*args, **kwargs)
    except Exception as e:
        execution_time_ms = (time.perf_counter() - start_time) * 1000
        error_context = _create_error_context(context, execution_time_ms, e)
        logger.error(f"Operation failed: {func_name}", extra=error_context)
        raise

    execution_time_ms = (time.perf_counter() - start_time) * 1000
    success_context = _create_success_context(context, execution_time_ms, result)
    logger.success(f"Operation completed: {func_name}", extra=success_context)
    return result


def log_operation(func: F) -> F:
    """Decorator to log engine operations with correlation IDs."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        context = _setup_logging_context(func, args, kwargs)
        return _execute_with_logging(func, context, args, kwargs)

    return wrapper  # type: ignore
