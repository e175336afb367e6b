"""Structured logging utility for the embedding index."""

import logging
from typing import Any, Dict, Optional

from ..core.config import debug_enabled


class StructuredLogger:
    """Structured logger for record, storage, cache and search operations."""

    def __init__(self, name: str = "embedindex"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG if debug_enabled() else logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None, level: int = logging.INFO):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        self.logger.log(level, message)

    def log_record_operation(self, operation: str, filter: Optional[Dict[str, Any]] = None, status: str = "success", details: Dict[str, Any] = None):
        """Log a record store operation."""
        log_details = {}
        if filter is not None:
            log_details["filter"] = _truncate_mapping(filter)
        if details:
            log_details.update(details)

        level = logging.INFO if status == "success" else logging.WARNING
        self.log_operation(f"records.{operation}", status, log_details, level)

    def log_storage_operation(self, operation: str, db_name: str, table_name: str = None, status: str = "success", details: Dict[str, Any] = None):
        """Log a durable storage operation."""
        log_details = {"db": db_name}
        if table_name is not None:
            log_details["table"] = table_name
        if details:
            log_details.update(details)

        level = logging.ERROR if status == "failed" else logging.INFO
        self.log_operation(f"storage.{operation}", status, log_details, level)

    def log_cache_event(self, event: str, db_name: str = None, table_name: str = None, details: Dict[str, Any] = None):
        """Log a storage cache event (hit, miss, preload, invalidate)."""
        log_details = {}
        if db_name is not None:
            log_details["identity"] = f"{db_name}/{table_name}"
        if details:
            log_details.update(details)

        self.log_operation(f"cache.{event}", "ok", log_details)

    def log_search(self, source: str, start_time: float, end_time: float, candidates: int, results: int, status: str = "success"):
        """Log a search call with its timing."""
        duration_ms = round((end_time - start_time) * 1000, 2)
        log_details = {
            "source": source,
            "candidates": candidates,
            "results": results,
            "duration_ms": duration_ms,
        }
        self.log_operation("search", status, log_details)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)


def _truncate_mapping(values: Dict[str, Any]) -> Dict[str, Any]:
    """Shorten long values so filters and records stay readable in logs."""
    truncated = {}
    for k, v in values.items():
        if k == "embedding":
            truncated[k] = f"<{_safe_len(v)} dims>"
        elif isinstance(v, str) and len(v) > 50:
            truncated[k] = v[:47] + "..."
        else:
            truncated[k] = v
    return truncated


def _safe_len(value: Any) -> Any:
    try:
        return len(value)
    except TypeError:
        return "?"


# Global logger instance
logger = StructuredLogger()
