"""
Structured logging for vector store, search and document store operations.
"""

import logging
import os
from typing import Any, Dict, Optional

_MAX_VALUE_LEN = 50


def _resolve_level() -> int:
    if os.getenv("DEBUG", "false").lower() == "true":
        return logging.DEBUG
    level_name = os.getenv("DOCVEC_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def _truncate(details: Dict[str, Any]) -> Dict[str, Any]:
    truncated = {}
    for k, v in details.items():
        if isinstance(v, str) and len(v) > _MAX_VALUE_LEN:
            truncated[k] = v[:_MAX_VALUE_LEN] + "..."
        else:
            truncated[k] = v
    return truncated


class StructuredLogger:
    """Structured logger emitting 'Operation: x, Status: y, Details: {...}' lines."""

    def __init__(self, name: str = "docvec"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(_resolve_level())

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Optional[Dict[str, Any]] = None):
        """Log a structured operation. Failed operations are logged at WARNING."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {_truncate(details)}"

        if status in ("failed", "rejected"):
            self.logger.warning(message)
        else:
            self.logger.info(message)

    def log_index_operation(self, operation: str, index_name: str, details: Optional[Dict[str, Any]] = None, status: str = "success"):
        """Log an index lifecycle operation (create, delete, describe)."""
        log_details = {"index": index_name}
        if details:
            log_details.update(details)

        self.log_operation(f"index.{operation}", status, log_details)

    def log_vector_operation(self, operation: str, index_name: str, count: int, details: Optional[Dict[str, Any]] = None, status: str = "success"):
        """Log a record-level operation (upsert, update, delete)."""
        log_details = {"index": index_name, "count": count}
        if details:
            log_details.update(details)

        self.log_operation(f"vector.{operation}", status, log_details)

    def log_query(self, index_name: str, top_k: int, n_results: int, filtered: bool = False, min_score: Optional[float] = None):
        """Log a similarity query. Queries are chatty so they go to DEBUG."""
        details = {
            "index": index_name,
            "top_k": top_k,
            "n_results": n_results,
            "filtered": filtered,
        }
        if min_score is not None:
            details["min_score"] = min_score
        self.logger.debug(f"Operation: vector.query, Status: success, Details: {details}")

    def log_document_operation(self, operation: str, identifier: str, details: Optional[Dict[str, Any]] = None, status: str = "success"):
        """Log a document store operation (threads, messages, records)."""
        log_details = {"id": identifier}
        if details:
            log_details.update(details)

        self.log_operation(f"document.{operation}", status, log_details)

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


# Global logger instance
logger = StructuredLogger()
