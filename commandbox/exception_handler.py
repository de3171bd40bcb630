import logging
import traceback
from collections import deque
from typing import Any, Deque, Dict

from .errors import PersistenceError


def setup_logging(level: str | None = None) -> logging.Logger:
    """Configure the shared commandbox logger.

    The level is only changed when one is given.
    """
    logger = logging.getLogger("commandbox")
    if level:
        logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


MAX_COLLECTED_ERRORS = 100


class ErrorHandler:
    """Collects recoverable store errors so callers can report them.

    Only the most recent ``max_errors`` entries are kept.
    """

    def __init__(self, log_level: str | None = None, max_errors: int = MAX_COLLECTED_ERRORS):
        self.logger = setup_logging(log_level)
        self.errors: Deque[Dict[str, Any]] = deque(maxlen=max_errors)

    def handle_error(self, error: Exception, context: Dict[str, Any]) -> Dict[str, Any]:
        """Log an error and keep it with its context."""
        error_info = {
            "type": type(error).__name__,
            "message": str(error),
            "context": context,
            "traceback": traceback.format_exc() if self.logger.isEnabledFor(logging.DEBUG) else None
        }

        self.logger.error(
            f"{error_info['type']}: {error_info['message']} | Context: {context}"
        )

        self.errors.append(error_info)

        return error_info

    def collect_persistence_error(self, error: PersistenceError, operation: str | None = None) -> Dict[str, Any]:
        """Collect a storage port failure with its key and operation."""
        context = {
            "key": error.key or "unknown",
            "operation": operation or error.operation or "unknown",
        }
        return self.handle_error(error, context)

    def get_error_summary(self) -> Dict[str, Any]:
        if not self.errors:
            return {"total_errors": 0, "error_types": {}, "failed_keys": []}

        error_types: Dict[str, int] = {}
        failed_keys = []

        for error in self.errors:
            error_type = error["type"]
            error_types[error_type] = error_types.get(error_type, 0) + 1

            context = error.get("context", {})
            if "key" in context:
                failed_keys.append({
                    "key": context["key"],
                    "error": error["message"],
                    "operation": context.get("operation", "unknown")
                })

        return {
            "total_errors": len(self.errors),
            "error_types": error_types,
            "failed_keys": failed_keys
        }

    def clear_errors(self):
        self.errors.clear()

    def format_error_report(self) -> str:
        """Format a user-facing report of collected storage errors."""
        summary = self.get_error_summary()

        if summary["total_errors"] == 0:
            return ""

        lines = [
            f"Storage warnings: {summary['total_errors']} errors occurred",
            ""
        ]

        if summary["failed_keys"]:
            lines.append("Failed Keys:")
            for failure in summary["failed_keys"][:5]:
                lines.append(f"  • {failure['key']} ({failure['operation']}): {failure['error']}")

            if len(summary["failed_keys"]) > 5:
                lines.append(f"  ... and {len(summary['failed_keys']) - 5} more")

        return "\n".join(lines)
