"""
Utility functions for the mg2tf exporter.

Logging Level Standards:
------------------------
- ERROR: Fatal failures that stop the run
         "Failed to fetch management groups: {e}"
- WARNING: Permissive fallbacks on malformed input
           "Response body is not valid JSON; treating it as an empty listing"
- INFO: Progress messages, node counts
        "There are 42 groups and subscriptions"
- DEBUG: Per-node detail and request metadata
"""
import hashlib
import logging
import os
import re
import sys
from datetime import datetime, timezone
from typing import Optional, TextIO

from rich.console import Console
from rich.table import Table

from .constants import DEFAULT_STRIP_PREFIX
from .models import NodeKind, NodeTable
from .render import sanitize_display_name

logger = logging.getLogger(__name__)


# =============================================================================
# Errors
# =============================================================================

class Mg2TfError(Exception):
    """Base class for fatal exporter errors.

    Carries the exception that caused it, if any, so the entry point can log
    both the summary message and the underlying cause.
    """
    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(message)


class ConfigError(Mg2TfError):
    """Required configuration (tenant, subscription, token) is missing or empty."""


class FetchError(Mg2TfError):
    """The descendants listing could not be retrieved."""


# =============================================================================
# Redaction
# =============================================================================

def hash_sensitive_id(value: str, prefix: str = "") -> str:
    """Consistent short hash of a sensitive value, so log lines stay correlatable."""
    if not value:
        return value
    digest = hashlib.sha256(value.encode('utf-8')).hexdigest()[:12]
    return f"{prefix}{digest}" if prefix else digest


_LOG_REDACT_PATTERNS = [
    # Bearer tokens in headers or error messages
    (re.compile(r'(Bearer\s+)[A-Za-z0-9\-._~+/]+=*'), lambda m: f"{m.group(1)}***"),
    # Subscription IDs - preserve the path prefix
    (re.compile(r'(/subscriptions/)([0-9a-f-]{36})', re.IGNORECASE),
     lambda m: f"{m.group(1)}{hash_sensitive_id(m.group(2).lower())[:8]}"),
    # Remaining GUIDs (tenant IDs, management group names)
    (re.compile(r'\b([0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12})\b', re.IGNORECASE),
     lambda m: f"id-{hash_sensitive_id(m.group(1).lower())[:8]}"),
]


def redact_log_message(message: str) -> str:
    """Mask bearer tokens and hash GUIDs in a log message."""
    if not message:
        return message

    for pattern, replacer in _LOG_REDACT_PATTERNS:
        message = pattern.sub(replacer, message)

    return message


class RedactingFilter(logging.Filter):
    """
    Logging filter that redacts tokens and tenant identifiers.

    Attached to the file handler only; console output is left intact.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.msg:
            record.msg = redact_log_message(str(record.msg))
        if record.args:
            record.args = tuple(
                redact_log_message(arg) if isinstance(arg, str) else arg
                for arg in record.args
            )
        return True


# =============================================================================
# Logging
# =============================================================================

def setup_logging(level: str = "INFO", log_dir: Optional[str] = None) -> logging.Logger:
    """
    Setup logging with console output on stderr and an optional log file.

    Standard output is reserved for the rendered Terraform, so every handler
    here writes elsewhere.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_dir: If provided, also write logs to a file in this directory

    Returns:
        Logger instance
    """
    numeric_level = getattr(logging, str(level).upper(), logging.INFO)

    formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Clear existing handlers to avoid duplicates
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        timestamp = datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')
        log_file = os.path.join(log_dir, f"mg2tf_log_{timestamp}.log")

        file_handler = logging.FileHandler(log_file, mode='w')
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(RedactingFilter())
        root_logger.addHandler(file_handler)

        root_logger.info(f"Logging to: {log_file}")

    return logging.getLogger(__name__)


# =============================================================================
# Output
# =============================================================================

def print_summary_table(table: NodeTable, console: Optional[Console] = None,
                        strip_prefix: str = DEFAULT_STRIP_PREFIX) -> None:
    """Print one row per management group with its child counts."""
    console = console or Console(stderr=True)

    groups = list(table.groups())
    if not groups:
        console.print("No management groups found.")
        return

    counts = table.count_by_kind()
    summary = Table(
        title="Management Groups",
        caption=f"{counts[NodeKind.GROUP]} groups, {counts[NodeKind.SUBSCRIPTION]} subscriptions",
    )
    summary.add_column("Group")
    summary.add_column("Parent")
    summary.add_column("Child groups", justify="right")
    summary.add_column("Subscriptions", justify="right")

    total_children = 0
    total_subscriptions = 0
    for node in groups:
        child_count = len(node.child_group_indices)
        sub_count = len(node.child_subscription_indices)
        total_children += child_count
        total_subscriptions += sub_count

        parent = ""
        if node.parent_id in table.index:
            parent = sanitize_display_name(table.get(node.parent_id).display_name, strip_prefix)

        summary.add_row(
            sanitize_display_name(node.display_name, strip_prefix),
            parent,
            str(child_count),
            str(sub_count),
        )

    summary.add_section()
    summary.add_row("TOTAL", "", str(total_children), str(total_subscriptions))
    console.print(summary)


def open_output(filepath: Optional[str]) -> TextIO:
    """Standard output unless a file path is given."""
    if not filepath:
        return sys.stdout
    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)
    return open(filepath, 'w')
