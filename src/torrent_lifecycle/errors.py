"""
User-friendly error handling for torrent lifecycle automation
Provides clear, actionable error messages without Python stack traces
"""

import sys
from typing import Optional

from torrent_lifecycle.logging import get_logger

logger = get_logger(__name__)


class LifecycleError(Exception):
    """Base exception for all torrent lifecycle errors"""

    def __init__(self, code: str, message: str, details: Optional[dict] = None, fix: Optional[str] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        self.fix = fix
        super().__init__(self.format_error())

    def format_error(self) -> str:
        """Format error message for user display"""
        lines = [self.message]

        if self.details:
            for key, value in self.details.items():
                lines.append(f"  • {key}: {value}")

        if self.fix:
            lines.append(f"  • Fix: {self.fix}")

        return "\n".join(lines)

    def add_detail(self, key: str, value) -> None:
        """Attach context while the error propagates"""
        self.details[key] = value
        self.args = (self.format_error(),)


# Backend errors

class ConnectError(LifecycleError):
    """Cannot authenticate with or reach the backend"""

    def __init__(self, client: str, host: str, reason: str):
        self.client = client
        super().__init__(
            code="CONN-001",
            message="Cannot connect to download client",
            details={
                "Client": client,
                "Host": host,
                "Error": reason
            },
            fix="Check that the client is running and the host, username and password are correct"
        )


class UnsupportedVersionError(LifecycleError):
    """Backend API version is below the supported minimum"""

    def __init__(self, client: str, version: str, minimum: str):
        self.client = client
        self.version = version
        self.minimum = minimum
        super().__init__(
            code="CONN-002",
            message="Unsupported Web API version",
            details={
                "Client": client,
                "Version": version,
                "Minimum": minimum
            },
            fix="Upgrade the download client to a release exposing a newer Web API"
        )


class FetchError(LifecycleError):
    """Retrieving the torrent list or a torrent's details failed"""

    def __init__(self, operation: str, reason: str, torrent_hash: Optional[str] = None):
        self.operation = operation
        self.torrent_hash = torrent_hash
        details = {"Operation": operation}
        if torrent_hash:
            details["Hash"] = torrent_hash
        details["Error"] = reason

        super().__init__(
            code="FETCH-001",
            message="Cannot retrieve torrents",
            details=details,
            fix="Check the download client logs; no torrents were processed"
        )


class LabelError(LifecycleError):
    """Backend rejected a label (category) change"""

    def __init__(self, torrent_hash: str, label: str, reason: str):
        self.torrent_hash = torrent_hash
        self.label = label
        super().__init__(
            code="LABEL-001",
            message="Cannot set torrent label",
            details={
                "Hash": torrent_hash,
                "Label": label,
                "Error": reason
            },
            fix="Create the category in the download client before relabeling"
        )


class RemovalStepError(LifecycleError):
    """A step of the removal sequence failed"""

    def __init__(self, step: str, torrent_hash: str, reason: str):
        self.step = step
        self.torrent_hash = torrent_hash
        super().__init__(
            code="REMOVE-001",
            message=f"Torrent removal failed while {step}",
            details={
                "Hash": torrent_hash,
                "Step": step,
                "Error": reason
            },
            fix="The torrent was left in its current state; check it in the download client"
        )


class DiskQueryError(LifecycleError):
    """Free space could not be read for a path"""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(
            code="DISK-001",
            message="Cannot query free disk space",
            details={
                "Path": path,
                "Error": reason
            },
            fix="Set free_space_path to a directory that exists and is readable"
        )


# Predicate errors

class PredicateEvalError(LifecycleError):
    """A predicate raised while being evaluated against a torrent"""

    def __init__(self, torrent_hash: str, rule: str, reason: str, code: str = "PRED-001",
                 message: str = "Rule evaluation failed"):
        self.torrent_hash = torrent_hash
        self.rule = rule
        super().__init__(
            code=code,
            message=message,
            details={
                "Hash": torrent_hash,
                "Rule": rule,
                "Problem": reason
            },
            fix="Check the rule's field names and value types"
        )


class PredicateTypeError(PredicateEvalError):
    """A predicate returned something other than a boolean"""

    def __init__(self, torrent_hash: str, rule: str, result: object):
        self.result = result
        super().__init__(
            torrent_hash,
            rule,
            f"expected bool, got {type(result).__name__}: {result!r}",
            code="PRED-002",
            message="Rule did not evaluate to a boolean"
        )


# Configuration errors

class ConfigurationError(LifecycleError):
    """Configuration file error"""

    def __init__(self, file_path: str, reason: str):
        super().__init__(
            code="CFG-001",
            message="Cannot load configuration",
            details={
                "File": file_path,
                "Problem": reason
            },
            fix="Check that the configuration file exists and has valid YAML syntax"
        )


class FieldError(LifecycleError):
    """Invalid field reference in condition"""

    def __init__(self, field: str, reason: str, valid_fields: Optional[list] = None):
        details = {
            "Field": field,
            "Problem": reason
        }
        if valid_fields:
            details["Valid fields"] = ", ".join(valid_fields)

        super().__init__(
            code="FIELD-001",
            message="Invalid field reference",
            details=details,
            fix="Use a torrent attribute name such as 'ratio', 'seeding_days' or 'tracker_name'"
        )


class OperatorError(LifecycleError):
    """Unknown operator in condition"""

    def __init__(self, operator: str, field: str):
        valid_operators = "==, !=, >, <, >=, <=, contains, not_contains, matches, in, not_in"
        super().__init__(
            code="OP-001",
            message="Unknown operator",
            details={
                "Operator": operator,
                "Field": field,
                "Valid operators": valid_operators
            },
            fix="Use one of the supported operators"
        )


def handle_errors(func):
    """Decorator for user-friendly error handling"""
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except LifecycleError as e:
            logger.error(str(e))
            sys.exit(1)
        except KeyboardInterrupt:
            logger.info("\nOperation cancelled by user")
            sys.exit(0)
        except Exception as e:
            logger.error("Unexpected error occurred")
            logger.error(f"  • Error: {type(e).__name__}: {str(e)}")
            logger.error("  • Fix: Please report this issue with the error details above")
            logger.debug("Full stack trace:", exc_info=True)
            sys.exit(1)
    return wrapper
