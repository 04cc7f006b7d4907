"""
Utility helpers used by the migration tool.

This subpackage exposes the error taxonomy and the structured logging
helpers.  The ledger, image pool and pre-flight checks live in their own
modules and are imported from there.
"""

from .errors import ERRORS, log_message, report_error, report_ok

__all__ = ["ERRORS", "log_message", "report_error", "report_ok"]
