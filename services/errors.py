"""
Exceptions raised by the recital workflow services.
"""


class RecitalWorkflowError(Exception):
    """Base class for all workflow failures."""


class ConfigurationError(RecitalWorkflowError):
    """A named range, sheet, table or workflow option is missing or malformed."""


class WorkbookIOError(RecitalWorkflowError):
    """The workbook could not be opened or saved."""
