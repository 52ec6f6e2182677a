"""
Service layer for the recital workflow.

This package contains framework-agnostic business logic that can be used
by the CLI or any other interface driving a planning workbook.
"""

__version__ = "1.0.0"
