"""
Utility functions for input validation
"""
from flask import abort


def validate_column(table, column: str):
    """
    Ensure the column exists in the loaded table, aborts with 400 if not.
    """
    if table is None or column not in table.headers:
        abort(400, description=f"Unknown column: {column}")
    return column


def validate_str_length(value: str, max_length: int):
    """
    Validate string input length, aborts with 400 if exceeds.
    """
    if value and len(value) > max_length:
        abort(400, description=f"Input too long (max {max_length} characters)")
    return value or ""
