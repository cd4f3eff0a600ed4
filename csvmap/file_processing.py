"""
Utility functions for file upload and processing
"""
import os
from typing import Tuple

from werkzeug.utils import secure_filename

from .csv_parsing import Table, parse_csv
from .exceptions import MalformedInputError


def is_csv_upload(filename: str, mimetype: str) -> bool:
    return mimetype == 'text/csv' or os.path.splitext(filename or "")[1].lower() == '.csv'


def decode_csv_bytes(raw: bytes) -> str:
    """Decode uploaded bytes as UTF-8, dropping a byte order mark."""
    try:
        return raw.decode('utf-8-sig')
    except UnicodeDecodeError as e:
        raise MalformedInputError("The file is not valid UTF-8 text.") from e


def read_uploaded_csv(uploaded_file) -> Tuple[str, Table]:
    """
    Validate an uploaded file and parse it. Returns (safe filename, table).
    Raises MalformedInputError on invalid upload.
    """
    if not uploaded_file or not uploaded_file.filename:
        raise MalformedInputError("No file selected.")
    if not is_csv_upload(uploaded_file.filename, uploaded_file.mimetype):
        raise MalformedInputError("Please upload a valid .csv file.")
    filename = secure_filename(uploaded_file.filename) or "upload.csv"
    text = decode_csv_bytes(uploaded_file.read())
    return filename, parse_csv(text)


def read_csv_file(filepath: str) -> Table:
    """
    Read a CSV file from disk into a Table.
    """
    with open(filepath, 'rb') as f:
        return parse_csv(decode_csv_bytes(f.read()))
