"""
Sample CSV Generator

Creates a small example file showing both ways a row can be placed on the
map: explicit latitude/longitude values, or a place name to geocode.
"""
import io
from typing import Optional

import pandas as pd

COLUMNS = ["Name", "City", "Country", "Category", "Latitude", "Longitude"]

SAMPLE_ROWS = [
    {
        "Name": "Harbour Office",
        "City": "Sydney",
        "Country": "Australia",
        "Category": "Office",
        "Latitude": "-33.8568",
        "Longitude": "151.2153",
    },
    {
        "Name": "Central Warehouse",
        "City": "Rotterdam",
        "Country": "Netherlands",
        "Category": "Warehouse",
        "Latitude": "51.9244",
        "Longitude": "4.4777",
    },
    {
        "Name": "Pop-up Store, \"Downtown\"",
        "City": "Denver",
        "Country": "United States",
        "Category": "Retail",
        "Latitude": "",
        "Longitude": "",
    },
]


def create_sample_dataframe() -> pd.DataFrame:
    return pd.DataFrame(SAMPLE_ROWS, columns=COLUMNS)


def create_sample_csv(output_path: Optional[str] = None) -> str:
    """
    Render the sample rows as CSV text.

    Args:
        output_path: When given, the CSV is also written to this path

    Returns:
        The CSV text
    """
    buffer = io.StringIO()
    create_sample_dataframe().to_csv(buffer, index=False, lineterminator="\n")
    text = buffer.getvalue()
    if output_path:
        with open(output_path, "w", encoding="utf-8", newline="") as f:
            f.write(text)
    return text
