"""
CSV Mapper: upload a CSV, resolve each row to a coordinate and explore the
rows as markers on an interactive map.
"""

__version__ = "1.0.0"
