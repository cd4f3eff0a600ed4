#!/usr/bin/env python3
"""
CSV to Map CLI

Command-line interface for turning a CSV file into a standalone HTML map,
using the same parsing, geocoding and filtering rules as the web app.
"""

import argparse
import logging
import os
import sys
from pathlib import Path

import pandas as pd
from dotenv import load_dotenv

from csvmap.columns import detect_lat_lng_columns
from csvmap.config import load_config
from csvmap.exceptions import CsvMapperError
from csvmap.file_processing import read_csv_file
from csvmap.filtering import filter_markers
from csvmap.geocoding import create_geocoder, geocode_column
from csvmap.map_generation import create_folium_map, save_map_file, style_for_category
from csvmap.markers import markers_from_columns, markers_from_geocoding
from csvmap.sample_data import create_sample_csv


def build_parser():
    parser = argparse.ArgumentParser(
        description="Plot the rows of a CSV file on an interactive HTML map",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Map a file that has latitude/longitude columns
  python csv_to_map.py render stores.csv stores.html

  # Geocode the City column and colour markers by Category
  python csv_to_map.py render stores.csv stores.html --geocode-column City --category Category

  # Only rows in France that mention "paris" anywhere
  python csv_to_map.py render stores.csv paris.html --filter Country=France --search paris

  # Write a sample CSV
  python csv_to_map.py template --output sample_locations.csv
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    render_parser = subparsers.add_parser(
        'render',
        help='Render a CSV file as an HTML map'
    )
    render_parser.add_argument(
        'csv_file',
        help='Path to the input CSV file'
    )
    render_parser.add_argument(
        'output_file',
        help='Output HTML file path'
    )
    render_parser.add_argument(
        '--geocode-column',
        help='Column of place names to geocode when no coordinate columns are detected'
    )
    render_parser.add_argument(
        '--category',
        help='Colour markers by the values of this column'
    )
    render_parser.add_argument(
        '--search',
        default='',
        help='Only keep rows containing this text in any field'
    )
    render_parser.add_argument(
        '--filter',
        action='append',
        default=[],
        metavar='COLUMN=VALUE',
        help='Only keep rows whose COLUMN equals VALUE (repeatable)'
    )
    render_parser.add_argument(
        '--theme',
        choices=['light', 'dark'],
        default='light',
        help='Map tile theme (default: light)'
    )
    render_parser.add_argument(
        '--cluster',
        action='store_true',
        help='Group nearby markers into clusters'
    )
    render_parser.add_argument(
        '--force',
        action='store_true',
        help='Overwrite output file if it exists'
    )

    template_parser = subparsers.add_parser(
        'template',
        help='Create a sample CSV file'
    )
    template_parser.add_argument(
        '--output',
        default='sample_locations.csv',
        help='Output file path (default: sample_locations.csv)'
    )
    template_parser.add_argument(
        '--force',
        action='store_true',
        help='Overwrite the file if it exists'
    )
    return parser


def parse_filters(pairs):
    filters = {}
    for pair in pairs:
        column, sep, value = pair.partition('=')
        if not sep or not column:
            raise ValueError(f"Filters must look like COLUMN=VALUE, got {pair!r}")
        filters[column] = value
    return filters


def main(argv=None):
    load_dotenv(os.path.join(os.getcwd(), '.env'))
    logging.basicConfig(level=load_config()['LOG_LEVEL'], format='%(levelname)s: %(message)s')
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command == 'render':
            return handle_render(args)
        elif args.command == 'template':
            return handle_template(args)
    except (CsvMapperError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def handle_render(args):
    """Handle the render command."""

    csv_path = Path(args.csv_file)
    if not csv_path.exists():
        print(f"Error: CSV file not found: {csv_path}", file=sys.stderr)
        return 1

    output_path = Path(args.output_file)
    if not output_path.suffix:
        output_path = output_path.with_suffix('.html')
    if output_path.exists() and not args.force:
        print(f"Error: Output file already exists: {output_path}")
        print("Use --force to overwrite")
        return 1

    filters = parse_filters(args.filter)
    table = read_csv_file(str(csv_path))
    print(f"Read {len(table)} rows from {csv_path}")

    for column in list(filters) + ([args.category] if args.category else []):
        if column not in table.headers:
            print(f"Error: Unknown column: {column}", file=sys.stderr)
            return 1

    lat_column, lng_column = detect_lat_lng_columns(table.headers)
    if lat_column and lng_column:
        print(f"✓ Using coordinate columns {lat_column!r} and {lng_column!r}")
        markers = markers_from_columns(table.rows, lat_column, lng_column)
    elif args.geocode_column:
        if args.geocode_column not in table.headers:
            print(f"Error: Unknown column: {args.geocode_column}", file=sys.stderr)
            return 1
        print(f"Geocoding column {args.geocode_column!r}...")
        geocoder = create_geocoder(load_config())
        locations = geocode_column(table, args.geocode_column, geocoder)
        markers = markers_from_geocoding(table.rows, args.geocode_column, locations)
    else:
        print("Error: No latitude/longitude columns found; pass --geocode-column", file=sys.stderr)
        return 1

    if not markers:
        print("No locations found: no row could be placed on the map.")

    visible = filter_markers(markers, filters, args.search)
    m = create_folium_map(visible, style_for_category(args.category), args.theme, args.cluster)
    save_map_file(m, str(output_path))

    print(f"✓ Mapped {len(markers)}/{len(table)} rows, {len(visible)} shown after filtering")
    print(f"✓ Output file: {output_path}")

    if args.category and visible:
        categories = pd.Series([marker.data.get(args.category, "") for marker in visible]).value_counts()
        print(f"✓ Categories found: {len(categories)}")
        for category, count in categories.head(5).items():
            print(f"  - {category or '(blank)'}: {count} locations")
        if len(categories) > 5:
            print(f"  - ... and {len(categories) - 5} more categories")
    return 0


def handle_template(args):
    """Handle the template command."""

    output_path = Path(args.output)
    if output_path.exists() and not args.force:
        print(f"Error: File already exists: {output_path}")
        print("Use --force to overwrite")
        return 1

    create_sample_csv(str(output_path))
    print(f"✓ Sample file: {output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
