"""
Command line tools for inspecting and maintaining stored indexes.

    embedindex dump   --db clientVectorDB --table ClientEmbeddingStore
    embedindex import records.json --db ... --table ... [--replace]
    embedindex search --vector 0.1,0.2,0.3 --top-k 5 --filter lang=en
    embedindex drop   --db ... [--table ...]
    embedindex config
"""

import argparse
import json
import sys

from .core.config import DEFAULT_DB_NAME, DEFAULT_TABLE_NAME, DEFAULT_TOP_K, get_storage_gateway, validate_config
from .core.errors import EmbeddingIndexError
from .vector.index import EmbeddingIndex


def _parse_vector(text):
    try:
        return [float(part) for part in text.split(",") if part.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid vector: {text!r}")


def _parse_filter(pairs):
    """Turn key=value pairs into a filter; values are parsed as JSON when possible."""
    result = {}
    for pair in pairs or []:
        if "=" not in pair:
            raise argparse.ArgumentTypeError(f"filter must be key=value, got {pair!r}")
        key, raw = pair.split("=", 1)
        try:
            result[key] = json.loads(raw)
        except json.JSONDecodeError:
            result[key] = raw
    return result


def _add_storage_args(parser, table=True):
    parser.add_argument("--db", default=DEFAULT_DB_NAME, help=f"Database name (default: {DEFAULT_DB_NAME})")
    if table:
        parser.add_argument("--table", default=DEFAULT_TABLE_NAME, help=f"Table name (default: {DEFAULT_TABLE_NAME})")


def build_parser():
    parser = argparse.ArgumentParser(prog="embedindex", description="Embedding index storage tools")
    sub = parser.add_subparsers(dest="command", required=True)

    dump = sub.add_parser("dump", help="Print every stored record")
    _add_storage_args(dump)

    load = sub.add_parser("import", help="Import a JSON list of records into storage")
    load.add_argument("path", help="JSON file holding a list of records")
    load.add_argument("--replace", action="store_true", help="Replace the table instead of appending")
    _add_storage_args(load)

    search = sub.add_parser("search", help="Search a stored table")
    search.add_argument("--vector", required=True, type=_parse_vector, help="Comma separated query vector")
    search.add_argument("--top-k", type=int, default=DEFAULT_TOP_K, help=f"Number of results (default: {DEFAULT_TOP_K})")
    search.add_argument("--filter", nargs="*", default=[], help="key=value equality filters")
    _add_storage_args(search)

    drop = sub.add_parser("drop", help="Delete a database, or one table with --table")
    _add_storage_args(drop, table=False)
    drop.add_argument("--table", default=None, help="Table to delete (default: whole database)")

    sub.add_parser("config", help="Validate configuration")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "config":
        issues = validate_config()
        if issues:
            for issue in issues:
                print(f"ERROR: {issue}")
            return 1
        print("Configuration OK")
        return 0

    index = EmbeddingIndex(storage=get_storage_gateway())

    try:
        if args.command == "dump":
            records = index.load_all(args.db, args.table)
            print(f"{len(records)} records in {args.db}/{args.table}")
            for i, record in enumerate(records, start=1):
                print(f"Item {i}: {json.dumps(record)}")

        elif args.command == "import":
            with open(args.path, encoding="utf-8") as fh:
                records = json.load(fh)
            if not isinstance(records, list):
                print("ERROR: import file must contain a JSON list of records")
                return 1
            for record in records:
                index.add(record)
            written = index.save_all(args.db, args.table, replace=args.replace)
            print(f"Imported {written} records into {args.db}/{args.table}")

        elif args.command == "search":
            try:
                filter = _parse_filter(args.filter)
            except argparse.ArgumentTypeError as e:
                parser.error(str(e))
            # an explicit preload so a storage failure is reported instead of an empty result
            index.preload(args.db, args.table)
            results = index.search(args.vector, top_k=args.top_k, filter=filter, source="storage",
                                   db_name=args.db, table_name=args.table)
            for result in results:
                record = {k: v for k, v in result.record.items() if k != "embedding"}
                print(f"{result.similarity:.4f}  {json.dumps(record)}")

        elif args.command == "drop":
            if args.table:
                index.delete_table(args.db, args.table)
                print(f"Object store '{args.table}' deleted from database '{args.db}'")
            else:
                index.delete_database(args.db)
                print(f"Database '{args.db}' deleted")

    except (EmbeddingIndexError, OSError, json.JSONDecodeError) as e:
        print(f"ERROR: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
