#!/usr/bin/env python3
"""
Replace the products collection with the contents of a JSON file.

Usage:
  python scripts/import_products.py --file products.json [--data-dir data/]
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from gostwear.core.config import get_settings
from gostwear.repositories.json_storage import RecordStore
from gostwear.services.catalog_service import PRODUCTS


def main(argv: list[str] | None = None) -> None:
    ap = argparse.ArgumentParser(description="Import the product catalog")
    ap.add_argument("--file", required=True, help="JSON array of products (each with an id)")
    ap.add_argument("--data-dir", help="Store directory (default: DATA_DIR / settings)")
    args = ap.parse_args(argv)

    source = Path(args.file)
    if not source.is_file():
        raise SystemExit(f"File '{source}' not found")
    products = json.loads(source.read_text(encoding="utf-8"))
    if not isinstance(products, list):
        raise SystemExit("File must hold a JSON array")

    data_dir = Path(args.data_dir) if args.data_dir else get_settings().data_dir
    store = RecordStore(data_dir)
    written = store.replace_all(PRODUCTS, products)
    print("OK: catalog imported")
    print(f"  Products: {len(written)}")
    print(f"  Target: {store.path_for(PRODUCTS)}")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - CLI usage
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
