#!/usr/bin/env python3
"""
Import accessory catalog entries from a YAML file into an existing database.

Unlike the startup seed (which only fills an empty table), this merges:
entries already present for the same brand/category/name are skipped.

Usage:
  python scripts/import_accessory_catalog.py [path/to/catalog.yaml]
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import yaml

from drone_fleet.core.settings import Settings
from drone_fleet.db.session import create_engine_and_sessionmaker
from drone_fleet.repositories.sql import SqlFleetStore
from drone_fleet.services.accessory_catalog_service import AccessoryCatalogService


def import_catalog(path: Path) -> None:
    settings = Settings()
    db_runtime = create_engine_and_sessionmaker(settings.database_url)

    with path.open("r", encoding="utf-8") as f:
        items = (yaml.safe_load(f) or {}).get("accessory_catalog") or []

    print(f"Found {len(items)} catalog items in {path}.")

    with db_runtime.SessionLocal() as db:
        svc = AccessoryCatalogService(SqlFleetStore(db))
        added, skipped = svc.merge_entries(items)

        for row in added:
            print(f"  ✓ Added {row.brand} / {row.category} / {row.name}")
        for item in skipped:
            print(f"  ➜ Skipped {item!r} (already present or incomplete)")
        print(f"\n✓ Success! Added {len(added)} catalog entries, skipped {len(skipped)}")


if __name__ == "__main__":
    default = Path(__file__).parent.parent / "config" / "accessory_catalog.yaml"
    target = Path(sys.argv[1]) if len(sys.argv) > 1 else default
    print("=" * 60)
    print("Accessory Catalog Import")
    print("=" * 60)
    import_catalog(target)
    print("=" * 60)
