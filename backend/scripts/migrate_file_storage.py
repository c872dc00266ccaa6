"""
Import legacy file-based inventories into the primary store.

Older deployments kept one JSON file per owner under user_data/
(<ownerId>.json, holding the inventory mapping). This copies each file
into the database, skipping owners that already have data there, and
checks the item count after writing.

Run locally:
  python -m scripts.migrate_file_storage --dir ../user_data

It uses the same DATABASE_* env vars as the backend (dotenv supported by core.config).
"""

from __future__ import annotations

import argparse
import asyncio
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from loguru import logger

from db.storage import InventoryStorage, StorageState, parse_record


@dataclass
class MigrationReport:
    migrated: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.migrated) + len(self.skipped) + len(self.failed)


async def migrate_directory(storage: InventoryStorage, user_data_dir: Path) -> MigrationReport:
    """Migrate every <owner>.json in user_data_dir. Requires a connected primary store."""
    report = MigrationReport()

    if not user_data_dir.is_dir():
        logger.info(f"No {user_data_dir} directory found - nothing to migrate")
        return report

    files = sorted(user_data_dir.glob("*.json"))
    if not files:
        logger.info("No JSON files found - nothing to migrate")
        return report

    logger.info(f"Found {len(files)} user files to migrate")

    for path in files:
        owner_id = path.stem
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(raw, dict):
                logger.error(f"{path.name} does not hold an inventory object, skipping")
                report.failed.append(owner_id)
                continue
            record = parse_record(raw, owner_id)

            existing = await storage.load(owner_id)
            if existing:
                logger.warning(f"Owner {owner_id} already has stored inventory, skipping")
                report.skipped.append(owner_id)
                continue

            await storage.save(owner_id, record)
            if storage.state != StorageState.CONNECTED:
                logger.error(f"Primary store lost while migrating {owner_id}; stopping")
                report.failed.append(owner_id)
                break

            # Count against the file, not the parsed record, so dropped entries show up
            saved = await storage.load(owner_id)
            if len(saved) == len(raw):
                logger.info(f"Migrated {len(raw)} items for owner {owner_id}")
                report.migrated.append(owner_id)
            else:
                logger.error(f"Migration check failed for {owner_id}: saved {len(saved)}/{len(raw)} items")
                report.failed.append(owner_id)
        except (OSError, ValueError) as exc:
            logger.error(f"Error migrating {path.name}: {exc}")
            report.failed.append(owner_id)

    logger.info(f"Migration complete: migrated {len(report.migrated)}/{report.total} owners")
    return report


async def main(user_data_dir: Path, storage: Optional[InventoryStorage] = None) -> MigrationReport:
    storage = storage or InventoryStorage.from_settings()
    # Must reach the primary store; raises otherwise
    await storage.connect()
    try:
        return await migrate_directory(storage, user_data_dir)
    finally:
        await storage.disconnect()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--dir", default="user_data", type=Path, help="directory of <ownerId>.json files")
    args = parser.parse_args()
    asyncio.run(main(args.dir))
