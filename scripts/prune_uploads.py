#!/usr/bin/env python3
"""
List uploaded images that no record references, optionally deleting them.

Usage:
  python scripts/prune_uploads.py [--resource news] [--apply]

Run while the API is idle: an upload whose request is still in flight has no
record yet and would be reported as orphaned.
"""
from __future__ import annotations

import argparse
import sys

from school_api.core.config import get_settings
from school_api.domain.resources import RESOURCES
from school_api.services.resource_service import ResourceService


def main() -> None:
    ap = argparse.ArgumentParser(description="Find orphaned uploads")
    ap.add_argument("--resource", choices=sorted(RESOURCES), help="Only check this resource")
    ap.add_argument("--apply", action="store_true", help="Delete the orphaned files")
    args = ap.parse_args()

    settings = get_settings()
    names = [args.resource] if args.resource else list(RESOURCES)
    total = 0
    for name in names:
        store = ResourceService.from_settings(RESOURCES[name], settings).store
        orphans = store.orphaned_uploads()
        total += len(orphans)
        for filename in orphans:
            if args.apply:
                status = "removed" if store.discard_upload(filename) else "FAILED"
            else:
                status = "orphan"
            print(f"{name}/{filename}: {status}")
    action = "removed" if args.apply else "found"
    print(f"OK: {total} orphaned upload(s) {action}")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - CLI usage
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
