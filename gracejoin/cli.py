"""Command line entry point: join two relation files and print the result."""

from __future__ import annotations

import sys
from collections.abc import Sequence

from .join import partition, probe
from .storage import Disk, StorageError

_USAGE = "Usage: gracejoin left_rel.txt right_rel.txt"


def format_result(page_ids: Sequence[int], disk: Disk) -> str:
    """Render the join result pages held on disk."""
    parts = [f"Size of GHJ result: {len(page_ids)} pages\n"]
    for index, page_id in enumerate(page_ids):
        parts.append(f"Page {index} with disk id = {page_id}\n")
        parts.append(disk.read(page_id).describe())
    return "".join(parts)


def main(argv: Sequence[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 2:
        print("Error: Wrong command line usage.", file=sys.stderr)
        print(_USAGE, file=sys.stderr)
        return 1

    disk = Disk()
    try:
        left = disk.load_relation(args[0])
        right = disk.load_relation(args[1])
        from .storage import Mem

        mem = Mem()
        buckets = partition(disk, mem, left, right)
        result = probe(disk, mem, buckets)
    except (StorageError, OSError, UnicodeDecodeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    sys.stdout.write(format_result(result, disk))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())