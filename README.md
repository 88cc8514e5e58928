# gracejoin

`gracejoin` simulates a Grace hash join between two relations. It models a
small paged disk and a memory buffer with a fixed number of pages. It also
counts how often pages move between the two.

- A page holds 32 records.
- Memory holds 16 pages.
- The disk holds at most 999 pages.

The join runs in two phases.

1. **Partition.** Each relation is read into memory one page at a time. Every
   record is hashed on its key into one of 15 buckets, each with its own
   memory page. When a bucket's page fills up, it is flushed to disk. Pages
   that are only partly filled are flushed once the relation is done.
2. **Probe.** For each bucket, the side with fewer records goes into an
   in-memory hash table with 14 slots. On a tie, the left side goes in. The
   other side is then scanned against that table. Matching pairs are written
   to output pages, which are flushed to disk as they fill.

## Installation

```
pip install .
```

To install the test dependencies as well:

```
pip install .[test]
```

## Command line

Each input file is UTF-8 text with one record per line. A line is a key, a
single space, and then the data:

```
1 alice
2 bob
3 carol
```

A line with no space becomes a record whose key and data are both the whole
line.

Run the join:

```
gracejoin left_rel.txt right_rel.txt
```

The command first prints how many result pages there are. It then prints each
page in this form:

```
Size of GHJ result: 1 pages
Page 0 with disk id = 42
Record with key=2 and data=bob
Record with key=2 and data=robert
```

Within each matching pair, the record from the bucket's smaller side comes
first.

The command exits with status 1 in these cases:

- It is not given exactly two files. It prints a usage message.
- A file cannot be read or is not valid UTF-8. It prints an error message.
- A storage limit is hit, such as a full disk. It prints an error message.

## Library use

```python
from gracejoin.storage import Disk, Mem
from gracejoin.join import partition, probe
from gracejoin.cli import format_result

disk = Disk()
mem = Mem()
left = disk.load_relation("left_rel.txt")
right = disk.load_relation("right_rel.txt")

buckets = partition(disk, mem, left, right)
result_pages = probe(disk, mem, buckets)
print(format_result(result_pages, disk))
print(mem.load_count, mem.flush_count)
```

### `gracejoin.join`

- `partition(disk, mem, left_range, right_range)` returns a list of 15
  `Bucket` objects. Each range argument holds the disk page ids of one
  relation.
- `probe(disk, mem, buckets)` returns the disk page ids that hold the join
  result.
- `NUM_BUCKETS` is the number of buckets, 15.
- `PROBE_TABLE_SIZE` is the number of hash table slots, 14.

### `gracejoin.cli`

- `format_result(page_ids, disk)` returns the text the command prints.
- `main(argv=None)` runs the command and returns its exit status.

### `gracejoin.storage`

- `Record(key, data)` is a frozen, orderable record.
  - `partition_hash()` and `probe_hash()` return two different stable hashes
    of the key.
  - `joins_with(other)` tells whether two records share a key.
- `Page` holds at most 32 records. It supports `len()`, iteration and
  indexing, and has these methods:
  - `add_record`, `add_pair`, `load_page`, `copy`, `reset`, `is_empty`,
    `is_full` and `describe`.
- `Disk(capacity=999)` is an append-only store of pages.
  - `write(page)` stores a copy of the page and returns its id.
  - `read(page_id)` returns the page with that id.
  - `load_relation(path)` returns the `range` of page ids that the loaded file
    occupies.
  - `describe(page_id=None)` describes one page, or every page when no id is
    given.
- `Mem(size=16)` holds page buffers.
  - `page(mem_page_id)` returns one buffer, and `reset()` empties them all.
  - `load_from_disk(disk, disk_page_id, mem_page_id)` copies a disk page into
    a buffer and increments `load_count`.
  - `flush_to_disk(disk, mem_page_id)` writes a buffer to disk, empties it,
    returns the new disk page id, and increments `flush_count`.
  - `describe()` describes every buffer.
- `Bucket` keeps the disk page ids of each side in `left_pages` and
  `right_pages`, and their record counts in `left_record_count` and
  `right_record_count`.
  - `add_left_page(page_id)` and `add_right_page(page_id)` add a page to one
    side and update that side's count.
- `StorageError` is raised for misuse, such as:
  - adding to a full page,
  - reading a disk page or memory page that does not exist,
  - writing to a full disk,
  - comparing records whose keys fall in different hash table slots.

## What it does not do

The disk and memory here are simulated. Everything lives in Python objects
and is lost when the process ends. Nothing is written back to files. Only
equality joins on the record key are supported.