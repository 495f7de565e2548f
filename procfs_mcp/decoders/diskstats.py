"""/proc/diskstats decoder

Columns (Documentation/admin-guide/iostats.rst):

    major minor name  reads merged sectors ms  writes merged sectors ms  in_flight io_ms weighted_ms
    [discards merged sectors ms]   (4.18+)
    [flushes ms]                   (5.5+)

The first 14 columns are required; discard and flush counters are None on
kernels that do not print them.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional

from .common import optional_u64, parse_u64, proc_path, read_text, required
from ..debug_util import dbg

REQUIRED_COUNTERS = (
    'reads_completed_success', 'reads_merged', 'reads_sectors', 'reads_time_spent_ms',
    'writes_completed_success', 'writes_merged', 'writes_sectors', 'writes_time_spent_ms',
    'ios_in_progress', 'ios_time_spent_ms', 'ios_weighted_time_spent_ms',
)
OPTIONAL_COUNTERS = (
    'discards_completed_success', 'discards_merged', 'discards_sectors', 'discards_time_spent_ms',
    'flush_requests_completed_success', 'flush_requests_time_spent_ms',
)


@dataclass(frozen=True)
class DiskStats:
    block_major: int
    block_minor: int
    device_name: str
    reads_completed_success: int
    reads_merged: int
    reads_sectors: int
    reads_time_spent_ms: int
    writes_completed_success: int
    writes_merged: int
    writes_sectors: int
    writes_time_spent_ms: int
    ios_in_progress: int
    ios_time_spent_ms: int
    ios_weighted_time_spent_ms: int
    discards_completed_success: Optional[int] = None
    discards_merged: Optional[int] = None
    discards_sectors: Optional[int] = None
    discards_time_spent_ms: Optional[int] = None
    flush_requests_completed_success: Optional[int] = None
    flush_requests_time_spent_ms: Optional[int] = None


@dataclass(frozen=True)
class ProcDiskStats:
    disk_stats: List[DiskStats] = field(default_factory=list)


def decode_disk_line(line: str) -> DiskStats:
    tokens = line.split()
    values = {
        'block_major': parse_u64(required(tokens, 0, line, what='major'), line, what='major'),
        'block_minor': parse_u64(required(tokens, 1, line, what='minor'), line, what='minor'),
        'device_name': required(tokens, 2, line, what='device name'),
    }
    for i, name in enumerate(REQUIRED_COUNTERS, start=3):
        values[name] = parse_u64(required(tokens, i, line, what=name), line, what=name)
    for i, name in enumerate(OPTIONAL_COUNTERS, start=3 + len(REQUIRED_COUNTERS)):
        values[name] = optional_u64(tokens, i, line, what=name)
    return DiskStats(**values)


def parse_diskstats(text: str) -> ProcDiskStats:
    return ProcDiskStats(disk_stats=[decode_disk_line(line) for line in text.splitlines() if line.strip()])


def read(path: Optional[str] = None) -> ProcDiskStats:
    path = path or proc_path('diskstats')
    result = parse_diskstats(read_text(path))
    dbg(f'diskstats read path={path} devices={len(result.disk_stats)}')
    return result
