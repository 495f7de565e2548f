"""/sys/block/<device> decoder

One directory per block device; each attribute is a small one-value file.
References: Documentation/ABI/testing/sysfs-block, Documentation/block/stat.rst,
Documentation/block/queue-sysfs.rst.

The attribute files are described by the declarative ATTRIBUTES table
(attribute name, path relative to the device directory, value kind, required).
A missing required file is a read error; a missing optional file (attributes
added by newer kernels: diskseq, queue/nr_zones, ...) decodes to None.

``stat`` has the same counters as /proc/diskstats without the device columns.
Devices whose name matches the exclusion regex (PROCFS_BLOCK_EXCLUDE, default
``^dm-``) are skipped.
"""
from __future__ import annotations
import errno, os, re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .common import U64_MAX_DIGITS, optional_u64, parse_u64, read_text, required, sys_path
from .diskstats import OPTIONAL_COUNTERS, REQUIRED_COUNTERS
from .errors import MissingField, NotANumber, ProcfsReadError
from ..debug_util import dbg

DEFAULT_EXCLUDE = '^dm-'
SIGNED_RE = re.compile(r"-?[0-9]+")

# (attribute, relative path, kind, required)
ATTRIBUTES: Tuple[Tuple[str, str, str, bool], ...] = (
    ('alignment_offset', 'alignment_offset', 'u64', True),
    ('cache_type', 'cache_type', 'str', False),
    ('discard_alignment', 'discard_alignment', 'u64', True),
    ('diskseq', 'diskseq', 'u64', False),
    ('hidden', 'hidden', 'u64', False),
    ('queue_add_random', 'queue/add_random', 'u64', True),
    ('queue_chunk_sectors', 'queue/chunk_sectors', 'u64', False),
    ('queue_dax', 'queue/dax', 'u64', False),
    ('queue_discard_granularity', 'queue/discard_granularity', 'u64', True),
    ('queue_discard_max_bytes', 'queue/discard_max_bytes', 'u64', True),
    ('queue_discard_max_hw_bytes', 'queue/discard_max_hw_bytes', 'u64', True),
    ('queue_hw_sector_size', 'queue/hw_sector_size', 'u64', True),
    ('queue_io_poll', 'queue/io_poll', 'u64', False),
    ('queue_io_poll_delay', 'queue/io_poll_delay', 'i64', False),
    ('queue_logical_block_size', 'queue/logical_block_size', 'u64', True),
    ('queue_max_discard_segments', 'queue/max_discard_segments', 'u64', False),
    ('queue_max_hw_sectors_kb', 'queue/max_hw_sectors_kb', 'u64', True),
    ('queue_max_integrity_segments', 'queue/max_integrity_segments', 'u64', False),
    ('queue_max_sectors_kb', 'queue/max_sectors_kb', 'u64', True),
    ('queue_max_segment_size', 'queue/max_segment_size', 'u64', True),
    ('queue_max_segments', 'queue/max_segments', 'u64', True),
    ('queue_minimum_io_size', 'queue/minimum_io_size', 'u64', True),
    ('queue_nomerges', 'queue/nomerges', 'u64', True),
    ('queue_nr_requests', 'queue/nr_requests', 'u64', True),
    ('queue_nr_zones', 'queue/nr_zones', 'u64', False),
    ('queue_optimal_io_size', 'queue/optimal_io_size', 'u64', True),
    ('queue_physical_block_size', 'queue/physical_block_size', 'u64', True),
    ('queue_read_ahead_kb', 'queue/read_ahead_kb', 'u64', True),
    ('queue_rotational', 'queue/rotational', 'u64', True),
    ('queue_rq_affinity', 'queue/rq_affinity', 'u64', True),
    ('queue_write_cache', 'queue/write_cache', 'str', True),
    ('queue_write_same_max_bytes', 'queue/write_same_max_bytes', 'u64', False),
    ('queue_zoned', 'queue/zoned', 'str', False),
    ('range', 'range', 'u64', True),
    ('removable', 'removable', 'u64', True),
    ('ro', 'ro', 'u64', True),
    ('size', 'size', 'u64', True),
)


@dataclass(frozen=True)
class BlockDevice:
    device_name: str
    dev_block_major: int
    dev_block_minor: int
    alignment_offset: int
    discard_alignment: int
    inflight_reads: int
    inflight_writes: int
    queue_add_random: int
    queue_discard_granularity: int
    queue_discard_max_bytes: int
    queue_discard_max_hw_bytes: int
    queue_hw_sector_size: int
    queue_logical_block_size: int
    queue_max_hw_sectors_kb: int
    queue_max_sectors_kb: int
    queue_max_segment_size: int
    queue_max_segments: int
    queue_minimum_io_size: int
    queue_nomerges: int
    queue_nr_requests: int
    queue_optimal_io_size: int
    queue_physical_block_size: int
    queue_read_ahead_kb: int
    queue_rotational: int
    queue_rq_affinity: int
    queue_scheduler: str
    queue_write_cache: str
    range: int
    removable: int
    ro: int
    size: int
    stat_reads_completed_success: int
    stat_reads_merged: int
    stat_reads_sectors: int
    stat_reads_time_spent_ms: int
    stat_writes_completed_success: int
    stat_writes_merged: int
    stat_writes_sectors: int
    stat_writes_time_spent_ms: int
    stat_ios_in_progress: int
    stat_ios_time_spent_ms: int
    stat_ios_weighted_time_spent_ms: int
    cache_type: Optional[str] = None
    diskseq: Optional[int] = None
    hidden: Optional[int] = None
    queue_chunk_sectors: Optional[int] = None
    queue_dax: Optional[int] = None
    queue_io_poll: Optional[int] = None
    queue_io_poll_delay: Optional[int] = None
    queue_max_discard_segments: Optional[int] = None
    queue_max_integrity_segments: Optional[int] = None
    queue_nr_zones: Optional[int] = None
    queue_write_same_max_bytes: Optional[int] = None
    queue_zoned: Optional[str] = None
    stat_discards_completed_success: Optional[int] = None
    stat_discards_merged: Optional[int] = None
    stat_discards_sectors: Optional[int] = None
    stat_discards_time_spent_ms: Optional[int] = None
    stat_flush_requests_completed_success: Optional[int] = None
    stat_flush_requests_time_spent_ms: Optional[int] = None


@dataclass(frozen=True)
class SysBlock:
    block_devices: List[BlockDevice] = field(default_factory=list)


def _decode_value(raw: str, kind: str, path: str):
    value = raw.strip()
    if kind == 'str':
        return value
    if kind == 'i64':
        if not SIGNED_RE.fullmatch(value):
            raise NotANumber(f"{path}: {value!r} is not an integer")
        if len(value.lstrip('-').lstrip('0')) > U64_MAX_DIGITS:
            raise NotANumber(f"{path}: {value[:32]!r}... does not fit in 64 bits")
        return int(value)
    return parse_u64(value, what=path)


def _read_attribute(device_dir: str, relpath: str, kind: str, is_required: bool):
    path = os.path.join(device_dir, relpath)
    try:
        raw = read_text(path)
    except ProcfsReadError as e:
        if not is_required and e.errno in (errno.ENOENT, errno.EINVAL, errno.EOPNOTSUPP):
            return None
        raise
    return _decode_value(raw, kind, path)


def decode_dev(text: str) -> Tuple[int, int]:
    """``8:0`` -> (8, 0)."""
    line = text.strip()
    major, sep, minor = line.partition(':')
    if not sep:
        raise MissingField("expected '<major>:<minor>'", line)
    return parse_u64(major, line, what='major'), parse_u64(minor, line, what='minor')


def decode_inflight(text: str) -> Tuple[int, int]:
    line = text.strip()
    tokens = line.split()
    return (parse_u64(required(tokens, 0, line, what='inflight reads'), line),
            parse_u64(required(tokens, 1, line, what='inflight writes'), line))


def decode_scheduler(text: str) -> str:
    """``mq-deadline kyber [bfq] none`` -> ``bfq``; no active marker -> ``?``."""
    m = re.search(r"\[([^\]]+)\]", text)
    return m.group(1) if m else '?'


def decode_block_stat(text: str) -> Dict[str, Optional[int]]:
    line = text.strip()
    tokens = line.split()
    values: Dict[str, Optional[int]] = {}
    for i, name in enumerate(REQUIRED_COUNTERS):
        values[f'stat_{name}'] = parse_u64(required(tokens, i, line, what=name), line, what=name)
    for i, name in enumerate(OPTIONAL_COUNTERS, start=len(REQUIRED_COUNTERS)):
        values[f'stat_{name}'] = optional_u64(tokens, i, line, what=name)
    return values


def read_device(device_dir: str) -> BlockDevice:
    values: Dict[str, object] = {'device_name': os.path.basename(device_dir.rstrip('/'))}
    values['dev_block_major'], values['dev_block_minor'] = decode_dev(read_text(os.path.join(device_dir, 'dev')))
    values['inflight_reads'], values['inflight_writes'] = decode_inflight(read_text(os.path.join(device_dir, 'inflight')))
    values['queue_scheduler'] = decode_scheduler(read_text(os.path.join(device_dir, 'queue', 'scheduler')))
    for attr, relpath, kind, is_required in ATTRIBUTES:
        values[attr] = _read_attribute(device_dir, relpath, kind, is_required)
    values.update(decode_block_stat(read_text(os.path.join(device_dir, 'stat'))))
    return BlockDevice(**values)


def read(path: Optional[str] = None, exclude: Optional[str] = None) -> SysBlock:
    path = path or sys_path('block')
    if exclude is None:
        exclude = os.environ.get('PROCFS_BLOCK_EXCLUDE', DEFAULT_EXCLUDE)
    try:
        exclude_re = re.compile(exclude) if exclude else None
    except re.error as e:
        raise ValueError(f"invalid block exclusion regex {exclude!r}: {e}") from e
    try:
        names = sorted(os.listdir(path))
    except OSError as e:
        raise ProcfsReadError(path, e) from e
    devices: List[BlockDevice] = []
    for name in names:
        if exclude_re and exclude_re.search(name):
            continue
        devices.append(read_device(os.path.join(path, name)))
    dbg(f'block read path={path} exclude={exclude!r} devices={[d.device_name for d in devices]}')
    return SysBlock(block_devices=devices)
