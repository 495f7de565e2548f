"""/proc/fs/xfs/stat decoder

Only the read/write call counts (``rw``) and byte counts (``xpc``) are decoded.
The other xfs stat lines are known and skipped without noise; anything else is
reported as unrecognized. The file only exists while the xfs module is
loaded, so a missing file gives an all-None record.
"""
from __future__ import annotations
import errno
from dataclasses import dataclass
from typing import Dict, Optional

from .common import parse_u64, proc_path, read_text, required
from .errors import ProcfsReadError
from ..debug_util import dbg, warn_unrecognized

UNUSED_LINES = frozenset((
    'extent_alloc', 'abt', 'blk_map', 'bmbt', 'dir', 'trans', 'ig', 'log', 'push_ail',
    'xstrat', 'attr', 'icluster', 'vnodes', 'buf', 'abtb2', 'abtc2', 'bmbt2', 'ibt2',
    'fibt2', 'rmapbt', 'refcntbt', 'rmapbt_mem', 'rcbagbt', 'qm', 'defer_relog', 'debug',
))


@dataclass(frozen=True)
class ProcFsXfsStat:
    xs_write_calls: Optional[int] = None
    xs_read_calls: Optional[int] = None
    xs_write_bytes: Optional[int] = None
    xs_read_bytes: Optional[int] = None


def parse_fs_xfs_stat(text: str) -> ProcFsXfsStat:
    values: Dict[str, int] = {}
    for line in text.splitlines():
        tokens = line.split()
        if not tokens:
            continue
        key = tokens[0]
        if key == 'rw':
            values['xs_write_calls'] = parse_u64(required(tokens, 1, line, what='write calls'), line)
            values['xs_read_calls'] = parse_u64(required(tokens, 2, line, what='read calls'), line)
        elif key == 'xpc':
            values['xs_write_bytes'] = parse_u64(required(tokens, 2, line, what='write bytes'), line)
            values['xs_read_bytes'] = parse_u64(required(tokens, 3, line, what='read bytes'), line)
        elif key not in UNUSED_LINES:
            warn_unrecognized('fs/xfs/stat', line)
    return ProcFsXfsStat(**values)


def read(path: Optional[str] = None) -> ProcFsXfsStat:
    path = path or proc_path('fs', 'xfs', 'stat')
    try:
        text = read_text(path)
    except ProcfsReadError as e:
        if e.errno == errno.ENOENT:
            dbg(f'xfs stat unavailable path={path}')
            return ProcFsXfsStat()
        raise
    return parse_fs_xfs_stat(text)
