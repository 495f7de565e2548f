"""/proc/meminfo decoder

Values are kept in the unit the kernel prints them (kB, or a page count for
the HugePages_* lines). Every field is Optional: a key the running kernel
does not print (Zswap before 5.19, SecPageTables before 6.0, DirectMap* on
non-x86, ...) stays None rather than reading as zero.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Optional

from .common import parse_u64, proc_path, read_text, required
from ..debug_util import dbg, warn_unrecognized

# file key -> ProcMemInfo attribute
MEMINFO_KEYS: Dict[str, str] = {
    'MemTotal': 'memtotal',
    'MemFree': 'memfree',
    'MemAvailable': 'memavailable',
    'Buffers': 'buffers',
    'Cached': 'cached',
    'SwapCached': 'swapcached',
    'Active': 'active',
    'Inactive': 'inactive',
    'Active(anon)': 'active_anon',
    'Inactive(anon)': 'inactive_anon',
    'Active(file)': 'active_file',
    'Inactive(file)': 'inactive_file',
    'Unevictable': 'unevictable',
    'Mlocked': 'mlocked',
    'SwapTotal': 'swaptotal',
    'SwapFree': 'swapfree',
    'Zswap': 'zswap',
    'Zswapped': 'zswapped',
    'Dirty': 'dirty',
    'Writeback': 'writeback',
    'AnonPages': 'anonpages',
    'Mapped': 'mapped',
    'Shmem': 'shmem',
    'KReclaimable': 'kreclaimable',
    'Slab': 'slab',
    'SReclaimable': 'sreclaimable',
    'SUnreclaim': 'sunreclaim',
    'KernelStack': 'kernelstack',
    'ShadowCallStack': 'shadowcallstack',
    'PageTables': 'pagetables',
    'SecPageTables': 'secpagetables',
    'NFS_Unstable': 'nfs_unstable',
    'Bounce': 'bounce',
    'WritebackTmp': 'writebacktmp',
    'CommitLimit': 'commitlimit',
    'Committed_AS': 'committed_as',
    'VmallocTotal': 'vmalloctotal',
    'VmallocUsed': 'vmallocused',
    'VmallocChunk': 'vmallocchunk',
    'Percpu': 'percpu',
    'HardwareCorrupted': 'hardwarecorrupted',
    'AnonHugePages': 'anonhugepages',
    'ShmemHugePages': 'shmemhugepages',
    'ShmemPmdMapped': 'shmempmdmapped',
    'FileHugePages': 'filehugepages',
    'FilePmdMapped': 'filepmdmapped',
    'CmaTotal': 'cmatotal',
    'CmaFree': 'cmafree',
    'HugePages_Total': 'hugepages_total',
    'HugePages_Free': 'hugepages_free',
    'HugePages_Rsvd': 'hugepages_rsvd',
    'HugePages_Surp': 'hugepages_surp',
    'Hugepagesize': 'hugepagesize',
    'Hugetlb': 'hugetlb',
    'DirectMap4k': 'directmap4k',
    'DirectMap2M': 'directmap2m',
    'DirectMap1G': 'directmap1g',
}


@dataclass(frozen=True)
class ProcMemInfo:
    memtotal: Optional[int] = None
    memfree: Optional[int] = None
    memavailable: Optional[int] = None
    buffers: Optional[int] = None
    cached: Optional[int] = None
    swapcached: Optional[int] = None
    active: Optional[int] = None
    inactive: Optional[int] = None
    active_anon: Optional[int] = None
    inactive_anon: Optional[int] = None
    active_file: Optional[int] = None
    inactive_file: Optional[int] = None
    unevictable: Optional[int] = None
    mlocked: Optional[int] = None
    swaptotal: Optional[int] = None
    swapfree: Optional[int] = None
    zswap: Optional[int] = None
    zswapped: Optional[int] = None
    dirty: Optional[int] = None
    writeback: Optional[int] = None
    anonpages: Optional[int] = None
    mapped: Optional[int] = None
    shmem: Optional[int] = None
    kreclaimable: Optional[int] = None
    slab: Optional[int] = None
    sreclaimable: Optional[int] = None
    sunreclaim: Optional[int] = None
    kernelstack: Optional[int] = None
    shadowcallstack: Optional[int] = None
    pagetables: Optional[int] = None
    secpagetables: Optional[int] = None
    nfs_unstable: Optional[int] = None
    bounce: Optional[int] = None
    writebacktmp: Optional[int] = None
    commitlimit: Optional[int] = None
    committed_as: Optional[int] = None
    vmalloctotal: Optional[int] = None
    vmallocused: Optional[int] = None
    vmallocchunk: Optional[int] = None
    percpu: Optional[int] = None
    hardwarecorrupted: Optional[int] = None
    anonhugepages: Optional[int] = None
    shmemhugepages: Optional[int] = None
    shmempmdmapped: Optional[int] = None
    filehugepages: Optional[int] = None
    filepmdmapped: Optional[int] = None
    cmatotal: Optional[int] = None
    cmafree: Optional[int] = None
    hugepages_total: Optional[int] = None
    hugepages_free: Optional[int] = None
    hugepages_rsvd: Optional[int] = None
    hugepages_surp: Optional[int] = None
    hugepagesize: Optional[int] = None
    hugetlb: Optional[int] = None
    directmap4k: Optional[int] = None
    directmap2m: Optional[int] = None
    directmap1g: Optional[int] = None


def parse_meminfo(text: str) -> ProcMemInfo:
    values: Dict[str, int] = {}
    for line in text.splitlines():
        if not line.strip():
            continue
        key, sep, rest = line.partition(':')
        if not sep:
            warn_unrecognized('meminfo', line)
            continue
        attr = MEMINFO_KEYS.get(key.strip())
        if attr is None:
            warn_unrecognized('meminfo', line)
            continue
        values[attr] = parse_u64(required(rest.split(), 0, line, what=key), line, what=key)
    return ProcMemInfo(**values)


def read(path: Optional[str] = None) -> ProcMemInfo:
    path = path or proc_path('meminfo')
    result = parse_meminfo(read_text(path))
    dbg(f'meminfo read path={path} memtotal={result.memtotal}')
    return result
