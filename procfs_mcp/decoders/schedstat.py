"""/proc/schedstat decoder

Format (schedstat version 15, one record per line):

    version <uint>
    timestamp <uint>
    cpu<n> <uint> x 9
    domain<n> <hexgroup>[,<hexgroup>]* <uint>*

Domain lines carry no cpu number of their own: they belong to the cpu line
that most recently preceded them. A per-call DomainCorrelator carries that
"current cpu" through the fold; a domain line before any cpu line makes the
document malformed (we never guess cpu 0).

Cpu vector layout
-----------------
``CpuRecord.counters`` keeps the cpu number in position 0 followed by the kernel
statistics, so statistic N of the kernel documentation is ``counters[N]``:

    cpu0 0 0 0 0 0 0 457571901633 48594074614 4348645
    -> (0, 0, 0, 0, 0, 0, 0, 457571901633, 48594074614, 4348645)

Run time on the cpu is ``counters[7]``, time spent waiting to run ``counters[8]``.

Time units
----------
sched-stats.txt documents these two counters in jiffies; since 2.6.23 (CFS) the
kernel reports nanoseconds. ``time_unit="ns"`` (default) passes
them through untouched. ``time_unit="jiffies"`` treats them as clock ticks and
converts to milliseconds (``value * 1000 // CLK_TCK``), for pre-2.6.23 kernels.
The default can be switched with PROCFS_SCHEDSTAT_TIME_UNIT.

Cpu masks
---------
Modern kernels print the domain span as comma separated 32-bit hex groups, most
significant first (``ffffffff,00000000``); old kernels print one ungrouped token
(``3f``). Both decode to one int per group.

Records are frozen all the way down: their sequences are tuples.
"""
from __future__ import annotations
import os
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .common import (
    clock_ticks_per_second, jiffies_to_ms, parse_hex_u64, parse_u64, proc_path,
    read_text, required, strip_prefix_u64, decode_scalar,
)
from .errors import MalformedDocument, MissingField
from ..debug_util import dbg, logger, warn_unrecognized

VERSION = 'VERSION'
TIMESTAMP = 'TIMESTAMP'
CPU = 'CPU'
DOMAIN = 'DOMAIN'
UNRECOGNIZED = 'UNRECOGNIZED'

TIME_UNITS = ('ns', 'jiffies')
CPU_STATISTICS = 9
RUN_TIME = 7
WAIT_TIME = 8
TIMESLICES = 9
MASK_GROUP_BITS = 32


@dataclass(frozen=True)
class CpuRecord:
    cpu_index: int
    counters: Tuple[int, ...]

    @property
    def statistics(self) -> Tuple[int, ...]:
        return self.counters[1:]

    @property
    def run_time(self) -> int:
        return self.counters[RUN_TIME]

    @property
    def wait_time(self) -> int:
        return self.counters[WAIT_TIME]

    @property
    def timeslices(self) -> int:
        return self.counters[TIMESLICES]


@dataclass(frozen=True)
class DomainRecord:
    cpu_nr: int  # owning cpu, assigned by the correlator
    domain_nr: int
    cpu_masks: Tuple[int, ...]
    statistics: Tuple[int, ...]

    def cpus(self) -> List[int]:
        """Logical cpu numbers set in the domain span, ascending."""
        value = 0
        for group in self.cpu_masks:
            value = (value << MASK_GROUP_BITS) | group
        return [bit for bit in range(value.bit_length()) if (value >> bit) & 1]


@dataclass(frozen=True)
class SchedulerDocument:
    version: Optional[int]
    timestamp: Optional[int]
    per_cpu: Tuple[CpuRecord, ...]
    domains: Tuple[DomainRecord, ...]


@dataclass(frozen=True)
class PidSchedStat:
    run_time: int
    wait_time: int
    timeslices: int


def classify_line(line: str) -> str:
    tokens = line.split(None, 1)
    if not tokens:
        return UNRECOGNIZED
    head = tokens[0]
    if head == 'version':
        return VERSION
    if head == 'timestamp':
        return TIMESTAMP
    if head.startswith('cpu'):
        return CPU
    if head.startswith('domain'):
        return DOMAIN
    return UNRECOGNIZED


def _check_time_unit(time_unit: str) -> str:
    if time_unit not in TIME_UNITS:
        raise ValueError(f"time_unit must be one of {TIME_UNITS}, got {time_unit!r}")
    return time_unit


def decode_cpu(line: str, clk_tck: Optional[int] = None, time_unit: str = 'ns') -> CpuRecord:
    tokens = line.split()
    cpu_index = strip_prefix_u64(required(tokens, 0, line), 'cpu', line)
    counters = [cpu_index] + [parse_u64(tok, line, what='cpu counter') for tok in tokens[1:]]
    if len(counters) - 1 < CPU_STATISTICS:
        raise MissingField(f"cpu line carries {len(counters) - 1} statistics, expected {CPU_STATISTICS}", line)
    if _check_time_unit(time_unit) == 'jiffies':
        tck = clk_tck or clock_ticks_per_second()
        counters[RUN_TIME] = jiffies_to_ms(counters[RUN_TIME], tck)
        counters[WAIT_TIME] = jiffies_to_ms(counters[WAIT_TIME], tck)
    return CpuRecord(cpu_index=cpu_index, counters=tuple(counters))


def decode_cpu_mask(token: str, line: Optional[str] = None) -> List[int]:
    """``00000000,00000001`` -> [0, 1]; ``3f`` -> [63]."""
    return [parse_hex_u64(group, line, what='cpu mask group') for group in token.split(',')]


def decode_domain(line: str, cpu_nr: int) -> DomainRecord:
    tokens = line.split()
    domain_nr = strip_prefix_u64(required(tokens, 0, line), 'domain', line)
    cpu_masks = decode_cpu_mask(required(tokens, 1, line, what='cpu mask'), line)
    statistics = [parse_u64(tok, line, what='domain statistic') for tok in tokens[2:]]
    return DomainRecord(cpu_nr=cpu_nr, domain_nr=domain_nr, cpu_masks=tuple(cpu_masks), statistics=tuple(statistics))


class DomainCorrelator:
    """Tracks the cpu that owns the domain lines that follow it.

    States: no cpu seen yet (``cpu_nr is None``) or have cpu n. A cpu line
    always moves to "have cpu n"; a domain line requires it.
    """

    def __init__(self):
        self.cpu_nr: Optional[int] = None

    def observe_cpu(self, cpu_index: int):
        self.cpu_nr = cpu_index

    def owner(self, line: str) -> int:
        if self.cpu_nr is None:
            raise MalformedDocument('domain line precedes any cpu line', line)
        return self.cpu_nr


def parse_schedstat(text: str, clk_tck: Optional[int] = None, time_unit: str = 'ns') -> SchedulerDocument:
    _check_time_unit(time_unit)
    if time_unit == 'jiffies' and not clk_tck:
        clk_tck = clock_ticks_per_second()
    version: Optional[int] = None
    timestamp: Optional[int] = None
    per_cpu: List[CpuRecord] = []
    domains: List[DomainRecord] = []
    correlator = DomainCorrelator()
    for line in text.splitlines():
        if not line.strip():
            continue
        kind = classify_line(line)
        if kind == CPU:
            record = decode_cpu(line, clk_tck, time_unit)
            correlator.observe_cpu(record.cpu_index)
            per_cpu.append(record)
        elif kind == DOMAIN:
            domains.append(decode_domain(line, correlator.owner(line)))
        elif kind == VERSION:
            if version is None:
                version = decode_scalar(line)
            else:
                logger.warning('schedstat: repeated version line ignored: %s', line)
        elif kind == TIMESTAMP:
            if timestamp is None:
                timestamp = decode_scalar(line)
            else:
                logger.warning('schedstat: repeated timestamp line ignored: %s', line)
        else:
            warn_unrecognized('schedstat', line)
    return SchedulerDocument(version=version, timestamp=timestamp, per_cpu=tuple(per_cpu), domains=tuple(domains))


def default_time_unit() -> str:
    return os.environ.get('PROCFS_SCHEDSTAT_TIME_UNIT', 'ns').strip().lower() or 'ns'


def read(path: Optional[str] = None, time_unit: Optional[str] = None) -> SchedulerDocument:
    path = path or proc_path('schedstat')
    time_unit = _check_time_unit(time_unit or default_time_unit())
    text = read_text(path)
    clk_tck = clock_ticks_per_second()
    doc = parse_schedstat(text, clk_tck=clk_tck, time_unit=time_unit)
    dbg(f'schedstat read path={path} unit={time_unit} clk_tck={clk_tck} cpus={len(doc.per_cpu)} domains={len(doc.domains)}')
    return doc


def parse_pid_schedstat(text: str) -> PidSchedStat:
    """``<run ns> <wait ns> <timeslices>`` from /proc/<pid>/schedstat."""
    line = text.strip()
    tokens = line.split()
    return PidSchedStat(
        run_time=parse_u64(required(tokens, 0, line, what='run time'), line),
        wait_time=parse_u64(required(tokens, 1, line, what='wait time'), line),
        timeslices=parse_u64(required(tokens, 2, line, what='timeslices'), line),
    )


def read_pid(pid: int, path: Optional[str] = None) -> PidSchedStat:
    path = path or proc_path(str(pid), 'schedstat')
    return parse_pid_schedstat(read_text(path))
