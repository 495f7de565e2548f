"""/proc/stat decoder

cpu time columns are in jiffies (USER_HZ); they are converted to milliseconds
with the clock-tick rate. ``user nice system idle`` exist on every kernel; the
later columns appeared over time (iowait/irq/softirq 2.6, steal 2.6.11, guest
2.6.24, guest_nice 2.6.33) and are None when the kernel does not print them.

``intr`` and ``softirq`` are kept as the full number vector after the keyword
(first element is the total).
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .common import (
    clock_ticks_per_second, decode_scalar, decode_vector, jiffies_to_ms, optional_u64,
    parse_u64, proc_path, read_text, required,
)
from ..debug_util import dbg, warn_unrecognized

REQUIRED_CPU_TIMES = ('user', 'nice', 'system', 'idle')
OPTIONAL_CPU_TIMES = ('iowait', 'irq', 'softirq', 'steal', 'guest', 'guest_nice')

# keyword -> ProcStat attribute
SCALAR_KEYWORDS: Dict[str, str] = {
    'ctxt': 'context_switches',
    'btime': 'boot_time',
    'processes': 'processes',
    'procs_running': 'processes_running',
    'procs_blocked': 'processes_blocked',
}
VECTOR_KEYWORDS: Dict[str, str] = {
    'intr': 'interrupts',
    'softirq': 'softirq',
}


@dataclass(frozen=True)
class CpuStat:
    name: str
    user: int
    nice: int
    system: int
    idle: int
    iowait: Optional[int] = None
    irq: Optional[int] = None
    softirq: Optional[int] = None
    steal: Optional[int] = None
    guest: Optional[int] = None
    guest_nice: Optional[int] = None


@dataclass(frozen=True)
class ProcStat:
    cpu_total: Optional[CpuStat] = None
    cpu_individual: List[CpuStat] = field(default_factory=list)
    interrupts: List[int] = field(default_factory=list)
    context_switches: Optional[int] = None
    boot_time: Optional[int] = None
    processes: Optional[int] = None
    processes_running: Optional[int] = None
    processes_blocked: Optional[int] = None
    softirq: List[int] = field(default_factory=list)


def decode_cpu_times(line: str, clk_tck: int) -> CpuStat:
    tokens = line.split()
    values = {}
    for i, name in enumerate(REQUIRED_CPU_TIMES, start=1):
        values[name] = jiffies_to_ms(parse_u64(required(tokens, i, line, what=name), line, what=name), clk_tck)
    for i, name in enumerate(OPTIONAL_CPU_TIMES, start=len(REQUIRED_CPU_TIMES) + 1):
        raw = optional_u64(tokens, i, line, what=name)
        values[name] = None if raw is None else jiffies_to_ms(raw, clk_tck)
    return CpuStat(name=tokens[0], **values)


def parse_stat(text: str, clk_tck: Optional[int] = None) -> ProcStat:
    clk_tck = clk_tck or clock_ticks_per_second()
    fields: Dict[str, object] = {'cpu_individual': []}
    for line in text.splitlines():
        tokens = line.split()
        if not tokens:
            continue
        key = tokens[0]
        if key == 'cpu':
            fields['cpu_total'] = decode_cpu_times(line, clk_tck)
        elif key.startswith('cpu') and key[3:].isdigit():
            fields['cpu_individual'].append(decode_cpu_times(line, clk_tck))
        elif key in SCALAR_KEYWORDS:
            fields[SCALAR_KEYWORDS[key]] = decode_scalar(line)
        elif key in VECTOR_KEYWORDS:
            fields[VECTOR_KEYWORDS[key]] = decode_vector(line)
        else:
            warn_unrecognized('stat', line)
    return ProcStat(**fields)


def read(path: Optional[str] = None) -> ProcStat:
    path = path or proc_path('stat')
    text = read_text(path)
    clk_tck = clock_ticks_per_second()
    result = parse_stat(text, clk_tck=clk_tck)
    dbg(f'stat read path={path} clk_tck={clk_tck} cpus={len(result.cpu_individual)}')
    return result
