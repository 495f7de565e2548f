"""/proc/loadavg decoder: ``0.05 0.10 0.15 1/123 4567``."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from .common import parse_float, parse_u64, proc_path, read_text, required
from .errors import MissingField


@dataclass(frozen=True)
class ProcLoadavg:
    load_1: float
    load_5: float
    load_15: float
    current_runnable: int
    total: int
    last_pid: int


def parse_loadavg(text: str) -> ProcLoadavg:
    line = text.strip()
    tokens = line.split()
    runnable, sep, total = required(tokens, 3, line, what='runnable/total').partition('/')
    if not sep:
        raise MissingField("expected '<runnable>/<total>'", line)
    return ProcLoadavg(
        load_1=parse_float(required(tokens, 0, line, what='load_1'), line, what='load_1'),
        load_5=parse_float(required(tokens, 1, line, what='load_5'), line, what='load_5'),
        load_15=parse_float(required(tokens, 2, line, what='load_15'), line, what='load_15'),
        current_runnable=parse_u64(runnable, line, what='current_runnable'),
        total=parse_u64(total, line, what='total'),
        last_pid=parse_u64(required(tokens, 4, line, what='last_pid'), line, what='last_pid'),
    )


def read(path: Optional[str] = None) -> ProcLoadavg:
    return parse_loadavg(read_text(path or proc_path('loadavg')))
