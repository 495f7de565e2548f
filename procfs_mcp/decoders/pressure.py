"""/proc/pressure/{cpu,io,memory} decoder (pressure stall information)

Each file holds up to two lines:

    some avg10=0.00 avg60=0.00 avg300=0.00 total=0
    full avg10=0.00 avg60=0.00 avg300=0.00 total=0

``full`` is absent for cpu before kernel 5.13, so it is Optional everywhere.
A kernel without PSI has no /proc/pressure (or refuses the read with
EOPNOTSUPP when booted with psi=0); that is reported as ``psi=None``, not an error.
"""
from __future__ import annotations
import errno, os
from dataclasses import dataclass
from typing import Dict, Optional

from .common import parse_float, parse_u64, proc_path, read_text
from .errors import MissingField, ProcfsReadError
from ..debug_util import dbg, warn_unrecognized

RESOURCES = ('cpu', 'io', 'memory')
_NO_PSI_ERRNOS = (errno.ENOENT, errno.EOPNOTSUPP)


@dataclass(frozen=True)
class PressureLine:
    avg10: float
    avg60: float
    avg300: float
    total: int


@dataclass(frozen=True)
class PressureResource:
    some: PressureLine
    full: Optional[PressureLine] = None


@dataclass(frozen=True)
class Psi:
    cpu: PressureResource
    io: PressureResource
    memory: PressureResource


@dataclass(frozen=True)
class ProcPressure:
    psi: Optional[Psi] = None


def decode_pressure_line(line: str) -> PressureLine:
    pairs: Dict[str, str] = {}
    for token in line.split()[1:]:
        key, sep, value = token.partition('=')
        if not sep:
            warn_unrecognized('pressure', token)
            continue
        pairs[key] = value
    for key in ('avg10', 'avg60', 'avg300', 'total'):
        if key not in pairs:
            raise MissingField(f"missing {key}=", line)
    return PressureLine(
        avg10=parse_float(pairs['avg10'], line, what='avg10'),
        avg60=parse_float(pairs['avg60'], line, what='avg60'),
        avg300=parse_float(pairs['avg300'], line, what='avg300'),
        total=parse_u64(pairs['total'], line, what='total'),
    )


def parse_pressure_resource(text: str, resource: str = 'pressure') -> PressureResource:
    lines: Dict[str, PressureLine] = {}
    for line in text.splitlines():
        tokens = line.split()
        if not tokens:
            continue
        if tokens[0] in ('some', 'full'):
            lines[tokens[0]] = decode_pressure_line(line)
        else:
            warn_unrecognized(f'pressure/{resource}', line)
    if 'some' not in lines:
        raise MissingField(f"pressure/{resource} has no 'some' line")
    return PressureResource(some=lines['some'], full=lines.get('full'))


def read(path: Optional[str] = None) -> ProcPressure:
    path = path or proc_path('pressure')
    resources: Dict[str, PressureResource] = {}
    for resource in RESOURCES:
        try:
            text = read_text(os.path.join(path, resource))
        except ProcfsReadError as e:
            if e.errno in _NO_PSI_ERRNOS:
                dbg(f'pressure unavailable path={e.path} errno={e.errno}')
                return ProcPressure(psi=None)
            raise
        resources[resource] = parse_pressure_resource(text, resource)
    return ProcPressure(psi=Psi(**resources))
