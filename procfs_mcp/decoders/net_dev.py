"""/proc/net/dev decoder

Two header lines (recognisable by their '|' column separators) followed by one
``<iface>: <8 receive counters> <8 transmit counters>`` line per interface.
Old kernels glue large byte counters to the colon (``eth0:123456``), so the
name is split off at the colon rather than at whitespace.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional

from .common import parse_u64, proc_path, read_text, required
from ..debug_util import dbg, warn_unrecognized

COUNTERS = (
    'receive_bytes', 'receive_packets', 'receive_errors', 'receive_drop',
    'receive_fifo', 'receive_frame', 'receive_compressed', 'receive_multicast',
    'transmit_bytes', 'transmit_packets', 'transmit_errors', 'transmit_drop',
    'transmit_fifo', 'transmit_collisions', 'transmit_carrier', 'transmit_compressed',
)


@dataclass(frozen=True)
class InterfaceStats:
    name: str
    receive_bytes: int
    receive_packets: int
    receive_errors: int
    receive_drop: int
    receive_fifo: int
    receive_frame: int
    receive_compressed: int
    receive_multicast: int
    transmit_bytes: int
    transmit_packets: int
    transmit_errors: int
    transmit_drop: int
    transmit_fifo: int
    transmit_collisions: int
    transmit_carrier: int
    transmit_compressed: int


@dataclass(frozen=True)
class ProcNetDev:
    interface: List[InterfaceStats] = field(default_factory=list)


def decode_interface_line(line: str) -> InterfaceStats:
    name, _, rest = line.partition(':')
    tokens = rest.split()
    values = {counter: parse_u64(required(tokens, i, line, what=counter), line, what=counter)
              for i, counter in enumerate(COUNTERS)}
    return InterfaceStats(name=name.strip(), **values)


def parse_net_dev(text: str) -> ProcNetDev:
    interfaces: List[InterfaceStats] = []
    for line in text.splitlines():
        if not line.strip() or '|' in line:
            continue
        if ':' not in line:
            warn_unrecognized('net_dev', line)
            continue
        interfaces.append(decode_interface_line(line))
    return ProcNetDev(interface=interfaces)


def read(path: Optional[str] = None) -> ProcNetDev:
    path = path or proc_path('net', 'dev')
    result = parse_net_dev(read_text(path))
    dbg(f'net_dev read path={path} interfaces={[i.name for i in result.interface]}')
    return result
