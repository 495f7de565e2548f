"""Shared token decoding, clock-rate query and the single read primitive.

Every decoder in this package follows the same discipline:

* an unknown key or line kind is skipped with a warning (debug_util.warn_unrecognized);
* a missing *optional* trailing field decodes to ``None`` (never a silent zero);
* a missing *required* field raises MissingField, a bad token raises NotANumber;
* jiffy counters are converted to milliseconds with the clock-tick rate queried
  once per top-level ``read()`` call.

Tokens are matched with strict regexes rather than handed to ``int()`` directly:
``int()`` happily accepts ``+5``, ``1_000`` or ``0x3f`` which the kernel never emits.
"""
from __future__ import annotations
import os, re
from typing import List, Optional, Sequence

from .errors import MissingField, NotANumber, ProcfsReadError

DEFAULT_CLK_TCK = 100
U64_MAX = 2**64 - 1
U64_MAX_DIGITS = len(str(U64_MAX))

DEC_RE = re.compile(r"[0-9]+")
HEX_RE = re.compile(r"[0-9a-fA-F]+")
FLOAT_RE = re.compile(r"[0-9]+(?:\.[0-9]+)?")


def proc_root() -> str:
    return os.environ.get('PROCFS_ROOT', '/proc')


def sys_root() -> str:
    return os.environ.get('SYSFS_ROOT', '/sys')


def proc_path(*parts: str) -> str:
    return os.path.join(proc_root(), *parts)


def sys_path(*parts: str) -> str:
    return os.path.join(sys_root(), *parts)


def clock_ticks_per_second() -> int:
    """Return CLK_TCK for this host, 100 if the OS cannot tell us."""
    try:
        ticks = os.sysconf('SC_CLK_TCK')
    except (ValueError, OSError, AttributeError):
        return DEFAULT_CLK_TCK
    if not ticks or ticks <= 0:
        return DEFAULT_CLK_TCK
    return int(ticks)


def jiffies_to_ms(value: int, clk_tck: int) -> int:
    return value * 1000 // clk_tck


def read_text(path: str) -> str:
    """Read a whole virtual file. The only filesystem access a decoder performs."""
    try:
        with open(path, 'r', encoding='utf-8', errors='replace') as f:
            return f.read()
    except OSError as e:
        raise ProcfsReadError(path, e) from e


def parse_u64(token: str, line: Optional[str] = None, what: str = 'value') -> int:
    if not DEC_RE.fullmatch(token):
        raise NotANumber(f"{what} {token!r} is not an unsigned decimal integer", line)
    # int() refuses very long digit strings with a plain ValueError
    if len(token.lstrip('0')) > U64_MAX_DIGITS:
        raise NotANumber(f"{what} {token[:32]!r}... does not fit in 64 bits", line)
    value = int(token)
    if value > U64_MAX:
        raise NotANumber(f"{what} {token!r} does not fit in 64 bits", line)
    return value


def parse_hex_u64(token: str, line: Optional[str] = None, what: str = 'value') -> int:
    if not HEX_RE.fullmatch(token):
        raise NotANumber(f"{what} {token!r} is not a hexadecimal integer", line)
    value = int(token, 16)
    if value > U64_MAX:
        raise NotANumber(f"{what} {token!r} does not fit in 64 bits", line)
    return value


def parse_float(token: str, line: Optional[str] = None, what: str = 'value') -> float:
    if not FLOAT_RE.fullmatch(token):
        raise NotANumber(f"{what} {token!r} is not a decimal number", line)
    return float(token)


def strip_prefix_u64(token: str, prefix: str, line: Optional[str] = None) -> int:
    """``cpu3`` -> 3, ``domain0`` -> 0."""
    if not token.startswith(prefix):
        raise NotANumber(f"expected {prefix}<n>, got {token!r}", line)
    return parse_u64(token[len(prefix):], line, what=f'{prefix} index')


def required(tokens: Sequence[str], index: int, line: Optional[str] = None, what: str = 'field') -> str:
    if index >= len(tokens):
        raise MissingField(f"missing {what} (position {index})", line)
    return tokens[index]


def optional_u64(tokens: Sequence[str], index: int, line: Optional[str] = None, what: str = 'field') -> Optional[int]:
    """Trailing field that older kernels do not print: absent -> None, present -> parsed."""
    if index >= len(tokens):
        return None
    return parse_u64(tokens[index], line, what=what)


def decode_scalar(line: str) -> int:
    """``keyword <uint>`` -> uint."""
    tokens = line.split()
    return parse_u64(required(tokens, 1, line, what='value'), line)


def decode_vector(line: str) -> List[int]:
    """``keyword <uint> <uint> ...`` -> [uint, ...]."""
    return [parse_u64(tok, line) for tok in line.split()[1:]]
