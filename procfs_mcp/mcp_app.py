import os, dataclasses
from typing import Callable, Optional

from .decoders import (
    block, diskstats, fs_xfs_stat, loadavg, meminfo, net_dev, pressure, schedstat, stat, vmstat,
)
from .decoders.common import clock_ticks_per_second, proc_root, sys_root
from .decoders.errors import ProcfsError
from .debug_util import dbg
from fastmcp import FastMCP

# ----------------- System Prompt Guidance -----------------
SYSTEM_PROMPT = (
    "You are inspecting a live Linux host through procfs-mcp. Every tool returns one fresh, "
    "decoded snapshot of a kernel file; nothing is stored between calls, so compute rates "
    "yourself from two snapshots taken a known interval apart.\n"
    "Workflow:\n"
    "1. Call healthz to see which /proc and /sys roots are being read and the host CLK_TCK.\n"
    "2. For scheduler latency questions call schedstat_snapshot. per_cpu[i].counters[7] is "
    "time spent running and counters[8] time spent waiting on the runqueue (nanoseconds, or "
    "milliseconds with time_unit='jiffies'); counters[0] is the cpu index.\n"
    "3. For a single task call pid_schedstat_snapshot(pid).\n"
    "4. For utilisation use stat_snapshot (cpu times in ms), loadavg_snapshot and "
    "pressure_snapshot (psi is null when the kernel has no PSI).\n"
    "5. Memory: meminfo_snapshot, vmstat_snapshot. Storage: diskstats_snapshot, "
    "block_snapshot, xfs_stat_snapshot. Network: net_dev_snapshot.\n"
    "A result with an 'error' key means the file could not be read ('io') or did not decode; "
    "report it rather than retrying in a loop."
)

mcp = FastMCP("procfs-mcp")

TOOL_NAMES = (
    'schedstat_snapshot', 'pid_schedstat_snapshot', 'stat_snapshot', 'meminfo_snapshot',
    'vmstat_snapshot', 'diskstats_snapshot', 'net_dev_snapshot', 'pressure_snapshot',
    'loadavg_snapshot', 'xfs_stat_snapshot', 'block_snapshot', 'clock_rate', 'healthz',
)


def _snapshot(reader: Callable, *args, **kwargs) -> dict:
    """Run one decoder and return its record as a dict; failures come back as values."""
    try:
        return dataclasses.asdict(reader(*args, **kwargs))
    except ProcfsError as e:
        dbg(f'{reader.__module__}.{reader.__name__} failed: {e}')
        return e.to_dict()
    except ValueError as e:
        return {'error': 'invalid_argument', 'detail': str(e).split('\n')[0]}


def _health_impl() -> dict:
    return {
        'status': 'ok',
        'service': 'procfs-mcp',
        'proc_root': proc_root(),
        'sys_root': sys_root(),
        'clk_tck': clock_ticks_per_second(),
        'schedstat_time_unit': schedstat.default_time_unit(),
        'tools': list(TOOL_NAMES),
        'workflow_prompt': SYSTEM_PROMPT,
    }


@mcp.tool()
def schedstat_snapshot(time_unit: Optional[str] = None) -> dict:
    """Decode /proc/schedstat.

    time_unit: 'ns' (kernel values unchanged) or 'jiffies' (run and wait time converted
    to milliseconds with the host clock rate). Defaults to PROCFS_SCHEDSTAT_TIME_UNIT or 'ns'.
    """
    return _snapshot(schedstat.read, time_unit=time_unit)


@mcp.tool()
def pid_schedstat_snapshot(pid: int) -> dict:
    """Decode /proc/<pid>/schedstat: run_time, wait_time (ns) and timeslices."""
    if not isinstance(pid, int) or pid <= 0:
        return {'error': 'invalid_argument', 'detail': f'pid must be a positive integer, got {pid!r}'}
    return _snapshot(schedstat.read_pid, pid)


@mcp.tool()
def stat_snapshot() -> dict:
    """Decode /proc/stat (cpu times in milliseconds, interrupts, context switches, boot time)."""
    return _snapshot(stat.read)


@mcp.tool()
def meminfo_snapshot() -> dict:
    """Decode /proc/meminfo (values in kB as the kernel reports them, HugePages_* as counts)."""
    return _snapshot(meminfo.read)


@mcp.tool()
def vmstat_snapshot() -> dict:
    return _snapshot(vmstat.read)


@mcp.tool()
def diskstats_snapshot() -> dict:
    """Decode /proc/diskstats, one entry per device line."""
    return _snapshot(diskstats.read)


@mcp.tool()
def net_dev_snapshot() -> dict:
    return _snapshot(net_dev.read)


@mcp.tool()
def pressure_snapshot() -> dict:
    """Decode /proc/pressure/{cpu,io,memory}; psi is null when PSI is unavailable."""
    return _snapshot(pressure.read)


@mcp.tool()
def loadavg_snapshot() -> dict:
    return _snapshot(loadavg.read)


@mcp.tool()
def xfs_stat_snapshot() -> dict:
    """Decode /proc/fs/xfs/stat read/write call and byte counters (all null without xfs)."""
    return _snapshot(fs_xfs_stat.read)


@mcp.tool()
def block_snapshot(exclude: Optional[str] = None) -> dict:
    """Decode /sys/block/<device> attributes.

    exclude: regex of device names to skip (default PROCFS_BLOCK_EXCLUDE or '^dm-';
    pass '' to include every device).
    """
    return _snapshot(block.read, exclude=exclude)


@mcp.tool()
def clock_rate() -> dict:
    """Host clock ticks per second (CLK_TCK), 100 when the OS cannot report it."""
    return {'clk_tck': clock_ticks_per_second()}


@mcp.tool()
def healthz() -> dict:
    return _health_impl()


if __name__ == '__main__':
    host = os.environ.get('HOST', '0.0.0.0')
    port = int(os.environ.get('PORT', '8000'))
    print(f'Starting FastMCP on {host}:{port} (proc={proc_root()} sys={sys_root()})')
    mcp.run(transport="http", host=host, port=port, stateless_http=True)
