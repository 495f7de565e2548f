"""Minimal FastAPI shim over the decoders for clients that do not speak MCP.

Read failures map to 404, decode failures and bad arguments to 400; the error
payload of the MCP tools is reused as the HTTP ``detail``.
"""
import dataclasses
from typing import Callable, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from procfs_mcp import mcp_app
from procfs_mcp.decoders import (
    block, diskstats, fs_xfs_stat, loadavg, meminfo, net_dev, pressure, schedstat, stat, vmstat,
)
from procfs_mcp.decoders.errors import ProcfsReadError

app = FastAPI(title="procfs-mcp-shim")


class HealthResponse(BaseModel):
    status: str
    service: str
    proc_root: str
    sys_root: str
    clk_tck: int
    schedstat_time_unit: str
    tools: List[str] = []


class ErrorDetail(BaseModel):
    error: str
    detail: str
    path: Optional[str] = None


def _serve(reader: Callable, *args, **kwargs) -> dict:
    try:
        return dataclasses.asdict(reader(*args, **kwargs))
    except ProcfsReadError as e:
        raise HTTPException(status_code=404, detail=ErrorDetail(**e.to_dict()).model_dump())
    except ValueError as e:
        kind = getattr(e, 'kind', 'invalid_argument')
        raise HTTPException(status_code=400, detail=ErrorDetail(error=kind, detail=str(e)).model_dump())


@app.get("/")
def root():
    return {"status": "ok", "service": "procfs-mcp-shim"}


@app.get("/healthz", response_model=HealthResponse)
def healthz():
    return HealthResponse(**mcp_app._health_impl())


@app.get("/proc/schedstat")
def proc_schedstat(time_unit: Optional[str] = None):
    return _serve(schedstat.read, time_unit=time_unit)


@app.get("/proc/{pid}/schedstat")
def proc_pid_schedstat(pid: int):
    if pid <= 0:
        raise HTTPException(status_code=400, detail=ErrorDetail(error='invalid_argument', detail=f'pid must be positive, got {pid}').model_dump())
    return _serve(schedstat.read_pid, pid)


@app.get("/proc/stat")
def proc_stat():
    return _serve(stat.read)


@app.get("/proc/meminfo")
def proc_meminfo():
    return _serve(meminfo.read)


@app.get("/proc/vmstat")
def proc_vmstat():
    return _serve(vmstat.read)


@app.get("/proc/diskstats")
def proc_diskstats():
    return _serve(diskstats.read)


@app.get("/proc/net/dev")
def proc_net_dev():
    return _serve(net_dev.read)


@app.get("/proc/pressure")
def proc_pressure():
    return _serve(pressure.read)


@app.get("/proc/loadavg")
def proc_loadavg():
    return _serve(loadavg.read)


@app.get("/proc/fs/xfs/stat")
def proc_fs_xfs_stat():
    return _serve(fs_xfs_stat.read)


@app.get("/sys/block")
def sys_block(exclude: Optional[str] = None):
    return _serve(block.read, exclude=exclude)
