import os, logging, sys

logger = logging.getLogger("procfs_mcp")

def _ensure_logger():
    """Attach a basic StreamHandler if none present.

    Done lazily so importing a decoder never overrides the host application's
    logging configuration. Only when a debug message is actually emitted
    (DEBUG_VERBOSE=1) do we make sure a handler exists so the user sees output.
    """
    if logger.handlers:
        return
    logger.setLevel(logging.INFO)
    h = logging.StreamHandler(stream=sys.stdout)
    fmt = logging.Formatter('%(asctime)s %(levelname)s %(message)s')
    h.setFormatter(fmt)
    logger.addHandler(h)

def dbg(msg: str):
    """Emit a debug info line when DEBUG_VERBOSE=1.

    Export DEBUG_VERBOSE=1 before starting the MCP server, or set it in
    os.environ of a running process and call the tool again.
    """
    if os.environ.get('DEBUG_VERBOSE') == '1':
        _ensure_logger()
        logger.info('[debug] %s', msg)

def warn_unrecognized(source: str, line: str):
    """Report a line a decoder does not know and is skipping.

    Newer kernels add keys and line kinds; those must never break decoding of
    the known ones, so this is a warning and never an exception.
    """
    logger.warning('%s: unrecognized entry skipped: %s', source, line[:160])
