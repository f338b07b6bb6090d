import logging
import os
import sys
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class _RunContext:
    run: str
    pid: int


class _RunFilter(logging.Filter):
    def __init__(self, ctx: _RunContext):
        super().__init__()
        self._ctx = ctx

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        # Inject run fields so formatters can use %(run)s / %(pid)d.
        record.run = self._ctx.run
        record.pid = self._ctx.pid
        return True


def setup_logging(
    output_path: Optional[str] = None,
    run_name: str = "npcmind",
    *,
    level: int = logging.INFO,
    log_subdir: str = "logs",
    stream: Optional[object] = None,
) -> Optional[str]:
    """
    Configure logging for a host process running one or more actors:
    - stream to console (stdout by default)
    - if `output_path` is given, also write to {output_path}/{log_subdir}/{run_name}.log

    Calling it again for the same log file is a no-op. Returns the absolute log file
    path, or None when only streaming.
    """
    if stream is None:
        stream = sys.stdout

    ctx = _RunContext(run=run_name, pid=os.getpid())
    run_filter = _RunFilter(ctx)
    fmt = logging.Formatter("%(asctime)s | %(levelname)s | %(run)s/%(pid)d | %(name)s | %(message)s")

    root = logging.getLogger()
    root.setLevel(level)

    log_file = None
    if output_path:
        log_dir = os.path.join(output_path, log_subdir)
        os.makedirs(log_dir, exist_ok=True)
        log_file = os.path.abspath(os.path.join(log_dir, f"{run_name}.log"))

        # Reuse an existing handler for this file.
        for h in root.handlers:
            if isinstance(h, logging.FileHandler) and os.path.abspath(getattr(h, "baseFilename", "")) == log_file:
                return log_file

        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setLevel(level)
        file_handler.setFormatter(fmt)
        file_handler.addFilter(run_filter)
        root.addHandler(file_handler)

    has_stream = any(
        type(h) is logging.StreamHandler and getattr(h, "stream", None) is stream for h in root.handlers
    )
    if not has_stream:
        stream_handler = logging.StreamHandler(stream=stream)
        stream_handler.setLevel(level)
        stream_handler.setFormatter(fmt)
        stream_handler.addFilter(run_filter)
        root.addHandler(stream_handler)

    # Common noisy libs
    for noisy in ("httpx", "httpcore", "openai", "urllib3", "werkzeug"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return log_file
