import time
from contextlib import contextmanager
from typing import Any, Iterator
import logging


@contextmanager
def timed(logger: logging.Logger, name: str, **kv: Any) -> Iterator[None]:
    """
    Usage:
      with timed(logger, "task.submit", file="cv.pdf"):
          ...
    Emits "<name>.done ms=<int> key=val ..." at DEBUG on success and
    "<name>.failed ms=<int> err=<type> ..." at WARNING when the block raises.
    """
    t0 = time.perf_counter()
    suffix = "".join(f" {k}={v}" for k, v in kv.items())
    try:
        yield
    except Exception as e:
        dt_ms = int((time.perf_counter() - t0) * 1000)
        logger.warning("%s.failed ms=%d err=%s%s", name, dt_ms, type(e).__name__, suffix)
        raise
    dt_ms = int((time.perf_counter() - t0) * 1000)
    logger.debug("%s.done ms=%d%s", name, dt_ms, suffix)
