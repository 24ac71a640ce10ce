"""Bounded rule file I/O and content fingerprints."""

from __future__ import annotations

import contextlib
import hashlib
import os
import stat
import tempfile
import threading
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from rulesync.core.errors import RuleFileIOError


@dataclass(frozen=True, slots=True)
class Fingerprint:
    size: int
    digest: str

    @classmethod
    def of(cls, data: bytes) -> Fingerprint:
        return cls(size=len(data), digest=hashlib.sha256(data).hexdigest())


def _read(path: Path, max_bytes: int) -> bytes:
    # FIFO、设备文件等会让 open/read 永久阻塞，只接受普通文件
    if not stat.S_ISREG(os.stat(path).st_mode):
        raise RuleFileIOError(f"rule path is not a regular file: {path}")
    with path.open("rb") as handle:
        data = handle.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise RuleFileIOError(f"rule file exceeds {max_bytes} bytes: {path}")
    return data


def _replace(path: Path, data: bytes) -> None:
    # 先写临时文件再 os.replace，轮询线程不会读到写了一半的内容
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise


def _run_bounded(func: Callable[..., Any], *args: Any, timeout: float, action: str, path: Path) -> Any:
    """Run ``func`` on its own daemon thread and wait at most ``timeout``.

    A call that never returns only pins its own thread; other kinds and
    interpreter shutdown are not held up by it.
    """
    outcome: dict[str, Any] = {}

    def target() -> None:
        try:
            outcome["value"] = func(*args)
        except BaseException as exc:
            outcome["error"] = exc

    worker = threading.Thread(target=target, name=f"rulesync-io-{action}-{path.name}", daemon=True)
    worker.start()
    worker.join(timeout)
    if worker.is_alive():
        raise RuleFileIOError(f"{action} timed out after {timeout}s: {path}")
    if "error" in outcome:
        raise outcome["error"]
    return outcome.get("value")


def read_rule_file(path: Path, *, max_bytes: int, timeout: float) -> bytes:
    try:
        return _run_bounded(_read, path, max_bytes, timeout=timeout, action="read", path=path)
    except RuleFileIOError:
        raise
    except OSError as exc:
        raise RuleFileIOError(f"cannot read {path}: {exc}") from exc


def write_rule_file(path: Path, data: bytes, *, timeout: float) -> None:
    try:
        _run_bounded(_replace, path, data, timeout=timeout, action="write", path=path)
    except RuleFileIOError:
        raise
    except OSError as exc:
        raise RuleFileIOError(f"cannot write {path}: {exc}") from exc
