"""Readable rule source: polls one rule file and publishes decoded changes."""

from __future__ import annotations

import threading
from threading import RLock

from rulesync.config.settings import settings
from rulesync.core.codec import RuleSet
from rulesync.core.errors import RuleDecodeError, RuleFileIOError
from rulesync.core.fileio import Fingerprint, read_rule_file
from rulesync.core.rule_files import RuleFileDescriptor
from rulesync.core.rule_property import RuleProperty
from rulesync.observability.metrics import emit_counter
from rulesync.util.logger import logger


class FileRuleSource:
    """Pull path for one rule kind.

    Each tick reads the whole file and compares its fingerprint with the
    last content that was published (or written by the paired sink). Only a
    new fingerprint that decodes cleanly reaches the property; a decode
    failure leaves the fingerprint where it was so the same content is tried
    again on the next tick.
    """

    def __init__(
        self,
        descriptor: RuleFileDescriptor,
        rule_property: RuleProperty,
        *,
        poll_interval_seconds: float | None = None,
        io_timeout_seconds: float | None = None,
        max_bytes: int | None = None,
        encoding: str | None = None,
    ) -> None:
        self.descriptor = descriptor
        self.property = rule_property
        self.poll_interval_seconds = float(poll_interval_seconds or settings.poll_interval_seconds)
        self.io_timeout_seconds = float(io_timeout_seconds or settings.io_timeout_seconds)
        self.max_bytes = int(max_bytes or settings.max_rule_file_bytes)
        self.encoding = encoding or settings.rule_file_encoding
        # source 与配对的 sink 共用这把锁，保证 "写文件 + 更新指纹" 对轮询线程是原子的
        self.lock = RLock()
        self._fingerprint: Fingerprint | None = None
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def kind(self) -> str:
        return self.descriptor.kind.value

    @property
    def fingerprint(self) -> Fingerprint | None:
        return self._fingerprint

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _read(self) -> bytes:
        return read_rule_file(
            self.descriptor.path,
            max_bytes=self.max_bytes,
            timeout=self.io_timeout_seconds,
        )

    def load(self) -> RuleSet:
        """Read and decode the file without publishing; errors propagate."""
        return self.descriptor.codec.decode_bytes(self._read(), self.encoding)

    def refresh(self) -> bool:
        """Run one poll tick. Returns True when a new rule set was published."""
        with self.lock:
            try:
                data = self._read()
            except RuleFileIOError as exc:
                logger.warning("rule file read failed kind=%s path=%s error=%s", self.kind, self.descriptor.path, exc)
                emit_counter("rule_read_failed", labels={"kind": self.kind})
                return False

            fingerprint = Fingerprint.of(data)
            if fingerprint == self._fingerprint:
                return False

            try:
                rules = self.descriptor.codec.decode_bytes(data, self.encoding)
            except RuleDecodeError as exc:
                logger.warning(
                    "rule file rejected, keeping previous rules kind=%s path=%s error=%s",
                    self.kind,
                    self.descriptor.path,
                    exc,
                )
                emit_counter("rule_decode_failed", labels={"kind": self.kind})
                return False

            self._fingerprint = fingerprint
            changed = self.property.update_value(rules)
            logger.info(
                "rule file loaded kind=%s path=%s count=%d changed=%s",
                self.kind,
                self.descriptor.path,
                len(rules),
                changed,
            )
            if changed:
                emit_counter("rule_published", labels={"kind": self.kind, "origin": "file"})
            return changed

    def accept_written(self, data: bytes) -> None:
        """Record content written by the paired sink as already seen."""
        with self.lock:
            self._fingerprint = Fingerprint.of(data)

    def start(self) -> None:
        if self.running:
            return
        self.refresh()
        # 每次启动使用独立的停止事件，stop 超时未退出的旧线程不会被重新唤醒
        stop_event = threading.Event()
        self._stop_event = stop_event
        self._thread = threading.Thread(
            target=self._run_loop,
            args=(stop_event,),
            name=f"rulesync-poll-{self.kind}",
            daemon=True,
        )
        self._thread.start()
        logger.info(
            "rule file watcher started kind=%s path=%s interval=%ss",
            self.kind,
            self.descriptor.path,
            self.poll_interval_seconds,
        )

    def stop(self, timeout_seconds: float = 1.0) -> None:
        if self._thread is None:
            return
        self._stop_event.set()
        thread = self._thread
        thread.join(timeout=timeout_seconds)
        self._thread = None
        if thread.is_alive():
            logger.warning("rule file watcher still finishing a tick kind=%s", self.kind)
        logger.info("rule file watcher stopped kind=%s", self.kind)

    def _run_loop(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.poll_interval_seconds):
            try:
                self.refresh()
            except Exception as exc:  # pragma: no cover - operational guard
                logger.warning("rule file poll failed kind=%s error=%s", self.kind, exc)
