"""Observable in-memory cell holding the live rule set of one kind."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from threading import RLock
from typing import Any

from rulesync.config.rule_kinds import RuleKind
from rulesync.core.codec import RuleSet
from rulesync.util.logger import logger


RuleListener = Callable[[RuleSet], Any]


class RuleProperty:
    """Current rule set for one rule kind.

    ``current()`` is a plain attribute read and never waits on writers or
    file I/O. Updates and their listener notifications are serialized by one
    re-entrant lock, so each listener sees updates in publish order. A
    listener may itself publish; the older value is then not delivered to
    the listeners it had not reached yet.
    """

    def __init__(self, kind: RuleKind, initial: Iterable[Any] = ()) -> None:
        self.kind = kind
        self._value: RuleSet = tuple(initial)
        self._listeners: list[RuleListener] = []
        self._lock = RLock()
        self._update_count = 0

    def current(self) -> RuleSet:
        return self._value

    @property
    def update_count(self) -> int:
        return self._update_count

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def add_listener(self, listener: RuleListener) -> None:
        """Register a listener and hand it the current value right away."""
        with self._lock:
            if listener in self._listeners:
                return
            self._listeners.append(listener)
            self._notify(listener, self._value)

    def remove_listener(self, listener: RuleListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def update_value(self, value: Iterable[Any]) -> bool:
        """Replace the rule set; returns False when it equals the current one."""
        new_value: RuleSet = tuple(value)
        with self._lock:
            if new_value == self._value:
                logger.debug("rule property unchanged kind=%s count=%d", self.kind.value, len(new_value))
                return False
            self._value = new_value
            self._update_count += 1
            logger.info(
                "rule property updated kind=%s count=%d version=%d",
                self.kind.value,
                len(new_value),
                self._update_count,
            )
            version = self._update_count
            for listener in list(self._listeners):
                # 监听器内部再次发布时，新值已经送达所有监听器，旧值不再继续下发
                if self._update_count != version:
                    break
                self._notify(listener, new_value)
            return True

    def _notify(self, listener: RuleListener, value: RuleSet) -> None:
        try:
            listener(value)
        except Exception as exc:
            logger.warning(
                "rule listener failed kind=%s listener=%r error=%s",
                self.kind.value,
                listener,
                exc,
            )
