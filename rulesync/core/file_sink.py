"""Writable rule sink: persists pushed rule sets to the watched file."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from rulesync.core.codec import RuleSet
from rulesync.core.errors import RuleEncodeError, RuleFileIOError
from rulesync.core.file_source import FileRuleSource
from rulesync.core.fileio import write_rule_file
from rulesync.observability.metrics import emit_counter
from rulesync.util.logger import logger


class FileRuleSink:
    """Push path for one rule kind, paired with the kind's FileRuleSource."""

    def __init__(self, source: FileRuleSource) -> None:
        self.source = source
        self.descriptor = source.descriptor
        self.property = source.property

    @property
    def kind(self) -> str:
        return self.descriptor.kind.value

    def write(self, rules: Iterable[Any]) -> RuleSet:
        """Encode, persist and publish ``rules``.

        Raises RuleEncodeError or RuleFileIOError; on either the property and
        the file keep their previous content.
        """
        try:
            rule_set = self.descriptor.codec.normalize(rules)
            text = self.descriptor.codec.encode(rule_set)
            try:
                data = text.encode(self.source.encoding)
            except UnicodeEncodeError as exc:
                raise RuleEncodeError(f"cannot encode {self.kind} rules as {self.source.encoding}") from exc
        except RuleEncodeError as exc:
            logger.warning("rule encode failed kind=%s error=%s", self.kind, exc)
            emit_counter("rule_write_failed", labels={"kind": self.kind, "reason": "encode"})
            raise

        with self.source.lock:
            try:
                write_rule_file(self.descriptor.path, data, timeout=self.source.io_timeout_seconds)
            except RuleFileIOError as exc:
                logger.error("rule file write failed kind=%s path=%s error=%s", self.kind, self.descriptor.path, exc)
                emit_counter("rule_write_failed", labels={"kind": self.kind, "reason": "io"})
                raise
            self.source.accept_written(data)
            changed = self.property.update_value(rule_set)

        logger.info(
            "rule file written kind=%s path=%s count=%d changed=%s",
            self.kind,
            self.descriptor.path,
            len(rule_set),
            changed,
        )
        emit_counter("rule_written", labels={"kind": self.kind})
        return rule_set
