"""Process-wide rule sync context: one property, source and sink per rule kind."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

from rulesync.config.rule_kinds import RuleKind, resolve_kind
from rulesync.config.settings import Settings, settings as default_settings
from rulesync.core.codec import RuleSet
from rulesync.core.file_sink import FileRuleSink
from rulesync.core.file_source import FileRuleSource
from rulesync.core.rule_files import RuleFileDescriptor, build_descriptors
from rulesync.core.rule_property import RuleProperty
from rulesync.init_config import ensure_layout, rule_root
from rulesync.util.logger import logger


class RuleSyncContext:
    """Owns the live rule properties shared with the enforcement engine.

    Construct once at startup. Construction prepares the rule directory and
    fails with BootstrapError if it cannot; watchers only run after
    ``start()``.
    """

    def __init__(
        self,
        rule_dir: str | Path | None = None,
        *,
        poll_interval_seconds: float | None = None,
        io_timeout_seconds: float | None = None,
        max_bytes: int | None = None,
        encoding: str | None = None,
    ) -> None:
        self.rule_dir = rule_root(rule_dir)
        ensure_layout(self.rule_dir)

        self.descriptors: dict[RuleKind, RuleFileDescriptor] = build_descriptors(self.rule_dir)
        self._properties: dict[RuleKind, RuleProperty] = {}
        self._sources: dict[RuleKind, FileRuleSource] = {}
        self._sinks: dict[RuleKind, FileRuleSink] = {}
        for kind, descriptor in self.descriptors.items():
            rule_property = RuleProperty(kind)
            source = FileRuleSource(
                descriptor,
                rule_property,
                poll_interval_seconds=poll_interval_seconds,
                io_timeout_seconds=io_timeout_seconds,
                max_bytes=max_bytes,
                encoding=encoding,
            )
            self._properties[kind] = rule_property
            self._sources[kind] = source
            self._sinks[kind] = FileRuleSink(source)
        logger.info("rule sync context ready root=%s kinds=%s", self.rule_dir, [k.value for k in self.descriptors])

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> RuleSyncContext:
        cfg = config or default_settings
        return cls(
            cfg.rule_dir,
            poll_interval_seconds=cfg.poll_interval_seconds,
            io_timeout_seconds=cfg.io_timeout_seconds,
            max_bytes=cfg.max_rule_file_bytes,
            encoding=cfg.rule_file_encoding,
        )

    def property(self, kind: RuleKind | str) -> RuleProperty:
        return self._properties[resolve_kind(kind)]

    def current(self, kind: RuleKind | str) -> RuleSet:
        return self.property(kind).current()

    def source(self, kind: RuleKind | str) -> FileRuleSource:
        return self._sources[resolve_kind(kind)]

    def sink(self, kind: RuleKind | str) -> FileRuleSink:
        return self._sinks[resolve_kind(kind)]

    def write(self, kind: RuleKind | str, rules: Iterable[Any]) -> RuleSet:
        return self.sink(kind).write(rules)

    def refresh_all(self) -> dict[RuleKind, bool]:
        return {kind: source.refresh() for kind, source in self._sources.items()}

    def start(self) -> None:
        for source in self._sources.values():
            source.start()

    def stop(self, timeout_seconds: float = 1.0) -> None:
        for source in self._sources.values():
            source.stop(timeout_seconds=timeout_seconds)

    def __enter__(self) -> RuleSyncContext:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()
