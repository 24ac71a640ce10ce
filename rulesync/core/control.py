"""Handlers for rule commands pushed by the control channel (setRules / getRules)."""

from __future__ import annotations

from dataclasses import dataclass

from rulesync.config.rule_kinds import RuleKind
from rulesync.core.codec import get_codec
from rulesync.core.context import RuleSyncContext
from rulesync.core.errors import RuleSyncError
from rulesync.util.logger import logger


@dataclass(slots=True)
class CommandResult:
    success: bool
    message: str
    count: int = 0


class RuleCommandHandler:
    def __init__(self, context: RuleSyncContext) -> None:
        self.context = context

    def set_rules(self, kind: RuleKind | str, data: str) -> CommandResult:
        """
        解析控制台推送的 JSON 规则，先写文件再更新内存；任一步失败都返回失败结果，内存规则保持不变。
        """
        try:
            codec = get_codec(kind)
            rules = codec.decode(data or "")
            written = self.context.write(codec.kind, rules)
        except RuleSyncError as exc:
            logger.warning("set rules failed kind=%s error=%s", kind, exc)
            return CommandResult(success=False, message=f"{type(exc).__name__}: {exc}")
        logger.info("set rules accepted kind=%s count=%d", codec.kind.value, len(written))
        return CommandResult(success=True, message="success", count=len(written))

    def get_rules(self, kind: RuleKind | str) -> str:
        codec = get_codec(kind)
        return codec.encode(self.context.current(codec.kind))
