"""JSON codecs for rule sets, one per rule kind."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pydantic import TypeAdapter, ValidationError

from rulesync.config.rule_kinds import RuleKind, resolve_kind
from rulesync.core.errors import RuleDecodeError, RuleEncodeError
from rulesync.core.models import (
    AuthorityRule,
    DegradeRule,
    FlowRule,
    ParamFlowRule,
    RuleModel,
    SystemRule,
)


RuleSet = tuple[RuleModel, ...]


class RuleCodec:
    """Decodes a JSON array into an immutable rule set and back."""

    def __init__(self, kind: RuleKind, model: type[RuleModel]) -> None:
        self.kind = kind
        self.model = model
        self._adapter: TypeAdapter[tuple[Any, ...]] = TypeAdapter(tuple[model, ...])

    def decode(self, text: str) -> RuleSet:
        # 空文件等价于 "[]"：没有配置任何规则
        if not text.strip():
            return ()
        try:
            return self._adapter.validate_json(text)
        except ValidationError as exc:
            raise RuleDecodeError(
                f"invalid {self.kind.value} rules: {exc.error_count()} error(s): {exc.errors()[0]['msg']}"
            ) from exc

    def decode_bytes(self, data: bytes, encoding: str = "utf-8") -> RuleSet:
        try:
            text = data.decode(encoding)
        except UnicodeDecodeError as exc:
            raise RuleDecodeError(f"invalid {self.kind.value} rules: not {encoding} text") from exc
        return self.decode(text)

    def normalize(self, rules: Iterable[Any]) -> RuleSet:
        """Validate rules given as models or plain mappings."""
        try:
            return self._adapter.validate_python(tuple(rules))
        except (ValidationError, TypeError) as exc:
            raise RuleEncodeError(f"cannot encode {self.kind.value} rules: {exc}") from exc

    def encode(self, rules: Iterable[Any]) -> str:
        rule_set = self.normalize(rules)
        try:
            raw = self._adapter.dump_json(rule_set, indent=2, by_alias=True, exclude_none=True)
        except (ValueError, TypeError) as exc:
            raise RuleEncodeError(f"cannot encode {self.kind.value} rules: {exc}") from exc
        return raw.decode("utf-8")


CODECS: dict[RuleKind, RuleCodec] = {
    RuleKind.FLOW: RuleCodec(RuleKind.FLOW, FlowRule),
    RuleKind.DEGRADE: RuleCodec(RuleKind.DEGRADE, DegradeRule),
    RuleKind.SYSTEM: RuleCodec(RuleKind.SYSTEM, SystemRule),
    RuleKind.AUTHORITY: RuleCodec(RuleKind.AUTHORITY, AuthorityRule),
    RuleKind.PARAM_FLOW: RuleCodec(RuleKind.PARAM_FLOW, ParamFlowRule),
}


def get_codec(kind: RuleKind | str) -> RuleCodec:
    return CODECS[resolve_kind(kind)]
