"""Rule kinds and their fixed file names under the rule directory."""

from __future__ import annotations

from enum import Enum

from rulesync.core.errors import UnknownRuleKindError


class RuleKind(str, Enum):
    FLOW = "flow"
    DEGRADE = "degrade"
    SYSTEM = "system"
    AUTHORITY = "authority"
    PARAM_FLOW = "param_flow"


RULE_FILE_NAMES: dict[RuleKind, str] = {
    RuleKind.FLOW: "flow-rule.json",
    RuleKind.DEGRADE: "degrade-rule.json",
    RuleKind.SYSTEM: "system-rule.json",
    RuleKind.AUTHORITY: "authority-rule.json",
    RuleKind.PARAM_FLOW: "param-flow-rule.json",
}

# 控制台命令里使用的类型名 -> RuleKind
_KIND_ALIASES: dict[str, RuleKind] = {
    "paramflow": RuleKind.PARAM_FLOW,
    "param-flow": RuleKind.PARAM_FLOW,
    "param_flow": RuleKind.PARAM_FLOW,
    "hot_param": RuleKind.PARAM_FLOW,
}


def resolve_kind(raw: RuleKind | str) -> RuleKind:
    if isinstance(raw, RuleKind):
        return raw
    candidate = str(raw or "").strip().lower()
    if candidate in _KIND_ALIASES:
        return _KIND_ALIASES[candidate]
    try:
        return RuleKind(candidate)
    except ValueError:
        raise UnknownRuleKindError(f"unknown rule kind: {raw!r}") from None


def rule_file_name(kind: RuleKind | str) -> str:
    return RULE_FILE_NAMES[resolve_kind(kind)]
