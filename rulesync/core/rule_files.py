"""Rule file descriptors: which file and codec back each rule kind."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from rulesync.config.rule_kinds import RULE_FILE_NAMES, RuleKind
from rulesync.core.codec import CODECS, RuleCodec


@dataclass(frozen=True, slots=True)
class RuleFileDescriptor:
    kind: RuleKind
    path: Path
    codec: RuleCodec


def build_descriptors(rule_dir: str | Path) -> dict[RuleKind, RuleFileDescriptor]:
    root = Path(rule_dir)
    return {
        kind: RuleFileDescriptor(kind=kind, path=root / file_name, codec=CODECS[kind])
        for kind, file_name in RULE_FILE_NAMES.items()
    }
