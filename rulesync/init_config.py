"""
启动前准备规则目录：若规则根目录或五个规则文件不存在则创建空文件，已有文件不覆盖、不截断。
可在应用 startup 时调用，也可单独执行：python -m rulesync.init_config
"""

from __future__ import annotations

from pathlib import Path

from rulesync.config.rule_kinds import RULE_FILE_NAMES, RuleKind
from rulesync.config.settings import settings
from rulesync.core.errors import BootstrapError
from rulesync.util.logger import logger


def rule_root(rule_dir: str | Path | None = None) -> Path:
    """规则根目录：显式参数优先，其次 RULESYNC_RULE_DIR（settings.rule_dir）。"""
    path = Path(rule_dir if rule_dir is not None else settings.rule_dir)
    return path if path.is_absolute() else Path.cwd() / path


def ensure_layout(rule_dir: str | Path | None = None) -> dict[RuleKind, Path]:
    root = rule_root(rule_dir)
    try:
        root.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise BootstrapError(f"cannot create rule directory {root}: {exc}") from exc

    paths: dict[RuleKind, Path] = {}
    for kind, name in RULE_FILE_NAMES.items():
        path = root / name
        if not path.exists():
            try:
                # "x" 模式：并发启动时别的进程先建好了文件也不会被清空
                with path.open("x", encoding="utf-8"):
                    pass
                logger.info("init_config: created %s", path)
            except FileExistsError:
                pass
            except OSError as exc:
                raise BootstrapError(f"cannot create rule file {path}: {exc}") from exc
        elif not path.is_file():
            raise BootstrapError(f"rule path is not a file: {path}")
        paths[kind] = path
    return paths


def missing_rule_files(rule_dir: str | Path | None = None) -> list[str]:
    root = rule_root(rule_dir)
    return [name for name in RULE_FILE_NAMES.values() if not (root / name).is_file()]


def assert_layout_ready(rule_dir: str | Path | None = None) -> None:
    root = rule_root(rule_dir)
    missing = missing_rule_files(root)
    if missing:
        raise BootstrapError(f"missing rule files in {root}: {', '.join(missing)}")


def main() -> None:
    """命令行或 one-off 容器执行时调用。"""
    ensure_layout()
    if settings.init_strict:
        assert_layout_ready()
        logger.info("init_config: rule layout ready root=%s", rule_root())


if __name__ == "__main__":
    main()
