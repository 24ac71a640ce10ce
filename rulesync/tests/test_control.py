import json

from rulesync.config.rule_kinds import RuleKind
from rulesync.core import file_sink
from rulesync.core.context import RuleSyncContext
from rulesync.core.control import RuleCommandHandler
from rulesync.core.errors import RuleFileIOError
from rulesync.core.models import ParamFlowRule


def _handler(tmp_path):
    ctx = RuleSyncContext(tmp_path / "rules")
    ctx.refresh_all()
    return ctx, RuleCommandHandler(ctx)


def test_set_rules_writes_and_publishes(tmp_path):
    ctx, handler = _handler(tmp_path)

    result = handler.set_rules("paramFlow", '[{"resource":"hot","paramIdx":1,"count":5}]')

    assert result.success is True
    assert result.count == 1
    assert ctx.current("param_flow") == (ParamFlowRule(resource="hot", param_idx=1, count=5),)
    assert ctx.source("param_flow").refresh() is False


def test_set_rules_reports_malformed_payload(tmp_path):
    ctx, handler = _handler(tmp_path)
    path = ctx.descriptors[RuleKind.FLOW].path
    before = path.read_bytes()

    result = handler.set_rules("flow", "[{")

    assert result.success is False
    assert "RuleDecodeError" in result.message
    assert ctx.current("flow") == ()
    assert path.read_bytes() == before


def test_set_rules_reports_unknown_kind(tmp_path):
    _ctx, handler = _handler(tmp_path)
    result = handler.set_rules("gateway", "[]")
    assert result.success is False
    assert "UnknownRuleKindError" in result.message


def test_set_rules_reports_write_failure(tmp_path, monkeypatch):
    ctx, handler = _handler(tmp_path)

    def fail(*_args, **_kwargs):
        raise RuleFileIOError("read-only file system")

    monkeypatch.setattr(file_sink, "write_rule_file", fail)
    result = handler.set_rules("system", '[{"qps": 100}]')

    assert result.success is False
    assert "read-only file system" in result.message
    assert ctx.current("system") == ()


def test_get_rules_returns_current_rules_as_json(tmp_path):
    ctx, handler = _handler(tmp_path)
    handler.set_rules("authority", '[{"resource":"admin","limitApp":"ops","strategy":1}]')

    raw = json.loads(handler.get_rules("authority"))

    assert raw == [{"resource": "admin", "limitApp": "ops", "strategy": 1}]
    assert handler.get_rules("degrade").strip() == "[]"
