import threading
import time

import pytest

from rulesync.config.rule_kinds import RuleKind
from rulesync.core import file_source, fileio
from rulesync.core.errors import RuleDecodeError
from rulesync.core.file_source import FileRuleSource
from rulesync.core.models import FlowRule
from rulesync.core.rule_files import build_descriptors
from rulesync.core.rule_property import RuleProperty
from rulesync.init_config import ensure_layout


def _make_source(root, kind=RuleKind.FLOW, **kwargs):
    ensure_layout(root)
    descriptor = build_descriptors(root)[kind]
    prop = RuleProperty(kind)
    kwargs.setdefault("poll_interval_seconds", 0.05)
    return FileRuleSource(descriptor, prop, **kwargs), prop


def _capture_counters(monkeypatch):
    counters = []
    monkeypatch.setattr(file_source, "emit_counter", lambda name, value=1, labels=None: counters.append(name))
    return counters


def test_external_edit_is_published(tmp_path):
    source, prop = _make_source(tmp_path)
    source.descriptor.path.write_text('[{"resource":"foo","count":10}]', encoding="utf-8")

    assert source.refresh() is True
    assert prop.current() == (FlowRule(resource="foo", count=10),)
    assert prop.update_count == 1


def test_unchanged_content_is_not_republished(tmp_path):
    source, prop = _make_source(tmp_path)
    source.descriptor.path.write_text('[{"resource":"foo","count":10}]', encoding="utf-8")

    assert source.refresh() is True
    assert source.refresh() is False
    # 重写相同内容：指纹不变，不会再次发布
    source.descriptor.path.write_text('[{"resource":"foo","count":10}]', encoding="utf-8")
    assert source.refresh() is False
    assert prop.update_count == 1


def test_invalid_content_keeps_previous_rules_and_is_retried(tmp_path, monkeypatch):
    counters = _capture_counters(monkeypatch)
    source, prop = _make_source(tmp_path)
    path = source.descriptor.path
    path.write_text('[{"resource":"foo","count":10}]', encoding="utf-8")
    source.refresh()
    accepted = source.fingerprint

    path.write_text('[{"resource":"foo",', encoding="utf-8")
    assert source.refresh() is False
    assert source.refresh() is False
    assert prop.current() == (FlowRule(resource="foo", count=10),)
    assert source.fingerprint == accepted
    assert counters.count("rule_decode_failed") == 2

    path.write_text('[{"resource":"bar","count":1}]', encoding="utf-8")
    assert source.refresh() is True
    assert prop.current() == (FlowRule(resource="bar", count=1),)


def test_missing_file_is_reported_and_not_raised(tmp_path, monkeypatch):
    counters = _capture_counters(monkeypatch)
    source, prop = _make_source(tmp_path)
    source.descriptor.path.write_text('[{"resource":"foo","count":10}]', encoding="utf-8")
    source.refresh()

    source.descriptor.path.unlink()
    assert source.refresh() is False
    assert prop.current() == (FlowRule(resource="foo", count=10),)
    assert counters.count("rule_read_failed") == 1


def test_oversized_file_is_treated_as_read_failure(tmp_path, monkeypatch):
    counters = _capture_counters(monkeypatch)
    source, prop = _make_source(tmp_path, max_bytes=16)
    source.descriptor.path.write_text('[{"resource":"foo","count":10}]', encoding="utf-8")

    assert source.refresh() is False
    assert prop.current() == ()
    assert counters == ["rule_read_failed"]


def test_file_truncated_to_zero_bytes_clears_rules(tmp_path):
    source, prop = _make_source(tmp_path)
    source.descriptor.path.write_text('[{"resource":"foo","count":10}]', encoding="utf-8")
    source.refresh()

    source.descriptor.path.write_bytes(b"")
    assert source.refresh() is True
    assert prop.current() == ()
    assert prop.update_count == 2


def test_load_decodes_without_publishing(tmp_path):
    source, prop = _make_source(tmp_path)
    source.descriptor.path.write_text('[{"resource":"foo","count":10}]', encoding="utf-8")

    assert source.load() == (FlowRule(resource="foo", count=10),)
    assert prop.update_count == 0

    source.descriptor.path.write_text("not json", encoding="utf-8")
    with pytest.raises(RuleDecodeError):
        source.load()


def test_accept_written_suppresses_echo(tmp_path):
    source, prop = _make_source(tmp_path)
    data = b'[{"resource":"foo","count":10}]'
    source.accept_written(data)
    source.descriptor.path.write_bytes(data)

    assert source.refresh() is False
    assert prop.update_count == 0


def test_poller_picks_up_changes_and_stops_cleanly(tmp_path):
    source, prop = _make_source(tmp_path)
    source.start()
    try:
        assert source.running
        source.descriptor.path.write_text('[{"resource":"foo","count":10}]', encoding="utf-8")
        deadline = time.monotonic() + 3.0
        while prop.update_count == 0 and time.monotonic() < deadline:
            time.sleep(0.02)
        assert prop.current() == (FlowRule(resource="foo", count=10),)
    finally:
        source.stop()

    assert not source.running
    source.descriptor.path.write_text('[{"resource":"bar","count":1}]', encoding="utf-8")
    time.sleep(0.2)
    assert prop.current() == (FlowRule(resource="foo", count=10),)


def test_read_timeout_is_transient_and_keeps_rules(tmp_path, monkeypatch):
    counters = _capture_counters(monkeypatch)
    source, prop = _make_source(tmp_path, io_timeout_seconds=0.1)
    path = source.descriptor.path
    path.write_text('[{"resource":"foo","count":10}]', encoding="utf-8")
    source.refresh()

    gate = threading.Event()
    original = fileio._read

    def slow_read(target, max_bytes):
        gate.wait(5)
        return original(target, max_bytes)

    monkeypatch.setattr(fileio, "_read", slow_read)
    path.write_text('[{"resource":"bar","count":1}]', encoding="utf-8")
    try:
        assert source.refresh() is False
        assert prop.current() == (FlowRule(resource="foo", count=10),)
        assert counters.count("rule_read_failed") == 1
    finally:
        gate.set()

    assert source.refresh() is True
    assert prop.current() == (FlowRule(resource="bar", count=1),)


def test_restart_after_stuck_stop_leaves_single_poller(tmp_path, monkeypatch):
    source, _prop = _make_source(tmp_path, poll_interval_seconds=0.02)
    source.start()
    old = source._thread

    entered = threading.Event()
    gate = threading.Event()
    original = fileio._read

    def stuck_read(target, max_bytes):
        entered.set()
        gate.wait(5)
        return original(target, max_bytes)

    monkeypatch.setattr(fileio, "_read", stuck_read)
    try:
        assert entered.wait(2)
        source.stop(timeout_seconds=0.05)
        assert old.is_alive()

        threading.Timer(0.2, gate.set).start()
        source.start()

        old.join(2)
        assert not old.is_alive()
        assert source.running
        assert source._thread is not old
    finally:
        gate.set()
        source.stop()
