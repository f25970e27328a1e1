"""Tests for log formatting and correlation IDs."""

import json
import logging

from app.shared.correlation import CorrelationContext, get_correlation_id
from app.shared.logging_config import CorrelationIdFilter, HumanReadableFormatter, JSONFormatter


def make_record(message="Indexed source", **extra):
    record = logging.LogRecord("Memora.Knowledge.Indexer", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_correlation_context_sets_and_restores():
    assert get_correlation_id() is None
    with CorrelationContext("ingest-42") as cid:
        assert cid == "ingest-42"
        assert get_correlation_id() == "ingest-42"
    assert get_correlation_id() is None


def test_filter_stamps_active_correlation_id():
    record = make_record()
    with CorrelationContext("abc12345"):
        CorrelationIdFilter().filter(record)
    assert record.correlation_id == "abc12345"

    other = make_record()
    CorrelationIdFilter().filter(other)
    assert other.correlation_id == "-"


def test_json_formatter_merges_extra_fields():
    record = make_record(correlation_id="abc", source_id=42, fragments=3, unserializable={1, 2})

    entry = json.loads(JSONFormatter(service_name="memora-test").format(record))

    assert entry["message"] == "Indexed source"
    assert entry["logger"] == "Memora.Knowledge.Indexer"
    assert entry["service"] == "memora-test"
    assert entry["correlation_id"] == "abc"
    assert entry["source_id"] == 42
    assert entry["fragments"] == 3
    assert entry["unserializable"] == str({1, 2})


def test_json_formatter_omits_placeholder_correlation_id():
    entry = json.loads(JSONFormatter().format(make_record(correlation_id="-")))
    assert "correlation_id" not in entry


def test_human_readable_formatter():
    line = HumanReadableFormatter().format(make_record(correlation_id="abc", source_id=42))
    assert "[INFO] [abc] Memora.Knowledge.Indexer: Indexed source | source_id=42" in line
