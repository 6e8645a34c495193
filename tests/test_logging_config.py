import logging

from linktitles.logging_config import ContextFilter, logging_context


def make_record():
    return logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)


def test_context_filter_defaults():
    record = make_record()
    ContextFilter().filter(record)
    assert record.block_uuid == "N/A"
    assert record.invocation == "N/A"


def test_logging_context_sets_and_resets():
    with logging_context(block_uuid="b1", invocation="command-1"):
        record = make_record()
        ContextFilter().filter(record)
        assert (record.block_uuid, record.invocation) == ("b1", "command-1")
    record = make_record()
    ContextFilter().filter(record)
    assert record.block_uuid == "N/A"
