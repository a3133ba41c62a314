from __future__ import annotations

import logging

from classroom_chat.api.middleware.request_id import RequestIdFilter, request_id_ctx


def _record() -> logging.LogRecord:
    return logging.LogRecord("classroom_chat", logging.INFO, __file__, 1, "msg", None, None)


def test_filter_defaults_to_dash():
    record = _record()

    assert RequestIdFilter().filter(record) is True
    assert record.request_id == "-"


def test_filter_uses_current_request_id():
    token = request_id_ctx.set("req-1")
    try:
        record = _record()
        RequestIdFilter().filter(record)
    finally:
        request_id_ctx.reset(token)

    assert record.request_id == "req-1"
