"""JsonFormatter: one JSON object per line with context and extra fields."""

import json
import logging

from docvault.config.logging import JsonFormatter
from docvault.core.context import actor_ctx, correlation_id_ctx


def test_json_line_carries_context_and_extra():
    token_c = correlation_id_ctx.set("corr-1")
    token_a = actor_ctx.set("admin@z.com")
    try:
        record = logging.getLogger("docvault.test").makeRecord(
            "docvault.test", logging.INFO, __file__, 1, "document_uploaded", None, None,
            extra={"document_id": "abc", "size": 10},
        )
        line = json.loads(JsonFormatter().format(record))
    finally:
        correlation_id_ctx.reset(token_c)
        actor_ctx.reset(token_a)

    assert line["message"] == "document_uploaded"
    assert line["level"] == "INFO"
    assert line["logger"] == "docvault.test"
    assert line["correlation_id"] == "corr-1"
    assert line["actor"] == "admin@z.com"
    assert line["document_id"] == "abc"
    assert line["size"] == 10
    assert "timestamp" in line
