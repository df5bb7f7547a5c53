import json
import logging

from gemini_core.agents.gemini_client import GeminiClient
from gemini_core.domain.models import ClientConfig
from gemini_core.infrastructure.logging.logger import LOGGER_NAME, ClientLogger, JsonFormatter, client_logger


def make_record(msg, extra=None):
    record = logging.LogRecord(LOGGER_NAME, logging.INFO, __file__, 1, msg, None, None)
    if extra is not None:
        record.extra = extra
    return record


def test_json_formatter_merges_extra_fields():
    line = JsonFormatter().format(make_record("hello", {"model": "gemini-2.5-flash", "operation": "generate"}))
    payload = json.loads(line)
    assert payload["msg"] == "hello"
    assert payload["level"] == "INFO"
    assert payload["name"] == LOGGER_NAME
    assert payload["model"] == "gemini-2.5-flash"
    assert payload["operation"] == "generate"


def test_json_formatter_redacts_long_messages():
    payload = json.loads(JsonFormatter(redact_content=True).format(make_record("x" * 200)))
    assert payload["msg"] == "x" * 64


def test_client_logger_call_fields_win_over_bound_context():
    adapter = client_logger(mode="direct", model="m1")
    msg, kwargs = adapter.process("sent", {"extra": {"extra": {"model": "m2", "operation": "send_message"}}})
    assert msg == "sent"
    assert kwargs["extra"] == {"extra": {"mode": "direct", "model": "m2", "operation": "send_message"}}


def test_client_logger_bind_returns_new_adapter():
    base = client_logger(mode="direct")
    bound = base.bind(model="m1")
    assert isinstance(bound, ClientLogger)
    assert bound.extra == {"mode": "direct", "model": "m1"}
    assert base.extra == {"mode": "direct"}
    _, kwargs = bound.process("x", {})
    assert kwargs["extra"] == {"extra": {"mode": "direct", "model": "m1"}}


def test_client_records_carry_mode_and_model(caplog):
    with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
        client = GeminiClient(
            ClientConfig(credential="test-key", model="gemini-2.5-flash"),
            transport_factory=lambda cfg: object(),
        )
        client.reconfigure(model="gemini-2.5-pro")

    records = [r for r in caplog.records if r.name == LOGGER_NAME]
    init = [r for r in records if r.getMessage() == "Gemini client initialized"]
    assert init[0].extra["model"] == "gemini-2.5-flash"
    assert init[0].extra["mode"] == "direct"
    reconfigured = [r for r in records if r.getMessage() == "Gemini client reconfigured"]
    assert reconfigured[0].extra["model"] == "gemini-2.5-pro"
    assert reconfigured[0].extra["fields"] == ["model"]
