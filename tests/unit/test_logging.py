"""Unit tests for log redaction."""

from portfolio_agent.shared.logging import REDACTED, redact_secrets


class TestRedactSecrets:
    def test_sensitive_keys_redacted(self):
        event = redact_secrets(
            None,
            "info",
            {"event": "x", "authorization": "Bearer abc.def", "api_key": "sk-ant-123", "tool": "t"},
        )

        assert event["authorization"] == REDACTED
        assert event["api_key"] == REDACTED
        assert event["tool"] == "t"

    def test_bearer_tokens_in_messages_redacted(self):
        event = redact_secrets(None, "info", {"event": "x", "error": "bad header Bearer abc.def.ghi"})

        assert event["error"] == f"bad header Bearer {REDACTED}"

    def test_empty_values_left_alone(self):
        event = redact_secrets(None, "info", {"event": "x", "token": None})

        assert event["token"] is None
