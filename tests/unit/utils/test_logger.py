"""Log processor tests."""

from src.utils.logger import REDACTED, redact_sensitive_fields


def test_redacts_top_level_credentials():
    event = redact_sensitive_fields(
        None, "info", {"event": "calling", "api_key": "k-123", "Token": "t"}
    )

    assert event == {"event": "calling", "api_key": REDACTED, "Token": REDACTED}


def test_redacts_nested_header_values():
    event = redact_sensitive_fields(
        None,
        "info",
        {
            "event": "request",
            "headers": {"Authorization": "Bearer abc", "Accept": "application/json"},
        },
    )

    assert event["headers"] == {"Authorization": REDACTED, "Accept": "application/json"}


def test_leaves_other_values_untouched():
    event = {"event": "done", "user_id": "u-1", "saved_images": ["a.jpg"]}

    assert redact_sensitive_fields(None, "info", dict(event)) == event
