import pytest

from app.core import error_notifier
from app.core.config import settings


class FakeSMTP:
    sent = []

    def __init__(self, host, port):
        self.host = host
        self.port = port

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, user, password):
        pass

    def send_message(self, msg):
        FakeSMTP.sent.append(msg)


@pytest.fixture
def smtp(monkeypatch):
    FakeSMTP.sent = []
    monkeypatch.setattr(error_notifier.smtplib, "SMTP", FakeSMTP)
    monkeypatch.setattr(error_notifier, "_error_cache", {})
    monkeypatch.setattr(settings, "ERROR_NOTIFICATION_ENABLED", True)
    monkeypatch.setattr(settings, "SMTP_USER", "ops")
    monkeypatch.setattr(settings, "SMTP_PASSWORD", "secret")
    return FakeSMTP


def test_email_escapes_html():
    msg = error_notifier.build_error_email("KeyError", "<script>", endpoint="GET /api/x")
    body = msg.get_payload()[0].get_payload(decode=True).decode()
    assert "&lt;script&gt;" in body
    assert "<script>" not in body
    assert msg["Subject"].startswith(f"[{settings.APP_NAME} ERROR] KeyError")


def test_repeated_error_is_throttled(smtp):
    assert error_notifier.send_error_notification("KeyError", "boom") is True
    assert error_notifier.send_error_notification("KeyError", "boom") is False
    assert len(smtp.sent) == 1


def test_disabled_notifications_send_nothing(smtp, monkeypatch):
    monkeypatch.setattr(settings, "ERROR_NOTIFICATION_ENABLED", False)
    assert error_notifier.send_error_notification("KeyError", "boom") is False
    assert smtp.sent == []


def test_missing_credentials_send_nothing(smtp, monkeypatch):
    monkeypatch.setattr(settings, "SMTP_PASSWORD", None)
    assert error_notifier.send_error_notification("KeyError", "boom") is False
