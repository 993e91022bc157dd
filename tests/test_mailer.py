import pytest

from app.services.mailer import Mailer


def make_mailer(**overrides) -> Mailer:
    kwargs = dict(
        api_key="re_test",
        sender="Accounts <no-reply@example.com>",
        frontend_url="http://frontend.test/",
        app_name="Accounts",
    )
    kwargs.update(overrides)
    return Mailer(**kwargs)


def test_verification_email_links_to_frontend(monkeypatch):
    sent = []
    monkeypatch.setattr("resend.Emails.send", lambda params: sent.append(params) or {"id": "1"})

    make_mailer().send_verification_email("user@example.com", "abc123")

    assert len(sent) == 1
    params = sent[0]
    assert params["to"] == ["user@example.com"]
    assert params["from"] == "Accounts <no-reply@example.com>"
    assert params["subject"] == "Email Verification"
    assert "http://frontend.test/confirm-email?hash=abc123" in params["html"]
    assert params["text"] == "Email Verification: http://frontend.test/confirm-email?hash=abc123"


def test_missing_api_key_fails_loudly(monkeypatch):
    monkeypatch.setattr("resend.Emails.send", lambda params: pytest.fail("should not send"))

    with pytest.raises(RuntimeError, match="RESEND_API_KEY"):
        make_mailer(api_key="").send_verification_email("user@example.com", "abc123")


def test_transport_errors_propagate(monkeypatch):
    def fail(params):
        raise ConnectionError("resend unreachable")

    monkeypatch.setattr("resend.Emails.send", fail)

    with pytest.raises(ConnectionError):
        make_mailer().send_verification_email("user@example.com", "abc123")
