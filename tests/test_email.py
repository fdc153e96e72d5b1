import smtplib

from schoolms.core.config import settings
from schoolms.services import email_service
from schoolms.services.email_service import EmailService


class FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.started_tls = False
        self.logged_in = None
        self.messages = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.started_tls = True

    def login(self, user, password):
        self.logged_in = (user, password)

    def send_message(self, msg):
        self.messages.append(msg)


class RefusingSMTP(FakeSMTP):
    def send_message(self, msg):
        raise smtplib.SMTPRecipientsRefused({msg["To"]: (550, b"no such user")})


def test_render_welcome():
    html = EmailService().render("welcome", {
        "full_name": "Asha <Verma>",
        "email": "asha@school.example.com",
        "role": "STAFF",
        "temporary_password": "Tmp12345",
    })

    assert "Tmp12345" in html
    assert "Asha &lt;Verma&gt;" in html
    assert "staff" in html


def test_render_password_reset():
    html = EmailService().render("password_reset", {"full_name": "Asha", "temporary_password": "New12345"})

    assert "New12345" in html


async def test_send_without_smtp_host_is_skipped(monkeypatch):
    monkeypatch.setattr(settings, "smtp_host", None)

    assert await EmailService().send_email("a@school.example.com", "Hi", "<p>Hi</p>") is False


async def test_send_over_smtp(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(settings, "smtp_host", "smtp.school.example.com")
    monkeypatch.setattr(settings, "smtp_user", "mailer")
    monkeypatch.setattr(settings, "smtp_password", "secret")
    monkeypatch.setattr(email_service.smtplib, "SMTP", FakeSMTP)

    sent = await EmailService().send_welcome("asha@school.example.com", "Asha", "STAFF", "Tmp12345")

    assert sent is True
    server = FakeSMTP.instances[0]
    assert (server.host, server.port) == ("smtp.school.example.com", settings.smtp_port)
    assert server.started_tls is True
    assert server.logged_in == ("mailer", "secret")
    assert server.messages[0]["Subject"] == "Your school account is ready"


async def test_smtp_errors_are_reported_not_raised(monkeypatch):
    monkeypatch.setattr(settings, "smtp_host", "smtp.school.example.com")
    monkeypatch.setattr(email_service.smtplib, "SMTP", RefusingSMTP)

    assert await EmailService().send_email("a@school.example.com", "Hi", "<p>Hi</p>") is False


async def test_bulk_send_endpoint(client, db_session, admin_headers, monkeypatch):
    monkeypatch.setattr(settings, "smtp_host", None)

    response = await client.post(
        "/api/v1/notifications/email",
        json={"recipients": ["a@school.example.com", "b@school.example.com", "a@school.example.com"], "subject": "Closure",
              "body": "School is closed on Friday."},
        headers=admin_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["sent"] == 0
    assert data["failed"] == 2
    assert [r["email"] for r in data["results"]] == ["a@school.example.com", "b@school.example.com"]
