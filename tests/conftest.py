"""Shared fixtures: a throwaway SQLite database, a controllable clock and fake collaborators."""

import re
from datetime import datetime, timedelta

import pytest

from gatepass.database import DatabaseManager
from gatepass.integrations.report_renderer import ReportRenderer
from gatepass.services.container import build_services
from gatepass.utils.exceptions import DeliveryError


class FakeClock:
    def __init__(self, start=datetime(2024, 5, 1, 9, 0, 0)):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)
        return self.now


class RecordingMailer:
    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, to_address, subject, body_text, body_html=None, attachments=None):
        if self.fail:
            raise DeliveryError("SMTP unavailable")
        self.sent.append({
            "to": to_address,
            "subject": subject,
            "text": body_text,
            "html": body_html,
            "attachments": list(attachments or []),
        })

    def last_code(self, email):
        for message in reversed(self.sent):
            if message["to"] == email and "OTP" in message["subject"]:
                return re.search(r"OTP is: (\d+)", message["text"]).group(1)
        raise AssertionError(f"no code sent to {email}")


class FakeCredentialRenderer:
    def __init__(self):
        self.rendered = []

    def render(self, token):
        self.rendered.append(token)
        return b"\x89PNG-fake-" + token.encode()


VISITOR = {
    "name": "Alice Visitor",
    "mobile_number": "9876543210",
    "purpose": "Vendor meeting",
    "visit_at": "2024-05-02T10:30:00",
}


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def renderer():
    return FakeCredentialRenderer()


@pytest.fixture
def db(tmp_path):
    manager = DatabaseManager(f"sqlite:///{tmp_path / 'gatepass.db'}")
    manager.create_schema()
    yield manager
    manager.dispose()


@pytest.fixture
def services(db, mailer, renderer, clock):
    return build_services(db, mailer, renderer, ReportRenderer(), clock=clock)


def register(db, services, mailer, email="a@x.com", **overrides):
    """Drive send-code + verify and return the pending visit record."""
    fields = dict(VISITOR, **overrides)
    with db.get_connection() as conn:
        services.registration.send_code(
            conn, email, fields["name"], fields["mobile_number"], fields["purpose"], fields["visit_at"]
        )
    code = mailer.last_code(email)
    with db.get_connection() as conn:
        return services.registration.verify_and_register(
            conn, email, code, fields["name"], fields["mobile_number"], fields["purpose"], fields["visit_at"]
        )


def approve(db, services, mailer, email="a@x.com", **overrides):
    """Register and approve a visitor; returns (record, token)."""
    record = register(db, services, mailer, email, **overrides)
    services.approval.approve(record.id)
    with db.get_connection() as conn:
        token = services.credentials.for_record(conn, record.id)[-1].token
    return record, token


@pytest.fixture
def registered(db, services, mailer):
    return register(db, services, mailer)


@pytest.fixture
def approved(db, services, mailer):
    return approve(db, services, mailer)
