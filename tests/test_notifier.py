"""Notifier delivery modes: simulated vs. configured transport."""

import pytest
from httpx import AsyncClient

from gera.api.deps import get_notifier
from gera.core.config import Settings
from gera.core.exceptions import DeliveryError
from gera.main import app
from gera.services.notifier import Notifier, build_notifier


class FakeMailer:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent = []

    async def send_message(self, message, template_name=None):
        if self.fail:
            raise ConnectionError("smtp down")
        self.sent.append(message)


@pytest.mark.asyncio
async def test_unconfigured_notifier_simulates():
    delivery = await Notifier().send("a@example.com", "Subject", "Body")
    assert delivery.simulated is True


@pytest.mark.asyncio
async def test_configured_notifier_sends():
    mailer = FakeMailer()
    delivery = await Notifier(mailer).send("a@example.com", "Subject", "Your code is 123456")
    assert delivery.simulated is False
    assert len(mailer.sent) == 1
    assert mailer.sent[0].subject == "Subject"


@pytest.mark.asyncio
async def test_transport_failure_raises_delivery_error():
    with pytest.raises(DeliveryError):
        await Notifier(FakeMailer(fail=True)).send("a@example.com", "Subject", "Body")


def test_build_notifier_without_credentials_is_simulated():
    assert build_notifier(Settings(MAIL_USERNAME="", MAIL_PASSWORD="")).configured is False


def test_build_notifier_with_credentials():
    notifier = build_notifier(
        Settings(
            MAIL_USERNAME="sender@example.com",
            MAIL_PASSWORD="app-password",
            MAIL_FROM="sender@example.com",
        )
    )
    assert notifier.configured is True


@pytest.mark.asyncio
async def test_configured_transport_never_leaks_code(async_client: AsyncClient):
    mailer = FakeMailer()
    app.dependency_overrides[get_notifier] = lambda: Notifier(mailer)

    resp = await async_client.post(
        "/api/register",
        json={"name": "Ana", "email": "ana@example.com", "age": 22, "password": "pw"},
    )
    assert resp.status_code == 200
    assert "simulatedCode" not in resp.json()
    assert len(mailer.sent) == 1
    assert "ana@example.com" in str(mailer.sent[0].recipients[0])


@pytest.mark.asyncio
async def test_delivery_failure_surfaces_as_5xx(async_client: AsyncClient):
    app.dependency_overrides[get_notifier] = lambda: Notifier(FakeMailer(fail=True))

    resp = await async_client.post(
        "/api/register",
        json={"name": "Bo", "email": "bo@example.com", "age": 40, "password": "pw"},
    )
    assert resp.status_code == 502
    assert resp.json()["reason"] == "DeliveryError"
    assert "smtp" not in resp.json()["detail"]
