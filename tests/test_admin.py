"""Admin dashboard, user listing / export and administrator seeding."""

import csv
import io

import pytest
from httpx import AsyncClient

from gera.core.security import verify_password
from gera.services.auth import AuthService
from gera.services.credentials import CredentialStore
from gera.services.records import ArticleManager, LeadManager

API = "/api/admin"

LEAD = {
    "name": "Joao",
    "company": "Mercado Bom",
    "email": "joao@mercado.com",
    "phone": "11 3333-4444",
    "kind": "classificado",
    "message": "Anuncio semanal",
}


@pytest.mark.asyncio
async def test_dashboard_counts(async_client: AsyncClient, db_session, storage, admin_headers):
    await CredentialStore(db_session).create("reader@example.com", "Reader", 25, "x", verified=True)
    await ArticleManager(db_session, storage).create(
        {"title": "t", "summary": "s", "body": "b", "category": "c"}
    )
    leads = LeadManager(db_session, storage)
    await leads.submit(LEAD)
    await leads.submit(LEAD)
    await leads.create({**LEAD, "status": "active"})

    resp = await async_client.get(f"{API}/dashboard", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json() == {
        "total_users": 2,
        "total_articles": 1,
        "active_leads": 1,
        "pending_leads": 2,
    }


@pytest.mark.asyncio
async def test_list_users_hides_password(async_client: AsyncClient, admin_headers):
    resp = await async_client.get(f"{API}/users", headers=admin_headers)
    assert resp.status_code == 200
    users = resp.json()
    assert [u["email"] for u in users] == ["admin@admin.com"]
    assert "hashed_password" not in users[0]
    assert users[0]["role"] == "admin"


@pytest.mark.asyncio
async def test_export_users_csv(async_client: AsyncClient, db_session, admin_headers):
    await CredentialStore(db_session).create("ana@example.com", 'Ana "A" Lima', 30, "x")

    resp = await async_client.get(f"{API}/users/export", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert resp.headers["content-disposition"] == "attachment; filename=users.csv"

    rows = list(csv.reader(io.StringIO(resp.text)))
    assert rows[0] == ["Name", "Email", "Registered at"]
    emails = {row[1]: row for row in rows[1:]}
    assert set(emails) == {"admin@admin.com", "ana@example.com"}
    assert emails["ana@example.com"][0] == 'Ana "A" Lima'


@pytest.mark.asyncio
async def test_admin_upload_without_file(async_client: AsyncClient, admin_headers):
    resp = await async_client.post(f"{API}/upload", headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["reason"] == "ValidationError"


@pytest.mark.asyncio
async def test_admin_lead_status_update(async_client: AsyncClient, db_session, storage, admin_headers):
    lead = await LeadManager(db_session, storage).submit(LEAD)

    bad = await async_client.put(
        f"{API}/leads/{lead.id}", data={"status": "archived"}, headers=admin_headers
    )
    assert bad.status_code == 400

    ok = await async_client.put(
        f"{API}/leads/{lead.id}", data={"status": "inactive"}, headers=admin_headers
    )
    assert ok.status_code == 200
    assert ok.json()["status"] == "inactive"


@pytest.mark.asyncio
async def test_bootstrap_admin_is_idempotent(db_session, registry, notifier):
    auth = AuthService(db_session, registry, notifier, admin_email="Boss@Portal.com")
    await auth.bootstrap_admin(password="first", name="Boss")
    await auth.bootstrap_admin(password="second", name="Boss")

    users = await CredentialStore(db_session).list_users()
    assert len(users) == 1
    admin = users[0]
    assert admin.email == "boss@portal.com"
    assert admin.role == "admin"
    assert admin.is_verified is True
    assert verify_password("first", admin.hashed_password)


@pytest.mark.asyncio
async def test_register_with_admin_email_gets_admin_role(db_session, registry, notifier):
    auth = AuthService(db_session, registry, notifier, admin_email="chief@portal.com")
    await auth.register(name="Chief", email="chief@portal.com", age=40, password="pw")
    user = await CredentialStore(db_session).find_by_email("chief@portal.com")
    assert user.role == "admin"
    assert user.is_verified is False
