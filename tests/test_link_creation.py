"""
Tests for staff link creation, password rotation and their email notifications.
"""
import smtplib
import pytest
from unittest.mock import patch
from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from docshare.models import AccessLink, EmailLog, EmailStatus, Patient, Quote, Tenant
from docshare.services.access_link_service import AccessLinkService, LinkChannel


async def _count_links(db_session) -> int:
    result = await db_session.execute(select(func.count()).select_from(AccessLink))
    return result.scalar_one()


class TestCreatePublicQuote:
    """Tests for POST /tq/public-quotes."""

    async def test_create_sends_email_and_returns_password(
        self, async_client, db_session, staff_headers, quote, email_templates, smtp_settings, mock_smtp
    ):
        """Creating a link should email the patient and return the password once."""
        response = await async_client.post(
            "/tq/public-quotes", json={"quoteId": quote.id}, headers=staff_headers
        )

        assert response.status_code == 201
        body = response.json()
        assert body["meta"]["code"] == "PUBLIC_QUOTE_CREATED"
        assert body["meta"]["emailSent"] is True
        assert body["meta"]["password"]
        assert body["meta"]["publicUrl"].startswith("https://app.example.com/pq/")
        assert body["data"]["hasPassword"] is True
        assert body["data"]["documentType"] == "quote"
        assert len(body["data"]["accessToken"]) == 64

        mock_smtp.assert_called_once_with("smtp.example.com", 587, timeout=30)
        server = mock_smtp.return_value.__enter__.return_value
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("mailer", "smtp-password")
        message = server.send_message.call_args[0][0]
        assert message["To"] == "maria.silva@example.com"
        assert "Q-001" in message["Subject"]

        result = await db_session.execute(select(EmailLog))
        log = result.scalar_one()
        assert log.status == EmailStatus.SENT.value

    async def test_explicit_password_is_used(
        self, async_client, staff_headers, quote, email_templates, smtp_settings, mock_smtp
    ):
        """A password given by staff should be the one returned and accepted."""
        response = await async_client.post(
            "/tq/public-quotes",
            json={"quoteId": quote.id, "password": "Ab3xZ9Qr"},
            headers=staff_headers
        )
        token = response.json()["data"]["accessToken"]

        assert response.json()["meta"]["password"] == "Ab3xZ9Qr"
        opened = await async_client.post(f"/pq/{token}", json={"password": "Ab3xZ9Qr"})
        assert opened.status_code == 200

    async def test_smtp_failure_removes_link(
        self, async_client, db_session, staff_headers, quote, email_templates, smtp_settings, mock_smtp
    ):
        """A failed send should leave no link behind and report the failure code."""
        mock_smtp.side_effect = smtplib.SMTPException("connection refused")

        response = await async_client.post(
            "/tq/public-quotes", json={"quoteId": quote.id}, headers=staff_headers
        )

        assert response.status_code == 500
        assert response.json()["code"] == "PUBLIC_QUOTE_EMAIL_FAILED"
        assert await _count_links(db_session) == 0

        result = await db_session.execute(select(EmailLog))
        log = result.scalar_one()
        assert log.status == EmailStatus.FAILED.value

    async def test_missing_smtp_settings_returns_not_configured(
        self, async_client, db_session, staff_headers, quote, email_templates
    ):
        """Without communication settings the link should be rolled back."""
        response = await async_client.post(
            "/tq/public-quotes", json={"quoteId": quote.id}, headers=staff_headers
        )

        assert response.status_code == 500
        body = response.json()
        assert body["code"] == "SMTP_NOT_CONFIGURED"
        assert body["detail"] == "Communication settings not configured for this tenant"
        assert await _count_links(db_session) == 0

    async def test_patient_without_email_gets_link_only(
        self, async_client, db_session, staff_headers, quote, patient, mock_smtp
    ):
        """Patients without an address should get a link and no email attempt."""
        patient.email = None
        await db_session.commit()

        response = await async_client.post(
            "/tq/public-quotes", json={"quoteId": quote.id}, headers=staff_headers
        )

        assert response.status_code == 201
        assert response.json()["meta"]["emailSent"] is False
        mock_smtp.assert_not_called()
        assert await _count_links(db_session) == 1

    async def test_unknown_quote_returns_404(self, async_client, staff_headers, tenant):
        response = await async_client.post(
            "/tq/public-quotes", json={"quoteId": "does-not-exist"}, headers=staff_headers
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "Quote not found"

    async def test_missing_api_key_returns_401(self, async_client, quote):
        response = await async_client.post("/tq/public-quotes", json={"quoteId": quote.id})

        assert response.status_code == 401

    async def test_suspended_tenant_returns_403(self, async_client, db_session, tenant, staff_headers, quote):
        tenant.status = "suspended"
        await db_session.commit()

        response = await async_client.post(
            "/tq/public-quotes", json={"quoteId": quote.id}, headers=staff_headers
        )

        assert response.status_code == 403

    async def test_other_tenant_quote_returns_404(self, async_client, db_session, staff_headers, tenant):
        """A key must not reach documents of another tenant."""
        other = Tenant(name="Other Clinic", timezone="Australia/Sydney")
        db_session.add(other)
        await db_session.flush()
        other_patient = Patient(tenant_id=other.id, first_name="John", last_name="Doe")
        db_session.add(other_patient)
        await db_session.flush()
        other_quote = Quote(tenant_id=other.id, patient_id=other_patient.id, number="Q-777", total=10)
        db_session.add(other_quote)
        await db_session.commit()

        response = await async_client.post(
            "/tq/public-quotes", json={"quoteId": other_quote.id}, headers=staff_headers
        )

        assert response.status_code == 404


class TestCreateLandingPage:
    """Tests for POST /tq/landing-pages."""

    async def test_create_prevention_landing_page(
        self, async_client, staff_headers, prevention, email_templates, smtp_settings, mock_smtp
    ):
        response = await async_client.post(
            "/tq/landing-pages",
            json={"documentId": prevention.id, "documentType": "prevention"},
            headers=staff_headers
        )

        assert response.status_code == 201
        body = response.json()
        assert body["meta"]["code"] == "LANDING_PAGE_CREATED"
        assert body["meta"]["publicUrl"].startswith("https://app.example.com/lp/")
        assert body["data"]["documentType"] == "prevention"

    async def test_prevention_email_failure_code(
        self, async_client, db_session, staff_headers, prevention, email_templates, smtp_settings, mock_smtp
    ):
        """Landing page links report LANDING_PAGE_EMAIL_FAILED."""
        mock_smtp.side_effect = OSError("network unreachable")

        response = await async_client.post(
            "/tq/landing-pages",
            json={"documentId": prevention.id, "documentType": "prevention"},
            headers=staff_headers
        )

        assert response.status_code == 500
        assert response.json()["code"] == "LANDING_PAGE_EMAIL_FAILED"
        assert await _count_links(db_session) == 0

    async def test_quote_email_failure_uses_landing_page_code(
        self, async_client, db_session, staff_headers, quote, email_templates, smtp_settings, mock_smtp
    ):
        """The failure code follows the route, not the document type."""
        mock_smtp.side_effect = smtplib.SMTPException("boom")

        response = await async_client.post(
            "/tq/landing-pages",
            json={"documentId": quote.id, "documentType": "quote"},
            headers=staff_headers
        )

        assert response.status_code == 500
        assert response.json()["code"] == "LANDING_PAGE_EMAIL_FAILED"
        assert await _count_links(db_session) == 0

    async def test_invalid_document_type_returns_400(self, async_client, staff_headers, quote):
        response = await async_client.post(
            "/tq/landing-pages",
            json={"documentId": quote.id, "documentType": "invoice"},
            headers=staff_headers
        )

        assert response.status_code == 400


class TestPasswordReset:
    """Tests for POST /tq/.../{link_id}/new-password."""

    async def _create(self, async_client, staff_headers, quote):
        response = await async_client.post(
            "/tq/public-quotes", json={"quoteId": quote.id}, headers=staff_headers
        )
        assert response.status_code == 201
        body = response.json()
        return body["data"], body["meta"]["password"]

    async def test_reset_replaces_password(
        self, async_client, staff_headers, quote, email_templates, smtp_settings, mock_smtp
    ):
        """The old password stops working and the new one opens the link."""
        link, old_password = await self._create(async_client, staff_headers, quote)

        response = await async_client.post(
            f"/tq/public-quotes/{link['id']}/new-password", headers=staff_headers
        )

        assert response.status_code == 200
        meta = response.json()["meta"]
        assert meta["code"] == "PUBLIC_QUOTE_PASSWORD_RESET"
        new_password = meta["password"]
        assert new_password != old_password

        old = await async_client.post(f"/pq/{link['accessToken']}", json={"password": old_password})
        new = await async_client.post(f"/pq/{link['accessToken']}", json={"password": new_password})
        assert old.status_code == 401
        assert new.status_code == 200

    async def test_failed_reset_keeps_previous_password(
        self, async_client, staff_headers, quote, email_templates, smtp_settings, mock_smtp
    ):
        """If the email fails, the previous password keeps working."""
        link, old_password = await self._create(async_client, staff_headers, quote)
        mock_smtp.side_effect = smtplib.SMTPException("mailbox unavailable")

        response = await async_client.post(
            f"/tq/public-quotes/{link['id']}/new-password", headers=staff_headers
        )

        assert response.status_code == 500
        assert response.json()["code"] == "PUBLIC_QUOTE_EMAIL_FAILED"

        opened = await async_client.post(f"/pq/{link['accessToken']}", json={"password": old_password})
        assert opened.status_code == 200

    async def test_reset_revoked_link_returns_400(
        self, async_client, staff_headers, quote, email_templates, smtp_settings, mock_smtp
    ):
        link, _ = await self._create(async_client, staff_headers, quote)
        await async_client.delete(f"/tq/public-quotes/{link['id']}", headers=staff_headers)

        response = await async_client.post(
            f"/tq/public-quotes/{link['id']}/new-password", headers=staff_headers
        )

        assert response.status_code == 400

    async def test_landing_page_reset_email_failure_code(
        self, async_client, staff_headers, quote, email_templates, smtp_settings, mock_smtp, make_link
    ):
        """Quote links managed from the landing page screen report landing page codes."""
        link = await make_link(quote)
        mock_smtp.side_effect = smtplib.SMTPException("mailbox unavailable")

        response = await async_client.post(
            f"/tq/landing-pages/{link.id}/new-password", headers=staff_headers
        )

        assert response.status_code == 500
        assert response.json()["code"] == "LANDING_PAGE_EMAIL_FAILED"

    async def test_storage_failure_returns_new_password_failed(
        self, async_client, staff_headers, quote, email_templates, smtp_settings, mock_smtp, make_link
    ):
        """A rotation that cannot be stored reports NEW_PASSWORD_FAILED and sends nothing."""
        link = await make_link(quote)
        token = link.access_token

        with patch.object(
            AccessLinkService, "rotate_password", side_effect=SQLAlchemyError("database unavailable")
        ):
            response = await async_client.post(
                f"/tq/landing-pages/{link.id}/new-password", headers=staff_headers
            )

        assert response.status_code == 500
        body = response.json()
        assert body["code"] == "LANDING_PAGE_NEW_PASSWORD_FAILED"
        assert body["detail"] == "Failed to generate new password"
        mock_smtp.assert_not_called()

        opened = await async_client.post(f"/lp/{token}", json={"password": "Ab3xZ9Qr"})
        assert opened.status_code == 200

    async def test_public_quote_storage_failure_code(
        self, async_client, staff_headers, quote, email_templates, smtp_settings, mock_smtp, make_link
    ):
        link = await make_link(quote, channel=LinkChannel.PUBLIC_QUOTE)

        with patch.object(
            AccessLinkService, "rotate_password", side_effect=SQLAlchemyError("database unavailable")
        ):
            response = await async_client.post(
                f"/tq/public-quotes/{link.id}/new-password", headers=staff_headers
            )

        assert response.status_code == 500
        assert response.json()["code"] == "PUBLIC_QUOTE_NEW_PASSWORD_FAILED"
