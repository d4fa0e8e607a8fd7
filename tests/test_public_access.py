"""
Tests for the public /pq and /lp endpoints.
"""
import pytest
from datetime import timedelta
from sqlalchemy import select
from docshare.models import AccessLink, AuditLog, ActionType, DocumentType, Quote, Prevention
from docshare.models.mixins import utcnow
from docshare.services.access_link_service import LinkChannel

LINK_PASSWORD = "Ab3xZ9Qr"


class TestOpenPublicQuote:
    """Tests for POST /pq/{token}."""

    async def test_correct_password_returns_frozen_content(self, async_client, quote, make_link):
        """A valid password should return the snapshot with formatted values."""
        link = await make_link(quote, channel=LinkChannel.PUBLIC_QUOTE)

        response = await async_client.post(f"/pq/{link.access_token}", json={"password": LINK_PASSWORD})

        assert response.status_code == 200
        data = response.json()["data"]
        resolved = data["content"]["resolvedData"]
        assert resolved["quote"]["number"] == "Q-001"
        assert resolved["quote"]["total"] == "$100.00"
        assert resolved["document"]["total"] == "$100.00"
        assert resolved["patient"]["full_name"] == "Maria Silva"
        assert resolved["items"][0]["final_price"] == "$100.00"
        assert resolved["locale"] == "pt-BR"
        assert data["branding"]["primaryColor"] == "#112233"
        assert data["branding"]["companyName"] == "Clínica Sorriso"

    async def test_successful_view_increments_counter(self, async_client, db_session, quote, make_link):
        """Each successful view should add exactly one to views_count."""
        link = await make_link(quote, channel=LinkChannel.PUBLIC_QUOTE)

        for _ in range(2):
            response = await async_client.post(f"/pq/{link.access_token}", json={"password": LINK_PASSWORD})
            assert response.status_code == 200

        await db_session.refresh(link)
        assert link.views_count == 2
        assert link.last_viewed_at is not None

    async def test_wrong_password_returns_401(self, async_client, db_session, quote, make_link):
        """A wrong password should be rejected without counting a view."""
        link = await make_link(quote, channel=LinkChannel.PUBLIC_QUOTE)

        response = await async_client.post(f"/pq/{link.access_token}", json={"password": "wrong-pass"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid password"
        await db_session.refresh(link)
        assert link.views_count == 0

    async def test_missing_password_returns_400(self, async_client, quote, make_link):
        """A request without a password should fail validation."""
        link = await make_link(quote, channel=LinkChannel.PUBLIC_QUOTE)

        response = await async_client.post(f"/pq/{link.access_token}", json={})

        assert response.status_code == 400
        assert response.json()["detail"] == "Validation error"

    async def test_empty_password_returns_400(self, async_client, quote, make_link):
        """An empty password should fail validation."""
        link = await make_link(quote, channel=LinkChannel.PUBLIC_QUOTE)

        response = await async_client.post(f"/pq/{link.access_token}", json={"password": ""})

        assert response.status_code == 400

    async def test_unknown_token_returns_404(self, async_client, db_session, tenant):
        """An unknown token should look exactly like a revoked one."""
        response = await async_client.post("/pq/" + "0" * 64, json={"password": LINK_PASSWORD})

        assert response.status_code == 404
        assert response.json()["detail"] == "Link not found or has expired"

    async def test_expired_link_returns_404(self, async_client, quote, make_link):
        """An expired link should answer 404 even with the right password."""
        link = await make_link(
            quote,
            channel=LinkChannel.PUBLIC_QUOTE,
            expires_at=utcnow() - timedelta(minutes=1)
        )

        response = await async_client.post(f"/pq/{link.access_token}", json={"password": LINK_PASSWORD})

        assert response.status_code == 404
        assert response.json()["detail"] == "Link not found or has expired"

    @pytest.mark.parametrize("password", [LINK_PASSWORD, "wrong-password"])
    async def test_expired_link_never_returns_401(self, async_client, quote, make_link, password):
        """Expiry is checked before the password, so a wrong password is still a 404."""
        link = await make_link(quote, expires_at=utcnow() - timedelta(hours=1))

        response = await async_client.post(f"/lp/{link.access_token}", json={"password": password})

        assert response.status_code == 404
        assert response.json()["detail"] == "Link not found or has expired"

    async def test_prevention_link_not_served_under_pq(self, async_client, prevention, make_link):
        """The /pq channel only serves quotes."""
        link = await make_link(prevention, document_type=DocumentType.PREVENTION)

        response = await async_client.post(f"/pq/{link.access_token}", json={"password": LINK_PASSWORD})

        assert response.status_code == 404

    async def test_suspended_tenant_link_returns_404(self, async_client, db_session, tenant, quote, make_link):
        """Links of a suspended tenant should not be served."""
        link = await make_link(quote, channel=LinkChannel.PUBLIC_QUOTE)
        tenant.status = "suspended"
        await db_session.commit()

        response = await async_client.post(f"/pq/{link.access_token}", json={"password": LINK_PASSWORD})

        assert response.status_code == 404

    async def test_content_not_affected_by_later_document_edits(self, async_client, db_session, quote, make_link):
        """Editing the quote after sharing should not change the shared snapshot."""
        link = await make_link(quote, channel=LinkChannel.PUBLIC_QUOTE)
        quote.total = 999
        quote.number = "Q-999"
        await db_session.commit()

        response = await async_client.post(f"/pq/{link.access_token}", json={"password": LINK_PASSWORD})

        resolved = response.json()["data"]["content"]["resolvedData"]
        assert resolved["quote"]["number"] == "Q-001"
        assert resolved["quote"]["total"] == "$100.00"

    async def test_denied_access_is_audited(self, async_client, db_session, quote, make_link):
        """A wrong password should leave an access_link_denied audit entry."""
        link = await make_link(quote, channel=LinkChannel.PUBLIC_QUOTE)

        await async_client.post(f"/pq/{link.access_token}", json={"password": "wrong-pass"})

        result = await db_session.execute(
            select(AuditLog).where(AuditLog.action_type == ActionType.ACCESS_LINK_DENIED)
        )
        assert result.scalars().first() is not None


class TestApproveQuote:
    """Tests for quote approval through public links."""

    async def test_approve_quote(self, async_client, db_session, quote, make_link):
        """Approving should move the live quote to approved."""
        link = await make_link(quote, channel=LinkChannel.PUBLIC_QUOTE)

        response = await async_client.patch(
            f"/pq/{link.access_token}/approve", json={"password": LINK_PASSWORD}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["data"] == {"approved": True, "quoteNumber": "Q-001"}
        assert body["meta"]["code"] == "QUOTE_APPROVED_BY_CLIENT"

        result = await db_session.execute(select(Quote).where(Quote.id == quote.id))
        assert result.scalar_one().status == "approved"

    async def test_approve_twice_returns_409(self, async_client, quote, make_link):
        """A second approval should conflict."""
        link = await make_link(quote, channel=LinkChannel.PUBLIC_QUOTE)
        url = f"/pq/{link.access_token}/approve"

        first = await async_client.patch(url, json={"password": LINK_PASSWORD})
        second = await async_client.patch(url, json={"password": LINK_PASSWORD})

        assert first.status_code == 200
        assert second.status_code == 409
        assert second.json()["detail"] == "This quote has already been approved"

    async def test_approve_rejected_quote_returns_409(self, async_client, db_session, quote, make_link):
        """Rejected quotes cannot be approved."""
        link = await make_link(quote)
        quote.status = "rejected"
        await db_session.commit()

        response = await async_client.patch(
            f"/lp/{link.access_token}/approve", json={"password": LINK_PASSWORD}
        )

        assert response.status_code == 409
        assert response.json()["detail"] == "This quote cannot be approved in its current state"

    async def test_approve_does_not_count_a_view(self, async_client, db_session, quote, make_link):
        """Document actions should leave views_count untouched."""
        link = await make_link(quote)

        await async_client.patch(f"/lp/{link.access_token}/approve", json={"password": LINK_PASSWORD})

        await db_session.refresh(link)
        assert link.views_count == 0

    async def test_approve_with_wrong_password_returns_401(self, async_client, quote, make_link):
        link = await make_link(quote, channel=LinkChannel.PUBLIC_QUOTE)

        response = await async_client.patch(
            f"/pq/{link.access_token}/approve", json={"password": "nope-nope"}
        )

        assert response.status_code == 401


class TestLandingPageAccess:
    """Tests for /lp/{token} and its document actions."""

    async def test_lp_serves_prevention(self, async_client, prevention, make_link):
        """The /lp channel serves preventions."""
        link = await make_link(prevention, document_type=DocumentType.PREVENTION)

        response = await async_client.post(f"/lp/{link.access_token}", json={"password": LINK_PASSWORD})

        assert response.status_code == 200
        resolved = response.json()["data"]["content"]["resolvedData"]
        assert resolved["documentType"] == "prevention"
        assert resolved["prevention"]["number"] == "P-001"
        assert resolved["items"] == []

    async def test_lp_serves_quote(self, async_client, quote, make_link):
        link = await make_link(quote)

        response = await async_client.post(f"/lp/{link.access_token}", json={"password": LINK_PASSWORD})

        assert response.status_code == 200

    async def test_mark_prevention_viewed(self, async_client, db_session, prevention, make_link):
        """Marking viewed should update the live prevention and be repeatable."""
        link = await make_link(prevention, document_type=DocumentType.PREVENTION)
        url = f"/lp/{link.access_token}/mark-viewed"

        first = await async_client.patch(url, json={"password": LINK_PASSWORD})
        second = await async_client.patch(url, json={"password": LINK_PASSWORD})

        assert first.status_code == 200
        assert second.status_code == 200
        assert first.json()["meta"]["code"] == "PREVENTION_MARKED_VIEWED"
        assert first.json()["data"] == {"viewed": True, "preventionNumber": "P-001"}

        result = await db_session.execute(select(Prevention).where(Prevention.id == prevention.id))
        assert result.scalar_one().status == "viewed"

    async def test_approve_prevention_returns_400(self, async_client, prevention, make_link):
        """Approve is a quote-only action."""
        link = await make_link(prevention, document_type=DocumentType.PREVENTION)

        response = await async_client.patch(
            f"/lp/{link.access_token}/approve", json={"password": LINK_PASSWORD}
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Only quotes can be approved via landing page"

    async def test_mark_quote_viewed_returns_400(self, async_client, quote, make_link):
        """Mark-viewed is a prevention-only action."""
        link = await make_link(quote)

        response = await async_client.patch(
            f"/lp/{link.access_token}/mark-viewed", json={"password": LINK_PASSWORD}
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Only preventions can be marked as viewed"


class TestRevokedLinks:
    """Tests for revocation as seen by public viewers."""

    async def test_revoked_link_returns_404(self, async_client, staff_headers, quote, make_link):
        """After staff revoke a link, the public endpoint should answer 404."""
        link = await make_link(quote)
        url = f"/lp/{link.access_token}"

        before = await async_client.post(url, json={"password": LINK_PASSWORD})
        revoke = await async_client.delete(f"/tq/landing-pages/{link.id}", headers=staff_headers)
        after = await async_client.post(url, json={"password": LINK_PASSWORD})

        assert before.status_code == 200
        assert revoke.status_code == 200
        assert revoke.json()["meta"]["code"] == "LANDING_PAGE_REVOKED"
        assert after.status_code == 404

    async def test_revoked_link_row_is_kept(self, async_client, db_session, staff_headers, quote, make_link):
        """Revocation deactivates rather than deletes."""
        link = await make_link(quote)

        await async_client.delete(f"/tq/landing-pages/{link.id}", headers=staff_headers)

        result = await db_session.execute(select(AccessLink).where(AccessLink.id == link.id))
        stored = result.scalar_one()
        assert stored.active is False
