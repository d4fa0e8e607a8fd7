"""
Tests for the access link model and service.
"""
import pytest
from datetime import timedelta
from docshare.core.exceptions import DocumentNotFoundException, ResourceNotFoundException
from docshare.core.security import get_password_hash
from docshare.models import AccessLink, DocumentType
from docshare.models.mixins import utcnow
from docshare.services.access_link_service import AccessLinkService, LinkChannel

LINK_PASSWORD = "Ab3xZ9Qr"


class TestAccessLinkModel:
    """Tests for AccessLink expiry, accessibility and password checks."""

    def test_link_without_expiry_never_expires(self):
        link = AccessLink(active=True, expires_at=None)

        assert link.is_expired() is False
        assert link.is_accessible() is True

    def test_past_expiry_is_expired(self):
        link = AccessLink(active=True, expires_at=utcnow() - timedelta(seconds=1))

        assert link.is_expired() is True
        assert link.is_accessible() is False

    def test_naive_expiry_is_treated_as_utc(self):
        """SQLite returns naive datetimes; they must compare as UTC."""
        link = AccessLink(active=True, expires_at=utcnow().replace(tzinfo=None) + timedelta(hours=1))

        assert link.is_expired() is False

    def test_inactive_link_is_not_accessible(self):
        link = AccessLink(active=False, expires_at=None)

        assert link.is_accessible() is False

    @pytest.mark.parametrize("active", [True, False])
    def test_expired_link_is_never_accessible(self, active):
        link = AccessLink(active=active, expires_at=utcnow() - timedelta(hours=1))

        assert link.is_accessible() is False

    def test_inactive_link_with_future_expiry_is_not_accessible(self):
        link = AccessLink(active=False, expires_at=utcnow() + timedelta(days=1))

        assert link.is_accessible() is False

    def test_link_without_password_accepts_anything(self):
        link = AccessLink(password_hash=None)

        assert link.verify_password(None) is True
        assert link.verify_password("whatever") is True

    def test_password_check(self):
        link = AccessLink(password_hash=get_password_hash(LINK_PASSWORD))

        assert link.verify_password(LINK_PASSWORD) is True
        assert link.verify_password("wrong") is False
        assert link.verify_password("") is False

    def test_public_url(self):
        url = AccessLinkService.build_public_url(LinkChannel.PUBLIC_QUOTE, "abc")

        assert url == "https://app.example.com/pq/abc"


class TestAccessLinkService:
    """Tests for AccessLinkService persistence operations."""

    async def test_create_freezes_content_and_hashes_password(self, db_session, tenant, quote):
        created = await AccessLinkService.create(
            db_session, tenant, quote.id, document_type=DocumentType.QUOTE, password=LINK_PASSWORD
        )
        link = created.link

        assert created.password == LINK_PASSWORD
        assert link.password_hash != LINK_PASSWORD
        assert link.verify_password(LINK_PASSWORD) is True
        assert AccessLinkService.get_decrypted_password(link) == LINK_PASSWORD
        assert link.content["resolvedData"]["quote"]["number"] == "Q-001"
        assert link.public_url.endswith(f"/lp/{link.access_token}")
        assert link.views_count == 0
        assert link.active is True

    async def test_create_generates_password_by_default(self, db_session, tenant, quote):
        created = await AccessLinkService.create(db_session, tenant, quote.id)

        assert len(created.password) == 8
        assert created.link.verify_password(created.password) is True

    async def test_create_for_unknown_document(self, db_session, tenant):
        with pytest.raises(DocumentNotFoundException):
            await AccessLinkService.create(db_session, tenant, "missing", document_type=DocumentType.PREVENTION)

    async def test_tokens_are_unique(self, db_session, quote, make_link):
        first = await make_link(quote)
        second = await make_link(quote)

        assert first.access_token != second.access_token

    async def test_increment_views(self, db_session, quote, make_link):
        link = await make_link(quote)

        await AccessLinkService.increment_views(db_session, link)
        link = await AccessLinkService.increment_views(db_session, link)

        assert link.views_count == 2
        assert link.last_viewed_at is not None

    async def test_find_by_id_is_tenant_scoped(self, db_session, tenant, quote, make_link):
        link = await make_link(quote)

        found = await AccessLinkService.find_by_id(db_session, tenant.id, link.id)
        assert found.id == link.id

        with pytest.raises(ResourceNotFoundException):
            await AccessLinkService.find_by_id(db_session, tenant.id + 1, link.id)

    async def test_rotate_and_restore_password(self, db_session, quote, make_link):
        link = await make_link(quote)

        new_password, previous = await AccessLinkService.rotate_password(db_session, link)
        assert link.verify_password(new_password) is True
        assert link.verify_password(LINK_PASSWORD) is False

        await AccessLinkService.restore_password(db_session, link, previous)
        assert link.verify_password(LINK_PASSWORD) is True
        assert AccessLinkService.get_decrypted_password(link) == LINK_PASSWORD

    async def test_expire_links_deactivates_only_past_expiry(self, db_session, quote, make_link):
        expired = await make_link(quote, expires_at=utcnow() - timedelta(hours=1))
        future = await make_link(quote, expires_at=utcnow() + timedelta(days=1))
        forever = await make_link(quote)

        count = await AccessLinkService.expire_links(db_session)

        assert count == 1
        for link in (expired, future, forever):
            await db_session.refresh(link)
        assert expired.active is False
        assert future.active is True
        assert forever.active is True

    async def test_undecryptable_password_returns_none(self, db_session, quote, make_link):
        link = await make_link(quote)
        link.password_encrypted = "not-a-fernet-token"

        assert AccessLinkService.get_decrypted_password(link) is None
