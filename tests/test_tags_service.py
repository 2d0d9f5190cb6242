"""Tests for Tags service"""

import pytest
from unittest.mock import patch
from uuid import uuid4

from photo_restore.services.tags_service import TagsService


@pytest.mark.asyncio
class TestGetOrCreateTag:
    """Test TagsService.get_or_create_tag"""

    async def test_creates_then_reuses(self, db_session, user_id):
        service = TagsService(db_session)

        created = await service.get_or_create_tag(user_id, " family ")
        again = await service.get_or_create_tag(user_id, "family")

        assert created.name == "family"
        assert again.id == created.id

    async def test_same_name_for_different_users(self, db_session, user_id):
        service = TagsService(db_session)

        mine = await service.get_or_create_tag(user_id, "family")
        theirs = await service.get_or_create_tag(uuid4(), "family")

        assert mine.id != theirs.id

    async def test_concurrent_create_returns_existing(self, db_session, user_id):
        """Test losing the unique-name race returns the tag that won"""
        service = TagsService(db_session)
        existing = await service.get_or_create_tag(user_id, "family")
        existing_id = existing.id

        real_find = service._find_tag
        lookups = []

        async def find_missing_first(owner_id, name):
            # The first lookup runs before the other request has committed
            lookups.append(name)
            if len(lookups) == 1:
                return None
            return await real_find(owner_id, name)

        with patch.object(service, "_find_tag", side_effect=find_missing_first):
            tag = await service.get_or_create_tag(user_id, "family")

        assert tag.id == existing_id
        assert lookups == ["family", "family"]

        tags = await service.list_tags(user_id)
        assert [t.id for t in tags] == [existing_id]
