"""Tests for the recent, following and popular activity feeds."""

import pytest

from opentribe.core.modules.like.models import LikeTarget
from opentribe.core.modules.space.models import SpaceCreate, SpaceVisibility
from opentribe.errors import AuthenticationError, ValidationError


async def _collect(fetch, limit):
    """Walk every page of a feed and return post ids in order."""
    ids, cursor = [], None
    while True:
        page = await fetch(limit=limit, cursor=cursor)
        ids.extend(post.id for post in page.posts)
        if not page.has_more:
            assert page.next_cursor is None
            return ids
        cursor = page.next_cursor


class TestRecentFeed:
    """Tests for the newest-first feed."""

    async def test_pages_cover_every_post_once(self, app, alice, bob, space, make_post):
        posts = [await make_post(alice, space, f"post {i}") for i in range(7)]

        ids = await _collect(lambda **kw: app.list_activity_feed(bob, **kw), limit=3)

        assert len(ids) == len(posts)
        assert set(ids) == {p.id for p in posts}

    async def test_hidden_spaces_are_filtered(self, app, admin, alice, space, make_post):
        members = await app.create_space(admin, SpaceCreate(name="Members", visibility=SpaceVisibility.MEMBERS))
        public_post = await make_post(alice, space)
        members_post = await make_post(alice, members)

        anonymous = await app.list_activity_feed(None)
        assert [p.id for p in anonymous.posts] == [public_post.id]
        signed_in = await app.list_activity_feed(alice)
        assert {p.id for p in signed_in.posts} == {public_post.id, members_post.id}

    async def test_deleted_space_posts_disappear(self, app, admin, alice, space, make_post):
        await make_post(alice, space)
        await app.delete_space(admin, space.id)
        assert (await app.list_activity_feed(alice)).posts == []

    async def test_invalid_cursor(self, app, alice, space):
        with pytest.raises(ValidationError):
            await app.list_activity_feed(alice, cursor="garbage")

    async def test_invalid_cursor_rejected_when_nothing_is_viewable(self, app, alice):
        """A malformed cursor is an error even when the page would be empty."""
        with pytest.raises(ValidationError):
            await app.list_activity_feed(alice, cursor="garbage")
        with pytest.raises(ValidationError):
            await app.list_activity_feed_following(alice, cursor="garbage")
        with pytest.raises(ValidationError):
            await app.list_activity_feed_popular(alice, cursor="-1")


class TestFollowingFeed:
    async def test_only_followed_authors(self, app, alice, bob, carol, space, make_post):
        alice_post = await make_post(alice, space)
        await make_post(carol, space)
        await app.follow_user(bob, (await app.get_my_profile(alice)).id)

        page = await app.list_activity_feed_following(bob)
        assert [p.id for p in page.posts] == [alice_post.id]

    async def test_empty_when_following_nobody(self, app, alice, bob, space, make_post):
        await make_post(alice, space)
        page = await app.list_activity_feed_following(bob)
        assert page.posts == []
        assert not page.has_more

    async def test_requires_sign_in(self, app):
        with pytest.raises(AuthenticationError):
            await app.list_activity_feed_following(None)


class TestPopularFeed:
    """Tests for the engagement-ranked feed."""

    async def test_ranked_by_engagement(self, app, alice, bob, carol, space, make_post):
        quiet = await make_post(alice, space, "quiet")
        liked = await make_post(alice, space, "liked")
        discussed = await make_post(alice, space, "discussed")
        await app.toggle_like(bob, LikeTarget.POST, liked.id)
        await app.toggle_like(carol, LikeTarget.POST, liked.id)
        for text in ("a", "b"):
            await app.create_comment(bob, discussed.id, text)

        page = await app.list_activity_feed_popular(bob)

        assert [p.id for p in page.posts] == [discussed.id, liked.id, quiet.id]

    async def test_offset_paging(self, app, alice, bob, space, make_post):
        posts = [await make_post(alice, space, f"post {i}") for i in range(5)]

        ids = await _collect(lambda **kw: app.list_activity_feed_popular(bob, **kw), limit=2)

        assert sorted(ids, key=str) == sorted((p.id for p in posts), key=str)
