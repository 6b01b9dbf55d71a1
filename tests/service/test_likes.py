"""Tests for like toggling, counters and the points it awards."""

import pytest

from opentribe.core.modules.like.models import LikeTarget
from opentribe.core.modules.space.models import SpaceCreate, SpaceVisibility
from opentribe.errors import AuthenticationError, NotFoundError


class TestToggleLike:
    """Tests for liking and unliking posts and comments."""

    async def test_toggle_twice_restores_state(self, app, alice, bob, space, make_post):
        post = await make_post(alice, space)

        liked = await app.toggle_like(bob, LikeTarget.POST, post.id)
        assert liked.liked
        assert liked.new_count == 1
        assert await app.has_user_liked(bob, LikeTarget.POST, post.id)

        unliked = await app.toggle_like(bob, LikeTarget.POST, post.id)
        assert not unliked.liked
        assert unliked.new_count == 0
        assert not await app.has_user_liked(bob, LikeTarget.POST, post.id)
        assert await app.get_like_count(LikeTarget.POST, post.id) == 0

    async def test_unlike_never_drives_count_below_zero(self, app, alice, bob, space, make_post):
        """A counter already at zero stays there when an existing like is removed."""
        post = await make_post(alice, space)
        await app.toggle_like(bob, LikeTarget.POST, post.id)
        posts = app._core.services.post._collection
        await posts.update_one({"_id": post.id}, {"$set": {"like_count": 0}})

        result = await app.toggle_like(bob, LikeTarget.POST, post.id)

        assert not result.liked
        assert result.new_count == 0
        assert (await posts.find_one({"_id": post.id}))["like_count"] == 0
        assert await app.get_like_count(LikeTarget.POST, post.id) == 0

    async def test_count_matches_number_of_likers(self, app, alice, bob, carol, space, make_post):
        post = await make_post(alice, space)
        for identity in (alice, bob, carol):
            await app.toggle_like(identity, LikeTarget.POST, post.id)

        assert await app.get_like_count(LikeTarget.POST, post.id) == 3
        details = await app.get_post(bob, post.id)
        assert details.like_count == 3
        assert details.has_liked

    async def test_like_awards_points_to_author_and_unlike_keeps_them(self, app, alice, bob, carol, space, make_post):
        post = await make_post(alice, space)
        before = (await app.get_my_profile(alice)).points

        await app.toggle_like(bob, LikeTarget.POST, post.id)
        await app.toggle_like(carol, LikeTarget.POST, post.id)
        await app.toggle_like(bob, LikeTarget.POST, post.id)
        await app.toggle_like(bob, LikeTarget.POST, post.id)

        # Three like actions, one unlike: points only ever go up
        assert (await app.get_my_profile(alice)).points == before + 3 * 2
        assert (await app.get_my_profile(bob)).points == 0

    async def test_like_comment(self, app, alice, bob, space, make_post):
        post = await make_post(alice, space)
        comment = await app.create_comment(alice, post.id, "First!")

        result = await app.toggle_like(bob, LikeTarget.COMMENT, comment.id)

        assert result.liked
        assert result.new_count == 1
        [view] = await app.list_comments_by_post(bob, post.id)
        assert view.like_count == 1
        assert view.has_liked

    async def test_like_missing_target(self, app, alice, space, make_post):
        post = await make_post(alice, space)
        with pytest.raises(NotFoundError):
            await app.toggle_like(alice, LikeTarget.COMMENT, post.id)

    async def test_cannot_like_in_hidden_space(self, app, admin, bob, make_post):
        """Content in spaces the caller cannot view looks missing and earns nothing."""
        hidden = await app.create_space(admin, SpaceCreate(name="Staff", visibility=SpaceVisibility.PAID))
        post = await make_post(admin, hidden)
        comment = await app.create_comment(admin, post.id, "Internal")
        points_before = (await app.get_my_profile(admin)).points

        with pytest.raises(NotFoundError):
            await app.toggle_like(bob, LikeTarget.POST, post.id)
        with pytest.raises(NotFoundError):
            await app.toggle_like(bob, LikeTarget.COMMENT, comment.id)

        assert await app.get_like_count(LikeTarget.POST, post.id) == 0
        assert (await app.get_my_profile(admin)).points == points_before

    async def test_anonymous_cannot_like(self, app, alice, space, make_post):
        post = await make_post(alice, space)
        with pytest.raises(AuthenticationError):
            await app.toggle_like(None, LikeTarget.POST, post.id)

    async def test_anonymous_has_not_liked(self, app, alice, space, make_post):
        post = await make_post(alice, space)
        await app.toggle_like(alice, LikeTarget.POST, post.id)
        assert not await app.has_user_liked(None, LikeTarget.POST, post.id)


class TestLikeQueries:
    async def test_user_likes_for_targets(self, app, alice, bob, space, make_post):
        first = await make_post(alice, space, "one")
        second = await make_post(alice, space, "two")
        await app.toggle_like(bob, LikeTarget.POST, first.id)

        assert await app.get_user_likes_for_targets(bob, LikeTarget.POST, [first.id, second.id]) == {
            first.id: True,
            second.id: False,
        }
        assert await app.get_user_likes_for_targets(None, LikeTarget.POST, [first.id]) == {first.id: False}

    async def test_count_of_unknown_target_is_zero(self, app, alice, space, make_post):
        post = await make_post(alice, space)
        assert await app.get_like_count(LikeTarget.COMMENT, post.id) == 0
