"""Tests for profiles, roles, points and follows."""

import pytest

from opentribe.core.modules.identity.models import AuthIdentity
from opentribe.core.modules.points.models import PointAction
from opentribe.core.modules.profile.models import NotificationPrefs, ProfileUpdate, ProfileVisibility, Role
from opentribe.errors import AccessDeniedError, AlreadyInStateError, AuthenticationError, NotFoundError, ValidationError


class TestProfileLifecycle:
    """Tests for lazily created profiles."""

    async def test_created_on_first_sight_with_normalized_email(self, app, alice):
        profile = await app.get_my_profile(alice)

        assert profile.email == "alice@example.com"
        assert profile.role == Role.MEMBER
        assert profile.points == 0
        assert profile.level == 1
        assert await app.get_my_membership(alice) is not None

    async def test_same_profile_for_differently_cased_email(self, app, alice):
        first = await app.get_my_profile(alice)
        second = await app.get_my_profile(AuthIdentity(email=" alice@EXAMPLE.com ", name="Other"))
        assert first.id == second.id

    async def test_configured_admin_email_gets_admin_role(self, app, admin):
        assert (await app.get_my_profile(admin)).role == Role.ADMIN

    async def test_anonymous_has_no_profile(self, app):
        with pytest.raises(AuthenticationError):
            await app.get_my_profile(None)


class TestProfileUpdates:
    async def test_update_fields(self, app, alice):
        profile = await app.update_profile(alice, ProfileUpdate(bio="Hi there"))
        assert profile.bio == "Hi there"
        assert profile.name == "Alice"

    async def test_bio_limit(self, app, alice):
        with pytest.raises(ValidationError):
            await app.update_profile(alice, ProfileUpdate(bio="x" * 501))

    async def test_notification_prefs(self, app, alice):
        profile = await app.update_notification_prefs(alice, NotificationPrefs(email_comments=False))
        assert not profile.notification_prefs.email_comments
        assert profile.notification_prefs.email_replies

    async def test_private_profile_visibility(self, app, alice, bob, moderator):
        alice_id = (await app.update_profile(alice, ProfileUpdate(visibility=ProfileVisibility.PRIVATE))).id

        with pytest.raises(NotFoundError):
            await app.get_profile(bob, alice_id)
        with pytest.raises(NotFoundError):
            await app.get_profile(None, alice_id)
        assert (await app.get_profile(alice, alice_id)).id == alice_id
        assert (await app.get_profile(moderator, alice_id)).id == alice_id

    async def test_search_skips_private_profiles(self, app, alice, bob, carol):
        await app.get_my_profile(bob)
        await app.get_my_profile(carol)
        await app.update_profile(carol, ProfileUpdate(visibility=ProfileVisibility.PRIVATE))

        assert [p.display_name for p in await app.search_members(alice, "example.com")] == ["Alice", "Bob"]
        assert await app.search_members(alice, "   ") == []

    async def test_view_hides_email(self, app, alice, bob):
        alice_id = (await app.get_my_profile(alice)).id
        view = await app.get_profile(bob, alice_id)
        assert "email" not in view.model_dump()


class TestRoles:
    """Tests for role management."""

    async def test_admin_promotes_member(self, app, admin, alice):
        alice_id = (await app.get_my_profile(alice)).id
        view = await app.set_member_role(admin, alice_id, Role.MODERATOR)
        assert view.role == Role.MODERATOR

    async def test_admin_cannot_change_own_role(self, app, admin):
        admin_id = (await app.get_my_profile(admin)).id
        with pytest.raises(ValidationError):
            await app.set_member_role(admin, admin_id, Role.MEMBER)

    async def test_moderator_cannot_change_roles(self, app, alice, moderator):
        alice_id = (await app.get_my_profile(alice)).id
        with pytest.raises(AccessDeniedError):
            await app.set_member_role(moderator, alice_id, Role.MODERATOR)

    async def test_lookup_by_email_is_moderator_only(self, app, alice, bob, moderator):
        await app.get_my_profile(alice)
        assert (await app.get_profile_by_email(moderator, "ALICE@example.com")).display_name == "Alice"
        with pytest.raises(AccessDeniedError):
            await app.get_profile_by_email(bob, "alice@example.com")


class TestPoints:
    async def test_ledger_records_awards(self, app, alice, bob, space, make_post):
        post = await make_post(alice, space)
        await app.create_comment(alice, post.id, "Self comment")

        history = await app.get_my_points_history(alice)
        assert history.total == 2
        assert {entry.action for entry in history.items} == {PointAction.POST_CREATED, PointAction.COMMENT_ADDED}
        assert sum(entry.amount for entry in history.items) == (await app.get_my_profile(alice)).points == 15

    async def test_level_follows_points(self, app, alice, space, make_post):
        for i in range(5):
            await make_post(alice, space, f"post {i}")

        profile = await app.get_my_profile(alice)
        assert profile.points == 50
        assert profile.level == 2


class TestFollows:
    """Tests for the follow graph."""

    async def test_follow_and_unfollow(self, app, alice, bob):
        alice_id = (await app.get_my_profile(alice)).id
        bob_id = (await app.get_my_profile(bob)).id

        await app.follow_user(bob, alice_id)
        assert [p.id for p in await app.list_following(bob)] == [alice_id]
        assert [p.id for p in await app.list_followers(alice)] == [bob_id]

        with pytest.raises(AlreadyInStateError):
            await app.follow_user(bob, alice_id)

        await app.unfollow_user(bob, alice_id)
        assert await app.list_following(bob) == []
        with pytest.raises(AlreadyInStateError):
            await app.unfollow_user(bob, alice_id)

    async def test_cannot_follow_self(self, app, alice):
        alice_id = (await app.get_my_profile(alice)).id
        with pytest.raises(ValidationError):
            await app.follow_user(alice, alice_id)

    async def test_cannot_follow_unknown_profile(self, app, alice, mock_member):
        with pytest.raises(NotFoundError):
            await app.follow_user(alice, mock_member.id)
