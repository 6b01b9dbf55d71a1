"""Tests for threaded comments and the notifications they fan out."""

import pytest

from opentribe.core.modules.comment.models import REDACTED_CONTENT
from opentribe.core.modules.notification.models import NotificationType
from opentribe.errors import AccessDeniedError, AlreadyInStateError, NotFoundError, ValidationError


class TestCreateComment:
    """Tests for comment creation and threading."""

    async def test_root_comment(self, app, alice, bob, space, make_post):
        post = await make_post(alice, space)
        comment = await app.create_comment(bob, post.id, "Nice post")

        assert comment.parent_id is None
        assert comment.is_own
        assert comment.author_name == "Bob"
        assert (await app.get_post(bob, post.id)).comment_count == 1
        assert (await app.get_my_profile(bob)).points == 5

    async def test_reply_to_reply_is_flattened_to_root(self, app, alice, bob, carol, space, make_post):
        post = await make_post(alice, space)
        root = await app.create_comment(alice, post.id, "Root")
        reply = await app.create_comment(bob, post.id, "Reply", parent_id=root.id)
        nested = await app.create_comment(carol, post.id, "Reply to reply", parent_id=reply.id)

        assert reply.parent_id == root.id
        assert nested.parent_id == root.id

        [thread] = await app.list_comments_by_post(None, post.id)
        assert thread.id == root.id
        assert {c.id for c in thread.replies} == {reply.id, nested.id}

    async def test_parent_on_other_post_rejected(self, app, alice, space, make_post):
        first = await make_post(alice, space, "one")
        second = await make_post(alice, space, "two")
        comment = await app.create_comment(alice, first.id, "Here")

        with pytest.raises(ValidationError):
            await app.create_comment(alice, second.id, "There", parent_id=comment.id)

    @pytest.mark.parametrize("content", ["", "   ", "x" * 501])
    async def test_length_limits(self, app, alice, space, make_post, content):
        post = await make_post(alice, space)
        with pytest.raises(ValidationError):
            await app.create_comment(alice, post.id, content)

    async def test_max_length_accepted(self, app, alice, space, make_post):
        post = await make_post(alice, space)
        comment = await app.create_comment(alice, post.id, "x" * 500)
        assert len(comment.content) == 500

    async def test_comment_on_deleted_post(self, app, alice, space, make_post):
        post = await make_post(alice, space)
        await app.delete_post(alice, post.id)
        with pytest.raises(NotFoundError):
            await app.create_comment(alice, post.id, "Too late")


class TestEditAndDeleteComment:
    async def test_author_edits(self, app, alice, space, make_post):
        post = await make_post(alice, space)
        comment = await app.create_comment(alice, post.id, "Tpyo")
        await app.update_comment(alice, comment.id, "Typo")

        view = await app.get_comment(alice, comment.id)
        assert view.content == "Typo"
        assert view.edited_at is not None

    async def test_stranger_cannot_edit(self, app, alice, bob, space, make_post):
        post = await make_post(alice, space)
        comment = await app.create_comment(alice, post.id, "Mine")
        with pytest.raises(AccessDeniedError):
            await app.update_comment(bob, comment.id, "Yours")

    async def test_deleted_comment_is_redacted_and_count_kept(self, app, alice, bob, space, make_post):
        post = await make_post(alice, space)
        root = await app.create_comment(bob, post.id, "Regrettable")
        await app.create_comment(alice, post.id, "Reply", parent_id=root.id)

        await app.delete_comment(bob, root.id)

        [thread] = await app.list_comments_by_post(alice, post.id)
        assert thread.is_deleted
        assert thread.content == REDACTED_CONTENT
        assert len(thread.replies) == 1
        assert (await app.get_post(alice, post.id)).comment_count == 2
        with pytest.raises(NotFoundError):
            await app.get_comment(alice, root.id)

    async def test_double_delete(self, app, alice, space, make_post):
        post = await make_post(alice, space)
        comment = await app.create_comment(alice, post.id, "Once")
        await app.delete_comment(alice, comment.id)
        with pytest.raises(AlreadyInStateError):
            await app.delete_comment(alice, comment.id)

    async def test_moderator_deletes_any(self, app, alice, moderator, space, make_post):
        post = await make_post(alice, space)
        comment = await app.create_comment(alice, post.id, "Spam")
        await app.delete_comment(moderator, comment.id)
        with pytest.raises(NotFoundError):
            await app.get_comment(moderator, comment.id)


class TestCommentNotifications:
    """Tests for who gets notified about new comments."""

    async def test_fan_out_counts(self, app, alice, bob, carol, space, make_post):
        post = await make_post(alice, space)

        # Alice on her own post: nobody
        own = await app.create_comment(alice, post.id, "Edit: typo")
        assert await app.get_unread_notification_count(alice) == 0

        # Bob replies to Alice's comment on Alice's post: Alice once
        await app.create_comment(bob, post.id, "Welcome", parent_id=own.id)
        assert await app.get_unread_notification_count(alice) == 1

        # Carol replies to Bob's comment: Alice (post) and Bob (reply)
        bob_comment = await app.create_comment(bob, post.id, "Root by Bob")
        assert await app.get_unread_notification_count(alice) == 2
        await app.create_comment(carol, post.id, "Hi Bob", parent_id=bob_comment.id)

        assert await app.get_unread_notification_count(alice) == 3
        assert await app.get_unread_notification_count(bob) == 1
        assert await app.get_unread_notification_count(carol) == 0

        [reply_notification] = (await app.list_notifications(bob)).items
        assert reply_notification.type == NotificationType.REPLY
        assert reply_notification.data.parent_comment_id == bob_comment.id
        assert reply_notification.data.preview == "Hi Bob"

    async def test_mark_read(self, app, alice, bob, space, make_post):
        post = await make_post(alice, space)
        await app.create_comment(bob, post.id, "One")
        await app.create_comment(bob, post.id, "Two")

        page = await app.list_notifications(alice, unread_only=True)
        assert page.total == 2
        await app.mark_notification_read(alice, page.items[0].id)
        assert await app.get_unread_notification_count(alice) == 1

        assert await app.mark_all_notifications_read(alice) == 1
        assert await app.get_unread_notification_count(alice) == 0
        assert (await app.list_notifications(alice)).total == 2

    async def test_cannot_mark_someone_elses_notification(self, app, alice, bob, space, make_post):
        post = await make_post(alice, space)
        await app.create_comment(bob, post.id, "Hello")
        [notification] = (await app.list_notifications(alice)).items

        with pytest.raises(NotFoundError):
            await app.mark_notification_read(bob, notification.id)
