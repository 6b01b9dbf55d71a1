"""Tests for comment threading."""

from datetime import UTC, datetime
from uuid import uuid4

from opentribe.core.modules.comment.models import REDACTED_CONTENT, Comment, CommentView
from opentribe.core.modules.comment.nesting import build_comment_tree, effective_parent_id
from opentribe.utils import now

POST_ID = uuid4()


def _comment(seconds: int, parent_id=None, **kwargs) -> Comment:
    return Comment(
        post_id=POST_ID,
        author_id=uuid4(),
        author_name="Author",
        parent_id=parent_id,
        content=f"comment at {seconds}",
        created_at=datetime.fromtimestamp(seconds, tz=UTC),
        **kwargs,
    )


class TestEffectiveParent:
    def test_root_comment_is_its_own_parent(self):
        root = _comment(1000)
        assert effective_parent_id(root) == root.id

    def test_reply_to_reply_attaches_to_root(self):
        root = _comment(1000)
        reply = _comment(1100, parent_id=root.id)
        assert effective_parent_id(reply) == root.id


class TestBuildCommentTree:
    """Tests for grouping and ordering."""

    def test_roots_newest_first_replies_oldest_first(self):
        old_root = _comment(1000)
        new_root = _comment(2000)
        late_reply = _comment(1200, parent_id=old_root.id)
        early_reply = _comment(1100, parent_id=old_root.id)
        views = [CommentView.from_domain(c) for c in [old_root, late_reply, new_root, early_reply]]

        tree = build_comment_tree(views)

        assert [c.id for c in tree] == [new_root.id, old_root.id]
        assert tree[0].replies == []
        assert [c.id for c in tree[1].replies] == [early_reply.id, late_reply.id]

    def test_orphan_replies_are_dropped(self):
        root = _comment(1000)
        orphan = _comment(1100, parent_id=uuid4())
        tree = build_comment_tree([CommentView.from_domain(c) for c in [root, orphan]])

        assert [c.id for c in tree] == [root.id]
        assert tree[0].replies == []

    def test_empty(self):
        assert build_comment_tree([]) == []


class TestCommentView:
    def test_deleted_comment_is_redacted(self):
        comment = _comment(1000, deleted_at=now())
        view = CommentView.from_domain(comment)

        assert view.content == REDACTED_CONTENT
        assert view.is_deleted

    def test_is_own_follows_viewer(self):
        comment = _comment(1000)
        assert CommentView.from_domain(comment, viewer_id=comment.author_id).is_own
        assert not CommentView.from_domain(comment, viewer_id=uuid4()).is_own
        assert not CommentView.from_domain(comment).is_own
