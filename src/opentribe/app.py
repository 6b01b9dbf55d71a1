from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import PackageNotFoundError, version
from typing import Any, assert_never
from uuid import UUID

from pymongo import AsyncMongoClient

from opentribe.config import Config
from opentribe.core.core import Core
from opentribe.core.modules.access import permissions
from opentribe.core.modules.comment.models import CommentView
from opentribe.core.modules.identity.models import AuthIdentity
from opentribe.core.modules.like.models import LikeTarget, LikeToggleResult
from opentribe.core.modules.notification.models import Notification
from opentribe.core.modules.points.models import PointsLedgerEntry
from opentribe.core.modules.post.models import Post, PostCreate, PostDetails, PostPage, PostUpdate
from opentribe.core.modules.profile.models import (
    Membership,
    MembershipStatus,
    NotificationPrefs,
    Profile,
    ProfileUpdate,
    ProfileView,
    ProfileVisibility,
    Role,
)
from opentribe.core.modules.rate_limit.models import PASSWORD_RESET_POLICY, RateLimitDecision
from opentribe.core.modules.space.models import AdminSpace, MemberSpace, Space, SpaceCreate, SpaceUpdate
from opentribe.core.modules.space_visit.models import SpaceVisit
from opentribe.core.pagination import PaginationResult
from opentribe.errors import NotFoundError, RateLimitedError, ValidationError
from opentribe.utils import as_utc, normalize_email


class App:
    """Facade for all application operations, validates permissions before delegating to Core.

    Every operation takes the request identity explicitly (None for anonymous
    callers); nothing here keeps per-request state.
    """

    def __init__(self, config: Config, mongo_client: AsyncMongoClient[dict[str, Any]] | None = None) -> None:
        self._core = Core(config, mongo_client)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    def resolve_identity(self, token: str) -> AuthIdentity:
        """Verify a bearer token issued by the auth provider."""
        return self._core.services.identity.resolve_token(token)

    # === Profiles ===
    async def get_my_profile(self, identity: AuthIdentity | None) -> Profile:
        """Get (creating on first call) the caller's own profile."""
        return await self._core.services.access.ensure_authenticated(identity)

    async def get_profile(self, identity: AuthIdentity | None, profile_id: UUID) -> ProfileView:
        """Get a profile. Private profiles are visible to their owner and moderators only."""
        viewer = await self._core.services.access.get_viewer(identity)
        profile = await self._core.services.profile.get_profile(profile_id)
        if profile.visibility == ProfileVisibility.PRIVATE and not self._is_self_or_moderator(viewer, profile.id):
            raise NotFoundError(f"Profile '{profile_id}' not found")
        return ProfileView.from_domain(profile)

    async def get_profile_by_email(self, identity: AuthIdentity | None, email: str) -> ProfileView:
        """Look up a profile by email (moderators only)."""
        await self._core.services.access.ensure_moderator(identity)
        return ProfileView.from_domain(await self._core.services.profile.get_profile_by_email(email))

    async def update_profile(self, identity: AuthIdentity | None, update: ProfileUpdate) -> Profile:
        """Update the caller's profile. Existing post and comment bylines keep the old name."""
        profile = await self._core.services.access.ensure_authenticated(identity)
        return await self._core.services.profile.update_profile(profile.id, update)

    async def update_notification_prefs(self, identity: AuthIdentity | None, prefs: NotificationPrefs) -> Profile:
        profile = await self._core.services.access.ensure_authenticated(identity)
        return await self._core.services.profile.update_notification_prefs(profile.id, prefs)

    async def search_members(self, identity: AuthIdentity | None, query: str, limit: int = 20) -> list[ProfileView]:
        """Search public profiles by name or email (authenticated)."""
        await self._core.services.access.ensure_authenticated(identity)
        if not query.strip():
            return []
        profiles = await self._core.services.profile.search_profiles(query, limit)
        return [ProfileView.from_domain(profile) for profile in profiles]

    async def set_member_role(self, identity: AuthIdentity | None, profile_id: UUID, role: Role) -> ProfileView:
        """Change a member's role (admin only, not on yourself)."""
        admin = await self._core.services.access.ensure_admin(identity)
        if admin.id == profile_id:
            raise ValidationError("Cannot change your own role")
        return ProfileView.from_domain(await self._core.services.profile.set_role(profile_id, role))

    async def get_my_membership(self, identity: AuthIdentity | None) -> Membership | None:
        profile = await self._core.services.access.ensure_authenticated(identity)
        return await self._core.services.profile.get_membership(profile.id)

    async def update_membership(
        self,
        identity: AuthIdentity | None,
        profile_id: UUID,
        tier: str | None = None,
        status: MembershipStatus | None = None,
    ) -> Membership:
        """Set a member's tier and status (admin only)."""
        await self._core.services.access.ensure_admin(identity)
        return await self._core.services.profile.update_membership(profile_id, tier, status)

    async def get_my_points_history(
        self, identity: AuthIdentity | None, limit: int = 50, offset: int = 0
    ) -> PaginationResult[PointsLedgerEntry]:
        profile = await self._core.services.access.ensure_authenticated(identity)
        return await self._core.services.points.list_entries(profile.id, limit, offset)

    # === Follows ===
    async def follow_user(self, identity: AuthIdentity | None, profile_id: UUID) -> None:
        profile = await self._core.services.access.ensure_authenticated(identity)
        await self._core.services.follow.follow(profile.id, profile_id)

    async def unfollow_user(self, identity: AuthIdentity | None, profile_id: UUID) -> None:
        profile = await self._core.services.access.ensure_authenticated(identity)
        await self._core.services.follow.unfollow(profile.id, profile_id)

    async def list_following(self, identity: AuthIdentity | None) -> list[ProfileView]:
        profile = await self._core.services.access.ensure_authenticated(identity)
        ids = await self._core.services.follow.get_following_ids(profile.id)
        return await self._profile_views(ids)

    async def list_followers(self, identity: AuthIdentity | None) -> list[ProfileView]:
        profile = await self._core.services.access.ensure_authenticated(identity)
        ids = await self._core.services.follow.get_follower_ids(profile.id)
        return await self._profile_views(ids)

    # === Spaces ===
    async def list_spaces(self, identity: AuthIdentity | None) -> list[Space]:
        """Spaces the caller can view, in display order."""
        viewer = await self._core.services.access.get_viewer(identity)
        return await self._core.services.access.viewable_spaces(viewer)

    async def list_spaces_for_member(self, identity: AuthIdentity | None) -> list[MemberSpace]:
        """Viewable spaces with an unread marker based on the caller's last visits."""
        profile = await self._core.services.access.ensure_authenticated(identity)
        spaces = await self._core.services.access.viewable_spaces(profile)
        visits = {visit.space_id: visit for visit in await self._core.services.space_visit.get_visits(profile.id)}
        stats = await self._core.services.post.get_space_stats([space.id for space in spaces])

        result = []
        for space in spaces:
            _, last_post_at = stats[space.id]
            visit = visits.get(space.id)
            has_unread = last_post_at is not None and (
                visit is None or as_utc(last_post_at) > as_utc(visit.last_visited_at)
            )
            result.append(MemberSpace(space=space, has_unread=has_unread))
        return result

    async def list_spaces_for_admin(self, identity: AuthIdentity | None) -> list[AdminSpace]:
        """All spaces including deleted ones, with post statistics (admin only)."""
        await self._core.services.access.ensure_admin(identity)
        spaces = self._core.services.space.list_all_spaces()
        stats = await self._core.services.post.get_space_stats([space.id for space in spaces])
        return [
            AdminSpace(space=space, post_count=stats[space.id][0], last_post_at=stats[space.id][1]) for space in spaces
        ]

    async def get_space(self, identity: AuthIdentity | None, space_id: UUID) -> Space:
        viewer = await self._core.services.access.get_viewer(identity)
        space = self._core.services.space.get_space(space_id)
        await self._core.services.access.ensure_can_view_space(viewer, space)
        return space

    async def create_space(self, identity: AuthIdentity | None, data: SpaceCreate) -> Space:
        """Create a space at the end of the ordering (admin only)."""
        await self._core.services.access.ensure_admin(identity)
        return await self._core.services.space.create_space(data)

    async def update_space(self, identity: AuthIdentity | None, space_id: UUID, update: SpaceUpdate) -> Space:
        await self._core.services.access.ensure_admin(identity)
        return await self._core.services.space.update_space(space_id, update)

    async def delete_space(self, identity: AuthIdentity | None, space_id: UUID) -> None:
        await self._core.services.access.ensure_admin(identity)
        await self._core.services.space.delete_space(space_id)

    async def reorder_spaces(self, identity: AuthIdentity | None, ordered_ids: list[UUID]) -> list[Space]:
        """Rewrite space order to match `ordered_ids` (admin only, all-or-nothing)."""
        await self._core.services.access.ensure_admin(identity)
        return await self._core.services.space.reorder_spaces(ordered_ids)

    async def record_space_visit(self, identity: AuthIdentity | None, space_id: UUID) -> SpaceVisit:
        profile = await self._core.services.access.ensure_authenticated(identity)
        space = self._core.services.space.get_space(space_id)
        await self._core.services.access.ensure_can_view_space(profile, space)
        return await self._core.services.space_visit.record_visit(profile.id, space.id)

    async def get_space_visits(self, identity: AuthIdentity | None) -> list[SpaceVisit]:
        profile = await self._core.services.access.ensure_authenticated(identity)
        return await self._core.services.space_visit.get_visits(profile.id)

    async def get_space_visit(self, identity: AuthIdentity | None, space_id: UUID) -> SpaceVisit | None:
        profile = await self._core.services.access.ensure_authenticated(identity)
        return await self._core.services.space_visit.get_visit(profile.id, space_id)

    # === Posts ===
    async def create_post(self, identity: AuthIdentity | None, data: PostCreate) -> Post:
        """Create a post in a space the caller may post in."""
        profile = await self._core.services.access.ensure_authenticated(identity)
        space = self._core.services.space.get_space(data.space_id)
        await self._core.services.access.ensure_can_post(profile, space)
        return await self._core.services.post.create_post(profile, space, data)

    async def update_post(self, identity: AuthIdentity | None, post_id: UUID, update: PostUpdate) -> Post:
        """Edit a post (author or moderator+)."""
        profile = await self._core.services.access.ensure_authenticated(identity)
        post = await self._core.services.post.get_post(post_id)
        self._core.services.access.ensure_can_edit(profile, post)
        return await self._core.services.post.update_post(post_id, update)

    async def delete_post(self, identity: AuthIdentity | None, post_id: UUID) -> None:
        """Soft delete a post (author or moderator+)."""
        profile = await self._core.services.access.ensure_authenticated(identity)
        post = await self._core.services.post.get_post(post_id, include_deleted=True)
        self._core.services.access.ensure_can_delete(profile, post)
        await self._core.services.post.delete_post(post_id)

    async def restore_post(self, identity: AuthIdentity | None, post_id: UUID) -> Post:
        """Undo a soft delete (admin only)."""
        await self._core.services.access.ensure_admin(identity)
        return await self._core.services.post.restore_post(post_id)

    async def pin_post(self, identity: AuthIdentity | None, post_id: UUID) -> Post:
        """Pin a post to the top of its space (moderator+, at most three per space)."""
        await self._core.services.access.ensure_moderator(identity)
        return await self._core.services.post.pin_post(post_id)

    async def unpin_post(self, identity: AuthIdentity | None, post_id: UUID) -> Post:
        await self._core.services.access.ensure_moderator(identity)
        return await self._core.services.post.unpin_post(post_id)

    async def get_post(self, identity: AuthIdentity | None, post_id: UUID) -> PostDetails:
        viewer = await self._core.services.access.get_viewer(identity)
        post = await self._core.services.post.get_post(post_id)
        await self._ensure_post_visible(viewer, post)
        [details] = await self._core.services.post.enrich_posts(viewer, [post])
        return details

    async def list_posts_by_space(
        self, identity: AuthIdentity | None, space_id: UUID, limit: int = 20, cursor: str | None = None
    ) -> PostPage:
        """Posts of a space, pinned first. Spaces the caller cannot view yield an empty page."""
        viewer = await self._core.services.access.get_viewer(identity)
        space = self._core.services.space.get_space(space_id)
        if not await self._core.services.access.can_view_space(viewer, space):
            return PostPage(posts=[], next_cursor=None, has_more=False)
        return await self._core.services.post.list_posts_by_space(viewer, space, limit, cursor)

    async def list_posts_by_author(
        self, identity: AuthIdentity | None, author_id: UUID, limit: int = 20
    ) -> list[PostDetails]:
        viewer = await self._core.services.access.get_viewer(identity)
        spaces = await self._core.services.access.viewable_spaces(viewer)
        return await self._core.services.post.list_posts_by_author(viewer, author_id, [s.id for s in spaces], limit)

    async def list_deleted_posts(self, identity: AuthIdentity | None, limit: int = 50) -> list[Post]:
        """Soft-deleted posts for review (admin only; moderators are not enough)."""
        await self._core.services.access.ensure_admin(identity)
        return await self._core.services.post.list_deleted_posts(limit)

    # === Comments ===
    async def create_comment(
        self, identity: AuthIdentity | None, post_id: UUID, content: str, parent_id: UUID | None = None
    ) -> CommentView:
        profile = await self._core.services.access.ensure_authenticated(identity)
        post = await self._core.services.post.get_post(post_id)
        await self._ensure_post_visible(profile, post)
        comment = await self._core.services.comment.create_comment(profile, post, content, parent_id)
        return CommentView.from_domain(comment, author_level=profile.level, viewer_id=profile.id)

    async def update_comment(self, identity: AuthIdentity | None, comment_id: UUID, content: str) -> None:
        """Edit a comment (author or moderator+)."""
        profile = await self._core.services.access.ensure_authenticated(identity)
        comment = await self._core.services.comment.get_comment(comment_id)
        self._core.services.access.ensure_can_edit(profile, comment)
        await self._core.services.comment.update_comment(comment_id, content)

    async def delete_comment(self, identity: AuthIdentity | None, comment_id: UUID) -> None:
        """Soft delete a comment (author or moderator+); the post's comment count is kept."""
        profile = await self._core.services.access.ensure_authenticated(identity)
        comment = await self._core.services.comment.get_comment(comment_id, include_deleted=True)
        self._core.services.access.ensure_can_delete(profile, comment)
        await self._core.services.comment.delete_comment(comment_id)

    async def get_comment(self, identity: AuthIdentity | None, comment_id: UUID) -> CommentView:
        viewer = await self._core.services.access.get_viewer(identity)
        comment = await self._core.services.comment.get_comment(comment_id)
        post = await self._core.services.post.get_post(comment.post_id)
        await self._ensure_post_visible(viewer, post)
        [view] = await self._core.services.comment.to_views(viewer, [comment])
        return view

    async def list_comments_by_post(self, identity: AuthIdentity | None, post_id: UUID) -> list[CommentView]:
        """Threaded comments of a post; anonymous callers are allowed on visible posts."""
        viewer = await self._core.services.access.get_viewer(identity)
        post = await self._core.services.post.get_post(post_id)
        await self._ensure_post_visible(viewer, post)
        return await self._core.services.comment.list_comments_by_post(viewer, post.id)

    # === Likes ===
    async def toggle_like(
        self, identity: AuthIdentity | None, target_type: LikeTarget, target_id: UUID
    ) -> LikeToggleResult:
        profile = await self._core.services.access.ensure_authenticated(identity)
        await self._ensure_like_target_visible(profile, target_type, target_id)
        return await self._core.services.like.toggle_like(profile, target_type, target_id)

    async def has_user_liked(self, identity: AuthIdentity | None, target_type: LikeTarget, target_id: UUID) -> bool:
        """Whether the caller liked the target; always False for anonymous callers."""
        viewer = await self._core.services.access.get_viewer(identity)
        if viewer is None:
            return False
        return await self._core.services.like.has_user_liked(viewer.id, target_type, target_id)

    async def get_like_count(self, target_type: LikeTarget, target_id: UUID) -> int:
        return await self._core.services.like.get_like_count(target_type, target_id)

    async def get_user_likes_for_targets(
        self, identity: AuthIdentity | None, target_type: LikeTarget, target_ids: list[UUID]
    ) -> dict[UUID, bool]:
        viewer = await self._core.services.access.get_viewer(identity)
        liked: set[UUID] = set()
        if viewer is not None:
            liked = await self._core.services.like.liked_target_ids(viewer.id, target_type, target_ids)
        return {target_id: target_id in liked for target_id in target_ids}

    # === Feed ===
    async def list_activity_feed(
        self, identity: AuthIdentity | None, limit: int = 20, cursor: str | None = None
    ) -> PostPage:
        viewer = await self._core.services.access.get_viewer(identity)
        return await self._core.services.feed.recent(viewer, limit, cursor)

    async def list_activity_feed_following(
        self, identity: AuthIdentity | None, limit: int = 20, cursor: str | None = None
    ) -> PostPage:
        profile = await self._core.services.access.ensure_authenticated(identity)
        return await self._core.services.feed.following(profile, limit, cursor)

    async def list_activity_feed_popular(
        self, identity: AuthIdentity | None, limit: int = 20, cursor: str | None = None
    ) -> PostPage:
        viewer = await self._core.services.access.get_viewer(identity)
        return await self._core.services.feed.popular(viewer, limit, cursor)

    # === Notifications ===
    async def list_notifications(
        self, identity: AuthIdentity | None, unread_only: bool = False, limit: int = 50, offset: int = 0
    ) -> PaginationResult[Notification]:
        profile = await self._core.services.access.ensure_authenticated(identity)
        return await self._core.services.notification.list_notifications(profile.id, unread_only, limit, offset)

    async def get_unread_notification_count(self, identity: AuthIdentity | None) -> int:
        profile = await self._core.services.access.ensure_authenticated(identity)
        return await self._core.services.notification.count_unread(profile.id)

    async def mark_notification_read(self, identity: AuthIdentity | None, notification_id: UUID) -> None:
        profile = await self._core.services.access.ensure_authenticated(identity)
        await self._core.services.notification.mark_read(profile.id, notification_id)

    async def mark_all_notifications_read(self, identity: AuthIdentity | None) -> int:
        profile = await self._core.services.access.ensure_authenticated(identity)
        return await self._core.services.notification.mark_all_read(profile.id)

    # === Media ===
    async def generate_upload_url(self, identity: AuthIdentity | None) -> str:
        await self._core.services.access.ensure_authenticated(identity)
        return await self._core.services.media.generate_upload_url()

    async def get_media_url(self, ref: str) -> str | None:
        return await self._core.services.media.get_url(ref)

    async def get_media_urls(self, refs: list[str]) -> dict[str, str | None]:
        return await self._core.services.media.get_urls(refs)

    # === Password reset ===
    async def request_password_reset(self, email: str) -> RateLimitDecision:
        """Admit a password reset request for an email, at most 3 per rolling hour.

        Delivery of the reset email is handled by the auth provider.
        """
        key = normalize_email(email)
        if not key:
            raise ValidationError("Email is required")
        decision = await self._core.services.rate_limit.consume(PASSWORD_RESET_POLICY, key)
        if not decision.allowed and decision.retry_at is not None:
            raise RateLimitedError(decision.retry_at, "Too many password reset requests")
        return decision

    # === Metadata ===
    async def get_version(self) -> dict[str, str]:
        """Get version information."""
        try:
            package_version = version("opentribe")
        except PackageNotFoundError:
            package_version = "unknown"
        config = self._core.config
        return {
            "version": package_version,
            "git_commit_hash": config.git_commit_hash,
            "git_commit_date": config.git_commit_date,
            "build_time": config.build_time,
        }

    # === Private helpers ===
    async def _ensure_post_visible(self, viewer: Profile | None, post: Post) -> None:
        """Posts in spaces the viewer cannot see (or deleted spaces) look missing."""
        try:
            space = self._core.services.space.get_space(post.space_id)
        except NotFoundError as e:
            raise NotFoundError("Post not found") from e
        if not await self._core.services.access.can_view_space(viewer, space):
            raise NotFoundError("Post not found")

    async def _ensure_like_target_visible(self, viewer: Profile, target_type: LikeTarget, target_id: UUID) -> None:
        match target_type:
            case LikeTarget.POST:
                post = await self._core.services.post.get_post(target_id)
            case LikeTarget.COMMENT:
                comment = await self._core.services.comment.get_comment(target_id)
                post = await self._core.services.post.get_post(comment.post_id)
            case _:
                assert_never(target_type)
        await self._ensure_post_visible(viewer, post)

    async def _profile_views(self, profile_ids: list[UUID]) -> list[ProfileView]:
        profiles = await self._core.services.profile.get_profiles(profile_ids)
        return [ProfileView.from_domain(profiles[pid]) for pid in profile_ids if pid in profiles]

    @staticmethod
    def _is_self_or_moderator(viewer: Profile | None, profile_id: UUID) -> bool:
        if viewer is None:
            return False
        return viewer.id == profile_id or permissions.has_role(viewer.role, Role.MODERATOR)
