from opentribe.web.routers.comments import router as comments_router
from opentribe.web.routers.feed import router as feed_router
from opentribe.web.routers.follows import router as follows_router
from opentribe.web.routers.likes import router as likes_router
from opentribe.web.routers.media import router as media_router
from opentribe.web.routers.members import router as members_router
from opentribe.web.routers.metadata import router as metadata_router
from opentribe.web.routers.notifications import router as notifications_router
from opentribe.web.routers.password_reset import router as password_reset_router
from opentribe.web.routers.posts import router as posts_router
from opentribe.web.routers.profile import router as profile_router
from opentribe.web.routers.spaces import router as spaces_router

__all__ = [
    "comments_router",
    "feed_router",
    "follows_router",
    "likes_router",
    "media_router",
    "members_router",
    "metadata_router",
    "notifications_router",
    "password_reset_router",
    "posts_router",
    "profile_router",
    "spaces_router",
]
