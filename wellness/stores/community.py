# -*- coding: utf-8 -*-
"""Community — posts, comments and the points leaderboard."""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional

from ..errors import InvalidRecordError
from . import aggregates
from .engine import ScopedStore, StoreContext
from .models import CommunityComment, CommunityPost, LeaderboardUser


class PostStore(ScopedStore[CommunityPost]):
    domain = "communityPosts"
    model = CommunityPost
    remote_resource = "posts"


class CommentStore(ScopedStore[CommunityComment]):
    domain = "communityComments"
    model = CommunityComment


class LeaderboardStore(ScopedStore[LeaderboardUser]):
    domain = "leaderboard"
    model = LeaderboardUser


def _avatar(name: str) -> str:
    return name[:1].upper()


class CommunityStore:
    def __init__(
        self,
        context: StoreContext,
        *,
        members: int = 0,
        initial_leaderboard: Iterable[Mapping[str, Any]] = (),
    ) -> None:
        self.posts = PostStore(context)
        self.comments = CommentStore(context)
        self.board = LeaderboardStore(context)
        self.members = members
        self._initial_leaderboard = list(initial_leaderboard)

    async def open(self) -> "CommunityStore":
        await self.posts.open()
        await self.comments.open()
        await self.board.open()
        if not len(self.board) and self._initial_leaderboard:
            for user in self._initial_leaderboard:
                self.board.add(user)
        return self

    async def aclose(self) -> None:
        await self.posts.aclose()
        await self.comments.aclose()
        await self.board.aclose()

    async def __aenter__(self) -> "CommunityStore":
        return await self.open()

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ---------- posts ----------

    def add_post(self, post: Mapping[str, Any]) -> CommunityPost:
        fields = dict(post)
        fields.update(replies=0, likes=0, liked_by_user=False)
        fields.setdefault("avatar", _avatar(str(fields.get("author") or "")))
        return self.posts.add(fields)

    def get_post(self, post_id: str) -> Optional[CommunityPost]:
        return self.posts.get(post_id)

    def feed(self, category: Optional[str] = None) -> List[CommunityPost]:
        items = [p for p in self.posts.records if category is None or p.category == category]
        return sorted(items, key=lambda p: p.timestamp, reverse=True)

    def like_post(self, post_id: str) -> Optional[CommunityPost]:
        post = self.posts.get(post_id)
        if post is None:
            return None
        return self.posts.update(post_id, likes=post.likes + 1, liked_by_user=True)

    def unlike_post(self, post_id: str) -> Optional[CommunityPost]:
        post = self.posts.get(post_id)
        if post is None:
            return None
        return self.posts.update(post_id, likes=max(0, post.likes - 1), liked_by_user=False)

    # ---------- comments ----------

    def add_comment(self, post_id: str, content: str, author: str) -> CommunityComment:
        post = self.posts.get(post_id)
        if post is None:
            raise InvalidRecordError(f"cannot comment on unknown post {post_id!r}")
        comment = self.comments.add(
            post_id=post_id,
            author=author,
            avatar=_avatar(author),
            content=content,
        )
        self.posts.update(post_id, replies=post.replies + 1)
        return comment

    def like_comment(self, comment_id: str) -> Optional[CommunityComment]:
        comment = self.comments.get(comment_id)
        if comment is None:
            return None
        return self.comments.update(comment_id, likes=comment.likes + 1)

    def post_comments(self, post_id: str) -> List[CommunityComment]:
        items = [c for c in self.comments.records if c.post_id == post_id]
        return sorted(items, key=lambda c: c.timestamp, reverse=True)

    # ---------- leaderboard ----------

    def leaderboard(self) -> List[LeaderboardUser]:
        return sorted(self.board.records, key=lambda u: u.rank)

    def update_user_points(self, name: str, points: int) -> List[LeaderboardUser]:
        existing = self.board.find(lambda u: u.name == name)
        if existing is not None and existing.points == points:
            return self.leaderboard()
        if existing is None:
            self.board.add(
                name=name,
                points=points,
                rank=len(self.board) + 1,
                badge="Beginner",
                streak=0,
                avatar=name[:1],
            )

        ranked = aggregates.rerank(self.leaderboard(), name, points)
        for user in ranked:
            current = self.board.get(user.id)
            if current is not None and (current.rank != user.rank or current.points != user.points):
                self.board.update(user.id, rank=user.rank, points=user.points)
        return self.leaderboard()

    def user_rank(self, name: str) -> int:
        user = self.board.find(lambda u: u.name == name)
        return user.rank if user else len(self.board) + 1
