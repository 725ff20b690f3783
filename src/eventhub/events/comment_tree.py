"""Assemble flat comment rows into reply trees."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from eventhub.db.models import Comment


@dataclass
class CommentNode:
    comment: Comment
    replies: list[CommentNode] = field(default_factory=list)


def _sort_key(c: Comment) -> tuple[datetime, str]:
    created = c.created_at
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created, c.id


def build_comment_tree(comments: Iterable[Comment]) -> list[CommentNode]:
    """Nest comments under their parents, oldest first at every level.

    A comment whose parent is missing from `comments` or lives on another post is
    returned as a root.
    """
    ordered = sorted(comments, key=_sort_key)
    nodes = {c.id: CommentNode(c) for c in ordered}

    roots: list[CommentNode] = []
    for c in ordered:
        node = nodes[c.id]
        parent = nodes.get(c.parent_id) if c.parent_id else None
        if parent is None or parent is node or parent.comment.post_id != c.post_id:
            roots.append(node)
        else:
            parent.replies.append(node)
    return roots


def group_comment_trees(comments: Iterable[Comment]) -> dict[str, list[CommentNode]]:
    """Build one tree per post, keyed by post id."""
    by_post: dict[str, list[Comment]] = defaultdict(list)
    for c in comments:
        by_post[c.post_id].append(c)
    return {post_id: build_comment_tree(rows) for post_id, rows in by_post.items()}
