"""Community posts, poll voting and threaded replies."""
from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from versebyverse.core.errors import NotFoundError, ValidationError
from versebyverse.db.time import utcnow
from versebyverse.models import (
    MANAGER_ROLES,
    POST_TYPE_POLL,
    POST_TYPES,
    Community,
    CommunityMembership,
    CommunityPollVote,
    CommunityPost,
    CommunityReply,
    GeneralContent,
    NotificationType,
    PollContent,
    PostContent,
    User,
)
from versebyverse.schemas.post import (
    PollOptionResult,
    PollResults,
    PostCreate,
    PostDetail,
    PostSummary,
    ReplyCreate,
    ReplyResponse,
    ReplyThread,
)

from .memberships import get_community_or_404, require_membership
from .notification_service import create_notification

logger = logging.getLogger(__name__)

SUBTITLE_LENGTH = 140
CATEGORY_LABELS = {
    "general": "General",
    "questions": "Questions",
    "announcements": "Announcements",
    "poll": "Poll",
}


def category_for(post_type: str) -> str:
    return CATEGORY_LABELS.get(post_type, "General")


def subtitle_for(body: str | None) -> str:
    text = (body or "").strip()
    if len(text) <= SUBTITLE_LENGTH:
        return text
    return text[:SUBTITLE_LENGTH].rstrip() + "..."


def _author_name(author: User | None) -> str:
    return author.display_name if author is not None else "Unknown"


def _get_post(db: Session, community_id: int, post_id: int) -> CommunityPost:
    post = (
        db.query(CommunityPost)
        .filter(CommunityPost.id == post_id, CommunityPost.community_id == community_id)
        .first()
    )
    if post is None:
        raise NotFoundError("Post not found")
    return post


def to_summary(post: CommunityPost) -> PostSummary:
    return PostSummary(
        id=post.id,
        title=post.title,
        subtitle=subtitle_for(post.body),
        type=post.type,
        category=category_for(post.type),
        reply_count=post.reply_count,
        last_reply_at=post.last_reply_at,
        author_id=post.author_id,
        author_name=_author_name(post.author),
        created_at=post.created_at,
    )


def list_posts(db: Session, community_id: int) -> list[PostSummary]:
    community = get_community_or_404(db, community_id)
    posts = (
        db.query(CommunityPost)
        .filter(CommunityPost.community_id == community.id)
        .order_by(CommunityPost.created_at.desc(), CommunityPost.id.desc())
        .all()
    )
    return [to_summary(post) for post in posts]


def build_content(payload: PostCreate) -> PostContent:
    """Turn a create request into the content variant for its (normalized) type."""
    post_type = payload.type if payload.type in POST_TYPES else "general"
    body = (payload.body or "").strip()

    if post_type == POST_TYPE_POLL:
        raw_options = payload.poll.options if payload.poll is not None else []
        options = tuple(option.strip() for option in raw_options if option and option.strip())
        if len(options) < 2:
            raise ValidationError("A poll needs at least two options")
        return PollContent(
            options=options,
            allow_multiple=payload.poll.allow_multiple,
            anonymous=payload.poll.anonymous,
            body=body or None,
        )

    if not body:
        raise ValidationError("Body is required")
    return GeneralContent(body=body)


def _notify_managers(db: Session, community: Community, author: User, post: CommunityPost) -> None:
    """Tell every Owner/Leader except the author about a new post.

    Runs after the post is committed; failures are logged and never surface.
    """
    post_id = post.id
    try:
        recipients = {
            user_id
            for (user_id,) in db.query(CommunityMembership.user_id).filter(
                CommunityMembership.community_id == community.id,
                CommunityMembership.role.in_(MANAGER_ROLES),
                CommunityMembership.user_id != author.id,
            )
        }
        for user_id in sorted(recipients):
            create_notification(
                db,
                user_id=user_id,
                type=NotificationType.COMMUNITY_NEW_POST,
                message=f"{author.display_name} posted \"{post.title}\" in {community.header}.",
                community_id=community.id,
                actor_id=author.id,
                post_id=post_id,
                target_kind="CommunityPost",
                target_id=post_id,
            )
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Failed to notify managers about post %s", post_id)


def create_post(db: Session, author: User, community_id: int, payload: PostCreate) -> CommunityPost:
    community = get_community_or_404(db, community_id)
    require_membership(db, community.id, author)
    content = build_content(payload)

    post = CommunityPost(community_id=community.id, author_id=author.id, title=payload.title)
    if isinstance(content, GeneralContent):
        post.type = payload.type if payload.type in POST_TYPES else "general"
    post.content = content
    community.touch()
    db.add(post)
    db.commit()
    db.refresh(post)
    logger.info("User %s created %s post %s in community %s", author.id, post.type, post.id, community.id)

    _notify_managers(db, community, author, post)
    return post


def tally_votes(
    options: Sequence[str],
    votes: Iterable[CommunityPollVote],
    viewer_id: int,
) -> tuple[list[int], int, list[int]]:
    """Return per-option counts, total votes and the viewer's own picks.

    Stored indices outside the option list are ignored.
    """
    counts = [0] * len(options)
    mine: set[int] = set()
    for vote in votes:
        if not 0 <= vote.option_index < len(options):
            continue
        counts[vote.option_index] += 1
        if vote.user_id == viewer_id:
            mine.add(vote.option_index)
    return counts, sum(counts), sorted(mine)


def _votes_for(db: Session, post_id: int) -> list[CommunityPollVote]:
    return db.query(CommunityPollVote).filter(CommunityPollVote.post_id == post_id).all()


def get_post_detail(db: Session, viewer: User, community_id: int, post_id: int) -> PostDetail:
    community = get_community_or_404(db, community_id)
    post = _get_post(db, community.id, post_id)
    content = post.content

    poll = None
    if isinstance(content, PollContent):
        counts, total, mine = tally_votes(content.options, _votes_for(db, post.id), viewer.id)
        poll = PollResults(
            options=[
                PollOptionResult(text=text, count=count)
                for text, count in zip(content.options, counts, strict=True)
            ],
            allow_multiple=content.allow_multiple,
            anonymous=content.anonymous,
            total_votes=total,
            my_votes=mine,
        )

    return PostDetail(
        id=post.id,
        community_id=post.community_id,
        title=post.title,
        type=post.type,
        category=category_for(post.type),
        body=post.body,
        author_id=post.author_id,
        author_name=_author_name(post.author),
        reply_count=post.reply_count,
        last_reply_at=post.last_reply_at,
        created_at=post.created_at,
        updated_at=post.updated_at,
        poll=poll,
    )


def vote_on_poll(
    db: Session,
    voter: User,
    community_id: int,
    post_id: int,
    option_index: int,
) -> tuple[list[int], int, list[int]]:
    """Toggle `option_index` for `voter` and return the refreshed tally.

    Choosing an option the voter already picked removes it. Otherwise a
    single-choice poll drops the voter's earlier pick before recording the new one.
    """
    community = get_community_or_404(db, community_id)
    require_membership(db, community.id, voter)
    post = _get_post(db, community.id, post_id)

    content = post.content
    if not isinstance(content, PollContent):
        raise ValidationError("Post is not a poll")
    if not 0 <= option_index < len(content.options):
        raise ValidationError("Invalid option index")

    own_votes = db.query(CommunityPollVote).filter(
        CommunityPollVote.post_id == post.id,
        CommunityPollVote.user_id == voter.id,
    )
    existing = own_votes.filter(CommunityPollVote.option_index == option_index).first()
    if existing is not None:
        db.delete(existing)
    else:
        if not content.allow_multiple:
            own_votes.delete(synchronize_session=False)
        db.add(CommunityPollVote(post_id=post.id, user_id=voter.id, option_index=option_index))
    community.touch()

    try:
        db.commit()
    except IntegrityError:
        # A concurrent request recorded the same vote first.
        db.rollback()

    return tally_votes(content.options, _votes_for(db, post.id), voter.id)


def _to_reply(reply: CommunityReply) -> ReplyResponse:
    return ReplyResponse(
        id=reply.id,
        post_id=reply.post_id,
        parent_reply_id=reply.parent_reply_id,
        body=reply.body,
        author_id=reply.author_id,
        author_name=_author_name(reply.author),
        created_at=reply.created_at,
    )


def build_reply_tree(replies: Sequence[ReplyResponse]) -> list[ReplyThread]:
    """Nest flat replies under their parents, keeping input order at every level.

    Replies whose parent is not in `replies` are treated as top level.
    """
    known = {reply.id for reply in replies}
    children: dict[int | None, list[ReplyResponse]] = defaultdict(list)
    for reply in replies:
        parent = reply.parent_reply_id if reply.parent_reply_id in known else None
        children[parent].append(reply)

    def build(parent_id: int | None) -> list[ReplyThread]:
        return [
            ReplyThread(**reply.model_dump(), children=build(reply.id))
            for reply in children.get(parent_id, [])
        ]

    return build(None)


def list_replies(db: Session, community_id: int, post_id: int) -> list[ReplyResponse]:
    community = get_community_or_404(db, community_id)
    post = _get_post(db, community.id, post_id)
    replies = (
        db.query(CommunityReply)
        .filter(CommunityReply.post_id == post.id)
        .order_by(CommunityReply.created_at, CommunityReply.id)
        .all()
    )
    return [_to_reply(reply) for reply in replies]


def create_reply(
    db: Session,
    author: User,
    community_id: int,
    post_id: int,
    payload: ReplyCreate,
) -> ReplyResponse:
    community = get_community_or_404(db, community_id)
    require_membership(db, community.id, author)
    post = _get_post(db, community.id, post_id)

    body = (payload.body or "").strip()
    if not body:
        raise ValidationError("Reply body is required")

    if payload.parent_reply_id is not None:
        parent = db.get(CommunityReply, payload.parent_reply_id)
        if parent is None or parent.post_id != post.id:
            raise ValidationError("Invalid parent reply")

    reply = CommunityReply(
        post_id=post.id,
        parent_reply_id=payload.parent_reply_id,
        author_id=author.id,
        body=body,
    )
    db.add(reply)
    post.reply_count = CommunityPost.reply_count + 1
    post.last_reply_at = utcnow()
    community.touch()
    db.commit()
    db.refresh(reply)
    return _to_reply(reply)
