"""Recompute denormalized community member and post reply counters."""
from __future__ import annotations

import logging

from versebyverse.db.session import SessionLocal
from versebyverse.services.community_service import reconcile_counts


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    with SessionLocal() as db:
        report = reconcile_counts(db)
    print(
        f"[reconcile] fixed {report.communities_fixed} communities, {report.posts_fixed} posts"
    )


if __name__ == "__main__":
    main()
