#!/usr/bin/env python3
"""
Recompute the stored score of every match from its pairs.

Use after importing pair data directly into the database, then print the
resulting standings table as a sanity check.
"""

import asyncio
import os
import sys

# Add the project root to path (so backend.* imports work)
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from backend.database.db import AsyncSessionLocal, close_database
from backend.services import data_service


async def recalculate_match_scores():
    """Recompute all match scores and show the standings."""
    async with AsyncSessionLocal() as session:
        print("=" * 60)
        print("Recomputing match scores...")
        print("=" * 60)

        try:
            count = await data_service.recompute_all_match_scores(session)
            print(f"✓ Recomputed {count} matches\n")
        except Exception as e:
            print(f"❌ Error recomputing scores: {str(e)}")
            await session.rollback()
            return

        standings = await data_service.get_standings(session)
        print(f"{'Pos':<4}{'Team':<30}{'P':>4}{'W':>4}{'D':>4}{'L':>4}{'+/-':>6}{'Pts':>6}")
        for position, row in enumerate(standings, 1):
            print(
                f"{position:<4}{row['team_name']:<30}{row['played']:>4}{row['wins']:>4}"
                f"{row['draws']:>4}{row['losses']:>4}{row['pairs_diff']:>6}{row['points']:>6}"
            )

    await close_database()


if __name__ == "__main__":
    asyncio.run(recalculate_match_scores())
