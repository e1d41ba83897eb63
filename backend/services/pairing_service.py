"""
Doubles pair generation from a team's nominated players.
"""

import random
from typing import Dict, List, Optional, Sequence, Set, Tuple
from backend.utils.constants import PAIRS_PER_MATCH, MAX_APPEARANCES_PER_PLAYER

Partnership = Tuple[Optional[int], Optional[int]]


def _partnership_key(player_a: int, player_b: int) -> Tuple[int, int]:
    """Order-independent key for a partnership (smaller id first)."""
    return (player_a, player_b) if player_a < player_b else (player_b, player_a)


def _find_best_partnership(
    candidates: List[int],
    appearances: Dict[int, int],
    used: Set[Tuple[int, int]],
    max_appearances: int,
) -> Optional[Tuple[int, int]]:
    """Pick the unused partnership whose players have appeared least so far."""
    best = None
    best_total = None
    for i, player_a in enumerate(candidates):
        if appearances[player_a] >= max_appearances:
            continue
        for player_b in candidates[i + 1:]:
            if appearances[player_b] >= max_appearances:
                continue
            if _partnership_key(player_a, player_b) in used:
                continue
            total = appearances[player_a] + appearances[player_b]
            if best_total is None or total < best_total:
                best = (player_a, player_b)
                best_total = total
    return best


def generate_pairs(
    player_ids: Sequence[int],
    num_pairs: int = PAIRS_PER_MATCH,
    max_appearances: int = MAX_APPEARANCES_PER_PLAYER,
    rng: Optional[random.Random] = None,
) -> List[Partnership]:
    """
    Generate doubles partnerships for one side of a match.

    No partnership repeats, no player is used more than max_appearances
    times, and players who have played least are preferred. Candidates are
    shuffled first so equally good line-ups vary between calls; pass a seeded
    rng for reproducible output.

    Args:
        player_ids: Nominated player IDs for one team
        num_pairs: Number of partnerships to produce
        max_appearances: Cap on pairs per player
        rng: Random source used for the initial shuffle

    Returns:
        num_pairs partnerships; slots that cannot be filled are (None, None)
    """
    rng = rng or random.Random()
    candidates = list(dict.fromkeys(player_ids))
    rng.shuffle(candidates)

    appearances = {player_id: 0 for player_id in candidates}
    used: Set[Tuple[int, int]] = set()
    pairs: List[Partnership] = []

    for _ in range(num_pairs):
        best = _find_best_partnership(candidates, appearances, used, max_appearances)
        if best is None:
            pairs.append((None, None))
            continue
        player_a, player_b = best
        appearances[player_a] += 1
        appearances[player_b] += 1
        used.add(_partnership_key(player_a, player_b))
        pairs.append(best)

    return pairs
