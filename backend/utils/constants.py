"""
Constants used across the league scoring system.
"""

# Match structure
PAIRS_PER_MATCH = 9  # Every match is played as nine doubles pairs
GAMES_PER_PAIR = 3  # Best of three games; game 3 may be left at 0-0

# Standings scoring (three points for a win, one for a draw)
DEFAULT_POINTS_PER_WIN = 3
DEFAULT_POINTS_PER_DRAW = 1

# Pair generation
MAX_APPEARANCES_PER_PLAYER = 3  # A nominated player plays in at most three pairs

# Player statistics
STATS_LEADER_MIN_GAMES = 3  # Minimum pairs played to qualify for best win rate

# Sides of a pair or match
HOME = "home"
AWAY = "away"
