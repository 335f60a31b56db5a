from typing import Any, Dict, Iterable, List

SORT_KEYS = ('high_score', 'games_played', 'average')


def average_score(entry: Dict[str, Any]) -> float:
    """High score per game played, 0 for players with no games."""
    games = int(entry.get('games_played') or 0)
    if games <= 0:
        return 0
    return int(entry.get('high_score') or 0) / games


def sort_leaderboard(entries: Iterable[Dict[str, Any]], key: str = 'high_score') -> List[Dict[str, Any]]:
    if key not in SORT_KEYS:
        raise ValueError(f"Unknown leaderboard sort key: {key}")
    if key == 'average':
        return sorted(entries, key=average_score, reverse=True)
    return sorted(entries, key=lambda e: int(e.get(key) or 0), reverse=True)
