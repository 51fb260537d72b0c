from game.nback.sequence import classify_response, count_matches, generate_sequence, is_match
from game.nback.session import NBackSession

__all__ = ["classify_response", "count_matches", "generate_sequence", "is_match", "NBackSession"]
