from pawmatch.models.dog import Dog
from pawmatch.models.match_outcome import MatchOutcome
from pawmatch.models.match_request import MatchRequest

__all__ = [
    "Dog",
    "MatchRequest",
    "MatchOutcome",
]
