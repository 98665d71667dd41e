"""
Rules errors.

Every RulesViolation is raised before any state is touched, so the caller can
re-prompt. DeckExhaustedError is different: it ends the match.
"""


class RulesViolation(Exception):
    """An illegal action was rejected. State is unchanged."""


class InsufficientResourceError(RulesViolation):
    pass


class IllegalZoneTransitionError(RulesViolation):
    pass


class PriorityViolationError(RulesViolation):
    """Attack target ignores an enemy Guardian."""


class SummoningSicknessError(RulesViolation):
    pass


class AlreadyActedError(RulesViolation):
    pass


class TurnLimitExceededError(RulesViolation):
    pass


class IllegalPhaseActionError(RulesViolation):
    """Action is not allowed in the current phase, combat step or for this player."""


class InvalidTargetError(RulesViolation):
    pass


class GodCodeUnavailableError(RulesViolation):
    pass


class MatchOverError(RulesViolation):
    pass


class DeckExhaustedError(Exception):
    """A mandatory draw found an empty deck. Terminal for the drawing player."""

    def __init__(self, player_id: str):
        super().__init__(f"Player {player_id} cannot draw from an empty deck")
        self.player_id = player_id
