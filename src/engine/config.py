"""
Rules Configuration

Numeric constants of the ruleset. Defaults match the printed rules;
GODCODE_* environment variables override them for playtesting.
"""

from dataclasses import dataclass, fields
import os


@dataclass(frozen=True)
class RulesConfig:
    """Configuration for a match's rule constants."""

    # Resource ledger
    max_resource: int = 13
    overflow_threshold: int = 13
    max_god_code_charges: int = 2
    god_code_min_turn: int = 4

    # Turn structure
    hand_limit: int = 7
    domains_per_turn: int = 1

    # Cards and players
    default_guard: int = 1
    default_starting_essence: int = 25

    @classmethod
    def from_env(cls, prefix: str = "GODCODE_") -> 'RulesConfig':
        """Create config with any GODCODE_<FIELD> environment overrides applied."""
        overrides = {}
        for f in fields(cls):
            raw = os.environ.get(f"{prefix}{f.name.upper()}")
            if raw is None:
                continue
            try:
                overrides[f.name] = int(raw)
            except ValueError:
                raise ValueError(f"{prefix}{f.name.upper()} must be an integer, got {raw!r}")
        return cls(**overrides)
