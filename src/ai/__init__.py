"""
God Code AI System

Pluggable decision strategies. They read the engine's query surface and
return choices; they never mutate the game themselves.
"""

from .strategies import AIStrategy, AggroStrategy

__all__ = [
    'AIStrategy',
    'AggroStrategy',
]
