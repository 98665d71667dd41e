"""
God Code AI Strategies

Available strategies:
- AggroStrategy: Aggressive, face-damage focused
"""

from .base import AIStrategy
from .aggro import AggroStrategy

__all__ = [
    'AIStrategy',
    'AggroStrategy',
]
