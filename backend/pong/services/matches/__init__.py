"""Match domain services: physics, matchmaking, scheduling and the AI.

This package holds the game logic that socket handlers and HTTP routes
call into, keeping transport concerns separated from core game mechanics.
"""

from .ai import AIController, DIFFICULTY_PROFILES, DifficultyProfile, get_profile
from .match import Match
from .registry import LeaveResult, MatchRegistry
from .scheduler import PhysicsScheduler, RepeatingTask

__all__ = [
    'AIController',
    'DIFFICULTY_PROFILES',
    'DifficultyProfile',
    'LeaveResult',
    'Match',
    'MatchRegistry',
    'PhysicsScheduler',
    'RepeatingTask',
    'get_profile',
]
