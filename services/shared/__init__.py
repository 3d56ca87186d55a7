"""
Shared utilities and models for the proposal tally service.

This package contains common code used across the services:
- Data models (Vote, VoteChoice)
- Nullifier derivation
- Wire-format helpers
"""

from .models import (
    Vote,
    VoteChoice,
    CHOICE_ALIASES,
    parse_vote_choice,
    generate_nullifier,
)

__all__ = [
    'Vote',
    'VoteChoice',
    'CHOICE_ALIASES',
    'parse_vote_choice',
    'generate_nullifier',
]

__version__ = '1.0.0'
