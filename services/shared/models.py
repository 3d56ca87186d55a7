"""
Shared data models and utilities for the proposal tally service.

This module contains:
- Vote: an accepted ballot as stored in a voting session
- VoteChoice: the yes/no enum used for tallies
- Nullifier derivation and wire-format helpers
"""

import hashlib
from dataclasses import dataclass
from typing import Any, Dict, Union
from enum import Enum


class VoteChoice(str, Enum):
    """Valid vote choices."""
    YES = "yes"
    NO = "no"


# Wire values accepted for each choice (web clients send 1/0)
CHOICE_ALIASES = {
    1: VoteChoice.YES,
    0: VoteChoice.NO,
    "1": VoteChoice.YES,
    "0": VoteChoice.NO,
    "yes": VoteChoice.YES,
    "no": VoteChoice.NO,
}


@dataclass(frozen=True)
class Vote:
    """
    A single ballot recorded against a proposal.

    Attributes:
        nullifier: Opaque token derived from the voter, unique per session
        choice: Vote choice (yes/no)
        proof: Opaque proof blob, stored but never verified
    """
    nullifier: str
    choice: VoteChoice
    proof: str = ""


def parse_vote_choice(value: Union[int, str, bool, float, VoteChoice]) -> VoteChoice:
    """
    Normalize a wire vote value to a VoteChoice.

    Args:
        value: 1/0, "yes"/"no" (any case) or a VoteChoice

    Returns:
        VoteChoice: Normalized choice

    Raises:
        ValueError: If the value is not a recognised choice
    """
    if isinstance(value, VoteChoice):
        return value
    # bool is an int subclass and 1.0 == 1; neither may map to a choice
    if isinstance(value, (bool, float)):
        raise ValueError("Vote must be 1 (yes) or 0 (no)")
    key = value.strip().lower() if isinstance(value, str) else value
    try:
        return CHOICE_ALIASES[key]
    except (KeyError, TypeError):
        raise ValueError("Vote must be 1 (yes) or 0 (no)") from None


def generate_nullifier(voter_id: str) -> str:
    """
    Generate the SHA-256 nullifier for a voter identifier.

    The same voter id always yields the same nullifier, which is what lets a
    session reject a second ballot. It is a plain digest: it carries no
    secrecy and proves nothing about eligibility.

    Args:
        voter_id: Voter identifier

    Returns:
        str: Hexadecimal SHA-256 digest (64 characters)
    """
    return hashlib.sha256(voter_id.encode('utf-8')).hexdigest()

