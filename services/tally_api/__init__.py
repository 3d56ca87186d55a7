"""
Tally API service.

The core ledger (SessionRegistry, VotingSession) lives in ``ledger``; the
FastAPI application that exposes it lives in ``main``.
"""

from .ledger import (
    LedgerError,
    SessionNotFoundError,
    DuplicateNullifierError,
    SessionExistsError,
    SessionResults,
    VotingSession,
    SessionRegistry,
)

__all__ = [
    'LedgerError',
    'SessionNotFoundError',
    'DuplicateNullifierError',
    'SessionExistsError',
    'SessionResults',
    'VotingSession',
    'SessionRegistry',
]
