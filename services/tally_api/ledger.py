"""In-memory vote ledger: the session registry and per-proposal voting sessions.

Locking is two-level. The registry lock guards the proposal_id -> session
mapping and is held only long enough to insert or fetch a reference. Each
session then has its own lock guarding its vote list and tally together, so
voters on different proposals never contend with each other.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Set, Tuple

from ..shared import Vote, VoteChoice

logger = logging.getLogger(__name__)


class LedgerError(Exception):
    """Base class for ledger failures reported back to the caller."""


class SessionNotFoundError(LedgerError):
    """No voting session exists for the requested proposal."""

    def __init__(self, proposal_id: str):
        self.proposal_id = proposal_id
        super().__init__(f"Session not found: {proposal_id}")


class DuplicateNullifierError(LedgerError):
    """The nullifier has already been used in this session."""

    def __init__(self, proposal_id: str, nullifier: str):
        self.proposal_id = proposal_id
        self.nullifier = nullifier
        super().__init__(f"Nullifier already used for proposal {proposal_id}")


class SessionExistsError(LedgerError):
    """Raised on re-creation when the registry does not allow overwrites."""

    def __init__(self, proposal_id: str):
        self.proposal_id = proposal_id
        super().__init__(f"Session already exists: {proposal_id}")


def _empty_tally() -> Dict[str, int]:
    return {choice.value: 0 for choice in VoteChoice}


@dataclass(frozen=True)
class SessionResults:
    """Point-in-time snapshot of a session's tally."""

    proposal_id: str
    tally: Dict[str, int] = field(default_factory=_empty_tally)
    total_votes: int = 0

    @property
    def yes(self) -> int:
        return self.tally[VoteChoice.YES.value]

    @property
    def no(self) -> int:
        return self.tally[VoteChoice.NO.value]


class VotingSession:
    """Vote collection state for one proposal."""

    def __init__(self, proposal_id: str):
        self._proposal_id = proposal_id
        self._votes: List[Vote] = []
        self._nullifiers: Set[str] = set()
        self._tally: Dict[str, int] = _empty_tally()
        self._lock = threading.Lock()

    @property
    def proposal_id(self) -> str:
        return self._proposal_id

    @property
    def votes(self) -> Tuple[Vote, ...]:
        """Accepted votes in acceptance order."""
        with self._lock:
            return tuple(self._votes)

    def has_voted(self, nullifier: str) -> bool:
        """
        Check whether a nullifier has already been accepted.

        Args:
            nullifier: The nullifier to check

        Returns:
            True if a vote with this nullifier was recorded
        """
        with self._lock:
            return nullifier in self._nullifiers

    def submit_vote(self, vote: Vote) -> None:
        """
        Record a vote, rejecting a nullifier that was already used.

        The duplicate check, the append and the tally update all happen under
        the session lock, so the tally always matches the vote list.

        Args:
            vote: The vote to record

        Raises:
            DuplicateNullifierError: If the nullifier was already accepted.
                The session is left unchanged.
        """
        choice = VoteChoice(vote.choice)

        with self._lock:
            if vote.nullifier in self._nullifiers:
                raise DuplicateNullifierError(self._proposal_id, vote.nullifier)

            self._votes.append(vote)
            self._nullifiers.add(vote.nullifier)
            self._tally[choice.value] += 1

        logger.debug(f"Vote recorded: proposal={self._proposal_id}, choice={choice.value}")

    def get_results(self) -> SessionResults:
        """
        Snapshot the current tally.

        Returns:
            SessionResults with a copy of the tally and the vote count
        """
        with self._lock:
            return SessionResults(
                proposal_id=self._proposal_id,
                tally=dict(self._tally),
                total_votes=len(self._votes)
            )

    def __repr__(self) -> str:
        return f"VotingSession(proposal_id={self._proposal_id!r})"


class SessionRegistry:
    """Process-wide mapping of proposal ids to voting sessions.

    Created at service startup and closed at shutdown. Lookups never hold the
    registry lock while a session-level operation runs.
    """

    def __init__(self, allow_overwrite: bool = True):
        """
        Initialize an empty registry.

        Args:
            allow_overwrite: When True, creating a session for an existing
                proposal replaces it and discards its votes. When False the
                existing session is kept and SessionExistsError is raised.
        """
        self.allow_overwrite = allow_overwrite
        self._sessions: Dict[str, VotingSession] = {}
        self._lock = threading.Lock()

    def create_session(self, proposal_id: str) -> VotingSession:
        """
        Create a fresh voting session for a proposal.

        Args:
            proposal_id: Proposal identifier

        Returns:
            The newly created session

        Raises:
            SessionExistsError: If the proposal already has a session and
                overwrites are disabled
        """
        session = VotingSession(proposal_id)

        with self._lock:
            previous = self._sessions.get(proposal_id)
            if previous is not None and not self.allow_overwrite:
                raise SessionExistsError(proposal_id)
            self._sessions[proposal_id] = session

        if previous is not None:
            logger.warning(
                f"Session {proposal_id} re-created; "
                f"{previous.get_results().total_votes} prior votes discarded"
            )
        logger.info(f"Session created: proposal={proposal_id}")
        return session

    def get_session(self, proposal_id: str) -> VotingSession:
        """
        Look up the session for a proposal.

        Args:
            proposal_id: Proposal identifier

        Returns:
            The voting session

        Raises:
            SessionNotFoundError: If no session exists for the proposal
        """
        with self._lock:
            session = self._sessions.get(proposal_id)

        if session is None:
            raise SessionNotFoundError(proposal_id)
        return session

    def submit_vote(self, proposal_id: str, vote: Vote) -> None:
        """Record a vote on the proposal's session."""
        self.get_session(proposal_id).submit_vote(vote)

    def get_results(self, proposal_id: str) -> SessionResults:
        """Snapshot the tally of the proposal's session."""
        return self.get_session(proposal_id).get_results()

    def session_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __len__(self) -> int:
        return self.session_count()

    def __contains__(self, proposal_id: str) -> bool:
        with self._lock:
            return proposal_id in self._sessions

    def close(self) -> None:
        """Drop every session. Called once at service shutdown."""
        with self._lock:
            count = len(self._sessions)
            self._sessions.clear()
        logger.info(f"Session registry closed ({count} sessions dropped)")
