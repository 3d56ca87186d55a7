"""Pydantic models for request/response validation."""
from datetime import datetime
from typing import Literal, Union
from pydantic import BaseModel, Field, validator

from ..shared import Vote, VoteChoice, parse_vote_choice


class CreateSessionRequest(BaseModel):
    """Session creation request model."""

    proposal_id: str = Field(..., alias="proposalId", description="Proposal identifier")

    @validator("proposal_id")
    def validate_proposal_id(cls, v):
        """Validate proposal id is not empty."""
        if not v or not v.strip():
            raise ValueError("Proposal ID cannot be empty")
        return v

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "proposalId": "P1"
            }
        }


class CreateSessionResponse(BaseModel):
    """Session creation response model."""

    message: str = Field(default="Session created", description="Response message")
    proposal_id: str = Field(..., alias="proposalId", description="Proposal identifier")

    class Config:
        populate_by_name = True


class VoteData(BaseModel):
    """A single ballot as sent on the wire."""

    nullifier: str = Field(..., description="Voter nullifier (opaque token)")
    vote: VoteChoice = Field(..., description="Vote choice: 1/yes or 0/no")
    proof: str = Field(default="", description="Proof blob (not verified)")

    @validator("nullifier")
    def validate_nullifier(cls, v):
        """Validate nullifier is not empty."""
        if not v or not v.strip():
            raise ValueError("Nullifier cannot be empty")
        return v

    @validator("vote", pre=True)
    def validate_vote(cls, v):
        """Accept 1/0 as well as yes/no."""
        return parse_vote_choice(v)

    def to_vote(self) -> Vote:
        """Convert to the ledger's Vote record."""
        return Vote(nullifier=self.nullifier, choice=self.vote, proof=self.proof)


class VoteRequest(BaseModel):
    """Vote submission request model."""

    proposal_id: str = Field(..., alias="proposalId", description="Proposal identifier")
    vote: VoteData

    @validator("proposal_id")
    def validate_proposal_id(cls, v):
        """Validate proposal id is not empty."""
        if not v or not v.strip():
            raise ValueError("Proposal ID cannot be empty")
        return v

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "proposalId": "P1",
                "vote": {
                    "nullifier": "9f86d081884c7d659a2feaa0c55ad015a3bf4f1b2b0b822cd15d6c15b0f00a08",
                    "vote": 1,
                    "proof": "0x..."
                }
            }
        }


class VoteResponse(BaseModel):
    """Vote submission response model."""

    message: str = Field(default="Vote recorded", description="Response message")
    status: str = Field(default="success", description="Status of the submission")


class ResultsResponse(BaseModel):
    """Vote results response model."""

    proposal_id: str = Field(..., alias="proposalId", description="Proposal identifier")
    results: dict = Field(..., description="Tally of 'yes' and 'no' votes")
    total_votes: int = Field(..., alias="totalVotes", description="Total number of votes")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "proposalId": "P1",
                "results": {"yes": 1, "no": 1},
                "totalVotes": 2
            }
        }


class NullifierRequest(BaseModel):
    """Nullifier generation request model."""

    voter_id: str = Field(..., alias="voterId", description="Voter identifier")

    @validator("voter_id")
    def validate_voter_id(cls, v):
        """Validate voter id is not empty."""
        if not v:
            raise ValueError("Voter ID cannot be empty")
        return v

    class Config:
        populate_by_name = True


class NullifierResponse(BaseModel):
    """Nullifier generation response model."""

    nullifier: str = Field(..., description="SHA-256 nullifier (hex)")


class HealthResponse(BaseModel):
    """Health check response model."""

    status: Literal["healthy", "unhealthy"] = Field(..., description="Overall health status")
    sessions: int = Field(..., description="Number of live voting sessions")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Health check timestamp")


class ErrorResponse(BaseModel):
    """Error response model."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    details: Union[dict, list] = Field(default_factory=dict, description="Additional error details")

    class Config:
        json_schema_extra = {
            "example": {
                "error": "DuplicateNullifier",
                "message": "Nullifier already used",
                "details": {"proposalId": "P1"}
            }
        }
