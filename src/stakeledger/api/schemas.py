from __future__ import annotations

"""Pydantic request schemas for the public API.

These exist only for HTTP input validation; the ledger re-validates
everything it is given.
"""

from pydantic import BaseModel, Field


class CreatePoolRequest(BaseModel):
    caller: str = Field(..., min_length=1, description="Caller id; must be a ledger admin")
    stake_token: str = Field(..., min_length=1, description="Token id users stake")
    reward_token: str = Field(..., min_length=1, description="Token id rewards are denominated in")
    apy_bps: int = Field(..., ge=0, description="Annual yield in basis points (1000 = 10%)")
    lock_days: int = Field(..., ge=0, description="Lock period applied on every deposit")


class StakeRequest(BaseModel):
    caller: str = Field(..., min_length=1, description="Caller id (the staking user)")
    # Positivity is a ledger rule (invalid_amount), not a schema rule.
    amount: int = Field(..., description="Amount in token minor units")


class MintRequest(BaseModel):
    token: str = Field(..., min_length=1)
    account: str = Field(..., min_length=1)
    amount: int = Field(..., gt=0)
