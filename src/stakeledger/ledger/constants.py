# src/stakeledger/ledger/constants.py
from __future__ import annotations

"""Staking ledger constants.

Reward maths is integer-only:
  reward = amount * apy_bps * elapsed_s // (SECONDS_PER_YEAR * BPS_DENOMINATOR)
"""

SECONDS_PER_DAY: int = 86_400

# 365-day year, no leap handling
SECONDS_PER_YEAR: int = 365 * SECONDS_PER_DAY

# 1 basis point = 0.01%
BPS_DENOMINATOR: int = 10_000

# Account that holds deposited stake on behalf of users
CUSTODY_ACCOUNT_ID: str = "CUSTODY"

# Notification kinds emitted by the position ledger
KIND_DEPOSIT: str = "Deposit"
KIND_WITHDRAW: str = "Withdraw"
