"""
Application constants.

Centralized defaults for the charge processor.
"""

# ========================================================================
# RETRY POLICY
# ========================================================================

# Exponential backoff: base * 2^n -> 2min, 4min, 8min, 16min after attempts 1-4
CHARGE_RETRY_BASE_DELAY_SECONDS = 60
CHARGE_RETRY_MAX_ATTEMPTS = 5  # Attempt 5 failing is terminal

# ========================================================================
# CHAIN CONSTANTS
# ========================================================================

CHAIN_CALL_TIMEOUT_SECONDS = 150.0  # Whole delegated transfer, broadcast + receipt
CHAIN_RECEIPT_TIMEOUT_SECONDS = 120.0  # Waiting for the receipt only
CHAIN_RPC_TIMEOUT_SECONDS = 30.0  # Single RPC round-trip (nonce, gas, send)
DEFAULT_GAS_LIMIT = 120_000  # transferFrom fallback when estimation fails
GAS_LIMIT_BUFFER = 1.2  # +20% over estimate

# ========================================================================
# PROCESSOR CONSTANTS
# ========================================================================

JOB_CLAIM_TTL_SECONDS = 600  # Must exceed CHAIN_CALL_TIMEOUT_SECONDS
PROCESSOR_BATCH_LIMIT = 500
PROCESSOR_LOCK_NAME = "charge_processing"
PROCESSOR_LOCK_TIMEOUT_SECONDS = 900
PROCESSOR_LOCK_BLOCKING_TIMEOUT = 1.0

# Ledger signature recorded for failed attempts
FAILED_TX_SIGNATURE = "FAILED"
