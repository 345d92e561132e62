"""
Standard type definitions for database models.

Provides consistent types for monetary fields across all models.
"""

from sqlalchemy import DECIMAL

# Token amount in human units (price per period, ledger amounts)
# Precision: 36 digits total, 18 after decimal point
# Suitable for: any ERC-20 token up to 18 decimals
MoneyType = DECIMAL(36, 18)

# Identifier columns shared across tables (UUID strings)
ID_LENGTH = 36

# Wallet addresses / token mints (0x-hex)
ADDRESS_LENGTH = 64

# Transaction signatures
SIGNATURE_LENGTH = 128
