# flashpool/domain/enums.py

from enum import IntEnum


class Route(IntEnum):
    """
    Which venue brokers the requested assets.

    DIRECT borrows the requested tokens straight from the primary pool; the
    other routes borrow the bridge asset and lever it through a secondary
    lending protocol.
    """
    DIRECT = 0
    MAKER = 1       # vault-based
    COMPOUND = 2    # pool-based
    AAVE = 3        # pool-based, rate-mode aware


class ActionType(IntEnum):
    """Operation tags understood by the primary pool's batch executor."""
    DEPOSIT = 0
    WITHDRAW = 1
    TRANSFER = 2
    BUY = 3
    SELL = 4
    TRADE = 5
    LIQUIDATE = 6
    VAPORIZE = 7
    CALL = 8


class AssetDenomination(IntEnum):
    WEI = 0   # raw token units
    PAR = 1   # normalized (principal) units


class AssetReference(IntEnum):
    DELTA = 0    # amount is relative to the current balance
    TARGET = 1   # amount is the final balance
