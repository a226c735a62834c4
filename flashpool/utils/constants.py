"""
Protocol-level constants shared by the engine and the simulated environment.
"""

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# pseudo-address used for the chain's native asset (not an ERC20)
NATIVE_TOKEN = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"

MAX_UINT256 = (1 << 256) - 1

# fixed-point scale for fees and prices (1e18 == 100% / 1.0)
WAD = 10**18

BPS = 10_000
