class ChainError(Exception):
    """Base class for failures raised by the simulated environment."""


class InsufficientBalance(ChainError):
    def __init__(self, token: str, holder: str, needed: int, available: int):
        super().__init__(
            f"insufficient balance: token={token} holder={holder} "
            f"needed={needed} available={available}"
        )
        self.token = token
        self.holder = holder
        self.needed = needed
        self.available = available


class InsufficientAllowance(ChainError):
    def __init__(self, token: str, owner: str, spender: str, needed: int, allowed: int):
        super().__init__(
            f"insufficient allowance: token={token} owner={owner} spender={spender} "
            f"needed={needed} allowed={allowed}"
        )
        self.token = token
        self.owner = owner
        self.spender = spender
        self.needed = needed
        self.allowed = allowed


class UnknownContract(ChainError):
    """No contract deployed at the given address."""


class UnknownSelector(ChainError):
    """Calldata selector does not match any function of the contract."""


class PoolError(ChainError):
    """Primary pool rejected a batch."""


class LendingError(ChainError):
    """Secondary lending protocol rejected an operation."""
