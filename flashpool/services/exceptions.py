class FlashLoanError(Exception):
    """Base class for every failure that aborts a flash-loan step."""


class MarketNotFound(FlashLoanError):
    """The primary pool has no market for the requested token."""
    def __init__(self, token: str):
        super().__init__(f"market-not-found: {token}")
        self.token = token


class RouteNotFound(FlashLoanError):
    """Route identifier outside the known set."""
    def __init__(self, route):
        super().__init__(f"route-does-not-exist: {route}")
        self.route = route


class NotSameSender(FlashLoanError):
    """
    Raised when the callback is entered by anyone other than the
    orchestrator itself. Nothing of the plan is executed.
    """
    def __init__(self, sender: str, expected: str):
        super().__init__(f"not-same-sender: {sender} != {expected}")
        self.sender = sender
        self.expected = expected


class AmountPaidLess(FlashLoanError):
    """
    Raised AFTER the pool batch returned, when the orchestrator's balance of
    a token does not satisfy the fee invariant. The whole step is unwound.
    """
    def __init__(self, token: str, amount: int, before: int, after: int, fee: int):
        super().__init__(
            f"amount-paid-less: token={token} amount={amount} "
            f"before={before} after={after} fee={fee}"
        )
        self.token = token
        self.amount = amount
        self.before = before
        self.after = after
        self.fee = fee


class SameFeeRejected(FlashLoanError):
    def __init__(self, fee: int):
        super().__init__(f"same-fee: {fee}")
        self.fee = fee


class InvalidTarget(FlashLoanError):
    """Delegated-execution target is unset or has nothing deployed."""
    def __init__(self, target: str):
        super().__init__(f"invalid-target: {target}")
        self.target = target


class NotOperator(FlashLoanError):
    def __init__(self, caller: str):
        super().__init__(f"not-operator: {caller}")
        self.caller = caller


class PlanDecodeError(FlashLoanError):
    """Opaque payload could not be decoded into a plan."""
