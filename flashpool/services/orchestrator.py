"""
Flash-loan orchestrator: entry point, pool callback and post-step checks.

One invocation is one atomic step:

    initiate -> pool.operate -> call_function (re-entry) -> [borrow secondary]
             -> forward funds -> agent.execute -> [payback secondary]
             -> back in pool (repayment leg) -> fee invariant -> commit

Any failure anywhere unwinds the whole step; nothing is retried or partially
settled.
"""

import logging
from dataclasses import replace
from typing import List, Optional, Sequence

from web3 import Web3

from ..adapters.maker import MakerConnector
from ..config import Settings, get_settings
from ..domain.enums import Route
from ..domain.models import AccountRef, Action, FlashLoanRequest
from ..utils.constants import BPS, MAX_UINT256, NATIVE_TOKEN, WAD
from . import codec
from .actions import ActionBuilder
from .exceptions import AmountPaidLess, MarketNotFound, NotOperator, NotSameSender, SameFeeRejected
from .routes import RouteResolver, parse_route
from .utils import is_zero_address


def check_fee_invariant(
    token: str,
    amount: int,
    before: int,
    after: int,
    fee: int,
    dust_tolerance: int = 5,
    fee_tolerance_bps: int = 5,
    margin: int = 0,
) -> None:
    """
    fee == 0: the balance may drop by less than `dust_tolerance` raw units.
    fee  > 0: the balance must grow by fee-on-principal, give or take
              `fee_tolerance_bps`. `margin` is what the orchestrator itself
              paid into the pool out of this balance and is added back.
    """
    if fee == 0:
        if before - after >= dust_tolerance:
            raise AmountPaidLess(token, amount, before, after, fee)
        return

    fee_amt = amount * fee // WAD
    low = fee_amt * (BPS - fee_tolerance_bps) // BPS
    high = fee_amt * (BPS + fee_tolerance_bps) // BPS
    gained = after - before + margin
    if gained < low or gained > high:
        raise AmountPaidLess(token, amount, before, after, fee)


class FlashLoanOrchestrator:
    """
    Borrows from the primary pool for the duration of one atomic step and
    hands the funds to a destination agent.

    Deployed on the ledger at `address` so the pool can call back into
    `call_function`. Fee and route bindings live in `settings` and only
    change through the operator-gated admin methods.
    """

    def __init__(
        self,
        ledger,
        pool,
        weth,
        address: str,
        settings: Optional[Settings] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.ledger = ledger
        self.pool = pool
        self.weth = weth
        self.address = Web3.to_checksum_address(address)
        # own copy; vault id and fee are written to it below
        self.settings = replace(settings or get_settings())
        self._logger = logger or logging.getLogger(self.__class__.__name__)

        self.actions = ActionBuilder(self.address)
        self.routes = RouteResolver(ledger, self.address, self.settings)
        ledger.deploy(self)

        if self.settings.maker_vault_id == 0 and not is_zero_address(self.settings.maker_connector):
            self.settings.maker_vault_id = int(
                self.routes.spell(self.settings.maker_connector, MakerConnector.build_open())
            )
            self._logger.info("Opened vault %s for %s", self.settings.maker_vault_id, self.address)

    # ---------- reads ----------

    @property
    def fee(self) -> int:
        return self.settings.flash_fee

    @property
    def origin_tag(self) -> str:
        return self.settings.origin_tag or self.address

    def account_ref(self) -> AccountRef:
        return self.actions.account_ref()

    def pool_token(self, token: str) -> str:
        """Native asset is held by the pool in wrapped form."""
        token = Web3.to_checksum_address(token)
        return self.weth.address if token == NATIVE_TOKEN else token

    def get_market_id(self, token: str) -> int:
        token = Web3.to_checksum_address(token)
        for market_id in range(self.pool.get_num_markets()):
            if self.pool.get_market_token_address(market_id) == token:
                return market_id
        raise MarketNotFound(token)

    def account_balance(self, token: str) -> int:
        """Signed balance of our pool account in the token's market."""
        return self.pool.get_account_balance(self.account_ref(), self.get_market_id(self.pool_token(token)))

    def _balances(self, tokens: Sequence[str]) -> List[int]:
        return [self.ledger.balance_of(t, self.address) for t in tokens]

    # ---------- entry point ----------

    def initiate(self, tokens: Sequence[str], amounts: Sequence[int], route: int, data: bytes) -> None:
        """
        Borrow `amounts` of `tokens` for one atomic step.

        :param tokens: Requested assets (native asset allowed).
        :param amounts: Raw amounts, positionally matching `tokens`.
        :param route: Route id; DIRECT borrows the tokens from the pool,
            leveraged routes borrow the bridge asset and go through a
            secondary protocol.
        :param data: Caller data carrying destination agent and sub-operations
            (see `codec.encode_caller_data`).
        """
        route = parse_route(route)
        req = FlashLoanRequest(tokens=list(tokens), amounts=list(amounts), route=route)
        agent, sub_bytes = codec.decode_caller_data(data)
        plan_bytes = codec.encode(agent, req.route, req.tokens, req.amounts, sub_bytes)

        self._logger.info(
            "Flash loan requested: route=%s tokens=%s amounts=%s agent=%s",
            req.route.name, req.tokens, req.amounts, agent,
        )
        try:
            with self.ledger.atomic("flashloan"):
                if req.route == Route.DIRECT:
                    self._run_direct(req.tokens, req.amounts, plan_bytes)
                else:
                    self._run_leveraged(req.tokens, req.amounts, plan_bytes)
        except Exception as e:
            self._logger.warning("Flash loan aborted (%s): %s", type(e).__name__, e)
            raise
        self._logger.info("Flash loan committed: route=%s", req.route.name)

    def _run_direct(self, tokens: Sequence[str], amounts: Sequence[int], plan_bytes: bytes) -> None:
        pool_tokens = [self.pool_token(t) for t in tokens]
        market_ids = [self.get_market_id(t) for t in pool_tokens]
        for token in pool_tokens:
            self.ledger.approve(token, self.address, self.pool.address, MAX_UINT256)

        margin = self.settings.repayment_margin
        batch: List[Action] = [self.actions.withdraw(m, a) for m, a in zip(market_ids, amounts)]
        batch.append(self.actions.call(plan_bytes))
        batch.extend(self.actions.deposit(m, a + margin) for m, a in zip(market_ids, amounts))

        self._operate(batch, pool_tokens, amounts, [margin] * len(pool_tokens))

    def _run_leveraged(self, tokens: Sequence[str], amounts: Sequence[int], plan_bytes: bytes) -> None:
        bridge = self.weth.address
        market_id = self.get_market_id(bridge)
        liquidity = self.ledger.balance_of(bridge, self.pool.address)
        bridge_amount = liquidity * self.settings.bridge_ratio_bps // BPS
        self.ledger.approve(bridge, self.address, self.pool.address, MAX_UINT256)

        batch = [
            self.actions.withdraw(market_id, bridge_amount),
            self.actions.call(plan_bytes),
            self.actions.deposit(market_id, bridge_amount + self.settings.repayment_margin),
        ]
        self._logger.debug("Bridge borrow: %s of %s (pool liquidity %s)", bridge_amount, bridge, liquidity)

        # requested tokens arrive through the secondary protocol, so they are
        # what the invariant watches, not the bridge asset
        watched = [self.pool_token(t) for t in tokens]
        margins = [self.settings.repayment_margin if t == bridge else 0 for t in watched]
        self._operate(batch, watched, amounts, margins)

    def _operate(
        self,
        batch: Sequence[Action],
        watched: Sequence[str],
        amounts: Sequence[int],
        margins: Sequence[int],
    ) -> None:
        before = self._balances(watched)
        self.pool.operate(self.address, [self.account_ref()], batch)
        after = self._balances(watched)

        for token, amount, margin, b, a in zip(watched, amounts, margins, before, after):
            check_fee_invariant(
                token, amount, b, a, self.fee,
                dust_tolerance=self.settings.dust_tolerance,
                fee_tolerance_bps=self.settings.fee_tolerance_bps,
                margin=margin,
            )
            self._logger.debug("Fee invariant ok: token=%s before=%s after=%s", token, b, a)

    # ---------- callback ----------

    def call_function(self, sender: str, account: AccountRef, data: bytes) -> None:
        """
        Re-entered by the pool in the middle of the batch. Only batches we
        submitted ourselves are accepted.
        """
        if Web3.to_checksum_address(sender) != self.address:
            raise NotSameSender(sender, self.address)

        plan = codec.decode(data)

        unwrap = self._unwrap_amount(plan)
        if unwrap > 0:
            self.weth.withdraw(self.address, unwrap)

        self.routes.borrow(plan.route, plan.tokens, plan.amounts)

        # native asset and tokens are both booked on the ledger
        for token, amount in zip(plan.tokens, plan.amounts):
            self.ledger.transfer(token, self.address, plan.destination_agent, amount)

        agent = self.ledger.contract_at(plan.destination_agent)
        agent.execute(self.address, plan.targets, plan.payloads, self.origin_tag)

        self.routes.payback(plan.route, plan.tokens)

        if self._handles_native(plan):
            native = self.ledger.balance_of(NATIVE_TOKEN, self.address)
            if native > 0:
                self.weth.deposit(self.address, native)
        self._logger.debug("Callback done for %s (route=%s)", plan.destination_agent, plan.route.name)

    @staticmethod
    def _handles_native(plan) -> bool:
        return plan.route != Route.DIRECT or NATIVE_TOKEN in plan.tokens

    def _unwrap_amount(self, plan) -> int:
        """
        Leveraged routes post the whole bridge as native collateral. On the
        direct route only the native amounts requested are unwrapped, so the
        wrapped asset itself can still be lent out as a token.
        """
        if plan.route != Route.DIRECT:
            return self.ledger.balance_of(self.weth.address, self.address)
        return sum(a for t, a in zip(plan.tokens, plan.amounts) if t == NATIVE_TOKEN)

    # ---------- admin ----------

    def _only_operator(self, caller: str) -> None:
        if is_zero_address(self.settings.operator) or (
            Web3.to_checksum_address(caller) != Web3.to_checksum_address(self.settings.operator)
        ):
            raise NotOperator(caller)

    def update_fee(self, caller: str, fee: int) -> None:
        self._only_operator(caller)
        fee = int(fee)
        if fee == self.settings.flash_fee:
            raise SameFeeRejected(fee)
        if fee < 0 or fee > WAD:
            raise ValueError(f"fee out of range: {fee}")
        old = self.settings.flash_fee
        self.settings.flash_fee = fee
        self._logger.info("Flash fee updated: %s -> %s", old, fee)

    def spell(self, caller: str, target: str, data: bytes):
        """Operator escape hatch: delegated call from our own context."""
        self._only_operator(caller)
        return self.routes.spell(target, data)
