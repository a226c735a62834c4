"""
Wires a complete simulated environment: wrapped native asset, a few tokens,
the primary pool with liquidity, two pool-based lending markets, one vault
manager, their connectors, a smart account and the orchestrator itself.
"""

from dataclasses import dataclass, replace
from typing import Dict, Optional, Sequence, Tuple

from .account import SmartAccount
from .ledger import Ledger, make_address
from .lending import LendingPool, VaultManager
from .solo import SoloPool
from .weth import WrappedNative
from ..adapters.aave import AaveConnector
from ..adapters.basic import BasicConnector
from ..adapters.compound import CompoundConnector
from ..adapters.maker import MakerConnector
from ..config import Settings, get_settings
from ..services import codec
from ..services.orchestrator import FlashLoanOrchestrator
from ..utils.constants import NATIVE_TOKEN, WAD

DEFAULT_LIQUIDITY = 1_000_000 * WAD
DEFAULT_NATIVE_PRICE = 2_000 * WAD
# small balances the orchestrator keeps to cover the repayment margin
DEFAULT_DUST = 10**6


@dataclass
class World:
    ledger: Ledger
    weth: WrappedNative
    pool: SoloPool
    tokens: Dict[str, str]
    compound: LendingPool
    aave: LendingPool
    maker: VaultManager
    connectors: Dict[str, str]
    orchestrator: FlashLoanOrchestrator
    agent: SmartAccount
    settings: Settings
    operator: str
    user: str

    def token(self, symbol: str) -> str:
        return self.tokens[symbol]

    def fund_native(self, holder: str, amount: int) -> None:
        self.ledger.mint(NATIVE_TOKEN, holder, amount)

    def fund_wrapped(self, holder: str, amount: int) -> None:
        # keep the wrapper fully backed
        self.ledger.mint(NATIVE_TOKEN, self.weth.address, amount)
        self.ledger.mint(self.weth.address, holder, amount)

    def fund(self, token: str, holder: str, amount: int) -> None:
        if token == self.weth.address:
            self.fund_wrapped(holder, amount)
        else:
            self.ledger.mint(token, holder, amount)

    def balance(self, token: str, holder: str) -> int:
        return self.ledger.balance_of(token, holder)

    def repay_op(self, token: str, amount: int, to: Optional[str] = None) -> Tuple[str, bytes]:
        """Sub-operation sending `amount` of `token` from the agent back to `to`."""
        to = to or self.orchestrator.address
        return self.connectors["basic"], BasicConnector.encode_call("withdraw", token, amount, to)

    def caller_data(self, ops: Sequence[Tuple[str, bytes]], agent: Optional[str] = None) -> bytes:
        targets = [t for t, _ in ops]
        payloads = [p for _, p in ops]
        return codec.encode_caller_data(agent or self.agent.address, targets, payloads)


def build_world(
    settings: Optional[Settings] = None,
    liquidity: int = DEFAULT_LIQUIDITY,
    native_price: int = DEFAULT_NATIVE_PRICE,
    dust: int = DEFAULT_DUST,
    symbols: Sequence[str] = ("DAI", "USDC"),
) -> World:
    ledger = Ledger()
    weth = WrappedNative(ledger, make_address("weth"))
    tokens: Dict[str, str] = {"WETH": weth.address}
    for sym in symbols:
        tokens[sym] = make_address(f"token:{sym}")

    # ---- primary pool ----
    pool = SoloPool(ledger, make_address("solo"))
    for sym in ["WETH", *symbols]:
        pool.add_market(tokens[sym])

    # ---- secondary protocols ----
    prices = {NATIVE_TOKEN: native_price, weth.address: native_price}
    prices.update({tokens[sym]: WAD for sym in symbols})
    compound = LendingPool(ledger, make_address("compound"), prices)
    aave = LendingPool(ledger, make_address("aave"), prices)
    maker = VaultManager(
        ledger, make_address("maker"),
        debt_token=tokens.get("DAI", tokens[symbols[0]]),
        collateral_price=native_price,
    )

    connectors: Dict[str, str] = {
        "maker": MakerConnector(ledger, make_address("connector:maker"), maker).address,
        "compound": CompoundConnector(ledger, make_address("connector:compound"), compound).address,
        "aave": AaveConnector(ledger, make_address("connector:aave"), aave).address,
        "basic": BasicConnector(ledger, make_address("connector:basic")).address,
    }

    operator = make_address("operator")
    base = settings or get_settings()
    settings = replace(
        base,
        operator=operator,
        maker_connector=connectors["maker"],
        compound_connector=connectors["compound"],
        aave_connector=connectors["aave"],
        maker_vault_id=0,
    )

    orchestrator = FlashLoanOrchestrator(ledger, pool, weth, make_address("flashpool"), settings)

    user = make_address("user")
    agent = SmartAccount(ledger, make_address("agent"), owner=user)

    world = World(
        ledger=ledger,
        weth=weth,
        pool=pool,
        tokens=tokens,
        compound=compound,
        aave=aave,
        maker=maker,
        connectors=connectors,
        orchestrator=orchestrator,
        agent=agent,
        settings=orchestrator.settings,
        operator=operator,
        user=user,
    )

    # ---- balances ----
    world.fund_wrapped(pool.address, liquidity)
    for sym in symbols:
        ledger.mint(tokens[sym], pool.address, liquidity)
        ledger.mint(tokens[sym], compound.address, liquidity)
        ledger.mint(tokens[sym], aave.address, liquidity)
    for token in tokens.values():
        world.fund(token, orchestrator.address, dust)

    return world
