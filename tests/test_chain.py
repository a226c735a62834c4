import pytest

from flashpool.adapters.compound import CompoundConnector
from flashpool.chain.exceptions import (
    InsufficientAllowance,
    InsufficientBalance,
    LendingError,
    PoolError,
    UnknownSelector,
)
from flashpool.chain.ledger import Ledger, make_address
from flashpool.chain.lending import LendingPool, VaultManager
from flashpool.domain.enums import ActionType, AssetReference
from flashpool.domain.models import AccountRef, Action, AssetAmount
from flashpool.services.actions import ActionBuilder
from flashpool.utils.constants import MAX_UINT256, NATIVE_TOKEN, WAD

TOKEN = make_address("token:T")
ALICE = make_address("alice")
BOB = make_address("bob")


# ---------- ledger ----------

def test_transfer_needs_balance():
    ledger = Ledger()
    ledger.mint(TOKEN, ALICE, 10)
    with pytest.raises(InsufficientBalance) as exc:
        ledger.transfer(TOKEN, ALICE, BOB, 11)
    assert exc.value.available == 10
    ledger.transfer(TOKEN, ALICE.lower(), BOB, 10)
    assert ledger.balance_of(TOKEN, BOB) == 10


def test_transfer_from_spends_allowance():
    ledger = Ledger()
    ledger.mint(TOKEN, ALICE, 10)
    with pytest.raises(InsufficientAllowance):
        ledger.transfer_from(TOKEN, BOB, ALICE, BOB, 1)

    ledger.approve(TOKEN, ALICE, BOB, 4)
    ledger.transfer_from(TOKEN, BOB, ALICE, BOB, 3)
    assert ledger.allowance(TOKEN, ALICE, BOB) == 1
    assert ledger.balance_of(TOKEN, BOB) == 3


def test_atomic_restores_balances_and_contract_state():
    ledger = Ledger()
    market = LendingPool(ledger, make_address("market"), {TOKEN: WAD})
    ledger.mint(TOKEN, ALICE, 10)

    with pytest.raises(RuntimeError):
        with ledger.atomic():
            market.supply(ALICE, TOKEN, 10)
            assert market.collateral_of(ALICE, TOKEN) == 10
            raise RuntimeError("boom")

    assert ledger.balance_of(TOKEN, ALICE) == 10
    assert market.collateral_of(ALICE, TOKEN) == 0
    assert ledger.events == []


def test_atomic_keeps_successful_block():
    ledger = Ledger()
    ledger.mint(TOKEN, ALICE, 10)
    with ledger.atomic():
        ledger.transfer(TOKEN, ALICE, BOB, 4)
    assert ledger.balance_of(TOKEN, BOB) == 4


# ---------- primary pool ----------

def test_unbalanced_batch_is_undone(world):
    dai = world.token("DAI")
    pool_before = world.balance(dai, world.pool.address)
    builder = ActionBuilder(ALICE)

    with pytest.raises(PoolError):
        world.pool.operate(ALICE, [builder.account_ref()], [builder.withdraw(1, 10)])

    assert world.balance(dai, world.pool.address) == pool_before
    assert world.balance(dai, ALICE) == 0
    assert world.pool.get_account_balance(builder.account_ref(), 1) == 0


def test_pool_rejects_foreign_accounts(world):
    builder = ActionBuilder(ALICE)
    with pytest.raises(PoolError):
        world.pool.operate(BOB, [builder.account_ref()], [])


def test_pool_rejects_unsupported_actions(world):
    trade = Action(
        action_type=ActionType.TRADE,
        amount=AssetAmount(sign=True, value=1),
        other_address=ALICE,
    )
    with pytest.raises(PoolError):
        world.pool.operate(ALICE, [AccountRef(owner=ALICE)], [trade])


def test_deposit_needs_allowance(world):
    dai = world.token("DAI")
    world.fund(dai, ALICE, 5)
    builder = ActionBuilder(ALICE)

    with pytest.raises(InsufficientAllowance):
        world.pool.operate(ALICE, [builder.account_ref()], [builder.deposit(1, 5)])

    world.ledger.approve(dai, ALICE, world.pool.address, 5)
    world.pool.operate(ALICE, [builder.account_ref()], [builder.deposit(1, 5)])
    assert world.pool.get_account_balance(builder.account_ref(), 1) == 5


def test_target_reference_sets_final_balance(world):
    dai = world.token("DAI")
    world.fund(dai, ALICE, 9)
    world.ledger.approve(dai, ALICE, world.pool.address, MAX_UINT256)
    ref = AccountRef(owner=ALICE)
    to_nine = Action(
        action_type=ActionType.DEPOSIT,
        amount=AssetAmount(sign=True, reference=AssetReference.TARGET, value=9),
        primary_market_id=1,
        other_address=ALICE,
    )

    world.pool.operate(ALICE, [ref], [to_nine])
    world.pool.operate(ALICE, [ref], [to_nine])

    assert world.pool.get_account_balance(ref, 1) == 9
    assert world.balance(dai, ALICE) == 0


def test_market_lookup(world):
    assert world.pool.get_num_markets() == 3
    assert world.pool.get_market_token_address(0) == world.weth.address
    with pytest.raises(PoolError):
        world.pool.get_market_token_address(3)


# ---------- wrapped native ----------

def test_wrap_and_unwrap(world):
    world.fund_native(ALICE, 5)
    world.weth.deposit(ALICE, 5)
    assert world.weth.balance_of(ALICE) == 5
    assert world.balance(NATIVE_TOKEN, ALICE) == 0

    world.weth.withdraw(ALICE, 2)
    assert world.weth.balance_of(ALICE) == 3
    assert world.balance(NATIVE_TOKEN, ALICE) == 2


# ---------- secondary protocols ----------

def test_pool_market_health():
    ledger = Ledger()
    market = LendingPool(ledger, make_address("market"), {NATIVE_TOKEN: 2 * WAD, TOKEN: WAD})
    ledger.mint(NATIVE_TOKEN, ALICE, 10)
    ledger.mint(TOKEN, market.address, 100)
    market.supply(ALICE, NATIVE_TOKEN, 10)

    # 10 native at 2.0 with a 75% factor allows 15 units of debt
    market.borrow(ALICE, TOKEN, 15)
    with pytest.raises(LendingError):
        market.borrow(ALICE, TOKEN, 1)
    with pytest.raises(LendingError):
        market.redeem(ALICE, NATIVE_TOKEN, 1)
    with pytest.raises(LendingError):
        market.repay(ALICE, TOKEN, 16)


def test_vault_manager_ownership_and_safety():
    ledger = Ledger()
    dai = make_address("token:DAI")
    vaults = VaultManager(ledger, make_address("maker"), debt_token=dai, collateral_price=3 * WAD)
    ledger.mint(NATIVE_TOKEN, ALICE, 10)
    vid = vaults.open(ALICE)

    vaults.lock(ALICE, vid, 10)
    vaults.draw(ALICE, vid, 20)
    assert ledger.balance_of(dai, ALICE) == 20
    with pytest.raises(LendingError):
        vaults.draw(ALICE, vid, 1)
    with pytest.raises(LendingError):
        vaults.free(BOB, vid, 1)

    vaults.wipe(ALICE, vid, 20)
    vaults.free(ALICE, vid, 10)
    assert vaults.vault(vid) == {"owner": ALICE, "collateral": 0, "debt": 0}
    assert ledger.balance_of(dai, ALICE) == 0


def test_connector_max_means_everything(world):
    dai = world.token("DAI")
    conn = world.ledger.contract_at(world.connectors["compound"])
    world.fund_native(ALICE, 4 * WAD)

    conn.dispatch(ALICE, CompoundConnector.build_deposit(NATIVE_TOKEN, MAX_UINT256))
    conn.dispatch(ALICE, CompoundConnector.build_borrow(dai, 1000))
    world.fund(dai, ALICE, 1)
    conn.dispatch(ALICE, CompoundConnector.build_payback(dai, MAX_UINT256))
    conn.dispatch(ALICE, CompoundConnector.build_withdraw(NATIVE_TOKEN, MAX_UINT256))

    assert world.balance(NATIVE_TOKEN, ALICE) == 4 * WAD
    assert world.balance(dai, ALICE) == 1
    assert world.compound.debt_of(ALICE, dai) == 0


def test_connector_rejects_unknown_selector(world):
    conn = world.ledger.contract_at(world.connectors["compound"])
    with pytest.raises(UnknownSelector):
        conn.dispatch(ALICE, b"\x00\x00\x00\x00")
    with pytest.raises(UnknownSelector):
        CompoundConnector.encode_call("open")
