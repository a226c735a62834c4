from copy import deepcopy

import pytest

from flashpool.chain.world import build_world
from flashpool.config import Settings
from flashpool.services.utils import fn_selector
from flashpool.utils.constants import ZERO_ADDRESS


def make_settings(fee: int = 0, **overrides) -> Settings:
    base = dict(
        flash_fee=fee,
        operator=ZERO_ADDRESS,
        maker_connector=ZERO_ADDRESS,
        compound_connector=ZERO_ADDRESS,
        aave_connector=ZERO_ADDRESS,
        maker_vault_id=0,
    )
    base.update(overrides)
    return Settings(**base)


@pytest.fixture
def world():
    """Simulated environment with a zero flash fee."""
    return build_world(make_settings())


@pytest.fixture
def fee_world():
    """Simulated environment with a 0.05% flash fee (5e14, 1e18 == 100%)."""
    return build_world(make_settings(fee=5 * 10**14))


@pytest.fixture
def snapshot():
    """Everything an aborted step must leave untouched."""
    def _snap(w):
        return deepcopy(w.ledger.balances), list(w.ledger.events), deepcopy(w.pool.accounts)
    return _snap


@pytest.fixture
def tracer(monkeypatch):
    """Record, in order, the function names dispatched to a named connector."""
    def _trace(w, name):
        conn = w.ledger.contract_at(w.connectors[name])
        calls = []
        dispatch = conn.dispatch

        def recording(ctx, calldata):
            for frag in conn.ABI:
                if fn_selector(frag) == bytes(calldata[:4]):
                    calls.append(frag["name"])
            return dispatch(ctx, calldata)

        monkeypatch.setattr(conn, "dispatch", recording)
        return calls
    return _trace
