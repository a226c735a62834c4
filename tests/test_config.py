from flashpool.chain.ledger import make_address
from flashpool.config import get_settings
from flashpool.domain.enums import Route
from flashpool.utils.constants import ZERO_ADDRESS

ENV_VARS = [
    "FLASH_FEE", "FLASH_OPERATOR", "MAKER_CONNECTOR", "COMPOUND_CONNECTOR", "AAVE_CONNECTOR",
    "MAKER_VAULT_ID", "REPAYMENT_MARGIN", "DUST_TOLERANCE", "FEE_TOLERANCE_BPS",
    "BRIDGE_RATIO_BPS", "ORIGIN_TAG", "LOG_LEVEL",
]


def test_defaults(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    s = get_settings()
    assert s.flash_fee == 0
    assert s.operator == ZERO_ADDRESS
    assert s.repayment_margin == 2
    assert s.dust_tolerance == 5
    assert s.fee_tolerance_bps == 5
    assert s.bridge_ratio_bps == 9990
    assert s.origin_tag is None
    assert s.connector_for(Route.COMPOUND) == ZERO_ADDRESS


def test_env_overrides(monkeypatch):
    aave = make_address("connector:aave")
    monkeypatch.setenv("FLASH_FEE", "500000000000000")
    monkeypatch.setenv("AAVE_CONNECTOR", aave)
    monkeypatch.setenv("MAKER_VAULT_ID", "7")
    monkeypatch.setenv("ORIGIN_TAG", "")

    s = get_settings()
    assert s.flash_fee == 5 * 10**14
    assert s.maker_vault_id == 7
    assert s.connector_for(Route.AAVE) == aave
    assert s.connector_for(Route.DIRECT) == ZERO_ADDRESS
    assert s.origin_tag is None
