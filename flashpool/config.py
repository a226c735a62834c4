# flashpool/config.py
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .domain.enums import Route
from .utils.constants import ZERO_ADDRESS

load_dotenv()


@dataclass
class Settings:
    # --- Fee ---
    flash_fee: int                 # 1e18 == 100%
    operator: str                  # only identity allowed to touch admin ops

    # --- Route -> connector bindings ---
    maker_connector: str
    compound_connector: str
    aave_connector: str
    maker_vault_id: int            # 0 -> opened by the orchestrator on construction

    # --- Invariant tuning ---
    repayment_margin: int = 2      # raw units added to every deposit leg
    dust_tolerance: int = 5        # allowed raw-unit loss when fee == 0
    fee_tolerance_bps: int = 5     # +/- band around fee-on-principal (0.05%)
    bridge_ratio_bps: int = 9990   # share of pool liquidity borrowed as bridge

    origin_tag: Optional[str] = None   # None -> orchestrator's own address

    # generic
    log_level: str = "INFO"

    def connector_for(self, route: Route) -> str:
        """Adapter address bound to a leveraged route (zero when unset)."""
        if route == Route.MAKER:
            return self.maker_connector
        if route == Route.COMPOUND:
            return self.compound_connector
        if route == Route.AAVE:
            return self.aave_connector
        return ZERO_ADDRESS


def get_settings() -> Settings:
    return Settings(
        flash_fee=int(os.environ.get("FLASH_FEE", "0")),
        operator=os.environ.get("FLASH_OPERATOR", ZERO_ADDRESS),

        maker_connector=os.environ.get("MAKER_CONNECTOR", ZERO_ADDRESS),
        compound_connector=os.environ.get("COMPOUND_CONNECTOR", ZERO_ADDRESS),
        aave_connector=os.environ.get("AAVE_CONNECTOR", ZERO_ADDRESS),
        maker_vault_id=int(os.environ.get("MAKER_VAULT_ID", "0")),

        repayment_margin=int(os.environ.get("REPAYMENT_MARGIN", "2")),
        dust_tolerance=int(os.environ.get("DUST_TOLERANCE", "5")),
        fee_tolerance_bps=int(os.environ.get("FEE_TOLERANCE_BPS", "5")),
        bridge_ratio_bps=int(os.environ.get("BRIDGE_RATIO_BPS", "9990")),

        origin_tag=os.environ.get("ORIGIN_TAG") or None,
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
    )
