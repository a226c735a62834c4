"""
Run one flash loan against a freshly built simulated environment.

    python -m flashpool.main --route COMPOUND --token DAI --amount 50 --fee 500000000000000

The destination agent gets enough extra balance to cover the fee and simply
sends principal + fee back to the orchestrator.
"""

import argparse
import json
import logging
import sys
from dataclasses import replace
from decimal import Decimal

from .chain.exceptions import ChainError
from .chain.world import build_world
from .config import get_settings
from .domain.enums import Route
from .services.exceptions import FlashLoanError
from .services.utils import to_json_safe
from .utils.constants import WAD
from .utils.log import setup_logging


def _parse_args(argv=None):
    p = argparse.ArgumentParser(prog="flashpool-sim", description=__doc__.splitlines()[1])
    p.add_argument("--route", default="DIRECT", choices=[r.name for r in Route])
    p.add_argument("--token", default="DAI", help="token symbol (WETH, DAI, USDC)")
    p.add_argument("--amount", default="100", help="human units, 18 decimals")
    p.add_argument("--fee", type=int, default=None, help="flash fee, 1e18 == 100%%")
    p.add_argument("--log-level", default=None)
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = _parse_args(argv)
    setup_logging(args.log_level)
    log = logging.getLogger("flashpool.sim")

    settings = get_settings()
    if args.fee is not None:
        settings = replace(settings, flash_fee=args.fee)

    world = build_world(settings)
    token = world.token(args.token.upper())
    amount = int(Decimal(args.amount) * WAD)
    fee_amt = amount * world.settings.flash_fee // WAD

    # the agent brings the fee from its own pocket
    world.fund(token, world.agent.address, fee_amt)
    data = world.caller_data([world.repay_op(token, amount + fee_amt)])

    orch = world.orchestrator
    before = world.balance(token, orch.address)
    try:
        orch.initiate([token], [amount], Route[args.route], data)
    except (FlashLoanError, ChainError) as e:
        log.error("Flash loan failed: %s", e)
        return 1

    summary = {
        "route": Route[args.route],
        "token": token,
        "amount": amount,
        "fee": world.settings.flash_fee,
        "orchestrator_balance": {"before": before, "after": world.balance(token, orch.address)},
        "events": world.ledger.events,
    }
    json.dump(to_json_safe(summary), sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
