"""
Route resolution: turns a route id into the secondary-protocol call sequence
that brokers the requested assets, and back out again.

DIRECT needs nothing brokered. Leveraged routes post the native asset as
collateral, borrow each requested token, and on the way out repay each debt
in full before taking the collateral back. Calls go out one by one, in list
order, through `spell` against the connector bound to the route.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Type

from ..adapters.aave import AaveConnector
from ..adapters.base import LendingConnector
from ..adapters.compound import CompoundConnector
from ..adapters.maker import MakerConnector
from ..config import Settings
from ..domain.enums import Route
from ..utils.constants import MAX_UINT256, NATIVE_TOKEN
from .exceptions import InvalidTarget, RouteNotFound
from .utils import is_zero_address

_CONNECTORS: Dict[Route, Type[LendingConnector]] = {
    Route.MAKER: MakerConnector,
    Route.COMPOUND: CompoundConnector,
    Route.AAVE: AaveConnector,
}


def parse_route(route: Any) -> Route:
    # bool is an int subclass but never a route id
    if isinstance(route, bool) or not isinstance(route, int):
        raise RouteNotFound(route)
    try:
        return Route(route)
    except ValueError:
        raise RouteNotFound(route) from None


class RouteResolver:
    def __init__(self, ledger, context: str, settings: Settings, logger: Optional[logging.Logger] = None):
        """
        :param ledger: Execution environment holding the deployed connectors.
        :param context: Address whose funds every delegated call moves.
        :param settings: Route -> connector bindings and vault id.
        :param logger: Optional logger.
        """
        self.ledger = ledger
        self.context = context
        self.settings = settings
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    # ---------- delegated execution ----------

    def spell(self, target: str, data: bytes) -> Any:
        """Run `data` on the connector at `target`, inside our own context."""
        if is_zero_address(target) or not self.ledger.has_contract(target):
            raise InvalidTarget(target)
        connector = self.ledger.contract_at(target)
        if not hasattr(connector, "dispatch"):
            raise InvalidTarget(target)
        return connector.dispatch(self.context, data)

    # ---------- call shapes ----------

    def _collateral_ref(self, route: Route) -> Any:
        if route == Route.MAKER:
            return self.settings.maker_vault_id
        return NATIVE_TOKEN

    def _debt_ref(self, route: Route, token: str) -> Any:
        # a vault has exactly one debt asset, so the vault id stands in for the token
        if route == Route.MAKER:
            return self.settings.maker_vault_id
        return token

    def borrow_calls(self, route: Any, tokens: Sequence[str], amounts: Sequence[int]) -> List[bytes]:
        route = parse_route(route)
        if route == Route.DIRECT:
            return []
        conn = _CONNECTORS[route]
        calls = [conn.build_deposit(self._collateral_ref(route), MAX_UINT256)]
        for token, amount in zip(tokens, amounts):
            calls.append(conn.build_borrow(self._debt_ref(route, token), int(amount)))
        return calls

    def payback_calls(self, route: Any, tokens: Sequence[str]) -> List[bytes]:
        route = parse_route(route)
        if route == Route.DIRECT:
            return []
        conn = _CONNECTORS[route]
        calls = [conn.build_payback(self._debt_ref(route, token), MAX_UINT256) for token in tokens]
        calls.append(conn.build_withdraw(self._collateral_ref(route), MAX_UINT256))
        return calls

    # ---------- public API ----------

    def borrow(self, route: Any, tokens: Sequence[str], amounts: Sequence[int]) -> None:
        route = parse_route(route)
        calls = self.borrow_calls(route, tokens, amounts)
        if not calls:
            return
        target = self.settings.connector_for(route)
        for data in calls:
            self.spell(target, data)
        self._logger.debug("Borrowed %s token(s) via %s", len(tokens), route.name)

    def payback(self, route: Any, tokens: Sequence[str]) -> None:
        route = parse_route(route)
        calls = self.payback_calls(route, tokens)
        if not calls:
            return
        target = self.settings.connector_for(route)
        for data in calls:
            self.spell(target, data)
        self._logger.debug("Paid back %s token(s) via %s", len(tokens), route.name)
