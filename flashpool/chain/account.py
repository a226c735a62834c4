import logging
from typing import Any, Dict, List, Optional, Sequence

from .ledger import Ledger, SimContract


class SmartAccount(SimContract):
    """
    User-controlled destination agent. `execute` runs each payload against
    the connector deployed at its target, with the account itself as the
    executing context. What the payloads do is entirely up to the user.
    """

    snapshot_fields = ("casts",)

    def __init__(self, ledger: Ledger, address: str, owner: str, logger: Optional[logging.Logger] = None):
        super().__init__(ledger, address)
        self.owner = owner
        self.casts: List[Dict[str, Any]] = []
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    def execute(self, sender: str, targets: Sequence[str], payloads: Sequence[bytes], origin: str) -> None:
        if len(targets) != len(payloads):
            raise ValueError("targets and payloads must have the same length")
        for target, payload in zip(targets, payloads):
            connector = self.ledger.contract_at(target)
            connector.dispatch(self.address, payload)
        self.casts.append({"sender": sender, "origin": origin, "count": len(targets)})
        self.emit("Cast", sender=sender, origin=origin, count=len(targets))
        self._logger.debug("Executed %s sub-operations for %s", len(targets), sender)
