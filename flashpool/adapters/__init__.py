from .aave import AaveConnector
from .base import Connector, LendingConnector
from .basic import BasicConnector
from .compound import CompoundConnector
from .maker import MakerConnector

__all__ = [
    "Connector",
    "LendingConnector",
    "AaveConnector",
    "BasicConnector",
    "CompoundConnector",
    "MakerConnector",
]
