"""
flashpool: flash-loan orchestration over a batch-executing primary pool,
with optional leverage through secondary lending protocols.
"""

__version__ = "0.1.0"
