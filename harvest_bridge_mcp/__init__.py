"""
Harvest Application Bridge MCP Server

Translates structure/query/field bridge requests into Harvest API calls and
normalizes the responses into uniform string records.
"""

__version__ = "1.0.0"

from .core import ADAPTER_NAME, RecordList, Structure
from .engine import HarvestEngine
from .factory import create_harvest_server
from .logging_config import configure_logging

__all__ = [
    "ADAPTER_NAME",
    "HarvestEngine",
    "RecordList",
    "Structure",
    "configure_logging",
    "create_harvest_server",
]
