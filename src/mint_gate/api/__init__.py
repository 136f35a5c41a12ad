"""HTTP API - FastAPI app and the views it serves."""

from mint_gate.api.app import create_app
from mint_gate.api.data_api import DataAggregator

__all__ = ["DataAggregator", "create_app"]
