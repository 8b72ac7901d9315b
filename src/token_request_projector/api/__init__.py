"""API components - data views, selection state and write intents."""

from token_request_projector.api.data_api import ProjectorDataAPI
from token_request_projector.api.intents import IntentDispatcher
from token_request_projector.api.selection import DepositError, SelectionState, TokenData

__all__ = ["DepositError", "IntentDispatcher", "ProjectorDataAPI", "SelectionState", "TokenData"]
