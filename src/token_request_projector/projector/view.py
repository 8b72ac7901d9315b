"""Read-side presentation of the snapshot."""

from __future__ import annotations

from dataclasses import replace

from token_request_projector.ledger.requests import RequestLedger
from token_request_projector.models.snapshots import AppSnapshot


def has_loaded_settings(snapshot: AppSnapshot) -> bool:
    """Initialization finished and the accepted deposit tokens are known."""
    return snapshot.ready and len(snapshot.accepted_tokens) > 0


def present(snapshot: AppSnapshot) -> AppSnapshot:
    """Snapshot as the UI renders it: requests newest first, ``ready`` recomputed."""
    ready = has_loaded_settings(snapshot)
    if not ready:
        return replace(snapshot, ready=False)
    return replace(snapshot, ready=True, requests=RequestLedger(snapshot.requests).by_date())


def is_loading(snapshot: AppSnapshot) -> bool:
    return not snapshot.ready or snapshot.is_syncing
