"""SQLite snapshot store: cursor and snapshot persistence."""

from __future__ import annotations

from token_request_projector.models.snapshots import AppSnapshot
from token_request_projector.projector.bootstrap import rehydrate
from token_request_projector.storage.sqlite import SQLiteSnapshotStore

from tests.factories import make_nft, make_request, make_snapshot


async def test_cursor_roundtrip(store):
    assert await store.get_cursor() is None
    await store.set_cursor(100)
    await store.set_cursor(250)
    assert await store.get_cursor() == 250


async def test_empty_store_has_no_snapshot(store):
    assert await store.load_snapshot() is None
    assert await store.snapshot_updated_at() is None


async def test_snapshot_survives_restart(tmp_path):
    db_path = str(tmp_path / "nested" / "state.db")
    snapshot = make_snapshot(
        requests=(make_request(1), make_request(2, request_is_nft=True, request_token_id=3)),
        nft_tokens=(make_nft(token_id=4),),
        total_sold_nft=2,
        last_sold_block=77,
    )

    first = SQLiteSnapshotStore(db_path)
    await first.initialize()
    await first.save_snapshot(snapshot.to_dict())
    await first.close()

    second = SQLiteSnapshotStore(db_path)
    await second.initialize()
    try:
        restored = rehydrate(await second.load_snapshot())
    finally:
        await second.close()

    assert restored.requests == snapshot.requests
    assert restored.nft_tokens == snapshot.nft_tokens
    assert restored.total_sold_nft == 2
    assert not restored.ready


async def test_corrupt_payload_is_ignored(store):
    await store.db.execute(
        "INSERT INTO snapshot (id, payload, updated_at) VALUES (1, ?, ?)",
        ("{not json", "2024-01-01T00:00:00+00:00"),
    )
    await store.db.commit()
    assert await store.load_snapshot() is None


async def test_save_overwrites_single_row(store):
    await store.save_snapshot(AppSnapshot(block_ticker=1).to_dict())
    await store.save_snapshot(AppSnapshot(block_ticker=2).to_dict())

    async with store.db.execute("SELECT COUNT(*) AS n FROM snapshot") as cur:
        row = await cur.fetchone()
    assert row["n"] == 1
    assert (await store.load_snapshot())["block_ticker"] == 2
