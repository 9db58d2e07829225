import pytest
from unittest.mock import MagicMock

from marketplace.listings import repository
from marketplace.listings import service as listings_service
from marketplace.listings.service import DAY_MS, delete_sold_products

NOW_MS = 1_700_000_000_000


@pytest.fixture
def stale(monkeypatch):
    """Remplace le repository: annonces périmées simulées + lots supprimés enregistrés."""
    state = {"rows": [], "batches": [], "cutoff": None}

    def _find(db, cutoff_ms):
        state["cutoff"] = cutoff_ms
        return state["rows"]

    def _delete(db, ids):
        state["batches"].append(list(ids))
        return len(ids)

    monkeypatch.setattr(listings_service.repository, "find_stale_sold_listings", _find)
    monkeypatch.setattr(listings_service.repository, "delete_listings", _delete)
    return state


def _rows(n):
    return [{"id": f"p{i}", "name": f"Item {i}", "sold_timestamp": NOW_MS - 100 * DAY_MS} for i in range(n)]


def test_reaper_deletes_1200_listings_in_three_batches(stale):
    stale["rows"] = _rows(1200)

    result = delete_sold_products(MagicMock(), now_ms=NOW_MS)

    assert [len(b) for b in stale["batches"]] == [500, 500, 200]
    assert result.deleted_count == 1200
    assert result.batches == 3
    assert result.to_response() == {
        "success": True,
        "message": "Deleted 1200 sold products older than 90 days",
        "deletedCount": 1200,
    }


def test_reaper_with_no_match_commits_no_batch(stale):
    result = delete_sold_products(MagicMock(), now_ms=NOW_MS)
    assert stale["batches"] == []
    assert result.to_response() == {"success": True, "message": "No products to delete", "deletedCount": 0}


def test_reaper_cutoff_is_ninety_days(stale):
    delete_sold_products(MagicMock(), now_ms=NOW_MS)
    assert stale["cutoff"] == NOW_MS - 90 * DAY_MS


def test_reaper_exact_batch_multiple(stale):
    stale["rows"] = _rows(1000)
    result = delete_sold_products(MagicMock(), now_ms=NOW_MS)
    assert [len(b) for b in stale["batches"]] == [500, 500]
    assert result.deleted_count == 1000


def test_reaper_stops_on_batch_failure(stale, monkeypatch):
    stale["rows"] = _rows(1200)
    calls = []

    def _delete(db, ids):
        calls.append(len(ids))
        if len(calls) == 2:
            raise RuntimeError("network")
        return len(ids)

    monkeypatch.setattr(listings_service.repository, "delete_listings", _delete)
    with pytest.raises(RuntimeError):
        delete_sold_products(MagicMock(), now_ms=NOW_MS)
    assert calls == [500, 500]


@pytest.mark.parametrize("size", [0, 501])
def test_reaper_rejects_batch_size_out_of_bounds(stale, size):
    with pytest.raises(ValueError):
        delete_sold_products(MagicMock(), now_ms=NOW_MS, batch_size=size)


def test_repository_pages_through_results():
    db = MagicMock()
    query = db.table.return_value.select.return_value.eq.return_value.lte.return_value.order.return_value
    pages = [[{"id": i} for i in range(3)], [{"id": 3}]]
    query.range.side_effect = lambda start, end: MagicMock(execute=MagicMock(return_value=MagicMock(data=pages.pop(0))))

    rows = repository.find_stale_sold_listings(db, cutoff_ms=123, page_size=3)

    assert [r["id"] for r in rows] == [0, 1, 2, 3]
    db.table.return_value.select.return_value.eq.assert_called_with("sold", True)
    db.table.return_value.select.return_value.eq.return_value.lte.assert_called_with("sold_timestamp", 123)
    assert [c.args for c in query.range.call_args_list] == [(0, 2), (3, 5)]


def test_repository_delete_batch_by_ids():
    db = MagicMock()
    assert repository.delete_listings(db, ["a", "b"]) == 2
    db.table.return_value.delete.return_value.in_.assert_called_once_with("id", ["a", "b"])
    assert repository.delete_listings(db, []) == 0
