import json

import httpx
import pytest

from business_reports.client import ApiClient
from business_reports.config import get_overrides_path
from business_reports.models import CanonicalRecord, ResourceKind
from business_reports.normalizers import normalize
from business_reports.overrides import (
    LocalStatusUpdater,
    RemoteStatusUpdater,
    StatusOverrideStore,
    apply_overrides,
)


def test_apply_overrides_replaces_status_without_mutating_input():
    records = [
        CanonicalRecord(kind=ResourceKind.INVOICES, id="5", status="draft"),
        CanonicalRecord(kind=ResourceKind.INVOICES, id="6", status="sent"),
        CanonicalRecord(kind=ResourceKind.INVOICES, status="draft"),
    ]
    out = apply_overrides(records, {"5": "paid"})
    assert [r.status for r in out] == ["paid", "sent", "draft"]
    assert records[0].status == "draft"
    assert out[1] is records[1]


def test_override_survives_a_second_fetch():
    store = StatusOverrideStore()
    store.record_override("5", "paid")

    payload = [{"_id": "5", "status": "draft", "total": 10}]
    first = store.apply(normalize(payload, ResourceKind.INVOICES))
    second = StatusOverrideStore().apply(normalize(payload, ResourceKind.INVOICES))
    assert first[0].status == "paid"
    assert second[0].status == "paid"
    assert payload[0]["status"] == "draft"


def test_store_defaults_to_state_dir_and_upserts():
    store = StatusOverrideStore()
    assert store.path == get_overrides_path()
    assert store.load() == {}

    store.record_override("1", "sent")
    store.record_override("2", "paid")
    store.record_override("1", "overdue")
    assert store.load() == {"1": "overdue", "2": "paid"}

    on_disk = json.loads(store.path.read_text(encoding="utf-8"))
    assert on_disk["schema_version"] == 1
    assert not store.path.with_suffix(".json.tmp").exists()


def test_store_rejects_empty_values(tmp_path):
    store = StatusOverrideStore(tmp_path / "o.json")
    with pytest.raises(ValueError):
        store.record_override("  ", "paid")
    with pytest.raises(ValueError):
        store.record_override("1", "")


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        json.dumps({"schema_version": 1, "overrides": [{"id": 5, "status": "paid"}]}),
        json.dumps({"schema_version": 99, "overrides": []}),
        json.dumps(["unexpected"]),
    ],
)
def test_corrupt_file_is_treated_as_empty(tmp_path, content):
    path = tmp_path / "client_invoices.json"
    path.write_text(content, encoding="utf-8")
    store = StatusOverrideStore(path)
    assert store.load() == {}
    store.record_override("5", "paid")
    assert store.load() == {"5": "paid"}


def test_clear_removes_all_overrides():
    store = StatusOverrideStore()
    store.record_override("5", "paid")
    store.clear()
    assert store.load() == {}
    store.clear()


def test_local_updater_never_calls_api():
    store = StatusOverrideStore()
    LocalStatusUpdater(store).update_status("9", "cancelled")
    assert store.load() == {"9": "cancelled"}


def test_remote_updater_patches_status_endpoint():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    client = ApiClient("http://api.test/api", token="t", transport=httpx.MockTransport(handler))
    RemoteStatusUpdater(client, ResourceKind.INVOICES).update_status("42", "paid")

    assert len(seen) == 1
    assert seen[0].method == "PATCH"
    assert seen[0].url.path == "/api/invoices/42/status"
    assert json.loads(seen[0].content) == {"status": "paid"}
    assert StatusOverrideStore().load() == {}
