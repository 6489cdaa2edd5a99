import pytest
from fastapi.testclient import TestClient

from screenflow.observability.metrics import RuntimeMetrics
from screenflow.server import Experiment, Project, ProjectStore, Variant, create_app
from screenflow.server.store import weighted_choice

HEADERS = {"X-API-Key": "test-key"}


def build_store():
    project = Project(
        id="proj_1",
        api_keys=["test-key"],
        organization_id="org_1",
        config_id="cfg_1",
        screens=[
            {
                "id": "welcome",
                "type": "noboard_screen",
                "elements": [
                    {"id": "title", "type": "text", "props": {"text": "Hello"}},
                    {"id": "hero", "type": "image", "props": {"url": "data:image/png;base64,AAAA"}},
                ],
            }
        ],
        experiments=[
            Experiment(
                id="exp_1",
                name="Headline",
                variants=[Variant("control", weight=1), Variant("bold", weight=1, screens=[{"id": "bold", "elements": []}])],
            ),
            Experiment(id="exp_paused", status="paused", variants=[Variant("only")]),
        ],
    )
    return ProjectStore([project], rng=lambda: 0.75)


@pytest.fixture
def store():
    return build_store()


@pytest.fixture
def client(store):
    return TestClient(create_app(store, metrics=RuntimeMetrics()))


def test_health_needs_no_key(client):
    assert client.get("/health").json() == {"status": "ok"}


@pytest.mark.parametrize("path,method", [("/get-config", "get"), ("/metrics", "get"), ("/track-events", "post")])
def test_routes_require_api_key(client, path, method):
    response = getattr(client, method)(path, headers={"X-API-Key": "wrong"})
    assert response.status_code == 401
    assert getattr(client, method)(path).status_code == 401


def test_get_config(client):
    body = client.get("/get-config", headers=HEADERS).json()
    assert body["config"]["screens"][0]["id"] == "welcome"
    assert body["config_id"] == "cfg_1"
    assert body["organization_id"] == "org_1"
    assert [e["id"] for e in body["experiments"]] == ["exp_1"]


def test_assign_variant_is_sticky(client):
    payload = {"experiment_id": "exp_1", "user_id": "u1"}
    first = client.post("/assign-variant", json=payload, headers=HEADERS).json()
    assert first["variant_id"] == "bold"
    assert first["variant_config"]["screens"] == [{"id": "bold", "elements": []}]
    assert first["cached"] is False
    second = client.post("/assign-variant", json=payload, headers=HEADERS).json()
    assert second["variant_id"] == "bold"
    assert second["cached"] is True


def test_assign_variant_errors(client):
    missing = client.post("/assign-variant", json={"experiment_id": "nope", "user_id": "u1"}, headers=HEADERS)
    assert missing.status_code == 404
    paused = client.post("/assign-variant", json={"experiment_id": "exp_paused", "user_id": "u1"}, headers=HEADERS)
    assert paused.status_code == 400
    invalid = client.post("/assign-variant", json={"experiment_id": "", "user_id": "u1"}, headers=HEADERS)
    assert invalid.status_code == 422


def test_track_events(client, store):
    event = {"event": "screen_viewed", "user_id": "u1", "session_id": "s1", "timestamp": 1700000000000, "properties": {"screen_id": "a"}}
    response = client.post("/track-events", json={"events": [event]}, headers=HEADERS)
    assert response.json() == {"success": True, "inserted": 1}
    stored = store.by_api_key("test-key").events
    assert stored[0]["project_id"] == "proj_1"
    assert stored[0]["properties"] == {"screen_id": "a"}
    assert client.post("/track-events", json={"events": []}, headers=HEADERS).status_code == 400
    assert client.post("/track-events", json={}, headers=HEADERS).status_code == 400


def test_apply_edit_document_updates_screen(client, store):
    text = '{"type":"edit","message":"Renamed","changes":[{"id":"title","props":{"text":"Hi"}},{"id":"hero","style":{"height":120}}]}'
    response = client.post("/screens/welcome/apply", json={"text": text}, headers=HEADERS)
    assert response.status_code == 200
    body = response.json()
    assert body["changed"] is True
    assert body["applied"] == 2
    assert body["message"] == "Renamed"
    assert body["response_type"] == "edit"
    screen = store.by_api_key("test-key").screen("welcome")
    assert screen["elements"][0]["props"]["text"] == "Hi"
    assert screen["elements"][1]["props"]["url"] == "data:image/png;base64,AAAA"


def test_apply_message_leaves_screen(client, store):
    response = client.post("/screens/welcome/apply", json={"text": '{"type":"message","content":"Which title?"}'}, headers=HEADERS)
    assert response.json()["changed"] is False
    assert store.by_api_key("test-key").screen("welcome")["elements"][0]["props"]["text"] == "Hello"


def test_apply_truncated_document(client):
    text = '{"type":"edit","changes":[{"id":"title","props":{"text":"Hi"}}\n__STOP:max_tokens__'
    body = client.post("/screens/welcome/apply", json={"text": text}, headers=HEADERS).json()
    assert body["applied"] == 1


def test_apply_rejects_bad_documents_without_touching_tree(client, store):
    bad = client.post("/screens/welcome/apply", json={"text": "not json"}, headers=HEADERS)
    assert bad.status_code == 422
    assert bad.json()["detail"]["code"] == "SF-2001"
    cut = client.post("/screens/welcome/apply", json={"text": '{"type":"edit","changes":[{"id":', "truncated": True}, headers=HEADERS)
    assert cut.status_code == 422
    assert cut.json()["detail"]["code"] == "SF-2002"
    assert store.by_api_key("test-key").screen("welcome")["elements"][0]["props"]["text"] == "Hello"


def test_successive_applies_after_children_replacement(client, store):
    edits = [
        '{"type":"edit","changes":[{"insertChild":{"id":"panel","type":"vstack","children":[{"id":"a","type":"text"}]}}]}',
        '{"type":"edit","changes":[{"id":"panel","children":[{"id":"title","type":"text"},{"id":"b","type":"text"}]}]}',
        '{"type":"edit","changes":[{"id":"title","props":{"text":"Again"}}]}',
    ]
    for text in edits:
        response = client.post("/screens/welcome/apply", json={"text": text}, headers=HEADERS)
        assert response.status_code == 200
    elements = store.by_api_key("test-key").screen("welcome")["elements"]
    assert [e["id"] for e in elements] == ["title", "hero", "panel"]
    assert [c["id"] for c in elements[2]["children"]] == ["b"]
    assert elements[0]["props"]["text"] == "Again"


def test_apply_unknown_screen(client):
    response = client.post("/screens/missing/apply", json={"text": "{}"}, headers=HEADERS)
    assert response.status_code == 404


def test_metrics_endpoint(store):
    metrics = RuntimeMetrics()
    client = TestClient(create_app(store, metrics=metrics))
    metrics.record_action("tap")
    body = client.get("/metrics", headers=HEADERS).json()
    assert body["actions"] == {"tap": 1}


def test_store_from_file(tmp_path):
    path = tmp_path / "store.json"
    path.write_text(
        '{"projects":[{"id":"p","api_keys":["k"],"screens":[{"id":"s","elements":[]}],'
        '"experiments":[{"id":"e","variants":[{"variant_id":"v","weight":1}]}]}]}',
        encoding="utf-8",
    )
    store = ProjectStore.from_file(path)
    project = store.by_api_key("k")
    assert project.id == "p"
    assert project.experiment("e").variants[0].variant_id == "v"
    assert store.by_api_key(None) is None


def test_unweighted_variants_share_traffic():
    variants = [Variant.from_dict({"variant_id": "a"}), Variant.from_dict({"variant_id": "b", "weight": None})]
    assert [v.weight for v in variants] == [1.0, 1.0]
    assert weighted_choice(variants, rng=lambda: 0.25).variant_id == "a"
    assert weighted_choice(variants, rng=lambda: 0.75).variant_id == "b"
    assert Variant.from_dict({"variant_id": "off", "weight": 0}).weight == 0.0
