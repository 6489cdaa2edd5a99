from screenflow.flows.variables import VariableStore
from screenflow.runtime.actions import ActionDispatcher
from screenflow.tree import ElementNode


def build(store=None, **kwargs):
    calls = {"navigate": [], "dismiss": 0, "links": [], "tracked": []}

    def navigate(destination):
        calls["navigate"].append(destination)

    def dismiss():
        calls["dismiss"] += 1

    dispatcher = ActionDispatcher(
        store if store is not None else VariableStore(),
        navigate=navigate,
        dismiss=dismiss,
        open_url=calls["links"].append,
        track=lambda event, props: calls["tracked"].append((event, props)),
        screen_id="s1",
        **kwargs,
    )
    return dispatcher, calls


def node(data):
    return ElementNode.from_dict({"type": "text", **data})


def test_actions_run_in_order_with_set_before_navigate():
    store = VariableStore()
    dispatcher, calls = build(store)
    seen = []
    dispatcher._navigate = lambda destination: seen.append((destination, store.get("plan")))
    element = node(
        {
            "id": "cta",
            "action": {"type": "set_variable", "variable": "plan", "value": "pro"},
            "actions": [{"type": "navigate", "destination": "next"}],
        }
    )
    dispatcher.handle(element)
    assert seen == [("next", "pro")]
    assert [props["action_type"] for _, props in calls["tracked"]] == ["set_variable", "navigate"]


def test_element_action_record_shape():
    dispatcher, calls = build()
    dispatcher.handle(node({"id": "go", "action": {"type": "navigate", "destination": {"if": {}, "then": "x"}}}))
    event, props = calls["tracked"][0]
    assert event == "element_action"
    assert props == {"screen_id": "s1", "element_id": "go", "action_type": "navigate", "destination": "conditional"}


def test_navigate_receives_raw_destination():
    dispatcher, calls = build()
    destination = {"routes": [], "default": "end"}
    dispatcher.handle(node({"id": "go", "action": {"type": "navigate", "destination": destination}}))
    assert calls["navigate"] == [destination]


def test_toggle_updates_selection():
    dispatcher, _ = build()
    dispatcher.handle(node({"id": "a", "action": {"type": "toggle", "group": "g"}}))
    dispatcher.handle(node({"id": "b", "action": {"type": "toggle", "group": "g"}}))
    assert dispatcher.selection.toggled == frozenset({"b"})


def test_link_and_dismiss():
    dispatcher, calls = build()
    dispatcher.handle(node({"id": "l", "action": {"type": "link", "destination": "https://example.com"}}))
    dispatcher.handle(node({"id": "bad", "action": {"type": "link", "destination": {"if": {}}}}))
    dispatcher.handle(node({"id": "x", "action": {"type": "dismiss"}}))
    assert calls["links"] == ["https://example.com"]
    assert calls["dismiss"] == 1


def test_link_failure_is_not_raised():
    def broken(url):
        raise RuntimeError("no browser")

    dispatcher, _ = build()
    dispatcher._open_url = broken
    dispatcher.handle(node({"id": "l", "action": {"type": "link", "destination": "https://example.com"}}))


def test_inputs_commit_on_navigate_and_set_variable():
    store = VariableStore()
    dispatcher, _ = build(store)
    field = ElementNode.from_dict({"id": "email_input", "type": "input", "props": {"variable": "email"}})
    dispatcher.update_input(field, "a@b.c")
    assert "email" not in store
    dispatcher.handle(node({"id": "save", "action": {"type": "set_variable", "variable": "saved", "value": True}}))
    assert store.get("email") == "a@b.c"
    assert store.get("saved") is True
    dispatcher.update_input(field, "x@y.z")
    dispatcher.handle(node({"id": "go", "action": {"type": "navigate", "destination": "next"}}))
    assert store.get("email") == "x@y.z"


def test_action_metrics(metrics):
    dispatcher, _ = build(metrics=metrics)
    dispatcher.handle(node({"id": "t", "actions": [{"type": "tap"}, {"type": "toggle"}]}))
    assert metrics.get_action_counts() == {"tap": 1, "toggle": 1}
