import asyncio

import pytest

from screenflow.errors import FlowStateError
from screenflow.flows import NO_SCREENS_MESSAGE, FlowSession, FlowStatus, ViewKind


def loaded(screens, **kwargs):
    return FlowSession(screens, **kwargs).load()


def test_scripted_flow_jumps_to_pro_screen_and_completes_once(flow_screens, analytics):
    completed = []
    session = loaded(flow_screens, analytics=analytics, on_complete=completed.append)
    assert session.status == FlowStatus.READY
    assert session.current_screen.id == "screen_a"

    session.tap("plan_pro")
    session.type_text("name_input", "Sam")
    session.tap("cta")

    assert session.current_screen.id == "screen_c"
    assert session.render()[0].text == "Welcome to pro, Sam"

    session.tap("finish")
    session.next()
    session.skip_all()

    assert session.status == FlowStatus.COMPLETED
    assert completed == [{"_variables": {"name": "Sam", "plan": "pro"}}]
    assert analytics.names() == [
        "onboarding_started",
        "element_action",
        "element_action",
        "element_action",
        "screen_viewed",
        "element_action",
        "onboarding_completed",
    ]
    viewed = dict(analytics.events)["screen_viewed"]
    assert viewed["screen_id"] == "screen_c"
    assert viewed["screen_index"] == 2
    assert analytics.flushes == 1


def test_collected_data_merges_into_completion_payload(flow_screens):
    completed = []
    session = loaded(flow_screens, on_complete=completed.append, initial_variables={"source": "ad"})
    session.next({"age": 30})
    session.next({"goal": "fit"})
    session.next({"goal": "strong"})
    assert completed == [{"age": 30, "goal": "strong", "_variables": {"source": "ad"}}]
    assert session.completion_payload == completed[0]


def test_back_is_noop_on_first_screen(flow_screens, analytics):
    session = loaded(flow_screens, analytics=analytics)
    session.back()
    assert session.index == 0
    session.next()
    session.back()
    assert session.index == 0
    assert analytics.names().count("screen_viewed") == 1


def test_follow_maps_tokens(flow_screens):
    session = loaded(flow_screens)
    session.follow(None)
    assert session.current_screen.id == "screen_b"
    session.follow("previous")
    assert session.current_screen.id == "screen_a"
    session.follow("screen_c")
    assert session.current_screen.id == "screen_c"


def test_navigate_to_unknown_screen_advances(flow_screens):
    session = loaded(flow_screens)
    session.navigate_to("nowhere")
    assert session.current_screen.id == "screen_b"


def test_skip_all_abandons(flow_screens, analytics):
    abandoned = []
    session = loaded(flow_screens, analytics=analytics, on_abandon=lambda: abandoned.append(True))
    session.next()
    session.skip_all()
    session.skip_all()
    session.next()
    assert session.status == FlowStatus.ABANDONED
    assert abandoned == [True]
    name, props = analytics.events[-1]
    assert name == "onboarding_abandoned"
    assert props["current_screen_index"] == 1
    assert analytics.flushes == 1


def test_dismiss_action_abandons(analytics):
    screens = [{"id": "only", "elements": [{"id": "close", "type": "icon", "action": {"type": "dismiss"}}]}]
    session = loaded(screens, analytics=analytics)
    session.tap("close")
    assert session.status == FlowStatus.ABANDONED


def test_skip_screen_on_last_completes(flow_screens):
    completed = []
    session = loaded(flow_screens, on_complete=completed.append)
    session.navigate_to("screen_c")
    session.skip_screen()
    assert session.status == FlowStatus.COMPLETED
    assert len(completed) == 1


def test_empty_and_hidden_screens_are_errors():
    session = loaded([])
    assert session.status == FlowStatus.ERROR
    assert session.error == NO_SCREENS_MESSAGE
    hidden = loaded([{"id": "h", "hidden": True, "elements": []}])
    assert hidden.status == FlowStatus.ERROR
    assert hidden.current_screen is None


def test_hidden_screens_are_dropped(flow_screens):
    flow_screens[1]["hidden"] = True
    session = loaded(flow_screens)
    assert [s.id for s in session.screens] == ["screen_a", "screen_c"]


def test_source_failure_is_error_state():
    class Broken:
        def get_config(self):
            raise RuntimeError("offline")

    session = FlowSession().load(Broken())
    assert session.status == FlowStatus.ERROR
    assert session.error == "offline"
    assert session.screens == []
    session.next()
    assert session.status == FlowStatus.ERROR


def test_invalid_tree_is_error_state():
    session = loaded([{"id": "s", "elements": [{"id": "a", "type": "text"}, {"id": "a", "type": "text"}]}])
    assert session.status == FlowStatus.ERROR
    assert "duplicated" in session.error


class Source:
    def __init__(self, screens, variant_screens=None, fail_assign=False):
        self.screens = screens
        self.variant_screens = variant_screens
        self.fail_assign = fail_assign
        self.assigned = []

    def get_config(self):
        return {
            "config_id": "cfg_1",
            "config": {"version": "1.0.0", "screens": self.screens},
            "experiments": [{"id": "exp_1", "variants": []}],
        }

    def assign_variant(self, experiment_id, user_id):
        self.assigned.append((experiment_id, user_id))
        if self.fail_assign:
            raise RuntimeError("assignment down")
        return {"variant_id": "v_b", "variant_config": {"screens": self.variant_screens or []}}


def test_variant_screens_replace_base(flow_screens, analytics):
    variant = [{"id": "variant_only", "elements": []}]
    source = Source(flow_screens, variant_screens=variant)
    session = FlowSession(analytics=analytics, user_id="u1").load(source)
    assert [s.id for s in session.screens] == ["variant_only"]
    assert session.flow_id == "cfg_1"
    assert session.variant_id == "v_b"
    assert source.assigned == [("exp_1", "u1")]
    assert analytics.experiment == ("exp_1", "v_b")
    assert analytics.events[0] == ("onboarding_started", {"flow_id": "cfg_1", "screen_id": "variant_only"})


def test_empty_variant_or_failed_assignment_keeps_base(flow_screens):
    session = FlowSession().load(Source(flow_screens, variant_screens=[]))
    assert session.current_screen.id == "screen_a"
    session = FlowSession().load(Source(flow_screens, fail_assign=True))
    assert session.current_screen.id == "screen_a"
    assert session.variant_id is None


def test_load_twice_raises(flow_screens):
    session = loaded(flow_screens)
    with pytest.raises(FlowStateError):
        session.load()


def test_async_load(flow_screens):
    session = asyncio.run(FlowSession(flow_screens).a_load())
    assert session.status == FlowStatus.READY


def test_custom_screen_views():
    screens = [
        {"id": "quiz", "type": "custom_screen", "custom_component_name": "Quiz"},
        {"id": "missing", "type": "custom_screen", "custom_component_name": "Nope"},
        {"id": "legacy", "type": "custom_screen", "elements": [{"id": "t", "type": "text"}]},
    ]
    quiz_component = object()
    session = loaded(screens, components={"Quiz": quiz_component})
    view = session.current_view()
    assert view.kind == ViewKind.CUSTOM
    assert view.component is quiz_component
    session.update_data({"score": 3})
    session.next()
    view = session.current_view()
    assert view.kind == ViewKind.MISSING_COMPONENT
    assert view.message == 'Component "Nope" not found.'
    session.follow(view.skip_token)
    assert session.current_view().kind == ViewKind.ELEMENTS
    assert session.scope() == {"score": 3}


def test_selection_persists_when_revisiting(flow_screens):
    session = loaded(flow_screens)
    session.tap("plan_free")
    session.next()
    session.back()
    assert session.dispatcher().selection.toggled == frozenset({"plan_free"})


def test_unknown_element_raises(flow_screens):
    session = loaded(flow_screens)
    with pytest.raises(FlowStateError) as exc:
        session.tap("ghost")
    assert exc.value.code == "SF-4002"


def test_store_wins_over_collected_data(flow_screens):
    session = loaded(flow_screens, initial_variables={"plan": "pro"})
    session.update_data({"plan": "free", "age": 3})
    assert session.scope() == {"plan": "pro", "age": 3}


def test_transition_metrics(flow_screens, metrics):
    session = loaded(flow_screens, metrics=metrics)
    session.next()
    session.back()
    assert metrics.get_transition_counts() == {"next": 1, "back": 1}
