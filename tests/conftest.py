import copy

import pytest

from screenflow.observability.metrics import RuntimeMetrics


WELCOME_ELEMENTS = [
    {
        "id": "root",
        "type": "vstack",
        "style": {"padding": 24, "gap": 12},
        "children": [
            {"id": "title", "type": "text", "props": {"text": "Hi {name}, pick a plan"}},
            {"id": "name_input", "type": "input", "props": {"variable": "name", "placeholder": "Your name"}},
            {
                "id": "plans",
                "type": "hstack",
                "children": [
                    {"id": "plan_free", "type": "text", "props": {"text": "Free"}, "action": {"type": "toggle", "group": "plan"}},
                    {"id": "plan_pro", "type": "text", "props": {"text": "Pro"}, "action": {"type": "toggle", "group": "plan"}},
                ],
            },
            {
                "id": "cta",
                "type": "text",
                "props": {"text": "Continue"},
                "visibleWhen": {"group": "plan", "hasSelection": True},
                "actions": [
                    {"type": "set_variable", "variable": "plan", "value": "pro"},
                    {
                        "type": "navigate",
                        "destination": {
                            "if": {"variable": "plan", "operator": "equals", "value": "pro"},
                            "then": "screen_c",
                            "else": "next",
                        },
                    },
                ],
            },
        ],
    }
]

FLOW_SCREENS = [
    {"id": "screen_a", "type": "noboard_screen", "elements": WELCOME_ELEMENTS},
    {
        "id": "screen_b",
        "type": "noboard_screen",
        "elements": [{"id": "b_text", "type": "text", "props": {"text": "Free tier"}}],
    },
    {
        "id": "screen_c",
        "type": "noboard_screen",
        "elements": [
            {"id": "c_text", "type": "text", "props": {"text": "Welcome to {plan}, {name}"}},
            {"id": "finish", "type": "text", "action": {"type": "navigate", "destination": "next"}},
        ],
    },
]


class RecordingAnalytics:
    def __init__(self):
        self.events = []
        self.flushes = 0
        self.experiment = None

    def track(self, event, properties=None):
        self.events.append((event, dict(properties or {})))

    def flush(self):
        self.flushes += 1
        return True

    def set_experiment_context(self, experiment_id, variant_id):
        self.experiment = (experiment_id, variant_id)

    def names(self):
        return [name for name, _ in self.events]


@pytest.fixture
def welcome_elements():
    return copy.deepcopy(WELCOME_ELEMENTS)


@pytest.fixture
def flow_screens():
    return copy.deepcopy(FLOW_SCREENS)


@pytest.fixture
def analytics():
    return RecordingAnalytics()


@pytest.fixture
def metrics():
    return RuntimeMetrics()
