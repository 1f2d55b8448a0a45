"""
Step renderer tests
"""
import asyncio
import logging
from types import MappingProxyType

import pytest

from workflow_runtime.models import StepOutput, WorkflowNode
from workflow_runtime.steps import (
    ConditionStep, DelayStep, GenericStep, StepProps, StepRegistry, TriggerStep,
    default_registry, delay_seconds
)


class Recorder:
    """on_complete stand-in that records its calls"""

    def __init__(self, accept=True):
        self.calls = []
        self.accept = accept

    def __call__(self, output_id="default", data=None):
        self.calls.append((output_id, data))
        return self.accept


def make_props(node_type, config=None, outputs=("default",), on_complete=None):
    node = WorkflowNode(
        id="node",
        type=node_type,
        config=config or {},
        outputs=[StepOutput(id=output_id) for output_id in outputs]
    )
    return StepProps(
        node=node,
        collected_data=MappingProxyType({}),
        on_complete=on_complete or Recorder(),
        event_id="event-1",
        activation=1
    )


class TestRegistry:
    """StepRegistry"""

    def test_default_registry_covers_triggers(self):
        registry = default_registry()

        for node_type in ("TRIGGER_MANUAL", "TRIGGER_QR_SCAN", "TOUCH_TO_START"):
            assert isinstance(registry.resolve(node_type), TriggerStep)
        assert isinstance(registry.resolve("CONDITION"), ConditionStep)
        assert isinstance(registry.resolve("DELAY"), DelayStep)

    def test_known_type_without_renderer_uses_fallback(self, caplog):
        registry = default_registry()

        with caplog.at_level(logging.WARNING):
            renderer = registry.resolve("TAKE_PHOTO")

        assert isinstance(renderer, GenericStep)
        assert caplog.text == ""

    def test_unknown_type_warns_once(self, caplog):
        registry = StepRegistry()

        with caplog.at_level(logging.WARNING):
            first = registry.resolve("HOLOGRAM")
            second = registry.resolve("HOLOGRAM")

        assert first is second is registry.fallback
        assert caplog.text.count("Unknown step type HOLOGRAM") == 1

    def test_register_and_unregister(self):
        registry = StepRegistry()
        renderer = GenericStep()

        registry.register("PRINT", renderer)
        assert "PRINT" in registry
        assert registry.resolve("PRINT") is renderer

        registry.unregister("PRINT")
        assert "PRINT" not in registry


class TestReferenceRenderers:
    """Trigger, condition, delay and generic steps"""

    def test_trigger_adds_trigger_data(self):
        props = make_props("TRIGGER_QR_SCAN")

        assert TriggerStep().handle_input(props, "default", {"code": "abc"}) is True

        assert props.on_complete.calls == [
            ("default", {"code": "abc", "triggered": True, "triggerType": "TRIGGER_QR_SCAN"})
        ]

    @pytest.mark.asyncio
    async def test_auto_trigger_completes_on_render(self):
        props = make_props("TRIGGER_TIMER", config={"triggerType": "auto"})

        await TriggerStep().render(props)

        assert props.on_complete.calls == [
            ("default", {"triggered": True, "triggerType": "TRIGGER_TIMER"})
        ]

    @pytest.mark.asyncio
    async def test_manual_trigger_waits(self):
        props = make_props("TRIGGER_MANUAL")

        await TriggerStep().render(props)

        assert props.on_complete.calls == []

    def test_condition_records_choice(self):
        props = make_props("CONDITION", outputs=("then", "else"))

        ConditionStep().handle_input(props, "then")

        assert props.on_complete.calls == [("then", {"condition_choice": "then"})]

    def test_generic_forwards_input(self):
        props = make_props("TAKE_PHOTO", on_complete=Recorder(accept=False))

        assert GenericStep().handle_input(props, "retake", {"photo": None}) is False
        assert props.on_complete.calls == [("retake", {"photo": None})]

    @pytest.mark.asyncio
    async def test_delay_completes_after_duration(self):
        props = make_props("DELAY", config={"duration": 0.01})

        await DelayStep().render(props)

        assert props.on_complete.calls == [("default", {"delayed": True, "delayMs": 10})]

    @pytest.mark.asyncio
    async def test_delay_cancellation(self):
        props = make_props("DELAY", config={"duration": 1, "unit": "hours"})

        task = asyncio.ensure_future(DelayStep().render(props))
        await asyncio.sleep(0)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert props.on_complete.calls == []

    @pytest.mark.parametrize("config, expected", [
        ({}, 5),
        ({"duration": 2}, 2),
        ({"duration": 2, "unit": "minutes"}, 120),
        ({"duration": 1, "unit": "hours"}, 3600),
        ({"duration": 3, "unit": "fortnights"}, 3),
        ({"duration": -1}, 0),
    ])
    def test_delay_seconds(self, config, expected):
        assert delay_seconds(config) == expected
