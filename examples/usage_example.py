"""
Workflow runtime usage example
"""
import asyncio
import logging
from pathlib import Path

from workflow_runtime import DefinitionParser, WorkflowEngine, WorkflowRunner
from workflow_runtime.models import EngineEvent
from workflow_runtime.steps import StepProps, StepRenderer, default_registry


logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

DEFINITIONS = Path(__file__).parent / "definitions"


class FakeCamera(StepRenderer):
    """Takes a photo as soon as the step is shown"""

    async def render(self, props: StepProps) -> None:
        await asyncio.sleep(0.1)
        props.on_complete("default", {"photo": "data:image/jpeg;base64,AAAA"})


class FakePrinter(StepRenderer):
    async def render(self, props: StepProps) -> None:
        copies = props.config.get("copies", 1)
        print(f"Printing {copies} copy(ies) of {props.collected_data.get('photo', '<uploaded>')}")
        props.on_complete("default", {"printed": True})


def engine_example():
    """Drive the engine by hand"""
    print("\n=== Engine example ===")
    definition = DefinitionParser().parse(DEFINITIONS / "photo_booth_canvas.json")
    engine = WorkflowEngine(definition)

    def show(event: EngineEvent):
        print(f"  {event.sequence:>2} {event.type.value:<15} {event.node_id} -> {event.next_node_id}")

    engine.on(show)
    engine.start()
    engine.complete_step("default", {"triggered": True, "triggerType": "TRIGGER_MANUAL"})
    engine.complete_step("else", {"condition_choice": "else"})
    engine.complete_step("default", {"photo": "data:abc"})

    # undo the photo, then take it again
    engine.go_back()
    engine.complete_step("default", {"photo": "data:def"})
    engine.complete_step("default", {"printed": True})

    print(f"Status: {engine.status.value}")
    print(f"Collected: {engine.state.collected_data}")


async def runner_example():
    """Let renderers drive the workflow"""
    print("\n=== Runner example ===")
    definition = DefinitionParser().parse(DEFINITIONS / "photo_booth.yaml")

    registry = default_registry()
    registry.register("TAKE_PHOTO", FakeCamera())
    registry.register("PRINT", FakePrinter())

    runner = WorkflowRunner(definition, registry=registry, event_id="demo-event")
    runner.start()

    # the guest touches the screen; the condition resolves itself because
    # hasPhoto is collected, so the printer runs next
    runner.submit("default", {"hasPhoto": True})

    state = await runner.wait_until_finished(timeout=10)
    print(f"Status: {state.status.value}")
    print(f"Collected: {state.collected_data}")


if __name__ == "__main__":
    engine_example()
    asyncio.run(runner_example())
