"""
Reference step renderers
"""
import asyncio
import logging
from typing import Any, Dict, Optional

from ..models.workflow import DEFAULT_OUTPUT
from .base import StepProps, StepRenderer


logger = logging.getLogger(__name__)

DEFAULT_DELAY_SECONDS = 5
TIME_UNITS = {
    "seconds": 1,
    "minutes": 60,
    "hours": 3600,
}


class GenericStep(StepRenderer):
    """Fallback for node types without a dedicated renderer; forwards input unchanged"""


class TriggerStep(StepRenderer):
    """Start of a workflow: touch, QR scan, upload, timer..."""

    def _payload(self, props: StepProps, data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        payload = dict(data or {})
        payload.update({"triggered": True, "triggerType": props.node.type})
        return payload

    async def render(self, props: StepProps) -> None:
        if props.config.get("triggerType") == "auto":
            logger.info(f"Trigger '{props.node.id}' fires automatically")
            props.on_complete(DEFAULT_OUTPUT, self._payload(props, None))

    def handle_input(self, props, output_id=DEFAULT_OUTPUT, data=None):
        return props.on_complete(output_id, self._payload(props, data))


class ConditionStep(StepRenderer):
    """Condition the guest resolves by hand when its field is not collected"""

    def handle_input(self, props, output_id=DEFAULT_OUTPUT, data=None):
        payload = dict(data or {})
        payload["condition_choice"] = output_id
        return props.on_complete(output_id, payload)


def delay_seconds(config: Dict[str, Any]) -> float:
    """Delay configured on a node, in seconds"""
    duration = config.get("duration")
    if duration is None:
        duration = DEFAULT_DELAY_SECONDS
    unit = config.get("unit") or "seconds"
    if unit not in TIME_UNITS:
        logger.warning(f"Unknown delay unit '{unit}', using seconds")
        unit = "seconds"
    return max(float(duration), 0.0) * TIME_UNITS[unit]


class DelayStep(StepRenderer):
    """Waits for the configured duration, then continues"""

    async def render(self, props: StepProps) -> None:
        seconds = delay_seconds(props.config)
        logger.debug(f"Delay '{props.node.id}' waiting {seconds}s")
        try:
            await asyncio.sleep(seconds)
        except asyncio.CancelledError:
            logger.debug(f"Delay '{props.node.id}' cancelled")
            raise

        props.on_complete(DEFAULT_OUTPUT, {"delayed": True, "delayMs": int(seconds * 1000)})
