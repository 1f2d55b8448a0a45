"""
Step renderers
"""
from .base import StepProps, StepRenderer
from .builtin import ConditionStep, DelayStep, GenericStep, TriggerStep, delay_seconds
from .registry import StepRegistry, default_registry

__all__ = [
    'StepProps',
    'StepRenderer',
    'GenericStep',
    'TriggerStep',
    'ConditionStep',
    'DelayStep',
    'delay_seconds',
    'StepRegistry',
    'default_registry',
]
