"""macros package exposing the event model, JSON format and engine."""

from .engine import EngineState, MacroEngine
from .models import EventType, MacroEvent
from . import serialization

__all__ = ['EngineState', 'MacroEngine', 'EventType', 'MacroEvent', 'serialization']
