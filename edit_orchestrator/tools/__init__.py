"""
EditOrchestra Tools Package

Available tools:
- editor: insert, delete, rewrite, format and locate text in a document
- weather: temperature and clothing lookups for the scripted demo
"""

from .registry import ToolArguments, ToolDefinition, ToolOutcome, ToolRegistry
from .document import EditorSurface, FormatSpan, Selection, TextDocument
from .editor import EditorTools, build_editor_registry
from .weather import WeatherService, build_weather_registry, get_clothing

__all__ = [
    "ToolArguments",
    "ToolDefinition",
    "ToolOutcome",
    "ToolRegistry",
    "EditorSurface",
    "FormatSpan",
    "Selection",
    "TextDocument",
    "EditorTools",
    "build_editor_registry",
    "WeatherService",
    "build_weather_registry",
    "get_clothing",
]
