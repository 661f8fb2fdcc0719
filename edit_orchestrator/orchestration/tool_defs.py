"""
Tool definitions advertised to the completion endpoint.

Each ToolSpec is a static declaration of a callable function: its name,
description and a JSON-schema parameter description. Specs are turned
into OpenAI function-calling definitions with ``to_openai()``.
"""

from dataclasses import dataclass, field
from typing import Iterable, Literal, get_args


@dataclass(frozen=True)
class ToolSpec:
    """Static declaration of a function the model may call."""

    name: str
    description: str
    parameters: dict[str, dict] = field(default_factory=dict)
    required: tuple[str, ...] = ()
    strict: bool = True

    def to_openai(self) -> dict:
        """Build the OpenAI function-calling definition for this spec."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": {
                    "type": "object",
                    "properties": {k: dict(v) for k, v in self.parameters.items()},
                    "required": list(self.required),
                    "additionalProperties": False,
                },
                "strict": self.strict,
            },
        }


def build_tool_definitions(specs: Iterable[ToolSpec]) -> list[dict]:
    """Build OpenAI function-calling tool definitions from specs."""
    return [spec.to_openai() for spec in specs]


InlineStyle = Literal[
    "bold", "italic", "underline", "strike", "color",
    "background", "size", "script", "code", "link",
]
BlockStyle = Literal["align", "code-block", "blockquote", "header", "list"]
WeatherCondition = Literal["warm", "chilly", "cold", "freezing", "hot"]

# Advertised enums and argument validation share the Literal types above
INLINE_STYLES = get_args(InlineStyle)
BLOCK_STYLES = get_args(BlockStyle)
WEATHER_CONDITIONS = get_args(WeatherCondition)
EDITOR_PLACES = ("beginning", "middle", "end")


EDITOR_TOOL_SPECS: tuple[ToolSpec, ...] = (
    ToolSpec(
        name="insert_text",
        description="Insert a short text in the editor at a given index.",
        parameters={
            "inserting_text": {
                "type": "string",
                "description": "The text to be inserted in the editor.",
            },
            "start_index": {
                "type": "number",
                "description": "The index at which the text will be inserted.",
            },
        },
        required=("inserting_text", "start_index"),
    ),
    ToolSpec(
        name="format_text",
        description="Format the given text by index in the given style with the given value.",
        parameters={
            "format_style": {"type": "string", "enum": list(INLINE_STYLES)},
            "start_index": {"type": "number"},
            "length": {"type": "number"},
            "value": {
                "type": "string",
                "description": (
                    "The value to be used for the format style. For text and background "
                    "color, a color name or an rgb value like rgb(255, 120, 250). For bold, "
                    "italic, underline, strike and code, true or false. For size, small, "
                    "normal, large or huge. For script, sub or super. For link, a url."
                ),
            },
        },
        required=("format_style", "start_index", "length", "value"),
    ),
    ToolSpec(
        name="block_formatting",
        description=(
            "Format the given text by index at a block level, like alignment, "
            "code-block, blockquote, header or list."
        ),
        parameters={
            "format_style": {"type": "string", "enum": list(BLOCK_STYLES)},
            "start_index": {"type": "number"},
            "length": {"type": "number"},
            "value": {
                "type": "string",
                "description": (
                    "For align, left, right, center or justify. For code-block and "
                    "blockquote, true or false. For header, 1 to 6. For list, ordered, "
                    "bullet, checked or unchecked."
                ),
            },
        },
        required=("format_style", "start_index", "length", "value"),
    ),
    ToolSpec(
        name="rewrite_text",
        description=(
            "Rewrite the given text by index in the editor, based on the user's request. "
            "It can be summarizing, changing the tone, expanding or any other request."
        ),
        parameters={
            "replacement_text": {
                "type": "string",
                "description": "The text that will replace the original text.",
            },
            "start_index": {
                "type": "number",
                "description": "The start index of the text to be replaced.",
            },
            "length": {
                "type": "number",
                "description": "The length of the text to be replaced.",
            },
        },
        required=("replacement_text", "start_index", "length"),
    ),
    ToolSpec(
        name="delete_text",
        description="Delete a text in the editor at a given index.",
        parameters={
            "start_index": {
                "type": "number",
                "description": "The start index of the text to be deleted.",
            },
            "length": {
                "type": "number",
                "description": "The length of the text to be deleted.",
            },
        },
        required=("start_index", "length"),
    ),
    ToolSpec(
        name="get_text_position_and_length",
        description=(
            "Get the exact start index and length of a text present in the editor, "
            "given the text and which occurrence of it you are looking for. Use this "
            "every time you have to format, rewrite or delete text in the editor."
        ),
        parameters={
            "text_to_be_found": {
                "type": "string",
                "description": "The text you are looking for in the editor.",
            },
            "occurrence_number": {
                "type": "number",
                "description": (
                    "Which occurrence of the text you are looking for. For the second "
                    "'hello' in 'hello world, hello', set this to 2."
                ),
            },
        },
        required=("text_to_be_found", "occurrence_number"),
    ),
    ToolSpec(
        name="get_selection",
        description=(
            "Get the index and length of text selected by the user in the editor. Use it "
            "to fulfill requests about formatting or rewriting the selected text."
        ),
    ),
    ToolSpec(
        name="get_specific_position_in_editor",
        description=(
            "Get the beginning, middle or end index of the editor's content. If the "
            "editor is empty, insert new text at the beginning. If it has content, users "
            "usually want new text inserted at the end."
        ),
        parameters={
            "specific_editor_place": {"type": "string", "enum": list(EDITOR_PLACES)},
        },
        required=("specific_editor_place",),
    ),
)


WEATHER_TOOL_SPECS: tuple[ToolSpec, ...] = (
    ToolSpec(
        name="get_weather",
        description="Get current temperature for a given location.",
        parameters={
            "latitude": {"type": "number"},
            "longitude": {"type": "number"},
        },
        required=("latitude", "longitude"),
    ),
    ToolSpec(
        name="get_clothing",
        description="Get the appropriate clothing for a given weather condition.",
        parameters={
            "weather_condition": {
                "type": "string",
                "enum": list(WEATHER_CONDITIONS),
                "description": "The weather condition to get clothing for.",
            },
        },
        required=("weather_condition",),
    ),
)
