"""
Editor tools exposed to the model.

Each handler takes decoded, validated arguments, performs one operation
on the injected EditorSurface and returns a short confirmation that
echoes the operation and its parameters. Problems the model can fix
(missing fields, text not found, unknown places) come back as
descriptive strings so the next round can retry.
"""

import logging

from pydantic import Field

from ..orchestration.tool_defs import EDITOR_TOOL_SPECS, BlockStyle, InlineStyle
from .document import EditorSurface
from .registry import ToolArguments, ToolRegistry

logger = logging.getLogger(__name__)


class InsertTextArgs(ToolArguments):
    failure_message = (
        "Insert text failed. Please provide a valid inserting_text and start_index."
    )

    inserting_text: str
    start_index: int = Field(ge=0)


class DeleteTextArgs(ToolArguments):
    failure_message = (
        "Delete text failed. Please provide a valid start index and length."
    )

    start_index: int = Field(ge=0)
    length: int = Field(ge=1)


class RewriteTextArgs(ToolArguments):
    failure_message = (
        "Rewrite text failed. Please provide a valid replacement text, "
        "start index and length."
    )

    replacement_text: str
    start_index: int = Field(ge=0)
    length: int = Field(ge=0)


class FormatTextArgs(ToolArguments):
    failure_message = (
        "Format text failed. Please provide a valid style, start index, length and value."
    )

    format_style: InlineStyle
    start_index: int = Field(ge=0)
    length: int = Field(ge=0)
    value: str


class BlockFormatArgs(ToolArguments):
    failure_message = (
        "Block format text failed. Please provide a valid style, start index, "
        "length and value."
    )

    format_style: BlockStyle
    start_index: int = Field(ge=0)
    length: int = Field(ge=0)
    value: str


class LocateTextArgs(ToolArguments):
    failure_message = (
        "Getting text position and length failed. Please provide a valid text to "
        "find and occurrence number."
    )

    text_to_be_found: str = Field(min_length=1)
    occurrence_number: int = Field(ge=1)


class LocatePlaceArgs(ToolArguments):
    failure_message = (
        "Getting a position in the editor failed. Please provide beginning, middle or end."
    )

    specific_editor_place: str


class GetSelectionArgs(ToolArguments):
    pass


class EditorTools:
    """Editor handlers bound to one document."""

    def __init__(self, surface: EditorSurface) -> None:
        self.surface = surface

    async def insert_text(self, args: InsertTextArgs) -> str:
        text = args.inserting_text
        self.surface.insert_text(text, args.start_index)
        return (
            f'Inserted "{text}" at index {args.start_index} with length {len(text)}'
        )

    async def delete_text(self, args: DeleteTextArgs) -> str:
        self.surface.delete_text(args.start_index, args.length)
        return f"Deleted text at index {args.start_index} with length {args.length}"

    async def rewrite_text(self, args: RewriteTextArgs) -> str:
        self.surface.rewrite_text(args.replacement_text, args.start_index, args.length)
        return f"Rewrote text at index {args.start_index} with length {args.length}"

    async def format_text(self, args: FormatTextArgs) -> str:
        self.surface.format_inline(
            args.format_style, args.start_index, args.length, args.value
        )
        return (
            f'Formatted in "{args.format_style}" at index {args.start_index} '
            f"with length {args.length}"
        )

    async def block_formatting(self, args: BlockFormatArgs) -> str:
        self.surface.format_block(
            args.format_style, args.start_index, args.length, args.value
        )
        return (
            f'Block formatted in "{args.format_style}" at index {args.start_index} '
            f"with length {args.length}"
        )

    async def get_text_position_and_length(self, args: LocateTextArgs) -> str:
        text = args.text_to_be_found
        index = self.surface.locate_text(text, args.occurrence_number)
        if index is None:
            return f'Text "{text}" not found (occurrence {args.occurrence_number}).'
        return f'The text "{text}" is found at index {index} and length is {len(text)}.'

    async def get_specific_position_in_editor(self, args: LocatePlaceArgs) -> str:
        place = args.specific_editor_place
        try:
            index = self.surface.locate_place(place)
        except ValueError:
            return f'Not valid specific place in editor: "{place}"'
        return f"The {place} of the editor's content is at index {index}"

    async def get_selection(self, args: GetSelectionArgs) -> str:
        selection = self.surface.get_selection()
        if selection is None:
            return "User has not selected any text."
        return (
            f"User selected text from index {selection.start} "
            f"with length {selection.length}."
        )


_ARGUMENT_MODELS: dict[str, type[ToolArguments]] = {
    "insert_text": InsertTextArgs,
    "format_text": FormatTextArgs,
    "block_formatting": BlockFormatArgs,
    "rewrite_text": RewriteTextArgs,
    "delete_text": DeleteTextArgs,
    "get_text_position_and_length": LocateTextArgs,
    "get_selection": GetSelectionArgs,
    "get_specific_position_in_editor": LocatePlaceArgs,
}


def build_editor_registry(surface: EditorSurface) -> ToolRegistry:
    """Register one handler per editor ToolSpec, bound to ``surface``."""
    tools = EditorTools(surface)
    registry = ToolRegistry()
    for spec in EDITOR_TOOL_SPECS:
        registry.register(
            name=spec.name,
            description=spec.description,
            args_model=_ARGUMENT_MODELS[spec.name],
            handler=getattr(tools, spec.name),
        )
    logger.debug(f"Registered {len(registry)} editor tools")
    return registry
