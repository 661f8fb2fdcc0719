#!/usr/bin/env python3
"""
EditOrchestra Interactive CLI

Edit an in-memory document with natural-language requests, or run the
scripted weather/clothing demo.
"""

import argparse
import asyncio
import json
import logging
import signal
import sys
import threading
from dataclasses import replace
from pathlib import Path
from typing import Optional

from .config_loader import load_app_config
from .errors import ConfigError, EditOrchestraError, OrchestrationCancelled
from .llm_call import CompletionClient
from .models import AppConfig
from .orchestration import (
    EDITOR_SYSTEM_PROMPT,
    EDITOR_TOOL_SPECS,
    WEATHER_SYSTEM_PROMPT,
    WEATHER_TOOL_SPECS,
    OrchestrationLoop,
    build_user_prompt,
)
from .tools import (
    TextDocument,
    ToolRegistry,
    WeatherService,
    build_editor_registry,
    build_weather_registry,
)

# Global shutdown flag for signal handling
_shutdown_requested = threading.Event()
# Cancel token of the request in flight, if any
_active_cancel: Optional[asyncio.Event] = None

logger = logging.getLogger(__name__)


def _signal_handler(signum: int, frame) -> None:
    """Handle SIGINT: cancel the running request, then shut down."""
    if _shutdown_requested.is_set():
        logger.debug("Force shutdown requested")
        sys.exit(1)
    logger.debug("Shutdown requested")
    _shutdown_requested.set()
    if _active_cancel is not None:
        _active_cancel.set()
        print("\n\nCancelling request... (press Ctrl+C again to force)")
    else:
        print("\n\nShutting down... (press Ctrl+C again to force)")


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def print_banner() -> None:
    """Print the welcome banner."""
    banner = """
╔════════════════════════════════════════════════════════════════╗
║                   EditOrchestra Interactive                     ║
║                                                                 ║
║  Natural-language editing through language-model tool calls    ║
╚════════════════════════════════════════════════════════════════╝

Available commands:
  /help              - Show this help message
  /doc               - Show the document and its formats
  /select START LEN  - Select text (LEN 0 clears the selection)
  /trace             - Show the tool calls made so far
  /formats INDEX     - Show the formats in effect at INDEX
  /tools             - List editor tools
  /clear             - Start a new conversation (keeps the document)
  /quit              - Exit the CLI

Type your edit requests below.
"""
    print(banner)


def print_tools(registry: ToolRegistry) -> None:
    """Print the editor tools offered to the model."""
    print("\nEditor Tools:")
    print("─" * 64)
    print(registry.get_tools_summary())
    print()


def print_document(document: TextDocument) -> None:
    """Print the document text, its format spans and the selection."""
    print("\n" + "═" * 70)
    print("DOCUMENT")
    print("═" * 70)
    print(document.text if document.text else "(empty)")
    if document.spans:
        print("─" * 70)
        for span in document.spans:
            print(
                f"  {span.kind} {span.style}={span.value!r} "
                f"at {span.index} length {span.length}"
            )
    selection = document.get_selection()
    if selection:
        print(f"  selection: {selection.start} length {selection.length}")
    print("═" * 70 + "\n")


def print_trace(loop: OrchestrationLoop) -> None:
    """Print every tool call of this conversation."""
    trace = loop.get_trace()
    if not trace:
        print("\nNo trace available. Run a request first.\n")
        return

    print("\n" + "═" * 70)
    print("TOOL CALLS")
    print("═" * 70)
    for record in trace:
        status = "" if record["success"] else "  [FAILED]"
        print(f"\n┌─ Round {record['round_number']}: {record['function_name']}{status}")
        if record["arguments"]:
            print(f"│  Input: {json.dumps(record['arguments'])}")
        result = record["result"]
        if len(result) > 200:
            result = result[:200] + "..."
        print(f"│  Result: {result}")
        print("└" + "─" * 68)
    print()


def _build_client(app_config: AppConfig) -> CompletionClient:
    if not app_config.orchestrator.api_key:
        raise ConfigError(
            "No API key configured. Set EDIT_ORCHESTRA_API_KEY or OPENAI_API_KEY."
        )
    return CompletionClient.from_config(app_config.orchestrator, app_config.retry)


class InteractiveCLI:
    """REPL over one document and one conversation."""

    def __init__(
        self,
        app_config: AppConfig,
        document: Optional[TextDocument] = None,
        client: Optional[CompletionClient] = None,
        verbose: bool = False,
    ):
        self.app_config = app_config
        self.verbose = verbose
        self.document = document or TextDocument()
        self.client = client or _build_client(app_config)
        self._event_loop = asyncio.new_event_loop()
        self.loop = self._new_loop()

    def _new_loop(self) -> OrchestrationLoop:
        return OrchestrationLoop(
            client=self.client,
            registry=build_editor_registry(self.document),
            specs=EDITOR_TOOL_SPECS,
            system_prompt=EDITOR_SYSTEM_PROMPT,
            max_rounds=self.app_config.orchestrator.max_rounds,
            round_timeout=self.app_config.orchestrator.round_timeout,
        )

    def clear_history(self) -> None:
        """Start a fresh conversation over the same document."""
        self.loop = self._new_loop()
        print("\nConversation history cleared.\n")

    def select(self, argument: str) -> None:
        try:
            start, length = (int(part) for part in argument.split())
        except ValueError:
            print("\nUsage: /select START LENGTH\n")
            return
        if length <= 0:
            self.document.clear_selection()
            print("\nSelection cleared.\n")
        else:
            self.document.select(start, length)
            print(f"\nSelected {start} length {length}.\n")

    def show_formats(self, argument: str) -> None:
        try:
            index = int(argument)
        except ValueError:
            print("\nUsage: /formats INDEX\n")
            return
        formats = self.document.formats_at(index)
        if not formats:
            print(f"\nNo formats at index {index}.\n")
            return
        print(f"\nFormats at index {index}:")
        for style, value in formats.items():
            print(f"  {style}={value!r}")
        print()

    async def _run_request(self, prompt: str):
        global _active_cancel
        _active_cancel = asyncio.Event()
        try:
            return await self.loop.run(
                build_user_prompt(prompt, self.document.text), cancel_event=_active_cancel
            )
        finally:
            _active_cancel = None

    def process_request(self, prompt: str) -> bool:
        """Process one edit request.

        Returns:
            True if should continue, False if shutdown requested
        """
        print("\n" + "─" * 70)
        print("Processing request...")
        print("─" * 70 + "\n")

        try:
            result = self._event_loop.run_until_complete(self._run_request(prompt))
        except OrchestrationCancelled:
            print("\n\nRequest cancelled, shutting down.\n")
            return False
        except EditOrchestraError as e:
            print(f"\nError: {e}\n")
            return not _shutdown_requested.is_set()

        print("\n" + "═" * 70)
        print("ANSWER")
        print("═" * 70)
        print(result.answer)
        print_document(self.document)
        print(
            f"(Completed in {result.rounds} round{'s' if result.rounds != 1 else ''}, "
            f"{len(result.tool_calls)} tool call{'s' if len(result.tool_calls) != 1 else ''})"
        )
        if self.verbose:
            print_trace(self.loop)
        else:
            print("Use /trace to see the tool calls.\n")

        if _shutdown_requested.is_set():
            print("\nRequest completed, shutting down.\n")
            return False
        return True

    def run(self) -> None:
        """Run the interactive CLI loop."""
        print_banner()

        try:
            while not _shutdown_requested.is_set():
                try:
                    user_input = input(">>> ").strip()
                except EOFError:
                    print("\nGoodbye!\n")
                    break

                if _shutdown_requested.is_set():
                    break
                if not user_input:
                    continue

                if user_input.startswith("/"):
                    command, _, argument = user_input.partition(" ")
                    command = command.lower()

                    if command in ("/quit", "/exit", "/q"):
                        print("\nGoodbye!\n")
                        break
                    elif command in ("/help", "/h", "/?"):
                        print_banner()
                    elif command == "/doc":
                        print_document(self.document)
                    elif command == "/select":
                        self.select(argument)
                    elif command == "/formats":
                        self.show_formats(argument)
                    elif command == "/trace":
                        print_trace(self.loop)
                    elif command == "/tools":
                        print_tools(self.loop.registry)
                    elif command == "/clear":
                        self.clear_history()
                    else:
                        print(f"\nUnknown command: {user_input}")
                        print("Type /help for available commands.\n")
                elif not self.process_request(user_input):
                    break
        finally:
            self.cleanup()

    def cleanup(self) -> None:
        """Close the endpoint client and the event loop."""
        if self._event_loop.is_closed():
            return
        self._event_loop.run_until_complete(self.client.close())
        self._event_loop.close()


async def run_weather(
    question: str, app_config: AppConfig, client: Optional[CompletionClient] = None
):
    """Run the scripted weather/clothing loop for one question."""
    client = client or _build_client(app_config)
    service = WeatherService(
        forecast_url=app_config.weather.forecast_url,
        timeout=app_config.weather.timeout,
    )
    loop = OrchestrationLoop(
        client=client,
        registry=build_weather_registry(service),
        specs=WEATHER_TOOL_SPECS,
        system_prompt=WEATHER_SYSTEM_PROMPT,
        max_rounds=app_config.orchestrator.max_rounds,
        round_timeout=app_config.orchestrator.round_timeout,
    )
    try:
        result = await loop.run(question)
        return result, loop.get_trace()
    finally:
        await service.close()
        await client.close()


def main() -> None:
    """Main entry point."""
    signal.signal(signal.SIGINT, _signal_handler)

    parser = argparse.ArgumentParser(
        prog="edit-orchestra",
        description="EditOrchestra Interactive CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                                  # Edit an empty document
  %(prog)s edit --document notes.txt        # Edit a copy of notes.txt
  %(prog)s weather "What should I wear in Paris?"
""",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument(
        "--max-rounds",
        type=int,
        default=None,
        help="Maximum endpoint rounds per request (default: from configuration)",
    )
    parser.add_argument(
        "--config", type=str, default=None, help="Path to a YAML configuration file"
    )

    subparsers = parser.add_subparsers(dest="command")
    edit_parser = subparsers.add_parser("edit", help="Edit a document interactively")
    edit_parser.add_argument(
        "--document", type=Path, default=None, help="Seed the document from a text file"
    )
    weather_parser = subparsers.add_parser("weather", help="Run the weather/clothing demo")
    weather_parser.add_argument("question", type=str, help="Question to ask")
    weather_parser.add_argument(
        "--json", action="store_true", help="Output results as JSON (for scripting)"
    )

    args = parser.parse_args()
    setup_logging(args.verbose)

    app_config = load_app_config(args.config)
    if args.max_rounds is not None:
        app_config = replace(
            app_config,
            orchestrator=replace(app_config.orchestrator, max_rounds=args.max_rounds),
        )

    if args.command == "weather":
        try:
            result, trace = asyncio.run(run_weather(args.question, app_config))
        except EditOrchestraError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        if args.json:
            output = {"question": args.question, "answer": result.answer, "trace": trace}
            print(json.dumps(output, indent=2))
        else:
            print(result.answer)
        return

    text = ""
    document_path = getattr(args, "document", None)
    if document_path is not None:
        text = document_path.read_text(encoding="utf-8")
    try:
        cli = InteractiveCLI(app_config, document=TextDocument(text), verbose=args.verbose)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    cli.run()


if __name__ == "__main__":
    main()
