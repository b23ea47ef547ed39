"""
Main application for Banana Comics.

This module provides the terminal front-end: it configures logging, drives
the story orchestrator and exports the finished comic.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from bananacomics.config import (
    Config,
    SUPPORTED_LANGUAGES,
    get_generation_options,
    load_config,
    validate_config,
)
from bananacomics.gemini_client import GeminiClient
from bananacomics.orchestrator import CycleStatus, StoryOrchestrator, StoryView
from bananacomics.output_manager import OutputManager
from bananacomics.translations import get_text


# Configure logging
def setup_logging(verbose: bool = False):
    """
    Configure logging for the application.

    Args:
        verbose: Enable verbose logging
    """
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler("banana_comics.log"),
        ],
    )

    # Reduce noise from external libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("google").setLevel(logging.WARNING)


def print_view(view: StoryView, start_panel: int = 1):
    """Print panels from ``start_panel`` onward plus the current suggestions."""
    script = view.script
    if view.status == CycleStatus.ERROR:
        print(f"\n⚠️  {view.status_message}")
        return

    if start_panel == 1 and script.title:
        print(f"\n=== {script.title} ===")
        print(f"Style: {script.visual_style}")

    for panel in script.panels[start_panel - 1:]:
        marker = "🖼" if panel.has_image else "✗ (no image)"
        print(f"\n[{panel.panel_number}] {marker}")
        if panel.narrative_caption:
            print(f"  {panel.narrative_caption}")
        if panel.dialogue:
            print(f'  "{panel.dialogue}"')

    if script.suggested_options:
        print(f"\n{get_text(view.language, 'suggestions_label')}")
        for i, option in enumerate(script.suggested_options, start=1):
            print(f"  {i}. {option}")


def export_story(orchestrator: StoryOrchestrator, output_dir: Optional[Path] = None) -> Path:
    """
    Export the current story to disk.

    Returns:
        Path to the printable HTML file
    """
    view = orchestrator.view
    output_manager = OutputManager(orchestrator.config)
    if output_dir is None:
        comic_dir = output_manager.create_comic_directory()
    else:
        comic_dir = output_dir
        comic_dir.mkdir(parents=True, exist_ok=True)

    saved_files = output_manager.save_comic(
        view.script, comic_dir, prose=view.prose, language=view.language
    )
    return saved_files["html"]


async def run_interactive(orchestrator: StoryOrchestrator, output_dir: Optional[Path] = None) -> int:
    """
    Interactive loop over an existing story.

    Commands: ``c [directive]`` or a suggestion number to continue, ``m`` for
    more ideas, ``s`` to show the full story, ``e`` to export, ``r`` to reset,
    ``q`` to quit.
    """
    logger = logging.getLogger(__name__)

    while True:
        if orchestrator.script.is_empty:
            topic = (await asyncio.to_thread(input, "\nStory topic (empty to quit): ")).strip()
            if not topic:
                return 0
            print_view(await orchestrator.start_story(topic))
            continue

        language = orchestrator.language
        command = (await asyncio.to_thread(
            input,
            f"\n[c]ontinue [directive] | <n> suggestion | [m] {get_text(language, 'load_more')} "
            f"| [s] {get_text(language, 'full_story')} | [e]xport | [r]eset | [q]uit > ",
        )).strip()
        if not command:
            continue

        action, _, argument = command.partition(" ")
        action = action.lower()
        suggestions = orchestrator.script.suggested_options

        if action.isdigit() and 1 <= int(action) <= len(suggestions):
            directive = suggestions[int(action) - 1]
            first_new = len(orchestrator.script.panels) + 1
            print_view(await orchestrator.continue_story(directive), first_new)
        elif action == "c":
            first_new = len(orchestrator.script.panels) + 1
            print_view(await orchestrator.continue_story(argument), first_new)
        elif action == "m":
            more = await orchestrator.load_more_suggestions()
            if not more:
                logger.info("No new suggestions this time")
            print_view(orchestrator.view, len(orchestrator.script.panels) + 1)
        elif action == "s":
            prose = await orchestrator.wait_for_prose()
            print(f"\n=== {get_text(language, 'full_story')} ===")
            print(prose or get_text(language, 'story_unavailable'))
        elif action == "e":
            await orchestrator.wait_for_prose()
            print(f"🌐 View in browser: file://{export_story(orchestrator, output_dir).resolve()}")
        elif action == "r":
            orchestrator.reset()
        elif action == "q":
            return 0


async def run_story(args: argparse.Namespace, config: Config) -> int:
    """Run a story session from parsed arguments."""
    if args.test_connection:
        ok = await GeminiClient(config).test_connection()
        print("✓ Gemini API connection successful" if ok else "✗ Gemini API connection failed")
        return 0 if ok else 1

    logger = logging.getLogger(__name__)
    logger.debug(f"Generation options: {get_generation_options(config)}")
    orchestrator = StoryOrchestrator(config, language=args.lang)
    logger.info(f"Story language: {get_text(orchestrator.language, 'language_name')}")

    if args.topic:
        view = await orchestrator.start_story(args.topic)
        print_view(view)
        if view.status == CycleStatus.ERROR:
            return 1

        for _ in range(args.cycles):
            first_new = len(orchestrator.script.panels) + 1
            view = await orchestrator.continue_story(args.directive or "")
            print_view(view, first_new)
            if view.status == CycleStatus.ERROR:
                return 1

    if args.interactive or not args.topic:
        code = await run_interactive(orchestrator, args.output_dir)
        if code:
            return code

    if args.export and not orchestrator.script.is_empty:
        await orchestrator.wait_for_prose()
        html_path = export_story(orchestrator, args.output_dir)
        print(f"\n📁 Exported to: {html_path.parent}")
        print(f"🌐 View in browser: file://{html_path.resolve()}")

    return 0


def create_parser() -> argparse.ArgumentParser:
    """
    Create command-line argument parser.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        description="Co-write an AI-illustrated comic, two panels at a time",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start a story and continue it interactively
  python -m bananacomics.main --topic "A cyberpunk detective named Kaito"

  # Generate three cycles unattended and export the result
  python -m bananacomics.main --topic "Pirates on Mars" --cycles 2 --export

  # Vietnamese captions and dialogue
  python -m bananacomics.main --topic "Thám tử Kaito" --lang vi

  # Test the API connection only
  python -m bananacomics.main --test-connection
        """,
    )

    parser.add_argument(
        "--topic",
        type=str,
        help="Story topic; starts a new story",
    )

    parser.add_argument(
        "--lang",
        choices=list(SUPPORTED_LANGUAGES),
        help="Language for captions, dialogue and prose (default: from config)",
    )

    parser.add_argument(
        "--cycles",
        type=int,
        default=0,
        help="Continuation cycles to run after the first one (default: 0)",
    )

    parser.add_argument(
        "--directive",
        type=str,
        help="Plot directive used for unattended continuation cycles",
    )

    parser.add_argument(
        "--interactive",
        "-i",
        action="store_true",
        help="Keep going interactively after the unattended cycles",
    )

    parser.add_argument(
        "--export",
        action="store_true",
        help="Export the comic as printable HTML when done",
    )

    parser.add_argument(
        "--output-dir",
        type=Path,
        help="Output directory for exported files",
    )

    parser.add_argument(
        "--test-connection",
        action="store_true",
        help="Test the Gemini API connection and exit",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    parser.add_argument(
        "--config-file",
        type=Path,
        help="Path to configuration file",
    )

    return parser


def main():
    """Main entry point for the application."""
    parser = create_parser()
    args = parser.parse_args()

    # Setup logging
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    try:
        # Load configuration
        config = load_config(env_file=args.config_file)

        # Override with command-line arguments
        if args.lang:
            config.language = args.lang
        if args.output_dir:
            config.output_dir = args.output_dir
        if args.verbose:
            config.debug = True

        # Validate configuration
        validate_config(config)

        return asyncio.run(run_story(args, config))

    except KeyboardInterrupt:
        logger.info("Generation cancelled by user")
        return 130

    except Exception as e:
        logger.error(f"Error generating comic: {e}", exc_info=args.verbose)
        return 1


if __name__ == "__main__":
    sys.exit(main())
