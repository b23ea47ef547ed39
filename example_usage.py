#!/usr/bin/env python
"""
Example usage of Banana Comics.

This script demonstrates various ways to drive the story orchestrator.
"""

import asyncio
from pathlib import Path

from bananacomics.config import Config
from bananacomics.gemini_client import GeminiClient
from bananacomics.main import export_story, print_view, setup_logging
from bananacomics.orchestrator import StoryOrchestrator


async def example_basic_story():
    """Start a story and print the first two panels."""
    print("\n=== Basic Story ===")

    setup_logging(verbose=False)

    config = Config(
        gemini_api_key="your_gemini_api_key",  # Set via environment variable
    )

    orchestrator = StoryOrchestrator(config)
    view = await orchestrator.start_story("A cyberpunk detective named Kaito")
    print_view(view)


async def example_guided_story():
    """Steer the plot with directives, then read the full prose."""
    print("\n=== Guided Story ===")

    setup_logging(verbose=True)

    config = Config(
        gemini_api_key="your_gemini_api_key",
        language="vi",  # Vietnamese captions, dialogue and prose
    )

    orchestrator = StoryOrchestrator(config)
    print_view(await orchestrator.start_story("Thám tử Kaito ở Sài Gòn"))

    for directive in ["Một con rồng xuất hiện", "Kaito tỉnh dậy"]:
        first_new = len(orchestrator.script.panels) + 1
        print_view(await orchestrator.continue_story(directive), first_new)

    print(await orchestrator.wait_for_prose())


async def example_suggestions():
    """Follow model-suggested plot twists."""
    print("\n=== Following Suggestions ===")

    setup_logging(verbose=False)

    config = Config(gemini_api_key="your_gemini_api_key")

    orchestrator = StoryOrchestrator(config)
    await orchestrator.start_story("Pirates on Mars")

    # Fetch extra ideas, then pick the last one
    more = await orchestrator.load_more_suggestions()
    print(f"New ideas: {more}")

    choice = orchestrator.script.suggested_options[-1]
    view = await orchestrator.continue_story(choice)
    print_view(view)


async def example_export():
    """Generate a few cycles and export a printable comic."""
    print("\n=== Printable Export ===")

    setup_logging(verbose=False)

    config = Config(
        gemini_api_key="your_gemini_api_key",
        aspect_ratio="1:1",
        max_retries=5,  # More patience with rate limits
        retry_delay=3.0,
    )

    orchestrator = StoryOrchestrator(config)
    await orchestrator.start_story("A haunted lighthouse")
    await orchestrator.continue_story()
    await orchestrator.continue_story("The keeper was a ghost all along")
    await orchestrator.wait_for_prose()

    html_path = export_story(orchestrator, Path("output/lighthouse"))
    print(f"Comic saved to: {html_path}")


async def example_test_connection():
    """Test the connection to the Gemini API."""
    print("\n=== Testing Service Connection ===")

    setup_logging(verbose=True)

    config = Config(gemini_api_key="your_gemini_api_key")

    if await GeminiClient(config).test_connection():
        print("✓ Connection successful!")
    else:
        print("✗ Connection failed. Check the logs.")


if __name__ == "__main__":
    print("Banana Comics - Examples")
    print("=" * 50)

    # NOTE: Set your API key as an environment variable:
    # export GEMINI_API_KEY="your_key_here"

    # Uncomment the example you want to run:

    # asyncio.run(example_basic_story())
    # asyncio.run(example_guided_story())
    # asyncio.run(example_suggestions())
    # asyncio.run(example_export())
    # asyncio.run(example_test_connection())

    print("\nTo run examples, uncomment the desired function call above.")
    print("Make sure to set the GEMINI_API_KEY environment variable.")
