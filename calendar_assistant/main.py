"""CLI entry point for the LINE Calendar Assistant.

Runs the same gate -> parse -> dispatch pipeline as the webhook, but reads
messages from the terminal and prints the reply payload instead of sending
it to LINE.  Calendar writes are real.

Usage:
    python -m calendar_assistant.main            # one-to-one chat
    python -m calendar_assistant.main --group    # group chat (trigger word required)
    python -m calendar_assistant.main --debug    # show API calls
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging

from calendar_assistant.calendar_ops import CalendarOperations
from calendar_assistant.config import TRIGGER_WORD
from calendar_assistant.services.calendar_client import GoogleCalendarClient
from calendar_assistant.services.intent_parser import IntentParser
from calendar_assistant.webhook import EventHandler

logger = logging.getLogger(__name__)


def _configure_logging(debug: bool = False) -> None:
    """Set up logging: WARNING by default, DEBUG when --debug is passed."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    )

    if not debug:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
        logging.getLogger("googleapiclient").setLevel(logging.WARNING)

    logging.getLogger("calendar_assistant").setLevel(logging.DEBUG if debug else logging.INFO)


def _render(reply: dict) -> str:
    if reply.get("type") == "text":
        return reply["text"]
    return json.dumps(reply, ensure_ascii=False, indent=2)


def main():
    """Run the interactive CLI chat loop."""
    parser = argparse.ArgumentParser(description="LINE Calendar Assistant CLI")
    parser.add_argument(
        "--debug", action="store_true",
        help="Show all log messages including HTTP requests",
    )
    parser.add_argument(
        "--group", action="store_true",
        help=f"Simulate a group chat (messages must start with {TRIGGER_WORD!r})",
    )
    args = parser.parse_args()

    _configure_logging(debug=args.debug)
    source_type = "group" if args.group else "user"

    print("\n" + "=" * 60)
    print("  LINE Calendar Assistant - CLI")
    print("=" * 60)
    print(f"  Source: {source_type}. Type 'quit' to exit.")
    print("=" * 60 + "\n")

    calendar_client = GoogleCalendarClient()
    handler = EventHandler(IntentParser(), CalendarOperations(calendar_client))

    while True:
        try:
            user_input = input("You: ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\n\nBye!")
            break

        if not user_input:
            continue
        if user_input.lower() in ("exit", "quit", "q"):
            print("\nBye!")
            break

        try:
            reply = asyncio.run(handler.respond(user_input, source_type))
        except KeyboardInterrupt:
            print("\n\nBye!")
            break
        except Exception as e:
            logger.exception("Error processing message")
            print(f"\nBot: something went wrong: {e}\n")
            continue

        if reply is None:
            print("(no reply)\n")
        else:
            print(f"\nBot: {_render(reply)}\n")

    calendar_client.close()


if __name__ == "__main__":
    main()
