"""lazyai command line entry point.

Usage:
  lazyai sdchat "Hello, SkyDeck!"
  lazyai sdchat -c 123 "Continue our previous conversation."
  lazyai sdchat -o "Hello, SkyDeck!"
  git ls-files | lazyai code
  lazyai pr --base main
  lazyai pick-story --link
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from pydantic import ValidationError as SettingsValidationError
from rich.console import Console

from lazyai.commands.pick_story import run_pick_story
from lazyai.commands.prompts import run_code, run_pr
from lazyai.commands.sdchat import ChatCommand, ChatOptions, read_message
from lazyai.config.settings import load_settings
from lazyai.domain.exceptions import BusinessError, ConfigError
from lazyai.infrastructure.logging.logger import logger, setup_logger
from lazyai.infrastructure.storage.yaml_store import YamlConfigStore

SDCHAT_EPILOG = """Configuration:
The command requires an access token and a refresh token to authenticate with the SkyDeck API.
These tokens should be specified in the ~/.lazyai.yml configuration file under the 'skydeck' section:

skydeck:
    accessToken: <your access token>
    refreshToken: <your refresh token>
"""

PICK_STORY_EPILOG = """Configuration:
Ensure your configuration file (~/.lazyai.yml) is set up properly with the following details:

    pivotalTracker:
        apiToken: <your_api_token>
        projectID: <project_ID>
        owner: <your_account_name, e.g. thuanngo>
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lazyai", description="Your personal AiDD helper")
    parser.add_argument("--config", help="Path to the YAML config file (default: ~/.lazyai.yml)")
    parser.add_argument("--verbose", action="store_true", help="Also log to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    sdchat = sub.add_parser(
        "sdchat",
        help="Send a message and get a streaming response from the server",
        epilog=SDCHAT_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sdchat.add_argument("message", nargs="?", help="Message to send (read from stdin when omitted)")
    sdchat.add_argument("-c", "--conversation", type=int, default=0, help="Conversation ID to use for the message")
    sdchat.add_argument(
        "-o",
        "--open",
        action="store_true",
        help="Open the conversation in the default browser instead of streaming the response to the terminal",
    )
    sdchat.add_argument("-n", "--new", action="store_true", help="Chat in a new conversation")

    sub.add_parser("code", help="Generate prompt to ask LLM to implement new features (reads stdin)")

    pr = sub.add_parser("pr", help="Generate Pull Request Description")
    pr.add_argument("--base", help="Diff against this ref instead of the working tree")

    pick = sub.add_parser(
        "pick-story",
        help="Retrieve the description of your active Pivotal Tracker story",
        epilog=PICK_STORY_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    pick.add_argument("-l", "--link", action="store_true", help="Returns only the link of the story")
    return parser


def run(args: argparse.Namespace) -> None:
    try:
        settings = load_settings(args.config)
    except SettingsValidationError as e:
        raise ConfigError(code="INVALID_SETTINGS", message=str(e))
    setup_logger(settings, verbose=args.verbose)
    store = YamlConfigStore(settings.config_file)
    logger.info("cli.start", extra={"extra": {"command": args.command}})

    if args.command == "sdchat":
        message = read_message(args.message, sys.stdin)
        options = ChatOptions(
            conversation_id=args.conversation,
            open_in_browser=args.open,
            new_conversation=args.new,
        )
        ChatCommand(settings, store).run(message, options)
    elif args.command == "code":
        run_code(sys.stdin, sys.stdout)
    elif args.command == "pr":
        run_pr(sys.stdout, base=args.base)
    elif args.command == "pick-story":
        run_pick_story(settings, store, sys.stdout, link=args.link)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        run(args)
    except BusinessError as e:
        logger.error(f"{args.command} failed: {e.message}", extra={"extra": {"code": e.code}})
        Console(stderr=True).print(f"Error [{e.code}]: {e.message}", style="red", markup=False, highlight=False)
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
