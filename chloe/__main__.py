"""
Chloe CLI entry point.

Provides command-line interface for running the bot and utility commands.
"""

import argparse
import asyncio
import sys
from datetime import datetime, timezone
from pathlib import Path

from chloe import __version__
from chloe.config.logging import get_logger, setup_logging
from chloe.config.settings import Settings, load_settings
from chloe.errors import ChloeError


def create_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser."""
    parser = argparse.ArgumentParser(
        prog="chloe",
        description="Discord chat bot with LLM tool calling",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Chloe {__version__}",
    )

    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to .env file (default: .env in current directory)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override logging level from config",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("run", help="Run the Discord bot")
    subparsers.add_parser("config", help="Show current configuration")

    ask_parser = subparsers.add_parser(
        "ask",
        help="Run a single turn from the terminal (no Discord connection)",
    )
    ask_parser.add_argument("message", help='Message to answer, e.g. "what is 17 * 23?"')
    ask_parser.add_argument(
        "--speaker",
        default="cli",
        help="Name the message is attributed to (default: cli)",
    )
    ask_parser.add_argument(
        "--no-tools",
        action="store_true",
        help="Do not offer any tools to the model",
    )

    return parser


def cmd_config(settings: Settings) -> int:
    """Show current configuration."""
    logger = get_logger(__name__)

    def key_state(value: str) -> str:
        return "Set" if value else "Not set"

    logger.info("\n=== Chloe Configuration ===\n")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Log Level: {settings.log_level}")
    logger.info(f"Log File: {settings.log_file or 'None (console only)'}")
    logger.info(f"Prompt File: {settings.prompt_path}")
    logger.info(f"\nBot Name: {settings.bot.name} (persona: {settings.bot.persona_name})")
    logger.info(f"Bot Token: {key_state(settings.bot.token)}")
    logger.info(f"Allowed Channels: {settings.bot.allowed_channel_ids or 'all'}")
    logger.info(f"Trigger Words: {', '.join(settings.bot.trigger_words) or 'none'}")
    logger.info(f"Unsolicited Reply Chance: {settings.bot.unsolicited_reply_chance:.0%}")
    logger.info(f"\nLLM Provider: {settings.llm.provider or 'auto-detect'}")
    logger.info(f"LLM Model: {settings.llm.model or 'provider default'}")
    logger.info(f"Groq API Key: {key_state(settings.llm.groq_api_key)}")
    logger.info(f"OpenRouter API Key: {key_state(settings.llm.openrouter_api_key)}")
    logger.info(f"z.AI API Key: {key_state(settings.llm.zai_api_key)}")
    logger.info(f"\nMax Tool Depth: {settings.orchestrator.max_tool_depth}")
    logger.info(f"Tool-only Replies: {settings.orchestrator.tool_only}")
    logger.info(
        f"Context: reply chain {settings.context.max_reply_chain}, "
        f"history below {settings.context.supplement_threshold} "
        f"(fetch {settings.context.history_fetch_limit}, keep {settings.context.history_max_messages})"
    )
    logger.info(
        f"LLM Rate Limit: {settings.rate_limit.llm_max_concurrent} concurrent, "
        f"{settings.rate_limit.llm_min_interval_ms}ms per channel"
    )
    logger.info(f"\nExa API Key: {key_state(settings.tools.exa_api_key)}")
    logger.info(f"Image Model: {settings.tools.image_model}")

    return 0


def cmd_run(settings: Settings) -> int:
    """Start the Discord bot."""
    logger = get_logger(__name__)

    if not settings.bot.token:
        logger.error(
            "Discord bot token not set. Add BOT__TOKEN=<your-token> to your .env file."
        )
        return 1

    from chloe.bot import ChloeBot

    bot = ChloeBot(settings)
    logger.info(f"Starting {settings.bot.name}...")
    # log_handler=None: disable discord.py's default logging setup and use ours
    bot.run(settings.bot.token, log_handler=None)
    return 0


async def cmd_ask(args, settings: Settings) -> int:
    """
    Answer one message from the terminal.

    Runs the same orchestration as the bot with an empty conversation and no
    side channel: the Discord tools are left out and the tool-only policy is
    off, so the answer comes back as plain text.
    """
    logger = get_logger(__name__)

    from chloe.config.prompt_store import PromptStore
    from chloe.context.models import ConversationContext, Participant
    from chloe.context.prompt import PromptBuilder
    from chloe.llm.models import TurnState
    from chloe.llm.orchestrator import Orchestrator
    from chloe.llm.providers import create_provider
    from chloe.text.sanitizer import extract_image_markers
    from chloe.tools.defaults import create_tool_registry
    from chloe.tools.registry import ToolRegistry
    from chloe.utils.rate_limiter import create_api_rate_limiter, create_llm_rate_limiter

    try:
        provider = create_provider(settings.llm)
    except ChloeError as e:
        print(f"\nProvider error: {e.message}", file=sys.stderr)
        print("Tip: Set LLM__OPENROUTER_API_KEY, LLM__ZAI_API_KEY or LLM__GROQ_API_KEY in your .env file.",
              file=sys.stderr)
        return 1

    prompt_store = PromptStore(settings.prompt_path)
    await prompt_store.reload()

    if args.no_tools:
        registry = ToolRegistry(timeout=settings.orchestrator.tool_timeout)
    else:
        registry = create_tool_registry(
            settings,
            api_rate_limiter=create_api_rate_limiter(settings.rate_limit),
            include_discord=False,
        )

    orchestrator_settings = settings.orchestrator.model_copy(update={"tool_only": False})
    orchestrator = Orchestrator(
        provider=provider,
        registry=registry,
        prompt_builder=PromptBuilder(prompt_store, persona_name=settings.bot.persona_name, tool_only=False),
        rate_limiter=create_llm_rate_limiter(settings.rate_limit),
        settings=orchestrator_settings,
    )

    context = ConversationContext(
        channel_id=0,
        message_id=int(datetime.now(timezone.utc).timestamp() * 1000),
        current_speaker=args.speaker,
        current_speaker_id=1,
        current_text=args.message,
        participant_directory=(
            Participant(id=1, display_name=args.speaker),
            Participant(id=0, display_name=settings.bot.persona_name, is_assistant=True),
        ),
    )

    logger.info(f"Sending to {provider.name} ({provider.default_model})...")
    async with registry:
        result = await orchestrator.run_turn(context)

    text, images = extract_image_markers(result.raw_text)
    print(f"\n=== {settings.bot.persona_name} ===")
    print(f"{args.speaker}: {args.message}\n")
    print(text)
    if images:
        print(f"\n[{len(images)} image(s) generated]")

    if result.tool_calls:
        print("\n--- Tool Calls ---")
        for call in result.tool_calls:
            status = "ok" if call.succeeded else "failed"
            print(f"  {call.name}({call.parameters}) [{status}] → {call.result_text[:200]}")

    print(f"\nState: {result.state.value} | Tokens: {result.usage.total_tokens} "
          f"(prompt {result.usage.prompt_tokens} + completion {result.usage.completion_tokens})")

    return 0 if result.state is TurnState.COMPLETED else 1


def main() -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    # Load settings
    try:
        settings = load_settings(env_file=args.env_file)
    except Exception as e:
        print(f"Error loading settings: {e}", file=sys.stderr)
        return 1

    # Override log level if specified
    if args.log_level:
        settings.log_level = args.log_level

    setup_logging(settings)

    if args.command == "config":
        return cmd_config(settings)
    elif args.command == "run":
        return cmd_run(settings)
    elif args.command == "ask":
        return asyncio.run(cmd_ask(args, settings))
    else:
        # Default: show help
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
