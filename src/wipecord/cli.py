"""
Command Line Interface

Connects to Chrome, waits for the Discord login, confirms with the operator
and runs the wipe engine with a progress display.

Usage:
    wipecord --channel https://discord.com/channels/<server>/<channel>
    wipecord --mode search --server https://discord.com/channels/<server> --author alice
    wipecord --launch --limit 50 --yes
"""

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn
from rich.prompt import Confirm, Prompt

from . import __version__
from .config_manager import ConfigManager
from .controller import RunOptions, RunSummary, wipe
from .errors import InteractionException, WipecordError
from .pagination import SCAN, SEARCH, STRATEGY_KINDS
from .selector_resolver import SelectorResolver
from .sequencer import MessageOutcome
from .session import BrowserSession
from .timing import Settler

logger = logging.getLogger(__name__)

console = Console()

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_DECLINED = 2


def setup_logging(verbose: bool = False, log_dir: Path = Path("logs")):
    """Log to logs/wipecord.log and to the console"""
    log_dir.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_dir / "wipecord.log")
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[
            file_handler,
            RichHandler(console=console, show_path=False),
        ],
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="wipecord",
        description="Wipe (edit to blank) and delete your own Discord messages via the web UI",
    )
    parser.add_argument(
        "--mode",
        choices=STRATEGY_KINDS,
        default=SCAN,
        help="scan: walk the open channel; search: visit results of a from:<author> search",
    )
    parser.add_argument("--channel", type=str, help="Channel URL to open (scan mode)")
    parser.add_argument("--server", type=str, help="Server URL to search in (search mode)")
    parser.add_argument("--author", type=str, help="Your username, for the search filter")
    parser.add_argument(
        "--limit",
        type=int,
        default=0,
        help="Stop after this many deleted messages (default: 0 = unlimited)",
    )
    parser.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    parser.add_argument("--port", type=int, help="Chrome remote debugging port (default: 9222)")
    parser.add_argument("--launch", action="store_true", help="Launch Chrome instead of attaching")
    parser.add_argument("--chrome", type=str, help="Path to the Chrome executable (with --launch)")
    parser.add_argument("--config", type=str, help="Path to config.json")
    parser.add_argument("--selectors", type=str, help="Path to a YAML selector table")
    parser.add_argument(
        "--show-media",
        action="store_true",
        help="Load images and media (blocked by default to speed up the run)",
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return parser.parse_args(argv)


def build_options(args: argparse.Namespace) -> RunOptions:
    """
    Turn parsed arguments into validated run options

    Raises:
        ValueError: On inconsistent arguments
    """
    options = RunOptions(
        mode=args.mode,
        target=args.channel,
        server=args.server,
        author=args.author,
        limit=args.limit,
        auto_confirm=args.yes,
    )
    options.validate()
    return options


class ProgressReporter:
    """Render per-message outcomes as a rich progress display"""

    def __init__(self, progress: Progress, limit: int):
        self.progress = progress
        self.processed = 0
        self.failed = 0
        self.task = progress.add_task(
            "Wiping & deleting",
            total=limit or None,
            failed=0,
        )

    def __call__(self, outcome: MessageOutcome):
        if outcome.success:
            self.processed += 1
        else:
            self.failed += 1
        self.progress.update(self.task, completed=self.processed, failed=self.failed)


def render_summary(summary: RunSummary):
    if summary.interrupted:
        reason = "interrupted"
    elif summary.limit_reached:
        reason = "limit reached"
    else:
        reason = "no more messages found"

    console.print(
        Panel(
            f"Processed: [green]{summary.processed_count}[/green] messages\n"
            f"Failed:    [red]{summary.failed_count}[/red] messages\n"
            f"Stopped:   {reason}",
            title="✅ Complete",
            expand=False,
        )
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point for CLI"""
    args = parse_args(argv)
    setup_logging(args.verbose)

    config = ConfigManager(args.config)

    try:
        options = build_options(args)
    except ValueError as e:
        console.print(f"[red]❌ {e}[/red]")
        return EXIT_ERROR

    try:
        resolver = SelectorResolver.from_yaml(args.selectors or config.get_selectors_path())
    except WipecordError as e:
        logger.error(f"❌ {e}")
        return EXIT_ERROR

    settler = Settler(config.get_settle_timings())
    session = BrowserSession(port=args.port or config.get_cdp_port(), settler=settler)
    discord_url = config.get_discord_url()

    try:
        if args.launch:
            session.launch(
                args.chrome or config.get_chrome_path(),
                config.get_user_data_dir(),
                discord_url,
            )
        session.connect()

        if config.get_block_media() and not args.show_media:
            try:
                session.block_media()
            except InteractionException as e:
                logger.warning(f"Could not block media requests: {e}")

        if "discord.com" not in session.current_url():
            logger.info("🌐 Navigating to Discord...")
            session.navigate(discord_url)
            settler.wait("navigation")

        session.wait_for_login(resolver, timeout=config.get_login_timeout())

        if options.mode == SCAN and not options.target and not options.auto_confirm:
            channel = Prompt.ask(
                "Enter Discord channel URL (or press Enter to use current page)", default=""
            )
            options.target = channel.strip() or None

        if options.mode == SEARCH:
            console.print(f"Searching [bold]{options.server}[/bold] for messages from {options.author}")

        if not options.auto_confirm and not Confirm.ask(
            "⚠️  This will WIPE and DELETE your messages. Continue?", default=False
        ):
            console.print("❌ Cancelled.")
            return EXIT_DECLINED

        with Progress(
            SpinnerColumn(),
            TextColumn("{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TextColumn("[red]{task.fields[failed]} failed"),
            console=console,
        ) as progress:
            reporter = ProgressReporter(progress, options.limit)
            summary = wipe(session, resolver, settler, options, listeners=(reporter,))

        render_summary(summary)
        return EXIT_OK

    except WipecordError as e:
        logger.error(f"❌ {e}")
        return EXIT_ERROR
    except KeyboardInterrupt:
        console.print("❌ Cancelled.")
        return EXIT_DECLINED
    finally:
        session.close()


if __name__ == "__main__":
    sys.exit(main())
