"""
Command-line interface for watch-queue.

Commands:
- start: watch directories and run plugins on changes
- init: write a starter configuration file
- show: print groups, plugins and watch patterns
"""

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from watch_queue.config import ConfigManager
from watch_queue.engine import Engine
from watch_queue.errors import ConfigError
from watch_queue.models import WatchOptions


ENV_FILE_NAME = ".env"


def setup_logging(debug: bool = False) -> None:
    """Configure root logging on stdout."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

    # Suppress verbose watchdog library logging
    logging.getLogger("watchdog.observers.inotify_buffer").setLevel(logging.WARNING)
    logging.getLogger("watchdog.observers").setLevel(logging.WARNING)


def options_from_args(args) -> WatchOptions:
    """Build start-up options from parsed arguments."""
    return WatchOptions(
        clear=getattr(args, "clear", False),
        notify=not getattr(args, "no_notify", False),
        debug=getattr(args, "debug", False),
        group=getattr(args, "group", None) or [],
        plugin=getattr(args, "plugin", None) or [],
        watchdir=getattr(args, "watchdir", None) or [],
        config_file=str(args.config) if args.config else None,
        no_interactions=getattr(args, "no_interactions", False),
        latency=getattr(args, "latency", None),
        force_polling=getattr(args, "force_polling", False),
        wait_for_delay=getattr(args, "wait_for_delay", None),
    )


# =============================================================================
# START COMMAND
# =============================================================================

def cmd_start(args):
    """Watch directories and dispatch changes to plugins."""
    options = options_from_args(args)

    try:
        engine = Engine(options).setup()
    except ConfigError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    return engine.start()


# =============================================================================
# INIT COMMAND
# =============================================================================

def cmd_init(args):
    """Write a starter configuration file."""
    config_manager = ConfigManager(args.config)

    try:
        path = config_manager.write_default(force=args.force)
    except ConfigError as e:
        print(f"⚠️  {e}")
        print("Use --force to overwrite it.")
        return 1
    except OSError as e:
        print(f"❌ Failed to write configuration: {e}", file=sys.stderr)
        return 1

    print(f"✅ Created {path}")
    return 0


# =============================================================================
# SHOW COMMAND
# =============================================================================

def cmd_show(args):
    """Show groups, plugins and watch patterns."""
    options = options_from_args(args)
    options.no_interactions = True

    try:
        engine = Engine(options).setup()
    except ConfigError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    engine.describer.show()
    return 0


# =============================================================================
# MAIN
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="watch-queue",
        description="Run commands when watched files change",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create watchqueue.json in the current directory
  watch-queue init

  # Watch the current directory
  watch-queue start

  # Watch two directories, only run the 'backend' group
  watch-queue start -w src -w lib -g backend

  # Show the configured plugins
  watch-queue show

Signals:
  SIGUSR1 pauses, SIGUSR2 resumes, SIGINT cancels input or stops.
        """
    )

    parser.add_argument("--config", type=Path, default=None, help="Path to configuration file")

    # Also accepted after the subcommand; SUPPRESS keeps a value given before it
    config_parent = argparse.ArgumentParser(add_help=False)
    config_parent.add_argument("--config", type=Path, default=argparse.SUPPRESS, help="Path to configuration file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Start command
    start_parser = subparsers.add_parser("start", parents=[config_parent], help="Start watching")
    start_parser.add_argument("-w", "--watchdir", action="append", help="Directory to watch (repeatable)")
    start_parser.add_argument("-g", "--group", action="append", help="Only run this group (repeatable)")
    start_parser.add_argument("-P", "--plugin", action="append", help="Only run this plugin (repeatable)")
    start_parser.add_argument("-c", "--clear", action="store_true", help="Clear the terminal before each run")
    start_parser.add_argument("-n", "--no-notify", action="store_true", help="Disable notifications")
    start_parser.add_argument("-d", "--debug", action="store_true", help="Debug logging and command tracing")
    start_parser.add_argument("-i", "--no-interactions", action="store_true", help="Disable the interactive shell")
    start_parser.add_argument("-l", "--latency", type=float, help="Observer latency in seconds")
    start_parser.add_argument("-p", "--force-polling", action="store_true", help="Poll instead of native events")
    start_parser.add_argument("-y", "--wait-for-delay", type=float, help="Debounce window in seconds")
    start_parser.set_defaults(func=cmd_start)

    # Init command
    init_parser = subparsers.add_parser("init", parents=[config_parent], help="Write a starter configuration file")
    init_parser.add_argument("--force", action="store_true", help="Overwrite an existing file")
    init_parser.set_defaults(func=cmd_init)

    # Show command
    show_parser = subparsers.add_parser("show", parents=[config_parent], help="Show groups and plugins")
    show_parser.set_defaults(func=cmd_show)

    return parser


def main(argv=None):
    """CLI entry point."""
    # WATCH_QUEUE_NOTIFY may also be set in ./.env
    env_file = Path.cwd() / ENV_FILE_NAME
    if env_file.exists():
        load_dotenv(env_file)

    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(debug=getattr(args, "debug", False))

    if hasattr(args, 'func'):
        return args.func(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
