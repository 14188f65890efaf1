"""Triviaboard CLI entry point."""

import argparse
import json
import logging
import sys
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

env_file = Path(__file__).parent.parent / ".env"
load_dotenv(env_file)

from triviaboard import __version__
from triviaboard.config import get_settings
from triviaboard.persistence import load_snapshot_file
from triviaboard.ranking import DataIncompleteError, LeaderboardData, build_leaderboard

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)

MOVEMENT_MARKERS = {"up": "▲", "down": "▼", "same": "-", "new": "NEW"}

CONFIG_TEMPLATE = """# Triviaboard Configuration
# Operational parameters only. Tokens and operator identity belong in .env.

leaderboard:
  recent_completed_hours: 48   # completed events stay on the public page this long
  max_points: 1000
  max_decimal_places: 2

realtime:
  highlight_seconds: 2.5       # how long a remotely changed cell stays highlighted
  queue_size: 100
  global_channel: global
  channel_prefix: "event:"

server:
  host: 0.0.0.0
  port: 8000
  allowed_origins:
    - http://localhost:3000
  log_level: INFO
"""


def _mask(value: str) -> str:
    return "✓ Set" if value else "✗ Not set"


def cmd_init(args: argparse.Namespace) -> int:
    """Initialize data directory and configuration template."""
    data_dir = Path("data").resolve()

    try:
        data_dir.mkdir(exist_ok=True)
        logger.info(f"Created data directory: {data_dir}")

        config_path = data_dir / "config.yaml"
        if not config_path.exists():
            config_path.write_text(CONFIG_TEMPLATE, encoding="utf-8")
            logger.info(f"Created config template: {config_path}")
        else:
            logger.info(f"Config file already exists: {config_path}")

        print(f"\n✓ Data directory initialized at {data_dir}")
        print("\nNext steps:")
        print("1. Copy .env.example to .env and set OPERATOR_ID and tokens")
        print("2. Review and customize data/config.yaml if needed")
        print("3. Run 'python -m triviaboard config' to verify configuration")
        print("4. Run 'python -m triviaboard serve' to start the relay\n")

        return 0

    except OSError as e:
        logger.error(f"Failed to initialize: {e}")
        print(f"\n❌ Initialization failed: {e}\n")
        return 1


def cmd_config(args: argparse.Namespace) -> int:
    """Display merged configuration."""
    try:
        settings = get_settings()

        print("\n=== Triviaboard Configuration ===\n")
        print(f"Data Directory: {settings.data_dir}\n")

        print("Operator:")
        print(f"  ID: {settings.operator_id or '(not set)'}")
        print(f"  Name: {settings.operator_name or '(not set)'}\n")

        print("Leaderboard:")
        print(f"  Recent Completed Window: {settings.leaderboard.recent_completed_hours}h")
        print(f"  Max Points: {settings.leaderboard.max_points}")
        print(f"  Max Decimal Places: {settings.leaderboard.max_decimal_places}\n")

        print("Realtime:")
        print(f"  Highlight Duration: {settings.realtime.highlight_seconds}s")
        print(f"  Subscriber Queue Size: {settings.realtime.queue_size}")
        print(f"  Global Channel: {settings.realtime.global_channel}")
        print(f"  Event Channel Prefix: {settings.realtime.channel_prefix}\n")

        print("Server:")
        print(f"  Listen: {settings.server.host}:{settings.server.port}")
        print(f"  Allowed Origins: {', '.join(settings.server.allowed_origins)}\n")

        print("Persistence API:")
        print(f"  URL: {settings.persistence_api_url}")
        print(f"  Token: {_mask(settings.persistence_api_token)}\n")

        print(f"Logfire: {_mask(settings.logfire_token)}\n")

        return 0

    except ValidationError as e:
        print("\n❌ Configuration Error:\n")
        for error in e.errors():
            print(f"  • {'.'.join(str(x) for x in error['loc'])}: {error['msg']}")
        print()
        return 1
    except Exception as e:
        logger.error(f"Failed to load config: {e}")
        print(f"\n❌ Failed to load configuration: {e}\n")
        return 1


def format_leaderboard(leaderboard: LeaderboardData) -> str:
    """Render a leaderboard as a plain-text table."""
    lines = [
        f"=== {leaderboard.event.name or leaderboard.event.id} ({leaderboard.event.status}) ===",
        f"Round {leaderboard.current_round or '-'} of {leaderboard.total_rounds}, "
        f"last completed: {leaderboard.last_completed_round or '-'}",
        "",
        f"{'Rank':<6}{'Move':<6}{'Team':<28}{'Total':>10}{'Last':>8}",
    ]
    for ranking in leaderboard.rankings:
        lines.append(
            f"{ranking.rank:<6}{MOVEMENT_MARKERS[ranking.movement]:<6}"
            f"{ranking.team.name[:27]:<28}{ranking.total_score:>10}{ranking.last_round_points!s:>8}"
        )

    highlights = leaderboard.highlights
    if highlights.leader:
        lines.append(f"\nLeader: {highlights.leader.team.name} ({highlights.leader.total})")
    if highlights.surging:
        lines.append(
            f"Surging: {highlights.surging.team.name} (+{highlights.surging.delta})"
        )
    if highlights.tight_race:
        names = " vs ".join(team.name for team in highlights.tight_race.teams)
        lines.append(f"Tight race: {names} ({highlights.tight_race.margin} apart)")
    if highlights.round_hero:
        lines.append(
            f"Round hero: {highlights.round_hero.team.name} "
            f"({highlights.round_hero.points} in round {highlights.round_hero.round_number})"
        )
    return "\n".join(lines)


def cmd_leaderboard(args: argparse.Namespace) -> int:
    """Rank a snapshot file and print the result."""
    path = Path(args.snapshot)
    if not path.exists():
        print(f"\n❌ Snapshot file not found: {path}\n")
        return 1

    try:
        leaderboard = build_leaderboard(load_snapshot_file(path))
    except (DataIncompleteError, ValidationError, ValueError, yaml.YAMLError) as e:
        logger.error(f"Cannot build leaderboard from {path}: {e}")
        print(f"\n❌ Cannot build leaderboard: {e}\n")
        return 1

    if args.json:
        print(json.dumps(leaderboard.model_dump(mode="json", by_alias=True), indent=2))
    else:
        print()
        print(format_leaderboard(leaderboard))
        print()
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the leaderboard and relay server."""
    try:
        import uvicorn

        from triviaboard.api import create_app

        settings = get_settings()
        if args.debug:
            logging.getLogger().setLevel(logging.DEBUG)

        print("\n=== Triviaboard Server ===\n")
        print(f"Version: {__version__}")
        print(f"Listening on {settings.server.host}:{args.port or settings.server.port}\n")

        uvicorn.run(
            create_app(settings),
            host=settings.server.host,
            port=args.port or settings.server.port,
            log_level=settings.server.log_level.lower(),
        )
        return 0

    except KeyboardInterrupt:
        print("\n\nReceived interrupt signal. Shutting down...\n")
        return 0
    except Exception as e:
        logger.error(f"Failed to start server: {e}", exc_info=True)
        print(f"\nFailed to start: {e}\n")
        return 1


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Triviaboard: live trivia leaderboard and score broadcast relay",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Triviaboard {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    parser_init = subparsers.add_parser(
        "init",
        help="Initialize data directory and configuration file",
    )
    parser_init.set_defaults(func=cmd_init)

    parser_config = subparsers.add_parser(
        "config",
        help="Display merged configuration",
    )
    parser_config.set_defaults(func=cmd_config)

    parser_leaderboard = subparsers.add_parser(
        "leaderboard",
        help="Rank an event snapshot file (YAML or JSON)",
    )
    parser_leaderboard.add_argument("snapshot", help="Path to the snapshot file")
    parser_leaderboard.add_argument(
        "--json",
        action="store_true",
        help="Print the full leaderboard document as JSON",
    )
    parser_leaderboard.set_defaults(func=cmd_leaderboard)

    parser_serve = subparsers.add_parser(
        "serve",
        help="Run the leaderboard and relay server",
    )
    parser_serve.add_argument("--port", type=int, default=None, help="Override server port")
    parser_serve.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser_serve.set_defaults(func=cmd_serve)

    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
