"""DiceMaster CLI entry point."""

import argparse
import logging
import random
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

env_file = Path(__file__).parent.parent / ".env"
load_dotenv(env_file)

from dicemaster import __version__
from dicemaster.config import Settings, get_settings
from dicemaster.engine import DiceMasterError, NotFound, OutcomeRecord
from dicemaster.host import EngineHost
from dicemaster.services.ledger import LedgerError
from dicemaster.storage import append_records, load_snapshot, save_snapshot

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)

CONFIG_TEMPLATE = """# DiceMaster Configuration
# Operational parameters for the local settlement runtime.
# Secrets (e.g. DICEMASTER_LOGFIRE_TOKEN) belong in .env, not here.

game:
  token_symbol: ELF
  min_stake: 1000000
  max_stake: 1000000000

oracle:
  address: oracle

ledger:
  address: token
  engine_address: dicemaster
  owner_address: owner
  treasury_seed: 5000000000
  initial_balances:
    owner: 10000000000
    alice: 1000000000
    bob: 1000000000
"""


def _init_logfire() -> None:
    """Initialize Logfire if available, without failing commands."""
    try:
        from dicemaster.observability import initialize_logfire

        initialize_logfire(get_settings())
    except Exception as e:
        logger.warning(f"Failed to initialize Logfire: {e}")


def _load_host(settings: Settings) -> EngineHost | None:
    snapshot = load_snapshot(settings.data_dir)
    if snapshot is None:
        print(f"\n❌ State file not found in {settings.data_dir}")
        print("Run 'python -m dicemaster init' to create it.\n")
        return None
    return EngineHost(settings, snapshot)


def _save_host(host: EngineHost, settings: Settings) -> None:
    save_snapshot(host.snapshot(), settings.data_dir)
    append_records(host.drain_records(), settings.data_dir)


def cmd_init(args: argparse.Namespace) -> int:
    """Create the data directory, config template and a bootstrapped engine."""
    data_dir = Path("data").resolve()

    try:
        data_dir.mkdir(exist_ok=True)
        (data_dir / "records").mkdir(exist_ok=True)
        logger.info(f"Created data directory: {data_dir}")

        config_path = data_dir / "config.yaml"
        if not config_path.exists():
            config_path.write_text(CONFIG_TEMPLATE)
            logger.info(f"Created config template: {config_path}")
        else:
            logger.info(f"Config file already exists: {config_path}")

        get_settings.cache_clear()
        settings = get_settings()

        if load_snapshot(settings.data_dir) is not None and not args.force:
            logger.info("State file already exists, keeping it")
        else:
            host = EngineHost.bootstrap(settings)
            _save_host(host, settings)

        print(f"\n✓ Data directory initialized at {data_dir}")
        print("\nNext steps:")
        print("1. Review and customize data/config.yaml if needed")
        print("2. Run 'python -m dicemaster play --account alice --stake 1000000 --approve'")
        print("3. Run 'python -m dicemaster fulfill' to roll the dice\n")

        return 0

    except Exception as e:
        logger.error(f"Failed to initialize: {e}")
        print(f"\n❌ Initialization failed: {e}\n")
        return 1


def cmd_config(args: argparse.Namespace) -> int:
    """Display merged configuration."""
    try:
        settings = get_settings()

        print("\n=== DiceMaster Configuration ===\n")
        print(f"Data Directory: {settings.data_dir}\n")

        print("Game:")
        print(f"  Token: {settings.game.token_symbol}")
        print(f"  Min Stake: {settings.game.min_stake:,}")
        print(f"  Max Stake: {settings.game.max_stake:,}\n")

        print("Oracle:")
        print(f"  Address: {settings.oracle.address}")
        print(f"  Signing Keys: {len(settings.oracle.signing_keys)}\n")

        print("Ledger:")
        print(f"  Address: {settings.ledger.address}")
        print(f"  Engine Account: {settings.ledger.engine_address}")
        print(f"  Owner: {settings.ledger.owner_address}")
        print(f"  Funded Accounts: {len(settings.ledger.initial_balances)}\n")

        print(f"Logfire: {'✓ Set' if settings.logfire_token else '✗ Not set'}\n")

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


def cmd_status(args: argparse.Namespace) -> int:
    """Display engine status."""
    try:
        settings = get_settings()
        host = _load_host(settings)
        if host is None:
            return 1

        engine, state = host.engine, host.state
        limits = engine.get_stake_limits()
        pending = [bet for bet in state.account_bets.values() if bet.pending]

        print("\n=== DiceMaster Status ===\n")
        print(f"Height: {host.height}")
        print(f"Owner: {engine.get_owner(state) or '(uninitialized)'}")
        print(f"Ledger: {state.ledger_address or '(unset)'}")
        print(f"Oracle: {state.oracle_address or '(unset)'}")
        print(f"Treasury: {engine.get_treasury_balance():,} {engine.symbol}")
        print(f"Stake Limits: {limits.minimum:,} - {limits.maximum:,}")
        print(f"Subscription Id: {engine.get_subscription_id(state)}")
        print(f"Oracle Key Index: {engine.get_oracle_key_index(state)}\n")

        print(f"Accounts: {len(state.account_bets)}")
        print(f"Pending Bets: {len(pending)}")
        for bet in pending[:5]:
            print(f"  • {bet.account}: {bet.stake:,} at height {bet.request_height}")
        if len(pending) > 5:
            print(f"  ... and {len(pending) - 5} more")
        print(f"Queued Oracle Requests: {len(host.oracle.queued)}\n")

        return 0

    except Exception as e:
        logger.error(f"Failed to read status: {e}")
        print(f"\n❌ Failed to read status: {e}\n")
        return 1


def cmd_play(args: argparse.Namespace) -> int:
    """Place a bet for an account."""
    _init_logfire()

    try:
        settings = get_settings()
        host = _load_host(settings)
        if host is None:
            return 1

        if args.approve:
            host.approve(args.account, args.stake)
        correlation_id = host.place_bet(args.account, args.stake)
        _save_host(host, settings)

        print(f"\n✓ Bet placed: {args.account} staked {args.stake:,}")
        print(f"Request: {correlation_id}")
        print("Run 'python -m dicemaster fulfill' to roll the dice.\n")
        return 0

    except (DiceMasterError, LedgerError) as e:
        print(f"\n❌ Bet rejected: {e}\n")
        return 1
    except Exception as e:
        logger.error(f"Play failed: {e}", exc_info=True)
        print(f"\n❌ Play failed: {e}\n")
        return 1


def cmd_fulfill(args: argparse.Namespace) -> int:
    """Deliver randomness for every queued oracle request."""
    _init_logfire()

    try:
        settings = get_settings()
        host = _load_host(settings)
        if host is None:
            return 1

        settled = host.deliver_fulfillments()
        records = list(host.records)
        _save_host(host, settings)

        print(f"\n✓ Settled {len(settled)} bet(s)\n")
        for record in records:
            if isinstance(record, OutcomeRecord):
                bet = host.engine.get_account_bet(host.state, record.account)
                result = "WIN" if record.delta > 0 else "LOSS"
                print(
                    f"  • {record.account}: {bet.die1}+{bet.die2} -> "
                    f"{result} {record.delta:+,}"
                )
        print()
        return 0

    except Exception as e:
        logger.error(f"Fulfillment failed: {e}", exc_info=True)
        print(f"\n❌ Fulfillment failed: {e}\n")
        return 1


def cmd_bet(args: argparse.Namespace) -> int:
    """Show the current or last bet of an account."""
    try:
        settings = get_settings()
        host = _load_host(settings)
        if host is None:
            return 1

        bet = host.engine.get_account_bet(host.state, args.account)

        print(f"\n=== Bet: {bet.account} ===\n")
        print(f"Stake: {bet.stake:,}")
        print(f"Request Height: {bet.request_height}")
        if bet.pending:
            print("Status: PENDING\n")
        else:
            print(f"Dice: {bet.die1} + {bet.die2} = {bet.total}")
            print(f"Status: {'WON' if bet.won else 'LOST'}\n")
        return 0

    except NotFound as e:
        print(f"\n❌ {e}\n")
        return 1
    except Exception as e:
        logger.error(f"Failed to read bet: {e}")
        print(f"\n❌ Failed to read bet: {e}\n")
        return 1


def cmd_admin(args: argparse.Namespace) -> int:
    """Run an owner-gated action."""
    _init_logfire()

    try:
        settings = get_settings()
        host = _load_host(settings)
        if host is None:
            return 1

        sender = args.sender or settings.ledger.owner_address
        if args.action == "deposit":
            host.approve(sender, int(args.value))
            host.invoke(sender, "deposit", int(args.value))
        elif args.action == "withdraw":
            host.invoke(sender, "withdraw", int(args.value))
        elif args.action == "set-subscription-id":
            host.invoke(sender, "set_subscription_id", int(args.value))
        elif args.action == "set-oracle-key-index":
            host.invoke(sender, "set_oracle_key_index", int(args.value))
        elif args.action == "transfer-ownership":
            host.invoke(sender, "transfer_ownership", args.value)

        _save_host(host, settings)
        print(f"\n✓ {args.action} {args.value} done\n")
        return 0

    except (DiceMasterError, LedgerError) as e:
        print(f"\n❌ {args.action} rejected: {e}\n")
        return 1
    except Exception as e:
        logger.error(f"Admin action failed: {e}", exc_info=True)
        print(f"\n❌ Admin action failed: {e}\n")
        return 1


def cmd_simulate(args: argparse.Namespace) -> int:
    """Run bets and fulfillments against a throwaway in-memory engine."""
    try:
        if args.debug:
            logging.getLogger().setLevel(logging.DEBUG)
        else:
            logging.getLogger().setLevel(logging.WARNING)

        settings = get_settings()
        host = EngineHost.bootstrap(settings)
        rng = random.Random(args.seed)
        limits = host.engine.get_stake_limits()

        players = [f"player{i}" for i in range(args.players)]
        for player in players:
            host.fund(player, limits.maximum * args.rounds)
            host.approve(player, limits.maximum * args.rounds)

        treasury_start = host.engine.get_treasury_balance()
        wins = losses = rejected = 0

        for _ in range(args.rounds):
            for player in players:
                stake = rng.randint(limits.minimum, limits.maximum)
                try:
                    host.place_bet(player, stake)
                except DiceMasterError as e:
                    rejected += 1
                    logger.debug(f"{player} rejected: {e}")
            host.deliver_fulfillments()

        for record in host.drain_records():
            if isinstance(record, OutcomeRecord):
                if record.delta > 0:
                    wins += 1
                else:
                    losses += 1

        treasury_end = host.engine.get_treasury_balance()

        print("\n=== Simulation ===\n")
        print(f"Rounds: {args.rounds} x {len(players)} players")
        print(f"Wins: {wins}")
        print(f"Losses: {losses}")
        print(f"Rejected: {rejected}")
        print(f"Treasury: {treasury_start:,} -> {treasury_end:,} "
              f"({treasury_end - treasury_start:+,})\n")
        return 0

    except Exception as e:
        logger.error(f"Simulation failed: {e}", exc_info=True)
        print(f"\n❌ Simulation failed: {e}\n")
        return 1


def main() -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="DiceMaster: two-dice wager settlement engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"DiceMaster {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    parser_init = subparsers.add_parser(
        "init",
        help="Initialize data directory, configuration and engine state",
    )
    parser_init.add_argument(
        "--force",
        action="store_true",
        help="Re-bootstrap the engine even if a state file exists",
    )
    parser_init.set_defaults(func=cmd_init)

    parser_config = subparsers.add_parser(
        "config",
        help="Display merged configuration",
    )
    parser_config.set_defaults(func=cmd_config)

    parser_status = subparsers.add_parser(
        "status",
        help="Display engine status",
    )
    parser_status.set_defaults(func=cmd_status)

    parser_play = subparsers.add_parser(
        "play",
        help="Place a bet",
    )
    parser_play.add_argument("--account", required=True, help="Betting account")
    parser_play.add_argument("--stake", required=True, type=int, help="Stake in atomic units")
    parser_play.add_argument(
        "--approve",
        action="store_true",
        help="Set the account's allowance to the engine to exactly the stake first",
    )
    parser_play.set_defaults(func=cmd_play)

    parser_fulfill = subparsers.add_parser(
        "fulfill",
        help="Deliver randomness for all queued oracle requests",
    )
    parser_fulfill.set_defaults(func=cmd_fulfill)

    parser_bet = subparsers.add_parser(
        "bet",
        help="Show an account's current or last bet",
    )
    parser_bet.add_argument("--account", required=True, help="Betting account")
    parser_bet.set_defaults(func=cmd_bet)

    parser_admin = subparsers.add_parser(
        "admin",
        help="Run an owner-gated action",
    )
    parser_admin.add_argument(
        "action",
        choices=[
            "deposit",
            "withdraw",
            "set-subscription-id",
            "set-oracle-key-index",
            "transfer-ownership",
        ],
    )
    parser_admin.add_argument("value", help="Amount, id, index or new owner address")
    parser_admin.add_argument("--sender", help="Calling account (defaults to configured owner)")
    parser_admin.set_defaults(func=cmd_admin)

    parser_simulate = subparsers.add_parser(
        "simulate",
        help="Run a throwaway in-memory simulation",
    )
    parser_simulate.add_argument("--rounds", type=int, default=100)
    parser_simulate.add_argument("--players", type=int, default=3)
    parser_simulate.add_argument("--seed", type=int, default=None)
    parser_simulate.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser_simulate.set_defaults(func=cmd_simulate)

    args = parser.parse_args()

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
