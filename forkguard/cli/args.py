from __future__ import annotations

import argparse


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="forkguard")

    parser.add_argument(
        "--config",
        default=None,
        help="Path to config file (.yml/.yaml, .toml, .json)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log fork, reap and escalation events",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        required=True,
    )

    # run
    run = subparsers.add_parser("run", help="Run a callable in a forked child")
    run.add_argument(
        "target",
        help="Callable to run, as package.module:function",
    )
    run.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds before the child is terminated (overrides config)",
    )

    # config
    subparsers.add_parser("config", help="Show effective isolation settings")

    return parser
