from __future__ import annotations

import argparse
import importlib
import logging
import sys
import time
from typing import Callable

from forkguard.config import ConfigError, IsolationConfig, load_config
from forkguard.executor import run_isolated
from forkguard.reconstruct import ProcessHung

from .args import build_parser


class TargetError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


def run_cli(argv: list[str] | None = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)

        if args.verbose:
            logging.basicConfig(
                level=logging.DEBUG,
                format="%(asctime)s %(levelname)s %(name)s: %(message)s",
            )

        match args.command:
            case "run":
                return cmd_run(args)
            case "config":
                return cmd_config(args)
            case _:
                return 2

    except (ConfigError, TargetError, ValueError) as exc:
        print(str(exc), file=sys.stderr)
        return 2

    except KeyboardInterrupt:
        return 130


def cmd_run(args: argparse.Namespace) -> int:
    config = _load(args)
    task = resolve_target(args.target)
    timeout = args.timeout if args.timeout is not None else config.timeout
    if timeout is not None and timeout < 0:
        raise ValueError(f"timeout must be >= 0, got {timeout}")

    start = time.monotonic()
    try:
        run_isolated(task, timeout, config=config)
    except ProcessHung as exc:
        print(f"HUNG {args.target}, {time.monotonic() - start:.3f}s, pid {exc.pid}")
        return 1
    except (Exception, SystemExit) as exc:
        print(
            f"FAIL {args.target}, {time.monotonic() - start:.3f}s, "
            f"{type(exc).__name__}: {exc}"
        )
        return 1

    print(f"OK {args.target}, {time.monotonic() - start:.3f}s")
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    config = _load(args)
    timeout = "none" if config.timeout is None else f"{config.timeout:g}"
    print(f"timeout: {timeout}")
    print(f"poll_interval: {config.poll_interval:g}")
    print(f"grace_period: {config.grace_period:g}")
    print(f"fallback_exit_code: {config.fallback_exit_code}")
    return 0


def resolve_target(target: str) -> Callable[[], object]:
    module_name, sep, attr_path = target.partition(":")
    if not sep or not module_name or not attr_path:
        raise TargetError(f"Target must look like package.module:function, got {target!r}")

    try:
        obj: object = importlib.import_module(module_name)
    except ImportError as exc:
        raise TargetError(f"Cannot import {module_name!r}: {exc}") from exc

    for part in attr_path.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as exc:
            raise TargetError(f"{module_name!r} has no attribute {attr_path!r}") from exc

    if not callable(obj):
        raise TargetError(f"{target} is not callable")

    return obj


def _load(args: argparse.Namespace) -> IsolationConfig:
    if args.config is None:
        return IsolationConfig()
    return load_config(args.config)
