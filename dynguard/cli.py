from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from .config import load_config
from .errors import ConfigError
from .interceptor import Interceptor

HOOK_NAMES = (
    "on_method_call",
    "on_static_call",
    "on_new_instance",
    "on_super_call",
    "on_super_constructor",
    "on_get_property",
    "on_set_property",
    "on_get_attribute",
    "on_set_attribute",
    "on_get_array",
    "on_set_array",
)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dynguard", description="Inspect sandbox policy configs")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARN", "ERROR"],
        default="WARN",
        help="Logging level",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate = subparsers.add_parser(
        "validate",
        help="Load a policy config and build every policy it names.",
    )
    validate.add_argument("config", type=Path, help="Path to the YAML policy config.")
    validate.set_defaults(func=_cmd_validate)

    describe = subparsers.add_parser(
        "describe",
        help="Print the configured policies and the hooks each one overrides as JSON.",
    )
    describe.add_argument("config", type=Path, help="Path to the YAML policy config.")
    describe.set_defaults(func=_cmd_describe)

    return parser


def overridden_hooks(policy: Interceptor) -> list[str]:
    cls = type(policy)
    return [name for name in HOOK_NAMES if getattr(cls, name) is not getattr(Interceptor, name)]


def _cmd_validate(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    policies = config.build()
    print(f"{args.config}: ok ({len(policies)} policies, version {config.version})")
    return 0


def _cmd_describe(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    entries = []
    for spec, policy in zip(config.policies, config.build(), strict=True):
        entries.append(
            {
                "factory": spec.factory,
                "options": sorted(spec.options),
                "type": type(policy).__name__,
                "hooks": overridden_hooks(policy),
            }
        )
    print(json.dumps({"version": config.version, "policies": entries}, indent=2))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper()))
    try:
        return args.func(args)
    except ConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
