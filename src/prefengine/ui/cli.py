"""CLI for inspecting and editing stored preferences."""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any

from prefengine.common.errors import BackendError
from prefengine.core import PreferenceScope, PreferenceService


def build_service(args: argparse.Namespace) -> PreferenceService:
    config_path = Path(args.config) if args.config else None
    return PreferenceService.from_config(config_path)


def resolve_scope(service: PreferenceService, args: argparse.Namespace) -> PreferenceScope:
    if args.client:
        return service.client(args.namespace, args.client)
    return service.preferences(args.namespace)


def render(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, sort_keys=True)


def parse_value(raw: str, as_json: bool) -> Any:
    if not as_json:
        return raw
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SystemExit(f"Value is not valid JSON: {exc}") from exc


def command_get(args: argparse.Namespace) -> int:
    scope = resolve_scope(build_service(args), args)
    print(render(scope.get(args.name, force_reload=args.force_reload)))
    return 0


def command_set(args: argparse.Namespace) -> int:
    scope = resolve_scope(build_service(args), args)
    value, success = scope.set(args.name, parse_value(args.value, args.json))
    if not success:
        print(f"[set] {scope.namespace()}:{args.name} rejected, keeping {render(value)}")
        return 1
    print(render(value))
    return 0


def command_list(args: argparse.Namespace) -> int:
    scope = resolve_scope(build_service(args), args)
    for name, value in sorted(scope.all().items()):
        print(f"{name} = {render(value)}")
    return 0


def command_remove(args: argparse.Namespace) -> int:
    scope = resolve_scope(build_service(args), args)
    scope.remove(*args.names)
    print(f"Removed {len(args.names)} preference(s) from {scope.namespace()}")
    return 0


def command_timestamp(args: argparse.Namespace) -> int:
    scope = resolve_scope(build_service(args), args)
    print(scope.timestamp(args.name))
    return 0


def command_register_client(args: argparse.Namespace) -> int:
    service = build_service(args)
    service.remote_store.register_client(args.client_id, args.account_id)
    print(f"Registered client {args.client_id} for account {args.account_id}")
    return 0


def _add_scope_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("namespace", help="Preference namespace (e.g. server, plugin.extensions)")
    parser.add_argument("--client", help="Client id; omit for global preferences")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prefengine", description="Namespaced preference store inspector"
    )
    parser.add_argument("--config", help="Engine config JSON (defaults to config/prefengine.json)")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    subparsers = parser.add_subparsers(dest="command")

    get = subparsers.add_parser("get", help="Print a preference value as JSON")
    _add_scope_arguments(get)
    get.add_argument("name")
    get.add_argument("--force-reload", action="store_true", help="Re-read from the remote store")
    get.set_defaults(func=command_get)

    set_ = subparsers.add_parser("set", help="Set a preference value")
    _add_scope_arguments(set_)
    set_.add_argument("name")
    set_.add_argument("value")
    set_.add_argument("--json", action="store_true", help="Parse VALUE as JSON (lists, objects, numbers)")
    set_.set_defaults(func=command_set)

    list_ = subparsers.add_parser("list", help="List all public preferences of a scope")
    _add_scope_arguments(list_)
    list_.set_defaults(func=command_list)

    remove = subparsers.add_parser("remove", help="Remove one or more preferences")
    _add_scope_arguments(remove)
    remove.add_argument("names", nargs="+")
    remove.set_defaults(func=command_remove)

    timestamp = subparsers.add_parser("timestamp", help="Print the last-modified time of a preference")
    _add_scope_arguments(timestamp)
    timestamp.add_argument("name")
    timestamp.set_defaults(func=command_timestamp)

    register = subparsers.add_parser("register-client", help="Bind a client to an account (remote mode)")
    register.add_argument("client_id")
    register.add_argument("account_id")
    register.set_defaults(func=command_register_client)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 0
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")
    try:
        return args.func(args)
    except BackendError as exc:
        print(f"[error] {exc}")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
