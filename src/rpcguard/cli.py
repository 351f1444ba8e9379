"""rpcguard-lite CLI entry point.

Usage: rpcguard-lite check --policy policy.json [--blocklist words.txt] ARG...

Each ARG is parsed as JSON ('50', '"ok"', '{"a": [1, 2]}'); anything that
is not valid JSON is taken as a plain string. The call goes through a
function endpoint exactly as a remote call would.

Exit status: 0 forwarded, 1 rejected, 2 bad policy file.
"""
import argparse
import json
import logging
import sys

EXIT_FORWARDED = 0
EXIT_REJECTED = 1
EXIT_CONFIG_ERROR = 2


def _add_check_parser(subparsers: argparse._SubParsersAction) -> None:
    p = subparsers.add_parser(
        "check",
        help="Validate one call's arguments against a policy file.",
    )
    p.add_argument(
        "--policy", required=True,
        help="JSON file with policy options (NumRange, StrRange, ...).",
    )
    p.add_argument(
        "--blocklist", default=None,
        help="Text file of blocked words, one per line (enables FilteringStrings).",
    )
    p.add_argument(
        "--caller", default="cli",
        help="Name of the simulated caller (default: cli)",
    )
    p.add_argument(
        "args", nargs="*", metavar="ARG",
        help="Call arguments as JSON values.",
    )


def _parse_arg(raw: str):
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _run_check(args: argparse.Namespace) -> int:
    from rpcguard.dispatch import EndpointKind, Guard, RemoteEndpoint
    from rpcguard.domain import ConfigError, Session
    from rpcguard.strings import BlocklistFilter

    try:
        with open(args.policy, encoding="utf-8") as f:
            options = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        print(f"Cannot read policy {args.policy}: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    if not isinstance(options, dict):
        print("Policy file must contain a JSON object", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    text_filter = None
    if args.blocklist:
        try:
            with open(args.blocklist, encoding="utf-8") as f:
                text_filter = BlocklistFilter(line.strip() for line in f if line.strip())
        except (OSError, UnicodeDecodeError) as exc:
            print(f"Cannot read blocklist {args.blocklist}: {exc}", file=sys.stderr)
            return EXIT_CONFIG_ERROR

    call_args = [_parse_arg(a) for a in args.args]
    with Guard(text_filter=text_filter) as guard:
        endpoint = RemoteEndpoint("cli-check", EndpointKind.FUNCTION)
        try:
            guard.register(options, endpoint, lambda caller, *a: "ok")
        except ConfigError as exc:
            print(f"Invalid policy: {exc}", file=sys.stderr)
            return EXIT_CONFIG_ERROR
        session = Session.create(args.caller)
        outcome = endpoint.invoke_outcome(session, *call_args)

    if outcome.accepted:
        print("FORWARDED")
        return EXIT_FORWARDED
    where = "" if outcome.arg_index is None else f" at argument {outcome.arg_index}"
    print(f"REJECTED {outcome.reason.name}{where}: {outcome.detail}")
    if session.kick_message is not None:
        print(f"caller kicked: {session.kick_message}")
    return EXIT_REJECTED


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="rpcguard-lite",
        description="Argument validation and abuse mitigation for RPC endpoints.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Log rejections and policy warnings to stderr.",
    )
    subparsers = parser.add_subparsers(dest="command")

    _add_check_parser(subparsers)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "check":
        return _run_check(args)
    return 0


if __name__ == "__main__":
    sys.exit(main())
