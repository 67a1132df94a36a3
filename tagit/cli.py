from __future__ import annotations

import argparse
import signal
import sys
from threading import Event
from typing import Any

from .consul import ConsulClient
from .errors import ConfigError, TagitError
from .events import configure_logging, log_event
from .executor import CmdExecutor
from .settings import load_config_file, parse_interval, settings
from .systemd import OPTIONAL_FIELDS, REQUIRED_FIELDS, UnitFields, render_unit
from .tagger import TagIt


def _add_global_options(p: argparse.ArgumentParser, default: Any) -> None:
    # Accepted before or after the subcommand; the subcommand copies only set a value when given.
    p.add_argument("--config", default=default, help="config file (default is ~/.tagit.yaml)")
    p.add_argument("-c", "--consul-addr", default=default, help="consul address")
    p.add_argument("-t", "--token", default=default, help="consul token")
    p.add_argument("--log-level", default=default, help="log level (default INFO)")


def _add_service_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("-s", "--service-id", help="consul service id")
    p.add_argument("-x", "--script", help="path to script used to generate tags")
    p.add_argument("-p", "--tag-prefix", help="prefix to be added to tags")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="tagit", description="Update consul services with dynamic tags coming from a script")
    _add_global_options(p, None)
    sub = p.add_subparsers(dest="cmd", required=True)

    s_run = sub.add_parser(
        "run",
        help="Run tagit to add tags to a given consul service based on a script output",
        epilog="example: tagit run -s my-super-service -x '/tmp/tag-role.sh'",
    )
    _add_global_options(s_run, argparse.SUPPRESS)
    _add_service_options(s_run)
    s_run.add_argument("-i", "--interval", help="interval to run the script, e.g. 30s or 5m")
    s_run.add_argument("--script-timeout", help="time before the script is killed, e.g. 30s")

    s_clean = sub.add_parser("cleanup", help="Remove all tags with the tag prefix from a given consul service")
    _add_global_options(s_clean, argparse.SUPPRESS)
    _add_service_options(s_clean)

    s_sys = sub.add_parser(
        "systemd",
        help="Generate a systemd service file for tagit",
        epilog="example: tagit systemd --service-id=my-service --script=/path/to/script.sh "
        "--tag-prefix=tagit --interval=5s --user=tagit --group=tagit",
    )
    _add_global_options(s_sys, argparse.SUPPRESS)
    s_sys.add_argument("--service-id", help="ID of the service (required)")
    s_sys.add_argument("--script", help="Path to the script to execute (required)")
    s_sys.add_argument("--tag-prefix", help="Prefix for tags (required)")
    s_sys.add_argument("--interval", help="Interval for script execution (required)")
    s_sys.add_argument("--user", help="User to run the service as (required)")
    s_sys.add_argument("--group", help="Group to run the service as (required)")
    return p


def _option(args: argparse.Namespace, config: dict[str, Any], name: str, default: Any = None) -> Any:
    """Flag, then config file, then environment/default."""
    value = getattr(args, name.replace("-", "_"), None)
    if value is not None:
        return value
    value = config.get(name)
    if value is not None:
        return value
    return default


def _make_tagger(args: argparse.Namespace, config: dict[str, Any], interval_s: float = 0.0) -> tuple[TagIt, ConsulClient]:
    service_id = _option(args, config, "service-id")
    if not service_id:
        raise ConfigError("service-id is required")
    timeout_s = parse_interval(_option(args, config, "script-timeout", settings.script_timeout_s))

    address = _option(args, config, "consul-addr", settings.consul_addr)
    token = _option(args, config, "token", settings.token)
    try:
        client = ConsulClient(str(address), token=token, timeout_s=settings.consul_timeout_s)
    except ValueError as e:
        raise ConfigError(f"failed to create Consul client: {e}") from e

    tagger = TagIt(
        client,
        CmdExecutor(timeout_s=timeout_s),
        service_id=str(service_id),
        script=str(_option(args, config, "script", "") or ""),
        interval_s=interval_s,
        tag_prefix=str(_option(args, config, "tag-prefix", settings.tag_prefix)),
    )
    return tagger, client


def _cmd_run(args: argparse.Namespace, config: dict[str, Any]) -> int:
    if not _option(args, config, "script"):
        raise ConfigError("script is required")
    interval_s = parse_interval(_option(args, config, "interval", settings.interval))
    tagger, client = _make_tagger(args, config, interval_s)

    stop = Event()

    def _on_signal(signum: int, _frame: Any) -> None:
        log_event("INFO", "Received signal, shutting down", signal=signal.Signals(signum).name)
        stop.set()

    previous = {sig: signal.signal(sig, _on_signal) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        tagger.run(stop)
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
        client.close()
    return 0


def _cmd_cleanup(args: argparse.Namespace, config: dict[str, Any]) -> int:
    tagger, client = _make_tagger(args, config)
    try:
        tagger.cleanup_tags()
    finally:
        client.close()
    return 0


def _cmd_systemd(args: argparse.Namespace) -> int:
    flags = {
        name: getattr(args, name.replace("-", "_"), None)
        for name in (n.replace("_", "-") for n in REQUIRED_FIELDS + OPTIONAL_FIELDS)
    }
    try:
        unit = UnitFields.from_flags(flags)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(render_unit(unit))
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level or settings.log_level)

    if args.cmd == "systemd":
        return _cmd_systemd(args)

    try:
        config = load_config_file(args.config)
        if args.cmd == "run":
            return _cmd_run(args, config)
        if args.cmd == "cleanup":
            return _cmd_cleanup(args, config)
    except TagitError as e:
        log_event("ERROR", f"{args.cmd} failed", error_type=type(e).__name__, error=str(e))
        return 1
    return 2


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
