"""piphos command line.

    piphos ping [-b BEACON]              print the public IP
    piphos push [-b BEACON] [-t TENDER]  store this host's public IP
    piphos pull [-t TENDER]              print every stored host
    piphos watch [--interval SECONDS]    push on a schedule

The tender token comes from PIPHOS_GITHUB_TOKEN (or GITHUB_TOKEN) or the
"token" key of the config file.
"""

import argparse
import functools
import logging
import os
import sys
from datetime import datetime

from apscheduler.schedulers.blocking import BlockingScheduler

from . import __version__, commands
from .beacon import BEACONS
from .config import load_settings, save_gist_id, settings_as_dict
from .errors import ConfigError, PiphosError

logger = logging.getLogger("piphos")


def _add_beacon_flag(parser):
    parser.add_argument("-b", "--beacon", help=f"beacon to use ({', '.join(sorted(BEACONS))}; random if unset)")


def _add_tender_flags(parser):
    parser.add_argument("-t", "--tender", help=f"tender to use ({', '.join(sorted(commands.TENDERS))})")
    parser.add_argument("--gist-id", help="gist to use instead of searching for it")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="piphos",
        description="Track dynamic public IP addresses in a private GitHub gist.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="more logging (repeatable)")
    sub = parser.add_subparsers(dest="command", metavar="<command>")

    ping = sub.add_parser("ping", help="check public IP using a beacon")
    _add_beacon_flag(ping)

    push = sub.add_parser("push", help="push public IP to a tender")
    _add_beacon_flag(push)
    _add_tender_flags(push)
    push.add_argument("--hostname", help="name to store the IP under (default: system hostname)")

    pull = sub.add_parser("pull", help="pull the stored hostname -> IP map from a tender")
    _add_tender_flags(pull)

    watch = sub.add_parser("watch", help="push public IP every --interval seconds")
    _add_beacon_flag(watch)
    _add_tender_flags(watch)
    watch.add_argument("--hostname", help="name to store the IP under (default: system hostname)")
    watch.add_argument("--interval", type=int, help="seconds between pushes (default: PIPHOS_INTERVAL or 300)")

    sub.add_parser("help", help="print this help message")
    return parser


def configure_logging(verbosity):
    level = os.environ.get("PIPHOS_LOG_LEVEL", "WARNING").upper()
    if verbosity == 1:
        level = "INFO"
    elif verbosity > 1:
        level = "DEBUG"
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(f"PIPHOS_LOG_LEVEL must be a logging level name, got {level!r}")
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def apply_flags(settings, args):
    if getattr(args, "interval", None) is not None and args.interval <= 0:
        raise ConfigError(f"--interval must be positive, got {args.interval}")
    for flag in ("beacon", "tender", "hostname", "gist_id", "interval"):
        value = getattr(args, flag, None)
        if value:
            setattr(settings, flag, value)
    return settings


# --- COMMANDS ---
def run_ping(settings):
    public_ip = commands.ping(settings.beacon, timeout=settings.timeout)
    print(public_ip)
    return public_ip


def run_push(settings):
    public_ip = commands.ping(settings.beacon, timeout=settings.timeout)
    commands.push(
        settings.tender,
        settings.token,
        settings.hostname,
        public_ip,
        record_id=settings.gist_id,
        on_record_id=functools.partial(save_gist_id, settings),
        timeout=settings.timeout,
    )
    print(public_ip)
    return public_ip


def run_pull(settings):
    hosts = commands.pull(
        settings.tender,
        settings.token,
        record_id=settings.gist_id,
        on_record_id=functools.partial(save_gist_id, settings),
        timeout=settings.timeout,
    )
    for hostname in sorted(hosts):
        print(f"{hostname}: {hosts[hostname]}")
    return hosts


def push_job(settings):
    """One scheduled push. Failures are logged so the schedule keeps running."""
    try:
        public_ip = run_push(settings)
    except PiphosError as exc:
        logger.error("push failed: %s", exc)
        return None
    logger.info("pushed %s for %s", public_ip, settings.hostname)
    return public_ip


def run_watch(settings, scheduler=None):
    scheduler = scheduler or BlockingScheduler()
    scheduler.add_job(
        func=push_job,
        args=(settings,),
        trigger="interval",
        seconds=settings.interval,
        next_run_time=datetime.now(),
        max_instances=1,
        coalesce=True,
    )
    logger.info("pushing every %d seconds, Ctrl-C to stop", settings.interval)
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        scheduler.shutdown(wait=False)


HANDLERS = {
    "ping": run_ping,
    "push": run_push,
    "pull": run_pull,
    "watch": run_watch,
}


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command in (None, "help"):
        parser.print_help()
        return 0 if args.command == "help" else 1

    try:
        configure_logging(args.verbose)
        settings = apply_flags(load_settings(), args)
        logger.debug("settings: %s", settings_as_dict(settings))
        HANDLERS[args.command](settings)
    except PiphosError as exc:
        print(f"piphos {args.command}: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
