"""Command line interface.

    swim update-port [CONTAINER] -p IP:HOST:CONTAINER [-p ...] [-i IMAGE] [-c NAME] [-t SECONDS] [-f]

Running ``swim`` without a command is the same as ``swim update-port``.
Without CONTAINER an interactive picker lists the running containers.
"""
import argparse
import sys

import structlog

from swim import __version__
from swim.config import DEFAULT_STOP_TIMEOUT, LOG_LEVEL_ENV, MigrationConfig, default_log_level
from swim.engine import DockerEngine
from swim.errors import EngineError, InputError, SelectionAborted
from swim.log import LOG_LEVELS, configure_logging
from swim.migrate import Migrator
from swim.picker import run_picker
from swim.selector import select_container

log = structlog.get_logger(__name__)

COMMANDS = ("update-port",)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def non_negative_int(value):
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}") from None
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value!r}")
    return number


def split_ports(values):
    """Flatten ``-p a -p b,c`` into ``[a, b, c]``."""
    return [port.strip() for value in values or () for port in value.split(",")]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="swim", description="A CLI tool to manage Docker containers")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    update = commands.add_parser(
        "update-port",
        help="Update the port mappings of a running Docker container",
        description="Snapshot a running container and recreate it with new port mappings. "
                    "The source container is removed before its replacement is created.",
    )
    update.add_argument("container_id", nargs="?", metavar="CONTAINER",
                        help="id, id prefix or name of the container (pick interactively if omitted)")
    update.add_argument("-p", "--ports", action="append", required=True, metavar="IP:HOST:CONTAINER",
                        help="port mapping to publish, e.g. 0.0.0.0:8080:80 or 127.0.0.1:5353:53/udp; "
                             "repeat or separate with commas")
    update.add_argument("-i", "--image", dest="image_name",
                        help="name for the snapshot image (default is a random pet name)")
    update.add_argument("-c", "--container", dest="container_name",
                        help="name for the new container (default is a random pet name)")
    update.add_argument("-t", "--timeout", dest="stop_timeout", type=non_negative_int, default=DEFAULT_STOP_TIMEOUT,
                        help="seconds to wait for the container to stop before killing it (default: %(default)s)")
    update.add_argument("-f", "--force", dest="force_overwrite", action="store_true",
                        help="discard the container's existing port bindings instead of keeping them")
    update.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS, default=default_log_level(),
                        help="log verbosity on stderr (default: %(default)s, or $SWIM_LOG_LEVEL)")
    update.set_defaults(func=update_port)
    return parser


def update_port(args, engine_factory=None, picker=None) -> int:
    engine_factory = engine_factory or DockerEngine.from_env
    picker = picker or run_picker
    configure_logging(args.log_level)
    config = MigrationConfig.from_strings(
        split_ports(args.ports),
        image_name=args.image_name,
        container_name=args.container_name,
        stop_timeout=args.stop_timeout,
        force_overwrite=args.force_overwrite,
    )

    with engine_factory() as engine:
        container_id = args.container_id
        if not container_id:
            container_id = select_container(engine.list_running(), picker)
        result = Migrator(engine, config).run(container_id)

    ports = ", ".join(str(port) for port in result.ports) or "none"
    print(f"Container {result.container_name} ({result.container_id[:12]}) started with new port mappings: {ports}")
    return EXIT_OK


def main(argv=None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv or (argv[0] not in COMMANDS and argv[0] not in ("-h", "--help", "--version")):
        argv.insert(0, "update-port")

    parser = build_parser()
    args = parser.parse_args(argv)
    if args.log_level not in LOG_LEVELS:
        parser.error(f"invalid ${LOG_LEVEL_ENV} value {args.log_level!r} (choose from {', '.join(LOG_LEVELS)})")

    try:
        return args.func(args)
    except InputError as e:
        sys.stderr.write(f"swim: error: {e}\n")
        return EXIT_USAGE
    except SelectionAborted as e:
        sys.stderr.write(f"swim: {e}. Exiting.\n")
        return EXIT_FAILURE
    except EngineError as e:
        log.debug("Aborted", step=e.step, exc_info=e)
        sys.stderr.write(f"swim: error: {e}\n")
        return EXIT_FAILURE
