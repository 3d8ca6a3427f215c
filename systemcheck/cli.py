import argparse
import sys
from typing import List, Optional

from systemcheck import log
from systemcheck.__version__ import __version__
from systemcheck.config import Settings, normalize_log_level
from systemcheck.report import gather_report, render

logger = log.get_logger()


def parse_arguments(argv: Optional[List[str]] = None):
    """
    Get command line arguments
    """
    parser = argparse.ArgumentParser(
        prog="systemcheck",
        description="Report the CPU and memory actually available to this process, including cgroup limits",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        help="Verbose output (detailed sections)",
        action="store_true",
    )
    parser.add_argument(
        "--json",
        help="Emit JSON to stdout",
        action="store_true",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level for diagnostics on stderr (default: SYSTEMCHECK_LOG_LEVEL or WARNING)",
        type=normalize_log_level,
        required=False,
        default=None,
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_arguments(argv)
    try:
        settings = Settings.from_env().with_log_level(args.log_level)
    except ValueError as e:
        print(f"systemcheck: {e}", file=sys.stderr)
        return 2

    log.configure_logger(settings.log_level)
    logger.debug(f"Settings: {settings}")

    report = gather_report(settings)
    print(render(report, verbose=args.verbose, as_json=args.json))
    return 0


if __name__ == "__main__":
    sys.exit(main())
