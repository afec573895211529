"""Command line entry point: ``python -m configwatch PATH [PATH ...]``."""
import argparse
import logging
import sys

from configwatch import config
from configwatch.errors import BackendAddError
from configwatch.errors import BackendInitError
from configwatch.watcher import Watcher

from typing import List, Optional, IO  # noqa


LOGGER = logging.getLogger('configwatch.cli')

EXIT_CHANGED = 0
EXIT_TIMEOUT = 1
EXIT_WATCH_FAILED = 2
EXIT_INTERRUPTED = 130


def create_parser():
    # type: () -> argparse.ArgumentParser
    parser = argparse.ArgumentParser(
        prog='configwatch',
        description='Print a line whenever one of the given files changes.')
    parser.add_argument('paths', nargs='+', metavar='PATH')
    parser.add_argument('--timeout', type=float, default=None,
                        help='Give up after this many seconds without a '
                             'change.')
    parser.add_argument('--once', action='store_true',
                        help='Exit after the first change.')
    parser.add_argument('--debug', action='store_true',
                        help='Enable debug logging.')
    return parser


def main(argv=None, out=None):
    # type: (Optional[List[str]], Optional[IO[str]]) -> int
    args = create_parser().parse_args(argv)
    out = out or sys.stdout
    config.setup_logging(logging.DEBUG if args.debug else None)
    try:
        watcher = Watcher()
    except BackendInitError as e:
        out.write('error: %s\n' % e)
        return EXIT_WATCH_FAILED
    with watcher:
        with watcher.subscribe() as waiter:
            try:
                watcher.add_paths(args.paths)
            except BackendAddError as e:
                out.write('error: %s\n' % e)
                return EXIT_WATCH_FAILED
            try:
                while True:
                    if not waiter.wait(args.timeout):
                        return EXIT_TIMEOUT
                    out.write('changed\n')
                    out.flush()
                    if args.once:
                        return EXIT_CHANGED
            except KeyboardInterrupt:
                LOGGER.debug("Interrupted")
                return EXIT_INTERRUPTED


if __name__ == '__main__':
    sys.exit(main())
