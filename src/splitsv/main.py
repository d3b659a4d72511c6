#!python
import argparse
import logging
import platform
import sys
import time
from typing import List, Optional

from mavis_config import bash_expands

from . import __version__
from . import config as _config
from . import util as _util
from .cluster import main as cluster_main
from .constants import PROGNAME
from .error import ConfigurationError
from .util import filepath

CONFIG_OVERRIDES = {
    'max_threads': 'max_threads',
    'max_split': 'extract.max_split',
    'min_identity': 'extract.min_identity',
    'min_map_quality': 'extract.min_map_quality',
    'clustering_distance': 'cluster.clustering_distance',
    'max_window_size': 'cluster.max_window_size',
    'min_cluster_support': 'cluster.min_cluster_support',
}


def create_parser(argv):
    parser = argparse.ArgumentParser(
        prog=PROGNAME, formatter_class=_config.CustomHelpFormatter, add_help=False
    )
    required = parser.add_argument_group('required arguments')
    optional = parser.add_argument_group('optional arguments')
    optional.add_argument('-h', '--help', action='help', help='show this help message and exit')
    optional.add_argument(
        '-v',
        '--version',
        action='version',
        version='%(prog)s version ' + __version__,
        help='Outputs the version number',
    )
    optional.add_argument('--log', help='redirect stdout to a log file', default=None)
    optional.add_argument(
        '--log_level',
        help='level of logging to output',
        choices=['INFO', 'DEBUG'],
        default='INFO',
    )
    optional.add_argument(
        '--config', '-c', help='path to the JSON config file', type=filepath, default=None
    )
    required.add_argument(
        '-n',
        '--inputs',
        nargs='+',
        help='path to the input SAM/BAM files',
        required=True,
        metavar='FILEPATH',
    )
    required.add_argument(
        '-o', '--output', help='path to the output tab file', required=True, metavar='FILEPATH'
    )
    # thresholds which override the values in the config file
    optional.add_argument('--max_threads', type=int, help='number of extraction threads')
    optional.add_argument(
        '--max_split',
        type=int,
        help='reads split into this many segments or more are ignored',
    )
    optional.add_argument(
        '--min_identity',
        type=_config.float_fraction,
        help='minimum fraction of aligned columns matching the reference for a segment to be used',
    )
    optional.add_argument(
        '--min_map_quality', type=float, help='minimum mapping quality for a segment to be used'
    )
    optional.add_argument(
        '--clustering_distance',
        type=int,
        help='maximum distance (on both loci) between breakpoints of a cluster',
    )
    optional.add_argument(
        '--max_window_size', type=int, help='width of the bins used to index breakpoints'
    )
    optional.add_argument(
        '--min_cluster_support',
        type=int,
        help='minimum number of distinct reads for a cluster to be called',
    )
    return parser, parser.parse_args(argv)


def main(argv: Optional[List[str]] = None):
    """
    sets up the parser and checks the validity of command line args
    loads the config and runs the clustering pipeline

    Args:
        argv: List of arguments, defaults to command line arguments
    """
    if argv is None:  # need to do at run time or patching will not behave as expected
        argv = sys.argv[1:]
    start_time = int(time.time())
    parser, args = create_parser(argv)

    log_conf = {
        'format': '{asctime} [{levelname}] {message}',
        'style': '{',
        'level': args.log_level,
    }

    original_logging_handlers = logging.root.handlers[:]
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)
    if args.log:  # redirect stdout AND stderr to a log file
        log_conf['filename'] = args.log
    logging.basicConfig(**log_conf)

    _util.logger.info(f'{PROGNAME}: {__version__}')
    _util.logger.info(f'hostname: {platform.node()}')
    _util.log_arguments(args)

    try:
        try:
            settings = _config.load_config(
                args.config,
                {key: getattr(args, arg) for arg, key in CONFIG_OVERRIDES.items()},
            )
        except ConfigurationError as err:
            parser.error(f'invalid configuration: {err}')
        # try checking the input files exist
        try:
            inputs = bash_expands(*args.inputs)
        except FileNotFoundError:
            parser.error('--inputs file(s) {} do not exist'.format(args.inputs))

        calls = cluster_main.main(
            inputs=inputs,
            output=args.output,
            settings=settings,
            start_time=start_time,
        )

        duration = int(time.time()) - start_time
        hours = duration - duration % 3600
        minutes = duration - hours - (duration - hours) % 60
        seconds = duration - hours - minutes
        _util.logger.info(
            'run time (hh/mm/ss): {}:{:02d}:{:02d}'.format(hours // 3600, minutes // 60, seconds)
        )
        _util.logger.info(f'run time (s): {duration}')
        return calls
    finally:
        try:
            for handler in logging.root.handlers[:]:
                logging.root.removeHandler(handler)
            for handler in original_logging_handlers:
                logging.root.addHandler(handler)
        except Exception as err:
            print(err)


if __name__ == '__main__':
    main()
