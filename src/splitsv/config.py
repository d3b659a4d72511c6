import argparse
import json
from dataclasses import dataclass
from typing import Dict, Optional

from .error import ConfigurationError
from .schemas import DEFAULTS, validate_against_schema
from .util import filepath, logger


def float_fraction(num):
    """
    cast input to a float

    Args:
        num: input to cast

    Returns:
        float

    Raises:
        TypeError: if the input cannot be cast to a float or the number is not between 0 and 1
    """
    try:
        num = float(num)
    except ValueError:
        raise argparse.ArgumentTypeError('Must be a value between 0 and 1')
    if num < 0 or num > 1:
        raise argparse.ArgumentTypeError('Must be a value between 0 and 1')
    return num


@dataclass(frozen=True)
class Settings:
    """
    Thresholds read by the extraction and clustering stages. Built once at startup and never mutated
    """

    max_threads: int = DEFAULTS['max_threads']
    max_split: int = DEFAULTS['extract.max_split']
    min_identity: float = DEFAULTS['extract.min_identity']
    min_map_quality: float = DEFAULTS['extract.min_map_quality']
    clustering_distance: int = DEFAULTS['cluster.clustering_distance']
    max_window_size: int = DEFAULTS['cluster.max_window_size']
    min_cluster_support: int = DEFAULTS['cluster.min_cluster_support']
    mate_distance: int = DEFAULTS['cluster.mate_distance']

    def __post_init__(self):
        if self.max_threads < 1:
            raise ConfigurationError('max_threads must be a positive integer', self.max_threads)
        if self.max_split < 2:
            raise ConfigurationError('max_split must be at least 2', self.max_split)
        if self.clustering_distance < 0:
            raise ConfigurationError(
                'clustering_distance cannot be negative', self.clustering_distance
            )
        if self.max_window_size < 1:
            raise ConfigurationError(
                'max_window_size must be a positive integer', self.max_window_size
            )
        if self.min_cluster_support < 1:
            raise ConfigurationError(
                'min_cluster_support must be a positive integer', self.min_cluster_support
            )
        if not 0 <= self.min_identity <= 1:
            raise ConfigurationError('min_identity must be between 0 and 1', self.min_identity)

    @classmethod
    def from_config(cls, config: Dict) -> 'Settings':
        """
        Validate a config dictionary (as loaded from the JSON config file) and convert it to settings
        """
        config = dict(config)
        try:
            validate_against_schema(config)
        except Exception as err:
            short_msg = '. '.join(
                [line for line in str(err).split('\n') if line.strip()][:3]
            )  # these can get super long
            raise ConfigurationError(short_msg)
        return cls(
            max_threads=config['max_threads'],
            max_split=config['extract.max_split'],
            min_identity=config['extract.min_identity'],
            min_map_quality=config['extract.min_map_quality'],
            clustering_distance=config['cluster.clustering_distance'],
            max_window_size=config['cluster.max_window_size'],
            min_cluster_support=config['cluster.min_cluster_support'],
            mate_distance=config['cluster.mate_distance'],
        )

    def to_config(self) -> Dict:
        return {
            'max_threads': self.max_threads,
            'extract.max_split': self.max_split,
            'extract.min_identity': self.min_identity,
            'extract.min_map_quality': self.min_map_quality,
            'cluster.clustering_distance': self.clustering_distance,
            'cluster.max_window_size': self.max_window_size,
            'cluster.min_cluster_support': self.min_cluster_support,
            'cluster.mate_distance': self.mate_distance,
        }


def load_config(filename: Optional[str] = None, overrides: Optional[Dict] = None) -> Settings:
    """
    Read the JSON config file (if given) and apply any overrides (ex. from the command line) on top of it

    Args:
        filename: path to the JSON config file
        overrides: config keys to replace. None values are ignored
    """
    config: Dict = {}
    if filename:
        logger.info(f'loading config: {filename}')
        with open(filename, 'r') as fh:
            config = json.load(fh)
        if not isinstance(config, dict):
            raise ConfigurationError('config file must contain a JSON object', filename)
    for key, value in (overrides or {}).items():
        if value is not None:
            config[key] = value
    return Settings.from_config(config)


class CustomHelpFormatter(argparse.ArgumentDefaultsHelpFormatter):
    """
    subclass the default help formatter to stop default printing for required arguments
    """

    def _format_args(self, action, default_metavar):
        if action.metavar is None:
            action.metavar = get_metavar(action.type)
        return super(CustomHelpFormatter, self)._format_args(action, default_metavar)

    def _get_help_string(self, action):
        if action.required:
            return action.help
        return super(CustomHelpFormatter, self)._get_help_string(action)

    def add_arguments(self, actions):
        # sort the arguments alphanumerically so they print in the help that way
        actions = sorted(actions, key=lambda x: getattr(x, 'option_strings'))
        super(CustomHelpFormatter, self).add_arguments(actions)


def get_metavar(arg_type):
    """
    For a given argument type, returns the string to be used for the metavar argument in add_argument

    Example:
        >>> get_metavar(int)
        'INT'
    """
    if arg_type in [float_fraction, float]:
        return 'FLOAT'
    elif arg_type == int:
        return 'INT'
    elif arg_type == filepath:
        return 'FILEPATH'
    return None
