import os
from typing import Dict

from mavis_config import ImmutableDict
from snakemake.utils import validate as snakemake_validate

CONFIG_SCHEMA = os.path.join(os.path.dirname(__file__), 'config.json')


def validate_against_schema(config: Dict) -> Dict:
    """
    Check the config conforms to the JSON schema, filling in defaults for any missing properties
    """
    snakemake_validate(config, CONFIG_SCHEMA, set_default=True)
    return config


DEFAULTS = ImmutableDict(validate_against_schema({}))
