import errno
import logging
import os
from typing import Dict, Iterable, List, Optional, Union

import pandas as pd
from mavis_config import bash_expands

from .constants import sort_columns

logger = logging.getLogger('splitsv')


def filepath(path):
    try:
        file_list = bash_expands(path)
    except FileNotFoundError:
        raise TypeError('File does not exist', path)
    else:
        if not file_list:
            raise TypeError('File not found', path)
        elif len(file_list) > 1:
            raise TypeError('File pattern match multiple files and expected only one', path)
    return file_list[0]


def log_arguments(args):
    """
    output the arguments to the console

    Args:
        args (Namespace): the namespace to print arguments for
    """
    logger.info('arguments')

    indent = ' '

    for arg, val in sorted(args.__dict__.items()):
        if isinstance(val, list):
            if len(val) <= 1:
                logger.info(f'{indent}{arg} = {val}')
                continue
            logger.info(f'{indent}{arg} = [')
            for v in val:
                logger.info(f'{indent * 2}{repr(v)}')
            logger.info(f'{indent}]')
        elif any([isinstance(val, typ) for typ in [str, int, float, bool, tuple]]) or val is None:
            logger.info(f'{indent}{arg} = {repr(val)}')
        else:
            logger.info(f'{arg} = {object.__repr__(val)}')


def mkdirp(dirname):
    """
    Make a directory or path of directories. Suppresses the error that is normally raised when the directory already exists
    """
    logger.info(f"creating output directory: '{dirname}'")
    try:
        os.makedirs(dirname)
    except OSError as exc:
        if exc.errno == errno.EEXIST and os.path.isdir(dirname):
            pass
        else:
            raise exc
    return dirname


def output_tabbed_file(records: Iterable[Union[Dict, object]], filename: str, header: Optional[List[str]] = None):
    """
    write a set of rows to a tab delimited file. Non-dictionary records are converted with their flatten method
    """
    if header is None:
        custom_header = False
        header_cols: set = set()
    else:
        custom_header = True
        header_cols = set(header)
    rows = []
    for row in records:
        if not isinstance(row, dict):
            row = row.flatten()  # type: ignore
        rows.append(row)
        if not custom_header:
            header_cols.update(row.keys())
    columns = sort_columns(header_cols) if not custom_header else list(header or [])
    logger.info(f'writing: {filename}')
    df = pd.DataFrame.from_records(rows, columns=columns)
    df = df.fillna('None')
    df.to_csv(filename, columns=columns, index=False, sep='\t')
