# -*- coding: utf-8 -*-

# This file is part of Poreflow.
# Licensed under MIT License.

""" Poreflow index

"""
import logging as lg
import os
import sys

from . import REPORTING_OPTS, SubcommandOptions, configure_logging
from ..signal.readdb import build_readdb


class IndexOptions(SubcommandOptions):

    OPTS = """
    - Input Options:
        - reads:
            positional: True
            help: Reads file the manifest is written beside, as
                  <reads>.index.readdb.
        - fast5_dir:
            required: True
            help: Directory containing fast5 files (searched recursively).
    """ + REPORTING_OPTS


def run(args):
    opts = IndexOptions(args)
    console = configure_logging(opts)
    lg.info('\n{}\n'.format(opts))

    if not os.path.isdir(opts.fast5_dir):
        lg.critical(f'fast5 directory {opts.fast5_dir} does not exist or is not a directory')
        sys.exit(1)
    try:
        path, nreads = build_readdb(opts.fast5_dir, opts.reads)
    except OSError as exc:
        lg.critical(f'Could not write signal manifest: {exc}')
        sys.exit(1)
    console.status('Indexed {:,} reads'.format(nreads))
    console.detail(path)
