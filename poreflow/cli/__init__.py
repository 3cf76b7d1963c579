# This file is part of Poreflow.
# Licensed under MIT License.

"""Shared pieces of the ``poreflow`` subcommands.

Each subcommand declares its options as a YAML block on a
:class:`SubcommandOptions` subclass: a list of argument groups, each a list
of ``name: {argparse keyword arguments}`` mappings. ``positional: True``
makes a positional argument; ``type`` names an entry of :data:`ARG_TYPES`.
"""

import argparse
import logging
import sys
from collections import OrderedDict

import yaml

from .console import Console


def positive_int(value):
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError(f'must be a positive integer, got {value}')
    return n


def nonnegative_int(value):
    n = int(value)
    if n < 0:
        raise argparse.ArgumentTypeError(f'must not be negative, got {value}')
    return n


# Types a YAML option block may name; nothing else is evaluated
ARG_TYPES = {
    'int': int,
    'positive_int': positive_int,
    'nonnegative_int': nonnegative_int,
    'logfile': argparse.FileType('w'),
}

LOG_FORMAT = '%(asctime)s %(levelname)-8s %(message)s'
DEBUG_FORMAT = '%(asctime)s %(levelname)-8s %(message)-60s (%(funcName)s in %(filename)s:%(lineno)d)'

# flag -> (console level, log level, log format); first set flag wins
VERBOSITY = OrderedDict([
    ('quiet', (Console.QUIET, logging.WARNING, LOG_FORMAT)),
    ('debug', (Console.DEBUG, logging.DEBUG, DEBUG_FORMAT)),
    ('verbose', (Console.VERBOSE, logging.INFO, LOG_FORMAT)),
])

REPORTING_OPTS = """
    - Reporting Options:
        - quiet:
            action: store_true
            help: Silence (most) output.
        - verbose:
            action: store_true
            help: Show detailed progress.
        - debug:
            action: store_true
            help: Print debug messages.
        - logfile:
            type: logfile
            help: Log output to this file.
"""


class SubcommandOptions:
    """Parsed options of one subcommand, with the groups they were declared in."""

    OPTS = REPORTING_OPTS

    def __init__(self, args):
        self.opt_groups = self.parse_opts()
        for k, v in vars(args).items():
            setattr(self, k, v)

    @classmethod
    def parse_opts(cls):
        """Return ``{group: {name: argparse kwargs}}`` from :attr:`OPTS`."""
        groups = OrderedDict()
        for grp in yaml.load(cls.OPTS, Loader=yaml.SafeLoader):
            (grp_name, args), = grp.items()
            groups[grp_name] = OrderedDict(next(iter(arg.items())) for arg in args)
        return groups

    @property
    def opt_names(self):
        return [name for args in self.opt_groups.values() for name in args]

    @classmethod
    def add_arguments(cls, parser):
        for group_name, args in cls.parse_opts().items():
            argparse_grp = parser.add_argument_group(group_name)
            for arg_name, arg_d in args.items():
                kwargs = dict(arg_d or {})
                if kwargs.pop('positional', False):
                    flag = arg_name
                else:
                    flag = f'--{arg_name}'
                if 'type' in kwargs:
                    try:
                        kwargs['type'] = ARG_TYPES[kwargs['type']]
                    except KeyError:
                        raise ValueError(
                            f"Unsupported type '{kwargs['type']}' for option '{arg_name}'. "
                            f'Allowed: {sorted(ARG_TYPES)}'
                        ) from None
                argparse_grp.add_argument(flag, **kwargs)

    def __str__(self):
        lines = ['{:34}{}'.format('Version:', getattr(self, 'version', 'unknown'))]
        for group_name, args in self.opt_groups.items():
            lines.append(group_name)
            for arg_name in args:
                v = getattr(self, arg_name, None)
                # open file arguments print as their path
                v = getattr(v, 'name', v)
                lines.append('    {:30}{}'.format(arg_name + ':', v))
        return '\n'.join(lines)


def configure_logging(opts):
    """Set up root logging from the reporting options and return a Console.

    Logging goes to ``opts.logfile`` or stderr at WARNING, INFO (``verbose``)
    or DEBUG (``debug``). ``quiet`` silences the console only. With
    ``print_raw`` the console is silenced too, since stdout carries the dump.
    """
    console_level, loglev, logfmt = Console.NORMAL, logging.WARNING, LOG_FORMAT
    for flag, levels in VERBOSITY.items():
        if getattr(opts, flag, False):
            console_level, loglev, logfmt = levels
            break

    stream = getattr(opts, 'logfile', None) or sys.stderr
    logging.basicConfig(level=loglev, format=logfmt, datefmt='%Y-%m-%d %H:%M:%S', stream=stream, force=True)

    if getattr(opts, 'print_raw', False):
        console_level = Console.QUIET
    return Console(level=console_level)
