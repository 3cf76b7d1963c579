#! /usr/bin/env python
# -*- coding: utf-8 -*-

# This file is part of Poreflow.
# Licensed under MIT License.

""" Main functionality of Poreflow

"""
import sys
import argparse

from poreflow import __version__
from .cli import events as cli_events
from .cli import index as cli_index
from .cli import plugins as cli_plugins


USAGE = ''' %(prog)s <command> [<args>]

The most commonly used commands are:
   events         Normalize and segment the raw signal of aligned reads
   index          Build the read-to-fast5 signal manifest
   list-plugins   List installed segmenters and consumers

'''


def build_parser():
    parser = argparse.ArgumentParser(
        description='Nanopore signal preprocessing for aligned reads',
    )
    parser.add_argument('--version',
        action='version',
        version=__version__,
        default=__version__,
    )

    subparser = parser.add_subparsers(help='Sub-command help', dest='subcommand')

    ''' Parser for events '''
    events_parser = subparser.add_parser('events',
        description='''Normalize and segment the raw signal of aligned reads''',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    cli_events.EventsOptions.add_arguments(events_parser)
    events_parser.set_defaults(func=cli_events.run)

    ''' Parser for index '''
    index_parser = subparser.add_parser('index',
        description='''Build the read-to-fast5 signal manifest''',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    cli_index.IndexOptions.add_arguments(index_parser)
    index_parser.set_defaults(func=cli_index.run)

    ''' Parser for list-plugins '''
    list_plugins_parser = subparser.add_parser('list-plugins',
        description='''List installed segmenters and consumers''',
    )
    list_plugins_parser.set_defaults(func=cli_plugins.list_plugins)
    return parser


def main():
    if len(sys.argv) == 1:
        empty_parser = argparse.ArgumentParser(
            description='Nanopore signal preprocessing for aligned reads',
            usage=USAGE,
        )
        empty_parser.print_help(sys.stderr)
        sys.exit(1)

    args = build_parser().parse_args()
    args.func(args)

if __name__ == '__main__':
    main()
