# -*- coding: utf-8 -*-

# This file is part of Poreflow.
# Licensed under MIT License.

"""Human-readable progress for ``poreflow`` subcommands on stdout.

Diagnostics go through logging to stderr (or ``--logfile``). With
``--print_raw`` stdout carries the raw signal dump, so the console is
silenced there.
"""

import sys
from time import perf_counter

from ..utils.helpers import format_minutes

# (label, run_info key) rows of the read accounting table
COUNT_ROWS = [
    ('Records', 'records'),
    ('Unmapped', 'filtered_unmapped'),
    ('Low MAPQ', 'filtered_mapq'),
    ('Secondary', 'filtered_secondary'),
    ('Accepted', 'accepted'),
    ('No signal', 'signal_unavailable'),
    ('No reference', 'reference_unavailable'),
    ('Segmented', 'segmented'),
    ('Events', 'events'),
]


class StageTimer:
    """Wall-clock time per named stage, in the order the stages ran."""

    def __init__(self):
        self.stages = []

    def __call__(self, name):
        return _Stage(self, name)

    @property
    def total(self):
        return sum(elapsed for _, elapsed in self.stages)


class _Stage:
    def __init__(self, timer, name):
        self.timer = timer
        self.name = name

    def __enter__(self):
        self._start = perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.timer.stages.append((self.name, perf_counter() - self._start))
        return False


class Console:
    QUIET = 0
    NORMAL = 1
    VERBOSE = 2
    DEBUG = 3

    def __init__(self, level=NORMAL, stream=None):
        self.level = level
        self.stream = stream or sys.stdout

    def _emit(self, minlevel, text):
        if self.level >= minlevel:
            print(text, file=self.stream)

    def banner(self, version):
        self._emit(self.NORMAL, f'\nPoreflow v{version} -- Nanopore signal preprocessing\n')

    def section(self, title):
        self._emit(self.NORMAL, f'  {title}')

    def item(self, label, value):
        self._emit(self.NORMAL, f'    {label + ":":<14}{value}')

    def status(self, message):
        self._emit(self.NORMAL, f'  {message}')

    def detail(self, message):
        self._emit(self.NORMAL, f'    {message}')

    def verbose(self, message):
        self._emit(self.VERBOSE, f'    {message}')

    def blank(self):
        self._emit(self.NORMAL, '')

    def read_counts(self, run_info):
        """Read accounting for one run, one right-aligned count per row.

        The filter rows are shown only when they are non-zero, unless the
        console is verbose.
        """
        width = max(len(f'{run_info.get(key, 0):,}') for _, key in COUNT_ROWS)
        for label, key in COUNT_ROWS:
            n = run_info.get(key, 0)
            if not n and key.startswith('filtered_') and self.level < self.VERBOSE:
                continue
            self._emit(self.NORMAL, f'    {label:<14}{n:>{width},}')

    def stage_times(self, timer):
        for name, elapsed in timer.stages:
            self.item(name, format_minutes(elapsed))
        self.item('Total', format_minutes(timer.total))
