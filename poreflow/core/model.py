# This file is part of Poreflow.
# Licensed under MIT License.

"""Poreflow pipeline: the load, process, hand-off, clear cycle.

The loader is in loader.py, normalization and segmentation in process.py.
"""

import logging as lg
from collections import Counter, OrderedDict

from .. import __version__
from ..plugins.snapshots import BatchSnapshot
from .batch import Batch
from .loader import load_batch
from .options import DEFAULT_BATCH_SIZE
from .process import process_batch
from .reporter import print_summary

RUN_FIELDS = [
    'batches',
    'records',
    'filtered_unmapped',
    'filtered_mapq',
    'filtered_secondary',
    'accepted',
    'signal_unavailable',
    'reference_unavailable',
    'segmented',
    'events',
]


def _print_progress(nreads, nbatch, infolev=100000):
    """Log progress at INFO each time another *infolev* reads have been accepted."""
    msg = f'...processed {nreads:,} reads'
    if (nreads - nbatch) // infolev != nreads // infolev:
        lg.info(msg)
    else:
        lg.debug(msg)


class Pipeline:
    """Drives one batch through repeated cycles until the BAM is exhausted.

    Args:
        ctx: Open :class:`~poreflow.core.context.PipelineContext`.
        segmenter: :class:`~poreflow.plugins.abc.Segmenter` instance.
        registry: Optional object with a ``notify(hook_name, snapshot)``
            method, normally a :class:`~poreflow.plugins.registry.PluginRegistry`.
        capacity: Batch capacity.
        ncpu: Worker threads for normalization and segmentation.
        raw_stream: Destination for ``print_raw`` output.
    """

    def __init__(self, ctx, segmenter, registry=None, capacity=DEFAULT_BATCH_SIZE, ncpu=1, raw_stream=None):
        self.ctx = ctx
        self.segmenter = segmenter
        self.registry = registry
        self.ncpu = ncpu
        self.raw_stream = raw_stream
        self.batch = Batch(capacity)
        self.stats = Counter()
        self.run_info = OrderedDict()
        self.run_info['version'] = __version__

    def run_cycle(self):
        """Load, process and hand off one batch, then clear it.

        Returns:
            Number of reads loaded; 0 once the input is exhausted.
        """
        batch = self.batch
        n = load_batch(self.ctx, batch, self.stats, self.raw_stream)
        if n == 0:
            return 0
        try:
            nseg, nevents = process_batch(batch, self.segmenter, self.ncpu)
            self.stats['batches'] += 1
            self.stats['segmented'] += nseg
            self.stats['events'] += nevents
            if self.registry is not None:
                self.registry.notify('on_batch', BatchSnapshot.from_batch(batch, self.stats['batches']))
        finally:
            batch.clear_cycle()
        _print_progress(self.stats['accepted'], n)
        return n

    def run(self):
        """Run cycles until the input is exhausted, then tear the batch down."""
        try:
            while self.run_cycle():
                pass
        finally:
            self.batch.destroy()
        for f in RUN_FIELDS:
            self.run_info[f] = self.stats[f]
        return self.run_info

    def print_summary(self, loglev=lg.WARNING):
        print_summary(self.run_info, loglev)

    def __str__(self):
        return f'<Pipeline bam={self.ctx.bam_path}, segmenter={self.segmenter.name}, capacity={self.batch.capacity}>'
