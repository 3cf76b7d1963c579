# This file is part of Poreflow.
# Licensed under MIT License.

"""Filling a batch from the alignment iterator.

Records are pulled one at a time into the next free slot. Rejected records
leave the slot free for the next pull. Once the batch is full, or the
iterator is exhausted, each occupied slot is correlated with its reference
subsequence and raw signal.
"""

import logging as lg
import sys

from .batch import SlotStatus
from .errors import ReferenceFetchError, SignalUnavailable
from .reporter import print_raw_signal


def reject_reason(read, options):
    """Return why *read* fails the acceptance filter, or *None* if it passes."""
    if read.is_unmapped:
        return 'filtered_unmapped'
    if read.mapping_quality < options.min_mapq:
        return 'filtered_mapq'
    if options.secondary == 'skip' and (read.is_secondary or read.is_supplementary):
        return 'filtered_secondary'
    return None


def correlate(ctx, slot, stats=None, raw_stream=None):
    """Attach reference subsequence and raw signal to an occupied slot.

    Failures are recorded on the slot and logged; they never abort the batch.
    """
    read = slot.read
    try:
        seq = ctx.reference.fetch(read.reference_name, read.reference_start, read.reference_end)
    except ReferenceFetchError as exc:
        lg.warning(f'Reference sequence unavailable, read {read.query_name} will be skipped: {exc}')
        slot.fail(SlotStatus.REFERENCE_UNAVAILABLE)
        if stats is not None:
            stats['reference_unavailable'] += 1
    else:
        slot.attach_reference(seq)

    try:
        path, record = ctx.readdb.read_signal(read.query_name)
    except SignalUnavailable as exc:
        lg.warning(f'Fast5 file is unreadable and will be skipped: {exc}')
        slot.fail(SlotStatus.SIGNAL_UNAVAILABLE)
        if stats is not None:
            stats['signal_unavailable'] += 1
        return
    slot.attach_signal(record, path)

    if ctx.options.print_raw:
        print_raw_signal(read.query_name, path, record, raw_stream or sys.stdout)


def load_batch(ctx, batch, stats=None, raw_stream=None):
    """Fill *batch* with up to ``batch.capacity`` accepted reads.

    Args:
        ctx: :class:`~poreflow.core.context.PipelineContext`.
        batch: A cleared :class:`~poreflow.core.batch.Batch`.
        stats: Optional ``Counter`` updated with filter and failure counts.
        raw_stream: Destination for ``print_raw`` output (default stdout).

    Returns:
        Number of occupied slots. 0 means the input is exhausted.
    """
    options = ctx.options
    alignments = ctx.alignments
    batch.count = 0
    slots = batch.slots
    if slots is None:
        raise RuntimeError('Batch has been destroyed')

    while batch.count < batch.capacity:
        aln = alignments.next_record()
        if aln is None:
            break
        slot = slots[batch.count]
        slot.read.fill(aln, alignments.reference_name(aln.reference_id))
        if stats is not None:
            stats['records'] += 1

        reason = reject_reason(slot.read, options)
        if reason is not None:
            if stats is not None:
                stats[reason] += 1
            continue
        batch.count += 1

    lg.debug(f'{batch.count} reads accepted into batch')

    for slot in slots[:batch.count]:
        correlate(ctx, slot, stats, raw_stream)

    if stats is not None:
        stats['accepted'] += batch.count
    return batch.count
