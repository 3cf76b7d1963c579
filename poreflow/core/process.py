# This file is part of Poreflow.
# Licensed under MIT License.

"""Signal normalization and event segmentation over a loaded batch."""

import logging as lg
from concurrent.futures import ThreadPoolExecutor

import numpy as np


def to_picoamps(record):
    """Convert ``record.raw`` to picoamperes in place.

    ``pA = (raw + offset) * (range / digitisation)``, sample by sample.
    Converting twice is an error.
    """
    if record.in_picoamps:
        raise ValueError(f'Signal for {record.read_id} is already in pA')
    raw_unit = np.float32(record.range / record.digitisation)
    raw = record.raw
    np.add(raw, np.float32(record.offset), out=raw)
    np.multiply(raw, raw_unit, out=raw)
    record.in_picoamps = True
    return raw


def _process_slot(slot, segmenter):
    signal = slot.signal
    raw = to_picoamps(signal)
    slot.attach_events(segmenter.segment(signal.n_samples, raw))
    return len(slot.events)


def process_batch(batch, segmenter, ncpu=1):
    """Normalize and segment every occupied slot that has a usable signal.

    Slots without a signal or reference are skipped. Each slot is handled
    independently; with ``ncpu > 1`` slots are spread over a thread pool and
    each task writes only to its own slot.

    Returns:
        (number of slots segmented, total number of events)
    """
    ready = [s for s in batch.occupied() if s.ready]
    skipped = batch.count - len(ready)
    if skipped:
        lg.debug(f'{skipped} reads without usable signal or reference skipped')

    if ncpu > 1 and len(ready) > 1:
        with ThreadPoolExecutor(max_workers=ncpu) as pool:
            nevents = list(pool.map(lambda s: _process_slot(s, segmenter), ready))
    else:
        nevents = [_process_slot(s, segmenter) for s in ready]

    return len(ready), int(sum(nevents))
