# -*- coding: utf-8 -*-

# This file is part of Poreflow.
# Licensed under MIT License.

"""Event table consumer: writes segmented events and a per-read summary.

``<exp_tag>-events.tsv`` and ``<exp_tag>-reads.tsv`` are both appended to
after every batch, so memory stays bounded by the batch size. ``commit``
only makes sure both files exist with their headers.
"""
import os
import logging as lg

import numpy as np
import pandas as pd

from ..abc import Consumer

EVENT_COLUMNS = ['read_name', 'contig', 'ref_start', 'event_index', 'start', 'length', 'mean', 'stdv']
READ_COLUMNS = ['read_name', 'status', 'contig', 'ref_start', 'ref_end', 'n_samples', 'n_events', 'signal_path']


def _append_tsv(df, path, header):
    df.to_csv(path, sep='\t', index=False, mode='w' if header else 'a', header=header)


class EventTableConsumer(Consumer):
    """Write per-read event tables as TSV."""

    def __init__(self):
        self._events_file = None
        self._reads_file = None
        self._started = False
        self.nreads = 0

    @property
    def name(self) -> str:
        return "eventtable"

    @property
    def description(self) -> str:
        return "Write segmented events and per-read summary as TSV"

    @property
    def version(self) -> str:
        return "1.0.0"

    def configure(self, opts) -> None:
        outdir = getattr(opts, 'outdir', '.')
        exp_tag = getattr(opts, 'exp_tag', 'poreflow')
        os.makedirs(outdir, exist_ok=True)
        self._events_file = os.path.join(outdir, '%s-events.tsv' % exp_tag)
        self._reads_file = os.path.join(outdir, '%s-reads.tsv' % exp_tag)
        self._started = False
        self.nreads = 0

    def on_batch(self, snapshot) -> None:
        if self._events_file is None:
            raise RuntimeError('eventtable: on_batch called before configure')

        frames = []
        read_rows = []
        for r in snapshot.reads:
            ev = r.events
            nev = len(ev)
            read_rows.append((r.read_name, 'ok', r.contig, r.ref_start, r.ref_end,
                              r.n_samples, nev, r.signal_path))
            if nev == 0:
                continue
            frames.append(pd.DataFrame({
                'read_name': r.read_name,
                'contig': r.contig,
                'ref_start': r.ref_start,
                'event_index': np.arange(nev),
                'start': ev['start'],
                'length': ev['length'],
                'mean': ev['mean'].round(3),
                'stdv': ev['stdv'].round(3),
            }, columns=EVENT_COLUMNS))

        for read_name, status in snapshot.skipped:
            read_rows.append((read_name, status, None, None, None, 0, 0, None))

        if frames:
            events = pd.concat(frames, ignore_index=True)
        else:
            events = pd.DataFrame(columns=EVENT_COLUMNS)
        header = not self._started
        _append_tsv(events, self._events_file, header)
        _append_tsv(pd.DataFrame(read_rows, columns=READ_COLUMNS), self._reads_file, header)
        self._started = True
        self.nreads += len(read_rows)

    def commit(self, output_dir, exp_tag) -> None:
        if self._events_file is None:
            raise RuntimeError('eventtable: commit called before configure')
        if not self._started:
            _append_tsv(pd.DataFrame(columns=EVENT_COLUMNS), self._events_file, True)
            _append_tsv(pd.DataFrame(columns=READ_COLUMNS), self._reads_file, True)
            self._started = True
        lg.info("eventtable: wrote {} reads to {} and {}".format(
            self.nreads, self._events_file, self._reads_file))
