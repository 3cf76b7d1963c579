# -*- coding: utf-8 -*-

# This file is part of Poreflow.
# Licensed under MIT License.

"""Integration tests for the Poreflow pipeline on small generated datasets.

The BAM, FASTA, fast5 files and signal manifest are written to a temporary
directory by the fixtures in conftest.py; see helpers.make_dataset.
"""
import io
import logging

import numpy as np
import pytest

from poreflow.core.context import PipelineContext
from poreflow.core.model import RUN_FIELDS, Pipeline, _print_progress
from poreflow.core.options import PipelineOptions
from poreflow.plugins.builtin.ttest import TTestSegmenter

from .helpers import (CALIBRATION, CountingSegmenter, make_dataset, raw_from_picoamps, step_signal,
                      write_fast5_corrupt, write_fast5_single)


class RecordingRegistry:
    def __init__(self):
        self.calls = []

    def notify(self, hook_name, snapshot):
        self.calls.append((hook_name, snapshot))


class ExplodingSegmenter(CountingSegmenter):
    def segment(self, n_samples, signal):
        raise RuntimeError('segmenter failed')


def _open(ds, **kwargs):
    return PipelineContext(ds.bam, ds.fasta, ds.reads, PipelineOptions(**kwargs))


class TestPipelineRun:
    def test_run_info_counts(self, mixed_dataset):
        with _open(mixed_dataset) as ctx:
            pipeline = Pipeline(ctx, TTestSegmenter(), capacity=4)
            run_info = pipeline.run()
        assert list(run_info.keys()) == ['version'] + RUN_FIELDS
        assert run_info['records'] == 9
        assert run_info['filtered_unmapped'] == 1
        assert run_info['filtered_mapq'] == 1
        assert run_info['filtered_secondary'] == 0
        assert run_info['accepted'] == 7
        assert run_info['batches'] == 2
        assert run_info['signal_unavailable'] == 1
        assert run_info['reference_unavailable'] == 0
        assert run_info['segmented'] == 6
        assert run_info['events'] == 24

    def test_skip_secondary(self, mixed_dataset):
        with _open(mixed_dataset, secondary='skip') as ctx:
            run_info = Pipeline(ctx, TTestSegmenter(), capacity=4).run()
        assert run_info['filtered_secondary'] == 1
        assert run_info['accepted'] == 6
        assert run_info['segmented'] == 5

    def test_min_mapq_zero_admits_lowq(self, mixed_dataset):
        with _open(mixed_dataset, min_mapq=0) as ctx:
            run_info = Pipeline(ctx, TTestSegmenter()).run()
        assert run_info['filtered_mapq'] == 0
        assert run_info['accepted'] == 8
        assert run_info['batches'] == 1
        # lowq has no fast5 in the manifest
        assert run_info['signal_unavailable'] == 2

    def test_snapshots_handed_to_registry(self, mixed_dataset):
        registry = RecordingRegistry()
        with _open(mixed_dataset) as ctx:
            Pipeline(ctx, TTestSegmenter(), registry, capacity=4).run()
        assert [hook for hook, _ in registry.calls] == ['on_batch', 'on_batch']
        first, second = (snap for _, snap in registry.calls)
        assert first.batch_index == 1
        assert [r.read_name for r in first.reads] == ['read0', 'read1', 'read2']
        assert first.skipped == (('read3', 'signal_unavailable'),)
        assert [r.read_name for r in second.reads] == ['secondary', 'read4', 'read5']
        read0 = first.reads[0]
        assert read0.reference == mixed_dataset.contig_seq[50:70]
        assert read0.n_samples == 200
        np.testing.assert_array_equal(read0.events['start'], [0, 50, 100, 150])
        np.testing.assert_allclose(read0.events['mean'], [80.0, 100.0, 90.0, 120.0], atol=0.2)

    def test_batch_released(self, mixed_dataset):
        with _open(mixed_dataset) as ctx:
            pipeline = Pipeline(ctx, TTestSegmenter(), capacity=4)
            pipeline.run()
        assert pipeline.batch.destroyed
        assert pipeline.batch.live_attachments() == {'reference': 0, 'signal': 0, 'events': 0}
        assert pipeline.batch.ledger['allocated']['signal'] == 6

    def test_threaded_matches_sequential(self, mixed_dataset):
        results = []
        for ncpu in (1, 3):
            registry = RecordingRegistry()
            with _open(mixed_dataset) as ctx:
                run_info = Pipeline(ctx, TTestSegmenter(), registry, capacity=4, ncpu=ncpu).run()
            events = [r.events for _, snap in registry.calls for r in snap.reads]
            results.append((dict(run_info), events))
        (info1, ev1), (info3, ev3) = results
        assert info1 == info3
        for a, b in zip(ev1, ev3):
            np.testing.assert_array_equal(a, b)

    def test_print_raw(self, mixed_dataset):
        out = io.StringIO()
        with _open(mixed_dataset, print_raw=True) as ctx:
            Pipeline(ctx, CountingSegmenter(), capacity=4, raw_stream=out).run()
        lines = out.getvalue().splitlines()
        headers = lines[0::2]
        assert len(headers) == 6
        assert headers[0].startswith('@read0\t')
        assert headers[0].endswith('\t200')
        assert len(lines[1].split('\t')) == 200

    def test_segmenter_sees_picoamps(self, mixed_dataset):
        seg = CountingSegmenter()
        with _open(mixed_dataset) as ctx:
            Pipeline(ctx, seg, capacity=4).run()
        n, signal = seg.calls[0]
        assert n == 200
        np.testing.assert_allclose(signal[:50], 80.0, atol=0.2)

    def test_failure_still_releases(self, mixed_dataset):
        with _open(mixed_dataset) as ctx:
            pipeline = Pipeline(ctx, ExplodingSegmenter(), capacity=4)
            with pytest.raises(RuntimeError, match='segmenter failed'):
                pipeline.run()
        assert pipeline.batch.destroyed
        assert pipeline.batch.live_attachments() == {'reference': 0, 'signal': 0, 'events': 0}

    def test_print_summary(self, mixed_dataset, caplog):
        with _open(mixed_dataset) as ctx:
            pipeline = Pipeline(ctx, TTestSegmenter(), capacity=4)
            pipeline.run()
        with caplog.at_level(logging.INFO):
            pipeline.print_summary(logging.INFO)
        assert '9 alignment records read in 2 batches' in caplog.text
        assert '6 were segmented into 24 events' in caplog.text

    @pytest.mark.parametrize('nreads,nbatch,expected', [
        (100500, 512, logging.INFO),
        (100000, 8, logging.INFO),
        (100008, 8, logging.DEBUG),
        (1000, 8, logging.DEBUG),
        (199999, 100000, logging.INFO),
    ])
    def test_progress_level(self, caplog, nreads, nbatch, expected):
        with caplog.at_level(logging.DEBUG):
            _print_progress(nreads, nbatch)
        (record,) = caplog.records
        assert record.levelno == expected
        assert f'{nreads:,}' in record.getMessage()


class TestDamagedSignal:
    @pytest.fixture
    def damaged_dataset(self, tmp_path):
        records = [{'name': name, 'pos': 100 * (i + 1), 'mapq': 60}
                   for i, name in enumerate(('good', 'badcalib', 'corrupt'))]
        raw = raw_from_picoamps(step_signal())
        ds = make_dataset(tmp_path, records, {name: raw for name in ('good', 'badcalib', 'corrupt')})
        write_fast5_single(f'{ds.fast5_dir}/badcalib.fast5', 'badcalib', raw,
                           calib=dict(CALIBRATION, digitisation='n/a'))
        write_fast5_corrupt(f'{ds.fast5_dir}/corrupt.fast5', 'corrupt')
        return ds

    def test_bad_fast5_only_skips_its_read(self, damaged_dataset, caplog):
        registry = RecordingRegistry()
        with _open(damaged_dataset) as ctx:
            run_info = Pipeline(ctx, TTestSegmenter(), registry).run()
        assert run_info['accepted'] == 3
        assert run_info['signal_unavailable'] == 2
        assert run_info['segmented'] == 1
        (_, snap), = registry.calls
        assert [r.read_name for r in snap.reads] == ['good']
        assert sorted(name for name, _ in snap.skipped) == ['badcalib', 'corrupt']
        assert 'Fast5 file is unreadable' in caplog.text
