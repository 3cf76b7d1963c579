# -*- coding: utf-8 -*-

# This file is part of Poreflow.
# Licensed under MIT License.

""" Poreflow events

"""
import os
import sys
import logging as lg
from time import time

from . import REPORTING_OPTS, SubcommandOptions, configure_logging
from .console import StageTimer
from ..utils.helpers import format_minutes as fmtmins
from ..core.context import PipelineContext
from ..core.errors import StoreOpenError
from ..core.model import Pipeline
from ..core.options import PipelineOptions


class EventsOptions(SubcommandOptions):

    OPTS = """
    - Input Options:
        - bamfile:
            positional: True
            help: Path to alignment file. Must be a coordinate-sorted BAM
                  with an index (.bai) alongside it.
        - reference:
            positional: True
            help: Path to the reference genome (FASTA). A faidx index is
                  created if one is not present.
        - reads:
            positional: True
            help: Path to the reads file indexed with "poreflow index". The
                  signal manifest <reads>.index.readdb maps read names to
                  fast5 files. A .readdb file may be given directly.
        - model:
            help: Pore model table (6-mer, nanopolish .model format).
    - Filtering Options:
        - min_mapq:
            type: nonnegative_int
            default: 30
            help: Minimum mapping quality. Reads below this are not loaded.
        - secondary:
            default: keep
            choices:
                - keep
                - skip
            help: How to treat secondary and supplementary alignments.
                  "keep" passes them through, "skip" drops them.
    - Output Options:
        - outdir:
            default: .
            help: Output directory.
        - exp_tag:
            default: poreflow
            help: Experiment tag
        - print_raw:
            action: store_true
            help: Print each read's name, fast5 path and raw samples to
                  stdout while loading.
    - Run Modes:
        - segmenter:
            default: ttest
            help: Event segmenter plugin.
        - consumers:
            default: all
            help: Comma-separated consumer plugins to run, or "all".
    - Performance Options:
        - batch_size:
            type: positive_int
            default: 512
            help: Number of reads held in memory per batch.
        - ncpu:
            default: 1
            type: positive_int
            help: Number of threads for signal normalization and
                  segmentation, and for BAM decompression.
    """ + REPORTING_OPTS


def _parse_consumers_arg(opts):
    """Parse --consumers CLI arg into a list of names, or None for all."""
    raw = getattr(opts, 'consumers', None)
    if raw is None or raw == 'all':
        return None
    return [p.strip() for p in raw.split(',') if p.strip()]


def run(args):
    """Open the stores, run batches until the BAM is exhausted, commit outputs.

    Args:
        args: Parsed argparse namespace.
    """
    from ..plugins.registry import PluginRegistry

    opts = EventsOptions(args)
    console = configure_logging(opts)
    lg.info('\n{}\n'.format(opts))
    total_time = time()
    timer = StageTimer()

    console.banner(opts.version)
    console.section('Input')
    console.item('BAM', os.path.basename(opts.bamfile))
    console.item('Reference', os.path.basename(opts.reference))
    console.item('Reads', os.path.basename(opts.reads))
    console.item('Min MAPQ', opts.min_mapq)
    console.item('Secondary', opts.secondary)
    console.blank()

    registry = PluginRegistry()
    registry.discover(active_consumers=_parse_consumers_arg(opts))
    try:
        segmenter = registry.get_segmenter(opts.segmenter)
    except ValueError as exc:
        lg.critical(str(exc))
        sys.exit(1)
    segmenter.configure(opts)
    registry.configure_all(opts)
    console.verbose(f'Segmenter: {segmenter.name} v{segmenter.version}')
    for c in registry.consumers:
        console.verbose(f'Consumer: {c.name} v{c.version}')

    try:
        with timer('Open stores'):
            ctx = PipelineContext(
                opts.bamfile,
                opts.reference,
                opts.reads,
                PipelineOptions.from_opts(opts),
                model_path=opts.model,
                threads=opts.ncpu,
            )
    except StoreOpenError as exc:
        lg.critical(f'Setup failed: {exc}')
        sys.exit(1)

    with ctx, timer('Events'):
        pipeline = Pipeline(ctx, segmenter, registry, capacity=opts.batch_size, ncpu=opts.ncpu)
        lg.info(f'Running {pipeline}')
        run_info = pipeline.run()

    pipeline.print_summary(lg.INFO)
    console.section('Reads')
    console.status('Processed {:,} reads in {:,} batches'.format(run_info['accepted'], run_info['batches']))
    console.read_counts(run_info)
    console.blank()

    console.section('Output')
    console.item('Directory', opts.outdir)
    with timer('Commit'):
        registry.commit_all(opts.outdir, opts.exp_tag, console=console)
    console.blank()
    console.section('Timing')
    console.stage_times(timer)
    console.blank()
    lg.info("poreflow events complete (%s)" % fmtmins(time() - total_time))
