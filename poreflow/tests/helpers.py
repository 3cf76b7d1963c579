# This file is part of Poreflow.
# Licensed under MIT License.

"""Builders for tiny real BAM / FASTA / fast5 / readdb datasets, and fake stores."""

import os
from types import SimpleNamespace

import h5py
import numpy as np
import pysam

from poreflow.core.errors import ReferenceFetchError, SignalUnavailable
from poreflow.core.options import PipelineOptions
from poreflow.signal.fast5 import SignalRecord

CONTIG = 'chr1'
CONTIG_LEN = 1000
CALIBRATION = dict(digitisation=8192.0, offset=10.0, range=1400.0, sampling_rate=4000.0)
FLAG_UNMAPPED = 0x4
FLAG_SECONDARY = 0x100
FLAG_SUPPLEMENTARY = 0x800


def contig_sequence():
    rng = np.random.default_rng(7)
    return ''.join(rng.choice(list('ACGT'), size=CONTIG_LEN))


def step_signal(levels=(80.0, 100.0, 90.0, 120.0), width=50):
    """Noiseless step signal in pA."""
    return np.repeat(np.asarray(levels, dtype=np.float32), width)


def raw_from_picoamps(pa, calib=CALIBRATION):
    """Invert the pA conversion to get int16 raw samples."""
    raw = np.asarray(pa, dtype=np.float64) * calib['digitisation'] / calib['range'] - calib['offset']
    return np.round(raw).astype(np.int16)


# -------------------------------------------------------------------------
# File builders
# -------------------------------------------------------------------------

def write_fasta(path, contigs):
    with open(path, 'w') as fh:
        for name, seq in contigs:
            fh.write(f'>{name}\n')
            for i in range(0, len(seq), 60):
                fh.write(seq[i:i + 60] + '\n')
    pysam.faidx(str(path))
    return str(path)


def write_bam(path, records, contigs):
    """Write a coordinate-sorted, indexed BAM.

    *records* are dicts with ``name``, ``pos``, ``mapq`` and optional
    ``flag``, ``length``, ``tid``. Unmapped records go last.
    """
    header = {
        'HD': {'VN': '1.6', 'SO': 'coordinate'},
        'SQ': [{'SN': name, 'LN': len(seq)} for name, seq in contigs],
    }
    mapped = [r for r in records if not r.get('flag', 0) & FLAG_UNMAPPED]
    unmapped = [r for r in records if r.get('flag', 0) & FLAG_UNMAPPED]
    mapped.sort(key=lambda r: (r.get('tid', 0), r['pos']))

    with pysam.AlignmentFile(str(path), 'wb', header=header) as out:
        for r in mapped + unmapped:
            n = r.get('length', 20)
            a = pysam.AlignedSegment(out.header)
            a.query_name = r['name']
            a.query_sequence = 'A' * n
            a.flag = r.get('flag', 0)
            if a.flag & FLAG_UNMAPPED:
                a.reference_id = -1
                a.reference_start = -1
                a.mapping_quality = 0
            else:
                a.reference_id = r.get('tid', 0)
                a.reference_start = r['pos']
                a.mapping_quality = r['mapq']
                a.cigartuples = [(0, n)]
            out.write(a)
    pysam.index(str(path))
    return str(path)


def write_fast5_single(path, read_id, raw, calib=CALIBRATION):
    with h5py.File(str(path), 'w') as fh:
        grp = fh.create_group('Raw/Reads/Read_1')
        grp.attrs['read_id'] = read_id
        grp.create_dataset('Signal', data=np.asarray(raw, dtype=np.int16))
        ch = fh.create_group('UniqueGlobalKey/channel_id')
        for k, v in calib.items():
            ch.attrs[k] = v
    return str(path)


def write_fast5_corrupt(path, read_id, n=4096, calib=CALIBRATION):
    """Single-read fast5 whose gzip-compressed signal chunks are zeroed on disk."""
    rng = np.random.default_rng(1)
    with h5py.File(str(path), 'w') as fh:
        grp = fh.create_group('Raw/Reads/Read_1')
        grp.attrs['read_id'] = read_id
        ds = grp.create_dataset('Signal', data=rng.integers(0, 2000, n).astype(np.int16),
                                chunks=(512,), compression='gzip')
        ch = fh.create_group('UniqueGlobalKey/channel_id')
        for k, v in calib.items():
            ch.attrs[k] = v
        fh.flush()
        chunks = [ds.id.get_chunk_info(i) for i in range(ds.id.get_num_chunks())]
    with open(str(path), 'r+b') as out:
        for info in chunks:
            out.seek(info.byte_offset)
            out.write(b'\0' * info.size)
    return str(path)


def write_fast5_multi(path, reads, calib=CALIBRATION):
    """*reads* maps read id to raw samples."""
    with h5py.File(str(path), 'w') as fh:
        for read_id, raw in reads.items():
            grp = fh.create_group(f'read_{read_id}')
            grp.create_dataset('Raw/Signal', data=np.asarray(raw, dtype=np.int16))
            ch = grp.create_group('channel_id')
            for k, v in calib.items():
                ch.attrs[k] = v
    return str(path)


def make_dataset(root, records, signals, extra_manifest=()):
    """Build BAM, FASTA, fast5 files and the signal manifest under *root*.

    Args:
        records: BAM record dicts (see :func:`write_bam`).
        signals: ``{read_name: raw int16 samples}``; one single-read fast5
            per entry.
        extra_manifest: ``(read_name, path)`` manifest lines without a
            matching fast5 written here.
    """
    root = str(root)
    contigs = [(CONTIG, contig_sequence())]
    fasta = write_fasta(os.path.join(root, 'ref.fa'), contigs)
    bam = write_bam(os.path.join(root, 'reads.bam'), records, contigs)

    f5dir = os.path.join(root, 'fast5')
    os.makedirs(f5dir, exist_ok=True)
    reads = os.path.join(root, 'reads.fastq')
    with open(reads + '.index.readdb', 'w') as fh:
        for name, raw in signals.items():
            write_fast5_single(os.path.join(f5dir, f'{name}.fast5'), name, raw)
            fh.write(f'{name}\tfast5/{name}.fast5\n')
        for name, path in extra_manifest:
            fh.write(f'{name}\t{path}\n')
    return SimpleNamespace(root=root, bam=bam, fasta=fasta, reads=reads, fast5_dir=f5dir,
                           contig_seq=contigs[0][1])


# -------------------------------------------------------------------------
# Fake stores
# -------------------------------------------------------------------------

class FakeAln:
    """Stand-in for a pysam ``AlignedSegment``."""

    def __init__(self, name, pos=0, mapq=60, flag=0, length=10, tid=0):
        self.query_name = name
        self.flag = flag
        self.mapping_quality = mapq
        self.reference_id = -1 if flag & FLAG_UNMAPPED else tid
        self.reference_start = -1 if flag & FLAG_UNMAPPED else pos
        self.reference_end = None if flag & FLAG_UNMAPPED else pos + length

    @property
    def is_unmapped(self):
        return bool(self.flag & FLAG_UNMAPPED)

    @property
    def is_secondary(self):
        return bool(self.flag & FLAG_SECONDARY)

    @property
    def is_supplementary(self):
        return bool(self.flag & FLAG_SUPPLEMENTARY)


class FakeAlignments:
    def __init__(self, alns, ref_names=(CONTIG,)):
        self._alns = list(alns)
        self._pos = 0
        self.ref_names = tuple(ref_names)
        self.pulled = 0

    def reference_name(self, tid):
        return self.ref_names[tid] if 0 <= tid < len(self.ref_names) else None

    def next_record(self):
        if self._pos >= len(self._alns):
            return None
        self._pos += 1
        self.pulled += 1
        return self._alns[self._pos - 1]


class FakeReference:
    def __init__(self, seq='ACGT' * 250, fail=()):
        self.seq = seq
        self.fail = set(fail)

    def fetch(self, contig, start, end):
        if (contig, start) in self.fail or end is None or end > len(self.seq):
            raise ReferenceFetchError(contig, start, end, 'out of range')
        return self.seq[start:end]


class FakeReadDB:
    """Serves a fresh copy of *samples* for every read not in *missing*."""

    def __init__(self, samples=(10, 20), missing=(), offset=5.0, range_=2.0, digitisation=1.0):
        self.samples = samples
        self.missing = set(missing)
        self.calib = dict(offset=offset, range=range_, digitisation=digitisation)

    def read_signal(self, read_name):
        if read_name in self.missing:
            raise SignalUnavailable(read_name, 'fast5 file is unreadable', f'/nope/{read_name}.fast5')
        record = SignalRecord(read_id=read_name, raw=np.array(self.samples, dtype=np.float32), **self.calib)
        return f'/f5/{read_name}.fast5', record


def fake_context(alns, options=None, reference=None, readdb=None):
    return SimpleNamespace(
        alignments=FakeAlignments(alns),
        reference=reference or FakeReference(),
        readdb=readdb or FakeReadDB(),
        options=options or PipelineOptions(),
    )


class CountingSegmenter:
    """Segmenter stub: one event per read, remembers what it saw."""

    name = 'counting'

    def __init__(self):
        self.calls = []

    def segment(self, n_samples, signal):
        from poreflow.plugins.abc import EVENT_DTYPE

        self.calls.append((n_samples, np.array(signal[:n_samples])))
        ev = np.zeros(1, dtype=EVENT_DTYPE)
        ev['length'] = n_samples
        ev['mean'] = float(np.mean(signal[:n_samples])) if n_samples else 0.0
        return ev
