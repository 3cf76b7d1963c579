# This file is part of Poreflow.
# Licensed under MIT License.

"""Shared fixtures."""

import pytest

from .helpers import (FLAG_SECONDARY, FLAG_UNMAPPED, make_dataset, raw_from_picoamps,
                      step_signal)


@pytest.fixture
def scenario_a(tmp_path):
    """One unmapped read, one at MAPQ 20 and one at MAPQ 40."""
    records = [
        {'name': 'unmapped', 'flag': FLAG_UNMAPPED},
        {'name': 'lowq', 'pos': 100, 'mapq': 20},
        {'name': 'good', 'pos': 200, 'mapq': 40},
    ]
    raw = raw_from_picoamps(step_signal())
    signals = {'unmapped': raw, 'lowq': raw, 'good': raw}
    return make_dataset(tmp_path, records, signals)


@pytest.fixture
def mixed_dataset(tmp_path):
    """Six reads at MAPQ 60 (read3 has no fast5), plus a secondary, a low-MAPQ and an unmapped read."""
    records = [{'name': f'read{i}', 'pos': 50 + 100 * i, 'mapq': 60} for i in range(6)]
    records += [
        {'name': 'secondary', 'pos': 420, 'mapq': 60, 'flag': FLAG_SECONDARY},
        {'name': 'lowq', 'pos': 30, 'mapq': 5},
        {'name': 'unmapped', 'flag': FLAG_UNMAPPED},
    ]
    raw = raw_from_picoamps(step_signal())
    signals = {f'read{i}': raw for i in range(6) if i != 3}
    signals['secondary'] = raw
    return make_dataset(tmp_path, records, signals,
                        extra_manifest=[('read3', 'fast5/does_not_exist.fast5')])
