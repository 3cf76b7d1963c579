# -*- coding: utf-8 -*-

# This file is part of Poreflow.
# Licensed under MIT License.

"""T-statistic event segmenter.

Two sliding-window t-tests (short and long windows) score every sample as a
candidate boundary between two stable current levels. A peak detector walks
both score tracks; a confirmed short-window peak masks the long detector for
one window so the same boundary is not reported twice. Segments between
consecutive boundaries become events.
"""

import numpy as np

from ..abc import EVENT_DTYPE, Segmenter

FLT_MIN = np.finfo(np.float32).tiny


def prefix_sums(signal):
    """Cumulative sums of the signal and its square, with a leading zero."""
    x = np.asarray(signal, dtype=np.float64)
    sums = np.concatenate(([0.0], np.cumsum(x)))
    sumsqs = np.concatenate(([0.0], np.cumsum(x * x)))
    return sums, sumsqs


def compute_tstat(sums, sumsqs, n, w):
    """Welch-style t-statistic between the windows left and right of each sample."""
    tstat = np.zeros(n, dtype=np.float32)
    if w < 2 or n < 2 * w:
        return tstat
    i = np.arange(w, n - w + 1)
    sum1 = sums[i] - sums[i - w]
    sumsq1 = sumsqs[i] - sumsqs[i - w]
    sum2 = sums[i + w] - sums[i]
    sumsq2 = sumsqs[i + w] - sumsqs[i]
    mean1 = sum1 / w
    mean2 = sum2 / w
    combined_var = sumsq1 / w - mean1 * mean1 + sumsq2 / w - mean2 * mean2
    combined_var = np.maximum(combined_var, FLT_MIN)
    tstat[i] = np.abs(mean2 - mean1) / np.sqrt(combined_var / w)
    return tstat


class _Detector:
    def __init__(self, tstat, threshold, window_length):
        self.signal = tstat
        self.threshold = threshold
        self.window_length = window_length
        self.masked_to = 0
        self.reset(np.inf)

    def reset(self, value):
        self.peak_pos = -1
        self.peak_value = value
        self.valid_peak = False


def short_long_peak_detector(short, long, peak_height):
    """Return boundary positions found by the two detectors."""
    peaks = []
    for i in range(len(short.signal)):
        for det in (short, long):
            if det.masked_to >= i:
                continue
            current = det.signal[i]
            if det.peak_pos == -1:
                # no candidate yet: track the minimum until we rise above it
                if current < det.peak_value:
                    det.peak_value = current
                elif current - det.peak_value > peak_height:
                    det.peak_value = current
                    det.peak_pos = i
                continue

            if current > det.peak_value:
                det.peak_value = current
                det.peak_pos = i
            if det is short and det.peak_value > det.threshold:
                long.masked_to = det.peak_pos + det.window_length
                long.reset(np.inf)
            if det.peak_value - current > peak_height and det.peak_value > det.threshold:
                det.valid_peak = True
            if det.valid_peak and (i - det.peak_pos) > det.window_length // 2:
                peaks.append(det.peak_pos)
                det.reset(current)
    return peaks


def create_events(peaks, sums, sumsqs, n):
    bounds = np.unique(np.asarray(peaks, dtype=np.int64))
    bounds = bounds[(bounds > 0) & (bounds < n)]
    bounds = np.concatenate(([0], bounds, [n])).astype(np.int64)

    starts = bounds[:-1]
    ends = bounds[1:]
    lengths = ends - starts
    mean = (sums[ends] - sums[starts]) / lengths
    var = (sumsqs[ends] - sumsqs[starts]) / lengths - mean * mean

    events = np.empty(len(starts), dtype=EVENT_DTYPE)
    events['start'] = starts
    events['length'] = lengths
    events['mean'] = mean
    events['stdv'] = np.sqrt(np.maximum(var, 0.0))
    return events


def detect_events(signal, window_length1=3, window_length2=6,
                  threshold1=1.4, threshold2=9.0, peak_height=0.2):
    n = len(signal)
    if n == 0:
        return np.empty(0, dtype=EVENT_DTYPE)
    sums, sumsqs = prefix_sums(signal)
    short = _Detector(compute_tstat(sums, sumsqs, n, window_length1), threshold1, window_length1)
    long = _Detector(compute_tstat(sums, sumsqs, n, window_length2), threshold2, window_length2)
    peaks = short_long_peak_detector(short, long, peak_height)
    return create_events(peaks, sums, sumsqs, n)


class TTestSegmenter(Segmenter):
    """Two-window t-test change-point segmenter (R9 parameters)."""

    def __init__(self, window_length1=3, window_length2=6,
                 threshold1=1.4, threshold2=9.0, peak_height=0.2):
        self.params = dict(
            window_length1=window_length1,
            window_length2=window_length2,
            threshold1=threshold1,
            threshold2=threshold2,
            peak_height=peak_height,
        )

    @property
    def name(self) -> str:
        return "ttest"

    @property
    def description(self) -> str:
        return "Two-window t-statistic event detection"

    @property
    def version(self) -> str:
        return "1.0.0"

    def segment(self, n_samples, signal):
        return detect_events(signal[:n_samples], **self.params)
