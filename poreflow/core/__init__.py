# This file is part of Poreflow.
# Licensed under MIT License.

"""Batch ingestion, normalization and lifecycle management."""
