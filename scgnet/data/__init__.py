"""Sample preparation: normalisation, splitting and toy datasets."""

from . import synthetic
from .normalize import MinMaxNormalizer, SymmetricNormalizer
from .sampling import RandomSampler, SampleSplit, split_indices

__all__ = [
    "synthetic",
    "MinMaxNormalizer",
    "SymmetricNormalizer",
    "RandomSampler",
    "SampleSplit",
    "split_indices",
]
