"""Training-data output of the mapping layer."""

from .samples import Position, SampleBatch, SampleFileMetadata, SampleWriter, load_samples

__all__ = [
    "Position",
    "SampleBatch",
    "SampleFileMetadata",
    "SampleWriter",
    "load_samples",
]
