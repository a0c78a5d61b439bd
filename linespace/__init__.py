"""linespace: batch resize and line-space normalization for scanned pages."""

__version__ = "0.1.0"
