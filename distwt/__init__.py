"""Building blocks for wavelet tree and wavelet matrix construction over simulated workers."""

__version__ = "0.1.0"