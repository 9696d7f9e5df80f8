"""Silver-layer normalization of the TMDB 5000 movie extracts."""

__version__ = "0.1.0"
