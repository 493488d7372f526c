"""Client-side progression engine for the Pelekan treatment program."""

__version__ = "0.1.0"
