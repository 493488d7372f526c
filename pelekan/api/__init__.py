"""Remote progression service access."""

from pelekan.api.client import ProgressionClient

__all__ = ["ProgressionClient"]
