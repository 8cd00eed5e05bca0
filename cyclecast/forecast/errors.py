"""Exceptions raised by the forecast core and its collaborators."""

from __future__ import annotations


class ForecastError(Exception):
    """Base class for forecast failures."""


class HistoryUnavailableError(ForecastError):
    """The period history store could not be reached.

    Fatal for the current request: no partial or fallback forecast is
    produced when the history cannot be read.
    """


class CacheUnavailableError(ForecastError):
    """The cache backing store could not be reached.

    Raised by cache ports and always recovered inside ``PredictionCache``.
    """
