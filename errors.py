"""Exceptions raised while fetching and parsing Crossref works."""

from __future__ import annotations


class CrossrefError(RuntimeError):
    """Base class for failures that abort an export run."""


class TransportError(CrossrefError):
    """Network failure or non-success HTTP status from the API."""


class ParseError(CrossrefError):
    """Malformed response body or an item missing a required field."""
