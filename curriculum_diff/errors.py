"""
Exceptions raised by curriculum_diff.

Only hard failures are exceptions. A row that cannot be parsed is dropped,
and a term without counterpart is compared against an empty term.
"""

from __future__ import annotations


class CurriculumDiffError(Exception):
    """Base class for all errors raised by this package."""


class ExtractionEmpty(CurriculumDiffError):
    """No strategy produced a single term group from the document."""


class CatalogLoadError(CurriculumDiffError):
    """A catalog or sheet file is missing or not valid JSON of the expected shape."""


class FetchError(CurriculumDiffError):
    """The program page could not be retrieved (plain fetch or rendered)."""


class ReportDeliveryError(CurriculumDiffError):
    """The report could not be delivered by a notification channel."""
