"""Typed errors raised by the tax engine.

Amount and section errors also subclass ``ValueError`` so callers that
already map ``ValueError`` to a 422 keep working; lookup failures
subclass ``LookupError``.
"""

from __future__ import annotations


class TaxEngineError(Exception):
    """Base class for every error the engine raises on purpose."""


class InvalidAmountError(TaxEngineError, ValueError):
    """An income, deduction or multiplier value is negative, non-finite or non-numeric."""


class UnknownDeductionSectionError(TaxEngineError, ValueError):
    """A deduction key is not one of the recognised sections."""


class UnknownRegimeError(TaxEngineError, LookupError):
    """No slab table is registered for the requested regime."""


class UnknownAssessmentYearError(UnknownRegimeError):
    """No slab tables at all are registered for the requested assessment year."""


class MalformedRegimeDefinitionError(TaxEngineError):
    """A slab table failed validation while the registry was loading."""
