"""Submission wizard: draft state, per-year bundles and step controller."""

from report_intake.wizard.years import YearGroupManager, MIN_YEARS, MAX_YEARS
from report_intake.wizard.draft import (
    DraftSnapshot,
    MultiYearAttachment,
    SingleAttachment,
    SubmissionDraft,
)
from report_intake.wizard.controller import GuardResult, WizardController, WizardStep

__all__ = [
    "YearGroupManager",
    "MIN_YEARS",
    "MAX_YEARS",
    "DraftSnapshot",
    "MultiYearAttachment",
    "SingleAttachment",
    "SubmissionDraft",
    "GuardResult",
    "WizardController",
    "WizardStep",
]
