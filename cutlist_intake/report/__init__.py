"""Intake reports."""

from .intake_report import IntakeReport, build_intake_report

__all__ = ["IntakeReport", "build_intake_report"]
