"""Rendering of aggregated activity into chat report blocks."""

from .formatter import ReportFormatter, dry_run_summary

__all__ = ['ReportFormatter', 'dry_run_summary']
