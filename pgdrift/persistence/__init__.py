# ==============================================
# PERSISTENCE: Reports on disk
# ==============================================
#
# This package saves analysis results as JSON so runs can be
# compared over time.
#
# Modules:
# --------
# - report_store.py  → Save/load analyses, index reports, scan sweeps
#
# ==============================================

from .report_store import ReportStore

__all__ = ["ReportStore"]
