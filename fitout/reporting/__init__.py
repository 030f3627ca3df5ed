"""Reporting module for Fitout.

PDF exports of client selections and admin dashboard statistics.
"""

from fitout.reporting.dashboard_metrics import DashboardMetrics, compute_dashboard_metrics
from fitout.reporting.pdf_export import export_submission

__all__ = ["DashboardMetrics", "compute_dashboard_metrics", "export_submission"]
