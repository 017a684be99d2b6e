# src/foreman_converge/report/__init__.py
"""Relatórios derivados do Manifest (report.md)."""

from .report_md import REQUIRED_SECTIONS, generate_report_md

__all__ = ["REQUIRED_SECTIONS", "generate_report_md"]
