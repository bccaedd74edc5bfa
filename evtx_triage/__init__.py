"""EVTX Triage package"""

from .patterns import VERSION
from .models import AnalysisResult, Category, EventRecord, StructuredFields
from .taxonomy import Taxonomy, DEFAULT_TAXONOMY
from .analyzer import EvtxAnalyzer, run_analysis
from .output import print_report, render_report, report_to_dict
from .export import write_csv_outputs

__all__ = [
    'VERSION', 'AnalysisResult', 'Category', 'EventRecord', 'StructuredFields',
    'Taxonomy', 'DEFAULT_TAXONOMY', 'EvtxAnalyzer', 'run_analysis',
    'print_report', 'render_report', 'report_to_dict', 'write_csv_outputs',
]
