from .diff_tables import compare_datasets
from .models import ComparisonError, Dataset, DiffResult, MatchPolicy
from .navigate import ChangeCursor
from .workbook import Workbook, compare_workbooks

__all__ = [
    "ChangeCursor",
    "ComparisonError",
    "Dataset",
    "DiffResult",
    "MatchPolicy",
    "Workbook",
    "compare_datasets",
    "compare_workbooks",
]
