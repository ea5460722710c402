from webresearch.orchestrators.research.adapters.academic import AcademicSearchAdapter
from webresearch.orchestrators.research.adapters.financial import FinancialNewsAdapter
from webresearch.orchestrators.research.adapters.patent import PatentSearchAdapter
from webresearch.orchestrators.research.adapters.web import WebSearchAdapter

__all__ = [
    "AcademicSearchAdapter",
    "FinancialNewsAdapter",
    "PatentSearchAdapter",
    "WebSearchAdapter",
]
