"""Document checklist helpers."""
from __future__ import annotations
from typing import List, Dict, Tuple

# Extra documents requested per repayment source, as (label, form field)
DOCS_BY_SOURCE: Dict[str, List[Tuple[str, str]]] = {
    "salary": [("Salary slip (latest)", "salarySlip")],
    "business": [("Business license", "businessLicense")],
}

ALWAYS_REQUIRED: List[Tuple[str, str]] = [("Bank statement (3 months)", "bankStatement")]


def build_document_checklist(repayment_source) -> List[Tuple[str, str]]:
    """Return ``(label, field)`` pairs for the documents an applicant should attach."""
    docs = list(ALWAYS_REQUIRED)
    for doc in DOCS_BY_SOURCE.get(str(repayment_source or ""), []):
        if doc not in docs:
            docs.append(doc)
    return docs


def missing_documents(values: Dict) -> List[str]:
    """Labels of checklist documents with no file attached yet."""
    return [
        label
        for label, field in build_document_checklist(values.get("repaymentSource"))
        if values.get(field) is None
    ]
