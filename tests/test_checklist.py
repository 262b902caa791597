from core.checklist import build_document_checklist, missing_documents
from sacco.models import FileReference


def test_bank_statement_always_required():
    assert build_document_checklist(None) == [("Bank statement (3 months)", "bankStatement")]
    assert [f for _, f in build_document_checklist("investments")] == ["bankStatement"]


def test_source_specific_documents():
    assert [f for _, f in build_document_checklist("salary")] == ["bankStatement", "salarySlip"]
    assert [f for _, f in build_document_checklist("business")] == ["bankStatement", "businessLicense"]


def test_missing_documents_tracks_attachments():
    values = {"repaymentSource": "salary", "bankStatement": FileReference(name="stmt.pdf"), "salarySlip": None}
    assert missing_documents(values) == ["Salary slip (latest)"]
