from datetime import date

import pytest

from docvault.schema import (
    EnvelopeDocument,
    EnvelopePage,
    EnvelopeSummary,
    SearchCriteria,
    sanitize_filename,
)


def test_sanitize_replaces_forbidden_characters_and_whitespace():
    assert sanitize_filename('Contract: "Q3" <final>') == "Contract___Q3___final_"
    assert sanitize_filename("a/b\\c|d?e*f") == "a_b_c_d_e_f"
    assert sanitize_filename("lots   of \t space") == "lots_of_space"


def test_sanitize_caps_length_and_is_idempotent():
    raw = "Signed agreement: " + "x" * 400
    once = sanitize_filename(raw)
    assert len(once) == 200
    assert sanitize_filename(once) == once

    subject = '  Acordo   de  "Prestação"  /  2024 '
    assert sanitize_filename(sanitize_filename(subject)) == sanitize_filename(subject)


def test_envelope_summary_from_api_and_folder_name():
    envelope = EnvelopeSummary.from_api(
        {
            "envelopeId": "env-1",
            "emailSubject": "Please sign: NDA",
            "status": "completed",
            "createdDateTime": "2024-01-02T10:00:00Z",
        }
    )
    assert envelope.is_completed
    assert envelope.status_changed_at == "2024-01-02T10:00:00Z"
    assert envelope.folder_name() == "env-1_Please_sign__NDA"
    assert envelope.to_dict()["emailSubject"] == "Please sign: NDA"

    untitled = EnvelopeSummary(envelope_id="env-2")
    assert untitled.folder_name() == "env-2_No_Subject"
    assert untitled.to_dict() == {"envelopeId": "env-2"}


def test_envelope_summary_requires_an_id():
    with pytest.raises(ValueError):
        EnvelopeSummary.from_api({"emailSubject": "orphan"})


def test_document_summary_detection_and_filename():
    summary = EnvelopeDocument.from_api({"documentId": "certificate", "name": "Summary", "type": "summary"})
    content = EnvelopeDocument.from_api({"documentId": "1", "name": "Lease/2024", "type": "content", "order": "1"})
    unnamed = EnvelopeDocument.from_api({"documentId": "7"})
    assert summary.is_summary
    assert not content.is_summary
    assert content.order == 1
    assert content.filename() == "Lease_2024.pdf"
    assert unnamed.filename() == "7.pdf"
    assert content.filename(with_id=True) == "Lease_2024_1.pdf"
    assert unnamed.filename(with_id=True) == "7.pdf"


def test_page_counts_statuses():
    page = EnvelopePage.from_api(
        {
            "envelopes": [
                {"envelopeId": "a", "status": "completed"},
                {"envelopeId": "b", "status": "sent"},
                {"envelopeId": "c", "status": "completed"},
            ],
            "totalSetSize": "3",
        }
    )
    assert page.total_set_size == 3
    assert page.result_set_size == 3
    assert page.status_counts() == {"completed": 2, "sent": 1}


def test_search_criteria_params():
    criteria = SearchCriteria(from_date=date(2024, 1, 1), to_date=date(2024, 2, 1))
    params = criteria.to_params(start_position=200)
    assert params == {
        "from_date": "2024-01-01",
        "to_date": "2024-02-01",
        "count": 100,
        "start_position": 200,
        "status": "completed",
    }

    any_status = SearchCriteria(status=None, page_size=25)
    params = any_status.to_params()
    assert "status" not in params
    assert params["count"] == 25
    from_date, to_date = any_status.resolved_dates(today=date(2024, 3, 31))
    assert from_date == date(2024, 3, 1)
    assert to_date == date(2024, 3, 31)
