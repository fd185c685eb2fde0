import argparse
from datetime import date

import pytest

from docvault.cli.download import build_criteria, build_parser, parse_date
from docvault.cli.list_envelopes import format_page
from docvault.schema import EnvelopePage, EnvelopeSummary


def test_parser_collects_ids_and_dates():
    args = build_parser().parse_args(
        ["--envelope-id", "a", "--envelope-id", "b", "--from-date", "2024-02-01", "--combined"]
    )
    assert args.envelope_id == ["a", "b"]
    assert args.combined is True
    assert args.from_date == date(2024, 2, 1)
    assert args.status == "completed"


def test_status_any_disables_filter():
    args = build_parser().parse_args(["--status", "ANY"])
    criteria = build_criteria(args)
    assert criteria.status is None
    assert "status" not in criteria.to_params()


def test_bad_date_is_rejected():
    with pytest.raises(argparse.ArgumentTypeError):
        parse_date("01/02/2024")


def test_format_page_lists_envelopes_and_status_counts():
    page = EnvelopePage(
        envelopes=[
            EnvelopeSummary(envelope_id="e1", subject="Lease", status="completed"),
            EnvelopeSummary(envelope_id="e2", status="sent"),
        ],
        total_set_size=2,
    )
    text = format_page(page)
    assert "1. e1" in text
    assert "Subject: No subject" in text
    assert "   completed: 1" in text
    assert format_page(EnvelopePage(envelopes=[])) == "No envelopes matched the search criteria."
