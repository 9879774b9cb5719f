import json
from io import BytesIO

import pandas as pd
import pytest

from ontoscope.reporting import build_export, export_filename, generate_excel_report, generate_json_export


def test_export_meta_and_dimensions(seeded_store):
    store, session = seeded_store
    payload = build_export(store, session.id)

    meta = payload['meta']
    assert meta['schema_version'] == "1.0"
    assert meta['domain'] == "Healthcare informatics"
    assert meta['session_id'] == session.id
    assert meta['total_questions'] == 5
    assert meta['total_intersections'] == 4
    assert payload['dimensions']['domain_coverage'] == ["Clinical", "Devices", "Records"]
    assert payload['dimensions']['terminology_granularity'] == ["First-level", "Second-level", "Third-level"]


def test_export_intersections_sorted(seeded_store):
    store, session = seeded_store
    payload = build_export(store, session.id)
    keys = [(i['domain_coverage'], i['terminology_granularity']) for i in payload['intersections']]
    assert keys == sorted(keys)
    assert keys[0] == ("Clinical", "First-level")

    first = payload['intersections'][0]['competency_questions']
    assert [q['question'] for q in first] == ["Which patients are admitted?", "Who treats a patient?"]
    assert first[0]['terminologies'] == ["Patient"]
    assert first[0]['position'] == {'x': 0.5, 'y': 0.5}


def test_export_summary_counts_unspecified_as_subject(seeded_store):
    store, session = seeded_store
    summary = build_export(store, session.id)['summary']
    assert summary['questions_by_type'] == {'subject': 3, 'property': 1, 'object': 1}
    assert {'intersection': "Clinical × First-level", 'count': 2} in summary['questions_by_intersection']


def test_export_skips_irrelevant(seeded_store):
    store, session = seeded_store
    store.set_cq_relevance(store.cqs(session.id)[1].id, False)
    payload = build_export(store, session.id)
    assert payload['meta']['total_questions'] == 4
    assert ("Clinical", "Second-level") not in [
        (i['domain_coverage'], i['terminology_granularity']) for i in payload['intersections']
    ]


def test_json_export_is_valid_json(seeded_store):
    store, session = seeded_store
    data = json.loads(generate_json_export(store, session.id).decode('utf-8'))
    assert data['meta']['total_questions'] == 5


def test_export_filename():
    name = export_filename("Healthcare informatics", "json")
    assert name.startswith("CQ_Scope_Healthcare_informatics_")
    assert name.endswith(".json")


def test_generate_excel_report_structure(seeded_store):
    store, session = seeded_store
    report_bytes = generate_excel_report(store, session.id)
    assert isinstance(report_bytes, bytes) and len(report_bytes) > 0

    with pd.ExcelFile(BytesIO(report_bytes), engine='openpyxl') as xls:
        assert xls.sheet_names == ['Summary', 'Intersections', 'Competency Questions']


def test_generate_excel_report_content(seeded_store):
    store, session = seeded_store
    report_bytes = generate_excel_report(store, session.id)

    cq_df = pd.read_excel(BytesIO(report_bytes), sheet_name='Competency Questions', engine='openpyxl')
    assert len(cq_df) == 5
    assert list(cq_df.columns) == [
        'ID', 'Question', 'Type', 'Domain Coverage', 'Terminology Granularity', 'Terminology', 'Created'
    ]

    inter_df = pd.read_excel(BytesIO(report_bytes), sheet_name='Intersections', engine='openpyxl')
    assert inter_df['Questions'].sum() == 5

    # Type table header sits on row 6 below the report header.
    type_df = pd.read_excel(BytesIO(report_bytes), sheet_name='Summary', skiprows=5, nrows=3, engine='openpyxl')
    assert list(type_df.columns[:2]) == ['Type', 'Questions']
    assert type_df['Questions'].tolist() == [3, 1, 1]


def test_generate_excel_report_empty_session(seeded_store):
    store, _ = seeded_store
    empty = store.create_session("Empty domain")
    report_bytes = generate_excel_report(store, empty.id)
    cq_df = pd.read_excel(BytesIO(report_bytes), sheet_name='Competency Questions', engine='openpyxl')
    assert cq_df.empty
