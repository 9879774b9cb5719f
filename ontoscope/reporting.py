"""
Export Module.

Builds the two downloadable views of a session: a JSON document (schema
version 1.0) grouping the relevant competency questions by intersection, and
a multi-sheet Excel workbook written with xlsxwriter.
"""
import pandas as pd
import io
import json
import logging
from collections import Counter
from datetime import datetime
from typing import Any, Dict, List

from ontoscope.config import EXPORT_SCHEMA_VERSION, REPORT_HEADER_COLOR
from ontoscope.enums import CQType, Dimension
from ontoscope.models import group_by_intersection
from ontoscope.store import CQStore

logger = logging.getLogger(__name__)

# ==============================================================================
# --- Helper Classes ---
# ==============================================================================

class ReportWriter:
    """Encapsulates Excel writing logic and formatting state."""

    def __init__(self, buffer: io.BytesIO):
        self.writer = pd.ExcelWriter(buffer, engine='xlsxwriter')
        self.workbook = self.writer.book
        self.formats = {
            'title': self.workbook.add_format({'bold': True, 'font_size': 16, 'valign': 'vcenter'}),
            'subtitle': self.workbook.add_format({'bold': True, 'font_size': 11}),
            'header': self.workbook.add_format({
                'bold': True, 'font_color': '#FFFFFF', 'bg_color': REPORT_HEADER_COLOR, 'border': 1
            }),
            'wrap': self.workbook.add_format({'text_wrap': True, 'valign': 'top'}),
        }

    def write_header(self, worksheet, domain: str):
        worksheet.set_row(0, 30)
        worksheet.merge_range('A1:D1', 'Competency Question Scoping Report', self.formats['title'])
        worksheet.write('A2', 'Domain:', self.formats['subtitle'])
        worksheet.write('B2', domain)
        worksheet.write('A3', 'Report Date:', self.formats['subtitle'])
        worksheet.write('B3', datetime.now().strftime("%Y-%m-%d %H:%M:%S"))

    def write_table(self, df: pd.DataFrame, sheet_name: str, startrow: int = 0):
        """Writes `df` with styled headers; the sheet is created if needed."""
        df.to_excel(self.writer, sheet_name=sheet_name, startrow=startrow + 1, header=False, index=False)
        worksheet = self.writer.sheets[sheet_name]
        for col_num, value in enumerate(df.columns.values):
            worksheet.write(startrow, col_num, value, self.formats['header'])
        return worksheet

    def close(self):
        self.writer.close()

# ==============================================================================
# --- JSON Export ---
# ==============================================================================

def build_export(store: CQStore, session_id: str) -> Dict[str, Any]:
    """
    Export document for one session. Only relevant CQs and axis values are
    included; intersections are sorted by domain coverage then granularity.
    """
    session = store.get_session(session_id)
    cqs = store.cqs(session_id, relevant_only=True)
    groups = group_by_intersection(cqs)

    intersections = []
    for domain, granularity in sorted(groups):
        intersections.append({
            'domain_coverage': domain,
            'terminology_granularity': granularity,
            'competency_questions': [{
                'id': cq.id,
                'question': cq.question,
                'type': cq.type_value or CQType.SUBJECT.value,
                'terminologies': list(cq.suggested_terms),
                'position': {'x': cq.x, 'y': cq.y},
                'created': cq.created_at.isoformat(),
            } for cq in groups[(domain, granularity)]],
        })

    by_type = Counter(cq.type_value or CQType.SUBJECT.value for cq in cqs)
    return {
        'meta': {
            'schema_version': EXPORT_SCHEMA_VERSION,
            'exported_at': datetime.now().isoformat(),
            'domain': session.domain,
            'session_id': session.id,
            'total_questions': len(cqs),
            'total_intersections': len(intersections),
        },
        'dimensions': {
            dimension.value: [v.value for v in store.axis_values(session_id, dimension)]
            for dimension in Dimension
        },
        'intersections': intersections,
        'summary': {
            'questions_by_type': {t: by_type.get(t, 0) for t in CQType.values()},
            'questions_by_intersection': [
                {'intersection': f"{i['domain_coverage']} × {i['terminology_granularity']}",
                 'count': len(i['competency_questions'])}
                for i in intersections
            ],
        },
    }


def generate_json_export(store: CQStore, session_id: str) -> bytes:
    payload = build_export(store, session_id)
    logger.info("Exported %d questions as JSON.", payload['meta']['total_questions'])
    return json.dumps(payload, indent=2, ensure_ascii=False).encode('utf-8')


def export_filename(domain: str, extension: str) -> str:
    slug = "_".join(domain.split()) or "session"
    return f"CQ_Scope_{slug}_{datetime.now().strftime('%Y%m%d')}.{extension}"

# ==============================================================================
# --- Excel Report ---
# ==============================================================================

def _create_summary_sheet(report: ReportWriter, payload: Dict[str, Any]):
    sheet_name = 'Summary'
    worksheet = report.workbook.add_worksheet(sheet_name)
    report.write_header(worksheet, payload['meta']['domain'])

    by_type = payload['summary']['questions_by_type']
    type_df = pd.DataFrame({
        'Type': [t.capitalize() for t in by_type],
        'Questions': list(by_type.values()),
    })
    type_start_row = 5
    worksheet.write(type_start_row - 1, 0, 'Questions by Type', report.formats['subtitle'])
    report.write_table(type_df, sheet_name, startrow=type_start_row)

    dims_start_row = type_start_row + len(type_df) + 3
    worksheet.write(dims_start_row - 1, 0, 'Axis Values', report.formats['subtitle'])
    dims = payload['dimensions']
    depth = max((len(v) for v in dims.values()), default=0)
    dims_df = pd.DataFrame({
        'Domain Coverage': dims[Dimension.DOMAIN_COVERAGE.value] + [''] * (depth - len(dims[Dimension.DOMAIN_COVERAGE.value])),
        'Terminology Granularity': dims[Dimension.TERMINOLOGY_GRANULARITY.value] + [''] * (depth - len(dims[Dimension.TERMINOLOGY_GRANULARITY.value])),
    })
    report.write_table(dims_df, sheet_name, startrow=dims_start_row)
    worksheet.autofit()

    if payload['meta']['total_questions']:
        chart = report.workbook.add_chart({'type': 'column'})
        chart.add_series({
            'name': 'Questions by Type',
            'categories': [sheet_name, type_start_row + 1, 0, type_start_row + len(type_df), 0],
            'values': [sheet_name, type_start_row + 1, 1, type_start_row + len(type_df), 1],
            'fill': {'color': REPORT_HEADER_COLOR},
            'data_labels': {'value': True}
        })
        chart.set_title({'name': 'Questions by Type'})
        chart.set_legend({'position': 'none'})
        chart.set_style(10)
        worksheet.insert_chart('E2', chart, {'x_scale': 1.2, 'y_scale': 1.2})


def _create_intersections_sheet(report: ReportWriter, payload: Dict[str, Any]):
    rows: List[Dict[str, Any]] = [{
        'Domain Coverage': i['domain_coverage'],
        'Terminology Granularity': i['terminology_granularity'],
        'Questions': len(i['competency_questions']),
    } for i in payload['intersections']]
    df = pd.DataFrame(rows, columns=['Domain Coverage', 'Terminology Granularity', 'Questions'])
    worksheet = report.write_table(df, 'Intersections')
    worksheet.autofit()


def _create_full_cq_list_sheet(report: ReportWriter, store: CQStore, session_id: str):
    df = store.to_dataframe(session_id, relevant_only=True).drop(columns=['Relevant'])
    df['Created'] = df['Created'].astype(str)
    worksheet = report.write_table(df, 'Competency Questions')
    worksheet.set_column('B:B', 60, report.formats['wrap'])
    worksheet.set_column('F:F', 40, report.formats['wrap'])


def generate_excel_report(store: CQStore, session_id: str) -> bytes:
    payload = build_export(store, session_id)
    output_buffer = io.BytesIO()
    report = ReportWriter(output_buffer)
    _create_summary_sheet(report, payload)
    _create_intersections_sheet(report, payload)
    _create_full_cq_list_sheet(report, store, session_id)
    report.close()
    logger.info("Excel report written for session %s.", session_id)
    return output_buffer.getvalue()
