"""
services/export.py - Spreadsheet export of report rows
"""

import io

import pandas as pd

XLSX_MIMETYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


def export_rows(rows, sheet_name='Sheet1'):
    """
    Build an .xlsx workbook from a list of dicts, one column per key.

    Returns:
        bytes: the workbook file content
    """
    df = pd.DataFrame(list(rows))
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False)
    return buffer.getvalue()
