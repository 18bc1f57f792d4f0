# -*- coding: utf-8 -*-
"""
Tabular views of a comparison (pandas) and CSV / Excel exports (openpyxl).
"""
from __future__ import annotations
from io import BytesIO
from typing import Dict, List, Sequence

import pandas as pd
from openpyxl import Workbook
from openpyxl.utils import get_column_letter
from openpyxl.utils.dataframe import dataframe_to_rows
from openpyxl.worksheet.table import Table, TableStyleInfo

from .compare import Comparison, Record, TimeDelta

PLACEHOLDER = "—"
KEY_COLUMN = "Paramètre"
UNIFORM_COLUMN = "Uniforme"
HIGHLIGHT_CSS = "background-color: #fff3cd"

_UNIT_FR = {"hours": "heure", "minutes": "minute"}


def format_delta(delta: TimeDelta) -> str:
    name = _UNIT_FR[delta.unit]
    return f"{delta.amount} {name}{'s' if delta.amount > 1 else ''}"


def column_labels(records: Sequence[Record]) -> List[str]:
    """One label per record; repeated file names get ` (2)`, ` (3)`..."""
    seen: Dict[str, int] = {}
    labels = []
    for rec in records:
        n = seen.get(rec.source, 0) + 1
        seen[rec.source] = n
        labels.append(rec.source if n == 1 else f"{rec.source} ({n})")
    return labels


def rows_to_dataframe(comparison: Comparison) -> pd.DataFrame:
    labels = column_labels(comparison.records)
    columns = [KEY_COLUMN] + labels + [UNIFORM_COLUMN]
    data = [
        [row.key] + [v or PLACEHOLDER for v in row.values] + [row.uniform]
        for row in comparison.rows
    ]
    return pd.DataFrame(data, columns=columns)


def deltas_to_dataframe(comparison: Comparison) -> pd.DataFrame:
    data = [
        {
            "De": d.earlier.source,
            "À": d.later.source,
            "Écart": format_delta(d),
            "Début": d.earlier.parsed_time.formatted,
            "Fin": d.later.parsed_time.formatted,
        }
        for d in comparison.deltas
    ]
    return pd.DataFrame(data, columns=["De", "À", "Écart", "Début", "Fin"])


def records_to_dataframe(records: Sequence[Record]) -> pd.DataFrame:
    data = []
    for rec in records:
        if rec.parsed_time is None:
            created = ""
        else:
            created = rec.parsed_time.formatted or "Format non reconnu"
        data.append({
            "Fichier": rec.source,
            "Statut": "OK" if rec.ok else rec.error,
            "Contenu": rec.raw_text or "",
            "Paramètres": len(rec.params),
            "createTime": created,
        })
    return pd.DataFrame(data, columns=["Fichier", "Statut", "Contenu", "Paramètres", "createTime"])


def row_styles(row: pd.Series) -> List[str]:
    """CSS per cell: whole row highlighted when its values differ."""
    css = "" if bool(row.get(UNIFORM_COLUMN, True)) else HIGHLIGHT_CSS
    return [css] * len(row)


def highlight_differences(df: pd.DataFrame):
    """pandas Styler for st.dataframe (needs jinja2, pulled in by streamlit)."""
    return df.style.apply(row_styles, axis=1)


def to_csv_bytes(df: pd.DataFrame) -> bytes:
    # BOM pour ouverture directe dans Excel
    return df.to_csv(index=False).encode("utf-8-sig")


def to_excel_bytes(sheets: Dict[str, pd.DataFrame]) -> bytes:
    """One sheet per DataFrame, each as a styled Excel table."""
    if not sheets:
        raise ValueError("Aucune feuille à exporter")
    wb = Workbook()
    wb.remove(wb.active)
    for idx, (title, df) in enumerate(sheets.items(), start=1):
        ws = wb.create_sheet(title=title[:31])
        for r in dataframe_to_rows(df, index=False, header=True):
            ws.append(r)
        if len(df.columns) and len(df.index):
            ref = f"A1:{get_column_letter(ws.max_column)}{ws.max_row}"
            table = Table(displayName=f"Table{idx}", ref=ref)
            table.tableStyleInfo = TableStyleInfo(name="TableStyleMedium9",
                                                  showFirstColumn=False, showLastColumn=False,
                                                  showRowStripes=True, showColumnStripes=False)
            ws.add_table(table)
        ws.freeze_panes = "A2"
        # Largeurs
        for col in ws.columns:
            max_len = max((len(str(c.value)) for c in col if c.value is not None), default=0)
            ws.column_dimensions[col[0].column_letter].width = min(max(12, max_len + 2), 60)
    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()
