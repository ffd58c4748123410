from __future__ import annotations

import io
from typing import Mapping

import pandas as pd

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def write_workbook(sheets: Mapping[str, pd.DataFrame]) -> bytes:
    """Write the frames, in order, to an in-memory .xlsx file."""

    out = io.BytesIO()
    with pd.ExcelWriter(out, engine="openpyxl") as writer:
        for name, df in sheets.items():
            df.to_excel(writer, index=False, sheet_name=name)
    return out.getvalue()
