from __future__ import annotations

from ..models.validation_state import ValidationReport

"""SUMMARY line rendering.

Format:
SUMMARY file={name} data_rows={n} issues={k} errors={e} warnings={w} exported={r} elapsed_sec={s}
"""

__all__ = [
    "format_elapsed",
    "render_summary_line",
]


def format_elapsed(seconds: float) -> str:
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        # 指数表記を避ける
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return f"{seconds:.3f}".rstrip("0").rstrip(".")


def render_summary_line(file_name: str, report: ValidationReport, exported_rows: int) -> str:
    """Render the SUMMARY line for one validated file.

    Examples:
        >>> report = ValidationReport(generation=1, issues=(), data_row_count=3, elapsed_seconds=2.0)
        >>> render_summary_line("people.csv", report, 3)
        'SUMMARY file=people.csv data_rows=3 issues=0 errors=0 warnings=0 exported=3 elapsed_sec=2'
    """
    # 空白を含むファイル名はトークン区切りと衝突するため置換
    name = file_name.replace(" ", "_") or "-"
    return (
        f"SUMMARY file={name} "
        f"data_rows={report.data_row_count} "
        f"issues={len(report.issues)} "
        f"errors={report.error_count} "
        f"warnings={report.warning_count} "
        f"exported={exported_rows} "
        f"elapsed_sec={format_elapsed(report.elapsed_seconds)}"
    )
