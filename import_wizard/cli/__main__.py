from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

from import_wizard.config.loader import ConfigError, load_config, resolve_config_path
from import_wizard.excel.reader import FileParseError
from import_wizard.logging.init import log_summary, set_debug, setup_logging
from import_wizard.logging.issue_log import IssueLogBuffer
from import_wizard.models.config_models import WizardConfig
from import_wizard.models.issue import Severity
from import_wizard.models.step import WizardStep
from import_wizard.services.progress import ValidationProgressBar
from import_wizard.services.summary import render_summary_line
from import_wizard.services.wizard import ImportWizardController

"""CLI entrypoint.

Headless run of the wizard for one file:
- Load .env and config
- Upload FILE, select the header row, optionally apply a template
- Advance to the validation step (progress bar on TTY)
- Write issues to logs/issues-*.log and the cleaned rows as JSON Lines
- Log the SUMMARY line

Exit codes: 0 = no blocking errors, 2 = blocking errors (nothing exported),
1 = fatal (config / file / template).
"""

EXIT_SUCCESS = 0
EXIT_BLOCKING_ERRORS = 2
EXIT_FATAL = 1


def _load_env_file(path: Path) -> None:
    if path.exists():
        load_dotenv(dotenv_path=path, override=False)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Spreadsheet / CSV import wizard (headless)")
    p.add_argument("file", help="CSV / XLSX / XLS file to import")
    p.add_argument("--config", default=None, help="Config YAML (default: $IMPORT_WIZARD_CONFIG or config/import.yml)")
    p.add_argument("--header-row", type=int, default=0, help="0-based index of the header row")
    p.add_argument("--template", default=None, help="Template id to apply before validation")
    p.add_argument("--output", default=None, help="Export path (default: <output_directory>/<stem>.jsonl)")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print first rows & auto mapping then exit")
    return p.parse_args(argv)


def _inspect_data(wizard: ImportWizardController) -> int:
    dataset = wizard.dataset
    if dataset is None:
        raise RuntimeError("no dataset loaded")
    print(f"FILE: {dataset.file_name} rows={dataset.row_count} width={dataset.width}")
    print(f"  header_row={wizard.header_row} header={list(dataset.header(wizard.header_row))}")
    for idx, row in dataset.data_rows(wizard.header_row)[:3]:
        print(f"  row[{idx}]={list(row)}")
    for m in wizard.mappings:
        extra = [s.source_index for s in m.additional_sources]
        print(
            f"  MAP {m.target_field} <- {m.source_index} "
            f"additional={extra} transformation={m.transformation.type.value}"
        )
    return EXIT_SUCCESS


def _write_export(path: Path, rows: list[dict[str, str]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        for r in rows:
            f.write(json.dumps(r, ensure_ascii=False) + "\n")


async def _run(args: argparse.Namespace, cfg: WizardConfig, logger) -> int:
    with ValidationProgressBar() as bar:
        wizard = ImportWizardController.from_config(cfg, on_progress=bar.update_to)
        try:
            await wizard.upload(args.file)
            wizard.select_header_row(args.header_row)
        except FileParseError as e:
            logger.error(f"file: {e}")
            return EXIT_FATAL
        except ValueError as e:
            logger.error(f"header: {e}")
            return EXIT_FATAL

        if args.inspect_data:
            return _inspect_data(wizard)

        if args.template:
            if wizard.template_store.get(args.template) is None:
                logger.error(f"template not found: {args.template}")
                return EXIT_FATAL
            wizard.apply_template(args.template)

        while wizard.step < WizardStep.VALIDATE:
            await wizard.go_next()

    dataset = wizard.dataset
    report = wizard.last_report
    if dataset is None or report is None:
        logger.error("validation did not produce a report")
        return EXIT_FATAL

    buffer = IssueLogBuffer()
    buffer.extend(dataset.file_name, report.issues)
    log_path = buffer.flush()
    for issue in report.issues:
        where = "global" if issue.is_global else f"row={issue.row}"
        if issue.severity is Severity.ERROR:
            logger.error(f"{where} column={issue.column} {issue.message}")
        else:
            logger.warning(f"{where} column={issue.column} {issue.message}")
    if log_path is not None:
        logger.info(f"issues written to {log_path}")

    exported = 0
    code = EXIT_SUCCESS
    if report.has_blocking_errors:
        code = EXIT_BLOCKING_ERRORS
    else:
        rows = wizard.cleaned_export()
        out = Path(args.output) if args.output else Path(cfg.output_directory) / f"{Path(args.file).stem}.jsonl"
        _write_export(out, rows)
        exported = len(rows)
        logger.info(f"exported {exported} rows to {out}")

    summary_line = render_summary_line(dataset.file_name, report, exported)
    # log_summary が "SUMMARY " を付与するため除去
    log_summary(summary_line[len("SUMMARY "):])
    return code


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # 空リスト [] の場合に sys.argv が混入しないよう None のときのみ読む
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"))

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    config_path = resolve_config_path(args.config)
    try:
        cfg = load_config(config_path)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    logger.info(f"Importing {args.file} (config={config_path})")
    return asyncio.run(_run(args, cfg, logger))


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
