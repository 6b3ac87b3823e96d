"""JSON output reporter"""

import json
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

from specgate.config import PullRequestConfig
from specgate.models.finding import Finding
from specgate.models.result import DualRunResult, FileFailure, RunResult
from specgate.reporters.report import Report

logger = logging.getLogger(__name__)

OUTPUT_START_MARKER = "---output"
OUTPUT_END_MARKER = "---"


class JSONReporter:
    """Machine-readable outputs: CI check payloads, comparison logs, pipe logs"""

    @staticmethod
    def check_output(report: Report, markdown: str) -> dict:
        """Payload for a CI check run: title, summary and the rendered body."""
        return {
            "title": report.title,
            "summary": report.summary_text,
            "text": markdown,
        }

    @staticmethod
    def framed_check_output(report: Report, markdown: str) -> str:
        """Check payload wrapped in the markers CI scrapers look for."""
        payload = json.dumps(JSONReporter.check_output(report, markdown))
        return f"{OUTPUT_START_MARKER}\n{payload}\n{OUTPUT_END_MARKER}"

    @staticmethod
    def dual_log(result: DualRunResult, pr_config: Optional[PullRequestConfig] = None) -> dict:
        """Per-file before/after log of a comparison run"""
        pr_config = pr_config or PullRequestConfig()
        return {
            "pullRequest": pr_config.number,
            "repositoryUrl": pr_config.repository_url,
            "files": {
                path: phases.to_dict() for path, phases in sorted(result.files.items())
            },
            "newFiles": sorted(result.new_files),
            "failures": [failure.to_dict() for failure in result.failures],
        }

    @staticmethod
    def pipe_records(result: RunResult) -> List[dict]:
        """One ``Result`` record per finding and per failed file."""
        records = []
        for path, findings in sorted(result.files.items()):
            for finding in findings:
                records.append(JSONReporter._finding_record(path, finding))
        for failure in result.failures:
            records.append(JSONReporter._failure_record(failure))
        return records

    @staticmethod
    def _finding_record(path: str, finding: Finding) -> dict:
        paths = [{"tag": location.tag, "path": location.anchor} for location in finding.locations]
        return {
            "type": "Result",
            "level": finding.severity.value,
            "message": finding.message,
            "code": finding.rule_id,
            "docUrl": finding.doc_url,
            "paths": paths or [{"tag": "Url", "path": path}],
        }

    @staticmethod
    def _failure_record(failure: FileFailure) -> dict:
        return {
            "type": "Result",
            "level": "Error",
            "message": failure.message,
            "code": failure.kind,
            "docUrl": None,
            "paths": [{"tag": "Url", "path": failure.path}],
        }

    @staticmethod
    def append_jsonl(output_path: Union[str, Path], records: Iterable[dict]) -> int:
        """
        Append records to a JSON-lines file

        Returns:
            Number of records written
        """
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        count = 0
        with open(output_file, "a", encoding="utf-8") as f:
            for record in records:
                f.write(json.dumps(record))
                f.write("\n")
                count += 1
        logger.debug("Appended %d record(s) to %s", count, output_file)
        return count

    @staticmethod
    def save(data: Union[RunResult, DualRunResult, Report, dict], output_path: Union[str, Path]) -> None:
        """
        Save a result, report or payload to a JSON file

        Args:
            data: Object with ``to_dict`` or a plain dict
            output_path: Path to output JSON file
        """
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        payload = data if isinstance(data, dict) else data.to_dict()
        with open(output_file, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)

    @staticmethod
    def load(input_path: Union[str, Path]) -> RunResult:
        """
        Load a single-run result saved with :meth:`save`

        Raises:
            ValueError: If the file is not a saved run result
        """
        with open(input_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        if not isinstance(data, dict) or not isinstance(data.get("files"), dict):
            raise ValueError(f"{input_path} does not contain a saved run result")

        files = {
            path: tuple(Finding.from_dict(item) for item in findings)
            for path, findings in data["files"].items()
        }
        failures = [
            FileFailure(
                path=item["path"],
                kind=item["kind"],
                message=item["message"],
                phase=item.get("phase"),
            )
            for item in data.get("failures") or []
        ]
        return RunResult(
            files=files,
            new_files=frozenset(data.get("new_files") or []),
            failures=failures,
            target_branch=data.get("target_branch"),
        )
