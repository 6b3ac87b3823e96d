"""Tests for markdown reporter"""

import pytest

from specgate.config import PullRequestConfig
from specgate.models.finding import Finding, Location, Severity
from specgate.models.result import FileFailure, RunResult
from specgate.models.tool_output import TOOL_MODEL_VALIDATION
from specgate.reporters.markdown_reporter import MarkdownReporter, short_name
from specgate.reporters.report import ReportBuilder
from specgate.triage.classifier import classify


@pytest.fixture
def pr_config():
    return PullRequestConfig(repo_slug="org/specs", head_sha="abc123", number="7", target_branch="main")


@pytest.fixture
def report():
    finding = Finding(
        severity=Severity.ERROR,
        rule_id="1005",
        message="The new version removes the path | '/items'.",
        locations=(Location(tag="New", path="specification/a/a.json", line=12),),
        tool="breaking-change",
        doc_url="https://github.com/Azure/openapi-diff/blob/master/docs/rules/1005.md",
    )
    info = Finding(severity=Severity.INFO, rule_id="1001", message="No version change", tool="breaking-change")
    result = RunResult(
        files={"specification/a/a.json": (finding, info)},
        new_files=frozenset({"specification/b/new.json"}),
        target_branch="main",
    )
    return ReportBuilder(tool="breaking-change").build(result)


class TestShortName:
    def test_directory_and_bold_file(self):
        assert short_name("specification/a/a.json") == "specification/a/&#8203;<strong>a.json</strong>"

    def test_bare_file(self):
        assert short_name("a.json") == "<strong>a.json</strong>"


class TestMarkdownReporter:
    def test_title_and_summary(self, report, pr_config):
        markdown = MarkdownReporter.generate(report, pr_config)

        assert markdown.startswith("# 1 potential breaking change\n")
        assert "Compared to the target branch (**main**), this pull request introduces:" in markdown
        assert "- :x: **1 new error**" in markdown
        assert "- :white_check_mark: **0 new warnings**" in markdown

    def test_new_files_section(self, report, pr_config):
        markdown = MarkdownReporter.generate(report, pr_config)

        assert "### The following files look to be newly added in this PR:" in markdown
        assert "https://github.com/org/specs/blob/abc123/specification/b/new.json" in markdown

    def test_table_rows(self, report, pr_config):
        markdown = MarkdownReporter.generate(report, pr_config)
        lines = markdown.splitlines()

        header = lines.index("| | Rule | Location | Message |")
        rows = lines[header + 2 : header + 4]
        assert rows[0].startswith("| :speech_balloon: | 1001 | - |")
        assert rows[1].startswith(
            "| :x: | [1005](https://github.com/Azure/openapi-diff/blob/master/docs/rules/1005.md) |"
        )
        assert "(https://github.com/org/specs/blob/abc123/specification/a/a.json#L12)" in rows[1]
        assert "path \\| '/items'" in rows[1]

    def test_footer(self, report, pr_config):
        markdown = MarkdownReporter.generate(report, pr_config)
        assert "Thanks for using breaking change tool to review." in markdown
        assert "https://github.com/Azure/openapi-diff/issues" in markdown

    def test_no_findings_message(self, pr_config):
        clean = ReportBuilder(tool="breaking-change").build(RunResult(target_branch="main"))

        markdown = MarkdownReporter.generate(clean, pr_config)

        assert "**There were no files containing new errors or warnings.**" in markdown
        assert "| | Rule |" not in markdown

    def test_failures_section(self, pr_config):
        result = RunResult(
            failures=[FileFailure(path="specification/x.json", kind="MalformedOutput", message="bad json")]
        )
        markdown = MarkdownReporter.generate(ReportBuilder(tool="model-validation").build(result), pr_config)

        assert "### The following files could not be processed:" in markdown
        assert "specification/x.json: MalformedOutput: bad json" in markdown

    def test_blob_url_locations_link_once(self, pr_config):
        record = {
            "type": "Result",
            "level": "Error",
            "code": "INVALID_TYPE",
            "message": "Expected type object",
            "paths": [
                {"tag": "Url", "path": "https://github.com/o/r/blob/abc/specification/x/a.json#L12"}
            ],
        }
        result = RunResult(files={"specification/x/a.json": (classify(record, TOOL_MODEL_VALIDATION),)})
        markdown = MarkdownReporter.generate(ReportBuilder(tool=TOOL_MODEL_VALIDATION).build(result), pr_config)

        row = next(line for line in markdown.splitlines() if line.startswith("| :x:"))
        assert (
            "[specification/x/&#8203;<strong>a.json</strong>#L12]"
            "(https://github.com/org/specs/blob/abc123/specification/x/a.json#L12)"
        ) in row
        assert "github.com/o/r/" not in row

    def test_links_fall_back_without_pr_metadata(self, report):
        markdown = MarkdownReporter.generate(report)
        assert "](specification/a/a.json#L12)" in markdown

    def test_save(self, report, pr_config, tmp_path):
        output = tmp_path / "nested" / "report.md"

        MarkdownReporter.save(report, output, pr_config)

        assert output.read_text(encoding="utf-8") == MarkdownReporter.generate(report, pr_config)
