"""Tests for configuration management"""

import pytest

from specgate.config import DocsConfig, PullRequestConfig, SpecConfig, ToolConfig

PR_ENV_VARS = (
    "SPECGATE_REPO_SLUG",
    "SPECGATE_HEAD_SHA",
    "SPECGATE_PR_NUMBER",
    "SPECGATE_TARGET_BRANCH",
    "TRAVIS_PULL_REQUEST_SLUG",
    "TRAVIS_PULL_REQUEST_SHA",
    "TRAVIS_PULL_REQUEST",
    "TRAVIS_BRANCH",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in PR_ENV_VARS + (
        "SPECGATE_LINT_COMMAND",
        "SPECGATE_BREAKING_CHANGE_COMMAND",
        "SPECGATE_TOOL_TIMEOUT",
        "SPECGATE_MAX_WORKERS",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestToolConfig:
    """Command template priority: env var > CLI flag > default"""

    def test_default_command(self, clean_env):
        assert ToolConfig.get_command("lint").startswith("npx autorest --validation")

    def test_cli_override_beats_default(self, clean_env):
        assert ToolConfig.get_command("lint", "my-linter {path}") == "my-linter {path}"

    def test_env_beats_cli_override(self, clean_env):
        clean_env.setenv("SPECGATE_BREAKING_CHANGE_COMMAND", "oad-local {old} {new}")
        assert ToolConfig.get_command("breaking-change", "ignored") == "oad-local {old} {new}"

    def test_unknown_tool(self, clean_env):
        with pytest.raises(ValueError):
            ToolConfig.get_command("formatter")

    def test_timeout_default_and_override(self, clean_env):
        assert ToolConfig.get_timeout() == ToolConfig.DEFAULT_TIMEOUT_SECONDS
        clean_env.setenv("SPECGATE_TOOL_TIMEOUT", "30")
        assert ToolConfig.get_timeout() == 30

    @pytest.mark.parametrize("value", ["abc", "0", "-4"])
    def test_invalid_numbers_fall_back(self, clean_env, value):
        clean_env.setenv("SPECGATE_MAX_WORKERS", value)
        assert ToolConfig.get_max_workers() == ToolConfig.DEFAULT_MAX_WORKERS


class TestDocsConfig:
    def test_lint_rule_anchor(self):
        url = DocsConfig.rule_doc_url("lint", "R2001", None)
        assert url.endswith("openapi-authoring-automated-guidelines.md#R2001")

    def test_missing_identifier(self):
        assert DocsConfig.rule_doc_url("model-validation", "1", None) is None
        assert DocsConfig.rule_doc_url("unknown", "1", "X") is None


class TestPullRequestConfig:
    def test_specgate_vars_win_over_travis(self, clean_env):
        clean_env.setenv("TRAVIS_PULL_REQUEST_SLUG", "travis/repo")
        clean_env.setenv("SPECGATE_REPO_SLUG", "org/specs")
        clean_env.setenv("TRAVIS_PULL_REQUEST", "42")

        config = PullRequestConfig.from_env()

        assert config.repo_slug == "org/specs"
        assert config.number == "42"
        assert config.repository_url == "https://github.com/org/specs"

    def test_explicit_override_wins(self, clean_env):
        clean_env.setenv("TRAVIS_BRANCH", "master")
        assert PullRequestConfig.from_env(target_branch="main").target_branch == "main"
        assert PullRequestConfig.from_env(target_branch=None).target_branch == "master"

    def test_blob_href(self):
        config = PullRequestConfig(repo_slug="org/specs", head_sha="abc")
        assert config.blob_href("specification/a.json") == (
            "https://github.com/org/specs/blob/abc/specification/a.json"
        )

    def test_blob_href_keeps_absolute_urls(self):
        config = PullRequestConfig(repo_slug="org/specs", head_sha="abc")
        url = "https://github.com/o/r/blob/def/specification/a.json"
        assert config.blob_href(url) == url

    def test_blob_href_without_metadata(self, clean_env):
        assert PullRequestConfig.from_env().blob_href("specification/a.json") == "specification/a.json"


class TestSpecConfig:
    def test_patterns(self):
        assert SpecConfig.SPEC_PATTERNS == ("specification/*.json",)
        assert "/examples/" in SpecConfig.EXCLUDED_SEGMENTS
