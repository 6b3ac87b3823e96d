"""Configuration management for SpecGate"""

import os
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from specgate.models.tool_output import (
    TOOL_BREAKING_CHANGE,
    TOOL_LINT,
    TOOL_MODEL_VALIDATION,
)


def _env_int(name: str, default: int) -> int:
    try:
        value = int(os.getenv(name, default))
    except ValueError:
        return default
    return value if value > 0 else default


class ToolConfig:
    """Configuration for external tool invocation"""

    # Command templates; {path}, {old} and {new} are substituted per file.
    DEFAULT_COMMANDS = {
        TOOL_BREAKING_CHANGE: "npx oad compare {old} {new}",
        TOOL_LINT: "npx autorest --validation --azure-validator --message-format=json {path}",
        TOOL_MODEL_VALIDATION: "npx oav validate-example {path} --pretty",
    }

    DEFAULT_TIMEOUT_SECONDS = 600
    DEFAULT_MAX_WORKERS = 4

    @classmethod
    def get_command(cls, tool: str, cli_override: Optional[str] = None) -> str:
        """
        Get the command template for a tool.

        Priority hierarchy (from highest to lowest):
        1. Per-tool environment variable (e.g., SPECGATE_LINT_COMMAND)
        2. CLI override (from --command flag)
        3. Default from DEFAULT_COMMANDS

        Args:
            tool: Tool name (breaking-change, lint, model-validation)
            cli_override: Optional template from the CLI

        Returns:
            Command template string
        """
        env_var = f"SPECGATE_{tool.upper().replace('-', '_')}_COMMAND"
        env_value = os.getenv(env_var)
        if env_value:
            return env_value
        if cli_override:
            return cli_override
        if tool not in cls.DEFAULT_COMMANDS:
            raise ValueError(f"Unknown tool: {tool!r}")
        return cls.DEFAULT_COMMANDS[tool]

    @classmethod
    def get_timeout(cls) -> int:
        """Per-invocation timeout in seconds (SPECGATE_TOOL_TIMEOUT, default 600)."""
        return _env_int("SPECGATE_TOOL_TIMEOUT", cls.DEFAULT_TIMEOUT_SECONDS)

    @classmethod
    def get_max_workers(cls) -> int:
        """Parallel per-file workers (SPECGATE_MAX_WORKERS, default 4)."""
        return _env_int("SPECGATE_MAX_WORKERS", cls.DEFAULT_MAX_WORKERS)


class DocsConfig:
    """Documentation links for rule identifiers"""

    RULE_DOC_URLS = {
        TOOL_BREAKING_CHANGE: "https://github.com/Azure/openapi-diff/blob/master/docs/rules/{id}.md",
        TOOL_LINT: (
            "https://github.com/Azure/azure-rest-api-specs/blob/master/documentation/"
            "openapi-authoring-automated-guidelines.md#{id}"
        ),
        TOOL_MODEL_VALIDATION: (
            "https://github.com/Azure/azure-rest-api-specs/blob/master/documentation/"
            "Semantic-and-Model-Violations-Reference.md#{code}"
        ),
    }

    ISSUES_URLS = {
        TOOL_BREAKING_CHANGE: "https://github.com/Azure/openapi-diff/issues",
        TOOL_LINT: "https://github.com/Azure/azure-openapi-validator/issues",
        TOOL_MODEL_VALIDATION: "https://github.com/Azure/oav/issues",
    }

    @classmethod
    def rule_doc_url(cls, tool: str, rule_id: Optional[str], rule_code: Optional[str]) -> Optional[str]:
        """Return the documentation URL for a rule, or None when it cannot be built."""
        template = cls.RULE_DOC_URLS.get(tool)
        if not template:
            return None
        if "{id}" in template and not rule_id:
            return None
        if "{code}" in template and not rule_code:
            return None
        return template.format(id=rule_id or "", code=rule_code or "")


class SpecConfig:
    """Which changed files each flow processes"""

    SPEC_PATTERNS: Tuple[str, ...] = ("specification/*.json",)
    CONFIG_PATTERNS: Tuple[str, ...] = ("specification/*readme.md",)
    # Example payloads live next to specs but are not specs themselves.
    EXCLUDED_SEGMENTS: Tuple[str, ...] = ("/examples/", "/scenarios/")


@dataclass(frozen=True)
class PullRequestConfig:
    """Pull request metadata supplied by the CI environment"""

    repo_slug: Optional[str] = None
    head_sha: Optional[str] = None
    number: Optional[str] = None
    target_branch: Optional[str] = None

    ENV_FALLBACKS = {
        "repo_slug": ("SPECGATE_REPO_SLUG", "TRAVIS_PULL_REQUEST_SLUG"),
        "head_sha": ("SPECGATE_HEAD_SHA", "TRAVIS_PULL_REQUEST_SHA"),
        "number": ("SPECGATE_PR_NUMBER", "TRAVIS_PULL_REQUEST"),
        "target_branch": ("SPECGATE_TARGET_BRANCH", "TRAVIS_BRANCH"),
    }

    @classmethod
    def from_env(cls, **overrides: Optional[str]) -> "PullRequestConfig":
        """
        Build PR metadata from environment variables.

        Explicit (non-None) keyword overrides win over SPECGATE_* variables,
        which win over the Travis CI variables.
        """
        values: Dict[str, Optional[str]] = {}
        for field_name, env_names in cls.ENV_FALLBACKS.items():
            value = overrides.get(field_name)
            if value is None:
                value = next((os.environ[name] for name in env_names if os.environ.get(name)), None)
            values[field_name] = value
        return cls(**values)

    @property
    def repository_url(self) -> Optional[str]:
        if not self.repo_slug:
            return None
        return f"https://github.com/{self.repo_slug}"

    def blob_href(self, path: str) -> str:
        """Link to ``path`` at the PR head; falls back to the bare path."""
        if path.startswith(("http://", "https://")) or not (self.repo_slug and self.head_sha):
            return path
        return f"https://github.com/{self.repo_slug}/blob/{self.head_sha}/{path.lstrip('/')}"
