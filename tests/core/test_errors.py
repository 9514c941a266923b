"""Tests verifying the BenchaError type hierarchy."""

from pathlib import Path

from bencha.agent.infrastructure.errors import (
    AgentExecutionError,
    AgentTypeNotSupportedError,
)
from bencha.config.infrastructure.errors import (
    ConfigLoadError,
    ConfigValidationError,
    MissingEnvVarsError,
)
from bencha.core.errors import BenchaError, InfrastructureError
from bencha.evaluator.infrastructure.errors import (
    EvaluatorError,
    EvaluatorTypeNotSupportedError,
    VerdictParseError,
)
from bencha.history.infrastructure.errors import (
    HistoryFileNotFoundError,
    HistoryWriteError,
    MalformedHistoryRecordError,
)
from bencha.orchestration.domain.errors import InvalidRunTransitionError
from bencha.workspace.infrastructure.errors import (
    GitCommandError,
    PathTraversalError,
    WorkspaceError,
    WorkspaceErrorCode,
)

_ALL_ERRORS: list[BenchaError] = [
    MissingEnvVarsError(missing_vars=["MY_VAR"]),
    ConfigValidationError(reason="bad value"),
    ConfigLoadError(path=Path("/some/config.yaml")),
    AgentExecutionError(reason="crashed"),
    AgentTypeNotSupportedError(agent_type="mystery"),
    EvaluatorError(evaluator="git-diff", reason="broken"),
    EvaluatorTypeNotSupportedError(evaluator_type="mystery"),
    VerdictParseError(reason="no JSON object"),
    HistoryFileNotFoundError(path=Path("history.jsonl")),
    MalformedHistoryRecordError(line_number=3, reason="not JSON"),
    HistoryWriteError(path=Path("history.jsonl"), reason="disk full"),
    InvalidRunTransitionError(run_id="r1", from_state="pending", to_state="completed"),
    WorkspaceError(code=WorkspaceErrorCode.CLONE_FAILED, reason="no network"),
    GitCommandError(args=["clone", "x"], reason="exit 128"),
    PathTraversalError(root=Path("/ws"), relative="../etc/passwd"),
]


class TestBenchaErrorHierarchy:
    """All bencha-specific exceptions inherit from BenchaError."""

    def test_every_error_is_bencha_error(self) -> None:
        for error in _ALL_ERRORS:
            assert isinstance(error, BenchaError), type(error).__name__

    def test_every_message_starts_with_failed(self) -> None:
        for error in _ALL_ERRORS:
            assert str(error).startswith("Failed to "), str(error)

    def test_bencha_error_is_exception(self) -> None:
        assert isinstance(BenchaError("test"), Exception)

    def test_not_retriable_by_default(self) -> None:
        assert BenchaError("test").retriable is False


class TestInfrastructureErrors:
    """Setup failures are InfrastructureErrors; run outcomes are not."""

    def test_workspace_error_is_infrastructure_error(self) -> None:
        error = WorkspaceError(code=WorkspaceErrorCode.WORKSPACE_LOCKED, reason="held")
        assert isinstance(error, InfrastructureError)

    def test_git_command_error_is_infrastructure_error(self) -> None:
        assert isinstance(GitCommandError(args=["status"], reason="x"), InfrastructureError)

    def test_path_traversal_error_is_infrastructure_error(self) -> None:
        error = PathTraversalError(root=Path("/ws"), relative="../x")
        assert isinstance(error, InfrastructureError)

    def test_evaluator_error_is_not_infrastructure_error(self) -> None:
        error = EvaluatorError(evaluator="expected-diff", reason="x")
        assert not isinstance(error, InfrastructureError)

    def test_workspace_error_message_includes_code(self) -> None:
        error = WorkspaceError(code=WorkspaceErrorCode.EXPECTED_BRANCH_NOT_FOUND, reason="x")
        assert "EXPECTED_BRANCH_NOT_FOUND" in str(error)
        assert error.code == WorkspaceErrorCode.EXPECTED_BRANCH_NOT_FOUND

    def test_cleanup_error_message_names_cleanup(self) -> None:
        error = WorkspaceError(code=WorkspaceErrorCode.CLEANUP_FAILED, reason="busy")
        assert str(error) == "Failed to clean up workspace [CLEANUP_FAILED]: busy"

    def test_setup_error_message_names_preparation(self) -> None:
        error = WorkspaceError(code=WorkspaceErrorCode.COPY_FAILED, reason="disk full")
        assert str(error) == "Failed to prepare workspace [COPY_FAILED]: disk full"


class TestAgentExecutionError:
    """AgentExecutionError carries the retriable flag through."""

    def test_retriable_flag(self) -> None:
        assert AgentExecutionError(reason="rate limited", retriable=True).retriable is True

    def test_message_includes_reason(self) -> None:
        assert "rate limited" in str(AgentExecutionError(reason="rate limited"))


class TestMissingEnvVarsError:
    """MissingEnvVarsError lists every missing variable, sorted."""

    def test_lists_all_vars_sorted(self) -> None:
        error = MissingEnvVarsError(missing_vars=["ZED", "ALPHA"])
        assert "ALPHA, ZED" in str(error)
        assert error.missing_vars == ["ZED", "ALPHA"]
