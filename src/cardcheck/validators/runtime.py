"""Shape validation of runtime messages returned by a live agent.

A2A replies are a tagged union discriminated by ``kind``: ``task``,
``status-update``, ``artifact-update`` and ``message``. Each variant has one
validator function, selected through ``VALIDATORS``; adding a kind means
adding one entry there. A missing, mistyped or unknown ``kind`` is reported
as its own error and never defaults to a variant.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Union

from cardcheck.models.enums import MessageKind

AGENT_ROLE = "agent"


@dataclass(frozen=True)
class RuntimeIssue:
    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class Task:
    id: str
    state: str
    raw: Mapping[str, Any] = field(repr=False)


@dataclass(frozen=True)
class StatusUpdate:
    state: str
    raw: Mapping[str, Any] = field(repr=False)


@dataclass(frozen=True)
class ArtifactUpdate:
    parts: list[Any]
    raw: Mapping[str, Any] = field(repr=False)


@dataclass(frozen=True)
class AgentMessage:
    role: str
    parts: list[Any]
    raw: Mapping[str, Any] = field(repr=False)


RuntimeMessage = Union[Task, StatusUpdate, ArtifactUpdate, AgentMessage]


@dataclass(frozen=True)
class RuntimeValidationResult:
    """Outcome of validating one runtime message.

    ``message`` holds the typed variant when ``valid`` is True.
    """

    valid: bool
    errors: list[RuntimeIssue] = field(default_factory=list)
    kind: MessageKind | None = None
    message: RuntimeMessage | None = None


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


def _validate_task(data: Mapping[str, Any]) -> tuple[list[RuntimeIssue], RuntimeMessage | None]:
    errors: list[RuntimeIssue] = []
    if not _non_empty_str(data.get("id")):
        errors.append(
            RuntimeIssue("TASK_MISSING_ID", "Task object missing required field: 'id'", "id")
        )
    status = data.get("status")
    if not isinstance(status, Mapping):
        errors.append(
            RuntimeIssue(
                "TASK_MISSING_STATUS", "Task object missing required field: 'status'", "status"
            )
        )
    elif not _non_empty_str(status.get("state")):
        errors.append(
            RuntimeIssue(
                "TASK_MISSING_STATUS_STATE",
                "Task object missing required field: 'status.state'",
                "status.state",
            )
        )
    if errors:
        return errors, None
    return errors, Task(id=data["id"], state=data["status"]["state"], raw=data)


def _validate_status_update(
    data: Mapping[str, Any],
) -> tuple[list[RuntimeIssue], RuntimeMessage | None]:
    status = data.get("status")
    if not isinstance(status, Mapping):
        return [
            RuntimeIssue(
                "STATUS_UPDATE_MISSING_STATUS",
                "StatusUpdate object missing required field: 'status'",
                "status",
            )
        ], None
    if not _non_empty_str(status.get("state")):
        return [
            RuntimeIssue(
                "STATUS_UPDATE_MISSING_STATE",
                "StatusUpdate object missing required field: 'status.state'",
                "status.state",
            )
        ], None
    return [], StatusUpdate(state=status["state"], raw=data)


def _validate_artifact_update(
    data: Mapping[str, Any],
) -> tuple[list[RuntimeIssue], RuntimeMessage | None]:
    artifact = data.get("artifact")
    if not isinstance(artifact, Mapping):
        return [
            RuntimeIssue(
                "ARTIFACT_UPDATE_MISSING_ARTIFACT",
                "ArtifactUpdate object missing required field: 'artifact'",
                "artifact",
            )
        ], None
    parts = artifact.get("parts")
    if not isinstance(parts, list):
        return [
            RuntimeIssue(
                "ARTIFACT_MISSING_PARTS_ARRAY",
                "Artifact object must have a 'parts' array",
                "artifact.parts",
            )
        ], None
    if not parts:
        return [
            RuntimeIssue(
                "ARTIFACT_EMPTY_PARTS",
                "Artifact object must have a non-empty 'parts' array",
                "artifact.parts",
            )
        ], None
    return [], ArtifactUpdate(parts=parts, raw=data)


def _validate_message(
    data: Mapping[str, Any],
) -> tuple[list[RuntimeIssue], RuntimeMessage | None]:
    errors: list[RuntimeIssue] = []
    parts = data.get("parts")
    if not isinstance(parts, list):
        errors.append(
            RuntimeIssue(
                "MESSAGE_MISSING_PARTS_ARRAY", "Message object must have a 'parts' array", "parts"
            )
        )
    elif not parts:
        errors.append(
            RuntimeIssue(
                "MESSAGE_EMPTY_PARTS", "Message object must have a non-empty 'parts' array", "parts"
            )
        )

    role = data.get("role")
    if not _non_empty_str(role):
        errors.append(
            RuntimeIssue(
                "MESSAGE_MISSING_ROLE", "Message object missing required field: 'role'", "role"
            )
        )
    elif role != AGENT_ROLE:
        # An echo of the caller's own "user" role means no agent answered.
        errors.append(
            RuntimeIssue(
                "MESSAGE_INVALID_ROLE", "Message from agent must have 'role' set to 'agent'", "role"
            )
        )
    if errors:
        return errors, None
    return errors, AgentMessage(role=role, parts=parts, raw=data)


Validator = Callable[[Mapping[str, Any]], tuple[list[RuntimeIssue], Union[RuntimeMessage, None]]]

VALIDATORS: dict[MessageKind, Validator] = {
    MessageKind.TASK: _validate_task,
    MessageKind.STATUS_UPDATE: _validate_status_update,
    MessageKind.ARTIFACT_UPDATE: _validate_artifact_update,
    MessageKind.MESSAGE: _validate_message,
}


def validate_message(raw: Any) -> RuntimeValidationResult:
    """Validate a decoded runtime message.

    Example:
        >>> validate_message({"kind": "message", "role": "agent",
        ...                   "parts": [{"kind": "text", "text": "hi"}]}).valid
        True
        >>> validate_message({"kind": "Task"}).errors[0].code
        'TASK_MISSING_ID'
    """
    if not isinstance(raw, Mapping):
        return RuntimeValidationResult(
            valid=False,
            errors=[RuntimeIssue("MESSAGE_INVALID_INPUT", "Invalid message: expected an object")],
        )

    kind_value = raw.get("kind")
    if not _non_empty_str(kind_value):
        return RuntimeValidationResult(
            valid=False,
            errors=[
                RuntimeIssue(
                    "MESSAGE_MISSING_KIND",
                    "Response from agent is missing required 'kind' field",
                    "kind",
                )
            ],
        )

    try:
        kind = MessageKind(kind_value.lower())
    except ValueError:
        return RuntimeValidationResult(
            valid=False,
            errors=[
                RuntimeIssue(
                    "MESSAGE_UNKNOWN_KIND",
                    f"Unknown message kind received: '{kind_value}'",
                    "kind",
                )
            ],
        )

    errors, message = VALIDATORS[kind](raw)
    return RuntimeValidationResult(valid=not errors, errors=errors, kind=kind, message=message)
