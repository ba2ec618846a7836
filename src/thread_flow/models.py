"""Domain models for thread-flow."""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

AIAgent = Literal["claudeCode", "gemini", "amp", "codex", "opencode"]

ToolStatus = Literal["pending", "completed", "error"]

SystemMessageType = Literal[
    "cancel-schedule",
    "fix-github-checks",
    "retry-git-commit-and-push",
    "generic-retry",
    "invalid-token-retry",
    "clear-context",
    "compact-result",
]

ScheduleFrequency = Literal[
    "5-minutely",  # development only
    "daily",
    "weekly",
    "monthly",
    "weekdays",
    "custom-weekly",
]

AccessTier = Literal["core", "pro"]

CronValidationError = Literal["invalid-syntax", "unsupported-pattern", "pro-only"]


#############
# Parts
#############


class TextPart(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ThinkingPart(BaseModel):
    type: Literal["thinking"] = "thinking"
    thinking: str


class ImagePart(BaseModel):
    type: Literal["image"] = "image"
    image_url: str
    mime_type: str | None = None


class PdfPart(BaseModel):
    type: Literal["pdf"] = "pdf"
    pdf_url: str
    mime_type: str | None = None
    filename: str | None = None


class TextFilePart(BaseModel):
    type: Literal["text-file"] = "text-file"
    file_url: str
    mime_type: str | None = None
    filename: str | None = None


class RichTextNode(BaseModel):
    type: Literal["text", "mention", "link"]
    text: str


class RichTextPart(BaseModel):
    """Editor output, carried through untouched."""

    type: Literal["rich-text"] = "rich-text"
    nodes: list[RichTextNode] = []


class StopPart(BaseModel):
    type: Literal["stop"] = "stop"


class GitDiffStats(BaseModel):
    files: int
    additions: int
    deletions: int


class GitDiffPart(BaseModel):
    type: Literal["git-diff"] = "git-diff"
    diff: str
    diff_stats: GitDiffStats | None = Field(None, alias="diffStats")
    timestamp: str | None = None
    description: str | None = None

    model_config = ConfigDict(populate_by_name=True)


class ToolPart(BaseModel):
    """One tool invocation and the agent activity that happened inside it.

    ``result`` is set once the status leaves ``pending``. Nested sub-agent
    text and nested tool calls (attributed through ``parent_tool_use_id``)
    live in ``parts``.
    """

    type: Literal["tool"] = "tool"
    id: str
    agent: AIAgent
    name: str
    parameters: dict[str, Any] = {}
    status: ToolStatus = "pending"
    result: str | None = None
    parts: list["UIPart"] = []


UserPart = Annotated[
    Union[TextPart, ImagePart, RichTextPart, PdfPart, TextFilePart],
    Field(discriminator="type"),
]

AgentPart = Annotated[Union[TextPart, ThinkingPart], Field(discriminator="type")]

UIPart = Annotated[
    Union[TextPart, ThinkingPart, ToolPart, ImagePart, RichTextPart, PdfPart, TextFilePart],
    Field(discriminator="type"),
]

SystemPart = Annotated[Union[TextPart, StopPart, GitDiffPart], Field(discriminator="type")]

ToolPart.model_rebuild()


#############
# DB messages
#############


class DBUserMessage(BaseModel):
    type: Literal["user"] = "user"
    model: str | None = None
    parts: list[UserPart]
    timestamp: str | None = None
    permission_mode: Literal["allowAll", "plan"] | None = Field(None, alias="permissionMode")

    model_config = ConfigDict(populate_by_name=True)


class DBAgentMessage(BaseModel):
    type: Literal["agent"] = "agent"
    parent_tool_use_id: str | None = None
    parts: list[AgentPart]


class DBSystemMessage(BaseModel):
    type: Literal["system"] = "system"
    message_type: SystemMessageType
    parts: list[TextPart]
    timestamp: str | None = None
    model: str | None = None


class DBToolCall(BaseModel):
    type: Literal["tool-call"] = "tool-call"
    id: str
    name: str
    parameters: dict[str, Any] = {}
    parent_tool_use_id: str | None = None


class DBToolResult(BaseModel):
    type: Literal["tool-result"] = "tool-result"
    id: str
    result: str
    is_error: bool | None = None
    parent_tool_use_id: str | None = None


class DBGitDiffMessage(BaseModel):
    type: Literal["git-diff"] = "git-diff"
    diff: str
    diff_stats: GitDiffStats | None = Field(None, alias="diffStats")
    timestamp: str | None = None
    description: str | None = None

    model_config = ConfigDict(populate_by_name=True)


class DBStopMessage(BaseModel):
    type: Literal["stop"] = "stop"


class DBErrorMessage(BaseModel):
    type: Literal["error"] = "error"
    error_type: str | None = None
    error_info: str | None = None
    timestamp: str | None = None


class DBMetaMessage(BaseModel):
    """Agent runtime metadata (system-init, result-success, result-error-max-turns, ...).

    Payloads differ per subtype and are kept as extra fields.
    """

    type: Literal["meta"] = "meta"
    subtype: str

    model_config = ConfigDict(extra="allow")


class DBThreadContextMessage(BaseModel):
    type: Literal["thread-context"] = "thread-context"
    thread_id: str = Field(alias="threadId")
    thread_chat_id: str = Field(alias="threadChatId")
    thread_chat_history: str = Field(alias="threadChatHistory")
    task_description: str = Field(alias="taskDescription")

    model_config = ConfigDict(populate_by_name=True)


class DBThreadContextResultMessage(BaseModel):
    type: Literal["thread-context-result"] = "thread-context-result"
    summary: str


DBMessage = Annotated[
    Union[
        DBUserMessage,
        DBAgentMessage,
        DBSystemMessage,
        DBToolCall,
        DBToolResult,
        DBGitDiffMessage,
        DBStopMessage,
        DBErrorMessage,
        DBMetaMessage,
        DBThreadContextMessage,
        DBThreadContextResultMessage,
    ],
    Field(discriminator="type"),
]


#############
# UI messages
#############


class UIUserMessage(BaseModel):
    role: Literal["user"] = "user"
    parts: list[UserPart] = []
    timestamp: str | None = None
    model: str | None = None


class UIAgentMessage(BaseModel):
    role: Literal["agent"] = "agent"
    agent: AIAgent
    parts: list[UIPart] = []


class UISystemMessage(BaseModel):
    """Standalone notice: a DB system message, a stop marker, or a git diff."""

    role: Literal["system"] = "system"
    message_type: SystemMessageType | Literal["stop", "git-diff"]
    parts: list[SystemPart]


UIMessage = Annotated[
    Union[UIUserMessage, UIAgentMessage, UISystemMessage],
    Field(discriminator="role"),
]


#############
# Schedules
#############


class ScheduleState(BaseModel):
    """Structured form of a supported cron expression, as edited by the schedule form."""

    frequency: ScheduleFrequency
    hour: str  # "H:MM"
    day_of_week: str | None = Field(None, alias="dayOfWeek")
    day_of_month: str | None = Field(None, alias="dayOfMonth")
    selected_days: list[str] | None = Field(None, alias="selectedDays")
    selected_hours: list[str] | None = Field(None, alias="selectedHours")

    model_config = ConfigDict(populate_by_name=True)


class CronValidationResult(BaseModel):
    is_valid: bool
    error: CronValidationError | None = None
