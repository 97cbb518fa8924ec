"""
Settings Configuration
Pydantic-validated configuration for the QA hand-off
"""
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings

from utils.exceptions import ConfigurationError


DEFAULT_PREVIEW_URL_PATTERN = (
    r"\bhttps?://[^\s)]+?"
    r"(?:convert_action=convert_vpreview|convert_e=\d{6,}|convert_v=\d{6,})"
    r"[^\s)]*"
)


class ClickUpSettings(BaseSettings):
    """ClickUp API configuration"""
    token: Optional[str] = Field(default=None, description="ClickUp personal token")
    api_base: str = Field(default="https://api.clickup.com/api/v2", description="REST API root")
    timeout: float = Field(default=30.0, description="Request timeout (seconds)")

    class Config:
        env_prefix = "CLICKUP_"


class GraphSettings(BaseSettings):
    """Microsoft Graph (SharePoint) configuration"""
    tenant_id: Optional[str] = Field(default=None, description="Azure tenant id")
    client_id: Optional[str] = Field(default=None, description="App registration client id")
    client_secret: Optional[str] = Field(default=None, description="App registration secret")
    authority_base: str = Field(default="https://login.microsoftonline.com", description="Token authority")
    graph_base: str = Field(default="https://graph.microsoft.com/v1.0", description="Graph API root")
    scope: str = Field(default="https://graph.microsoft.com/.default", description="Token scope")
    page_size: int = Field(default=999, description="Children listing page size")
    timeout: float = Field(default=30.0, description="Request timeout (seconds)")

    class Config:
        env_prefix = "MS_"

    def has_credentials(self) -> bool:
        return bool(self.tenant_id and self.client_id and self.client_secret)


class GateSettings(BaseSettings):
    """Release gate configuration"""
    required_status: str = Field(default="needs approval (dev)", description="Status the task must be in")
    checkbox_field: str = Field(default="Passed QA", description="Checkbox custom field name or id")
    pending_statuses: List[str] = Field(
        default_factory=lambda: ["QA", "QA (Dev)"],
        description="Interim statuses that trigger the single re-check",
    )
    recheck_delay_sec: float = Field(default=1.5, description="Delay before the re-check (seconds)")
    post_failure_comment: bool = Field(default=True, description="Comment on the task when gates fail")
    failure_template: str = Field(
        default=(
            "\U0001FA82 AirDrop Status: Fail. Status must be [{required_status}] and Passed QA must be checked. "
            "Current Status: [{observed_status}]."
        ),
        description="Gate failure comment template",
    )

    class Config:
        env_prefix = "GATE_"


class FieldSettings(BaseSettings):
    """Custom field names on the work item"""
    qa_doc_field: str = Field(default="QA Doc", description="SharePoint folder URL field")
    mentions_field: Optional[str] = Field(default="Client Mentions", description="Comma-separated mention labels")
    mention_map: Dict[str, str] = Field(default_factory=dict, description="Mention label -> ClickUp user id")

    class Config:
        env_prefix = "FIELD_"


class MatchingSettings(BaseSettings):
    """Artifact matching and link extraction rules"""
    spreadsheet_extensions: List[str] = Field(default_factory=lambda: [".xlsx", ".xls"])
    image_pattern: str = Field(default=r"\.(png|jpe?g|webp|gif)$", description="Image file name pattern")
    preview_keyword: str = Field(default="preview", description="Spreadsheet keyword fallback")
    preview_url_pattern: str = Field(default=DEFAULT_PREVIEW_URL_PATTERN, description="Preview link pattern")
    restrict_attachments_to_qa_names: bool = Field(default=False, description="Only reuse QA-ish task attachments")
    qa_name_pattern: str = Field(default=r"(^|/|_|-|\s)qa($|\.|\s|_|-)", description="QA-ish attachment name")

    class Config:
        env_prefix = "MATCH_"


class CommentSettings(BaseSettings):
    """Comment composition and notification mode"""
    mode: Literal["draft", "final"] = Field(default="draft", description="draft never notifies")
    banner_enabled: bool = Field(default=True)
    banner_text: str = Field(default="\U0001F4DD DRAFT - Review before sending")
    draft_notify: bool = Field(default=False, description="notify_all for draft comments")
    final_notify: bool = Field(default=True, description="notify_all for final comments")
    final_include_mentions: bool = Field(default=True, description="Mentions in final comments")

    class Config:
        env_prefix = "COMMENT_"

    @property
    def is_draft(self) -> bool:
        return self.mode == "draft"

    @property
    def notify(self) -> bool:
        return self.draft_notify if self.is_draft else self.final_notify

    @property
    def include_mentions(self) -> bool:
        return (not self.is_draft) and self.final_include_mentions

    @property
    def banner(self) -> Optional[str]:
        if self.is_draft and self.banner_enabled and self.banner_text:
            return self.banner_text
        return None


class DispatchSettings(BaseSettings):
    """Remote job trigger (GitHub workflow_dispatch)"""
    shared_dispatch_token: Optional[str] = Field(default=None, description="Shared secret for inbound calls")
    gh_repo: Optional[str] = Field(default=None, description="owner/name")
    gh_workflow: Optional[str] = Field(default=None, description="Workflow file name or id")
    gh_ref: str = Field(default="main")
    gh_token: Optional[str] = Field(default=None)
    gh_api_base: str = Field(default="https://api.github.com")
    timeout: float = Field(default=30.0)

    def missing(self) -> List[str]:
        """Names of GitHub settings required for dispatch that are unset."""
        required = {"GH_REPO": self.gh_repo, "GH_WORKFLOW": self.gh_workflow, "GH_TOKEN": self.gh_token}
        return [name for name, value in required.items() if not str(value or "").strip()]


class LoggingSettings(BaseSettings):
    """Logging verbosity"""
    verbose: bool = Field(default=True)
    log_file: Optional[str] = Field(default=None)

    class Config:
        env_prefix = "LOG_"


class ServerSettings(BaseSettings):
    """Dispatch endpoint server"""
    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8080, description="Bind port")
    reload: bool = Field(default=False, description="Auto-reload on code changes")
    log_level: str = Field(default="info", description="uvicorn log level")

    class Config:
        env_prefix = "SERVER_"


class Settings(BaseSettings):
    """Root configuration, aggregating every group"""

    clickup: ClickUpSettings = Field(default_factory=ClickUpSettings)
    graph: GraphSettings = Field(default_factory=GraphSettings)
    gate: GateSettings = Field(default_factory=GateSettings)
    task_fields: FieldSettings = Field(default_factory=FieldSettings)
    matching: MatchingSettings = Field(default_factory=MatchingSettings)
    comment: CommentSettings = Field(default_factory=CommentSettings)
    dispatch: DispatchSettings = Field(default_factory=DispatchSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def load_from_env_file(cls, env_path: Optional[Path] = None) -> "Settings":
        """Load settings after applying a .env file (defaults to ./.env)."""
        if env_path is None:
            env_path = Path.cwd() / ".env"

        if env_path.exists():
            from dotenv import load_dotenv
            load_dotenv(env_path)

        return cls(
            clickup=ClickUpSettings(),
            graph=GraphSettings(),
            gate=GateSettings(),
            task_fields=FieldSettings(),
            matching=MatchingSettings(),
            comment=CommentSettings(),
            dispatch=DispatchSettings(),
            logging=LoggingSettings(),
            server=ServerSettings(),
        )

    def require_tracker(self) -> None:
        """Fail fast before any remote call when the tracker token is missing."""
        if not str(self.clickup.token or "").strip():
            raise ConfigurationError(
                "Missing CLICKUP_TOKEN env. Add it to repo secrets or .env",
                {"setting": "CLICKUP_TOKEN"},
            )


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings, built once at entry points"""
    return Settings.load_from_env_file()
