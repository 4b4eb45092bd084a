"""
Configuration data models for dashstate.

StoreSettings holds everything the store needs to reach its backing
repository. It is built once per invocation and passed explicitly into the
client and store; nothing in the core reads the environment mid-call.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StoreSettings(BaseModel):
    """
    Backend credentials, repository coordinates and storage layout.

    The repository is addressed by owner and name separately, so ``repo``
    must be a bare repository name.
    """

    model_config = ConfigDict(frozen=True)

    token: str = Field(..., min_length=1, description="GitHub API token")
    owner: str = Field(..., min_length=1, description="Repository owner (user or organization)")
    repo: str = Field(..., min_length=1, description="Repository name (without owner)")
    branch: str = Field(default="main", min_length=1, description="Branch holding the data")
    api_base: str = Field(
        default="https://api.github.com",
        description="Base URL of the GitHub REST API",
    )
    manifest_path: str = Field(
        default="data/manifest.json",
        description="Repository path of the manifest index",
    )
    dashboards_dir: str = Field(
        default="data/dashboards",
        description="Repository directory holding one JSON document per dashboard",
    )
    timeout: float = Field(
        default=30.0,
        gt=0.0,
        description="Timeout in seconds for each backend request",
    )

    @field_validator("repo")
    @classmethod
    def validate_repo(cls, v: str) -> str:
        """Reject owner/name pairs; the owner is configured separately."""
        if "/" in v:
            raise ValueError(f"repo must be the repository name only, got {v!r}")
        return v

    @field_validator("api_base")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("manifest_path", "dashboards_dir")
    @classmethod
    def normalize_repo_path(cls, v: str) -> str:
        """Repository paths are relative and have no surrounding slashes."""
        v = v.strip("/")
        if not v:
            raise ValueError("repository path must not be empty")
        return v

    def document_path(self, dashboard_id: str) -> str:
        """Repository path of the document for a (validated) dashboard id."""
        return f"{self.dashboards_dir}/{dashboard_id}.json"
