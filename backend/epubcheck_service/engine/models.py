"""Engine models: invocation request/result, EPUBCheck JSON report, version cache record.

The report models mirror the JSON document EPUBCheck writes with ``--json``.
Field names are snake_case in Python and camelCase on the wire.
"""

from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ValidateMode(str, Enum):
    """Engine operating modes. EPUB (full package) is the implicit default."""

    EPUB = "epub"    # Full publication package
    OPF = "opf"      # Package document
    XHTML = "xhtml"  # Content document
    NAV = "nav"      # Navigation document
    SVG = "svg"      # SVG content document / image
    MO = "mo"        # Media overlay


class ValidateProfile(str, Enum):
    """Validation profiles supported by the engine."""

    DEFAULT = "default"
    DICT = "dict"
    EDUPUB = "edupub"
    IDX = "idx"
    PREVIEW = "preview"


class TargetVersion(str, Enum):
    """EPUB specification version for single-document modes."""

    EPUB2 = "2.0"
    EPUB3 = "3.0"


class Severity(str, Enum):
    """Message severities reported by the engine, most severe first."""

    FATAL = "FATAL"
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"
    USAGE = "USAGE"


class FailureReason(str, Enum):
    """Why an invocation did not produce a report."""

    EXECUTABLE_NOT_FOUND = "executable_not_found"
    SPAWN_FAILED = "spawn_failed"
    NO_OUTPUT_PRODUCED = "no_output_produced"
    TIMED_OUT = "timed_out"


# ── Invocation ──


class InvocationRequest(BaseModel):
    """One engine run against one file-system path."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(min_length=1)
    mode: ValidateMode = ValidateMode.EPUB
    profile: ValidateProfile = ValidateProfile.DEFAULT
    version: Optional[TargetVersion] = None  # Ignored in EPUB mode


# ── EPUBCheck JSON report ──


class _ReportModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CheckerInfo(_ReportModel):
    path: str
    filename: str
    checker_version: str
    check_date: str
    elapsed_time: int
    n_fatal: int
    n_error: int
    n_warning: int
    n_usage: int


class PublicationInfo(_ReportModel):
    publisher: Optional[str] = None
    title: Optional[str] = None
    creator: list[str] = Field(default_factory=list)
    date: Optional[str] = None
    subject: list[str] = Field(default_factory=list)
    description: Optional[str] = None
    rights: Optional[str] = None
    identifier: Optional[str] = None
    language: Optional[str] = None
    n_spines: int = 0
    check_sum: Optional[int] = None
    rendition_layout: Optional[str] = None
    rendition_orientation: Optional[str] = None
    rendition_spread: Optional[str] = None
    e_pub_version: Optional[str] = None
    is_backward_compatible: Optional[bool] = None
    has_audio: Optional[bool] = None
    has_video: Optional[bool] = None
    has_fixed_format: Optional[bool] = None
    has_scripts: Optional[bool] = None
    has_encryption: Optional[bool] = None
    has_signatures: Optional[bool] = None
    is_scripted: Optional[bool] = None
    embedded_fonts: list[str] = Field(default_factory=list)
    ref_fonts: list[str] = Field(default_factory=list)
    has_remote_resources: Optional[bool] = None
    references: list[str] = Field(default_factory=list)


class ItemInfo(_ReportModel):
    id: Optional[str] = None
    file_name: str
    media_type: Optional[str] = Field(default=None, alias="media_type")
    compressed_size: int = 0
    uncompressed_size: int = 0
    compression_method: Optional[str] = None
    check_sum: Optional[str] = None
    is_spine_item: Optional[bool] = None
    spine_index: Optional[int] = None
    is_linear: Optional[bool] = None
    navigation_order: Optional[int] = None
    is_fixed: Optional[bool] = None
    rendition_layout: Optional[str] = None
    rendition_orientation: Optional[str] = None
    rendition_spread: Optional[str] = None
    referenced_items: list[str] = Field(default_factory=list)


class Location(_ReportModel):
    path: str
    line: int = -1
    column: int = -1
    context: Optional[str] = None


class Message(_ReportModel):
    id: str = Field(alias="ID")
    severity: Severity
    message: str
    additional_locations: int = 0
    locations: list[Location] = Field(default_factory=list)
    suggestion: Optional[str] = None


class EpubCheckResult(_ReportModel):
    """Complete report written by the engine."""

    checker: CheckerInfo
    publication: PublicationInfo = Field(default_factory=PublicationInfo)
    items: list[ItemInfo] = Field(default_factory=list)
    messages: list[Message] = Field(default_factory=list)

    @property
    def valid(self) -> bool:
        """True when the engine reported no FATAL or ERROR findings."""
        return self.checker.n_fatal == 0 and self.checker.n_error == 0

    def messages_with_prefix(self, prefix: str) -> list[Message]:
        return [m for m in self.messages if m.id.startswith(prefix)]


class InvocationSuccess(BaseModel):
    ok: Literal[True] = True
    document: EpubCheckResult


class InvocationFailure(BaseModel):
    ok: Literal[False] = False
    reason: FailureReason
    diagnostic: str


InvocationResult = Union[InvocationSuccess, InvocationFailure]


# ── Version cache ──


class VersionCacheRecord(BaseModel):
    """Persisted result of the last successful latest-release lookup."""

    model_config = ConfigDict(populate_by_name=True)

    last_checked_at_ms: int = Field(alias="lastCheck")
    latest_version: Optional[str] = Field(default=None, alias="latestVersion")
    current_version: str = Field(alias="currentVersion")
