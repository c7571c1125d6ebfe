"""Data passed between the fetcher, the orchestrator and the UI."""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import List, Optional, Tuple

# Placeholder a model emits when it has nothing to draw.
PLACEHOLDER_DIAGRAM = "graph TD"


@dataclass(frozen=True)
class CodeFile:
    path: str
    content: str


@dataclass(frozen=True)
class RepoAnalysisData:
    structural_files: Tuple[CodeFile, ...]
    code_files: Tuple[CodeFile, ...]
    owner: str = ""
    repo: str = ""
    branch: str = ""
    # GitHub cut the tree short; the file selection may be incomplete.
    truncated: bool = False

    @property
    def all_files(self):
        return self.structural_files + self.code_files


class Stage(Enum):
    INITIALIZING = "INITIALIZING"
    FETCHING = "FETCHING"
    SUMMARIZING = "SUMMARIZING"
    REVIEWING = "REVIEWING"
    SYNTHESIZING = "SYNTHESIZING"


@dataclass(frozen=True)
class AnalysisStatus:
    stage: Stage
    message: str
    current: int = 0
    total: int = 0

    @property
    def progress(self):
        return self.current, self.total


@dataclass(frozen=True)
class FileReview:
    path: str
    text: str

    def tagged(self):
        return f"--- Review for {self.path} ---\n{self.text}"


@dataclass(frozen=True)
class GroundingSource:
    uri: str
    title: str


@dataclass(frozen=True)
class RecommendedRepos:
    text: str
    sources: Tuple[GroundingSource, ...] = ()


@dataclass(frozen=True)
class VisualDocumentation:
    architecture_diagram: str
    dependency_graph: str
    flowchart: str
    class_diagram: str

    @classmethod
    def field_names(cls):
        return [f.name for f in fields(cls)]

    def to_dict(self):
        return {name: getattr(self, name) for name in self.field_names()}


class Role(str, Enum):
    USER = "user"
    MODEL = "model"


@dataclass(frozen=True)
class ChatMessage:
    role: Role
    parts: Tuple[str, ...]

    def __post_init__(self):
        # Raises ValueError for anything other than "user" or "model".
        object.__setattr__(self, "role", Role(self.role))

    @property
    def text(self):
        return "".join(self.parts)


@dataclass
class AnalysisSession:
    """Everything one analysis run owns; reset whenever a new run starts."""

    repo_url: str = ""
    repo_data: Optional[RepoAnalysisData] = None
    architecture_summary: str = ""
    file_reviews: List[FileReview] = field(default_factory=list)
    report: str = ""
    recommendations: Optional[RecommendedRepos] = None
    visual_docs: Optional[VisualDocumentation] = None
    chat_history: List[ChatMessage] = field(default_factory=list)
    status: Optional[AnalysisStatus] = None

    def reset(self):
        self.repo_url = ""
        self.repo_data = None
        self.architecture_summary = ""
        self.file_reviews = []
        self.report = ""
        self.recommendations = None
        self.visual_docs = None
        self.chat_history = []
        self.status = None

    @property
    def has_report(self):
        return bool(self.report)
