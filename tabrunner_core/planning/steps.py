"""
Step Model - typed actions the execution controller can run

A compiled plan is a list of Step values. Each Step carries a kind and a
params object whose type is fixed by that kind, so executors never have to
guess at dictionary keys.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

# Extract hint that leaves the results-page decision to the current tab URL
AUTO_SELECTOR_HINT = "auto"


class StepKind(Enum):
    """Types of execution steps"""
    NAVIGATE = "navigate"               # Open URL in a new tab
    SEARCH = "search"                   # Navigate to a search-engine results page
    EXTRACT = "extract"                 # Collect records from the active tab
    CLICK = "click"                     # Click element
    TYPE = "type"                       # Type text into an input
    SCROLL = "scroll"                   # Scroll one viewport
    WAIT = "wait"                       # Fixed delay
    PRODUCE_OUTPUT = "produce_output"   # Hand collected records to the output stage


class OutputFormat(Enum):
    """Output formats the plan producer may request"""
    SHEET = "sheet"
    CSV = "csv"
    TABLE = "table"
    TEXT = "text"

    @classmethod
    def parse(cls, value: Union[str, "OutputFormat", None], default: "OutputFormat" = None) -> "OutputFormat":
        if isinstance(value, OutputFormat):
            return value
        if value:
            try:
                return cls(str(value).strip().lower())
            except ValueError:
                pass
        return default or cls.TABLE


@dataclass(frozen=True)
class NavigateParams:
    url: str


@dataclass(frozen=True)
class SearchParams:
    query: str


@dataclass(frozen=True)
class ExtractParams:
    selector_hint: str = AUTO_SELECTOR_HINT


@dataclass(frozen=True)
class ClickParams:
    selector: str


@dataclass(frozen=True)
class TypeParams:
    selector: str
    text: str


@dataclass(frozen=True)
class ScrollParams:
    pass


@dataclass(frozen=True)
class WaitParams:
    duration_ms: int = 1000


@dataclass(frozen=True)
class OutputParams:
    output_format: OutputFormat = OutputFormat.TABLE


StepParams = Union[
    NavigateParams, SearchParams, ExtractParams, ClickParams,
    TypeParams, ScrollParams, WaitParams, OutputParams,
]

PARAMS_BY_KIND = {
    StepKind.NAVIGATE: NavigateParams,
    StepKind.SEARCH: SearchParams,
    StepKind.EXTRACT: ExtractParams,
    StepKind.CLICK: ClickParams,
    StepKind.TYPE: TypeParams,
    StepKind.SCROLL: ScrollParams,
    StepKind.WAIT: WaitParams,
    StepKind.PRODUCE_OUTPUT: OutputParams,
}


@dataclass(frozen=True)
class Step:
    """Single executable step"""
    kind: StepKind
    description: str
    params: StepParams

    def __post_init__(self):
        expected = PARAMS_BY_KIND[self.kind]
        if not isinstance(self.params, expected):
            raise ValueError(
                f"{self.kind.value} step needs {expected.__name__}, got {type(self.params).__name__}"
            )

    @classmethod
    def navigate(cls, url: str, description: str = "") -> "Step":
        return cls(StepKind.NAVIGATE, description or f"Navigate to {url}", NavigateParams(url))

    @classmethod
    def search(cls, query: str, description: str = "") -> "Step":
        return cls(StepKind.SEARCH, description or f"Search for {query}", SearchParams(query))

    @classmethod
    def extract(cls, selector_hint: str = AUTO_SELECTOR_HINT, description: str = "") -> "Step":
        return cls(StepKind.EXTRACT, description or "Extract results", ExtractParams(selector_hint))

    @classmethod
    def click(cls, selector: str, description: str = "") -> "Step":
        return cls(StepKind.CLICK, description or f"Click {selector}", ClickParams(selector))

    @classmethod
    def type_text(cls, selector: str, text: str, description: str = "") -> "Step":
        return cls(StepKind.TYPE, description or f"Type into {selector}", TypeParams(selector, text))

    @classmethod
    def scroll(cls, description: str = "") -> "Step":
        return cls(StepKind.SCROLL, description or "Scroll down", ScrollParams())

    @classmethod
    def wait(cls, duration_ms: int = 1000, description: str = "") -> "Step":
        return cls(StepKind.WAIT, description or f"Wait {duration_ms}ms", WaitParams(duration_ms))

    @classmethod
    def produce_output(cls, output_format: OutputFormat = OutputFormat.TABLE, description: str = "") -> "Step":
        return cls(
            StepKind.PRODUCE_OUTPUT,
            description or f"Create {output_format.value} output",
            OutputParams(output_format),
        )


@dataclass(frozen=True)
class Record:
    """One structured row extracted from a page"""
    name: str
    url: str
    description: str
    rank: int

    def to_row(self) -> Dict[str, Any]:
        """Column mapping used by every export format"""
        return {
            "Name": self.name,
            "URL": self.url,
            "Description": self.description,
            "Rank": self.rank,
        }


@dataclass
class StepResult:
    """Result of a single compiled step"""
    compiled_index: int
    plan_index: int
    success: bool
    status_message: str
    error: Optional[str] = None
    payload: Optional[Any] = None
    duration_ms: int = 0

    def to_progress(self) -> Dict[str, Any]:
        """Shape handed to the UI shell's progress callback"""
        progress: Dict[str, Any] = {
            "plan_index": self.plan_index,
            "success": self.success,
            "status_message": self.status_message,
        }
        if self.error:
            progress["error"] = self.error
        return progress

    def to_dict(self) -> Dict[str, Any]:
        payload = self.payload
        if isinstance(payload, list):
            payload = [item.to_row() if isinstance(item, Record) else item for item in payload]
        return {
            "compiled_index": self.compiled_index,
            "plan_index": self.plan_index,
            "success": self.success,
            "status_message": self.status_message,
            "error": self.error,
            "payload": payload,
            "duration_ms": self.duration_ms,
        }
