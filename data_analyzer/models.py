"""Data models shared by the provider clients, the mergers and the API."""

import logging
from dataclasses import dataclass
from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

# Chart types the analysis prompt asks for. Providers may emit others; they are passed through.
CHART_TYPES = ("bar", "line", "pie", "scatter", "histogram")


class Table(BaseModel):
    name: str = ""
    columns: List[Any] = []
    rows: List[Any] = []


class Dataset(BaseModel):
    model_config = ConfigDict(extra="allow")

    label: Optional[str] = None
    data: Any = []

    @field_validator("label", mode="before")
    @classmethod
    def _stringify_label(cls, value: Any) -> Optional[str]:
        return None if value is None else str(value)


class Chart(BaseModel):
    """A chart suggested by a provider.

    Label and value counts are not checked against each other: provider
    output is passed through untouched, including keys we do not model.
    """

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    title: Optional[str] = None
    type: Optional[str] = None
    labels: Any = []
    datasets: List[Annotated[Union[Dataset, Any], Field(union_mode="left_to_right")]] = []

    @field_validator("id", "title", "type", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Optional[str]:
        return None if value is None else str(value)


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item if isinstance(item, str) else str(item) for item in value]


class AnalysisResult(BaseModel):
    summary: str = ""
    insights: List[str] = []
    explanations: List[str] = []
    charts: List[Chart] = []

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "AnalysisResult":
        """Build a result from an untrusted provider payload, defaulting missing fields."""
        summary = payload.get("summary")
        charts: List[Chart] = []
        raw_charts = payload.get("charts")
        for raw_chart in raw_charts if isinstance(raw_charts, list) else []:
            if not isinstance(raw_chart, dict):
                logger.warning("Dropping non-object chart entry: %r", raw_chart)
                continue
            try:
                charts.append(Chart.model_validate(raw_chart))
            except ValidationError as e:
                logger.warning("Keeping unvalidated chart %r: %s", raw_chart.get("id"), e)
                charts.append(Chart.model_construct(**raw_chart))
        return cls(
            summary=summary if isinstance(summary, str) else "",
            insights=_string_list(payload.get("insights")),
            explanations=_string_list(payload.get("explanations")),
            charts=charts,
        )


class ChatResult(BaseModel):
    message: str
    count: int
    model: str


# Provider outcomes


@dataclass(frozen=True)
class Success:
    payload: Union[Dict[str, Any], str]


@dataclass(frozen=True)
class Failure:
    reason: str


@dataclass(frozen=True)
class Unavailable:
    """No credential is configured for the provider."""


ProviderOutcome = Union[Success, Failure, Unavailable]


@dataclass(frozen=True)
class Prompt:
    user: str
    system: Optional[str] = None
    json_mode: bool = False
    temperature: float = 0.7
    max_tokens: int = 1000


@dataclass(frozen=True)
class AggregateFailure:
    """No provider produced a usable result."""

    message: str
