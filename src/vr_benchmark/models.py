"""
Run records shared by the capture tool, the query API and its client.

Serialized with camelCase field names, which is what the dashboard reads.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RunSummary(_CamelModel):
    """One profiling run as listed in the run index."""
    id: int
    description: str
    timestamp: int  # epoch ms at run start
    result: bool    # average frame time within target


class MetricSummary(_CamelModel):
    """A metric of one run compared with the previous run and all runs."""
    name: str
    value: float
    last_value: float = 0.0
    average_value: float


class RunDetail(_CamelModel):
    """Full comparison view of one run."""
    description: str
    timestamp: int
    result: bool
    metrics: list[MetricSummary]
