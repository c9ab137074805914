from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# ---------- Comparison input ----------


class GroupSample(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    values: list[float | int | str | None]


class Comparison(BaseModel):
    model_config = ConfigDict(extra="forbid")

    field: str
    data_kind: Literal[
        "categorical",
        "categorical_obs",
        "continuous",
        "continuous_obs",
        "gene_expression",
    ]
    groups: list[GroupSample] = Field(min_length=1)


# ---------- Selection input ----------


class Selections(BaseModel):
    """Group name to cell indices, as written by the explorer's page export."""

    model_config = ConfigDict(extra="forbid")

    groups: dict[str, list[int]] = Field(min_length=1)
