"""Residual extraction and summary statistics."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from cgeruntime.core.context import Context


class ResidualEntry(BaseModel):
    """Residual of one equation instance."""

    tag: str
    block: str
    indices: tuple[str, ...] = ()
    residual: float

    model_config = ConfigDict(frozen=True)

    def label(self) -> str:
        return f"{self.block}.{self.tag} {self.indices}"


class ResidualSummary(BaseModel):
    """Aggregate residual statistics.

    Attributes:
        count: Number of residuals
        max_abs: Largest absolute residual (0.0 when empty)
        worst: Entry holding ``max_abs``; first one in registration order on ties
        above_tol: Residuals whose absolute value is strictly above ``tol``
    """

    count: int = Field(default=0, description="Number of residuals")
    max_abs: float = Field(default=0.0, description="Largest absolute residual")
    worst: ResidualEntry | None = Field(
        default=None, description="Worst equation instance"
    )
    above_tol: int = Field(default=0, description="Residuals above tolerance")

    model_config = ConfigDict(frozen=True)


def equation_residuals(context: Context) -> list[ResidualEntry]:
    """Collect residuals of the records that have one, in registration order."""
    out: list[ResidualEntry] = []
    for record in context.equations:
        payload = record.structured
        if payload is None or payload.residual is None:
            continue
        out.append(
            ResidualEntry(
                tag=record.tag,
                block=record.block,
                indices=payload.indices,
                residual=payload.residual,
            )
        )
    return out


def summarize_residuals(context: Context, tol: float = 1e-6) -> ResidualSummary:
    """Summarize residuals with the maximum and the count above tolerance."""
    res = equation_residuals(context)
    if not res:
        return ResidualSummary()
    absvals = np.abs(np.array([r.residual for r in res], dtype=float))
    # np.argmax returns the first occurrence of the maximum
    max_idx = int(np.argmax(absvals))
    return ResidualSummary(
        count=len(res),
        max_abs=float(absvals[max_idx]),
        worst=res[max_idx],
        above_tol=int(np.count_nonzero(absvals > tol)),
    )


def residual_frame(context: Context) -> pd.DataFrame:
    """Residuals as a DataFrame with ``abs_residual`` and ``order`` columns."""
    res = equation_residuals(context)
    frame = pd.DataFrame(
        {
            "block": [r.block for r in res],
            "tag": [r.tag for r in res],
            "indices": [r.indices for r in res],
            "residual": [r.residual for r in res],
        },
        columns=["block", "tag", "indices", "residual"],
    )
    frame["residual"] = frame["residual"].astype(float)
    frame["abs_residual"] = frame["residual"].abs()
    frame["order"] = np.arange(len(frame))
    return frame


def worst_residuals(context: Context, n: int = 5) -> pd.DataFrame:
    """The ``n`` largest absolute residuals; ties keep registration order."""
    frame = residual_frame(context)
    ranked = frame.sort_values("abs_residual", ascending=False, kind="mergesort")
    return ranked.head(n).reset_index(drop=True)
