"""Plotly figures for the dashboard pages."""

from __future__ import annotations

from typing import Iterable

import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .monthly import MonthlyAnalysis, combined_trend_frame, monthly_totals_frame
from .records import ConsumptionRecord, SourceCategory

SOURCE_COLORS = {
    SourceCategory.ENERGY: "#f1c40f",
    SourceCategory.WATER: "#3498db",
}

_MARGIN = dict(l=40, r=30, t=50, b=50)


def _month_labels(months: pd.Series) -> pd.Series:
    return pd.to_datetime(months, format="%Y-%m").dt.strftime("%m/%Y")


def daily_delta_chart(records: Iterable[ConsumptionRecord], source: SourceCategory) -> go.Figure:
    """Daily delta line of one source."""

    selected = sorted((r for r in records if r.source is source), key=lambda r: r.date)
    data = pd.DataFrame(
        {"date": [r.date for r in selected], "daily_delta": [r.daily_delta for r in selected]}
    )
    fig = px.line(
        data,
        x="date",
        y="daily_delta",
        markers=True,
        labels={"date": "Data", "daily_delta": source.unit},
        title=f"Consumo Diário de {source.display_name} (Dif_dia)",
    )
    fig.update_traces(
        fill="tozeroy",
        line_color=SOURCE_COLORS[source],
        hovertemplate="%{x|%d/%m/%Y}: %{y:,.2f} " + source.unit,
    )
    fig.update_yaxes(rangemode="tozero")
    fig.update_layout(margin=_MARGIN)
    return fig


def monthly_comparison_chart(records: Iterable[ConsumptionRecord]) -> go.Figure:
    """Grouped bars of the monthly consumption total per source."""

    totals = monthly_totals_frame(records)
    fig = go.Figure()
    if not totals.empty:
        labels = _month_labels(totals["month"])
        for source in (SourceCategory.WATER, SourceCategory.ENERGY):
            fig.add_trace(
                go.Bar(
                    x=labels,
                    y=totals[source.value],
                    name=f"{source.display_name} ({source.unit})",
                    marker_color=SOURCE_COLORS[source],
                )
            )
    fig.update_layout(barmode="group", title="Comparação Mensal de Consumo", margin=_MARGIN)
    return fig


def distribution_chart(records: Iterable[ConsumptionRecord]) -> go.Figure:
    """Donut of total consumption per source."""

    records = list(records)
    sources = [SourceCategory.WATER, SourceCategory.ENERGY]
    values = [sum(r.consumption for r in records if r.source is s) for s in sources]
    fig = go.Figure(
        go.Pie(
            labels=[s.display_name for s in sources],
            values=values,
            hole=0.5,
            marker=dict(colors=[SOURCE_COLORS[s] for s in sources], line=dict(color="#fff", width=3)),
        )
    )
    fig.update_layout(title="Distribuição Total do Consumo", legend=dict(orientation="h", y=-0.1), margin=_MARGIN)
    return fig


def monthly_trend_chart(analysis: MonthlyAnalysis) -> go.Figure:
    """Average daily delta per month, energy on the left axis and water on the right."""

    combined = combined_trend_frame(analysis)
    fig = go.Figure()
    if combined.empty:
        return fig
    labels = _month_labels(combined["month"])
    energy, water = SourceCategory.ENERGY, SourceCategory.WATER
    fig.add_trace(
        go.Scatter(
            x=labels,
            y=combined[energy.value],
            mode="lines+markers",
            name=f"{energy.display_name} ({energy.unit}/dia)",
            line=dict(color=SOURCE_COLORS[energy], shape="spline"),
        )
    )
    fig.add_trace(
        go.Scatter(
            x=labels,
            y=combined[water.value],
            mode="lines+markers",
            name=f"{water.display_name} ({water.unit}/dia)",
            line=dict(color=SOURCE_COLORS[water], shape="spline"),
            yaxis="y2",
        )
    )
    fig.update_layout(
        title="Tendência da Média Diária (Dif_dia)",
        xaxis=dict(title="Mês/Ano"),
        yaxis=dict(title=f"{energy.display_name} ({energy.unit}/dia)", color=SOURCE_COLORS[energy]),
        yaxis2=dict(
            title=f"{water.display_name} ({water.unit}/dia)",
            color=SOURCE_COLORS[water],
            overlaying="y",
            side="right",
            showgrid=False,
        ),
        hovermode="x unified",
        margin=_MARGIN,
    )
    return fig


def variation_chart(analysis: MonthlyAnalysis) -> go.Figure:
    """Month-over-month percent variation bars; the first month has no bar."""

    combined = combined_trend_frame(analysis).iloc[1:]
    fig = go.Figure()
    if combined.empty:
        return fig
    labels = _month_labels(combined["month"])
    palettes = {
        SourceCategory.ENERGY: ("rgba(76, 175, 80, 0.8)", "rgba(244, 67, 54, 0.8)"),
        SourceCategory.WATER: ("rgba(33, 150, 243, 0.8)", "rgba(255, 152, 0, 0.8)"),
    }
    for source, (up, down) in palettes.items():
        values = combined[f"{source.value}_variation"]
        fig.add_trace(
            go.Bar(
                x=labels,
                y=values,
                name=f"{source.display_name} (%)",
                marker_color=np.where(values >= 0, up, down),
                hovertemplate="%{x}: %{y:.1f}%",
            )
        )
    fig.update_layout(
        title="Variação Percentual vs Mês Anterior",
        barmode="group",
        xaxis=dict(title="Mês/Ano"),
        yaxis=dict(title="Variação (%)", ticksuffix="%"),
        margin=_MARGIN,
    )
    return fig
