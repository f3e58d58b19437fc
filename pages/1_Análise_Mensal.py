from __future__ import annotations

import pandas as pd
import streamlit as st

from consumption.charts import monthly_trend_chart, variation_chart
from consumption.config import load_settings
from consumption.monthly import monthly_frame
from consumption.records import SourceCategory
from consumption.state import bootstrap_state

ICONS = {SourceCategory.ENERGY: "⚡", SourceCategory.WATER: "💧"}


def _variation_badge(value: float) -> str:
    if value > 0:
        return f"📈 {abs(value):.1f}%"
    if value < 0:
        return f"📉 {abs(value):.1f}%"
    return f"➡️ {abs(value):.1f}%"


def _source_table(frame: pd.DataFrame, source: SourceCategory) -> pd.DataFrame:
    subset = frame[frame["source"] == source.value]
    return pd.DataFrame(
        {
            "Mês/Ano": subset["label"],
            "Média Diária (Dif_dia)": subset["avg_daily_delta"].round(2),
            "Total Dif_dia": subset["delta_sum"].round(2),
            "Dias com dados": subset["delta_count"].astype(str) + "/" + subset["record_count"].astype(str),
            "Maior/Menor Dif_dia": subset["delta_max"].round(1).astype(str) + " / " + subset["delta_min"].round(1).astype(str),
            "Variação": subset["variation_pct"].map(_variation_badge),
        }
    )


def main() -> None:
    st.set_page_config(page_title="Análise Mensal", layout="wide")
    session = bootstrap_state(load_settings())

    st.title("📊 Análise Mensal Detalhada")
    st.caption("Média diária da diferença de leitura por mês e variação em relação ao mês anterior.")

    snapshot = session.snapshot
    if snapshot.is_empty:
        st.warning("Nenhum dado carregado. Use a página inicial para carregar uma planilha.")
        return

    frame = monthly_frame(snapshot.monthly)
    for source in (SourceCategory.ENERGY, SourceCategory.WATER):
        buckets = snapshot.monthly.get(source, {})
        if not buckets:
            continue
        st.subheader(f"{ICONS[source]} {source.display_name} ({source.provider}) · {source.unit}")
        st.dataframe(_source_table(frame, source), use_container_width=True, hide_index=True)

    st.subheader("📈 Tendências Mensais")
    st.plotly_chart(monthly_trend_chart(snapshot.monthly), use_container_width=True)
    st.plotly_chart(variation_chart(snapshot.monthly), use_container_width=True)


if __name__ == "__main__":
    main()
