from __future__ import annotations

import pandas as pd
import streamlit as st

from consumption.charts import daily_delta_chart, distribution_chart, monthly_comparison_chart
from consumption.config import load_settings
from consumption.data_loader import WorkbookFormat
from consumption.export import XLSX_MIME, build_export_workbook, export_filename
from consumption.forms import render_manual_entry_form
from consumption.logger import configure_logging
from consumption.records import SourceCategory
from consumption.state import SessionSnapshot, bootstrap_state
from consumption.summary import format_variation, generate_summary

APP_TITLE = "Consumo de Água e Energia"


def _records_table(snapshot: SessionSnapshot) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "Data": [r.date.strftime("%d/%m/%Y") for r in snapshot.records],
            "Origem": [r.source.origin_label for r in snapshot.records],
            "Consumo Total": [r.consumption for r in snapshot.records],
            "Dif_dia": [r.daily_delta for r in snapshot.records],
            "Unidade": [r.source.unit for r in snapshot.records],
        }
    )


def _sheet_caption(snapshot: SessionSnapshot) -> str:
    return " | ".join(f"{source.provider}: aba \"{name}\"" for source, name in snapshot.sheets.items())


def _render_result_cards(snapshot: SessionSnapshot) -> None:
    water = snapshot.overview(SourceCategory.WATER)
    energy = snapshot.overview(SourceCategory.ENERGY)

    cols = st.columns(4)
    for col, overview in zip(cols[:2], (water, energy)):
        source = overview.source
        with col:
            st.metric(
                f"Média Diária - {source.display_name}",
                f"{overview.daily.mean:,.2f} {source.unit}/dia",
                delta=format_variation(overview.latest_variation) if overview.latest_variation is not None else None,
                help=f"Soma: {overview.daily.total:,.2f} | Valores: {overview.daily.count_used}",
            )
    for col, overview in zip(cols[2:], (water, energy)):
        source = overview.source
        with col:
            st.metric(f"Total {source.display_name}", f"{overview.consumption_total:,.1f} {source.unit}")

    summary_text = generate_summary({SourceCategory.WATER: water, SourceCategory.ENERGY: energy})
    with st.expander("Resumo", expanded=False):
        st.write(summary_text)


def main() -> None:
    st.set_page_config(page_title=APP_TITLE, layout="wide")
    settings = load_settings()
    configure_logging(settings.log_level, settings.log_file)
    session = bootstrap_state(settings)

    st.title(APP_TITLE)
    st.caption("Carregue as planilhas da Coelba e da Embasa ou um relatório gerado por este sistema.")

    with st.sidebar.expander("Carregar planilha", expanded=True):
        upload = st.file_uploader("Arquivo Excel", type=["xlsx", "xlsm"])
        if upload is not None and st.session_state.get("last_upload") != upload.file_id:
            try:
                snapshot = session.load_workbook(upload)
            except ValueError as exc:
                st.error(f"Erro ao carregar arquivo: {exc}")
            else:
                st.session_state.last_upload = upload.file_id
                if snapshot.workbook_format is WorkbookFormat.UNIFIED:
                    st.success("Arquivo gerado pelo sistema detectado e carregado com sucesso!")
                else:
                    st.success(
                        "Arquivo original carregado com sucesso! "
                        f"{len(snapshot.records_for(SourceCategory.ENERGY))} registros Coelba e "
                        f"{len(snapshot.records_for(SourceCategory.WATER))} registros Embasa encontrados."
                    )
                    st.caption(_sheet_caption(snapshot))

    with st.sidebar:
        render_manual_entry_form(session)
        if not session.snapshot.is_empty and st.button("Limpar dados", help="Remove todos os registros da sessão."):
            session.clear()
            st.rerun()

    snapshot = session.snapshot
    if snapshot.is_empty:
        st.info("Sistema pronto! Você pode carregar um arquivo Excel existente ou inserir dados diretamente.")
        return

    st.subheader("Resultados")
    _render_result_cards(snapshot)

    st.subheader("Gráficos")
    col1, col2 = st.columns(2)
    with col1:
        st.plotly_chart(daily_delta_chart(snapshot.records, SourceCategory.WATER), use_container_width=True)
    with col2:
        st.plotly_chart(daily_delta_chart(snapshot.records, SourceCategory.ENERGY), use_container_width=True)
    col3, col4 = st.columns([2, 1])
    with col3:
        st.plotly_chart(monthly_comparison_chart(snapshot.records), use_container_width=True)
    with col4:
        st.plotly_chart(distribution_chart(snapshot.records), use_container_width=True)

    st.subheader("Registros")
    st.dataframe(
        _records_table(snapshot),
        use_container_width=True,
        column_config={
            "Consumo Total": st.column_config.NumberColumn(format="%.2f"),
            "Dif_dia": st.column_config.NumberColumn(format="%.2f"),
        },
    )

    st.download_button(
        "Baixar relatório Excel",
        data=build_export_workbook(snapshot.records, snapshot.monthly, settings),
        file_name=export_filename(settings),
        mime=XLSX_MIME,
        help="Inclui abas no formato original (Coelba/Embasa) e o formato unificado.",
    )


if __name__ == "__main__":
    main()
