"""Reusable Streamlit forms for the dashboard."""

from __future__ import annotations

from datetime import date
from typing import Optional

import streamlit as st

from .exceptions import ManualEntryError
from .records import ConsumptionRecord, SourceCategory
from .state import ConsumptionSession

SOURCE_OPTIONS = {
    SourceCategory.WATER: "Embasa (Água)",
    SourceCategory.ENERGY: "Coelba (Energia)",
}


def render_manual_entry_form(session: ConsumptionSession) -> Optional[ConsumptionRecord]:
    """Render the manual entry form and add the record on submit."""

    with st.form("manual_entry", clear_on_submit=True):
        st.markdown("### Inserir consumo")
        entry_date = st.date_input("Data", value=date.today(), format="DD/MM/YYYY")
        source = st.selectbox(
            "Origem",
            options=list(SOURCE_OPTIONS),
            format_func=SOURCE_OPTIONS.get,
        )
        consumption = st.text_input(
            "Consumo",
            placeholder="ex.: 12,5",
            help="Consumo do período; também é usado como diferença diária.",
        )
        submitted = st.form_submit_button("Adicionar consumo")
    if not submitted:
        return None
    try:
        record = session.add_manual_entry(
            entry_date.isoformat() if entry_date else None,
            source,
            consumption,
        )
    except ManualEntryError as exc:
        st.error(str(exc))
        return None
    st.success("Consumo adicionado com sucesso!")
    return record
