import streamlit as st

from ontoscope.enums import Axis, CQType
from ontoscope.errors import OntoScopeError
from ontoscope.state import SessionStore
from ontoscope.suggestions import SuggestionProvider, collect_unique_terminology


def render_detail_panel(store: SessionStore, provider: SuggestionProvider):
    """Renders whatever the last map click selected."""
    try:
        if store.selected_cq_id:
            _render_cq_detail(store, provider)
        elif store.selected_cell:
            _render_cell_detail(store, provider)
        elif store.selected_axis_value:
            _render_axis_value_detail(store)
        else:
            st.info("Click a cell, an axis value or a question on the map to inspect it.")
    except OntoScopeError as e:
        st.error(str(e))


def _render_cq_detail(store: SessionStore, provider: SuggestionProvider):
    cq_store = store.cq_store
    cq = cq_store.get_cq(store.selected_cq_id)

    st.markdown(f"#### {cq.question}")
    st.caption(f"{cq.domain_coverage} × {cq.terminology_granularity}")

    type_options = [""] + CQType.values()
    current = type_options.index(cq.type_value) if cq.type_value else 0
    new_type = st.selectbox("Type", type_options, index=current, key=f"type_{cq.id}")
    if new_type != (cq.type_value or ""):
        # "" clears the type back to unspecified.
        cq_store.update_cq(cq.id, cq_type=new_type)
        st.rerun()

    relevant = st.toggle("Relevant", value=cq.is_relevant, key=f"cq_rel_{cq.id}")
    if relevant != cq.is_relevant:
        cq_store.set_cq_relevance(cq.id, relevant)
        st.rerun()

    st.markdown("**Terminology**")
    for term in list(cq.suggested_terms):
        c1, c2 = st.columns([4, 1])
        c1.write(term)
        if c2.button("✖", key=f"term_del_{cq.id}_{term}"):
            cq_store.delete_terminology(cq.id, term)
            st.rerun()

    if st.button("✨ Suggest terminology", key=f"term_suggest_{cq.id}"):
        terms = collect_unique_terminology(provider, cq_store, cq.id)
        if terms:
            cq_store.add_terminology(cq.id, terms)
            st.rerun()
        st.warning("No new terminology could be found for this question.")

    if st.button("🗑️ Delete question", key=f"cq_del_{cq.id}", type="primary"):
        cq_store.delete_cq(cq.id)
        store.clear_selection()
        st.rerun()


def _render_cell_detail(store: SessionStore, provider: SuggestionProvider):
    cq_store = store.cq_store
    session_id = store.session_id
    domain, granularity = store.selected_cell

    st.markdown(f"#### {domain} × {granularity}")
    cell_cqs = [cq for cq in cq_store.cqs(session_id) if cq.intersection_key == (domain, granularity)]
    if not cell_cqs:
        st.info("No questions in this intersection yet.")

    for cq in cell_cqs:
        label = cq.question if cq.is_relevant else f"~~{cq.question}~~"
        if st.button(label, key=f"open_{cq.id}", use_container_width=True):
            store.clear_selection()
            store.selected_cq_id = cq.id
            st.rerun()

    if st.button("✨ Suggest questions", key="cq_suggest"):
        request = cq_store.cq_suggestion_request(session_id, domain, granularity)
        added = cq_store.add_suggested_cqs(session_id, domain, granularity, provider.suggest_cqs(request))
        st.toast(f"Added {len(added)} question(s).")
        st.rerun()

    with st.form(key="custom_cq", clear_on_submit=True):
        question = st.text_area("Write your own question")
        if st.form_submit_button("Add question"):
            analysis = provider.analyze_custom_cq(cq_store.custom_cq_request(session_id, question, domain, granularity))
            cq_store.add_cq(session_id, analysis.question, domain, granularity, analysis.suggested_terms, analysis.type)
            st.rerun()


def _render_axis_value_detail(store: SessionStore):
    cq_store = store.cq_store
    value, axis = store.selected_axis_value
    dimension = Axis(axis).dimension

    match = next((v for v in cq_store.axis_values(store.session_id, dimension) if v.value == value), None)
    if match is None:
        store.clear_selection()
        st.info("This value no longer exists.")
        return

    st.markdown(f"#### {value}")
    st.caption(dimension.axis_label)
    if st.button("Mark as not relevant", key="axis_irrelevant"):
        cq_store.set_axis_value_relevance(match.id, False)
        store.clear_selection()
        st.rerun()
    if st.button("🗑️ Delete value and its questions", key="axis_delete", type="primary"):
        removed = cq_store.delete_axis_value(match.id)
        store.clear_selection()
        st.toast(f"Deleted '{value}' and {removed} question(s).")
        st.rerun()
