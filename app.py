"""
Piping Datasheets — Component datasheets & pipe class summaries.

Run with:  streamlit run app.py
"""

import logging
from pathlib import Path

import streamlit as st
import yaml

from pipingsheets.catalog import CatalogData, load_catalog, load_from_uploads, project_dirs
from pipingsheets.datasheets import generate_for_selection
from pipingsheets.pipe_class import GENERATION_MODES, classes_for_mode, menu_classes
from pipingsheets.search import items_frame, parse_query, search_items
from pipingsheets.sizes import size_at
from pipingsheets.summary import generate_for_classes

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")


# ── Config ─────────────────────────────────────────────────

RULES_PATH = Path(__file__).parent / "config" / "datasheet_rules.yaml"


@st.cache_data
def cached_load_rules():
    with open(RULES_PATH) as f:
        return yaml.safe_load(f)


def _set_catalog(data: CatalogData):
    st.session_state.catalog_data = data
    st.session_state.records = data.records(rules)
    st.session_state.pop("last_result", None)
    st.session_state.pop("last_summary", None)


# ── Page config ────────────────────────────────────────────

st.set_page_config(page_title="Piping Datasheets", page_icon="📐", layout="wide")

rules = cached_load_rules()
templates_dir, output_dir = project_dirs(rules)


# ── Sidebar ────────────────────────────────────────────────

with st.sidebar:
    st.title("Piping Datasheets")

    with st.expander("Upload Catalog Export", expanded="catalog_data" not in st.session_state):
        uploaded_files = st.file_uploader(
            "Drop catalog export files here",
            type=["numbers", "xlsx", "csv", "tsv"],
            accept_multiple_files=True,
            help="Exports need a path column, or folder + name columns. Every other column is an attribute.",
        )

        if uploaded_files:
            upload_key = tuple((f.name, f.size) for f in uploaded_files)
            if st.session_state.get("_upload_key") != upload_key:
                with st.spinner("Reading catalog..."):
                    _set_catalog(load_from_uploads(uploaded_files, rules))
                    st.session_state._upload_key = upload_key
                st.rerun()

    with st.expander("Local Catalog Folder"):
        local_path = st.text_input("File or folder path", placeholder="~/catalog-exports")
        if st.button("Load", use_container_width=True, disabled=not local_path):
            with st.spinner("Reading catalog..."):
                _set_catalog(load_catalog(Path(local_path).expanduser(), rules))
            st.session_state.pop("_upload_key", None)
            st.rerun()

    catalog_data: CatalogData | None = st.session_state.get("catalog_data")

    st.divider()
    st.caption(f"Templates: {templates_dir}")
    st.caption(f"Output: {output_dir}")

    if catalog_data is not None:
        with st.expander("Catalog Summary", expanded=False):
            summary = catalog_data.summary()
            c1, c2, c3 = st.columns(3)
            c1.metric("Files", f"{summary['files']:,}")
            c2.metric("Items", f"{summary['items']:,}")
            c3.metric("Skipped", f"{summary['skipped']:,}")
            for f in catalog_data.loaded_files:
                st.caption(f"{f['file']}  \n{f['rows']:,} rows")

        if catalog_data.warnings or catalog_data.skipped_files:
            with st.expander("Warnings & Skipped Files", expanded=False):
                for w in catalog_data.warnings:
                    st.warning(w)
                for s in catalog_data.skipped_files:
                    st.caption(f"**{s['file']}**: {s['reason']}")

        if st.button("Clear Catalog", use_container_width=True):
            for k in ("catalog_data", "records", "_upload_key", "last_result", "last_summary"):
                st.session_state.pop(k, None)
            st.rerun()


if catalog_data is None:
    st.markdown(
        """
        ### How to use

        1. **Upload a catalog export** in the sidebar (or load a local file/folder)
        2. **Component Datasheets**: search, pick items, generate one sheet per item
        3. **Pipe Class Summary**: pick a class (or all ASME / DIN classes) and generate

        Templates are read from the templates folder shown in the sidebar.
        """
    )
    st.stop()

records = st.session_state.records

datasheet_tab, summary_tab = st.tabs(["Component Datasheets", "Pipe Class Summary"])


# ── Component datasheets ───────────────────────────────────

with datasheet_tab:
    items_df = items_frame(records)

    groups = sorted(g for g in items_df["group"].unique() if g)
    col_query, col_group = st.columns([3, 1])
    with col_query:
        query = st.text_input(
            "Search items",
            placeholder='e.g. "elbow 2 in", "gskt DN50", "ball valve 150JX00", "EL-90-LR"',
            label_visibility="collapsed",
        )
    with col_group:
        group_choice = st.selectbox("Folder", options=["(All)"] + groups, label_visibility="collapsed")

    visible = items_df if group_choice == "(All)" else items_df[items_df["group"] == group_choice]

    if query:
        visible = search_items(query, visible, max_results=50, min_score=30)
        pq = parse_query(query)
        token_parts = []
        if pq.sizes:
            token_parts.append(f"size: {', '.join(size_at(i).inch for i in pq.sizes)}")
        if pq.classes:
            token_parts.append(f"class: {', '.join(pq.classes)}")
        parsed_info = f" | Parsed: {' | '.join(token_parts)}" if token_parts else ""
        st.caption(f"{len(visible)} matches for **{query}**{parsed_info}")

    if visible.empty:
        st.info("No items to show.")
    else:
        st.dataframe(
            visible.drop(columns=["item_id"]),
            use_container_width=True,
            hide_index=True,
        )

    labels = {int(row.item_id): f"{row.code}  ·  {row.type or row.name}  ({row.group or '-'})"
              for row in visible.itertuples()}
    selected_ids = st.multiselect(
        "Items to generate",
        options=list(labels.keys()),
        format_func=lambda i: labels.get(i, str(i)),
    )

    if st.button("Generate Datasheets", type="primary", disabled=not selected_ids):
        with st.spinner("Writing datasheets..."):
            st.session_state.last_result = generate_for_selection([records[i] for i in selected_ids], rules)

    result = st.session_state.get("last_result")
    if result is not None:
        if result.created and not result.failed:
            st.success(result.message)
        elif result.created:
            st.warning(result.message)
        else:
            st.error(result.message)

        for out in result.output_files:
            if out.is_file():
                st.download_button(
                    f"Download {out.name}",
                    data=out.read_bytes(),
                    file_name=out.name,
                    mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
                    key=f"dl_{out.name}",
                )


# ── Pipe class summary ─────────────────────────────────────

with summary_tab:
    class_groups = menu_classes(catalog_data.root, rules)

    if not class_groups:
        st.info("No pipe class codes found in the catalog.")
    else:
        c1, c2, c3 = st.columns(3)
        c1.metric("ASME / ANSI", len(class_groups.high))
        c2.metric("DIN", len(class_groups.low))
        c3.metric("Other", len(class_groups.other))

        mode = st.radio(
            "Generate",
            options=list(GENERATION_MODES.keys()),
            format_func=GENERATION_MODES.get,
            horizontal=True,
        )
        single = None
        if mode == "single":
            single = st.selectbox("Pipe class", options=class_groups.ordered)

        chosen = classes_for_mode(class_groups.ordered, mode, single)
        st.caption(f"{len(chosen)} class(es): {', '.join(chosen)}")

        if st.button("Generate Summaries", type="primary", disabled=not chosen):
            with st.spinner("Writing pipe class summaries..."):
                st.session_state.last_summary = generate_for_classes(catalog_data.root, chosen, rules)

    status = st.session_state.get("last_summary")
    if status:
        if status.startswith("Pipe class summaries generated") and "Failed=0" in status:
            st.success(status)
        else:
            st.warning(status)
