from __future__ import annotations

import altair as alt
import streamlit as st
from pymongo.errors import PyMongoError

from contact_snapshot.aggregate.resolver import AggregationResolver
from contact_snapshot.config import get_settings
from contact_snapshot.db import connect
from contact_snapshot.logging_config import configure_logging
from contact_snapshot.models import Role
from contact_snapshot.pivot.frames import breakdown_frame, grid_frame, month_totals_frame
from contact_snapshot.pivot.view import FetchStatus, ViewController
from contact_snapshot.sources import PrecomputedSource, RawRecordSource

configure_logging()

# =====================================================
# Page config
# =====================================================
st.set_page_config(page_title="Contact Snapshot", layout="wide")
st.title("📊 Contact Snapshot")
st.caption("Contacts logged per counselor per month, August through June.")

# =====================================================
# Caller context (trusted as supplied)
# =====================================================
with st.sidebar:
    school_id = st.text_input("School ID")
    role = st.radio("Role", [r.value for r in Role], horizontal=True)
    identity = st.text_input("Counselor ID", disabled=role == Role.ADMIN.value) or None

if not school_id:
    st.info("Enter a school ID to load the report.")
    st.stop()

if role == Role.COUNSELOR.value and not identity:
    st.info("Enter your counselor ID to see your contacts.")
    st.stop()


# =====================================================
# Controller (kept across reruns so the selection survives)
# =====================================================
@st.cache_resource
def _resolver() -> AggregationResolver:
    s = get_settings()
    db = connect(s)
    return AggregationResolver(
        primary=PrecomputedSource(db[s.snapshot_collection]),
        fallback=RawRecordSource(db[s.notes_collection], db[s.profiles_collection]),
    )


try:
    resolver = _resolver()
except (RuntimeError, PyMongoError) as exc:  # pragma: no cover - runtime failure handling
    st.error(f"Unable to configure MongoDB: {exc}")
    st.stop()

if "controller" not in st.session_state:
    st.session_state.controller = ViewController(resolver, role=role, identity=identity)
controller: ViewController = st.session_state.controller

if st.session_state.get("scope") != school_id:
    st.session_state.scope = school_id
    with st.spinner("Loading contact data..."):
        controller.refresh(school_id)

if (controller.role.value, controller.identity) != (role, identity):
    controller.set_context(role, identity)

model = controller.model

# =====================================================
# Loading / error / empty states
# =====================================================
if controller.status is FetchStatus.FAILED:
    st.error(controller.error)
    if st.button("🔄 Retry"):
        controller.refresh(school_id)
        st.rerun()
    st.stop()

if model.is_empty:
    st.info("No contacts logged yet this school year.")
    st.stop()

# =====================================================
# SECTION 0 — TOTALS
# =====================================================
c1, c2, c3 = st.columns(3)
with c1:
    st.metric("Total Contacts", model.grand_total)
with c2:
    st.metric("Counselors", len(model.counselors))
with c3:
    st.metric("Source", controller.resolution.source if controller.resolution else "-")

if controller.resolution is not None and controller.resolution.used_fallback:
    st.caption("Precomputed snapshot unavailable; counts were aggregated from raw notes.")

st.divider()

# =====================================================
# SECTION 1 — COUNSELOR × MONTH GRID
# =====================================================
st.header("👥 Counselor × Month")
st.dataframe(grid_frame(model), width="stretch")

chart = (
    alt.Chart(month_totals_frame(model))
    .mark_bar()
    .encode(
        x=alt.X("month:T", timeUnit="yearmonth", title="Month"),
        y=alt.Y("contacts:Q", title="Contacts"),
        tooltip=["label:N", "contacts:Q"],
    )
    .properties(height=260)
)
st.altair_chart(chart, width="stretch")

st.divider()

# =====================================================
# SECTION 2 — DRILL-DOWN BY CONTACT TYPE
# =====================================================
st.header("🔎 Breakdown by Contact Type")

for c in model.counselors:
    expanded = controller.state.expanded_counselor_id == c.id
    label = f"{'▾' if expanded else '▸'} {c.name} ({model.counselor_totals.get(c.id, 0)})"
    if st.button(label, key=f"expand-{c.id}"):
        controller.toggle_expanded(c.id)
        st.rerun()
    if expanded:
        breakdown = controller.expanded_breakdown()
        st.dataframe(breakdown_frame(model, breakdown), width="stretch")
