# app.py: governance dashboard viewer
from datetime import datetime

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from governance_dashboard.config import Settings, configure_logging
from governance_dashboard.db import RecordStore, fetch_dashboard_snapshots
from governance_dashboard.services.metrics_service import aggregate
from governance_dashboard.services.risk_service import build_matrix, severity_grid

settings = Settings.from_env()
configure_logging(settings.log_level)

st.set_page_config(page_title="Governance Dashboard", layout="wide")
st.title("🛡️ Governance Dashboard")
st.sidebar.info(f"Reading records from `{settings.data_dir}`.")

store = RecordStore(settings.data_dir)
snapshots = fetch_dashboard_snapshots(store)
report = aggregate(snapshots, datetime.now(settings.tzinfo), settings)
stats = report.stats

# -----------------------
# Stat blocks
# -----------------------
cols = st.columns(5)
with cols[0]:
    st.metric("Governance items", stats.governance.total, f"{stats.governance.trend}%")
    st.caption(f"{stats.governance.active} active · {stats.governance.draft} draft · {stats.governance.archived} archived")
with cols[1]:
    st.metric("Compliance", f"{stats.compliance.percentage}%", f"{stats.compliance.trend}%")
    st.caption(f"{stats.compliance.compliant} compliant · {stats.compliance.pending} pending")
with cols[2]:
    st.metric("Risks", stats.risk.total, f"{stats.risk.trend}%")
    st.caption(f"{stats.risk.critical} critical · {stats.risk.high} high · {stats.risk.medium} medium · {stats.risk.low} low")
with cols[3]:
    st.metric("Audits", stats.audit.total, f"{stats.audit.trend}%")
    st.caption(f"{stats.audit.upcoming} upcoming · {stats.audit.in_progress} in progress")
with cols[4]:
    st.metric("Assets", stats.assets.total, f"{stats.assets.trend}%")
    st.caption(f"{stats.assets.computers} computers · {stats.assets.software} software")

st.markdown("---")

# -----------------------
# Activity feed
# -----------------------
st.subheader("📋 Recent Activity")
activities = report.to_json_dict()["recentActivities"]
if activities:
    st.dataframe(pd.DataFrame(activities), use_container_width=True)
else:
    st.warning("No activity recorded yet.")

# -----------------------
# Risk matrix
# -----------------------
if snapshots.risks:
    matrix = build_matrix(snapshots.risks)
    ratings = severity_grid()
    fig = go.Figure(
        data=go.Heatmap(
            z=ratings,
            x=[1, 2, 3, 4, 5],
            y=[5, 4, 3, 2, 1],
            text=matrix,
            texttemplate="%{text}",
            colorscale=[[0.0, "#2ECC71"], [0.5, "#F4D03F"], [1.0, "#E74C3C"]],
            hovertemplate="<b>Likelihood:</b> %{x}<br><b>Impact:</b> %{y}<br><b>Risks:</b> %{text}<extra></extra>",
            zmin=1,
            zmax=25,
            colorbar_title="Rating",
        )
    )
    fig.update_layout(
        xaxis_title="Likelihood",
        yaxis_title="Impact",
        margin=dict(l=60, r=60, t=40, b=60),
        width=600, height=550,
    )
    st.subheader("📊 Risk Matrix")
    st.plotly_chart(fig, use_container_width=False)
