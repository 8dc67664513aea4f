import streamlit as st
import pandas as pd


def set_page():
    st.set_page_config(
        page_title="Health Risk Screening",
        page_icon="🩺",
        layout="wide",
        initial_sidebar_state="expanded",
    )

    st.markdown(
        """
        <style>
        .block-container { padding-top: 1.0rem; padding-bottom: 2rem; }
        div[data-testid="stMetric"] { background: rgba(255,255,255,0.04); border: 1px solid rgba(255,255,255,0.06); padding: 14px 14px 10px 14px; border-radius: 14px; }
        div.stButton > button { height: 44px; border-radius: 12px; font-weight: 600; }
        .card { background: rgba(255,255,255,0.04); border: 1px solid rgba(255,255,255,0.06); border-radius: 16px; padding: 16px; }
        .muted { opacity: 0.75; }
        </style>
        """,
        unsafe_allow_html=True,
    )


def risk_badge(label: str) -> str:
    label = (label or "unknown").lower()
    if label in ("high", "very high"):
        return f"🔴 {label.upper()}"
    if label in ("medium", "moderate"):
        return f"🟠 {label.upper()}"
    if label == "low":
        return "🟢 LOW"
    return "⚪ UNKNOWN"


def card(title: str, body_md: str):
    st.markdown(
        f"<div class='card'><h4 style='margin:0 0 8px 0'>{title}</h4>{body_md}</div>",
        unsafe_allow_html=True,
    )


def show_result(result: dict):
    """Score, label, per-feature breakdown and recommendations of one screening."""
    if not result:
        st.info("No result yet.")
        return

    c1, c2, c3 = st.columns(3)
    c1.metric("Risk score", f"{float(result.get('score', 0.0)):.1f}")
    c2.metric("Risk level", risk_badge(result.get("label")))
    c3.metric("Model", result.get("model_version", "unknown"))
    st.progress(max(0.0, min(1.0, float(result.get("score", 0.0)) / 100.0)))

    breakdown = result.get("breakdown") or {}
    if breakdown:
        df = pd.DataFrame(
            [{"feature": k, "points": float(v)} for k, v in breakdown.items()]
        ).sort_values("points", ascending=False)
        st.caption("Contribution per feature (before clamping)")
        st.bar_chart(df.set_index("feature"))

    recs = result.get("recommendations") or []
    if recs:
        card("Recommendations", "".join(f"<li>{r}</li>" for r in recs))


def to_df_history(items, result_key: str = "result"):
    """Flatten stored analyses into a DataFrame sorted by creation time."""
    rows = []
    for it in items or []:
        if not isinstance(it, dict):
            continue
        res = it.get(result_key) or {}
        rows.append(
            {
                "created_at": it.get("created_at"),
                "status": it.get("status"),
                "score": res.get("score"),
                "label": res.get("label"),
                "id": it.get("id"),
            }
        )

    df = pd.DataFrame(rows)
    if "created_at" in df.columns and len(df):
        df["created_at"] = pd.to_datetime(df["created_at"], errors="coerce", utc=True)
        df = df.dropna(subset=["created_at"]).sort_values("created_at")
    return df
