from typing import Any, Dict, List

import pandas as pd
import streamlit as st


def metric_row(metrics: List[Dict[str, Any]]):
    cols = st.columns(len(metrics))
    for col, m in zip(cols, metrics):
        col.metric(m["label"], m["value"])


def render_table(title: str, data: List[Dict[str, Any]], columns: List[str]):
    st.markdown(f"**{title}**")
    if not data:
        st.info("No records")
        return
    df = pd.DataFrame(data)
    st.dataframe(df[columns], use_container_width=True, hide_index=True)


def money(value: float) -> str:
    return f"LKR {value:,.2f}"


def success(msg: str):
    st.success(msg)


def error(msg: str):
    st.error(msg)


def warning(msg: str):
    st.warning(msg)


def info(msg: str):
    st.info(msg)
