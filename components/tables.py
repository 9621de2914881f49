"""Styled dataframe display helpers."""

import streamlit as st
import pandas as pd
from typing import Dict, Optional, Set, Tuple

from engine.classifier import classify, status_style


def render_styled_table(
    df: pd.DataFrame,
    title: Optional[str] = None,
    height: Optional[int] = None,
    use_container_width: bool = True,
):
    """Render a styled, non-editable dataframe."""
    if title:
        st.subheader(title)
    st.dataframe(df, height=height, use_container_width=use_container_width)


def render_utilization_table(
    grid: pd.DataFrame,
    caps: Dict[str, int],
    non_working: Optional[Set[Tuple[str, str]]] = None,
):
    """Render a resource x period utilization grid coloured by allocation status.

    `caps` maps the grid index (resource name) to the resource's cap.
    Cells listed in `non_working` as (resource name, period) are greyed out.
    """
    non_working = non_working or set()
    if grid.empty:
        st.info("Nothing to show for the selected window.")
        return

    def style_row(row: pd.Series):
        cap = caps.get(row.name, 100)
        return [
            status_style(classify(value, cap), non_working=(row.name, period) in non_working)
            for period, value in row.items()
        ]

    styled = grid.style.apply(style_row, axis=1).format("{:.0f}%")
    st.dataframe(styled, use_container_width=True)


def render_financials_table(df: pd.DataFrame):
    """Render monthly financials with negative margins highlighted."""
    def color_margin(val):
        try:
            v = float(val)
            if v < 0:
                return "color: #cc0000; font-weight: bold"
            if v > 0:
                return "color: #155724; font-weight: bold"
        except (ValueError, TypeError):
            pass
        return ""

    styled = df.style.map(color_margin, subset=["Margin", "Margin %"]).format({
        "Revenue": "{:,.0f}", "Cost": "{:,.0f}", "Margin": "{:,.0f}", "Margin %": "{:.1f}%",
    })
    st.dataframe(styled, use_container_width=True)
