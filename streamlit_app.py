from datetime import date, timedelta
from typing import Any, Dict, List, Optional

import pandas as pd
import streamlit as st

from ui import components as ui
from ui.api_client import (
    download as api_download,
    download_post as api_download_post,
    get as api_get,
    post as api_post,
    put as api_put,
)
from ui.texts_en import (
    APP_TITLE,
    BTN_ADD_MINER,
    BTN_CALCULATE,
    BTN_DOWNLOAD_REPORT,
    BTN_RESET_SETTINGS,
    BTN_SAVE_RECORD,
    BTN_SAVE_SETTINGS,
    ERR_NAME_REQUIRED,
    LBL_DUE_DATE,
    LBL_MINER,
    LBL_NH4NO3,
    LBL_POWDER_FACTOR,
    LBL_WATER_GEL,
    MSG_CALCULATED,
    MSG_MINER_SAVED,
    MSG_NEED_MINER,
    MSG_NO_RECORDS,
    MSG_RECORD_SAVED,
    MSG_REPORT_FAILED,
    MSG_SETTINGS_RESET,
    MSG_SETTINGS_SAVED,
    PAGE_CALCULATOR,
    PAGE_MINERS,
    PAGE_RECORDS,
    PAGE_SETTINGS,
)

st.set_page_config(page_title=APP_TITLE, layout="wide")

SETTINGS_FIELDS = [
    ("waterGelMultiplier", "Water Gel Multiplier"),
    ("expansionFactor", "Expansion Factor"),
    ("powderFactorMultiplier", "Powder Factor Multiplier"),
    ("royaltyRatePerM3", "Royalty Rate per m³ (LKR)"),
    ("ssclPercentage", "SSCL (%)"),
    ("vatPercentage", "VAT (%)"),
    ("defaultPowderFactor", "Default Powder Factor"),
]


def load_miners() -> List[Dict[str, Any]]:
    try:
        return api_get("/royalty/miners")
    except Exception as exc:
        ui.error(f"Miners could not be loaded: {exc}")
        return []


def load_records() -> List[Dict[str, Any]]:
    try:
        return api_get("/royalty/records")
    except Exception as exc:
        ui.error(f"Saved calculations could not be loaded: {exc}")
        return []


def miner_label(miner: Dict[str, Any]) -> str:
    return f"{miner['first_name']} {miner['last_name']} (#{miner['id']})"


def calculation_inputs() -> Dict[str, Any]:
    cols = st.columns(3)
    water_gel = cols[0].number_input(LBL_WATER_GEL, min_value=0.0, value=0.0, step=1.0, key="calc_water_gel")
    nh4no3 = cols[1].number_input(LBL_NH4NO3, min_value=0.0, value=0.0, step=1.0, key="calc_nh4no3")
    powder_factor = cols[2].number_input(
        LBL_POWDER_FACTOR, min_value=0.0, value=0.0, step=0.01, format="%.3f", key="calc_powder_factor"
    )
    due_date = st.date_input(LBL_DUE_DATE, value=date.today() + timedelta(days=14), key="calc_due_date")
    return {
        "water_gel": water_gel,
        "nh4no3": nh4no3,
        "powder_factor": powder_factor,
        "payment_due_date": f"{due_date.isoformat()}T00:00:00Z",
    }


def render_result(result: Dict[str, Any]):
    calc = result.get("calculations", {})
    rates = result.get("rates_applied", {})
    inputs = result.get("inputs", {})

    if result.get("warning_message"):
        ui.warning(result["warning_message"])

    st.markdown("### Result")
    ui.metric_row(
        [
            {"label": "Total Explosive Quantity", "value": f"{calc.get('total_explosive_quantity', 0):,.2f} kg"},
            {"label": "Blasted Rock Volume", "value": f"{calc.get('blasted_rock_volume', 0):,.2f} m³"},
            {"label": "Total Amount", "value": ui.money(calc.get("total_amount_with_vat", 0))},
        ]
    )
    rows = [
        {"Item": "Water Gel (kg)", "Value": f"{inputs.get('water_gel_kg', 0):,.2f}"},
        {"Item": "NH4NO3 (kg)", "Value": f"{inputs.get('nh4no3_kg', 0):,.2f}"},
        {"Item": "Powder Factor", "Value": f"{inputs.get('powder_factor', 0):.3f}"},
        {"Item": "Basic Volume (m³)", "Value": f"{calc.get('basic_volume', 0):,.2f}"},
        {"Item": "Base Royalty", "Value": ui.money(calc.get("base_royalty", 0))},
        {"Item": f"Royalty with SSCL ({rates.get('sscl_rate', '-')})", "Value": ui.money(calc.get("royalty_with_sscl", 0))},
        {"Item": f"Total with VAT ({rates.get('vat_rate', '-')})", "Value": ui.money(calc.get("total_amount_with_vat", 0))},
        {"Item": "Rate per m³", "Value": ui.money(rates.get("royalty_rate_per_cubic_meter", 0))},
        {"Item": "Payment Due", "Value": str(result.get("payment_due_date", "-"))[:10]},
    ]
    st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)


def calculator_tab(miners: List[Dict[str, Any]]):
    st.header(PAGE_CALCULATOR)
    payload = calculation_inputs()

    if st.button(BTN_CALCULATE, type="primary", key="calc_run_button"):
        try:
            st.session_state["last_result"] = api_post("/royalty/calculate", payload)
            st.session_state["last_payload"] = payload
            ui.success(MSG_CALCULATED)
        except Exception as exc:
            ui.error(f"Royalty could not be calculated: {exc}")

    result = st.session_state.get("last_result")
    if not result:
        return
    render_result(result)
    content = api_download_post("/royalty/calculate/excel", st.session_state["last_payload"])
    if content:
        st.download_button(
            label=BTN_DOWNLOAD_REPORT,
            data=content,
            file_name="royalty_calculation.xlsx",
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            key="calc_excel_download",
        )
    else:
        ui.warning(MSG_REPORT_FAILED)

    st.markdown("---")
    if not miners:
        ui.warning(MSG_NEED_MINER)
        return
    options = {miner_label(m): m for m in miners}
    selected = st.selectbox(LBL_MINER, list(options.keys()), key="calc_miner_select")
    if st.button(BTN_SAVE_RECORD, key="calc_save_button"):
        try:
            record_payload = dict(st.session_state["last_payload"], miner_id=options[selected]["id"])
            api_post("/royalty/records", record_payload)
            st.session_state.pop("records", None)
            st.session_state["flash_message"] = MSG_RECORD_SAVED
            st.session_state["flash_type"] = "success"
            st.rerun()
        except Exception as exc:
            ui.error(f"Calculation could not be saved: {exc}")


def records_tab(records: List[Dict[str, Any]]):
    st.header(PAGE_RECORDS)
    if not records:
        ui.info(MSG_NO_RECORDS)
        return
    rows = [
        {
            "ID": r["id"],
            "Miner": r.get("miner_name") or r["miner_id"],
            "Blasted Rock (m³)": f"{r['blasted_rock_volume']:,.2f}",
            "Total Amount": ui.money(r["total_amount_with_vat"]),
            "Calculated": str(r.get("calculation_date", ""))[:10],
            "Due": str(r.get("payment_due_date") or "-")[:10],
        }
        for r in records
    ]
    st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)

    labels = {f"#{r['id']} - {r.get('miner_name') or r['miner_id']}": r for r in records}
    selected = st.selectbox("Select a calculation", list(labels.keys()), key="records_select")
    record = labels[selected]
    content = api_download(f"/royalty/records/{record['id']}/excel")
    if content:
        st.download_button(
            label=BTN_DOWNLOAD_REPORT,
            data=content,
            file_name=f"royalty_{record['id']}.xlsx",
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            key=f"royalty_excel_download_{record['id']}",
        )
    else:
        ui.warning(MSG_REPORT_FAILED)


def settings_tab():
    st.header(PAGE_SETTINGS)
    try:
        current = api_get("/royalty-settings")
    except Exception as exc:
        ui.error(f"Settings could not be loaded: {exc}")
        return

    values: Dict[str, float] = {}
    cols = st.columns(2)
    for idx, (key, label) in enumerate(SETTINGS_FIELDS):
        values[key] = cols[idx % 2].number_input(
            label, value=float(current[key]), step=0.01, format="%.4f", key=f"settings_{key}"
        )

    save_col, reset_col = st.columns(2)
    if save_col.button(BTN_SAVE_SETTINGS, type="primary", key="settings_save_button"):
        try:
            api_put("/royalty-settings", values)
            ui.success(MSG_SETTINGS_SAVED)
        except Exception as exc:
            ui.error(f"Settings could not be saved: {exc}")
    if reset_col.button(BTN_RESET_SETTINGS, key="settings_reset_button"):
        try:
            api_post("/royalty-settings/reset")
            for key, _ in SETTINGS_FIELDS:
                st.session_state.pop(f"settings_{key}", None)
            st.session_state["flash_message"] = MSG_SETTINGS_RESET
            st.session_state["flash_type"] = "success"
            st.rerun()
        except Exception as exc:
            ui.error(f"Settings could not be reset: {exc}")


def create_miner_form() -> Optional[Dict[str, Any]]:
    cols = st.columns(3)
    first_name = cols[0].text_input("First Name", key="miner_first_name")
    last_name = cols[1].text_input("Last Name", key="miner_last_name")
    email = cols[2].text_input("E-mail (optional)", key="miner_email")
    if st.button(BTN_ADD_MINER, key="miner_save_button"):
        if not first_name.strip() or not last_name.strip():
            ui.error(ERR_NAME_REQUIRED)
            return None
        try:
            return api_post(
                "/users",
                {
                    "first_name": first_name.strip(),
                    "last_name": last_name.strip(),
                    "email": email.strip() or None,
                    "role": "miner",
                },
            )
        except Exception as exc:
            ui.error(f"Miner could not be saved: {exc}")
    return None


def miners_tab(miners: List[Dict[str, Any]]):
    st.header(PAGE_MINERS)
    ui.render_table(
        "Registered miners",
        [{"ID": m["id"], "Name": f"{m['first_name']} {m['last_name']}"} for m in miners],
        ["ID", "Name"],
    )
    st.markdown("---")
    if create_miner_form():
        st.session_state.pop("miners", None)
        st.session_state["flash_message"] = MSG_MINER_SAVED
        st.session_state["flash_type"] = "success"
        st.rerun()


def main():
    if "miners" not in st.session_state:
        st.session_state["miners"] = load_miners()
    if "records" not in st.session_state:
        st.session_state["records"] = load_records()

    flash_msg = st.session_state.pop("flash_message", None)
    flash_type = st.session_state.pop("flash_type", None)
    if flash_msg:
        if flash_type == "success":
            ui.success(flash_msg)
        elif flash_type == "warning":
            ui.warning(flash_msg)
        else:
            ui.info(flash_msg)

    miners = st.session_state["miners"]
    records = st.session_state["records"]

    tabs = st.tabs([PAGE_CALCULATOR, PAGE_RECORDS, PAGE_SETTINGS, PAGE_MINERS])
    with tabs[0]:
        calculator_tab(miners)
    with tabs[1]:
        records_tab(records)
    with tabs[2]:
        settings_tab()
    with tabs[3]:
        miners_tab(miners)


if __name__ == "__main__":
    main()
