#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Streamlit app: QR createTime & comparaison
- Prolonger un QR : lit le QR importé, ajoute 1 h à createTime, régénère le QR
- Comparer des QR : lecture par lot, tableau des paramètres, écarts de temps
- Export CSV + Excel (.xlsx)
"""
from __future__ import annotations
import logging
from typing import List, Optional

import streamlit as st

from qrdelta import config
from qrdelta.batch import analyze_batch, summarize
from qrdelta.compare import Record, build_comparison
from qrdelta.params import bump_create_time_hour
from qrdelta.qr import decode_qr_from_bytes, encode_qr_png
from qrdelta.report import (
    deltas_to_dataframe, format_delta, highlight_differences,
    records_to_dataframe, rows_to_dataframe, to_csv_bytes, to_excel_bytes,
)
from qrdelta.utils import bumped_filename

APP_NAME = "QR createTime & comparaison"

# --- Boot ---
config.setup_logging()
logger = logging.getLogger("app")

st.set_page_config(page_title=APP_NAME, page_icon="🔍", layout="wide")

tab_bump, tab_compare = st.tabs(["⏰ Prolonger un QR", "📊 Comparer des QR"])

with tab_bump:
    st.header("Prolonger l'échéance d'un QR")
    st.caption("Importez un QR contenant `createTime=AAAA-MM-JJ HH:MM:SS` : l'heure est avancée d'une heure "
               "(modulo 24, la date ne change pas) et un nouveau QR est généré.")

    img_file = st.file_uploader("Image du QR (PNG/JPG)", type=["png", "jpg", "jpeg"], key="bump_file")
    if img_file is not None:
        text: Optional[str] = decode_qr_from_bytes(img_file.getvalue())
        if not text:
            st.error("Impossible de décoder un QR dans cette image.")
        else:
            with st.expander("Voir le contenu du QR importé"):
                st.code(text, language="text")

            result = bump_create_time_hour(text)
            if not result.changed:
                if result.match.status == "missing":
                    st.error("Aucun paramètre createTime à modifier dans ce QR.")
                else:
                    st.error("createTime est présent mais son format n'est pas reconnu "
                             "(attendu : AAAA-MM-JJ HH:MM:SS).")
            else:
                try:
                    png = encode_qr_png(result.text, width=config.QR_WIDTH, margin=config.QR_MARGIN)
                except ValueError as e:
                    st.error(f"Génération du QR impossible : {e}")
                    logger.warning("QR encode failed for %s: %s", img_file.name, e)
                else:
                    st.success("✅ Nouveau QR généré.")
                    st.info(f"Nouvelle échéance : **{result.new_time_display}**")
                    st.image(png, width=config.QR_WIDTH)
                    with st.expander("Voir le nouveau contenu"):
                        st.code(result.text, language="text")
                    st.download_button(
                        "⬇️ Télécharger le nouveau QR (.png)",
                        data=png,
                        file_name=bumped_filename(img_file.name),
                        mime="image/png",
                    )
                    logger.info("createTime bumped for %s -> %s", img_file.name, result.new_time_display)

with tab_compare:
    st.header("Comparer plusieurs QR")
    st.caption("Importez au moins deux QR : les paramètres sont alignés et les différences surlignées.")

    files = st.file_uploader("Images des QR (PNG/JPG)", type=["png", "jpg", "jpeg"],
                             accept_multiple_files=True, key="compare_files")
    if st.button("Analyser", type="primary"):
        if not files:
            st.warning("Sélectionnez d'abord au moins une image de QR.")
        else:
            status = st.empty()
            records: List[Record] = []
            for i, f in enumerate(files, start=1):
                status.info(f"Traitement {i}/{len(files)} : {f.name}")
                records.extend(analyze_batch([(f.name, f.getvalue())]))
            # le lot précédent est remplacé en entier
            st.session_state["batch"] = records
            status.success(summarize(records).message)

    records = st.session_state.get("batch") or []
    if records:
        st.subheader("📋 Détail par QR")
        for rec in records:
            with st.expander(f"🏷️ {rec.source}", expanded=not rec.ok):
                if not rec.ok:
                    st.error(f"❌ {rec.error}")
                    continue
                st.code(rec.raw_text or "", language="text")
                if rec.params:
                    st.table({"Paramètre": list(rec.params.keys()),
                              "Valeur": list(rec.params.values())})
                else:
                    st.caption("Aucun paramètre")
                if rec.parsed_time is not None:
                    st.caption(f"📅 createTime : {rec.parsed_time.formatted or 'format non reconnu'}")

        comparison = build_comparison(records)
        st.subheader("📊 Comparaison")
        if comparison.insufficient:
            st.info("Il faut au moins 2 QR décodés pour la comparaison.")
        else:
            rows_df = rows_to_dataframe(comparison)
            if rows_df.empty:
                st.caption("Aucun paramètre à comparer.")
            else:
                st.dataframe(highlight_differences(rows_df), use_container_width=True, hide_index=True)
                diff = comparison.differing_keys
                st.caption(f"{len(diff)} paramètre(s) différent(s)" + (f" : {', '.join(diff)}" if diff else ""))

            st.subheader("⏰ Écarts de temps")
            if comparison.time_insufficient:
                st.info("Pas assez de dates createTime valides pour l'analyse temporelle.")
            else:
                for d in comparison.deltas:
                    st.markdown(f"**{d.earlier.source}** → **{d.later.source}** : {format_delta(d)}")
                    st.caption(f"{d.earlier.parsed_time.formatted} → {d.later.parsed_time.formatted}")

            deltas_df = deltas_to_dataframe(comparison)
            c1, c2 = st.columns(2)
            with c1:
                st.download_button("📄 Télécharger CSV", data=to_csv_bytes(rows_df),
                                   file_name="comparaison_qr.csv", mime="text/csv")
            with c2:
                try:
                    xlsx = to_excel_bytes({
                        "Comparaison": rows_df,
                        "Ecarts": deltas_df,
                        "QR": records_to_dataframe(records),
                    })
                    st.download_button("📊 Télécharger Excel (.xlsx)", data=xlsx,
                                       file_name="comparaison_qr.xlsx",
                                       mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")
                except Exception as e:
                    st.error(f"Erreur export: {e}")
                    logger.exception("Excel export failed")
