import streamlit as st
import pandas as pd
from loguru import logger

from ecfdash import config, processors
from ecfdash.batch import FilingSource, NothingToProcessError, generate_rectified_filings, package_zip
from ecfdash.loaders import load_ecf_filing, load_efd_revenue, load_selic_rates, monthly_revenue_map
from ecfdash.logging_config import setup_logging
from ecfdash.lookups import map_method_label, map_period_label

pd.set_option('display.max_columns', None)

# Configure Streamlit page
st.set_page_config(page_title="ECF Retificadora", page_icon=":material/local_gas_station:", layout="wide")

setup_logging()


# --------------------------------------------------------------------------------------------------------------------
# HELPER FUNCTIONS FOR TABLE DISPLAY AND DOWNLOAD
# --------------------------------------------------------------------------------------------------------------------

@st.cache_data
def convert_df_to_csv(df):
    """Cache CSV conversion to avoid regenerating on every rerun."""
    return df.to_csv(index=False, sep=';', decimal=',').encode('utf-8-sig')


def display_table_with_download(df, filename, max_rows=1000):
    """Display table with row limit and cached download button."""
    total_rows = len(df)

    if total_rows > max_rows:
        st.warning(f"⚠️ Exibindo {max_rows:,} de {total_rows:,} linhas. Baixe o CSV para dados completos.")
        st.dataframe(df.head(max_rows), hide_index=True)
    else:
        st.dataframe(df, hide_index=True)

    csv = convert_df_to_csv(df)
    st.download_button("📥 Baixar CSV", csv, filename, "text/csv", key=f"download_{filename}")


def benefit_detail_frame(result):
    """Per-period benefit table with display labels."""
    df = result.to_frame()
    df.insert(1, 'descricao', map_period_label(df['period']))
    return df.rename(columns={
        'period': 'periodo',
        'revenue': 'receita_revenda',
        'generated_loss': 'perda_gerada',
        'opening_carry_forward': 'saldo_inicial',
        'total_deduction': 'total_deducao',
        'restated_base_irpj': 'nova_base_irpj',
        'irpj_flat': 'irpj_15',
        'irpj_surtax': 'irpj_adicional',
        'new_irpj': 'novo_irpj',
        'irpj_refund': 'irpj_restituir',
        'restated_base_csll': 'nova_base_csll',
        'new_csll': 'nova_csll',
        'csll_refund': 'csll_restituir',
        'total_refund': 'total_restituir',
        'closing_carry_forward': 'saldo_final',
    })


# ----------------------------------------------------------------
# Streamlit
# Setup Session State
# ----------------------------------------------------------------

if "processing_done" not in st.session_state:
    st.session_state["processing_done"] = False


# ----------------------------------------------------------------
# Sidebar Navigation
# ----------------------------------------------------------------

with st.sidebar:
    st.header("ECF Retificadora", divider='gray')

    selected_area = st.radio(
        "Selecione a Seção:",
        [
            "Área 1: Importar Arquivos",
            "Área 2: Benefício",
            "Área 3: Gerar Retificadora",
        ]
    )


# >>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>
# Área 1: Importar Arquivos

if selected_area == "Área 1: Importar Arquivos":

    st.header(":material/database_upload: Importar Arquivos", divider='red')

    col1, col2 = st.columns([3, 2])

    with col2:
        st.markdown("### :material/info: Informações")
        st.info("""
        **Arquivos obrigatórios:**
        - ECF (um arquivo por exercício)
        - EFD Contribuições (arquivos mensais)
        - Série mensal da SELIC (CSV `data;valor`)
        """)

    with col1:
        uploaded_ecf_files = st.file_uploader(
            label="Selecione os arquivos ECF",
            type="txt",
            accept_multiple_files=True,
            key="ecf_uploader"
        )
        uploaded_efd_files = st.file_uploader(
            label="Selecione os arquivos EFD Contribuições",
            type="txt",
            accept_multiple_files=True,
            key="efd_uploader"
        )
        uploaded_selic_file = st.file_uploader(
            label="Selecione a série SELIC",
            type="csv",
            key="selic_uploader"
        )

    if st.button("🚀 Processar Arquivos", type='primary', use_container_width=True):

        if not uploaded_ecf_files or not uploaded_efd_files or uploaded_selic_file is None:
            st.warning("É necessário selecionar os arquivos ECF, EFD Contribuições e a série SELIC.")
            st.stop()

        try:
            ecf_filings = [load_ecf_filing(f) for f in uploaded_ecf_files]
            df_revenue = load_efd_revenue(uploaded_efd_files)
            selic_rates = load_selic_rates(uploaded_selic_file)
        except ValueError as e:
            st.error(str(e))
            st.stop()

        years = [ecf.exercise_year for ecf in ecf_filings]
        repeated = sorted({y for y in years if years.count(y) > 1})
        if repeated:
            logger.warning(f"ECF com exercício repetido: {repeated}")
            st.error(f"Mais de uma ECF para o(s) exercício(s) {', '.join(map(str, repeated))}. Envie uma ECF por exercício.")
            st.stop()

        monthly = monthly_revenue_map(df_revenue)
        entries = []
        for ecf in sorted(ecf_filings, key=lambda e: e.exercise_year):
            annual = ecf.method == config.METHOD_ANUAL
            revenue_by_period = processors.aggregate_revenue_by_period(monthly, ecf.exercise_year, annual)
            result = processors.compute_benefit(ecf.method, revenue_by_period, ecf.taxes)
            entries.append({
                'exercise_year': ecf.exercise_year,
                'method': ecf.method,
                'revenue_by_period': revenue_by_period,
                'result': result,
                'filing': ecf,
            })

        st.session_state["entries"] = entries
        st.session_state["selic_rates"] = selic_rates
        st.session_state["df_revenue"] = df_revenue
        st.session_state["processing_done"] = True

        st.toast("✅ Importação concluída.")
        st.success(f"{len(entries)} exercício(s) calculado(s) com {len(selic_rates)} taxas SELIC.")


# >>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>
# Área 2: Benefício

elif selected_area == "Área 2: Benefício":
    st.header("Perdas por Evaporação", divider='red')

    if not st.session_state.get("processing_done", False):
        st.warning("⚠️ Por favor, importe e processe os arquivos na Área 1 primeiro.")
        st.stop()

    entries = st.session_state["entries"]
    selic_rates = st.session_state["selic_rates"]

    df_overview = processors.annual_overview(entries, selic_rates)
    df_overview['metodo_apuracao'] = map_method_label(df_overview['metodo_apuracao'])
    display_table_with_download(df_overview, "visao_geral_anual.csv")
    st.write("**Total Geral a Restituir (Atualizado):**", f"R$ {df_overview['total_corrigido'].sum():,.2f}")

    tabs = st.tabs([str(e['exercise_year']) for e in entries])
    for tab, entry in zip(tabs, entries):
        with tab:
            st.subheader(f"Exercício {entry['exercise_year']}")
            display_table_with_download(benefit_detail_frame(entry['result']), f"beneficio_{entry['exercise_year']}.csv")
            st.markdown("##### Correção SELIC")
            df_selic = processors.selic_correction_table(entry['result'], entry['exercise_year'], selic_rates)
            display_table_with_download(df_selic, f"selic_{entry['exercise_year']}.csv")

    with st.expander("Receita de revenda mensal (EFD Contribuições)"):
        display_table_with_download(st.session_state["df_revenue"], "receita_revenda_mensal.csv")


# >>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>
# Área 3: Gerar Retificadora

elif selected_area == "Área 3: Gerar Retificadora":
    st.header("Gerar ECF Retificadora", divider='red')

    if not st.session_state.get("processing_done", False):
        st.warning("⚠️ Por favor, importe e processe os arquivos na Área 1 primeiro.")
        st.stop()

    entries = st.session_state["entries"]

    col1, col2 = st.columns(2)
    with col1:
        cod_ajuste_irpj = st.text_input("Código de ajuste IRPJ (M410)", value=config.DEFAULT_COD_AJUSTE_IRPJ)
        cod_ajuste_csll = st.text_input("Código de ajuste CSLL (M510)", value=config.DEFAULT_COD_AJUSTE_CSLL)
    with col2:
        descricao_ajuste = st.text_input("Descrição do ajuste", value=config.DEFAULT_DESCRICAO_AJUSTE)
        st.caption(f"Somente exercícios de {config.ELIGIBLE_YEAR_FIRST} a {config.ELIGIBLE_YEAR_LAST}.")

    if st.button("Gerar ECF Retificadora", type='primary'):
        sources = [FilingSource(e['exercise_year'], e['filing'].content) for e in entries]
        adjustments = []
        for e in entries:
            adjustments.extend(processors.build_adjustments(e['exercise_year'], e['result']))

        try:
            files = generate_rectified_filings(sources, adjustments, cod_ajuste_irpj, cod_ajuste_csll, descricao_ajuste)
        except NothingToProcessError:
            st.error("Nada a gerar: não há arquivos elegíveis ou ajustes calculados.")
            st.stop()

        st.success(f"{len(files)} arquivo(s) gerado(s) com sucesso.")
        st.download_button(
            "📥 Baixar ZIP",
            package_zip(files),
            config.RECTIFIED_ZIP_NAME,
            "application/zip",
        )
