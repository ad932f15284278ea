import os
import logging
import streamlit as st
from dotenv import load_dotenv

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

from exam_extractor.config import CredentialStore
from exam_extractor.constants import UPLOAD_TYPES
from exam_extractor.submission import init_state, request_extraction, reset_results, run_extraction
from exam_extractor.tools.results_table import results_csv, results_frame

st.set_page_config(page_title="Extrator de Exames", page_icon="🧪", layout="centered")

if "credentials" not in st.session_state:
    st.session_state.credentials = CredentialStore()
init_state(st.session_state)

store: CredentialStore = st.session_state.credentials


def key_form(expanded: bool):
    with st.sidebar.expander("Chave de API do Gemini", expanded=expanded):
        new_key = st.text_input("API key", type="password", key="api_key_input")
        if st.button("Salvar chave", disabled=st.session_state.in_flight):
            store.set_api_key(new_key)
            st.session_state.ask_key = not store.has_usable_key()
            reset_results(st.session_state)
            st.rerun()


settings = store.current()
st.sidebar.title("Configurações")
st.sidebar.markdown(f"**Modelo:** {settings.model}")
st.sidebar.markdown(f"**Modo:** {settings.mode}")
key_form(expanded=st.session_state.ask_key or not settings.has_usable_key)
st.sidebar.markdown("Esta ferramenta extrai apenas dados. **Nenhum diagnóstico é fornecido.**")

st.title("🧪 Extrator de Exames Laboratoriais")
st.caption(
    "Carregue seu PDF ou imagem de exame. O sistema extrairá apenas o nome do parâmetro, "
    "o valor e a unidade. Nenhuma interpretação médica será feita."
)

if not settings.has_usable_key:
    st.warning(
        "Para processar exames, o app precisa de uma chave de API do Gemini. "
        "Informe a chave na barra lateral ou configure a variável API_KEY no servidor."
    )
    st.stop()

busy = st.session_state.in_flight
uploaded = st.file_uploader(
    "PDF, PNG, JPG (Máx. 10MB)",
    type=UPLOAD_TYPES,
    key="upload",
    disabled=busy,
)

if uploaded is not None:
    # The callback raises in_flight before the rerun draws the page
    st.button(
        "Extrair dados",
        disabled=busy,
        on_click=request_extraction,
        args=(st.session_state,),
    )

if busy:
    with st.spinner("Analisando documento... Isso pode levar alguns segundos."):
        run_extraction(st.session_state, uploaded, store.current())
    st.rerun()

if st.session_state.notice:
    st.warning(st.session_state.notice)

err = st.session_state.error
if err is not None:
    st.error(f"Ocorreu um erro: {err.message}")
    c1, c2 = st.columns(2)
    if c1.button("Tentar novamente"):
        reset_results(st.session_state)
        st.rerun()
    if c2.button("Alterar chave"):
        st.session_state.ask_key = True
        st.rerun()

res = st.session_state.result
if res is not None:
    st.subheader(st.session_state.file_name or "Dados extraídos")
    if res.recovered:
        st.info("A resposta do modelo veio incompleta; os resultados foram recuperados parcialmente.")
    if not res.results:
        st.warning("Nenhum exame foi encontrado no documento.")
    st.code(res.raw_text or "", language=None)
    st.dataframe(results_frame(res, drop_empty_units=True), use_container_width=True, hide_index=True)
    st.download_button(
        "Baixar CSV",
        data=results_csv(res),
        file_name=f"{os.path.splitext(st.session_state.file_name or 'exame')[0]}.csv",
        mime="text/csv",
    )
    if st.button("Novo exame"):
        reset_results(st.session_state)
        st.rerun()
