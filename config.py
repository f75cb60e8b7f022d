# config.py

import os
from dotenv import load_dotenv

load_dotenv()

# --- Endpoints EFD-Reinf (fixos, escolhidos só pelo ambiente) ---
ENDPOINTS_REINF = {
    "sandbox": "https://pre-reinf.receita.economia.gov.br/recepcao/lotes",
    "production": "https://reinf.receita.economia.gov.br/recepcao/lotes",
}

# tpAmb do leiaute: 1 = produção, 2 = produção restrita
TP_AMB = {"production": "1", "sandbox": "2"}

# --- Transmissão ---
REINF_TIMEOUT = float(os.getenv("REINF_TIMEOUT", 30))
REINF_CA_BUNDLE = os.getenv("REINF_CA_BUNDLE") or None  # vazio = trust store do sistema

# --- Geração do XML ---
REINF_VER_PROC = os.getenv("REINF_VER_PROC", "1.0")
REINF_PERIODO_PADRAO = os.getenv("REINF_PERIODO_PADRAO", "2025-01")
TP_REND_PADRAO = "1503"
DESC_REND_PADRAO = "COMISSÃO ADMINISTRAÇÃO DE CARTÕES"

# --- Planilhas ---
ACCEPTED_EXTENSIONS = {".xls", ".xlsx"}
MAX_FILE_SIZE_BYTES = int(os.getenv("MAX_FILE_SIZE_BYTES", 5 * 1024 * 1024))

# --- Log ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE") or None
