# logic_ingestao.py
import io
import json
import math
import os
from datetime import date, datetime

import pandas as pd

from config import ACCEPTED_EXTENSIONS, MAX_FILE_SIZE_BYTES
from core.erros import ErroMapeamento, ErroPlanilha
from schemas.conversao import ColunaPlanilha, ResumoConversao


def _valor_celula(v):
    """Converte o valor do pandas para str | número | date/datetime | None."""
    if v is None or v is pd.NaT:
        return None
    if isinstance(v, pd.Timestamp):
        return None if pd.isna(v) else v.to_pydatetime()
    if isinstance(v, float) and math.isnan(v):
        return None
    if hasattr(v, "item") and not isinstance(v, (str, bytes, date, datetime)):
        # escalares numpy
        v = v.item()
        if isinstance(v, float) and math.isnan(v):
            return None
    if isinstance(v, str):
        return v if v.strip() else None
    return v


def linhas_de_dataframe(df: pd.DataFrame) -> list[dict]:
    """Linhas como dicts coluna -> valor, na ordem da planilha. Linhas vazias saem."""
    df = df.copy()
    df.columns = [str(c).strip() or "column" for c in df.columns]
    linhas = []
    for registro in df.to_dict(orient="records"):
        linha = {k: _valor_celula(v) for k, v in registro.items()}
        if any(v is not None for v in linha.values()):
            linhas.append(linha)
    return linhas


def extrair_colunas(linhas) -> list[ColunaPlanilha]:
    """Colunas na ordem em que aparecem pela primeira vez."""
    vistas: dict[str, int] = {}
    for linha in linhas:
        for nome in linha:
            if nome not in vistas:
                vistas[nome] = len(vistas)
    return [ColunaPlanilha(nome=n, indice=i) for n, i in vistas.items()]


def ler_planilha(origem, nome_arquivo: str | None = None):
    """
    Lê a primeira aba de um .xls/.xlsx.

    origem: caminho ou bytes do arquivo enviado.
    Retorna (linhas, ResumoConversao parcial com nome/aba/colunas).
    """
    if isinstance(origem, (bytes, bytearray)):
        dados = bytes(origem)
        nome_arquivo = nome_arquivo or "planilha.xlsx"
    else:
        nome_arquivo = nome_arquivo or os.path.basename(origem)
        if not os.path.exists(origem):
            raise ErroPlanilha(f"Arquivo não encontrado: {origem}")
        with open(origem, "rb") as f:
            dados = f.read()

    extensao = os.path.splitext(nome_arquivo)[1].lower()
    if extensao not in ACCEPTED_EXTENSIONS:
        raise ErroPlanilha("Extensão não suportada. Envie arquivos .xls ou .xlsx.")
    if not dados:
        raise ErroPlanilha("O arquivo enviado está vazio.")
    if len(dados) > MAX_FILE_SIZE_BYTES:
        raise ErroPlanilha("O arquivo é maior que o limite de 5MB.")

    try:
        abas = pd.read_excel(io.BytesIO(dados), sheet_name=None, dtype=object)
    except Exception as e:
        raise ErroPlanilha(f"Não foi possível ler a planilha: {e}") from e

    if not abas:
        raise ErroPlanilha("A planilha não contém nenhuma aba.")

    sheet_name, df = next(iter(abas.items()))
    linhas = linhas_de_dataframe(df)
    if not linhas:
        raise ErroPlanilha("Planilha vazia.")

    resumo = ResumoConversao(
        tipo_evento="",
        file_name=nome_arquivo,
        sheet_name=str(sheet_name),
        row_count=len(linhas),
        columns=[c.nome for c in extrair_colunas(linhas)],
    )
    return linhas, resumo


def ler_mapeamento(texto) -> dict | None:
    """Mapeamento coluna -> campo Reinf em JSON. Vazio/None -> sem mapeamento."""
    if texto is None or (isinstance(texto, str) and not texto.strip()):
        return None
    try:
        mapa = json.loads(texto) if isinstance(texto, (str, bytes)) else texto
    except json.JSONDecodeError as e:
        raise ErroMapeamento("Formato de mapeamento de colunas inválido") from e
    if not isinstance(mapa, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in mapa.items()
    ):
        raise ErroMapeamento("O mapeamento deve ser um objeto {coluna: campo Reinf}")
    return mapa
