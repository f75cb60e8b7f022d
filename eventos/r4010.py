# R-4010: pagamentos/créditos a beneficiário, um infoPgto por linha da planilha
import xml.etree.ElementTree as ET

from config import DESC_REND_PADRAO, TP_REND_PADRAO
from core.normalizer import formatar_valor, somente_digitos
from core.resolver import resolver_campo
from logic_converter import (
    CAMPOS_ESTABELECIMENTO,
    adicionar_cabecalho,
    adicionar_campo,
    montar_id_evento,
    renderizar_xml,
    resolver_cabecalho,
)
from schemas.conversao import ResultadoConversao, ResumoConversao
from utils import Diagnostico

# campo Reinf -> nomes de coluna aceitos quando não há mapeamento
CAMPOS_4010 = {
    "nrInscEstab": CAMPOS_ESTABELECIMENTO,
    "CNPJ_Benef": ["CNPJ", "CNPJ da fonte pagadora", "CNPJ_da_fonte_pagadora"],
    "nmBenef": ["Nome", "Nome do beneficiário", "Razão Social"],
    "tpRend": ["Nat Rend Rec p Bem", "Nat_Rend_Rec_p_Bem", "Natureza"],
    "descRend": ["Descrição", "Descricao"],
    "vlrBruto": ["Valor bruto", "Valor_bruto", "Valor Bruto", "Valor", "Bruto"],
    "vlrBaseIR": ["Valor da base de cálculo do IRRF", "Valor_da_base_de_clculo_do_IRRF", "Base IR", "Base"],
    "vlrIR": ["Valor do IRRF", "Valor_do_IRRF", "Valor IR", "IR", "IRRF"],
}


def _campo(linha, nome, mapeamento):
    return resolver_campo(linha, nome, CAMPOS_4010[nome], mapeamento)


def _ou(valor, padrao):
    # célula vazia (None ou texto em branco) cai no padrão
    if valor is None or (isinstance(valor, str) and not valor.strip()):
        return padrao
    return valor


def construir_r4010(linhas, mapeamento=None, *, ambiente="production", per_apur=None,
                    nr_insc=None, ind_retif="1", sequencia=1, diagnostico=None) -> ResultadoConversao:
    diagnostico = diagnostico or Diagnostico()
    linhas = list(linhas)
    primeira = linhas[0] if linhas else {}

    cab = resolver_cabecalho(
        primeira, mapeamento,
        ambiente=ambiente, per_apur=per_apur, nr_insc=nr_insc, ind_retif=ind_retif,
    )
    inscricao_id = somente_digitos(_campo(primeira, "nrInscEstab", mapeamento)) or cab.nr_insc

    root = ET.Element("Reinf")
    evt = ET.SubElement(root, "evt4010", {"id": montar_id_evento(inscricao_id, cab.per_apur, sequencia)})
    adicionar_cabecalho(evt, cab)

    for linha in linhas:
        info_pgto = ET.SubElement(evt, "infoPgto")

        ide_estab = ET.SubElement(info_pgto, "ideEstab")
        adicionar_campo(ide_estab, "tpInscEstab", "1")
        adicionar_campo(ide_estab, "nrInscEstab", somente_digitos(_campo(linha, "nrInscEstab", mapeamento)))

        ide_benef = ET.SubElement(info_pgto, "ideBenef")
        adicionar_campo(ide_benef, "CNPJ_Benef", somente_digitos(_campo(linha, "CNPJ_Benef", mapeamento)))
        adicionar_campo(ide_benef, "nmBenef", _ou(_campo(linha, "nmBenef", mapeamento), ""))

        vlr_bruto = _ou(_campo(linha, "vlrBruto", mapeamento), 0)
        vlr_base_ir = _ou(_campo(linha, "vlrBaseIR", mapeamento), vlr_bruto)

        info_rend = ET.SubElement(ide_benef, "infoRend")
        adicionar_campo(info_rend, "tpRend", _ou(_campo(linha, "tpRend", mapeamento), TP_REND_PADRAO))
        adicionar_campo(info_rend, "descRend", _ou(_campo(linha, "descRend", mapeamento), DESC_REND_PADRAO))
        adicionar_campo(info_rend, "vlrBruto", formatar_valor(vlr_bruto))
        adicionar_campo(info_rend, "vlrBaseIR", formatar_valor(vlr_base_ir))
        adicionar_campo(info_rend, "vlrIR", formatar_valor(_ou(_campo(linha, "vlrIR", mapeamento), 0)))

    diagnostico.info(f"evt4010 gerado com {len(linhas)} infoPgto", periodo=cab.per_apur)

    resumo = ResumoConversao(
        tipo_evento="evt4010",
        row_count=len(linhas),
        linhas_processadas=len(linhas),
        mensagens=diagnostico.mensagens,
    )
    return ResultadoConversao(xml=renderizar_xml(root), resumo=resumo)
