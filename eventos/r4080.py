# R-4080: retenção no recebimento, agregada por fonte pagadora / natureza / data
import xml.etree.ElementTree as ET

from core.erros import ErroEstabelecimentoAusente
from core.normalizer import (
    formatar_data,
    formatar_natureza,
    formatar_valor,
    para_decimal,
    somente_digitos,
)
from core.resolver import resolver_campo
from logic_converter import (
    CAMPOS_ESTABELECIMENTO,
    adicionar_cabecalho,
    adicionar_campo,
    montar_id_evento,
    renderizar_xml,
    resolver_cabecalho,
)
from schemas.conversao import ResultadoConversao, ResumoConversao, TotaisRecebimento
from utils import Diagnostico, mask_cnpj

CAMPOS_4080 = {
    "nrInscEstab": CAMPOS_ESTABELECIMENTO,
    "cnpjFont": ["CNPJ da fonte pagadora", "CNPJ_da_fonte_pagadora", "CNPJ"],
    "natRend": ["Nat Rend Rec p Bem", "Nat_Rend_Rec_p_Bem", "Natureza"],
    "dtFG": ["Data do recebimento", "Data_do_recebimento", "Data"],
    "vlrBruto": ["Valor bruto", "Valor_bruto", "Valor Bruto"],
    "vlrBaseIR": ["Valor da base de cálculo do IRRF", "Valor_da_base_de_clculo_do_IRRF", "Base IR"],
    "vlrIR": ["Valor do IRRF", "Valor_do_IRRF", "Valor IR", "IRRF"],
}


def _campo(linha, nome, mapeamento):
    return resolver_campo(linha, nome, CAMPOS_4080[nome], mapeamento)


class AgregadorRecebimentos:
    """
    Acumulador de uma única execução: fonte -> natureza -> data -> totais.

    Fontes e naturezas saem na ordem em que apareceram; datas em ordem
    crescente. Não compartilhar entre documentos.
    """

    def __init__(self, diagnostico: Diagnostico | None = None):
        self.diagnostico = diagnostico or Diagnostico()
        self.grupos: dict[str, dict[str, dict[str, TotaisRecebimento]]] = {}
        self.linhas_processadas = 0
        self.linhas_ignoradas = 0

    def adicionar(self, linha: dict, numero_linha: int, mapeamento=None):
        cnpj_font = somente_digitos(_campo(linha, "cnpjFont", mapeamento))
        if len(cnpj_font) != 14:
            self.linhas_ignoradas += 1
            self.diagnostico.aviso(
                f"Linha {numero_linha}: CNPJ da fonte pagadora inválido ({mask_cnpj(cnpj_font) or 'vazio'}), ignorada.",
                linha=numero_linha,
            )
            return

        nat_rend = formatar_natureza(_campo(linha, "natRend", mapeamento))
        if len(nat_rend) != 5:
            self.linhas_ignoradas += 1
            self.diagnostico.aviso(
                f"Linha {numero_linha}: natureza de rendimento ausente ou inválida, ignorada.",
                linha=numero_linha,
            )
            return

        # data ruim aborta: a data faz parte da chave de agregação
        dt_fg = formatar_data(_campo(linha, "dtFG", mapeamento))

        totais = (
            self.grupos.setdefault(cnpj_font, {})
            .setdefault(nat_rend, {})
            .setdefault(dt_fg, TotaisRecebimento())
        )
        totais.somar(
            para_decimal(_campo(linha, "vlrBruto", mapeamento)),
            para_decimal(_campo(linha, "vlrBaseIR", mapeamento)),
            para_decimal(_campo(linha, "vlrIR", mapeamento)),
        )
        self.linhas_processadas += 1

    @property
    def fontes_unicas(self) -> int:
        return len(self.grupos)

    @property
    def registros_info_rec(self) -> int:
        return sum(len(datas) for naturezas in self.grupos.values() for datas in naturezas.values())

    def emitir(self, ide_estab):
        for cnpj_font, naturezas in self.grupos.items():
            ide_font = ET.SubElement(ide_estab, "ideFont")
            adicionar_campo(ide_font, "cnpjFont", cnpj_font)
            for nat_rend, datas in naturezas.items():
                ide_rend = ET.SubElement(ide_font, "ideRend")
                adicionar_campo(ide_rend, "natRend", nat_rend)
                for dt_fg in sorted(datas):
                    totais = datas[dt_fg]
                    info_rec = ET.SubElement(ide_rend, "infoRec")
                    adicionar_campo(info_rec, "dtFG", dt_fg)
                    adicionar_campo(info_rec, "vlrBruto", formatar_valor(totais.vlr_bruto))
                    adicionar_campo(info_rec, "vlrBaseIR", formatar_valor(totais.vlr_base_ir))
                    adicionar_campo(info_rec, "vlrIR", formatar_valor(totais.vlr_ir))


def construir_r4080(linhas, mapeamento=None, *, ambiente="production", per_apur=None,
                    ind_retif="1", sequencia=1, diagnostico=None) -> ResultadoConversao:
    diagnostico = diagnostico or Diagnostico()
    linhas = list(linhas)
    primeira = linhas[0] if linhas else {}

    estab_bruto = _campo(primeira, "nrInscEstab", mapeamento)
    estab_cnpj = somente_digitos(estab_bruto)
    if len(estab_cnpj) != 14:
        raise ErroEstabelecimentoAusente(estab_bruto)

    cab = resolver_cabecalho(
        primeira, mapeamento,
        ambiente=ambiente, per_apur=per_apur, nr_insc=estab_cnpj[:8], ind_retif=ind_retif,
    )

    agregador = AgregadorRecebimentos(diagnostico)
    for i, linha in enumerate(linhas):
        # +2: cabeçalho da planilha e base 1
        agregador.adicionar(linha, i + 2, mapeamento)

    root = ET.Element("Reinf")
    evt = ET.SubElement(root, "evtRetRec", {"id": montar_id_evento(estab_cnpj, cab.per_apur, sequencia)})
    adicionar_cabecalho(evt, cab)

    ide_estab = ET.SubElement(evt, "ideEstab")
    adicionar_campo(ide_estab, "tpInscEstab", "1")
    adicionar_campo(ide_estab, "nrInscEstab", estab_cnpj)
    agregador.emitir(ide_estab)

    diagnostico.info(
        f"evtRetRec: {agregador.fontes_unicas} fontes, {agregador.registros_info_rec} infoRec, "
        f"{agregador.linhas_ignoradas} linha(s) ignorada(s) de {len(linhas)}",
        estabelecimento=mask_cnpj(estab_cnpj),
    )

    resumo = ResumoConversao(
        tipo_evento="evt4080",
        row_count=len(linhas),
        linhas_processadas=agregador.linhas_processadas,
        linhas_ignoradas=agregador.linhas_ignoradas,
        fontes_unicas=agregador.fontes_unicas,
        registros_info_rec=agregador.registros_info_rec,
        mensagens=diagnostico.mensagens,
    )
    return ResultadoConversao(xml=renderizar_xml(root), resumo=resumo)
