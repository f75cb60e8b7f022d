"""Geração dos eventos R-4010 (por linha) e R-4080 (agregado)."""

import datetime
import re
import xml.etree.ElementTree as ET

import pytest

from conftest import CNPJ_FONTE_A, CNPJ_FONTE_B, linha_4080
from core.erros import ErroAmbiente, ErroEstabelecimentoAusente, ErroFormatoData, ErroTipoEvento
from eventos.r4080 import AgregadorRecebimentos
from eventos.router import converter_linhas
from logic_converter import montar_id_evento

RE_VALOR = re.compile(r"^-?\d+,\d{2}$")


def _raiz(resultado):
    return ET.fromstring(resultado.xml.encode("utf-8"))


def _info_recs(raiz):
    return [
        (font.findtext("cnpjFont"), rend.findtext("natRend"), rec.findtext("dtFG"), rec.findtext("vlrBruto"))
        for font in raiz.iter("ideFont")
        for rend in font.iter("ideRend")
        for rec in rend.iter("infoRec")
    ]


class TestIdEvento:
    def test_formato(self):
        assert montar_id_evento("12345678000199", "2025-03") == "ID1234567800019920250300001"

    def test_periodo_ausente(self):
        assert montar_id_evento("12345678000199", "") == "ID12345678000199000000001"

    def test_limite_de_36_caracteres(self):
        assert len(montar_id_evento("9" * 40, "2025-03", 7)) == 36


class TestR4010:
    def test_um_info_pgto_por_linha_na_ordem(self, linhas_4010):
        raiz = _raiz(converter_linhas(linhas_4010, "evt4010"))
        benefs = [p.findtext("ideBenef/CNPJ_Benef") for p in raiz.iter("infoPgto")]
        assert benefs == ["33333333000133", "44444444000144"]

    def test_linhas_duplicadas_nao_sao_agregadas(self, linhas_4010):
        raiz = _raiz(converter_linhas([linhas_4010[0], linhas_4010[0]], "evt4010"))
        assert len(raiz.findall("evt4010/infoPgto")) == 2

    def test_cabecalho_da_primeira_linha(self, linhas_4010):
        raiz = _raiz(converter_linhas(linhas_4010, "evt4010", ambiente="sandbox"))
        evt = raiz.find("evt4010")
        assert evt.findtext("ideEvento/perApur") == "2025-02"
        assert evt.findtext("ideEvento/tpAmb") == "2"
        assert evt.findtext("ideEvento/indRetif") == "1"
        assert evt.findtext("ideContri/nrInsc") == "12345678"
        assert evt.get("id") == "ID1234567800019920250200001"

    def test_cabecalho_informado_pelo_chamador(self, linhas_4010):
        raiz = _raiz(converter_linhas(
            linhas_4010, "evt4010", per_apur="2024-11", nr_insc="98.765.432", ind_retif="2",
        ))
        evt = raiz.find("evt4010")
        assert evt.findtext("ideEvento/perApur") == "2024-11"
        assert evt.findtext("ideEvento/indRetif") == "2"
        assert evt.findtext("ideEvento/tpAmb") == "1"
        assert evt.findtext("ideContri/nrInsc") == "98765432"

    def test_padroes_e_formatacao(self, linhas_4010):
        raiz = _raiz(converter_linhas(linhas_4010, "evt4010"))
        primeiro, segundo = raiz.findall("evt4010/infoPgto")

        rend = primeiro.find("ideBenef/infoRend")
        assert rend.findtext("tpRend") == "1503"
        assert rend.findtext("descRend") == "COMISSÃO ADMINISTRAÇÃO DE CARTÕES"
        assert rend.findtext("vlrBruto") == "1234,50"
        assert rend.findtext("vlrBaseIR") == "1234,50"  # sem base: usa o bruto
        assert rend.findtext("vlrIR") == "18,52"
        assert primeiro.findtext("ideEstab/nrInscEstab") == "12345678000199"

        rend = segundo.find("ideBenef/infoRend")
        assert rend.findtext("tpRend") == "17001"
        assert rend.findtext("descRend") == "Serviços"
        assert rend.findtext("vlrBaseIR") == "400,00"
        assert rend.findtext("vlrIR") == "0,00"

    def test_tp_rend_sai_como_veio_na_planilha(self):
        linhas = [{"CNPJ": "55.555.555/0001-55", "Natureza": "R-17001", "Valor bruto": 1}]
        raiz = _raiz(converter_linhas(linhas, "evt4010"))
        assert raiz.findtext("evt4010/infoPgto/ideBenef/infoRend/tpRend") == "R-17001"

    def test_mapeamento_de_colunas(self):
        linhas = [{"Documento": "55.555.555/0001-55", "Razão": "Fulano", "Total": "10,5", "CNPJ": "1"}]
        mapa = {"Documento": "CNPJ_Benef", "Razão": "nmBenef", "Total": "vlrBruto"}
        raiz = _raiz(converter_linhas(linhas, "evt4010", mapa))
        benef = raiz.find("evt4010/infoPgto/ideBenef")
        assert benef.findtext("CNPJ_Benef") == "55555555000155"
        assert benef.findtext("nmBenef") == "Fulano"
        assert benef.findtext("infoRend/vlrBruto") == "10,50"

    def test_todos_os_valores_com_duas_casas(self, linhas_4010):
        raiz = _raiz(converter_linhas(linhas_4010, "evt4010"))
        for tag in ("vlrBruto", "vlrBaseIR", "vlrIR"):
            for el in raiz.iter(tag):
                assert RE_VALOR.match(el.text)

    def test_sem_linhas_usa_periodo_padrao(self):
        resultado = converter_linhas([], "evt4010")
        assert _raiz(resultado).findtext("evt4010/ideEvento/perApur") == "2025-01"
        assert resultado.resumo.row_count == 0


class TestR4080:
    def test_soma_linhas_com_a_mesma_chave(self):
        linhas = [
            linha_4080(CNPJ_FONTE_A, "15003", "2025-03-10", 100),
            linha_4080(CNPJ_FONTE_A, "15003", "2025-03-10", 50),
        ]
        raiz = _raiz(converter_linhas(linhas, "evt4080"))
        assert _info_recs(raiz) == [("11111111000111", "15003", "2025-03-10", "150,00")]

    def test_datas_diferentes_geram_info_rec_separados(self):
        linhas = [
            linha_4080(CNPJ_FONTE_A, "15003", "2025-03-10", 100),
            linha_4080(CNPJ_FONTE_A, "15003", "2025-03-11", 50),
        ]
        resultado = converter_linhas(linhas, "evt4080")
        assert len(_info_recs(_raiz(resultado))) == 2
        assert resultado.resumo.registros_info_rec == 2

    def test_ordem_de_emissao(self):
        linhas = [
            linha_4080(CNPJ_FONTE_B, "15003", "2025-02-20", 1),
            linha_4080(CNPJ_FONTE_A, "15003", "2025-02-10", 1),
            linha_4080(CNPJ_FONTE_B, "15003", "2025-01-05", 1),
            linha_4080(CNPJ_FONTE_B, "12001", "2025-03-01", 1),
        ]
        chaves = [c[:3] for c in _info_recs(_raiz(converter_linhas(linhas, "evt4080")))]
        # fontes e naturezas na ordem de chegada, datas crescentes
        assert chaves == [
            ("22222222000122", "15003", "2025-01-05"),
            ("22222222000122", "15003", "2025-02-20"),
            ("22222222000122", "12001", "2025-03-01"),
            ("11111111000111", "15003", "2025-02-10"),
        ]

    def test_totais_e_resumo(self, linhas_4080):
        resultado = converter_linhas(linhas_4080, "evt4080")
        raiz = _raiz(resultado)

        rec = raiz.find("evtRetRec/ideEstab/ideFont/ideRend/infoRec")
        assert rec.findtext("dtFG") == "2025-03-05"

        recs = {(c[0], c[2]): el for c, el in zip(_info_recs(raiz), raiz.iter("infoRec"))}
        soma = recs[("11111111000111", "2025-03-10")]
        assert soma.findtext("vlrBruto") == "150,00"
        assert soma.findtext("vlrBaseIR") == "150,00"
        assert soma.findtext("vlrIR") == "2,25"
        fonte_b = recs[("22222222000122", "2025-03-01")]
        assert fonte_b.findtext("vlrBruto") == "1234,56"
        assert fonte_b.findtext("vlrIR") == "18,52"

        resumo = resultado.resumo
        assert resumo.tipo_evento == "evt4080"
        assert resumo.fontes_unicas == 2
        assert resumo.registros_info_rec == 3
        assert resumo.linhas_processadas == 4
        assert resumo.linhas_ignoradas == 0

    def test_cabecalho_e_estabelecimento(self, linhas_4080):
        evt = _raiz(converter_linhas(linhas_4080, "evt4080")).find("evtRetRec")
        assert evt.get("id") == "ID1234567800019920250300001"
        assert evt.findtext("ideEvento/perApur") == "2025-03"
        assert evt.findtext("ideContri/nrInsc") == "12345678"
        assert evt.findtext("ideEstab/nrInscEstab") == "12345678000199"
        assert [el.tag for el in evt] == ["ideEvento", "ideContri", "ideEstab"]

    def test_cnpj_da_fonte_com_10_digitos_e_ignorado(self):
        linhas = [
            linha_4080("1234567890", "15003", "2025-03-10", 999),
            linha_4080(CNPJ_FONTE_A, "15003", "2025-03-10", 1),
        ]
        resultado = converter_linhas(linhas, "evt4080")
        assert "1234567890" not in resultado.xml
        assert _info_recs(_raiz(resultado)) == [("11111111000111", "15003", "2025-03-10", "1,00")]
        assert resultado.resumo.linhas_ignoradas == 1
        assert resultado.resumo.linhas_processadas == 1
        assert any("Linha 2" in m for m in resultado.resumo.mensagens)

    def test_natureza_ausente_ou_longa_e_ignorada(self):
        linhas = [
            linha_4080(CNPJ_FONTE_A, None, "2025-03-10", 1),
            linha_4080(CNPJ_FONTE_A, "1234567", "2025-03-10", 1),
            linha_4080(CNPJ_FONTE_A, "1503", "2025-03-10", 1),
        ]
        resultado = converter_linhas(linhas, "evt4080")
        assert resultado.resumo.linhas_ignoradas == 2
        assert [c[1] for c in _info_recs(_raiz(resultado))] == ["01503"]

    def test_data_invalida_aborta(self):
        linhas = [
            linha_4080(CNPJ_FONTE_A, "15003", "2025-03-10", 1),
            linha_4080(CNPJ_FONTE_A, "15003", "sem data", 1),
        ]
        with pytest.raises(ErroFormatoData):
            converter_linhas(linhas, "evt4080")

    @pytest.mark.parametrize("estab", [None, "123", "12.345.678/0001"])
    def test_estabelecimento_invalido(self, estab):
        with pytest.raises(ErroEstabelecimentoAusente):
            converter_linhas([linha_4080(CNPJ_FONTE_A, "15003", "2025-03-10", 1, estab=estab)], "evt4080")

    def test_valores_ausentes_valem_zero(self):
        linha = linha_4080(CNPJ_FONTE_A, "15003", datetime.date(2025, 3, 10), None, None, None)
        raiz = _raiz(converter_linhas([linha], "evt4080"))
        rec = raiz.find(".//infoRec")
        assert [rec.findtext(t) for t in ("vlrBruto", "vlrBaseIR", "vlrIR")] == ["0,00", "0,00", "0,00"]


class TestAgregador:
    def test_acumulador_nao_e_compartilhado(self):
        a = AgregadorRecebimentos()
        b = AgregadorRecebimentos()
        a.adicionar(linha_4080(CNPJ_FONTE_A, "15003", "2025-03-10", 1), 2)
        assert a.fontes_unicas == 1
        assert b.fontes_unicas == 0


class TestRouter:
    def test_tipo_invalido(self):
        with pytest.raises(ErroTipoEvento):
            converter_linhas([], "evt9999")

    def test_ambiente_invalido(self, linhas_4010):
        with pytest.raises(ErroAmbiente):
            converter_linhas(linhas_4010, "evt4010", ambiente="homologacao")
