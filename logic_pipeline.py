# logic_pipeline.py
from config import REINF_TIMEOUT
from eventos.router import converter_linhas
from logic_assinatura import assinar_com_credencial, carregar_keystore
from logic_ingestao import ler_planilha
from logic_transmissao import TransmissorReinf, endpoint_para
from utils import Diagnostico


def gerar_xml(linhas, tipo="evt4010", mapeamento=None, diagnostico=None, **opcoes):
    """Linhas da planilha -> ResultadoConversao (XML sem assinatura + resumo)."""
    return converter_linhas(linhas, tipo, mapeamento, diagnostico=diagnostico or Diagnostico(), **opcoes)


def gerar_xml_de_planilha(origem, tipo="evt4010", mapeamento=None, nome_arquivo=None,
                          diagnostico=None, **opcoes):
    linhas, info = ler_planilha(origem, nome_arquivo)
    resultado = gerar_xml(linhas, tipo, mapeamento, diagnostico, **opcoes)
    resultado.resumo.file_name = info.file_name
    resultado.resumo.sheet_name = info.sheet_name
    resultado.resumo.columns = info.columns
    return resultado


def assinar_e_transmitir(xml, blob, senha, ambiente, *, timeout=REINF_TIMEOUT, transport=None,
                         diagnostico=None):
    """
    Assina e envia. Devolve (xml_assinado, ResultadoTransmissao).

    Ambiente é validado antes de abrir o certificado; erros de keystore e de
    assinatura sobem como exceção, o resultado da transmissão nunca.
    """
    diagnostico = diagnostico or Diagnostico()
    endpoint_para(ambiente)

    diagnostico.info("Assinando XML...")
    credencial = carregar_keystore(blob, senha)
    try:
        xml_assinado = assinar_com_credencial(xml, credencial, diagnostico)
        transmissor = TransmissorReinf(credencial, ambiente, timeout=timeout, transport=transport,
                                       diagnostico=diagnostico)
        resultado = transmissor.transmitir(xml_assinado)
    finally:
        del credencial
    return xml_assinado, resultado
