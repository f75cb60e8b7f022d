import xml.etree.ElementTree as ET

from config import REINF_PERIODO_PADRAO, REINF_VER_PROC, TP_AMB
from core.erros import ErroAmbiente
from core.normalizer import formatar_periodo, somente_digitos
from core.resolver import resolver_campo
from schemas.conversao import CabecalhoEvento

CAMPOS_PERIODO = ["Período de apuração", "Perodo_de_apurao", "Periodo", "Período"]
CAMPOS_ESTABELECIMENTO = ["CNPJ do Estabelecimento", "CNPJ_do_Estabelecimento"]


def adicionar_campo(parent, tag, valor):
    texto = "" if valor is None else str(valor).strip()
    if texto.lower() == "nan":
        texto = ""
    elem = ET.SubElement(parent, tag)
    elem.text = texto
    return elem


def tp_amb_para(ambiente: str) -> str:
    try:
        return TP_AMB[ambiente]
    except KeyError:
        raise ErroAmbiente(ambiente) from None


def montar_id_evento(inscricao: str, per_apur: str, sequencia: int = 1) -> str:
    """ID + inscrição + período (AAAAMM) + sequencial de 5 dígitos, no máximo 36 caracteres."""
    periodo = somente_digitos(per_apur) or "0000"
    return f"ID{somente_digitos(inscricao)}{periodo}{sequencia:05d}"[:36]


def resolver_cabecalho(primeira_linha: dict, mapeamento=None, *, ambiente="production",
                       per_apur=None, nr_insc=None, ind_retif="1") -> CabecalhoEvento:
    """
    Campos de cabeçalho: resolvidos uma única vez, a partir da primeira linha
    ou dos valores informados por quem chama.
    """
    if per_apur is None:
        bruto = resolver_campo(primeira_linha, "perApur", CAMPOS_PERIODO, mapeamento)
        per_apur = formatar_periodo(bruto) if bruto is not None else REINF_PERIODO_PADRAO
    else:
        per_apur = formatar_periodo(per_apur)

    if nr_insc is None:
        estab = somente_digitos(
            resolver_campo(primeira_linha, "nrInscEstab", CAMPOS_ESTABELECIMENTO, mapeamento)
        )
        nr_insc = estab[:8]

    return CabecalhoEvento(
        per_apur=str(per_apur),
        nr_insc=somente_digitos(nr_insc),
        tp_amb=tp_amb_para(ambiente),
        ind_retif=str(ind_retif),
        ver_proc=REINF_VER_PROC,
    )


def adicionar_cabecalho(evt, cab: CabecalhoEvento):
    ide_evento = ET.SubElement(evt, "ideEvento")
    adicionar_campo(ide_evento, "indRetif", cab.ind_retif)
    adicionar_campo(ide_evento, "perApur", cab.per_apur)
    adicionar_campo(ide_evento, "tpAmb", cab.tp_amb)
    adicionar_campo(ide_evento, "procEmi", cab.proc_emi)
    adicionar_campo(ide_evento, "verProc", cab.ver_proc)

    ide_contri = ET.SubElement(evt, "ideContri")
    adicionar_campo(ide_contri, "tpInsc", "1")
    adicionar_campo(ide_contri, "nrInsc", cab.nr_insc)


def renderizar_xml(root) -> str:
    xml_tree = ET.ElementTree(root)
    ET.indent(xml_tree, space="  ", level=0)
    corpo = ET.tostring(root, encoding="unicode")
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + corpo + "\n"
