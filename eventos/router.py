from core.erros import ErroTipoEvento
from eventos.r4010 import construir_r4010
from eventos.r4080 import construir_r4080

TIPOS_EVENTO = {
    "evt4010": construir_r4010,   # uma linha -> um infoPgto
    "evt4080": construir_r4080,   # linhas agregadas por fonte/natureza/data
}


def converter_linhas(linhas, tipo="evt4010", mapeamento=None, **opcoes):
    """Gera o XML do evento escolhido. Retorna ResultadoConversao."""
    try:
        construtor = TIPOS_EVENTO[tipo]
    except KeyError:
        raise ErroTipoEvento(tipo) from None
    return construtor(linhas, mapeamento, **opcoes)
