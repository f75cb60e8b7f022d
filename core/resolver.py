VAZIO = None  # "não encontrado": quem chama decide o padrão


def coluna_mapeada(linha: dict, campo: str, mapeamento: dict | None) -> str | None:
    """Primeira coluna da linha (na ordem da linha) que o usuário mapeou para o campo Reinf."""
    if not mapeamento:
        return None
    for coluna in linha:
        if mapeamento.get(coluna) == campo:
            return coluna
    return None


def resolver_campo(linha: dict, campo: str, alternativos=(), mapeamento: dict | None = None):
    """
    Busca o valor de um campo Reinf numa linha da planilha.

    Ordem:
      1) coluna escolhida pelo usuário no mapeamento (se tiver valor na linha);
      2) o próprio nome do campo e depois cada nome alternativo, na ordem.
    Sem correspondência -> VAZIO.
    """
    coluna = coluna_mapeada(linha, campo, mapeamento)
    if coluna is not None and linha[coluna] is not None:
        return linha[coluna]

    for nome in (campo, *alternativos):
        if linha.get(nome) is not None:
            return linha[nome]

    return VAZIO
