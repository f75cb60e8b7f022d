"""Erros do conversor Reinf."""


class ErroReinf(Exception):
    """Base de todos os erros do pipeline."""

    def __init__(self, mensagem: str) -> None:
        super().__init__(mensagem)
        self.mensagem = mensagem


# ---------------- Entrada ----------------

class ErroEntrada(ErroReinf):
    """Dados de planilha / parâmetros de entrada inválidos."""


class ErroFormatoData(ErroEntrada):
    """Data que não pode ser normalizada para YYYY-MM-DD."""

    def __init__(self, valor) -> None:
        super().__init__(f"Não foi possível interpretar a data: {valor!r}")
        self.valor = valor


class ErroEstabelecimentoAusente(ErroEntrada):
    """CNPJ do estabelecimento ausente ou sem 14 dígitos."""

    def __init__(self, valor) -> None:
        super().__init__(f"CNPJ do estabelecimento inválido: {valor!r}")
        self.valor = valor


class ErroTipoEvento(ErroEntrada):
    def __init__(self, tipo) -> None:
        super().__init__(f"Tipo de evento inválido: {tipo!r} (use 'evt4010' ou 'evt4080')")
        self.tipo = tipo


class ErroAmbiente(ErroEntrada):
    def __init__(self, ambiente) -> None:
        super().__init__(f"Ambiente deve ser 'sandbox' ou 'production', recebido {ambiente!r}")
        self.ambiente = ambiente


class ErroMapeamento(ErroEntrada):
    """Mapeamento de colunas em formato inválido."""


class ErroPlanilha(ErroEntrada):
    """Planilha vazia, sem abas, grande demais ou de tipo não suportado."""


# ---------------- Keystore (PKCS#12) ----------------

class ErroKeystore(ErroReinf):
    """Falha ao abrir o certificado A1. Nunca deve ser repetida automaticamente."""


class ErroFormatoKeystore(ErroKeystore):
    def __init__(self, mensagem: str = "Formato de certificado inválido") -> None:
        super().__init__(mensagem)


class ErroSenhaKeystore(ErroKeystore):
    def __init__(self, mensagem: str = "Senha incorreta ou certificado corrompido") -> None:
        super().__init__(mensagem)


class ErroSemChavePrivada(ErroKeystore):
    def __init__(self, mensagem: str = "Chave privada não encontrada no certificado") -> None:
        super().__init__(mensagem)


class ErroSemCertificado(ErroKeystore):
    def __init__(self, mensagem: str = "Nenhum certificado encontrado no arquivo") -> None:
        super().__init__(mensagem)


class ErroCertificadoExpirado(ErroKeystore):
    def __init__(self, valido_ate) -> None:
        super().__init__(f"Certificado expirado em {valido_ate:%Y-%m-%d %H:%M:%S}")
        self.valido_ate = valido_ate


class ErroCertificadoNaoVigente(ErroKeystore):
    def __init__(self, valido_de) -> None:
        super().__init__(f"Certificado ainda não é válido (início em {valido_de:%Y-%m-%d %H:%M:%S})")
        self.valido_de = valido_de


# ---------------- Assinatura ----------------

class ErroAssinatura(ErroReinf):
    """Falha ao assinar ou verificar o XML."""


class ErroAncoraAssinatura(ErroAssinatura):
    def __init__(self, mensagem: str = "Atributo 'id' não encontrado no elemento raiz do evento") -> None:
        super().__init__(mensagem)


class ErroXmlInvalido(ErroAssinatura):
    """XML de entrada não pôde ser lido."""


class ErroVerificacaoAssinatura(ErroAssinatura):
    """Digest ou valor da assinatura não confere."""
