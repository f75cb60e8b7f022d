from dataclasses import dataclass
from enum import Enum
from typing import Optional


class EstadoTransmissao(str, Enum):
    OCIOSO = "ocioso"
    CONECTANDO = "conectando"
    ENVIANDO = "enviando"
    AGUARDANDO_RESPOSTA = "aguardando_resposta"
    ACEITO = "aceito"
    REJEITADO = "rejeitado"
    FALHA_TRANSPORTE = "falha_transporte"


@dataclass
class ResultadoTransmissao:
    status_code: Optional[int]    # None quando nem chegou resposta HTTP
    corpo: str                    # resposta bruta, para auditoria

    sucesso = False
    pode_repetir = False


@dataclass
class Aceito(ResultadoTransmissao):
    protocolo: str = ""           # <numeroProtocolo>
    status: str = ""              # <status>

    sucesso = True


@dataclass
class Rejeitado(ResultadoTransmissao):
    mensagem: str = ""            # <mensagem> ou mensagem genérica


@dataclass
class FalhaTransporte(ResultadoTransmissao):
    mensagem: str = ""

    pode_repetir = True           # não diz nada sobre a validade do XML
