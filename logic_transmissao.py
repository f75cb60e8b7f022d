# logic_transmissao.py
import logging
import os
import re
import secrets
import ssl
import tempfile

import httpx
from cryptography.hazmat.primitives.serialization import (
    BestAvailableEncryption,
    Encoding,
    PrivateFormat,
)

from config import ENDPOINTS_REINF, REINF_CA_BUNDLE, REINF_TIMEOUT
from core.erros import ErroAmbiente
from schemas.certificado import Credencial
from schemas.transmissao import (
    Aceito,
    EstadoTransmissao,
    FalhaTransporte,
    Rejeitado,
    ResultadoTransmissao,
)
from utils import Diagnostico

RE_PROTOCOLO = re.compile(r"<numeroProtocolo>([^<]+)</numeroProtocolo>")
RE_STATUS = re.compile(r"<status>([^<]+)</status>")
RE_MENSAGEM = re.compile(r"<mensagem>([^<]+)</mensagem>")

MENSAGEM_VALIDACAO_PADRAO = "Erro de validação no XML enviado"
CONTENT_TYPE_XML = "application/xml; charset=utf-8"


def endpoint_para(ambiente: str) -> str:
    try:
        return ENDPOINTS_REINF[ambiente]
    except KeyError:
        raise ErroAmbiente(ambiente) from None


def _primeiro(regex, texto: str) -> str:
    m = regex.search(texto)
    return m.group(1) if m else ""


def classificar_resposta(status_code: int, corpo: str) -> ResultadoTransmissao:
    """Interpreta a resposta HTTP da Receita."""
    if status_code in (200, 201):
        return Aceito(
            status_code=status_code,
            corpo=corpo,
            protocolo=_primeiro(RE_PROTOCOLO, corpo),
            status=_primeiro(RE_STATUS, corpo),
        )
    if status_code in (400, 422):
        return Rejeitado(
            status_code=status_code,
            corpo=corpo,
            mensagem=_primeiro(RE_MENSAGEM, corpo) or MENSAGEM_VALIDACAO_PADRAO,
        )
    return FalhaTransporte(status_code=status_code, corpo=corpo, mensagem=f"Erro HTTP {status_code}")


def _gravar_privado(caminho: str, dados: bytes):
    fd = os.open(caminho, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    with os.fdopen(fd, "wb") as f:
        f.write(dados)


def contexto_tls(credencial: Credencial, ca_bundle: str | None = REINF_CA_BUNDLE) -> ssl.SSLContext:
    """
    SSLContext com autenticação por certificado do cliente.

    O ssl só carrega chave/certificado de arquivo: os PEMs vivem numa pasta
    temporária (chave cifrada com senha descartável) só até o load_cert_chain.
    """
    ctx = ssl.create_default_context(cafile=ca_bundle)
    frase = secrets.token_hex(32).encode("ascii")
    with tempfile.TemporaryDirectory(prefix="reinf_tls_") as pasta:
        cert_path = os.path.join(pasta, "cert.pem")
        key_path = os.path.join(pasta, "key.pem")
        _gravar_privado(cert_path, credencial.certificado.public_bytes(Encoding.PEM))
        _gravar_privado(
            key_path,
            credencial.chave.private_bytes(Encoding.PEM, PrivateFormat.PKCS8, BestAvailableEncryption(frase)),
        )
        ctx.load_cert_chain(cert_path, key_path, password=frase)
    return ctx


class TransmissorReinf:
    """
    Envia um XML assinado para a Receita e classifica a resposta.

    Estados: OCIOSO -> CONECTANDO -> ENVIANDO -> AGUARDANDO_RESPOSTA ->
    ACEITO | REJEITADO | FALHA_TRANSPORTE. Não há nova tentativa automática.
    """

    def __init__(self, credencial: Credencial, ambiente: str, timeout: float = REINF_TIMEOUT,
                 transport: httpx.BaseTransport | None = None, diagnostico: Diagnostico | None = None):
        self.endpoint = endpoint_para(ambiente)
        self.ambiente = ambiente
        self.credencial = credencial
        self.timeout = timeout
        self.transport = transport
        self.diagnostico = diagnostico or Diagnostico()
        self.estado = EstadoTransmissao.OCIOSO

    def _mudar_estado(self, estado: EstadoTransmissao):
        self.estado = estado
        self.diagnostico.registrar(logging.DEBUG, f"Transmissão: {estado.value}", {"ambiente": self.ambiente})

    def _finalizar(self, resultado: ResultadoTransmissao) -> ResultadoTransmissao:
        if isinstance(resultado, Aceito):
            self._mudar_estado(EstadoTransmissao.ACEITO)
            self.diagnostico.info(f"Lote aceito. Protocolo: {resultado.protocolo or '-'}", status=resultado.status)
        elif isinstance(resultado, Rejeitado):
            self._mudar_estado(EstadoTransmissao.REJEITADO)
            self.diagnostico.aviso(f"Lote rejeitado: {resultado.mensagem}", status_code=resultado.status_code)
        else:
            self._mudar_estado(EstadoTransmissao.FALHA_TRANSPORTE)
            self.diagnostico.aviso(f"Falha na transmissão: {resultado.mensagem}", status_code=resultado.status_code)
        return resultado

    def transmitir(self, xml_assinado) -> ResultadoTransmissao:
        corpo = xml_assinado.encode("utf-8") if isinstance(xml_assinado, str) else xml_assinado

        self._mudar_estado(EstadoTransmissao.CONECTANDO)
        self.diagnostico.info(f"Enviando para {self.ambiente}: {self.endpoint}")
        ctx = contexto_tls(self.credencial)

        try:
            with httpx.Client(verify=ctx, timeout=self.timeout, transport=self.transport) as client:
                request = client.build_request(
                    "POST", self.endpoint, content=corpo, headers={"Content-Type": CONTENT_TYPE_XML}
                )
                self._mudar_estado(EstadoTransmissao.ENVIANDO)
                resposta = client.send(request, stream=True)
                try:
                    self._mudar_estado(EstadoTransmissao.AGUARDANDO_RESPOSTA)
                    resposta.read()
                finally:
                    resposta.close()
        except httpx.TransportError as e:
            return self._finalizar(FalhaTransporte(
                status_code=None,
                corpo="",
                mensagem=f"Erro na conexão com a Receita Federal: {str(e) or type(e).__name__}",
            ))

        return self._finalizar(classificar_resposta(resposta.status_code, resposta.text))


def transmitir(xml_assinado, certificado, chave, ambiente: str, *, timeout: float = REINF_TIMEOUT,
               transport: httpx.BaseTransport | None = None,
               diagnostico: Diagnostico | None = None) -> ResultadoTransmissao:
    credencial = Credencial(chave=chave, certificado=certificado)
    transmissor = TransmissorReinf(credencial, ambiente, timeout=timeout, transport=transport,
                                   diagnostico=diagnostico)
    return transmissor.transmitir(xml_assinado)
