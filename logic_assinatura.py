# logic_assinatura.py
import base64
import binascii
from datetime import datetime, timezone

from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import Encoding, pkcs12
from lxml import etree
from signxml import SignatureConstructionMethod, XMLSigner, XMLVerifier
from signxml.algorithms import CanonicalizationMethod, DigestAlgorithm, SignatureMethod
from signxml.exceptions import SignXMLException

from core.erros import (
    ErroAncoraAssinatura,
    ErroAssinatura,
    ErroCertificadoExpirado,
    ErroCertificadoNaoVigente,
    ErroFormatoKeystore,
    ErroKeystore,
    ErroSemCertificado,
    ErroSemChavePrivada,
    ErroSenhaKeystore,
    ErroVerificacaoAssinatura,
    ErroXmlInvalido,
)
from schemas.certificado import Credencial, InfoCertificado
from utils import Diagnostico

DS_NS = "http://www.w3.org/2000/09/xmldsig#"


# ============== KEYSTORE (PKCS#12 / A1) ==============

def _parece_pfx(der: bytes) -> bool:
    """Um PFX é um único SEQUENCE DER cobrindo o arquivo inteiro."""
    if len(der) < 2 or der[0] != 0x30:
        return False
    tam = der[1]
    if tam < 0x80:
        return 2 + tam == len(der)
    qtd = tam & 0x7F
    if qtd == 0:
        # comprimento indefinido (BER), comum em PFX exportado pelo Windows
        return True
    if qtd > 4 or len(der) < 2 + qtd:
        return False
    return 2 + qtd + int.from_bytes(der[2:2 + qtd], "big") == len(der)


def _decodificar_blob(blob) -> bytes:
    """Aceita o .pfx binário ou o conteúdo em base64 (como vem do navegador)."""
    if isinstance(blob, (bytes, bytearray)) and blob[:1] == b"\x30":
        return bytes(blob)
    try:
        texto = blob.decode("ascii") if isinstance(blob, (bytes, bytearray)) else str(blob)
        return base64.b64decode("".join(texto.split()), validate=True)
    except (UnicodeDecodeError, binascii.Error) as e:
        raise ErroFormatoKeystore() from e


def carregar_keystore(blob, senha) -> Credencial:
    """
    Abre o certificado A1 (PKCS#12) e devolve chave privada + certificado.

    Erros: ErroFormatoKeystore, ErroSenhaKeystore, ErroSemChavePrivada,
    ErroSemCertificado.
    """
    der = _decodificar_blob(blob)
    if not _parece_pfx(der):
        raise ErroFormatoKeystore()

    senha_bytes = senha.encode("utf-8") if isinstance(senha, str) else bytes(senha or b"")
    try:
        chave, certificado, extras = pkcs12.load_key_and_certificates(der, senha_bytes)
    except ValueError as e:
        raise ErroSenhaKeystore() from e
    finally:
        del senha_bytes

    if chave is None:
        raise ErroSemChavePrivada()
    if not isinstance(chave, rsa.RSAPrivateKey):
        raise ErroKeystore("A chave privada do certificado não é RSA")
    if certificado is None:
        if not extras:
            raise ErroSemCertificado()
        certificado = extras[0]

    return Credencial(chave=chave, certificado=certificado)


def info_certificado(certificado) -> InfoCertificado:
    return InfoCertificado(
        subject=certificado.subject.rfc4514_string(),
        issuer=certificado.issuer.rfc4514_string(),
        valido_de=certificado.not_valid_before_utc,
        valido_ate=certificado.not_valid_after_utc,
    )


def validar_certificado(blob, senha, agora: datetime | None = None) -> InfoCertificado:
    """Abre o certificado e confere a vigência. Devolve subject/issuer/validade."""
    credencial = carregar_keystore(blob, senha)
    info = info_certificado(credencial.certificado)
    del credencial

    agora = agora or datetime.now(timezone.utc)
    if agora < info.valido_de:
        raise ErroCertificadoNaoVigente(info.valido_de)
    if agora > info.valido_ate:
        raise ErroCertificadoExpirado(info.valido_ate)
    return info


def certificado_pem(certificado) -> str:
    return certificado.public_bytes(Encoding.PEM).decode("ascii")


# ============== ASSINATURA XML-DSig ==============

def _ler_xml(xml):
    dados = xml.encode("utf-8") if isinstance(xml, str) else xml
    try:
        return etree.fromstring(dados, etree.XMLParser(resolve_entities=False, no_network=True))
    except etree.XMLSyntaxError as e:
        raise ErroXmlInvalido(f"XML inválido: {e}") from e


def _elemento_evento(raiz):
    """Primeiro filho de <Reinf>: é ele que carrega o id referenciado pela assinatura."""
    for filho in raiz.iterchildren(tag=etree.Element):
        return filho
    raise ErroAncoraAssinatura("Elemento para assinar não encontrado no XML")


def _novo_assinador() -> XMLSigner:
    return XMLSigner(
        method=SignatureConstructionMethod.enveloped,
        signature_algorithm=SignatureMethod.RSA_SHA256,
        digest_algorithm=DigestAlgorithm.SHA256,
        c14n_algorithm=CanonicalizationMethod.CANONICAL_XML_1_0,
    )


def assinar_com_credencial(xml, credencial: Credencial, diagnostico: Diagnostico | None = None) -> str:
    raiz = _ler_xml(xml)
    evento = _elemento_evento(raiz)
    id_evento = (evento.get("id") or "").strip()
    if not id_evento:
        raise ErroAncoraAssinatura()

    # placeholder no fim do evento: a assinatura entra depois de todo o conteúdo coberto.
    # Mesmo prefixo "ds" que o signxml usa ao montar o SignedInfo.
    etree.SubElement(evento, f"{{{DS_NS}}}Signature", {"Id": "placeholder"}, nsmap={"ds": DS_NS})

    try:
        assinado = _novo_assinador().sign(
            raiz,
            key=credencial.chave,
            cert=certificado_pem(credencial.certificado),
            reference_uri=f"#{id_evento}",
        )
    except SignXMLException as e:
        raise ErroAssinatura(f"Erro ao assinar XML: {e}") from e

    if diagnostico is not None:
        diagnostico.info(f"XML assinado (referência #{id_evento})", id_evento=id_evento)

    return etree.tostring(assinado, encoding="UTF-8", xml_declaration=True).decode("utf-8")


def assinar_xml(xml, blob, senha, diagnostico: Diagnostico | None = None) -> str:
    """
    Assina o evento com o certificado A1.

    A credencial só existe durante esta chamada; erros de keystore e de
    âncora sobem sem tratamento.
    """
    credencial = carregar_keystore(blob, senha)
    try:
        return assinar_com_credencial(xml, credencial, diagnostico)
    finally:
        del credencial


def verificar_assinatura(xml_assinado, certificado) -> None:
    """Confere digest e valor da assinatura contra o certificado informado."""
    cert = certificado if isinstance(certificado, str) else certificado_pem(certificado)
    dados = xml_assinado.encode("utf-8") if isinstance(xml_assinado, str) else xml_assinado
    try:
        XMLVerifier().verify(dados, x509_cert=cert)
    except SignXMLException as e:
        raise ErroVerificacaoAssinatura(f"Assinatura inválida: {e}") from e
