"""Fixtures compartilhadas: certificado A1 de teste e linhas de planilha."""

import datetime
import logging

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID

SENHA = "segredo123"

CNPJ_ESTAB = "12.345.678/0001-99"
CNPJ_FONTE_A = "11.111.111/0001-11"
CNPJ_FONTE_B = "22.222.222/0001-22"


def _certificado(chave, inicio, fim):
    nome = x509.Name([
        x509.NameAttribute(NameOID.COUNTRY_NAME, "BR"),
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, "ICP-Brasil"),
        x509.NameAttribute(NameOID.COMMON_NAME, "EMPRESA TESTE LTDA:12345678000199"),
    ])
    return (
        x509.CertificateBuilder()
        .subject_name(nome)
        .issuer_name(nome)
        .public_key(chave.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(inicio)
        .not_valid_after(fim)
        .sign(chave, hashes.SHA256())
    )


def _pfx(chave, certificado, senha=SENHA):
    return pkcs12.serialize_key_and_certificates(
        b"teste", chave, certificado, None,
        serialization.BestAvailableEncryption(senha.encode("utf-8")),
    )


@pytest.fixture(scope="session")
def chave_rsa():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def certificado(chave_rsa):
    agora = datetime.datetime.now(datetime.timezone.utc)
    return _certificado(chave_rsa, agora - datetime.timedelta(days=1), agora + datetime.timedelta(days=365))


@pytest.fixture(scope="session")
def certificado_expirado(chave_rsa):
    return _certificado(
        chave_rsa,
        datetime.datetime(2020, 1, 1, tzinfo=datetime.timezone.utc),
        datetime.datetime(2021, 1, 1, tzinfo=datetime.timezone.utc),
    )


@pytest.fixture(scope="session")
def pfx(chave_rsa, certificado):
    return _pfx(chave_rsa, certificado)


@pytest.fixture(scope="session")
def pfx_expirado(chave_rsa, certificado_expirado):
    return _pfx(chave_rsa, certificado_expirado)


@pytest.fixture(scope="session")
def pfx_sem_chave(certificado):
    return pkcs12.serialize_key_and_certificates(
        b"teste", None, certificado, None,
        serialization.BestAvailableEncryption(SENHA.encode("utf-8")),
    )


@pytest.fixture(scope="session")
def pfx_sem_certificado(chave_rsa):
    return pkcs12.serialize_key_and_certificates(
        b"teste", chave_rsa, None, None,
        serialization.BestAvailableEncryption(SENHA.encode("utf-8")),
    )


def linha_4080(fonte, natureza, data, bruto, base=0, ir=0, estab=CNPJ_ESTAB, periodo="2025-03"):
    return {
        "Período de apuração": periodo,
        "CNPJ do Estabelecimento": estab,
        "CNPJ da fonte pagadora": fonte,
        "Nat Rend Rec p Bem": natureza,
        "Data do recebimento": data,
        "Valor bruto": bruto,
        "Valor da base de cálculo do IRRF": base,
        "Valor do IRRF": ir,
    }


@pytest.fixture
def linhas_4080():
    return [
        linha_4080(CNPJ_FONTE_A, "15003", "2025-03-10", 100, 100, 1.5),
        linha_4080(CNPJ_FONTE_A, "15003", "2025-03-10", 50, 50, 0.75),
        linha_4080(CNPJ_FONTE_A, "15003", "2025-03-05", 10, 10, 0.15),
        linha_4080(CNPJ_FONTE_B, 12001, datetime.date(2025, 3, 1), "1.234,56", "1.234,56", "18,52"),
    ]


@pytest.fixture
def linhas_4010():
    return [
        {
            "Período de apuração": datetime.datetime(2025, 2, 1),
            "CNPJ do Estabelecimento": CNPJ_ESTAB,
            "CNPJ": "33.333.333/0001-33",
            "Nome": "Beneficiário Um",
            "Valor bruto": 1234.5,
            "Valor do IRRF": 18.52,
        },
        {
            "CNPJ do Estabelecimento": CNPJ_ESTAB,
            "CNPJ": "44.444.444/0001-44",
            "Nome": "Beneficiário Dois",
            "Natureza": "17001",
            "Descrição": "Serviços",
            "Valor bruto": "500",
            "Valor da base de cálculo do IRRF": "400,00",
            "Valor do IRRF": None,
        },
    ]


@pytest.fixture(autouse=True)
def _logger_reinf_limpo():
    # main() liga o handler no stdout capturado do teste corrente
    yield
    logging.getLogger("reinf").handlers.clear()
