from dataclasses import dataclass
from datetime import datetime

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes


@dataclass
class Credencial:
    chave: PrivateKeyTypes
    certificado: x509.Certificate

    def __repr__(self) -> str:
        # nunca expõe a chave em logs / tracebacks
        return f"Credencial(certificado={self.certificado.subject.rfc4514_string()!r})"


@dataclass
class InfoCertificado:
    subject: str
    issuer: str
    valido_de: datetime
    valido_ate: datetime
