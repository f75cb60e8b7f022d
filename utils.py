import logging
import sys
from datetime import datetime

from config import LOG_FILE, LOG_LEVEL
from core.normalizer import somente_digitos

LOGGER_NAME = "reinf"

log_formatter = logging.Formatter(
    "%(asctime)s - %(name)s - %(levelname)s - [%(funcName)s] - %(message)s"
)


def setup_logger(level: str = LOG_LEVEL, log_file: str | None = LOG_FILE):
    """Configura o logger 'reinf' (stdout + arquivo opcional). Idempotente."""
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        logger.setLevel(level)

        stdout_handler = logging.StreamHandler(sys.stdout)
        stdout_handler.setFormatter(log_formatter)
        logger.addHandler(stdout_handler)

        if log_file:
            file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
            file_handler.setFormatter(log_formatter)
            logger.addHandler(file_handler)
    return logger


log = logging.getLogger(LOGGER_NAME)


def mask_cnpj(d: str) -> str:
    """
    Formata CNPJ ou CPF:
      - CNPJ: 00.000.000/0000-00
      - CPF : 000.000.000-00
    Outros tamanhos: retorna só os dígitos.
    """
    d = somente_digitos(d)
    if len(d) == 14:
        return f"{d[0:2]}.{d[2:5]}.{d[5:8]}/{d[8:12]}-{d[12:14]}"
    if len(d) == 11:
        return f"{d[0:3]}.{d[3:6]}.{d[6:9]}-{d[9:11]}"
    return d


class Diagnostico:
    """
    Coletor de diagnósticos injetado em cada etapa do pipeline.

    Guarda as mensagens com timestamp (para devolver ao chamador junto do
    resumo) e repassa tudo para o logger 'reinf'.
    """

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or log
        self.mensagens: list[str] = []
        self.contagem: dict[int, int] = {}

    def registrar(self, nivel: int, mensagem: str, contexto: dict | None = None):
        timestamp = datetime.now().strftime("%H:%M:%S")
        self.mensagens.append(f"[{timestamp}] {mensagem}")
        self.contagem[nivel] = self.contagem.get(nivel, 0) + 1
        self.logger.log(nivel, mensagem, extra={"contexto": contexto or {}})

    def info(self, mensagem: str, **contexto):
        self.registrar(logging.INFO, mensagem, contexto)

    def aviso(self, mensagem: str, **contexto):
        self.registrar(logging.WARNING, mensagem, contexto)

    @property
    def avisos(self) -> int:
        return self.contagem.get(logging.WARNING, 0)
