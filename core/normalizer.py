import math
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext

from core.erros import ErroFormatoData

CENTAVOS = Decimal("0.01")

_RE_PERIODO = re.compile(r"(\d{4})[-/]?(\d{2})")
_RE_DATA_ISO = re.compile(r"(\d{4})[-/]?(\d{2})[-/]?(\d{2})")
_RE_DATA_BR = re.compile(r"(\d{2})/(\d{2})/(\d{4})")


def somente_digitos(v) -> str:
    """Remove tudo que não for dígito. Vazio/None -> ''."""
    if v is None:
        return ""
    if isinstance(v, float) and v.is_integer():
        # planilhas costumam devolver CNPJ numérico como float
        v = int(v)
    return re.sub(r"\D", "", str(v))


def _limpar_numero(texto: str) -> str:
    texto = re.sub(r"[^\d.,-]", "", texto)
    negativo = texto.startswith("-")
    texto = texto.replace("-", "")

    if "." in texto and "," in texto:
        # o último separador que aparece é o decimal
        if texto.rfind(",") > texto.rfind("."):
            texto = texto.replace(".", "").replace(",", ".")
        else:
            texto = texto.replace(",", "")
    elif texto.count(",") > 1:
        texto = texto.replace(",", "")
    elif texto.count(".") > 1:
        texto = texto.replace(".", "")
    else:
        texto = texto.replace(",", ".")

    return ("-" + texto) if negativo else texto


def para_decimal(v) -> Decimal:
    """
    Converte valor de célula em Decimal.
    Aceita '.' ou ',' como separador decimal; qualquer falha vira 0.
    """
    if v is None or isinstance(v, bool):
        return Decimal(0)
    if isinstance(v, Decimal):
        return v if v.is_finite() else Decimal(0)
    if isinstance(v, (int, float)):
        if isinstance(v, float) and not math.isfinite(v):
            return Decimal(0)
        return Decimal(str(v))
    if isinstance(v, (date, datetime)):
        return Decimal(0)

    texto = str(v).strip()
    try:
        # número "puro" (inclui notação científica: 1e5, 2.5E-3)
        d = Decimal(texto)
    except InvalidOperation:
        texto = _limpar_numero(texto)
        if not texto or texto in ("-", ".", "-."):
            return Decimal(0)
        try:
            d = Decimal(texto)
        except InvalidOperation:
            return Decimal(0)
    return d if d.is_finite() else Decimal(0)


def formatar_valor(v) -> str:
    """Valor monetário no padrão do leiaute: duas casas e vírgula (ex.: 1234,50)."""
    d = para_decimal(v)
    with localcontext() as ctx:
        ctx.prec = max(28, d.adjusted() + 4)
        d = d.quantize(CENTAVOS, rounding=ROUND_HALF_UP)
    if d == 0:
        d = abs(d)  # evita '-0,00'
    return f"{d:.2f}".replace(".", ",")


def formatar_natureza(v) -> str:
    """Natureza do rendimento com 5 dígitos. Vazio sinaliza 'descartar linha'."""
    d = somente_digitos(v)
    if not d:
        return ""
    return d.zfill(5)


def formatar_periodo(v):
    """Período de apuração YYYY-MM. Texto sem padrão reconhecível passa inalterado."""
    if isinstance(v, (date, datetime)):
        return f"{v.year:04d}-{v.month:02d}"
    if isinstance(v, str):
        m = _RE_PERIODO.search(v)
        if m:
            return f"{m.group(1)}-{m.group(2)}"
    return v


def formatar_data(v) -> str:
    """
    Data YYYY-MM-DD. Aceita date/datetime, 'YYYY-MM-DD', 'YYYY/MM/DD',
    'YYYYMMDD' e 'DD/MM/YYYY'. Qualquer outra coisa levanta ErroFormatoData.
    """
    if isinstance(v, (date, datetime)):
        return f"{v.year:04d}-{v.month:02d}-{v.day:02d}"
    if isinstance(v, str):
        m = _RE_DATA_ISO.search(v)
        if m:
            return f"{m.group(1)}-{m.group(2)}-{m.group(3)}"
        m = _RE_DATA_BR.search(v)
        if m:
            return f"{m.group(3)}-{m.group(2)}-{m.group(1)}"
    raise ErroFormatoData(v)
