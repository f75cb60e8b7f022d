from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional


@dataclass
class ColunaPlanilha:
    nome: str
    indice: int                   # posição da primeira ocorrência


@dataclass
class TotaisRecebimento:
    vlr_bruto: Decimal = Decimal(0)
    vlr_base_ir: Decimal = Decimal(0)
    vlr_ir: Decimal = Decimal(0)

    def somar(self, bruto: Decimal, base_ir: Decimal, ir: Decimal):
        self.vlr_bruto += bruto
        self.vlr_base_ir += base_ir
        self.vlr_ir += ir


@dataclass
class CabecalhoEvento:
    per_apur: str
    nr_insc: str                  # raiz do CNPJ do contribuinte (8 dígitos)
    tp_amb: str                   # 1 = produção | 2 = produção restrita
    ind_retif: str = "1"          # 1 = original | 2 = retificação
    proc_emi: str = "1"
    ver_proc: str = "1.0"


@dataclass
class ResumoConversao:
    tipo_evento: str              # evt4010 | evt4080
    file_name: Optional[str] = None
    sheet_name: Optional[str] = None
    row_count: int = 0
    columns: list[str] = field(default_factory=list)

    linhas_processadas: int = 0
    linhas_ignoradas: int = 0
    fontes_unicas: int = 0        # só evt4080
    registros_info_rec: int = 0   # só evt4080

    mensagens: list[str] = field(default_factory=list)

    @property
    def column_count(self) -> int:
        return len(self.columns)


@dataclass
class ResultadoConversao:
    xml: str
    resumo: ResumoConversao
