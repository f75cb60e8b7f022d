# app.py
import argparse
import getpass
import os
import sys

from core.erros import ErroReinf
from eventos.router import TIPOS_EVENTO
from logic_assinatura import validar_certificado
from logic_ingestao import ler_mapeamento
from logic_pipeline import assinar_e_transmitir, gerar_xml_de_planilha
from schemas.transmissao import Aceito, Rejeitado
from utils import Diagnostico, setup_logger


def _parser():
    p = argparse.ArgumentParser(
        prog="reinf",
        description="Converte planilha em XML EFD-Reinf (R-4010 / R-4080), assina e transmite.",
    )
    p.add_argument("planilha", help="arquivo .xls ou .xlsx")
    p.add_argument("--tipo", choices=sorted(TIPOS_EVENTO), default="evt4010")
    p.add_argument("--mapa", help="JSON {coluna da planilha: campo Reinf}")
    p.add_argument("--saida", help="onde gravar o XML (padrão: output/<tipo>_<planilha>.xml)")
    p.add_argument("--periodo", help="perApur (YYYY-MM); padrão: primeira linha")
    p.add_argument("--retificacao", action="store_true", help="indRetif = 2")
    p.add_argument("--ambiente", choices=["sandbox", "production"], default="sandbox")
    p.add_argument("--pfx", help="certificado A1 (.pfx/.p12); sem ele só gera o XML")
    p.add_argument("--senha", help="senha do certificado (padrão: pergunta no terminal)")
    p.add_argument("--validar-certificado", action="store_true",
                   help="só confere senha e validade do certificado")
    return p


def _ler_arquivo(caminho, modo="rb"):
    with open(caminho, modo) as f:
        return f.read()


def main(argv=None) -> int:
    args = _parser().parse_args(argv)
    setup_logger()
    diagnostico = Diagnostico()

    try:
        if args.validar_certificado:
            if not args.pfx:
                raise ErroReinf("--validar-certificado exige --pfx")
            senha = args.senha if args.senha is not None else getpass.getpass("Senha do certificado: ")
            info = validar_certificado(_ler_arquivo(args.pfx), senha)
            print(f"Certificado válido: {info.subject}")
            print(f"Emissor: {info.issuer}")
            print(f"Validade: {info.valido_de:%Y-%m-%d} a {info.valido_ate:%Y-%m-%d}")
            return 0

        mapeamento = ler_mapeamento(_ler_arquivo(args.mapa, "r")) if args.mapa else None
        resultado = gerar_xml_de_planilha(
            args.planilha, args.tipo, mapeamento,
            diagnostico=diagnostico,
            ambiente=args.ambiente,
            per_apur=args.periodo,
            ind_retif="2" if args.retificacao else "1",
        )
        resumo = resultado.resumo
        print(f"Linhas lidas: {resumo.row_count} | processadas: {resumo.linhas_processadas} "
              f"| ignoradas: {resumo.linhas_ignoradas}")
        if resumo.tipo_evento == "evt4080":
            print(f"Fontes únicas: {resumo.fontes_unicas}")
            print(f"Registros infoRec gerados: {resumo.registros_info_rec}")
        if diagnostico.avisos:
            print(f"Avisos: {diagnostico.avisos} (veja o log)")

        xml = resultado.xml
        if args.pfx:
            senha = args.senha if args.senha is not None else getpass.getpass("Senha do certificado: ")
            xml, envio = assinar_e_transmitir(
                xml, _ler_arquivo(args.pfx), senha, args.ambiente, diagnostico=diagnostico
            )
            del senha
            if isinstance(envio, Aceito):
                print(f"Aceito. Protocolo: {envio.protocolo or '-'} | status: {envio.status or '-'}")
            elif isinstance(envio, Rejeitado):
                print(f"Rejeitado: {envio.mensagem}")
            else:
                print(f"Falha na transmissão: {envio.mensagem}")

        saida = args.saida or os.path.join(
            "output", f"{args.tipo}_{os.path.splitext(os.path.basename(args.planilha))[0]}.xml"
        )
        os.makedirs(os.path.dirname(saida) or ".", exist_ok=True)
        with open(saida, "w", encoding="utf-8") as f:
            f.write(xml)
        print(f"Arquivo gerado em {saida}")

        if args.pfx and not envio.sucesso:
            return 2
        return 0
    except ErroReinf as e:
        print(f"Erro: {e.mensagem}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
