"""
cli/main.py
===========
Interface de linha de comando do streamfinder.

Argumentos principais:
  --subtitles     : Também coleta legendas (rede + DOM).
  --browser       : Escolhe o navegador (chromium, chrome, edge).
  --ws-endpoint   : Conecta a um navegador já rodando (CDP).
  --output        : Salva os manifestos encontrados em um arquivo .m3u.
  --json          : Imprime os resultados em JSON.
"""

import argparse
import asyncio
import json
import logging
import re
from typing import Any, Dict, List, Optional

import validators
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from streamfinder.core.browser_session import SessionConfig
from streamfinder.core.errors import InvalidURLError, StreamFinderError
from streamfinder.core.extractor import StreamExtractor

console = Console()
err_console = Console(stderr=True)

PRIVATE_HOST_MARKERS = ["localhost", "127.0.0.1", "0.0.0.0", "192.168.", "10.", "172.16."]


def validate_url(url: str, allow_private: bool = False) -> bool:
    """Valida se a URL é segura e bem formatada."""
    if not validators.url(url, simple_host=allow_private):
        return False
    if not url.lower().startswith(("http://", "https://")):
        return False
    if allow_private:
        return True
    parsed_url = re.search(r"https?://([^/:]+)", url)
    if parsed_url:
        host = parsed_url.group(1).lower()
        if any(host.startswith(x) for x in PRIVATE_HOST_MARKERS):
            return False
    return True


def configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def process_url(
    url: str,
    extractor: StreamExtractor,
    progress: Progress,
    with_subtitles: bool = False,
    allow_private: bool = False,
) -> Dict[str, Any]:
    task_id = progress.add_task(f"[cyan]Processando: {url}", total=None)

    try:
        if not validate_url(url, allow_private=allow_private):
            raise InvalidURLError(f"URL inválida ou insegura: {url}")
        result = await extractor.extract(url, with_subtitles=with_subtitles)
        progress.update(task_id, completed=True, description=f"[green]Concluído: {url}")
        data = result.to_dict()
        data["source_url"] = url
        data["error"] = None
        return data
    except StreamFinderError as e:
        progress.update(task_id, completed=True, description=f"[red]Erro: {url}")
        err_console.print(f"[bold red]Erro ao processar {url}:[/] {e}")
        return {
            "source_url": url,
            "urls": [],
            "subtitles": [],
            "error": str(e),
        }


def write_m3u(results: List[Dict[str, Any]], path: str) -> int:
    """Grava os manifestos em uma playlist .m3u. Retorna quantas entradas foram escritas."""
    written = 0
    with open(path, "w", encoding="utf-8") as f:
        f.write("#EXTM3U\n")
        for res in results:
            for u in res["urls"]:
                f.write(f'#EXTINF:-1 group-title="STREAMFINDER", {res["source_url"]}\n')
                f.write(f"{u}\n")
                written += 1
    return written


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="streamfinder: Descobre manifestos .m3u8 e legendas em páginas de vídeo.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exemplos de uso:
  streamfinder https://exemplo.com/video
  streamfinder https://exemplo.com/filme --subtitles --json
  streamfinder https://exemplo.com/live --browser chrome --no-headless
        """,
    )

    parser.add_argument(
        "urls",
        nargs="*",
        help="Uma ou mais URLs de páginas de vídeo.",
    )

    # Opções de navegador
    browser_group = parser.add_argument_group("Opções de Navegador")
    browser_group.add_argument(
        "--browser",
        choices=["chromium", "chrome", "edge"],
        default=None,
        help="Navegador a ser usado (padrão: chromium ou STREAMFINDER_BROWSER).",
    )
    browser_group.add_argument(
        "--executable-path",
        default=None,
        help="Caminho para o executável do navegador.",
    )
    browser_group.add_argument(
        "--ws-endpoint",
        default=None,
        help="Endpoint CDP de um navegador já em execução.",
    )

    # Opções de execução
    exec_group = parser.add_argument_group("Opções de Execução")
    exec_group.add_argument(
        "--no-headless",
        action="store_false",
        dest="headless",
        default=None,
        help="Executa o navegador com interface gráfica.",
    )
    exec_group.add_argument(
        "--timeout",
        type=int,
        default=None,
        help="Tempo limite de navegação em milissegundos (padrão: 30000).",
    )
    exec_group.add_argument(
        "--no-block",
        action="store_false",
        dest="block",
        default=None,
        help="Não bloqueia imagens, CSS, fontes e mídia.",
    )
    exec_group.add_argument(
        "--subtitles",
        action="store_true",
        default=False,
        help="Também coleta legendas (.vtt/.srt), incluindo as declaradas no HTML.",
    )
    exec_group.add_argument(
        "--allow-private",
        action="store_true",
        default=False,
        help="Permite URLs de hosts locais ou de rede privada.",
    )
    exec_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Aumenta o nível de log (-v: info, -vv: debug).",
    )

    # Saída
    output_group = parser.add_argument_group("Saída")
    output_group.add_argument(
        "--output", "-o",
        help="Caminho para salvar o arquivo .m3u resultante.",
    )
    output_group.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Imprime os resultados em JSON.",
    )

    return parser


def build_config(args: argparse.Namespace, base: Optional[SessionConfig] = None) -> SessionConfig:
    """Aplica as opções da linha de comando sobre a configuração do ambiente."""
    config = base or SessionConfig.from_env()
    changes: Dict[str, Any] = {}
    if args.browser:
        changes["browser"] = args.browser
    if args.executable_path:
        changes["executable_path"] = args.executable_path
    if args.ws_endpoint:
        changes["ws_endpoint"] = args.ws_endpoint
    if args.headless is not None:
        changes["headless"] = args.headless
    if args.timeout is not None:
        changes["navigation_timeout"] = args.timeout
    if args.block is not None:
        changes["block_heavy_resources"] = args.block
    return config.replace(**changes)


async def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if not args.urls:
        parser.print_help()
        err_console.print("\n[bold red]Erro:[/] Forneça ao menos uma URL.")
        return 2

    extractor = StreamExtractor(config=build_config(args))

    results = []

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=err_console,
    ) as progress:
        for url in args.urls:
            res = await process_url(
                url, extractor, progress,
                with_subtitles=args.subtitles,
                allow_private=args.allow_private,
            )
            results.append(res)

    if args.output:
        written = write_m3u(results, args.output)
        err_console.print(
            f"\n[bold green]✓[/] Arquivo '[bold cyan]{args.output}[/]' gerado com {written} entrada(s)."
        )

    if args.json:
        console.print_json(json.dumps(results))
    elif not args.output:
        console.print("\n[bold cyan]Resultados da Extração:[/]")
        for res in results:
            if res["error"]:
                continue
            console.print(f"\n[bold]Página:[/] {res['source_url']}")
            if res["urls"]:
                for u in res["urls"]:
                    console.print(f"  [green]- {u}[/]")
            else:
                console.print("  [red][-] Nenhum manifesto .m3u8 encontrado.[/]")
            for sub in res["subtitles"]:
                console.print(f"  [yellow]- legenda: {sub['url']}[/]")

    return 1 if all(res["error"] for res in results) else 0


def main_entry():
    raise SystemExit(asyncio.run(main()))


if __name__ == "__main__":
    main_entry()
