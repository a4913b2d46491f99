"""bisub CLI entry point."""

from typing import Annotated, Optional

import typer
from dotenv import load_dotenv

from bisub import __version__
from bisub.cli.analyze import analyze, report
from bisub.cli.cache import cache
from bisub.cli.merge import merge
from bisub.cli.translate import translate
from bisub.cli.vocab import vocab

app = typer.Typer(
    name="bisub",
    help="bisub: bilingual subtitles and vocabulary for English videos.",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"bisub {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-V",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
) -> None:
    """bisub: bilingual subtitles and vocabulary for English videos."""
    # API keys (DEEPSEEK_API_KEY, OPENAI_API_KEY, ...) may live in .env;
    # shell exports take precedence
    load_dotenv(override=False)


app.command("merge")(merge)
app.command("translate")(translate)
app.command("analyze")(analyze)
app.command("report")(report)
app.add_typer(vocab, name="vocab")
app.add_typer(cache, name="cache")
