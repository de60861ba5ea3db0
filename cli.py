"""
Command Line Interface
--------------------
Enrich scraped exam questions with an LLM and sync them to Anki.

    python cli.py ai   --out outdir --db az900.db --limit 20
    python cli.py anki --db az900.db --deck az-900
    python cli.py all  --out outdir --db az900.db --deck az-900
"""

import logging
import sys
import time
from pathlib import Path

import click

from config.settings import (
    ANKI_CONNECT_URL,
    DEFAULT_DB_PATH,
    DEFAULT_DECK_NAME,
    DEFAULT_INPUT_FILES,
    DEFAULT_LLM_PROVIDER,
    DEFAULT_MODEL_NAME,
    QUESTIONS_EXPORT_PATTERN,
    RECOVERY_DIR,
    configure_logging,
)
from db.store import QuestionStore, StoreError
from modules.llm_interface import AIConfig, LLMInterface, ProviderError, create_ai_provider
from modules.note_renderer import NoteRenderer
from modules.questions import load_questions_json, save_questions_json
from modules.sync_coordinator import SyncCoordinator, SyncError
from modules.text_extractor import TextExtractor
from utils.pipeline import EnrichmentPipeline

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    configure_logging()
    # Set the log level based on verbose flag
    logging.getLogger().setLevel(logging.DEBUG if verbose else logging.INFO)


def _fail(message: str) -> None:
    click.echo(click.style(f"❌ {message}", fg="red"))
    sys.exit(1)


def resolve_output_path(out: str | Path, processed_count: int) -> Path:
    """
    Turn the --out argument into a file path.

    A value without a file extension is treated as a folder and a file named
    after the processed count is created inside it.
    """
    target = Path(out)
    if not target.suffix:
        target.mkdir(parents=True, exist_ok=True)
        return target / QUESTIONS_EXPORT_PATTERN.format(count=max(1, processed_count))

    target.parent.mkdir(parents=True, exist_ok=True)
    return target


def _open_store(db_path: str) -> QuestionStore:
    store = QuestionStore(db_path)
    store.ensure_ready()
    return store


def run_ai_stage(
    input_files: list[str],
    db_path: str,
    limit: int | None,
    llm: str,
    out: str | None = None,
    show_progress: bool = True,
) -> int:
    """Extract questions, enrich the ones without AI results and optionally export them."""
    questions = TextExtractor().load_files(input_files)
    logger.info(f"Loaded questions: {len(questions)}")

    store = _open_store(db_path)
    try:
        ai_provider = create_ai_provider(AIConfig.from_settings(llm))
        pipeline = EnrichmentPipeline(ai_provider, store, show_progress=show_progress)
        processed = pipeline.run(questions, limit=limit)
        logger.info(f"Database now holds {store.count()} questions")

        if out:
            output_path = resolve_output_path(out, processed)
            save_questions_json(store.get_all(only_with_ai=True), output_path)
            logger.info(f"Saved AI results to: {output_path}")
        else:
            logger.info("AI results stored in SQLite only (no JSON export requested).")
    finally:
        store.close()

    return processed


def run_anki_stage(
    db_path: str,
    deck: str,
    model: str,
    tags: list[str],
    url: str,
    input_json: str | None = None,
    export_path: str | None = None,
) -> int:
    """Render stored (or JSON-loaded) questions and push or export them."""
    if input_json:
        questions = load_questions_json(input_json)
        logger.info(f"Loaded from JSON: {len(questions)}")
    else:
        store = _open_store(db_path)
        try:
            questions = store.get_all(only_with_ai=True)
        finally:
            store.close()
        logger.info(f"Loaded from DB: {len(questions)}")

    questions = [q for q in questions if q.has_any_ai()]
    logger.info(f"Questions with AI responses: {len(questions)}")
    if not questions:
        logger.info("No questions with AI responses to sync to Anki.")
        return 0

    notes = NoteRenderer(deck_name=deck, model_name=model, tags=tags).render_all(questions)
    coordinator = SyncCoordinator(recovery_dir=RECOVERY_DIR)

    if export_path:
        coordinator.export_only(notes, export_path)
        return len(notes)

    coordinator.push(notes, url)
    logger.info("Notes pushed to Anki successfully.")
    return len(notes)


input_option = click.option(
    "--input", "-f", "input_files", multiple=True, type=click.Path(),
    help="Scraped question text file (repeatable, read in order)",
)
db_option = click.option("--db", "db_path", default=DEFAULT_DB_PATH, show_default=True, help="SQLite database path")
verbose_option = click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
llm_option = click.option(
    "--llm",
    type=click.Choice(["openai", "anthropic"]),
    default=DEFAULT_LLM_PROVIDER,
    show_default=True,
    help="LLM provider to use",
)
limit_option = click.option("--limit", type=click.IntRange(min=0), help="Maximum number of questions to enrich")
out_option = click.option("--out", "-o", type=click.Path(), help="Folder or .json file for the enriched questions")
progress_option = click.option("--no-progress", is_flag=True, help="Hide the progress bar")
in_option = click.option("--in", "-i", "input_json", type=click.Path(), help="Question JSON file to use instead of the database")
deck_option = click.option("--deck", default=DEFAULT_DECK_NAME, show_default=True, help="Anki deck name")
model_option = click.option("--model", default=DEFAULT_MODEL_NAME, show_default=True, help="Anki note type")
tag_option = click.option("--tag", "tags", multiple=True, help="Extra tag for every note (repeatable)")
url_option = click.option("--url", default=ANKI_CONNECT_URL, show_default=True, help="AnkiConnect URL")
export_option = click.option("--export", "export_path", type=click.Path(), help="Write notes to this JSON file instead of pushing")


@click.group()
def cli():
    """
    AZ-900 question enricher - turn scraped exam questions into Anki flashcards.
    """
    pass


def _ai(input_files, db_path, limit, llm, out, no_progress) -> int:
    files = list(input_files) or DEFAULT_INPUT_FILES
    missing = [f for f in files if not Path(f).exists()]
    if missing:
        _fail(f"Input file(s) not found: {', '.join(missing)}")

    start_time = time.time()
    try:
        processed = run_ai_stage(files, db_path, limit, llm, out=out, show_progress=not no_progress)
    except (StoreError, ValueError, ProviderError) as e:
        logger.error(f"AI stage failed: {e}")
        _fail(f"AI stage failed: {e}")

    elapsed_time = time.time() - start_time
    click.echo(
        click.style(f"✅ Enriched {processed} questions in {elapsed_time:.2f} seconds", fg="green")
    )
    return processed


def _anki(db_path, deck, model, tags, url, input_json, export_path) -> None:
    try:
        count = run_anki_stage(
            db_path, deck, model, list(tags), url,
            input_json=input_json, export_path=export_path,
        )
    except SyncError as e:
        logger.error(f"Failed to push notes to Anki: {e}")
        if e.recovery_path:
            click.echo(f"Notes saved to '{e.recovery_path}' for manual import into Anki.")
        _fail(str(e))
    except (StoreError, ValueError, OSError) as e:
        logger.error(f"Anki stage failed: {e}")
        _fail(f"Anki stage failed: {e}")

    if export_path:
        click.echo(click.style(f"✅ Exported {count} notes to {export_path}", fg="green"))
    else:
        click.echo(click.style(f"✅ Synced {count} notes to Anki", fg="green"))


@cli.command()
@input_option
@db_option
@limit_option
@llm_option
@out_option
@progress_option
@verbose_option
def ai(input_files, db_path, limit, llm, out, no_progress, verbose):
    """
    Enrich scraped questions with the LLM and store the results.
    """
    _setup_logging(verbose)
    _ai(input_files, db_path, limit, llm, out, no_progress)


@cli.command()
@in_option
@db_option
@deck_option
@model_option
@tag_option
@url_option
@export_option
@verbose_option
def anki(input_json, db_path, deck, model, tags, url, export_path, verbose):
    """
    Render enriched questions as notes and push them to Anki.
    """
    _setup_logging(verbose)
    _anki(db_path, deck, model, tags, url, input_json, export_path)


@cli.command(name="all")
@input_option
@in_option
@db_option
@limit_option
@llm_option
@out_option
@progress_option
@deck_option
@model_option
@tag_option
@url_option
@export_option
@verbose_option
def all_stages(
    input_files, input_json, db_path, limit, llm, out, no_progress,
    deck, model, tags, url, export_path, verbose,
):
    """
    Run the AI stage, then the Anki stage.
    """
    _setup_logging(verbose)
    _ai(input_files, db_path, limit, llm, out, no_progress)
    _anki(db_path, deck, model, tags, url, input_json, export_path)


@cli.command()
@llm_option
def check_api(llm):
    """
    Check if the LLM provider is configured correctly.
    """
    try:
        llm_interface = LLMInterface(AIConfig.from_settings(llm))

        # Simple test prompt
        response = llm_interface.generate_completion(
            prompt="Respond with the text 'API is working correctly' if you can read this.",
            system_prompt="You are a test assistant.",
        )
    except (ProviderError, ValueError) as e:
        _fail(f"{llm.upper()} API test failed: {e}")

    if "API is working correctly" in response:
        click.echo(click.style(f"✅ {llm.upper()} API is configured correctly", fg="green"))
    else:
        _fail(f"{llm.upper()} API test failed: Unexpected response")


if __name__ == "__main__":
    cli()
