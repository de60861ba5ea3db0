"""
Pipeline Module
-------------
Coordinates the AI enrichment stage: one provider call and one store write
per question, resuming cleanly after a crash.
"""

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from tqdm import tqdm

from db.store import QuestionStore
from modules.llm_interface import AIProvider, ProviderError
from modules.questions import AIResult, Question
from modules.response_decoder import decode

logger = logging.getLogger(__name__)


@dataclass
class EnrichmentStats:
    processed: int = 0
    skipped: int = 0
    failed: int = 0


class EnrichmentPipeline:
    """Enriches questions that the store does not yet hold AI results for."""

    def __init__(
        self,
        ai_provider: AIProvider,
        store: QuestionStore,
        decoder: Callable[[str], AIResult | None] = decode,
        show_progress: bool = True,
    ):
        """
        Initialize the pipeline.

        Args:
            ai_provider: Provider that turns raw question text into a reply
            store: Durable store; also the source of truth for skipping
            decoder: Turns a reply into an AIResult (or None)
            show_progress: Display a tqdm progress bar
        """
        self.ai_provider = ai_provider
        self.store = store
        self.decoder = decoder
        self.show_progress = show_progress
        self.stats = EnrichmentStats()

    def enrich(self, question: Question) -> None:
        """
        Call the provider for one question and attach the decoded reply.

        The raw reply is kept even when it cannot be decoded.

        Raises:
            ProviderError: If the provider call fails
        """
        reply = self.ai_provider.run(question.raw)
        question.ai_raw = reply
        question.ai_result = self.decoder(reply)
        if question.ai_result is None:
            logger.warning(f"Could not decode AI reply for {question.header}; raw reply kept")

    def run(self, questions: Iterable[Question], limit: int | None = None) -> int:
        """
        Run the enrichment stage over questions in the given order.

        Args:
            questions: Questions to enrich
            limit: Stop after this many successful enrichments (skips don't count)

        Returns:
            Number of questions enriched in this run

        Raises:
            StoreError: If a question cannot be persisted
        """
        questions = list(questions)
        total = len(questions)
        self.stats = EnrichmentStats()
        start_time = time.time()
        logger.info(f"Starting enrichment of {total} questions (limit: {limit})")

        for index, question in enumerate(
            tqdm(questions, desc="Enriching questions", unit="question", disable=not self.show_progress),
            start=1,
        ):
            if limit is not None and self.stats.processed >= limit:
                logger.info(f"Reached limit of {limit} enriched questions")
                break

            if self.store.has_ai_result(question.header):
                self.stats.skipped += 1
                logger.info(
                    f"Skipped {self.stats.skipped}/{total} (already has AI results): {question.header}"
                )
                continue

            item_start = time.time()
            try:
                self.enrich(question)
            except ProviderError as e:
                self.stats.failed += 1
                logger.error(f"AI failed at {index}/{total} ({question.header}): {e}")
                continue

            # Persist immediately so a crash loses at most this item
            self.store.upsert(question)
            self.stats.processed += 1

            elapsed_ms = (time.time() - item_start) * 1000
            logger.info(
                f"AI processed {self.stats.processed}/{total} "
                f"(skipped {self.stats.skipped}) in {elapsed_ms:.0f} ms"
            )

        elapsed_time = time.time() - start_time
        logger.info(
            f"Enrichment completed in {elapsed_time:.2f} seconds: "
            f"{self.stats.processed} processed, {self.stats.skipped} skipped, "
            f"{self.stats.failed} failed"
        )
        return self.stats.processed
