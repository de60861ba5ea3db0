"""
Prompt Templates Module
-----------------------
The fixed instruction template sent with every scraped question.
"""

import json
from dataclasses import dataclass


@dataclass(frozen=True)
class PromptTemplate:
    """A prompt template with system and user components."""
    name: str
    description: str
    system_prompt: str
    user_prompt_template: str

    def format_user_prompt(self, content: str) -> str:
        return self.user_prompt_template.format(content=content)


# =============================================================================
# Question Enrichment Prompt
# =============================================================================

ENRICHMENT_OUTPUT_FORMAT = {
    "question": "<Insert the full exam-style question here>",
    "options": {
        "A": "<Option A>",
        "B": "<Option B>",
        "C": "<Option C>",
        "D": "<Option D>",
    },
    "correctAnswer": "<Letter of the correct answer>",
    "correctAnswerText": "<Full text of the correct answer>",
    "topic": "<Topic name>",
    "explanation": "<Brief explanation of why this is the correct answer>",
    "notes": [
        "<Optional note or tip 1>",
        "<Optional note or tip 2>",
    ],
}

ENRICHMENT_SYSTEM = f"""
Generate an AZ-900 exam question in this raw JSON format:

{json.dumps(ENRICHMENT_OUTPUT_FORMAT, indent=2)}

Ensure the JSON is valid and ready to parse. Make the question exam-style and Azure accurate.
"""

ENRICHMENT_PROMPT = PromptTemplate(
    name="question_enrichment",
    description="Turns a scraped exam question into structured JSON study content",
    system_prompt=ENRICHMENT_SYSTEM.strip(),
    # The scraped text is sent as-is
    user_prompt_template="{content}",
)
