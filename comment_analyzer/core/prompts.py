"""
Prompt templates for translation, batch summaries and the merge step.
"""

from typing import Iterable, List

from comment_analyzer.models.schemas import BatchSummary, Comment, SummaryStrategy

translation_template = """
    You are a professional translator. Translate each line the user sends into {language},
    keeping the original meaning and tone. If a line is already in {language}, return it unchanged.
    Return exactly one translated line per input line, in the same order,
    with no numbering and no extra explanations.
    """

# The five analytical dimensions, in section order
SECTION_TITLES = [
    "Audience likes",
    "Audience dislikes",
    "Audience expectations",
    "Improvement suggestions",
    "Audience profile",
]

strategy_intros = {
    SummaryStrategy.FULL: "Analyze the following {count} YouTube video comments and summarize them comprehensively.",
    SummaryStrategy.POPULAR: "Analyze the following most-liked YouTube video comments (sorted by likes), "
                             "focusing on the most endorsed opinions.",
    SummaryStrategy.RECENT: "Analyze the following most recent YouTube video comments, "
                            "focusing on current feedback trends.",
    SummaryStrategy.SENTIMENT: "Analyze the following YouTube video comments, grouped as positive, "
                               "negative and neutral, and summarize the sentiment behind them.",
    SummaryStrategy.POSITIVE: "Analyze the following positive YouTube video comments and summarize "
                              "what viewers enjoy.",
    SummaryStrategy.NEGATIVE: "Analyze the following negative YouTube video comments and summarize "
                              "complaints and suggestions.",
    SummaryStrategy.NEUTRAL: "Analyze the following neutral YouTube video comments and summarize "
                             "the objective feedback.",
}

summary_template = """
    {intro}

    Answer in {language} and cover exactly these 5 numbered sections, in this order:

    1. {s1}: what viewers appreciate most and which kinds of comments receive the most likes
    2. {s2}: the main complaints, criticism and pain points
    3. {s3}: the content and topics viewers want to see next
    4. {s4}: concrete, actionable suggestions for the creator based on the feedback
    5. {s5}: who the audience is (interests, background, needs) and how feedback differs between groups

    Start each section on its own line with its number, e.g. "1. {s1}".
    Support every point with evidence from the comments and avoid vague statements.
    """

batch_note = "Note: this is one batch of a larger comment set, keep the summary concise."

merge_template = """
    Merge the following {batch_count} partial analyses of YouTube comments into one complete report.

    Total comments: {total}
    Strategy: {strategy}

    Answer in {language}. Keep the same 5 numbered sections:
    1. {s1}
    2. {s2}
    3. {s3}
    4. {s4}
    5. {s5}

    Combine the information of every batch, avoid repetition and highlight the main trends and consensus.
    """


def _section_kwargs() -> dict:
    return {f"s{i + 1}": title for i, title in enumerate(SECTION_TITLES)}


def build_translation_prompt(language: str) -> str:
    return translation_template.format(language=language)


def build_summary_prompt(strategy: SummaryStrategy, language: str, count: int, batch: bool = False) -> str:
    intro = strategy_intros.get(strategy, strategy_intros[SummaryStrategy.FULL]).format(count=count)
    prompt = summary_template.format(intro=intro, language=language, **_section_kwargs())
    if batch:
        prompt += "\n    " + batch_note
    return prompt


def build_merge_prompt(strategy: SummaryStrategy, language: str, total: int, batch_count: int) -> str:
    return merge_template.format(
        batch_count=batch_count,
        total=total,
        strategy=strategy.value,
        language=language,
        **_section_kwargs(),
    )


def format_comments_for_ai(comments: Iterable[Comment]) -> str:
    """One line per comment: author, likes and (translated) text."""
    lines = []
    for comment in comments:
        text = comment.translated_text or comment.text_display or comment.text_original
        author = comment.author_display_name or "Anonymous"
        lines.append(f"[{author}] (👍{comment.like_count or 0}) {text}")
    return "\n".join(lines)


def format_batch_summaries(batch_summaries: List[BatchSummary]) -> str:
    """Label each batch summary with its index and size."""
    return "\n\n".join(
        f"## Batch {b.batch_index} ({b.comment_count} comments)\n{b.summary}" for b in batch_summaries
    )
