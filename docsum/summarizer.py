"""
summarizer.py

LLM-backed summary generation and improvement.

Extracted text goes in, HTML comes out. Requests go through
langchain-groq's ChatGroq; retries on rate limits are left to the
client's own ``max_retries``. Without a GROQ_API_KEY (or with
DOCSUM_USE_MOCK_AI=true) canned summaries are returned instead.
"""

import logging
import re
from typing import List

import groq
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_groq import ChatGroq

from . import config, prompts

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "...[truncated]"


class SummarizationError(Exception):
    """Raised when the LLM call fails or returns nothing usable."""

    pass


async def generate_summary(text: str) -> str:
    """
    Generate an HTML summary of extracted document text.

    Input longer than config.MAX_INPUT_CHARS is truncated.
    """
    if config.USE_MOCK_AI:
        logger.info("Using mock mode for AI summary")
        return _mock_summary(text)

    if len(text) > config.MAX_INPUT_CHARS:
        text = text[: config.MAX_INPUT_CHARS] + TRUNCATION_MARKER

    messages = [
        SystemMessage(content=prompts.SUMMARY_SYSTEM_PROMPT),
        HumanMessage(content=prompts.SUMMARY_USER_PROMPT.format(text=text)),
    ]

    try:
        summary = await _call_llm(messages)
    except SummarizationError as e:
        logger.error("Error generating summary: %s", e)
        raise SummarizationError(f"Failed to generate summary: {e}") from e

    logger.info("Summary generated (%d chars)", len(summary))
    return summary


async def improve_summary(current_content: str, custom_instructions: str = "") -> str:
    """
    Rewrite an HTML summary, optionally following user instructions.

    The current content is reduced to plain text before it is sent.
    """
    custom_instructions = custom_instructions.strip()

    if config.USE_MOCK_AI:
        logger.info(
            "Using mock mode for AI improvement (instructions: %s)",
            custom_instructions or "none",
        )
        return _mock_improvement(current_content, custom_instructions)

    summary = html_to_text(current_content)

    if custom_instructions:
        messages = [
            SystemMessage(content=prompts.IMPROVE_WITH_INSTRUCTIONS_SYSTEM_PROMPT),
            HumanMessage(
                content=prompts.IMPROVE_WITH_INSTRUCTIONS_USER_PROMPT.format(
                    instructions=custom_instructions, summary=summary
                )
            ),
        ]
    else:
        messages = [
            SystemMessage(content=prompts.IMPROVE_SYSTEM_PROMPT),
            HumanMessage(content=prompts.IMPROVE_USER_PROMPT.format(summary=summary)),
        ]

    try:
        improved = await _call_llm(messages)
    except SummarizationError as e:
        logger.error("Error improving summary: %s", e)
        raise SummarizationError(f"Failed to improve summary: {e}") from e

    logger.info("Summary improved (%d chars)", len(improved))
    return improved


def html_to_text(html: str) -> str:
    """Strip tags, keeping paragraph and line breaks as newlines."""
    text = re.sub(r"<br\s*/?>", "\n", html, flags=re.IGNORECASE)
    text = re.sub(r"</p>", "\n", text, flags=re.IGNORECASE)
    text = re.sub(r"<[^>]*>", "", text)
    return text.strip()


def ensure_html(content: str) -> str:
    """Wrap plain model output in paragraphs if it carries no block markup."""
    if "<p>" in content or "<ul>" in content:
        return content
    body = content.replace("\n\n", "</p><p>").replace("\n", "<br>")
    return f"<p>{body}</p>"


def _get_llm() -> ChatGroq:
    if not config.GROQ_API_KEY:
        raise SummarizationError(
            "Groq API key not found. Please add GROQ_API_KEY to your .env file."
        )
    return ChatGroq(
        model_name=config.LLM_MODEL,
        temperature=config.LLM_TEMPERATURE,
        max_tokens=config.LLM_MAX_TOKENS,
        max_retries=config.LLM_MAX_RETRIES,
        api_key=config.GROQ_API_KEY,
    )


async def _call_llm(messages: List[BaseMessage]) -> str:
    llm = _get_llm()

    try:
        response = await llm.ainvoke(messages)
    except groq.AuthenticationError as e:
        raise SummarizationError("Invalid Groq API key. Please check your credentials.") from e
    except groq.RateLimitError as e:
        raise SummarizationError(
            "Groq rate limit exceeded. Please try again in a few minutes."
        ) from e
    except groq.APIConnectionError as e:
        raise SummarizationError(
            "Network error: Unable to connect to the Groq API. "
            "Please check your internet connection."
        ) from e
    except groq.APIStatusError as e:
        if e.status_code in (500, 502, 503):
            raise SummarizationError("Groq service error. Please try again in a moment.") from e
        raise SummarizationError(f"Groq API error: {e.status_code} {e.message}") from e

    content = response.content if isinstance(response.content, str) else ""
    content = content.strip()
    if not content:
        raise SummarizationError("Model returned an empty response")

    return ensure_html(content)


def _mock_summary(text: str) -> str:
    preview = re.sub(r"\s+", " ", text[:200]).strip()
    ellipsis = "..." if len(text) > 200 else ""
    return f"""<p><strong>Document Summary</strong></p>
<p>This document contains important information regarding {preview}{ellipsis}</p>
<p><strong>Key Points:</strong></p>
<ul>
  <li>Main topic and context identified from the source material</li>
  <li>Critical findings and central arguments presented clearly</li>
  <li>Actionable recommendations and strategic conclusions highlighted</li>
  <li>Supporting evidence and relevant details appropriately integrated</li>
</ul>
<p>The content has been analyzed and summarized to provide a concise overview while preserving essential information and maintaining professional tone.</p>"""


def _mock_improvement(current_content: str, custom_instructions: str) -> str:
    plain = html_to_text(current_content)
    preview = re.sub(r"\s+", " ", plain[:150]).strip()
    ellipsis = "..." if len(plain) > 150 else ""
    instruction_note = (
        f"<p><em>Improvements applied: {custom_instructions}</em></p>\n"
        if custom_instructions
        else ""
    )
    return f"""<p><strong>Enhanced Document Summary</strong></p>
{instruction_note}<p>This refined analysis presents {preview}{ellipsis} with improved clarity and professional structure.</p>
<p><strong>Key Highlights:</strong></p>
<ul>
  <li>Core concepts articulated with enhanced precision and flow</li>
  <li>Critical insights presented with improved readability and impact</li>
  <li>Strategic conclusions refined for maximum clarity and actionability</li>
</ul>"""
