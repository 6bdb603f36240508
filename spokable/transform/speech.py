"""Speech markup for reconciled text.

Optional last step of a run: insert pauses or SSML break tags so a
text-to-speech engine paces paragraphs and sentences.
"""

from __future__ import annotations

import re

from .core.enums import SpeechMarkup

_PARAGRAPH_BREAK = re.compile(r"\n\n")
# Sentence ends inside a line; paragraph breaks are handled separately
_SENTENCE_END = re.compile(r"([.!?])[ \t]+")


def insert_pauses(text: str) -> str:
    """Add ellipsis pauses after sentences and paragraphs."""
    text = _SENTENCE_END.sub(r"\1 ... ", text)
    return _PARAGRAPH_BREAK.sub("... \n\n", text)


def insert_ssml(text: str) -> str:
    """Add SSML ``<break>`` tags: 500ms between sentences, 1s between paragraphs."""
    text = _SENTENCE_END.sub(r'\1<break time="500ms"/> ', text)
    return _PARAGRAPH_BREAK.sub('<break time="1s"/>\n\n', text)


def apply_markup(text: str, markup: SpeechMarkup) -> str:
    if markup == SpeechMarkup.SSML:
        return insert_ssml(text)
    if markup == SpeechMarkup.PAUSES:
        return insert_pauses(text)
    return text
