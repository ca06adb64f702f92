"""
"Words to watch" categories used for keyword bias detection.

Categories follow the Wikipedia Manual of Style guidance named in each
``reference``. Patterns are compiled once at import.
"""

import re
from dataclasses import dataclass
from typing import Pattern, Tuple


@dataclass(frozen=True)
class BiasPattern:
    label: str
    regex: Pattern


@dataclass(frozen=True)
class BiasCategory:
    id: str
    label: str
    description: str
    reference: str
    severity: int
    patterns: Tuple[BiasPattern, ...]


def _word(term: str) -> BiasPattern:
    return BiasPattern(term, re.compile(r"\b" + re.escape(term) + r"\b", re.IGNORECASE))


def _words(*terms: str) -> Tuple[BiasPattern, ...]:
    return tuple(_word(term) for term in terms)


BIAS_CATEGORIES: Tuple[BiasCategory, ...] = (
    BiasCategory(
        id='puffery',
        label='Peacock / puffery terms',
        description='Replace promotional adjectives with sourced facts (Wikipedia MOS:PUFFERY).',
        reference='MOS:PUFFERY',
        severity=2,
        patterns=_words(
            'legendary', 'iconic', 'visionary', 'outstanding', 'celebrated',
            'award-winning', 'landmark', 'cutting-edge', 'innovative', 'revolutionary',
            'extraordinary', 'brilliant', 'renowned', 'remarkable', 'prestigious',
            'world-class', 'virtuoso', 'pioneering', 'phenomenal', 'prominent',
            'best', 'greatest',
        ),
    ),
    BiasCategory(
        id='contentious_labels',
        label='Contentious labels',
        description='Value-laden labels need neutral wording or attribution (Wikipedia MOS:LABEL).',
        reference='MOS:LABEL',
        severity=3,
        patterns=_words(
            'cult', 'racist', 'sexist', 'homophobic', 'transphobic', 'misogynistic',
            'extremist', 'denialist', 'terrorist', 'freedom fighter', 'bigot', 'myth',
            'neo-nazi', 'controversial', 'perverted', 'fundamentalist', 'heretic',
            'sect', 'conspiracy',
        ) + (
            BiasPattern('-gate suffix', re.compile(r"\b[a-z0-9]+gate\b", re.IGNORECASE)),
            BiasPattern('pseudo- prefix', re.compile(r"\bpseudo[a-z0-9-]+\b", re.IGNORECASE)),
        ),
    ),
    BiasCategory(
        id='weasel_words',
        label='Weasel wording',
        description='Vague attributions should be replaced with concrete sourcing (Wikipedia MOS:WEASEL).',
        reference='MOS:WEASEL',
        severity=2,
        patterns=_words(
            'some people say', 'many people', 'many scholars', 'it is believed',
            'many are of the opinion', 'most feel', 'experts declare',
            'it is widely thought', 'it is often said', 'scientists claim',
            'research has shown', 'it is often reported', 'officially', 'widely regarded',
        ),
    ),
    BiasCategory(
        id='expressions_of_doubt',
        label='Expressions of doubt',
        description="Terms such as 'alleged' or 'so-called' should be sourced (Wikipedia MOS:ALLEGED).",
        reference='MOS:ALLEGED',
        severity=2,
        patterns=_words('supposed', 'apparent', 'purported', 'alleged', 'accused', 'so-called'),
    ),
    BiasCategory(
        id='editorializing',
        label='Editorializing adverbs',
        description="Avoid instructive adverbs like 'clearly' or 'of course' unless quoting a source "
                    "(Wikipedia MOS:EDITORIAL).",
        reference='MOS:EDITORIAL',
        severity=1,
        patterns=_words(
            'notably', 'interestingly', 'essentially', 'utterly', 'actually', 'only',
            'clearly', 'obviously', 'naturally', 'of course', 'fortunately',
            'unfortunately', 'happily', 'sadly', 'tragically', 'arguably',
        ),
    ),
)

# Speculative phrasing that marks a sentence as a hallucination candidate
SPECULATIVE_KEYWORDS = (
    'apparently', 'reportedly', 'rumored', 'rumoured', 'supposedly', 'allegedly',
    'unverified', 'unconfirmed', 'citation needed', 'claimed to be', 'claims to be',
    'some say', 'some believe', 'it is said', 'it is believed', 'according to rumors',
    'according to rumours', 'may have', 'might have', 'possibly', 'perhaps', 'uncertain',
)
