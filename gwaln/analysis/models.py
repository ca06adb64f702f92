"""
Input data models for the analyzer: topics and structured articles.

Structured articles are produced by the external wiki/grok parsers and are
treated as immutable input. ``from_dict`` accepts the parser's JSON snapshot
(``<topic>.parsed.json``) as well as the flatter shape used in tests.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Topic:
    id: str
    title: str
    wikipedia_slug: str
    grokipedia_slug: str
    category: Optional[str] = None
    ual: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Topic":
        return cls(
            id=str(data['id']),
            title=str(data.get('title') or data['id']),
            wikipedia_slug=str(data.get('wikipedia_slug') or data['id']),
            grokipedia_slug=str(data.get('grokipedia_slug') or data['id']),
            category=data.get('category'),
            ual=data.get('ual'),
        )


def topic_urls(topic: Topic) -> Dict[str, str]:
    """Canonical article URLs for both sources of a topic."""
    return {
        'wikipedia': f"https://en.wikipedia.org/wiki/{topic.wikipedia_slug}",
        'grokipedia': f"https://grokipedia.com/{topic.grokipedia_slug.lstrip('/')}",
    }


@dataclass(frozen=True)
class Section:
    section_id: str
    heading: str
    text: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Section":
        text = data.get('text')
        if text is None:
            # Parser snapshots nest text as paragraphs -> sentences
            sentences = []
            for paragraph in data.get('paragraphs', []) or []:
                for sentence in paragraph.get('sentences', []) or []:
                    value = (sentence.get('text') or '').strip()
                    if value:
                        sentences.append(value)
            text = " ".join(sentences)
        return cls(
            section_id=str(data.get('section_id', '')),
            heading=data.get('heading') or '',
            text=text,
        )


@dataclass(frozen=True)
class Claim:
    claim_id: str
    text: str
    numbers: Tuple[Dict[str, Any], ...] = ()
    entities: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Claim":
        entities = []
        for entity in data.get('entities', []) or []:
            label = entity.get('label') if isinstance(entity, dict) else entity
            if label:
                entities.append(str(label))
        return cls(
            claim_id=str(data.get('claim_id', '')),
            text=data.get('text') or '',
            numbers=tuple(n for n in (data.get('numbers') or []) if isinstance(n, dict)),
            entities=tuple(entities),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'claim_id': self.claim_id,
            'text': self.text,
            'numbers': [dict(n) for n in self.numbers],
            'entities': list(self.entities),
        }


@dataclass(frozen=True)
class StructuredArticle:
    title: str = ""
    sections: Tuple[Section, ...] = ()
    claims: Tuple[Claim, ...] = ()
    references: Tuple[str, ...] = ()
    lead: str = ""
    source: str = "unknown"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StructuredArticle":
        lead = data.get('lead') or ''
        if isinstance(lead, dict):
            lead = Section.from_dict({'paragraphs': lead.get('paragraphs', [])}).text

        references: List[str] = []
        for ref in data.get('references', []) or []:
            if isinstance(ref, str):
                url = ref
            else:
                normalized = ref.get('normalized') or {}
                url = normalized.get('url') or ref.get('url')
            if url:
                references.append(str(url).strip())

        return cls(
            title=data.get('title') or '',
            sections=tuple(Section.from_dict(s) for s in data.get('sections', []) or []),
            claims=tuple(Claim.from_dict(c) for c in data.get('claims', []) or []),
            references=tuple(references),
            lead=lead,
            source=data.get('source') or 'unknown',
        )


def load_structured_article(path: Path) -> StructuredArticle:
    """
    Load a parser snapshot from disk.

    Raises:
        FileNotFoundError: If the snapshot does not exist
        json.JSONDecodeError: If the snapshot is not valid JSON
    """
    with open(path, 'r', encoding='utf-8') as f:
        return StructuredArticle.from_dict(json.load(f))
