"""
Deterministic question synthesis used when no language model is available.

Every generated question is answerable from the chosen subject token alone:
true/false statements are always true, matching and ordering use small
fixed canonical lists, and multiple-choice distractors are drawn from the
vocabulary minus the subject and its related terms.
"""
import logging
import random
import re
from typing import Callable, Dict, List, Optional, Sequence

from app.core.agents.quiz.schemas import SourceChunk
from app.schemas.question import (
    ClozeQuestion,
    MatchQuestion,
    McqQuestion,
    MsqQuestion,
    OrderQuestion,
    QuestionBase,
    QuestionKind,
    QuestionSource,
    ShortQuestion,
    TrueFalseQuestion,
)

logger = logging.getLogger(__name__)

VOCABULARY = [
    "HTTP", "TCP", "UDP", "DNS", "REST", "SOAP", "JWT", "Redis", "MongoDB", "Kafka",
    "gRPC", "GraphQL", "OAuth2", "TLS", "CDN", "S3", "JSON", "YAML", "XML",
]

RELATED: Dict[str, List[str]] = {
    "HTTP": ["REST", "TLS", "JSON", "CDN"],
    "TCP": ["UDP", "TLS"],
    "DNS": ["CDN", "HTTP"],
    "REST": ["HTTP", "JSON", "OAuth2"],
    "JWT": ["OAuth2", "HTTP"],
    "Redis": ["Kafka", "MongoDB"],
    "MongoDB": ["JSON", "Redis"],
    "Kafka": ["Redis", "JSON"],
    "gRPC": ["HTTP", "TLS"],
    "GraphQL": ["HTTP", "JSON"],
    "OAuth2": ["JWT", "HTTP"],
    "TLS": ["HTTP", "TCP"],
    "CDN": ["HTTP", "DNS"],
    "S3": ["JSON", "HTTP"],
    "JSON": ["HTTP", "REST", "GraphQL", "MongoDB"],
    "YAML": ["JSON", "XML"],
    "XML": ["SOAP", "HTTP"],
    "UDP": ["TCP"],
    "SOAP": ["HTTP", "XML"],
}

MATCH_LEFT = ["Protocol", "Database", "Message queue", "Data format"]
MATCH_RIGHT = ["HTTP", "MongoDB", "Kafka", "JSON"]
ORDER_ITEMS = ["Definition", "Example", "Advantages", "Disadvantages"]

CLOZE_MAX_LENGTH = 240

_LONG_WORD = re.compile(r"[A-Za-zÀ-ž0-9+#.]{3,}")

KindPolicy = Callable[[random.Random], QuestionKind]


def uniform_kind_policy(rng: random.Random) -> QuestionKind:
    """Pick any of the seven kinds with equal probability."""
    return rng.choice(list(QuestionKind))


def _unique(values: Sequence[str]) -> List[str]:
    return list(dict.fromkeys(values))


class FakeQuestionFactory:
    """
    Build one question of a given or random kind from a text chunk.

    Randomness comes from the injected ``rng``; kind selection is delegated
    to ``kind_policy`` so callers can pin or reweight it.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        kind_policy: KindPolicy = uniform_kind_policy,
    ):
        self.rng = rng or random.Random()
        self.kind_policy = kind_policy

    # ---------- subject selection ----------
    def subject_for(self, text: str) -> str:
        """Vocabulary term found in the text, else its first long word, else a random term."""
        for term in VOCABULARY:
            if re.search(rf"\b{re.escape(term)}\b", text, re.IGNORECASE):
                return term
        match = _LONG_WORD.search(text)
        if match:
            return match.group(0)
        return self.rng.choice(VOCABULARY)

    def _sample_distinct(self, pool: Sequence[str], k: int, avoid: Sequence[str] = ()) -> List[str]:
        candidates = [x for x in pool if x not in avoid]
        self.rng.shuffle(candidates)
        return candidates[:max(0, min(k, len(candidates)))]

    def _shuffled(self, values: Sequence[str]) -> List[str]:
        out = list(values)
        self.rng.shuffle(out)
        return out

    # ---------- public API ----------
    def make_question(
        self,
        text: str,
        source_file_id: Optional[str] = None,
        index: int = 0,
        kind: Optional[QuestionKind] = None,
        source_chunk_id: Optional[str] = None,
    ) -> QuestionBase:
        """
        Create one question.

        Args:
            text: Chunk text the question refers to
            source_file_id: Provenance file id
            index: Position of the chunk, used in prompts ("excerpt #n")
            kind: Forced kind; random per ``kind_policy`` when omitted
            source_chunk_id: Provenance chunk id

        Returns:
            A valid question of the chosen kind
        """
        token = self.subject_for(text)
        related = RELATED.get(token, [])
        distractor_pool = _unique([x for x in VOCABULARY if x != token and x not in related])
        source = QuestionSource(chunk_id=source_chunk_id, file_id=source_file_id)
        chosen = QuestionKind(kind) if kind else self.kind_policy(self.rng)
        builder = self._builders[chosen]
        return builder(self, token, related, distractor_pool, text, index, source)

    def make_batch(self, chunks: Sequence[SourceChunk], kind: Optional[QuestionKind] = None) -> List[QuestionBase]:
        """One question per chunk, in order."""
        return [
            self.make_question(
                c.text,
                source_file_id=c.file_id,
                index=i,
                kind=kind,
                source_chunk_id=c.id,
            )
            for i, c in enumerate(chunks)
        ]

    # ---------- per-kind builders ----------
    def _mcq(self, token, related, pool, text, idx, source):
        distractors = self._sample_distinct(pool, 3)
        options = self._shuffled([token, *distractors])[:4]
        return McqQuestion(
            text=f"Which term best describes excerpt #{idx + 1}?",
            options=options,
            correct_indices=[options.index(token)],
            source=source,
        )

    def _msq(self, token, related, pool, text, idx, source):
        # token plus one related term when there is one
        second = self.rng.choice(related) if related else None
        correct = _unique([token, *([second] if second else [])])
        distractors = self._sample_distinct(pool, max(0, 5 - len(correct)), avoid=correct)
        options = self._shuffled(_unique([*correct, *distractors]))[:5]
        indices = [options.index(c) for c in correct if c in options]
        return MsqQuestion(
            text=f"Select every term relevant to excerpt #{idx + 1}.",
            options=options,
            correct_indices=indices or [options.index(token)],
            source=source,
        )

    def _tf(self, token, related, pool, text, idx, source):
        return TrueFalseQuestion(
            text=f"\"{token} is mentioned or implied in excerpt #{idx + 1}.\"",
            correct_bool=True,
            source=source,
        )

    def _cloze(self, token, related, pool, text, idx, source):
        found = re.search(re.escape(token), text, re.IGNORECASE)
        if found:
            gapped = text[:found.start()] + "{{gap1}}" + text[found.end():]
            # keep the gap inside the trimmed window
            window_start = max(0, found.start() - CLOZE_MAX_LENGTH // 2)
            cloze_text = gapped[window_start:window_start + CLOZE_MAX_LENGTH].strip()
            if "{{gap1}}" not in cloze_text or len(cloze_text) < 8:
                cloze_text = f"Fill in the term from excerpt #{idx + 1}: {{{{gap1}}}}"
        else:
            cloze_text = "The {{gap1}} protocol works on top of the transport layer."
        return ClozeQuestion(text=cloze_text, cloze_answers=[token], source=source)

    def _short(self, token, related, pool, text, idx, source):
        return ShortQuestion(
            text=f"In one word: the key term of excerpt #{idx + 1}",
            acceptable_answers=_unique([token, token.lower()]),
            source=source,
        )

    def _match(self, token, related, pool, text, idx, source):
        # left[i] pairs with right[i]; the client shuffles the right column
        return MatchQuestion(
            text=f"Match the terms related to excerpt #{idx + 1}.",
            match_left=list(MATCH_LEFT),
            match_right=list(MATCH_RIGHT),
            source=source,
        )

    def _order(self, token, related, pool, text, idx, source):
        return OrderQuestion(
            text=f"Put the structure of the topic in logical order (excerpt #{idx + 1}).",
            order_items=list(ORDER_ITEMS),
            source=source,
        )

    _builders = {
        QuestionKind.MCQ: _mcq,
        QuestionKind.MSQ: _msq,
        QuestionKind.TF: _tf,
        QuestionKind.CLOZE: _cloze,
        QuestionKind.SHORT: _short,
        QuestionKind.MATCH: _match,
        QuestionKind.ORDER: _order,
    }
