"""
Question generator backed by an OpenAI chat model.

The model is forced to answer through a single function call whose
arguments carry a batch of questions. Two calling conventions are tried in
order (``tools`` then legacy ``functions``); each is retried once with
exponential backoff when the API reports rate limiting. The returned JSON
is validated as a whole, then every question is sanitized on its own and
dropped when it cannot meet its kind's minimums.

:meth:`QuestionGenerator.generate_from_chunks` never raises: an empty list
tells the caller to fall back to deterministic generation.
"""
import json
import logging
import math
import random
import re
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import openai
from openai import OpenAI
from pydantic import ValidationError

from app.core.agents.quiz.prompts import (
    EXCERPT_TEMPLATE,
    QUESTION_GENERATION_SYSTEM_PROMPT,
    QUESTION_GENERATION_USER_PROMPT_TEMPLATE,
)
from app.core.agents.quiz.schemas import (
    FUNCTION_NAME,
    RawPayload,
    SourceChunk,
    legacy_function_descriptor,
    tool_descriptor,
)
from app.schemas.question import QuestionBase, QuestionKind, count_gaps, parse_question

logger = logging.getLogger(__name__)

MAX_PROMPT_CHUNKS = 24
DEFAULT_MIX = "mcq:40, msq:20, tf:10, cloze:10, short:10, match:5, order:5"
EMPTY_MIX = "mcq:60, tf:20, msq:10, cloze:5, short:5"

# Newer model families only accept ``max_completion_tokens``
_MAX_COMPLETION_TOKENS_MODELS = re.compile(r"(^(gpt-5|o4|o3))|4o", re.IGNORECASE)


def token_limit_param(model: str) -> str:
    """Name of the output token limit parameter the model expects."""
    if _MAX_COMPLETION_TOKENS_MODELS.search(model):
        return "max_completion_tokens"
    return "max_tokens"


def is_rate_limited(error: BaseException) -> bool:
    return isinstance(error, openai.RateLimitError) or getattr(error, "status_code", None) == 429


def normalize_mix(mix: Optional[Mapping[Any, float]]) -> str:
    """
    Render a requested kind mix as percentages, e.g. ``"mcq:50, tf:50"``.

    ``None`` yields the default mcq-heavy mix; a mapping without any
    positive weight yields a simpler fallback mix.
    """
    if mix is None:
        return DEFAULT_MIX
    entries = []
    for kind, weight in mix.items():
        try:
            name = QuestionKind(kind).value
        except ValueError:
            logger.warning(f"Ignoring unknown question kind {kind!r} in mix")
            continue
        if isinstance(weight, bool) or not isinstance(weight, (int, float)) or weight <= 0:
            continue
        entries.append((name, weight))
    if not entries:
        return EMPTY_MIX
    total = sum(weight for _, weight in entries)
    return ", ".join(f"{kind}:{math.floor(100 * weight / total + 0.5)}" for kind, weight in entries)


def pick_diverse(chunks: Sequence[SourceChunk], k: int) -> List[SourceChunk]:
    """Take up to ``k`` chunks round-robin across source files."""
    if len(chunks) <= k:
        return list(chunks)
    by_file: Dict[str, List[SourceChunk]] = {}
    for chunk in chunks:
        by_file.setdefault(chunk.file_id or "_", []).append(chunk)
    queues = [list(group) for group in by_file.values()]
    picked: List[SourceChunk] = []
    while len(picked) < k:
        added = False
        for queue in queues:
            if not queue:
                continue
            picked.append(queue.pop(0))
            added = True
            if len(picked) == k:
                break
        if not added:
            break
    return picked


def safe_json(raw: str) -> Any:
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return {}


# ---------- Calling conventions ----------

def _first_message(completion: Any) -> Any:
    choices = getattr(completion, "choices", None) or []
    return getattr(choices[0], "message", None) if choices else None


class ToolCallConvention:
    """Modern ``tools`` + forced ``tool_choice`` request."""

    name = "tools"

    def request_options(self, max_items: int) -> Dict[str, Any]:
        return {
            "tools": [tool_descriptor(max_items)],
            "tool_choice": {"type": "function", "function": {"name": FUNCTION_NAME}},
        }

    def extract_arguments(self, completion: Any) -> str:
        tool_calls = getattr(_first_message(completion), "tool_calls", None) or []
        if not tool_calls:
            return "{}"
        function = getattr(tool_calls[0], "function", None)
        return str(getattr(function, "arguments", None) or "{}")


class LegacyFunctionConvention:
    """Deprecated ``functions`` + ``function_call`` request."""

    name = "functions"

    def request_options(self, max_items: int) -> Dict[str, Any]:
        return {
            "functions": [legacy_function_descriptor(max_items)],
            "function_call": {"name": FUNCTION_NAME},
        }

    def extract_arguments(self, completion: Any) -> str:
        function_call = getattr(_first_message(completion), "function_call", None)
        return str(getattr(function_call, "arguments", None) or "{}")


@dataclass(frozen=True)
class BackoffPolicy:
    """Retry budget per calling convention, applied to rate limiting only."""

    attempts: int = 2
    base_delay: float = 0.3
    max_jitter: float = 0.2

    def delay(self, attempt: int, rng: random.Random) -> float:
        return self.base_delay * (2 ** attempt) + rng.uniform(0, self.max_jitter)


# ---------- Sanitization ----------

def _clean_strings(values: Any) -> List[str]:
    if not isinstance(values, list):
        return []
    cleaned = (str(v).strip() for v in values if v is not None)
    return [v for v in cleaned if v]


def _dedupe(values: Sequence[str]) -> List[str]:
    return list(dict.fromkeys(values))


def _remap_indices(raw_indices: Any, raw_options: Any, options: List[str]) -> List[int]:
    """
    Translate indices into the deduplicated option list.

    An index pointing at a surviving option follows that option; anything
    else is clamped into ``[0, len(options) - 1]``.
    """
    if not isinstance(raw_indices, list):
        return []
    originals = raw_options if isinstance(raw_options, list) else []
    upper = max(0, len(options) - 1)
    out = []
    for value in raw_indices:
        try:
            idx = int(value)
        except (TypeError, ValueError):
            idx = 0
        if 0 <= idx < len(originals):
            label = str(originals[idx]).strip() if originals[idx] is not None else ""
            if label in options:
                out.append(options.index(label))
                continue
        out.append(min(upper, max(0, idx)))
    return out


def _sanitize_mcq(q: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    options = _dedupe(_clean_strings(q.get("options")))
    indices = _remap_indices(q.get("correctIndices"), q.get("options"), options)
    if not options or len(indices) != 1:
        return None
    return {"options": options, "correctIndices": indices}


def _sanitize_msq(q: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    options = _dedupe(_clean_strings(q.get("options")))
    indices = list(dict.fromkeys(_remap_indices(q.get("correctIndices"), q.get("options"), options)))
    if not options or not indices:
        return None
    return {"options": options, "correctIndices": indices}


def _sanitize_tf(q: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    if not isinstance(q.get("correctBool"), bool):
        return None
    return {"correctBool": q["correctBool"]}


def _sanitize_cloze(q: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    gaps = count_gaps(str(q.get("text") or ""))
    answers = _clean_strings(q.get("clozeAnswers"))
    if not gaps or not answers:
        return None
    return {"clozeAnswers": answers[:gaps]}


def _sanitize_short(q: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    answers = _dedupe(_clean_strings(q.get("acceptableAnswers")))
    if not answers:
        return None
    return {"acceptableAnswers": answers}


def _sanitize_match(q: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    left = _clean_strings(q.get("matchLeft"))
    right = _clean_strings(q.get("matchRight"))
    n = min(len(left), len(right))
    if n < 2:
        return None
    return {"matchLeft": left[:n], "matchRight": right[:n]}


def _sanitize_order(q: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    items = _clean_strings(q.get("orderItems"))
    if len(items) < 3:
        return None
    return {"orderItems": items}


_SANITIZERS: Dict[str, Callable[[Dict[str, Any]], Optional[Dict[str, Any]]]] = {
    QuestionKind.MCQ.value: _sanitize_mcq,
    QuestionKind.MSQ.value: _sanitize_msq,
    QuestionKind.TF.value: _sanitize_tf,
    QuestionKind.CLOZE.value: _sanitize_cloze,
    QuestionKind.SHORT.value: _sanitize_short,
    QuestionKind.MATCH.value: _sanitize_match,
    QuestionKind.ORDER.value: _sanitize_order,
}


def sanitize_questions(raw_questions: Sequence[Dict[str, Any]], picked: Sequence[SourceChunk]) -> List[QuestionBase]:
    """
    Re-check model output question by question.

    Missing provenance is stamped from the sampled chunks by position.
    Questions that fail their kind's rules are dropped, the rest of the
    batch is kept.
    """
    out: List[QuestionBase] = []
    for i, raw in enumerate(raw_questions):
        q = dict(raw or {})
        source = {k: v for k, v in dict(q.get("source") or {}).items() if v is not None}
        if not source.get("chunkId") and picked:
            origin = picked[i % len(picked)]
            source.update(chunkId=origin.id, fileId=origin.file_id)

        kind = q.get("kind")
        sanitizer = _SANITIZERS.get(kind)
        fields = sanitizer(q) if sanitizer else None
        if fields is None:
            logger.debug(f"Dropped AI question {i} ({kind}): below minimums")
            continue

        candidate = {
            "kind": kind,
            "text": str(q.get("text") or "").strip(),
            "rationale": q.get("rationale"),
            "source": {k: v for k, v in source.items() if v is not None} or None,
            **fields,
        }
        try:
            out.append(parse_question(candidate))
        except ValidationError as e:
            logger.debug(f"Dropped AI question {i} ({kind}): {e.error_count()} validation errors")
    return out


# ---------- Generator ----------

class QuestionGenerator:
    """
    Generates questions from document chunks with an OpenAI chat model.
    """

    def __init__(
        self,
        client: OpenAI,
        model: str = "gpt-4o-mini",
        max_output_tokens: int = 1800,
        temperature: float = 0.2,
        backoff: BackoffPolicy = BackoffPolicy(),
        conventions: Optional[Sequence[Any]] = None,
        sleep: Callable[[float], None] = time.sleep,
        rng: Optional[random.Random] = None,
    ):
        """
        Args:
            client: Configured OpenAI client, shared for the process lifetime
            model: Chat model name
            max_output_tokens: Output token limit sent with every request
            temperature: Sampling temperature
            backoff: Rate-limit retry policy applied per convention
            conventions: Calling conventions in the order they are tried
            sleep: Blocking sleep used between retries
            rng: Random source for backoff jitter
        """
        self.client = client
        self.model = model
        self.max_output_tokens = max_output_tokens
        self.temperature = temperature
        self.backoff = backoff
        self.conventions = list(conventions) if conventions is not None else [
            ToolCallConvention(),
            LegacyFunctionConvention(),
        ]
        self.sleep = sleep
        self.rng = rng or random.Random()

    def generate_from_chunks(
        self,
        chunks: Sequence[SourceChunk],
        count: int,
        mix: Optional[Mapping[Any, float]] = None,
    ) -> List[QuestionBase]:
        """
        Generate up to ``count`` questions from a sample of chunks.

        Args:
            chunks: Candidate chunks, possibly from several files
            count: Maximum number of questions
            mix: Desired relative weight per question kind

        Returns:
            Validated questions; empty when generation failed for any reason
        """
        if not chunks or count <= 0:
            return []

        try:
            picked = pick_diverse(chunks, min(count * 2, MAX_PROMPT_CHUNKS))
            messages = self.build_messages(picked, count, normalize_mix(mix))
            arguments = self._call_model(messages, count)
        except Exception as e:
            if is_rate_limited(e):
                logger.warning("AI quota/rate limited, falling back to deterministic questions")
            else:
                logger.error(f"AI generation failed: {e}")
            return []

        try:
            payload = RawPayload.model_validate(safe_json(arguments))
        except ValidationError as e:
            logger.warning(f"AI payload validation failed ({e.error_count()} errors), discarding batch")
            return []

        questions = sanitize_questions([q.model_dump() for q in payload.questions], picked)
        logger.info(f"AI produced {len(payload.questions)} questions, {len(questions)} kept after sanitization")
        return questions[:count]

    def build_messages(self, picked: Sequence[SourceChunk], count: int, mix_text: str) -> List[Dict[str, str]]:
        excerpts = "\n\n".join(
            EXCERPT_TEMPLATE.format(number=i + 1, chunk_id=c.id, file_id=c.file_id or "", text=c.text)
            for i, c in enumerate(picked)
        )
        return [
            {"role": "system", "content": QUESTION_GENERATION_SYSTEM_PROMPT.format(mix=mix_text)},
            {"role": "user", "content": QUESTION_GENERATION_USER_PROMPT_TEMPLATE.format(count=count, excerpts=excerpts)},
        ]

    def _build_request(self, convention: Any, messages: List[Dict[str, str]], count: int) -> Dict[str, Any]:
        request: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            **convention.request_options(count),
        }
        request[token_limit_param(self.model)] = self.max_output_tokens
        return request

    def _call_model(self, messages: List[Dict[str, str]], count: int) -> str:
        """
        Try each calling convention in order and return the raw function
        arguments of the first successful call.

        Raises:
            Exception: The last error once every convention is exhausted
        """
        last_error: Optional[BaseException] = None
        for convention in self.conventions:
            for attempt in range(self.backoff.attempts):
                try:
                    completion = self.client.chat.completions.create(
                        **self._build_request(convention, messages, count)
                    )
                    return convention.extract_arguments(completion)
                except Exception as e:
                    last_error = e
                    if is_rate_limited(e) and attempt < self.backoff.attempts - 1:
                        wait = self.backoff.delay(attempt, self.rng)
                        logger.warning(f"Rate limited on '{convention.name}' call, retrying in {wait:.2f}s")
                        self.sleep(wait)
                        continue
                    logger.warning(f"'{convention.name}' call failed: {e}")
                    break
        if last_error is None:
            raise RuntimeError("No calling convention configured")
        raise last_error
