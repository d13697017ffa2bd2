"""
Semantic context selection for the assistant.

Every note, meeting note (plus its action items) and past conversation is
rendered as a text block, embedded, and compared against the prompt
embedding with cosine similarity. The best blocks are injected into the
chat completion as "Relevant context".
"""
import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Dict, Any, Sequence

from .constants import CONTEXT_TOP_K, EMBEDDING_BATCH_SIZE

logger = logging.getLogger("flohub")

Embedder = Callable[[str], Awaitable[List[float]]]

NO_TITLE = "(no title)"


@dataclass
class ContextCandidate:
    text: str
    index: int
    score: float = 0.0


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    dot = sum(a * b for a, b in zip(vec_a, vec_b))
    magnitude_a = math.sqrt(sum(a * a for a in vec_a))
    magnitude_b = math.sqrt(sum(b * b for b in vec_b))
    if magnitude_a == 0 or magnitude_b == 0:
        return 0.0
    return dot / (magnitude_a * magnitude_b)


def _title(value) -> str:
    return NO_TITLE if value is None else str(value)


def note_text(note: Dict[str, Any]) -> str:
    return f"Note: {_title(note.get('title'))} - {note.get('content', '')}"


def meeting_text(meeting: Dict[str, Any]) -> str:
    summary = f"Summary: {meeting['aiSummary']}\n" if meeting.get("aiSummary") else ""
    agenda = f"Agenda: {meeting['agenda']}\n" if meeting.get("agenda") else ""
    return (
        f"Meeting Note: {_title(meeting.get('eventTitle'))}\n"
        f"{summary}{agenda}Content: {meeting.get('content', '')}"
    )


def meeting_actions_text(meeting: Dict[str, Any]) -> str:
    lines = [
        f"- {action.get('description')} (Assigned to: {action.get('assignedTo')}, "
        f"Status: {action.get('status')})"
        for action in meeting.get("actions") or []
    ]
    return f"Meeting Actions for {_title(meeting.get('eventTitle'))}: \n" + "\n".join(lines)


def conversation_text(conversation: Dict[str, Any]) -> str:
    text = "Past Conversation:\n"
    for message in conversation.get("messages") or []:
        text += f"{message.get('role')}: {message.get('content')}\n"
    return text


def build_candidates(
    notes: List[Dict[str, Any]],
    meetings: List[Dict[str, Any]],
    conversations: List[Dict[str, Any]],
) -> List[ContextCandidate]:
    """Render records as candidates; ``index`` is the tie-break rank.

    Ranks: notes first, then meeting notes, then meeting action blocks,
    then conversations.
    """
    candidates = [ContextCandidate(note_text(note), i) for i, note in enumerate(notes)]

    for j, meeting in enumerate(meetings):
        candidates.append(ContextCandidate(meeting_text(meeting), len(notes) + j))
        if meeting.get("actions"):
            candidates.append(
                ContextCandidate(meeting_actions_text(meeting), len(notes) + len(meetings) + j)
            )

    offset = len(notes) + len(meetings) * 2
    for k, conversation in enumerate(conversations):
        candidates.append(ContextCandidate(conversation_text(conversation), offset + k))

    return candidates


def rank_candidates(
    candidates: List[ContextCandidate],
    query_vector: Sequence[float],
    vectors: List[Sequence[float]],
    top_k: int = CONTEXT_TOP_K,
) -> List[ContextCandidate]:
    for candidate, vector in zip(candidates, vectors):
        candidate.score = cosine_similarity(query_vector, vector)
    ranked = sorted(candidates, key=lambda c: (-c.score, c.index))
    return ranked[:top_k]


async def embed_in_batches(
    texts: List[str],
    embed: Embedder,
    batch_size: int = EMBEDDING_BATCH_SIZE,
) -> List[List[float]]:
    """Embed texts batch after batch; requests inside a batch run concurrently."""
    vectors = []
    for start in range(0, len(texts), batch_size):
        batch = texts[start:start + batch_size]
        vectors.extend(await asyncio.gather(*(embed(text) for text in batch)))
    return vectors


async def find_relevant_context(
    query: str,
    notes: List[Dict[str, Any]],
    meetings: List[Dict[str, Any]],
    conversations: List[Dict[str, Any]],
    embed: Embedder,
) -> str:
    """Concatenate the most relevant blocks for ``query``, one per line.

    Embedding errors propagate to the caller.
    """
    candidates = build_candidates(notes, meetings, conversations)
    if not candidates:
        return ""

    query_vector = await embed(query)
    vectors = await embed_in_batches([c.text for c in candidates], embed)
    top = rank_candidates(candidates, query_vector, vectors)

    logger.debug(f"[CONTEXT] {len(candidates)} candidates, top scores {[round(c.score, 3) for c in top]}")
    return "".join(f"{c.text}\n" for c in top)
