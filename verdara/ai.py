# verdara/ai.py
import logging
from functools import lru_cache
from typing import Dict, List, Optional

import numpy as np
from sentence_transformers import SentenceTransformer
from transformers import AutoModelForSeq2SeqLM, AutoTokenizer, pipeline

from . import config
from .catalog import store
from .catalog.schemas import CatalogItem
from .models import ChatMessage, ChatReply, ChatRequest


logger = logging.getLogger(__name__)

GREETING = (
    "Hey there! I'm Evergreen, your outdoor adventure guide. Ask me about "
    "trails, camping, wildlife, gear, or anything nature-related!"
)
FALLBACK_REPLY = "Oops! I had a little stumble on the trail. Could you try asking again?"

# Number of past turns kept in the prompt.
HISTORY_TURNS = 6


# === Models are loaded on first use, once per process ===
@lru_cache(maxsize=1)
def get_embedder() -> SentenceTransformer:
    logger.info("Loading embedding model %s", config.EMBEDDING_MODEL)
    return SentenceTransformer(config.EMBEDDING_MODEL)


@lru_cache(maxsize=1)
def get_generator():
    logger.info("Loading assistant model %s", config.ASSISTANT_MODEL)
    tokenizer = AutoTokenizer.from_pretrained(config.ASSISTANT_MODEL)
    model = AutoModelForSeq2SeqLM.from_pretrained(config.ASSISTANT_MODEL)
    return pipeline("text2text-generation", model=model, tokenizer=tokenizer)


_item_embeddings: Dict[int, np.ndarray] = {}


def _item_text(item: CatalogItem) -> str:
    parts = [item.name, item.location, item.type.replace("_", " ")]
    if item.difficulty:
        parts.append(item.difficulty)
    if item.season:
        parts.append(item.season)
    parts.extend(item.species + item.features + item.amenities + item.tags)
    if item.description:
        parts.append(item.description)
    return ". ".join(p for p in parts if p)


def _compute_item_embeddings(items: List[CatalogItem]) -> None:
    to_encode = [i for i in items if i.id not in _item_embeddings]
    if not to_encode:
        return

    vectors = get_embedder().encode([_item_text(i) for i in to_encode], convert_to_numpy=True)
    for item, vec in zip(to_encode, vectors):
        _item_embeddings[item.id] = vec


def _cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    denom = np.linalg.norm(a) * np.linalg.norm(b)
    if denom == 0:
        return 0.0
    return float(np.dot(a, b) / denom)


def retrieve_relevant_items(question: str, top_k: int = 3) -> List[CatalogItem]:
    """Catalog items closest to the question, best first."""
    items = store.list_items()
    if not items or not question.strip():
        return []

    _compute_item_embeddings(items)

    q_vec = get_embedder().encode([question], convert_to_numpy=True)[0]
    sims = [(i, _cosine_similarity(q_vec, _item_embeddings[i.id])) for i in items]
    sims.sort(key=lambda x: x[1], reverse=True)

    k = max(1, min(top_k, len(sims)))
    return [item for item, _ in sims[:k]]


def _last_user_message(messages: List[ChatMessage]) -> Optional[str]:
    for m in reversed(messages):
        if m.role == "user" and m.content.strip():
            return m.content.strip()
    return None


def build_prompt(messages: List[ChatMessage], items: List[CatalogItem]) -> str:
    context_lines = []
    for item in items:
        line = f"- {item.name} ({item.location})"
        if item.rating is not None:
            line += f", rated {item.rating:.1f}"
        if item.difficulty:
            line += f", {item.difficulty}"
        if item.distance:
            line += f", {item.distance}"
        context_lines.append(line)
    context = "\n".join(context_lines) or "- (no matching places)"

    history = "\n".join(
        f"{'User' if m.role == 'user' else 'Evergreen'}: {m.content}"
        for m in messages[-HISTORY_TURNS:]
    )

    return (
        "You are Evergreen, a friendly outdoor adventure guide. Answer questions "
        "about trails, camping, wildlife, gear and nature. Only recommend places "
        "from the list below when recommending places.\n\n"
        f"Places:\n{context}\n\n"
        f"Conversation:\n{history}\n\n"
        "Evergreen:"
    )


def generate_answer(prompt: str) -> str:
    result = get_generator()(prompt, max_new_tokens=256)[0]["generated_text"]
    return result.strip()


def chat(req: ChatRequest) -> ChatReply:
    """Reply to the latest user message.

    Any failure while retrieving context or generating yields the fallback
    reply; the caller's history is left as it was sent.
    """
    question = _last_user_message(req.messages)
    if question is None:
        return ChatReply(reply=GREETING)

    try:
        items = retrieve_relevant_items(question, req.top_k)
        answer = generate_answer(build_prompt(req.messages, items))
    except Exception:
        logger.exception("Assistant failed to answer")
        return ChatReply(reply=FALLBACK_REPLY)

    if not answer:
        return ChatReply(reply=FALLBACK_REPLY)
    return ChatReply(reply=answer, sources=[i.id for i in items])
