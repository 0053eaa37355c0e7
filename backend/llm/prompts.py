"""All prompt templates — single source of truth for LLM instructions.

Every string that becomes a prompt lives here.
No module in the project should hard-code prompt text.
"""

from __future__ import annotations

# ═══════════════════════════════════════════════════════════════════════════
#  SECOND BRAIN ANSWER PROMPT
# ═══════════════════════════════════════════════════════════════════════════

SECOND_BRAIN_PROMPT = """\
You are my second brain. You have access to things like my notes, meeting notes, some appointments.
In fact you're like a CEO's personal assistant (to me), who also happens to know everything that goes on inside their head.
Your job is to help me be more productive, and to help me make better decisions.
Use the following pieces of context to answer the question at the end.
If you really don't know the answer, just say that you don't know, don't try to make up an answer. But do try to give any
information that you think might be relevant.
----------------
{context}
----------------
Question:
{query}"""

# One retrieved chunk inside the context block.
CONTEXT_ENTRY = """\
Similarity: {score}
Content:
{content}"""


def format_context(matches) -> str:
    """Render ranked matches as blank-line separated context entries."""
    return "\n\n".join(
        CONTEXT_ENTRY.format(score=m.score, content=m.metadata.get("content", ""))
        for m in matches
    )


def build_prompt(context: str, query: str) -> str:
    return SECOND_BRAIN_PROMPT.format(context=context, query=query)
