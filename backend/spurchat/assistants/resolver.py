"""Resolución escalonada de respuestas: palabras clave -> modelo -> fallback.

El resolvedor es puro respecto a la persistencia: recibe el historial y el
texto del usuario y nunca lanza excepciones. Cualquier falla del proveedor se
convierte en una respuesta estática.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal

from spurchat.assistants.rules import KEYWORD_RULES, KeywordRule, match_keyword_rule
from spurchat.core.errors import UpstreamError
from spurchat.core.logging import get_logger, log_event
from spurchat.data import read_text
from spurchat.models.conversation import Message, Sender
from spurchat.services.llm import TextGenerator

logger = get_logger("spurchat.resolver")

KEYWORD_MODEL = "keyword-matcher"
FALLBACK_MODEL = "fallback"
PROMPT_HISTORY_TURNS = 6
MIN_GENERATED_LENGTH = 10

Tier = Literal["keyword", "generative", "fallback"]

FALLBACK_REPLY = (
    "I'm here to help! I can answer questions about our shipping policy, returns, "
    "payment methods, support hours, and product warranties. What would you like to know?"
)
SERVICE_OVERVIEW_REPLY = (
    "Thank you for contacting SpurStore! I'm here to help with questions about:\n\n"
    "• Shipping (free over $50, 3-5 business days)\n"
    "• Returns (30-day policy, free return shipping)\n"
    "• Payments (all major cards, PayPal, Apple Pay)\n"
    "• Support hours (Mon-Fri 9 AM - 6 PM EST)\n\n"
    "What can I help you with?"
)
CLARIFICATION_REPLY = (
    "I'd be happy to help! Could you please provide more details about your question? "
    "I can assist with shipping, returns, payments, or any other questions about SpurStore."
)


@dataclass(frozen=True, slots=True)
class TokenUsage:
    """Estimación (caracteres / 4); no sirve para facturación."""

    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass(frozen=True, slots=True)
class Reply:
    text: str
    model: str
    tier: Tier
    usage: TokenUsage = field(default_factory=TokenUsage)


def estimate_tokens(text: str) -> int:
    return len(text) // 4


def build_system_preamble(knowledge: str | None = None) -> str:
    knowledge = read_text("faq_knowledge.md") if knowledge is None else knowledge
    return (
        "You are a helpful customer support agent for SpurStore. "
        f"Answer questions using this information:\n\n{knowledge.strip()}\n\n"
        "Be friendly, concise, and helpful.\n\n"
    )


def build_prompt(
    history: Sequence[Message],
    user_text: str,
    *,
    preamble: str,
    max_turns: int = PROMPT_HISTORY_TURNS,
) -> str:
    """Prompt de texto plano con turnos alternados Customer/Agent y un `Agent:` abierto."""
    lines = [preamble]
    recent = list(history)[-max_turns:] if max_turns > 0 else []
    for message in recent:
        speaker = "Customer" if message.sender == Sender.USER.value else "Agent"
        lines.append(f"{speaker}: {message.text}\n")
    lines.append(f"Customer: {user_text}\nAgent:")
    return "".join(lines)


class ReplyResolver:
    """Evalúa los niveles en orden estricto; la primera coincidencia gana."""

    def __init__(
        self,
        generator: TextGenerator | None,
        *,
        rules: tuple[KeywordRule, ...] = KEYWORD_RULES,
        knowledge: str | None = None,
    ) -> None:
        self._generator = generator
        self._rules = rules
        self._preamble = build_system_preamble(knowledge)

    @property
    def generator(self) -> TextGenerator | None:
        return self._generator

    async def resolve(self, history: Sequence[Message], user_text: str) -> Reply:
        rule = match_keyword_rule(user_text, self._rules)
        if rule is not None:
            log_event(logger, "resolver.keyword_matched", rule=rule.name)
            return Reply(text=rule.answer, model=KEYWORD_MODEL, tier="keyword")

        if self._generator is None:
            return Reply(text=FALLBACK_REPLY, model=FALLBACK_MODEL, tier="fallback")

        prompt = build_prompt(history, user_text, preamble=self._preamble)
        try:
            generated = await self._generator.generate(prompt)
        except UpstreamError as exc:
            logger.warning(
                "resolver.upstream_failed",
                extra={
                    "model": self._generator.model,
                    "status_code": exc.status_code,
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )
            return Reply(text=FALLBACK_REPLY, model=FALLBACK_MODEL, tier="fallback")
        except Exception as exc:  # transporte o parseo: se responde con fallback
            logger.exception(
                "resolver.generation_error",
                extra={"model": self._generator.model, "error": str(exc)},
            )
            return Reply(text=SERVICE_OVERVIEW_REPLY, model=FALLBACK_MODEL, tier="fallback")

        generated = (generated or "").strip()
        if len(generated) < MIN_GENERATED_LENGTH:
            log_event(logger, "resolver.short_generation", length=len(generated))
            return Reply(text=CLARIFICATION_REPLY, model=FALLBACK_MODEL, tier="fallback")

        return Reply(
            text=generated,
            model=self._generator.model,
            tier="generative",
            usage=TokenUsage(
                input_tokens=estimate_tokens(prompt),
                output_tokens=estimate_tokens(generated),
            ),
        )
