"""Reglas de palabras clave con respuestas fijas para preguntas frecuentes.

El orden de `KEYWORD_RULES` es la política de desempate: un mensaje que
coincide con varias categorías se resuelve con la primera regla evaluada
(por ejemplo "hello, I want a refund" responde con la política de devoluciones).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class KeywordRule:
    """Par (predicado, respuesta) evaluado en cortocircuito.

    `keywords` se buscan como subcadena ("nonrefundable" contiene "refund");
    `words` sólo como palabra completa ("hi" no coincide con "something").
    """

    name: str
    answer: str
    keywords: tuple[str, ...] = ()
    words: tuple[str, ...] = ()
    _word_pattern: re.Pattern[str] | None = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.keywords and not self.words:
            raise ValueError(f"La regla {self.name!r} no define palabras clave")
        pattern = None
        if self.words:
            pattern = re.compile("|".join(rf"\b{re.escape(w)}\b" for w in self.words))
        object.__setattr__(self, "_word_pattern", pattern)

    def matches(self, lowered: str) -> bool:
        if any(keyword in lowered for keyword in self.keywords):
            return True
        return self._word_pattern is not None and self._word_pattern.search(lowered) is not None


RETURN_POLICY_ANSWER = (
    "We offer a 30-day return policy! You can return items within 30 days of delivery "
    "for a full refund. Items must be unused and in original packaging. We provide free "
    "return shipping within the US, and refunds are processed within 5-7 business days. "
    "Would you like help starting a return?"
)

KEYWORD_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(
        name="returns",
        keywords=("return", "refund"),
        answer=RETURN_POLICY_ANSWER,
    ),
    KeywordRule(
        name="shipping",
        keywords=("ship", "delivery"),
        answer=(
            "We offer free shipping on orders over $50! Standard shipping takes 3-5 business "
            "days, and we also have express shipping (1-2 days) for $15. We ship "
            "internationally to most countries (7-14 business days). All orders include "
            "tracking numbers. What would you like to know about shipping?"
        ),
    ),
    KeywordRule(
        name="payment",
        keywords=("payment", "pay"),
        answer=(
            "We accept all major credit cards (Visa, Mastercard, Amex, Discover), PayPal, "
            "Apple Pay, and Google Pay. We also offer Buy Now, Pay Later options through "
            "Klarna and Afterpay. Which payment method would you prefer?"
        ),
    ),
    KeywordRule(
        name="support",
        keywords=("support", "contact", "hours"),
        answer=(
            "Our support team is available Monday-Friday, 9 AM - 6 PM EST via live chat. "
            "Email support is available 24/7 with responses within 24 hours. Phone support "
            "is Monday-Friday, 10 AM - 5 PM EST at 1-800-SPUR-123. How can I help you today?"
        ),
    ),
    KeywordRule(
        name="warranty",
        keywords=("warranty", "guarantee"),
        answer=(
            "All our products come with a 1-year warranty! We also offer a price match "
            "guarantee within 30 days of purchase. If you find a lower price elsewhere, "
            "we'll match it. What product are you interested in?"
        ),
    ),
    KeywordRule(
        name="greeting",
        words=("hello", "hi", "hey"),
        answer=(
            "Hello! Welcome to SpurStore customer support. I'm here to help you with "
            "questions about shipping, returns, payments, or our products. What can I "
            "assist you with today?"
        ),
    ),
    KeywordRule(
        name="thanks",
        keywords=("thank",),
        answer="You're welcome! Is there anything else I can help you with today?",
    ),
)


def match_keyword_rule(
    text: str, rules: tuple[KeywordRule, ...] = KEYWORD_RULES
) -> KeywordRule | None:
    """Devuelve la primera regla que coincide con el texto (insensible a mayúsculas)."""
    lowered = text.lower()
    for rule in rules:
        if rule.matches(lowered):
            return rule
    return None
