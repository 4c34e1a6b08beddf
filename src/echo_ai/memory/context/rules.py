"""Declarative table of questions that need environment details before answering."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ContextRule:
    keywords: tuple[str, ...]
    required: tuple[str, ...]
    priority: str

    def wanted_keys(self) -> list[str]:
        """Priority key first, then required keys, without duplicates."""

        return list(dict.fromkeys((self.priority, *self.required)))


DEFAULT_RULES: tuple[ContextRule, ...] = (
    ContextRule(
        keywords=("install", "setup", "configure"),
        required=("os", "environment"),
        priority="os",
    ),
    ContextRule(
        keywords=("error", "not working", "failed"),
        required=("environment", "version", "os"),
        priority="environment",
    ),
    ContextRule(
        keywords=("run", "execute", "start"),
        required=("platform", "environment", "os"),
        priority="platform",
    ),
    ContextRule(
        keywords=("deploy", "publish"),
        required=("platform",),
        priority="platform",
    ),
)

CONTEXT_QUESTIONS: dict[str, str] = {
    "os": "Could you tell me which operating system you're using? (e.g., Windows 11, macOS, Linux)",
    "environment": "What development environment or tools are you using? (e.g., VS Code, Node.js version)",
    "version": "Which version of the software/package are you working with?",
    "platform": "Where are you planning to deploy or run this? (e.g., local machine, cloud service)",
}

QUESTION_SUFFIX = "(After you respond, I'll provide a complete answer based on this information)"


def question_for(context_type: str) -> str:
    base = CONTEXT_QUESTIONS.get(
        context_type, f"Could you tell me a bit more about your {context_type}?"
    )
    return f"{base} {QUESTION_SUFFIX}"


__all__ = ["ContextRule", "DEFAULT_RULES", "CONTEXT_QUESTIONS", "question_for"]
