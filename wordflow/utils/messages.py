"""
提示文案

学员看到的文案（葡萄牙语）。作答反馈按 (是否答对, 作答前状态) 确定，
对每个状态的两种结果都有定义；其余文案只用于展示，不影响调度。
"""

import random
from dataclasses import dataclass
from typing import Dict, Any, Optional

from wordflow.models.enums import PhraseState


@dataclass(frozen=True)
class Feedback:
    message: str
    kind: str  # correct, incorrect, confirmation
    emoji: str

    def to_dict(self) -> Dict[str, str]:
        return {"message": self.message, "kind": self.kind, "emoji": self.emoji}


_CORRECT_FEEDBACK = {
    PhraseState.NEW: Feedback("Você já conhece essa! Vamos confirmar amanhã.", "correct", "✨"),
    PhraseState.CONFIRMING: Feedback("Confirmado! Essa frase está dominada.", "confirmation", "🎯"),
    PhraseState.LEARNING: Feedback("Ótimo progresso! Continue assim.", "correct", "📈"),
    PhraseState.MASTERED: Feedback("Memória afiada! Mantendo o ritmo.", "correct", "💪"),
    PhraseState.MAINTENANCE: Feedback("Memória afiada! Mantendo o ritmo.", "correct", "💪"),
}

_INCORRECT_FEEDBACK = {
    PhraseState.NEW: Feedback("Normal não lembrar! Vamos praticar.", "incorrect", "🧠"),
    PhraseState.CONFIRMING: Feedback("Tudo bem! Repetição é o segredo.", "incorrect", "💡"),
    PhraseState.LEARNING: Feedback("Tudo bem! Repetição é o segredo.", "incorrect", "💡"),
    PhraseState.MASTERED: Feedback("Acontece! Vamos reforçar essa.", "incorrect", "🔄"),
    PhraseState.MAINTENANCE: Feedback("Acontece! Vamos reforçar essa.", "incorrect", "🔄"),
}

GENERIC_FEEDBACK = {
    True: Feedback("Resposta registrada!", "correct", "✅"),
    False: Feedback("Resposta registrada. Vamos revisar em breve.", "incorrect", "📝"),
}

RESUME_MESSAGE = "Você parou na metade! Vamos continuar 💪"


def build_feedback(knows: bool, previous_state: PhraseState) -> Feedback:
    """作答反馈"""
    table = _CORRECT_FEEDBACK if knows else _INCORRECT_FEEDBACK
    return table[PhraseState(previous_state)]


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def motivational_message(state_counts: Dict[PhraseState, int]) -> str:
    """新会话的激励文案，按批次构成决定"""
    learning = state_counts.get(PhraseState.LEARNING, 0)
    confirming = state_counts.get(PhraseState.CONFIRMING, 0)
    new = state_counts.get(PhraseState.NEW, 0)

    if learning > 0:
        return f"{learning} {_plural(learning, 'revisão', 'revisões')} esperando você. Seu cérebro vai agradecer! 🧠"
    if confirming > 0:
        return f"{confirming} {_plural(confirming, 'frase', 'frases')} para confirmar hoje! ✓"
    if new > 0:
        return f"{new} {_plural(new, 'frase nova', 'frases novas')} para você hoje! 🚀"
    return "Hora de manter o que você já domina afiado! 💪"


def completion_message(correct: int, incorrect: int, rng: Optional[random.Random] = None) -> str:
    """会话完成文案，按正确率分档"""
    rng = rng or random.Random()
    answered = correct + incorrect
    accuracy = round(correct * 100 / answered) if answered > 0 else 0

    if accuracy == 100:
        return rng.choice([
            "Perfeito! Todas certas hoje! 🌟",
            "Sessão impecável! Você está voando 🚀",
        ])
    if accuracy >= 80:
        return "Ótima sessão! Continue assim 💪"
    if accuracy >= 60:
        return "Boa prática! As revisões vão reforçar 🧠"
    return "Cada erro é aprendizado. Amanhã será melhor! 📈"


def contextual_message(context: Dict[str, Any], rng: Optional[random.Random] = None) -> str:
    """
    首页提示文案

    Args:
        context: 学员上下文，包括 is_new_learner, has_active_session, remaining_phrases,
                 consecutive_days, streak_at_risk, hours_left_today, days_away,
                 reviews_today, new_phrases, completed_today, total_mastered
    """
    rng = rng or random.Random()

    if context.get("is_new_learner"):
        return "Sua primeira sessão te espera! Vamos começar? 👋"

    if context.get("has_active_session"):
        return f"Você parou na metade! Só mais {context.get('remaining_phrases', 0)} frases 💪"

    streak = context.get("consecutive_days", 0)
    hours_left = context.get("hours_left_today", 24)
    if context.get("streak_at_risk") and hours_left <= 6 and streak > 2:
        return f"Sua sequência de {streak} dias acaba em {hours_left}h ⏰"

    next_day = streak + 1
    if next_day in (7, 14, 30, 60, 100) and not context.get("completed_today"):
        return f"Amanhã você completa {next_day} dias! Não pare agora 🚀"

    reviews_today = context.get("reviews_today", 0)
    if context.get("days_away", 0) > 2:
        return f"Que bom te ver de volta! {reviews_today} frases precisam de revisão 🔄"

    if reviews_today > 0:
        return rng.choice([
            f"{reviews_today} revisões esperando você. Seu cérebro vai agradecer! 🧠",
            f"{reviews_today} frases querem te rever hoje! 🔄",
            f"Hora de reforçar {reviews_today} frases que você já conhece 💪",
        ])

    new_phrases = context.get("new_phrases", 0)
    if new_phrases > 0:
        return f"{new_phrases} frases novas para você hoje! 🚀"

    return rng.choice([
        "Hora de manter o que você domina afiado! 💪",
        "2 minutinhos que fazem diferença. Bora? ⚡",
        "Consistência é o segredo. Vamos lá! 🎯",
        f"Você já domina {context.get('total_mastered', 0)} frases. Bora aumentar? 📈",
    ])
