from typing import Sequence

from tarot.models import ResolvedCard


# ======================
#    SYSTEM PROMPT
# ======================
SYSTEM_PROMPT = (
    "Ты опытный таролог, который дает глубокие и точные толкования карт Таро. "
    "Твои ответы структурированы, понятны и помогают людям."
)

PROMPT_SUFFIX = (
    "\nДай подробное, структурированное толкование этого расклада. "
    "Учитывай значение каждой позиции и взаимосвязь карт между собой. "
    "Ответ должен быть понятным, поддерживающим и давать практические советы. "
    "Используй эмодзи для лучшего восприятия. "
    "Структурируй ответ по позициям, а в конце дай общий вывод и совет."
)


def orientation_label(is_reversed: bool) -> str:
    return "перевернутая" if is_reversed else "прямая"


def position_label(positions: Sequence[str], index: int) -> str:
    if index < len(positions) and positions[index]:
        return positions[index]
    return f"Позиция {index + 1}"


def compose_prompt(
    spread_name: str,
    positions: Sequence[str],
    cards: Sequence[ResolvedCard],
) -> str:
    """Детермінований промпт: ті самі карти -> той самий текст."""
    lines = [
        "Ты профессиональный таролог с многолетним опытом. "
        f'Пользователь сделал расклад "{spread_name}" и получил следующие карты:',
        "",
    ]
    for i, card in enumerate(cards):
        lines.append(
            f"{position_label(positions, i)}: {card.name} ({orientation_label(card.is_reversed)})"
        )

    return "\n".join(lines) + "\n" + PROMPT_SUFFIX
