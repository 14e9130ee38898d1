# app/core/enums.py
import enum


class UserRole(str, enum.Enum):
    """Закрытый набор ролей пользователя."""
    USER = "USER"
    MODERATOR = "MODERATOR"
    ADMIN = "ADMIN"


class QuestionType(str, enum.Enum):
    TEXT = "TEXT"
    TEXTAREA = "TEXTAREA"
    NUMBER = "NUMBER"
    CHECKBOX = "CHECKBOX"
    SELECT = "SELECT"
    RADIO = "RADIO"


# Типы вопросов, у которых есть варианты ответа
CHOICE_TYPES = frozenset({QuestionType.SELECT, QuestionType.RADIO, QuestionType.CHECKBOX})
