#app/core/answer_values.py
"""
Типизированные значения ответов.

В БД Answer.value хранится как JSON-скаляр или массив, но внутри приложения
значение всегда разбирается в один из вариантов по типу вопроса:

    TEXT / TEXTAREA  -> TextValue(str)
    NUMBER           -> NumberValue(float | None)
    SELECT / RADIO   -> SingleChoiceValue(option_id | None)
    CHECKBOX         -> MultiChoiceValue(tuple[option_id, ...])
"""
import math
from dataclasses import dataclass
from typing import Any, Callable, Collection, Dict, Optional, Tuple, Union

from app.core.enums import QuestionType


class AnswerValueError(ValueError):
    """Значение ответа не подходит к типу вопроса."""


# === ВАРИАНТЫ ЗНАЧЕНИЙ ===

@dataclass(frozen=True)
class TextValue:
    text: str = ""

    def is_empty(self) -> bool:
        return len(self.text) == 0

    def to_storage(self) -> Any:
        return self.text


@dataclass(frozen=True)
class NumberValue:
    number: Optional[float] = None

    def is_empty(self) -> bool:
        return self.number is None

    def to_storage(self) -> Any:
        return self.number


@dataclass(frozen=True)
class SingleChoiceValue:
    option_id: Optional[int] = None

    def is_empty(self) -> bool:
        return self.option_id is None

    def to_storage(self) -> Any:
        return self.option_id


@dataclass(frozen=True)
class MultiChoiceValue:
    option_ids: Tuple[int, ...] = ()

    def is_empty(self) -> bool:
        return len(self.option_ids) == 0

    def to_storage(self) -> Any:
        return list(self.option_ids)


AnswerValue = Union[TextValue, NumberValue, SingleChoiceValue, MultiChoiceValue]


# === ПАРСЕРЫ ПО ТИПАМ ===

def _parse_option_id(raw: Any, option_ids: Collection[int]) -> int:
    if isinstance(raw, bool):
        raise AnswerValueError("Option id must be an integer")
    if isinstance(raw, int):
        option_id = raw
    elif isinstance(raw, str) and raw.strip().isdigit():
        option_id = int(raw.strip())
    else:
        raise AnswerValueError(f"Option id must be an integer, got {raw!r}")
    if option_id not in option_ids:
        raise AnswerValueError(f"Option {option_id} does not belong to this question")
    return option_id


def parse_text(raw: Any, option_ids: Collection[int]) -> TextValue:
    if raw is None:
        return TextValue()
    if not isinstance(raw, str):
        raise AnswerValueError("Text answer must be a string")
    return TextValue(raw)


def parse_number(raw: Any, option_ids: Collection[int]) -> NumberValue:
    if raw is None or (isinstance(raw, str) and raw.strip() == ""):
        return NumberValue()
    if isinstance(raw, bool):
        raise AnswerValueError("Number answer must be numeric")
    if isinstance(raw, (int, float)):
        number = float(raw)
    elif isinstance(raw, str):
        try:
            number = float(raw.strip())
        except ValueError:
            raise AnswerValueError(f"Number answer must be numeric, got {raw!r}")
    else:
        raise AnswerValueError("Number answer must be numeric")
    if not math.isfinite(number):
        raise AnswerValueError("Number answer must be finite")
    return NumberValue(number)


def parse_single_choice(raw: Any, option_ids: Collection[int]) -> SingleChoiceValue:
    if raw is None or raw == "":
        return SingleChoiceValue()
    return SingleChoiceValue(_parse_option_id(raw, option_ids))


def parse_multi_choice(raw: Any, option_ids: Collection[int]) -> MultiChoiceValue:
    if raw is None:
        return MultiChoiceValue()
    if not isinstance(raw, (list, tuple)):
        raise AnswerValueError("Checkbox answer must be a list of option ids")
    seen = []
    for item in raw:
        option_id = _parse_option_id(item, option_ids)
        if option_id not in seen:
            seen.append(option_id)
    return MultiChoiceValue(tuple(seen))


# === МАППИНГ ТИПОВ ===

type_map: Dict[QuestionType, Callable[[Any, Collection[int]], AnswerValue]] = {
    QuestionType.TEXT: parse_text,
    QuestionType.TEXTAREA: parse_text,
    QuestionType.NUMBER: parse_number,
    QuestionType.SELECT: parse_single_choice,
    QuestionType.RADIO: parse_single_choice,
    QuestionType.CHECKBOX: parse_multi_choice,
}


def parse_answer_value(question_type: QuestionType, raw: Any, option_ids: Collection[int] = ()) -> AnswerValue:
    """Разобрать значение, пришедшее от клиента, по типу вопроса."""
    parser = type_map.get(QuestionType(question_type))
    if parser is None:
        raise AnswerValueError(f"Unsupported question type: {question_type}")
    return parser(raw, option_ids)


def load_answer_value(question_type: QuestionType, stored: Any) -> AnswerValue:
    """
    Восстановить вариант из сохранённого JSON. Принадлежность опций вопросу
    здесь не проверяется: после редактирования шаблона старые id допустимы.
    """
    question_type = QuestionType(question_type)
    if question_type in (QuestionType.TEXT, QuestionType.TEXTAREA):
        return TextValue(stored if isinstance(stored, str) else "")
    if question_type == QuestionType.NUMBER:
        return NumberValue(float(stored) if isinstance(stored, (int, float)) and not isinstance(stored, bool) else None)
    if question_type in (QuestionType.SELECT, QuestionType.RADIO):
        return SingleChoiceValue(stored if isinstance(stored, int) and not isinstance(stored, bool) else None)
    if isinstance(stored, list):
        return MultiChoiceValue(tuple(i for i in stored if isinstance(i, int) and not isinstance(i, bool)))
    return MultiChoiceValue()


def empty_value(question_type: QuestionType) -> AnswerValue:
    return parse_answer_value(question_type, None)
