#app/schemas/form.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Optional
from datetime import datetime
from app.core.enums import QuestionType
from .user import UserSummary

class AnswerIn(BaseModel):
    """
    AnswerIn: ответ на вопрос. value: строка (TEXT/TEXTAREA), число (NUMBER),
    id опции (SELECT/RADIO) или список id опций (CHECKBOX).
    """
    question_id: int
    value: Any = None

class FormCreate(BaseModel):
    template_id: int
    answers: List[AnswerIn] = Field(default_factory=list)
    completed: bool = False

class FormStart(BaseModel):
    """FormStart: тело POST /forms/create/{template_id} (всё опционально)."""
    answers: List[AnswerIn] = Field(default_factory=list)
    completed: bool = False

class FormUpdate(BaseModel):
    """
    FormUpdate: upsert ответов по (form_id, question_id). completed=true
    завершает форму, если все обязательные вопросы отвечены.
    """
    answers: List[AnswerIn] = Field(default_factory=list)
    completed: Optional[bool] = None

class AnswerQuestion(BaseModel):
    title: str
    description: Optional[str] = None
    type: QuestionType

    model_config = ConfigDict(from_attributes=True)

class AnswerRead(BaseModel):
    id: int
    question_id: int
    value: Any = None
    question: Optional[AnswerQuestion] = None

    model_config = ConfigDict(from_attributes=True)

class FormTemplateSummary(BaseModel):
    id: int
    title: str
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class FormShort(BaseModel):
    id: int
    template_id: int
    author_id: int
    completed: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    template: Optional[FormTemplateSummary] = None

    model_config = ConfigDict(from_attributes=True)

class FormRead(FormShort):
    author: Optional[UserSummary] = None
    answers: List[AnswerRead] = Field(default_factory=list)
