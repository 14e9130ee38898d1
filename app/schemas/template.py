#app/schemas/template.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime
from app.core.enums import QuestionType
from .user import UserSummary

class QuestionCreate(BaseModel):
    """
    QuestionCreate: определение вопроса. Порядок задаётся позицией в списке
    (при полной замене) или добавлением в конец (append).
    """
    title: str = Field(..., max_length=255, examples=["How satisfied are you?"], description="Текст вопроса")
    description: Optional[str] = Field(None, description="Пояснение")
    type: QuestionType = Field(..., examples=["RADIO"], description="Тип вопроса")
    is_required: bool = Field(True, description="Обязательный вопрос")
    display_in_table: bool = Field(False, description="Показывать в таблице результатов")
    options: List[str] = Field(default_factory=list, examples=[["Yes", "No"]], description="Варианты (только SELECT/RADIO/CHECKBOX)")

class QuestionOptionRead(BaseModel):
    id: int
    value: str

    model_config = ConfigDict(from_attributes=True)

class QuestionRead(BaseModel):
    id: int
    template_id: int
    title: str
    description: Optional[str] = None
    type: QuestionType
    is_required: bool
    display_in_table: bool
    order: int
    options: List[QuestionOptionRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

class TemplateCreate(BaseModel):
    """
    TemplateCreate: создание шаблона (owner_id выставляется системой).
    """
    title: str = Field(..., max_length=255, examples=["Customer feedback"])
    description: Optional[str] = Field(None, examples=["Short survey after purchase"])
    topic: Optional[str] = Field(None, max_length=128, examples=["Education"])
    image_url: Optional[str] = Field(None, max_length=512)
    is_public: bool = Field(True, description="Публичный шаблон")
    tags: List[str] = Field(default_factory=list, examples=[["feedback", "retail"]], description="Имена тегов")
    questions: List[QuestionCreate] = Field(default_factory=list)
    allowed_user_ids: List[int] = Field(default_factory=list, description="Доступ к приватному шаблону")

class TemplateUpdate(BaseModel):
    """
    TemplateUpdate: обновление. questions и tags, если переданы, заменяют набор целиком.
    """
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    topic: Optional[str] = Field(None, max_length=128)
    image_url: Optional[str] = Field(None, max_length=512)
    is_public: Optional[bool] = None
    tags: Optional[List[str]] = None
    questions: Optional[List[QuestionCreate]] = None
    allowed_user_ids: Optional[List[int]] = None

class BulkDeleteRequest(BaseModel):
    ids: List[int] = Field(..., min_length=1, examples=[[1, 2, 3]])

class TemplateShort(BaseModel):
    """
    TemplateShort: сокращённая схема для списков.
    """
    id: int
    title: str
    description: Optional[str] = None
    topic: Optional[str] = None
    image_url: Optional[str] = None
    is_public: bool
    owner_id: int
    owner: Optional[UserSummary] = None
    tag_names: List[str] = Field(default_factory=list, serialization_alias="tags")
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class TemplateRead(TemplateShort):
    """
    TemplateRead: полная схема шаблона (вопросы, опции, допущенные пользователи).
    """
    questions: List[QuestionRead] = Field(default_factory=list)
    allowed_user_ids: List[int] = Field(default_factory=list)
    updated_at: Optional[datetime] = None
