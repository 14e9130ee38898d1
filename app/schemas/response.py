#app/schemas/response.py
from pydantic import BaseModel, Field
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")

class ErrorResponse(BaseModel):
    """
    ErrorResponse: стандартная структура для ошибки.
    """
    detail: str = Field(..., examples=["Template not found"], description="Сообщение об ошибке")
    missing_question_ids: Optional[List[int]] = Field(None, description="Неотвеченные обязательные вопросы (только для завершения формы)")

class MessageResponse(BaseModel):
    """
    MessageResponse: простое сообщение для подтверждения действия.
    """
    message: str = Field(..., examples=["Action completed successfully"], description="Текстовое сообщение")

class PaginationMeta(BaseModel):
    total: int = Field(..., description="Общее количество результатов")
    page: int = Field(..., description="Номер страницы (с 1)")
    limit: int = Field(..., description="Размер страницы")
    total_pages: int = Field(..., serialization_alias="totalPages", description="Количество страниц")

class Page(BaseModel, Generic[T]):
    """
    Page: постраничный ответ вида {data: [...], pagination: {total, page, limit, totalPages}}.
    """
    data: List[T]
    pagination: PaginationMeta
