# app/core/exceptions.py
from typing import Iterable, List


class BaseAppException(Exception):
    """Базовый класс для всех кастомных исключений приложения."""
    status_code: int = 500

    def __init__(self, message: str = "App exception"):
        super().__init__(message)
        self.detail = message

# ==== Валидация (400) ====

class ValidationError(BaseAppException):
    """Общая ошибка валидации."""
    status_code = 400

    def __init__(self, message: str = "Validation error"):
        super().__init__(message)

class TemplateValidationError(ValidationError):
    """Ошибка валидации шаблона."""
    def __init__(self, message: str = "Template validation error"):
        super().__init__(message)

class QuestionValidationError(ValidationError):
    """Ошибка валидации вопроса (тип, опции, порядок)."""
    def __init__(self, message: str = "Question validation error"):
        super().__init__(message)

class AnswerValidationError(ValidationError):
    """Ответ не соответствует типу вопроса или шаблону формы."""
    def __init__(self, message: str = "Answer validation error"):
        super().__init__(message)

class RequiredAnswersMissing(ValidationError):
    """Попытка завершить форму без ответов на обязательные вопросы."""
    def __init__(self, question_ids: Iterable[int]):
        self.question_ids: List[int] = sorted(question_ids)
        super().__init__(
            f"Required questions are not answered: {', '.join(str(i) for i in self.question_ids)}"
        )

# ==== Аутентификация (401) ====

class AuthenticationError(BaseAppException):
    """Нет токена, токен невалиден или истёк."""
    status_code = 401

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message)

# ==== Авторизация (403) ====

class AuthorizationError(BaseAppException):
    """Пользователь аутентифицирован, но действие запрещено."""
    status_code = 403

    def __init__(self, message: str = "Not authorized to perform this action"):
        super().__init__(message)

class AccountBlockedError(AuthorizationError):
    def __init__(self, message: str = "Account is blocked"):
        super().__init__(message)

class StaleSessionError(AuthorizationError):
    """Сессия устарела: требуется повторная аутентификация."""
    def __init__(self, message: str = "Re-authentication required: session is stale"):
        super().__init__(message)

# ==== NotFound (404) ====

class NotFoundError(BaseAppException):
    """Ошибка отсутствия ресурса."""
    status_code = 404

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)

class UserNotFound(NotFoundError):
    def __init__(self, message: str = "User not found"):
        super().__init__(message)

class TemplateNotFound(NotFoundError):
    def __init__(self, message: str = "Template not found"):
        super().__init__(message)

class FormNotFound(NotFoundError):
    def __init__(self, message: str = "Form not found"):
        super().__init__(message)

class CommentNotFound(NotFoundError):
    def __init__(self, message: str = "Comment not found"):
        super().__init__(message)

# ==== Конфликты (409) ====

class ConflictError(BaseAppException):
    """Нарушение уникальности или состояния ресурса."""
    status_code = 409

    def __init__(self, message: str = "Conflict"):
        super().__init__(message)

class DuplicateEmail(ConflictError):
    def __init__(self, message: str = "This email is already registered"):
        super().__init__(message)

class TemplateStructureLocked(ConflictError):
    """Структуру шаблона нельзя менять: по нему уже есть формы."""
    def __init__(self, message: str = "Template questions cannot be changed once forms exist"):
        super().__init__(message)

# ==== Внутренние (500) ====

class InternalError(BaseAppException):
    """Ошибка БД или непредвиденный сбой (детали не уходят клиенту)."""
    status_code = 500

    def __init__(self, message: str = "An internal error occurred."):
        super().__init__(message)
